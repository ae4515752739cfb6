"""
test_messaging_threads.py - Unit tests for MessageStore and threads

Tests:
- Thread placement and per-thread sequence numbers
- Timestamp monotonicity within a thread
- Content dedup window and id dedup
- Archive toggling, read flags
- Inbox projections
"""

import pytest
from dataclasses import replace
from datetime import datetime, timedelta

from hustle import Message, MessageStore, OpResult, compose
from hustle.content import onboarding_messages


T0 = datetime(2025, 3, 15, 12, 0, 0)


def _msg(sender="alice", content="hello", ts=T0, **kwargs) -> Message:
    return compose(sender, sender.title(), "Friend", content, ts, **kwargs)


class TestAdd:
    """Tests for MessageStore.add()."""

    def test_sequences_increase_per_thread(self):
        store = MessageStore()
        _, a1 = store.add(_msg("alice", "one"))
        _, b1 = store.add(_msg("bob", "one"))
        _, a2 = store.add(_msg("alice", "two", T0 + timedelta(seconds=5)))
        assert (a1.sequence, a2.sequence) == (1, 2)
        assert b1.sequence == 1
        assert [m.id for m in store.thread_messages("alice")] == [a1.id, a2.id]

    def test_timestamp_never_goes_backwards(self):
        store = MessageStore()
        _, first = store.add(_msg("alice", "one", T0))
        _, second = store.add(_msg("alice", "two", T0 - timedelta(minutes=5)))
        assert second.timestamp == first.timestamp + timedelta(milliseconds=1)

    def test_same_timestamp_gets_spaced(self):
        store = MessageStore()
        _, first = store.add(_msg("alice", "one", T0))
        _, second = store.add(_msg("alice", "two", T0))
        assert second.timestamp > first.timestamp

    def test_content_dedup_within_window(self):
        store = MessageStore()
        store.add(_msg("alice", "same", T0))
        result, _ = store.add(_msg("alice", "same", T0 + timedelta(milliseconds=500)))
        assert result is OpResult.ALREADY_APPLIED
        assert len(store) == 1

    def test_same_content_outside_window_kept(self):
        store = MessageStore()
        store.add(_msg("alice", "same", T0))
        result, _ = store.add(_msg("alice", "same", T0 + timedelta(seconds=2)))
        assert result is OpResult.APPLIED
        assert len(store) == 2

    def test_same_content_other_sender_kept(self):
        store = MessageStore()
        store.add(_msg("alice", "same"))
        result, _ = store.add(_msg("bob", "same"))
        assert result is OpResult.APPLIED

    def test_duplicate_id(self):
        store = MessageStore()
        _, stored = store.add(_msg())
        result, existing = store.add(replace(stored, content="changed"))
        assert result is OpResult.ALREADY_APPLIED
        assert existing.content == "hello"

    def test_player_message_is_read(self):
        message = _msg(from_player=True)
        assert message.is_read
        assert message.from_player


class TestUpdate:

    def test_update_replaces(self):
        store = MessageStore()
        _, stored = store.add(_msg())
        store.update(replace(stored, is_read=True))
        assert store.get(stored.id).is_read

    def test_update_unknown_raises(self):
        with pytest.raises(KeyError):
            MessageStore().update(_msg())

    def test_update_cannot_reorder(self):
        store = MessageStore()
        _, stored = store.add(_msg())
        with pytest.raises(ValueError):
            store.update(replace(stored, sequence=9))


class TestArchive:
    """Tests for archive_thread()."""

    def test_archive_only_target_thread(self):
        store = MessageStore()
        _, a1 = store.add(_msg("alice", "one"))
        store.add(_msg("alice", "two", T0 + timedelta(seconds=3)))
        _, b1 = store.add(_msg("bob", "one"))

        assert store.archive_thread(a1.id) is OpResult.APPLIED
        assert all(m.is_archived and m.is_read for m in store.thread_messages("alice"))
        assert not store.get(b1.id).is_archived
        assert not store.get(b1.id).is_read
        assert [m.sender_id for m in store.archived_messages()] == ["alice", "alice"]
        assert [m.sender_id for m in store.active_messages()] == ["bob"]

    def test_archive_toggles_back(self):
        store = MessageStore()
        _, a1 = store.add(_msg("alice", "one"))
        store.archive_thread(a1.id)
        store.archive_thread(a1.id)
        assert not store.get(a1.id).is_archived

    def test_archive_unknown(self):
        assert MessageStore().archive_thread("nope") is OpResult.NOT_FOUND


class TestReadFlags:

    def test_mark_read(self):
        store = MessageStore()
        _, stored = store.add(_msg())
        assert store.mark_read(stored.id) is OpResult.APPLIED
        assert store.mark_read(stored.id) is OpResult.ALREADY_APPLIED
        assert store.mark_read("nope") is OpResult.NOT_FOUND

    def test_mark_thread_read(self):
        store = MessageStore()
        store.add(_msg("alice", "one"))
        store.add(_msg("alice", "two", T0 + timedelta(seconds=3)))
        store.add(_msg("bob", "one"))
        assert store.mark_thread_read("alice") is OpResult.APPLIED
        assert store.unread_count() == 1
        assert store.mark_thread_read("alice") is OpResult.ALREADY_APPLIED
        assert store.mark_thread_read("carol") is OpResult.NOT_FOUND

    def test_unread_count_ignores_archived(self):
        store = MessageStore()
        _, a1 = store.add(_msg("alice", "one"))
        store.add(_msg("bob", "one"))
        assert store.unread_count() == 2
        store.archive_thread(a1.id)
        assert store.unread_count() == 1


class TestRestore:

    def test_restored_sequences_kept(self):
        store = MessageStore(onboarding_messages())
        assert [m.sequence for m in store.thread_messages("mentor")] == [1, 2, 3, 4]
        _, fifth = store.add(_msg("mentor", "welcome back", datetime(2025, 1, 1)))
        assert fifth.sequence == 5

    def test_restore_orders_by_sequence(self):
        messages = onboarding_messages()
        store = MessageStore(reversed(messages))
        assert [m.id for m in store.thread_messages("mentor")] == [m.id for m in messages]

    def test_remove_duplicates(self):
        original = _msg("alice", "hi")
        copy = replace(original, id="other-id")
        store = MessageStore([original, copy, _msg("bob", "hi")])
        assert store.remove_duplicates() == 1
        assert len(store) == 2
        assert len(store.thread_messages("alice")) == 1
        assert store.remove_duplicates() == 0


class TestSummaries:

    def test_newest_thread_first(self):
        store = MessageStore()
        store.add(_msg("alice", "one", T0))
        store.add(_msg("bob", "one", T0 + timedelta(minutes=1)))
        summaries = store.thread_summaries()
        assert [s.participant_id for s in summaries] == ["bob", "alice"]
        assert summaries[0].message_count == 1
        assert summaries[0].unread_count == 1

    def test_archived_threads_listed_separately(self):
        store = MessageStore()
        _, a1 = store.add(_msg("alice", "one"))
        store.add(_msg("bob", "one"))
        store.archive_thread(a1.id)
        assert [s.participant_id for s in store.thread_summaries()] == ["bob"]
        assert [s.participant_id for s in store.thread_summaries(archived=True)] == ["alice"]
