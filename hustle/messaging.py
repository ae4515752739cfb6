"""
messaging.py - Message Threads

Messages are grouped into threads keyed by participant id (the message's
sender_id). Each Thread owns the ordered ids of its messages and a monotonic
sequence counter, so ordering never depends on clock resolution.

MessageStore is the aggregate: it holds every Message by id (in insertion
order) plus the Thread index, and exposes the thread operations (add with
dedup, archive, mark read) and read-only projections. Projections are
computed on every call, never cached.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from .core import (
    Message, OpResult, Opportunity,
    DEDUP_WINDOW_SECONDS, THREAD_TIME_STEP_MS, make_id,
)


_DEDUP_WINDOW = timedelta(seconds=DEDUP_WINDOW_SECONDS)
_TIME_STEP = timedelta(milliseconds=THREAD_TIME_STEP_MS)


@dataclass
class Thread:
    """
    All messages exchanged with one participant.

    Attributes:
        participant_id: The counterparty's sender_id
        message_ids: Message ids in sequence order
        next_sequence: Sequence number the next message receives
        last_timestamp: Timestamp of the newest message
    """
    participant_id: str
    message_ids: List[str] = field(default_factory=list)
    next_sequence: int = 1
    last_timestamp: Optional[datetime] = None


@dataclass(frozen=True, slots=True)
class ThreadSummary:
    """One row of the inbox list."""
    participant_id: str
    latest: Message
    message_count: int
    unread_count: int
    is_archived: bool


def compose(
    sender_id: str,
    sender_name: str,
    sender_role: str,
    content: str,
    now: datetime,
    rng=None,
    cycle: int = 0,
    opportunity: Optional[Opportunity] = None,
    from_player: bool = False,
) -> Message:
    """Build a new unread message. Thread placement happens in MessageStore.add()."""
    return Message(
        sender_id=sender_id,
        sender_name=sender_name,
        sender_role=sender_role,
        timestamp=now,
        content=content,
        opportunity=opportunity,
        is_read=from_player,
        from_player=from_player,
        cycle=cycle,
        id=make_id(rng),
    )


class MessageStore:
    """
    Flat message storage with an explicit thread index.

    Invariants:
    - Every stored message belongs to exactly one Thread (its sender_id)
    - Sequence numbers strictly increase within a thread
    - Timestamps never decrease within a thread
    """

    def __init__(self, messages: Iterable[Message] = ()):
        self._messages: Dict[str, Message] = {}
        self._threads: Dict[str, Thread] = {}
        for message in messages:
            self._restore(message)
        for thread in self._threads.values():
            thread.message_ids.sort(key=lambda mid: self._messages[mid].sequence)

    # ------------------------------------------------------------------
    # Container protocol
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(self._messages.values())

    def __contains__(self, message_id: str) -> bool:
        return message_id in self._messages

    def get(self, message_id: str) -> Optional[Message]:
        return self._messages.get(message_id)

    def all(self) -> List[Message]:
        return list(self._messages.values())

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def _restore(self, message: Message) -> None:
        """Insert a persisted message, keeping its sequence when it has one."""
        thread = self._threads.setdefault(message.sender_id, Thread(message.sender_id))
        if message.sequence < 1:
            message = replace(message, sequence=thread.next_sequence)
        thread.next_sequence = max(thread.next_sequence, message.sequence + 1)
        if thread.last_timestamp is None or message.timestamp > thread.last_timestamp:
            thread.last_timestamp = message.timestamp
        thread.message_ids.append(message.id)
        self._messages[message.id] = message

    def is_duplicate(self, message: Message) -> bool:
        """Same sender, same content, timestamps within the dedup window."""
        thread = self._threads.get(message.sender_id)
        if thread is None:
            return False
        for mid in thread.message_ids:
            existing = self._messages[mid]
            if (existing.content == message.content
                    and abs(existing.timestamp - message.timestamp) <= _DEDUP_WINDOW):
                return True
        return False

    def add(self, message: Message) -> Tuple[OpResult, Message]:
        """
        Append a message to its sender's thread.

        Returns (ALREADY_APPLIED, existing_or_given) for duplicates, otherwise
        (APPLIED, stored) where stored carries the thread's next sequence number
        and a timestamp no earlier than the thread's newest message plus one step.
        """
        if message.id in self._messages:
            return OpResult.ALREADY_APPLIED, self._messages[message.id]
        if self.is_duplicate(message):
            return OpResult.ALREADY_APPLIED, message

        thread = self._threads.setdefault(message.sender_id, Thread(message.sender_id))
        timestamp = message.timestamp
        if thread.last_timestamp is not None:
            timestamp = max(timestamp, thread.last_timestamp + _TIME_STEP)

        stored = replace(message, sequence=thread.next_sequence, timestamp=timestamp)
        thread.next_sequence += 1
        thread.last_timestamp = timestamp
        thread.message_ids.append(stored.id)
        self._messages[stored.id] = stored
        return OpResult.APPLIED, stored

    def update(self, message: Message) -> None:
        """Replace a stored message by id. Thread placement is unchanged."""
        current = self._messages.get(message.id)
        if current is None:
            raise KeyError(message.id)
        if current.sender_id != message.sender_id or current.sequence != message.sequence:
            raise ValueError("update() cannot move a message between threads or reorder it")
        self._messages[message.id] = message

    def archive_thread(self, message_id: str) -> OpResult:
        """
        Toggle archive state for the whole thread of message_id.

        The new state is the opposite of the given message's state. Every
        message in the thread is also marked read.
        """
        message = self._messages.get(message_id)
        if message is None:
            return OpResult.NOT_FOUND
        archived = not message.is_archived
        for mid in self._threads[message.sender_id].message_ids:
            self._messages[mid] = replace(self._messages[mid], is_archived=archived, is_read=True)
        return OpResult.APPLIED

    def mark_read(self, message_id: str) -> OpResult:
        message = self._messages.get(message_id)
        if message is None:
            return OpResult.NOT_FOUND
        if message.is_read:
            return OpResult.ALREADY_APPLIED
        self._messages[message_id] = replace(message, is_read=True)
        return OpResult.APPLIED

    def mark_thread_read(self, participant_id: str) -> OpResult:
        thread = self._threads.get(participant_id)
        if thread is None:
            return OpResult.NOT_FOUND
        changed = False
        for mid in thread.message_ids:
            if not self._messages[mid].is_read:
                self._messages[mid] = replace(self._messages[mid], is_read=True)
                changed = True
        return OpResult.APPLIED if changed else OpResult.ALREADY_APPLIED

    def remove_duplicates(self) -> int:
        """
        Drop messages repeating an earlier (sender_id, timestamp, content).

        Returns the number removed. Used when loading snapshots written before
        dedup-on-add existed.
        """
        seen = set()
        kept = []
        for message in self._messages.values():
            key = (message.sender_id, message.timestamp, message.content)
            if key in seen:
                continue
            seen.add(key)
            kept.append(message)
        removed = len(self._messages) - len(kept)
        if removed:
            rebuilt = MessageStore(kept)
            self._messages = rebuilt._messages
            self._threads = rebuilt._threads
        return removed

    # ------------------------------------------------------------------
    # Projections
    # ------------------------------------------------------------------

    def thread(self, participant_id: str) -> Optional[Thread]:
        return self._threads.get(participant_id)

    def thread_ids(self) -> List[str]:
        return list(self._threads)

    def thread_messages(self, participant_id: str) -> List[Message]:
        thread = self._threads.get(participant_id)
        if thread is None:
            return []
        return [self._messages[mid] for mid in thread.message_ids]

    def active_messages(self) -> List[Message]:
        return [m for m in self._messages.values() if not m.is_archived]

    def archived_messages(self) -> List[Message]:
        return [m for m in self._messages.values() if m.is_archived]

    def unread_count(self) -> int:
        return sum(1 for m in self._messages.values() if not m.is_read and not m.is_archived)

    def pending_messages(self) -> List[Message]:
        return [m for m in self._messages.values() if m.is_pending]

    def thread_summaries(self, archived: bool = False) -> List[ThreadSummary]:
        """Inbox rows, newest thread first."""
        rows = []
        for participant_id, thread in self._threads.items():
            if not thread.message_ids:
                continue
            messages = [self._messages[mid] for mid in thread.message_ids]
            latest = messages[-1]
            if latest.is_archived != archived:
                continue
            rows.append(ThreadSummary(
                participant_id=participant_id,
                latest=latest,
                message_count=len(messages),
                unread_count=sum(1 for m in messages if not m.is_read),
                is_archived=latest.is_archived,
            ))
        rows.sort(key=lambda row: row.latest.timestamp, reverse=True)
        return rows
