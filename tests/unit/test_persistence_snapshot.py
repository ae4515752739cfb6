"""
test_persistence_snapshot.py - Unit tests for snapshot save/load

Tests:
- Round trip of every persisted field
- Defaults for fields missing from older snapshots
- Duplicate removal and onboarding injection on load
- Malformed snapshots raise SnapshotError
- SnapshotStore fails soft
"""

import json
import pytest
from datetime import datetime
from decimal import Decimal

import numpy as np

from hustle import (
    AccountType, AssetType, MarketUpdate, MarketUpdateItem, Post,
    SnapshotError, SnapshotStore, decode_state, dumps, encode_state, loads,
)
from hustle.ledger import record_monthly_transactions, transfer
from hustle.lifecycle import accept_opportunity, generate_investment_dm
from hustle.portfolio import buy


@pytest.fixture
def played_state(funded_state, rng, now, make_business, add_offer):
    """A state touching every persisted field."""
    buy(funded_state, "BTC", "Bitcoin", "0.1", 50000, AssetType.CRYPTO, AccountType.CHECKING, now)
    buy(funded_state, "AAPL", "Apple", 3, 190, AssetType.STOCK, AccountType.CREDIT_CARD, now)
    transfer(funded_state, AccountType.CHECKING, AccountType.SAVINGS, 100, now)
    record_monthly_transactions(funded_state, datetime(2025, 3, 1))
    accept_opportunity(funded_state, make_business(), now, rng)
    add_offer(funded_state)
    generate_investment_dm(funded_state, rng, now)
    funded_state.messages.archive_thread("onboarding-1")
    post = Post("Ada", "You", "first post", now, handle="@ada", by_player=True,
                media=("photo.png",))
    funded_state.user_posts.insert(0, post)
    funded_state.pending_user_posts.append(post.id)
    funded_state.current_market_update = MarketUpdate("Crypto", "BTC up", (
        MarketUpdateItem("BTC", AssetType.CRYPTO, "up", new_price="65000"),))
    funded_state.goal_id = "yacht"
    funded_state.profile["bio"] = "Building things"
    funded_state.refresh_count = 4
    funded_state.refreshes_since_payday = 2
    funded_state.payday_threshold = 5
    funded_state.last_day_type = "expense"
    return funded_state


class TestRoundTrip:
    """Tests for dumps()/loads()."""

    def test_every_field_survives(self, played_state):
        restored = loads(dumps(played_state))
        for name in ("player", "goal_id", "profile", "balances", "transactions",
                     "crypto_portfolio", "equity_portfolio", "active_businesses",
                     "user_posts", "pending_user_posts", "last_recorded_month",
                     "refresh_count", "refreshes_since_payday", "payday_threshold",
                     "has_leveled_up", "startup_owned", "exit_offer_id",
                     "current_market_update", "last_day_type"):
            assert getattr(restored, name) == getattr(played_state, name), name
        assert restored.messages.all() == played_state.messages.all()

    def test_feed_not_persisted(self, played_state):
        assert played_state.feed
        assert loads(dumps(played_state)).feed == []

    def test_decimals_exact(self, played_state):
        data = encode_state(played_state)
        assert data["crypto_portfolio"][0]["quantity"] == "0.1"
        restored = decode_state(json.loads(json.dumps(data)))
        assert restored.crypto_portfolio["BTC"].quantity == Decimal("0.1")

    def test_thread_counters_rebuilt(self, played_state):
        restored = loads(dumps(played_state))
        last = played_state.messages.thread_messages("vc_partner")[-1]
        thread = restored.messages.thread("vc_partner")
        assert thread.next_sequence == last.sequence + 1

    def test_output_is_stable(self, played_state):
        assert dumps(played_state) == dumps(loads(dumps(played_state)))


class TestDefaults:
    """Tests for missing fields."""

    def test_empty_document(self):
        state = decode_state({})
        assert state.player.id == "player"
        assert state.balance(AccountType.CHECKING) == Decimal("1000")
        assert [m.id for m in state.messages][:1] == ["onboarding-1"]
        assert state.payday_threshold == 3
        assert state.refresh_count == 0

    def test_missing_threshold_rolled(self):
        state = decode_state({"refresh_count": 2}, rng=np.random.default_rng(5))
        assert 3 <= state.payday_threshold <= 6
        assert state.refresh_count == 2

    def test_startup_owned_inferred(self, played_state):
        data = encode_state(played_state)
        del data["startup_owned"]
        assert decode_state(data).startup_owned

    def test_message_without_sequence(self, now):
        data = {"messages": [
            {"id": "m1", "sender_id": "alice", "timestamp": now.isoformat(), "content": "a"},
            {"id": "m2", "sender_id": "alice", "timestamp": now.isoformat(), "content": "b"},
        ]}
        state = decode_state(data)
        assert [m.sequence for m in state.messages.thread_messages("alice")] == [1, 2]


class TestLoadCleanup:

    def test_duplicates_removed(self, now):
        message = {"sender_id": "alice", "timestamp": now.isoformat(), "content": "same"}
        data = {"messages": [dict(message, id="a"), dict(message, id="b")]}
        state = decode_state(data)
        assert len(state.messages) == 1

    def test_empty_inbox_gets_onboarding(self):
        state = decode_state({"messages": []})
        assert len(state.messages) == 4


class TestMalformed:

    def test_not_an_object(self):
        with pytest.raises(SnapshotError):
            decode_state([])

    def test_not_json(self):
        with pytest.raises(SnapshotError):
            loads("{not json")

    def test_bad_record(self):
        with pytest.raises(SnapshotError):
            decode_state({"messages": [{"id": "x", "content": "no sender"}]})

    def test_wrong_section_shapes(self):
        for data in ({"balances": ["checking"]}, {"messages": ["hello"]},
                     {"player": "Ada"}, {"crypto_portfolio": [7]},
                     {"transactions": "none"}):
            with pytest.raises(SnapshotError):
                decode_state(data)

    def test_bad_decimal(self):
        with pytest.raises(SnapshotError):
            decode_state({"balances": {"checking": "lots"}})

    def test_unknown_account(self):
        with pytest.raises(SnapshotError):
            decode_state({"balances": {"offshore": "5"}})


class TestSnapshotStore:
    """Tests for SnapshotStore."""

    def test_save_and_load(self, played_state, snapshot_path):
        store = SnapshotStore(snapshot_path)
        assert store.save(played_state)
        assert store.exists()
        loaded = store.load()
        assert loaded.balances == played_state.balances

    def test_missing_file(self, snapshot_path):
        assert SnapshotStore(snapshot_path).load() is None

    def test_corrupt_file_loads_none(self, snapshot_path, capsys):
        snapshot_path.write_text("{oops", encoding="utf-8")
        assert SnapshotStore(snapshot_path, verbose=True).load() is None
        assert "CORRUPT SNAPSHOT" in capsys.readouterr().out

    def test_clear(self, state, snapshot_path):
        store = SnapshotStore(snapshot_path)
        store.save(state)
        store.clear()
        assert not store.exists()
        store.clear()

    def test_save_creates_directories(self, state, tmp_path):
        store = SnapshotStore(tmp_path / "nested" / "dir" / "save.json")
        assert store.save(state)
        assert store.load() is not None
