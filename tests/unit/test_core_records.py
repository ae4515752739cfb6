"""
test_core_records.py - Unit tests for core records and enums

Tests:
- OpResult and enum helpers
- Record validation in __post_init__
- Business valuation formulas
- Deterministic id generation
"""

import pytest
from dataclasses import FrozenInstanceError
from datetime import datetime
from decimal import Decimal

import numpy as np

from hustle import (
    AccountType, Asset, AssetType, MarketUpdateItem, Message,
    OpResult, Opportunity, OpportunityStatus, OpportunityType, Post, RoleExpenses,
    Transaction, make_id,
)
from hustle.core import MAX_EXIT_MULTIPLE, MIN_EXIT_MULTIPLE, clamp_exit_multiple, to_decimal


class TestEnums:
    """Tests for enum helpers."""

    def test_ok_results(self):
        assert OpResult.APPLIED.ok
        assert OpResult.ALREADY_APPLIED.ok
        assert not OpResult.INSUFFICIENT_FUNDS.ok
        assert not OpResult.NOT_FOUND.ok

    def test_credit_accounts(self):
        assert AccountType.CREDIT_CARD.is_credit
        assert AccountType.BLACK_CARD.is_credit
        assert not AccountType.CHECKING.is_credit
        assert not AccountType.FAMILY_TRUST.is_credit

    def test_account_labels(self):
        assert AccountType.FAMILY_TRUST.label == "Family Trust"
        assert AccountType.CHECKING.label == "Checking"

    def test_terminal_statuses(self):
        assert not OpportunityStatus.NONE.is_terminal
        assert not OpportunityStatus.PENDING.is_terminal
        for status in (OpportunityStatus.ACCEPTED, OpportunityStatus.REJECTED,
                       OpportunityStatus.EXPIRED):
            assert status.is_terminal


class TestConversions:

    def test_to_decimal_float_keeps_printed_value(self):
        assert to_decimal(0.1) == Decimal("0.1")

    def test_to_decimal_passthrough(self):
        d = Decimal("1.5")
        assert to_decimal(d) is d

    def test_clamp_exit_multiple(self):
        assert clamp_exit_multiple(Decimal("0.2")) == MIN_EXIT_MULTIPLE
        assert clamp_exit_multiple(Decimal("25")) == MAX_EXIT_MULTIPLE
        assert clamp_exit_multiple(Decimal("4.5")) == Decimal("4.5")


class TestMakeId:

    def test_seeded_ids_repeat(self):
        assert make_id(np.random.default_rng(3)) == make_id(np.random.default_rng(3))

    def test_ids_differ_within_one_generator(self):
        rng = np.random.default_rng(3)
        assert make_id(rng) != make_id(rng)

    def test_unseeded_id_is_uuid(self):
        assert len(make_id()) == 36


class TestTransaction:

    def test_signed_amount(self):
        t = datetime(2025, 1, 1)
        assert Transaction(t, "Salary", 100, True).signed_amount == Decimal("100")
        assert Transaction(t, "Rent", 100, False).signed_amount == Decimal("-100")

    def test_negative_amount_rejected(self):
        with pytest.raises(ValueError, match="non-negative"):
            Transaction(datetime(2025, 1, 1), "Bad", -1, False)

    def test_frozen(self):
        tx = Transaction(datetime(2025, 1, 1), "Salary", 100, True)
        with pytest.raises(FrozenInstanceError):
            tx.amount = Decimal("5")


class TestAsset:

    def test_values(self):
        asset = Asset("BTC", "Bitcoin", "0.5", 60000, 50000, AssetType.CRYPTO)
        assert asset.market_value == Decimal("30000")
        assert asset.cost_basis == Decimal("25000")
        assert asset.unrealized_gain == Decimal("5000")

    def test_startup_asset_rejected(self):
        with pytest.raises(ValueError):
            Asset("AIHT", "Health", 1, 1, 1, AssetType.STARTUP)

    def test_empty_symbol_rejected(self):
        with pytest.raises(ValueError):
            Asset(" ", "Nothing", 1, 1, 1, AssetType.STOCK)


class TestBusinessOpportunity:

    def test_valuation(self, make_business):
        business = make_business()
        assert business.monthly_cashflow == Decimal("8000")
        assert business.monthly_dividend == Decimal("1600")
        assert business.current_exit_value == Decimal("384000")
        assert business.player_exit_proceeds == Decimal("76800")

    def test_current_multiple_defaults_to_target(self, make_business):
        assert make_business().current_exit_multiple == Decimal("4.0")

    def test_current_multiple_clamped(self, make_business):
        assert make_business(current_exit_multiple=50).current_exit_multiple == Decimal("20.0")

    def test_exit_ready_at_trigger(self, make_business):
        assert not make_business(current_exit_multiple="4.7").exit_ready
        assert make_business(current_exit_multiple="4.8").exit_ready

    def test_revenue_share_bounds(self, make_business):
        with pytest.raises(ValueError, match="revenue_share"):
            make_business(revenue_share=120)


class TestMessage:

    def test_offer_starts_pending(self, make_business):
        business = make_business()
        offer = Opportunity("x", "y", OpportunityType.STARTUP, business.setup_cost, business=business)
        message = Message("vc", "VC", "Partner", datetime(2025, 1, 1), "hi", opportunity=offer)
        assert message.status is OpportunityStatus.PENDING
        assert message.is_pending

    def test_plain_message_has_no_status(self):
        message = Message("vc", "VC", "Partner", datetime(2025, 1, 1), "hi")
        assert message.status is OpportunityStatus.NONE
        assert not message.is_pending

    def test_empty_sender_rejected(self):
        with pytest.raises(ValueError):
            Message("", "VC", "Partner", datetime(2025, 1, 1), "hi")


class TestMarketUpdateItem:

    def test_startup_item_needs_change(self):
        with pytest.raises(ValueError):
            MarketUpdateItem("AIHT", AssetType.STARTUP, "news")

    def test_price_item_needs_positive_price(self):
        with pytest.raises(ValueError):
            MarketUpdateItem("BTC", AssetType.CRYPTO, "news", new_price=0)

    def test_price_converted(self):
        item = MarketUpdateItem("BTC", AssetType.CRYPTO, "news", new_price="65000")
        assert item.new_price == Decimal("65000")


class TestRoleExpenses:

    def test_total_with_children(self):
        expenses = RoleExpenses(1000, 100, 200, 0, 300, 0, 0, 500)
        assert expenses.total() == Decimal("1600")
        assert expenses.total(children=2) == Decimal("2600")

    def test_negative_line_rejected(self):
        with pytest.raises(ValueError, match="rent"):
            RoleExpenses(-1, 0, 0, 0, 0, 0, 0, 0)


class TestPost:

    def test_media_tuple(self):
        post = Post("Ada", "You", "hello", datetime(2025, 1, 1), media=["a.png"])
        assert post.media == ("a.png",)
