"""
Conservation Conformance Tests

INVARIANT: Holdings and cash are accounted for exactly.

    ∀ buys B, sells S on one symbol:
        quantity = Σ qty(B) − Σ qty(S)
        purchase_price = Σ qty·price(B) / Σ qty(B)     (while nothing is sold)

    ∀ transfer T between cash accounts:
        Σ cash balances before = Σ cash balances after
"""

from hypothesis import given, settings
from hypothesis import strategies as st
from decimal import Decimal
from datetime import datetime

import numpy as np

from hustle import AccountType, AssetType, OpResult, new_game_state
from hustle.ledger import transfer
from hustle.portfolio import buy, sell


NOW = datetime(2025, 3, 15, 12, 0, 0)
CASH = (AccountType.CHECKING, AccountType.SAVINGS, AccountType.FAMILY_TRUST)

buy_lists = st.lists(
    st.tuples(st.integers(min_value=1, max_value=100),
              st.integers(min_value=1, max_value=100000)),
    min_size=1, max_size=10,
)


def _rich_state():
    state = new_game_state(rng=np.random.default_rng(0))
    state.balances[AccountType.CHECKING] = Decimal("1000000000000")
    return state


class TestCostBasis:
    """Property-based weighted-average tests."""

    @given(buy_lists)
    @settings(max_examples=50)
    def test_weighted_average_over_buys(self, buys):
        """
        PROPERTY: Purchase price equals total cost over total quantity.
        """
        state = _rich_state()
        for qty, price in buys:
            assert buy(state, "ETH", "Ethereum", qty, price, AssetType.CRYPTO,
                       AccountType.CHECKING, NOW) is OpResult.APPLIED

        holding = state.crypto_portfolio["ETH"]
        total_qty = sum(Decimal(q) for q, _ in buys)
        total_cost = sum(Decimal(q) * Decimal(p) for q, p in buys)
        assert holding.quantity == total_qty
        assert abs(holding.purchase_price - total_cost / total_qty) < Decimal("1e-30")
        assert holding.current_price == Decimal(buys[-1][1])

    @given(buy_lists, st.lists(st.integers(min_value=1, max_value=150), max_size=10))
    @settings(max_examples=50)
    def test_quantity_is_buys_minus_sells(self, buys, sells):
        """
        PROPERTY: Quantity = bought − sold, with sells capped at the holding.
        """
        state = _rich_state()
        for qty, price in buys:
            buy(state, "AAPL", "Apple", qty, price, AssetType.STOCK, AccountType.CHECKING, NOW)

        held = sum(Decimal(q) for q, _ in buys)
        for qty in sells:
            result, proceeds = sell(state, "AAPL", qty, NOW)
            if held == 0:
                assert result is OpResult.NOT_FOUND
                continue
            sold = min(Decimal(qty), held)
            held -= sold
            assert result is OpResult.APPLIED
            assert proceeds == sold * Decimal(buys[-1][1])

        if held == 0:
            assert "AAPL" not in state.equity_portfolio
        else:
            assert state.equity_portfolio["AAPL"].quantity == held

    @given(st.integers(min_value=1, max_value=100), st.integers(min_value=1, max_value=100000))
    @settings(max_examples=50)
    def test_buy_debits_exact_cost(self, qty, price):
        state = _rich_state()
        before = state.balance(AccountType.CHECKING)
        buy(state, "SOL", "Solana", qty, price, AssetType.CRYPTO, AccountType.CHECKING, NOW)
        assert before - state.balance(AccountType.CHECKING) == Decimal(qty) * Decimal(price)


class TestCashConservation:

    @given(st.sampled_from(CASH), st.sampled_from(CASH),
           st.decimals(min_value=Decimal("0.01"), max_value=Decimal("5000"), places=2))
    @settings(max_examples=50)
    def test_transfer_preserves_total_cash(self, source, dest, amount):
        """
        PROPERTY: A transfer between cash accounts never creates or destroys money.
        """
        state = new_game_state(rng=np.random.default_rng(0))
        for account in CASH:
            state.balances[account] = Decimal("2500")
        before = sum(state.balance(a) for a in CASH)

        transfer(state, source, dest, amount, NOW)
        assert sum(state.balance(a) for a in CASH) == before
