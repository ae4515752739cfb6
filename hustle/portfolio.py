"""
portfolio.py - Crypto and Equity Holdings

Holdings are keyed by symbol, one Asset per symbol per portfolio. Buys merge
into an existing holding with a quantity-weighted average cost:

    avg = (old_qty * old_avg + qty * price) / (old_qty + qty)

Sells never touch the cost basis; they reduce quantity, credit the proceeds to
checking, and drop the holding once the quantity reaches zero.
"""

from __future__ import annotations
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Dict, Optional, Tuple

from .core import (
    AccountType, Asset, AssetType, BusinessOpportunity, MarketUpdate, OpResult,
    QUANTITY_EPSILON, ZERO, clamp_exit_multiple, parse_amount,
)
from .ledger import credit, fund_purchase
from .lifecycle import check_startup_exit_opportunities
from .state import GameState


def portfolio_for(state: GameState, asset_type: AssetType) -> Dict[str, Asset]:
    if asset_type is AssetType.CRYPTO:
        return state.crypto_portfolio
    if asset_type is AssetType.STOCK:
        return state.equity_portfolio
    raise ValueError(f"No portfolio holds {asset_type.value} assets")


def find_asset(state: GameState, symbol: str) -> Optional[Asset]:
    """Look a symbol up across both portfolios. buy() keeps a symbol in at most one."""
    return state.crypto_portfolio.get(symbol) or state.equity_portfolio.get(symbol)


def weighted_average_price(old_qty: Decimal, old_avg: Decimal,
                           qty: Decimal, price: Decimal) -> Decimal:
    total = old_qty + qty
    if total <= 0:
        return price
    return (old_qty * old_avg + qty * price) / total


def merge_buy(existing: Optional[Asset], symbol: str, name: str, qty: Decimal,
              price: Decimal, asset_type: AssetType) -> Asset:
    """The holding after buying qty at price. Pure."""
    if existing is None:
        return Asset(symbol=symbol, name=name, quantity=qty, current_price=price,
                     purchase_price=price, asset_type=asset_type)
    return replace(
        existing,
        quantity=existing.quantity + qty,
        purchase_price=weighted_average_price(existing.quantity, existing.purchase_price,
                                              qty, price),
        current_price=price,
    )


def _trade_label(symbol: str, asset_type: AssetType) -> str:
    return f"{symbol} {'Crypto' if asset_type is AssetType.CRYPTO else 'Stock'}"


def buy(
    state: GameState,
    symbol: str,
    name: str,
    qty,
    price,
    asset_type: AssetType,
    funding_account: AccountType,
    date: datetime,
) -> OpResult:
    """
    Buy qty units at price, paid from funding_account.

    Funding and the holding update happen together: if the funding account
    cannot cover qty * price nothing changes and no asset is created.
    A symbol already held under the other asset type is rejected.
    """
    qty = parse_amount(qty)
    price = parse_amount(price)
    if qty is None or price is None or qty <= 0 or price <= 0 or not symbol:
        return OpResult.INVALID_STATE
    if asset_type not in (AssetType.CRYPTO, AssetType.STOCK):
        return OpResult.INVALID_STATE
    held = find_asset(state, symbol)
    if held is not None and held.asset_type is not asset_type:
        return OpResult.INVALID_STATE

    holdings = portfolio_for(state, asset_type)
    merged = merge_buy(holdings.get(symbol), symbol, name, qty, price, asset_type)

    result = fund_purchase(state, funding_account, qty * price,
                           f"Buy {_trade_label(symbol, asset_type)}", date)
    if result is not OpResult.APPLIED:
        return result
    holdings[symbol] = merged
    return OpResult.APPLIED


def sell(state: GameState, symbol: str, qty, date: datetime) -> Tuple[OpResult, Decimal]:
    """
    Sell up to qty units at the current price. Returns (result, proceeds).

    Selling more than is held sells the whole holding.
    """
    qty = parse_amount(qty)
    if qty is None or qty <= 0:
        return OpResult.INVALID_STATE, ZERO
    asset = find_asset(state, symbol)
    if asset is None:
        return OpResult.NOT_FOUND, ZERO

    holdings = portfolio_for(state, asset.asset_type)
    sold = min(qty, asset.quantity)
    proceeds = sold * asset.current_price
    remaining = asset.quantity - sold
    if remaining <= QUANTITY_EPSILON:
        del holdings[symbol]
    else:
        holdings[symbol] = replace(asset, quantity=remaining)

    credit(state, AccountType.CHECKING, proceeds,
           f"Sell {_trade_label(symbol, asset.asset_type)}", date)
    return OpResult.APPLIED, proceeds


# ============================================================================
# MARKET UPDATES
# ============================================================================

def apply_market_update(state: GameState, update: MarketUpdate, now: datetime,
                        rng) -> Tuple[OpResult, Optional[BusinessOpportunity]]:
    """
    Apply every item of update, then re-check exit eligibility.

    Price items overwrite current_price of the held symbol in either portfolio.
    Startup items add multiple_change to every active business with that symbol,
    clamped to the exit-multiple band. Symbols the player does not hold are
    skipped. New values are computed before anything is written.

    Returns (APPLIED, business surfaced for exit or None).
    """
    repriced: Dict[str, Asset] = {}
    remultiplied: Dict[str, BusinessOpportunity] = {}
    for item in update.items:
        if item.asset_type is AssetType.STARTUP:
            for business in state.active_businesses.values():
                if business.symbol != item.symbol:
                    continue
                current = remultiplied.get(business.id, business)
                remultiplied[business.id] = replace(
                    current,
                    current_exit_multiple=clamp_exit_multiple(
                        current.current_exit_multiple + item.multiple_change),
                )
        else:
            asset = repriced.get(item.symbol) or find_asset(state, item.symbol)
            if asset is not None:
                repriced[item.symbol] = replace(asset, current_price=item.new_price)

    for symbol, asset in repriced.items():
        portfolio_for(state, asset.asset_type)[symbol] = asset
    state.active_businesses.update(remultiplied)
    state.current_market_update = update

    return OpResult.APPLIED, check_startup_exit_opportunities(state, now, rng)


# ============================================================================
# VALUATION
# ============================================================================

def portfolio_value(state: GameState, asset_type: Optional[AssetType] = None) -> Decimal:
    if asset_type is None:
        assets = state.all_assets()
    else:
        assets = portfolio_for(state, asset_type).values()
    return sum((a.market_value for a in assets), ZERO)


def unrealized_gain(state: GameState, asset_type: Optional[AssetType] = None) -> Decimal:
    if asset_type is None:
        assets = state.all_assets()
    else:
        assets = portfolio_for(state, asset_type).values()
    return sum((a.unrealized_gain for a in assets), ZERO)
