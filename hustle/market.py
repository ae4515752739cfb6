"""
market.py - Market News Source

Builds MarketUpdate batches from the news catalog. Every refresh applies
exactly one of them (crypto, equity or business); the crypto/equity
"update" day types additionally post a trade tip quoting a catalog price
without moving the player's holdings.
"""

from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from typing import Optional, Tuple

from .core import Asset, AssetType, MarketUpdate, MarketUpdateItem, Post, make_id
from .catalog import (
    CRYPTO_OFFERINGS, CRYPTO_PRICE_UPDATES, MARKET_WATCH, STARTUP_MULTIPLE_UPDATES,
    STOCK_OFFERINGS, STOCK_PRICE_UPDATES,
)
from .content import fill, pick
from .state import GameState


MARKET_CRYPTO = "crypto"
MARKET_EQUITY = "equity"
MARKET_BUSINESS = "business"


def choose_market_kind(state: GameState, rng) -> str:
    """Uniform over crypto/equity, plus business once the player owns one."""
    kinds: Tuple[str, ...] = (MARKET_CRYPTO, MARKET_EQUITY)
    if state.active_businesses:
        kinds += (MARKET_BUSINESS,)
    return pick(rng, kinds)


def _price_item(entry: Tuple[str, str, str], asset_type: AssetType) -> MarketUpdateItem:
    symbol, price, headline = entry
    return MarketUpdateItem(symbol=symbol, asset_type=asset_type, message=headline,
                            new_price=Decimal(price))


def price_update(rng, asset_type: AssetType) -> MarketUpdate:
    catalog = CRYPTO_PRICE_UPDATES if asset_type is AssetType.CRYPTO else STOCK_PRICE_UPDATES
    item = _price_item(pick(rng, catalog), asset_type)
    title = "Crypto Market Update" if asset_type is AssetType.CRYPTO else "Stock Market Update"
    return MarketUpdate(title=title, description=item.message, items=(item,), id=make_id(rng))


def business_update(state: GameState, rng) -> Optional[MarketUpdate]:
    """Move the exit multiple of one random active business."""
    if not state.active_businesses:
        return None
    business = pick(rng, list(state.active_businesses.values()))
    change, headline = pick(rng, STARTUP_MULTIPLE_UPDATES)
    item = MarketUpdateItem(
        symbol=business.symbol,
        asset_type=AssetType.STARTUP,
        message=fill(headline, title=business.title),
        multiple_change=Decimal(change),
    )
    return MarketUpdate(title="Startup Market Update", description=item.message,
                        items=(item,), id=make_id(rng))


def generate_market_update(state: GameState, rng, kind: Optional[str] = None) -> MarketUpdate:
    """One update of the given kind (drawn when omitted). Business falls back to crypto."""
    kind = kind or choose_market_kind(state, rng)
    if kind == MARKET_BUSINESS:
        update = business_update(state, rng)
        if update is not None:
            return update
        kind = MARKET_CRYPTO
    asset_type = AssetType.CRYPTO if kind == MARKET_CRYPTO else AssetType.STOCK
    return price_update(rng, asset_type)


def market_update_post(update: MarketUpdate, now: datetime, rng) -> Post:
    return Post(
        author=MARKET_WATCH.name,
        role=MARKET_WATCH.role,
        handle="@marketwatch",
        content=update.description,
        timestamp=now,
        is_sponsored=True,
        linked_market_update=update,
        id=make_id(rng),
    )


def listing_for(symbol: str) -> Optional[Asset]:
    for asset in STOCK_OFFERINGS + CRYPTO_OFFERINGS:
        if asset.symbol == symbol:
            return asset
    return None


def trade_tip_post(rng, asset_type: AssetType, now: datetime) -> Post:
    """
    A tradeable quote: catalog news for a symbol, linked to the asset at the quoted price.

    The quote is informational; it does not reprice holdings.
    """
    update = price_update(rng, asset_type)
    item = update.items[0]
    listing = listing_for(item.symbol)
    name = listing.name if listing is not None else item.symbol
    quote = Asset(symbol=item.symbol, name=name, quantity=Decimal("0"),
                  current_price=item.new_price, purchase_price=item.new_price,
                  asset_type=asset_type)
    return Post(
        author=MARKET_WATCH.name,
        role=MARKET_WATCH.role,
        handle="@marketwatch",
        content=f"📊 {item.message}. Trade {item.symbol} now.",
        timestamp=now,
        is_sponsored=True,
        linked_asset=quote,
        linked_market_update=update,
        id=make_id(rng),
    )
