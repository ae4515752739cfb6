"""
persistence.py - Snapshot Save/Load

The whole GameState is written as one JSON document after every mutating
operation and read back at startup. Decimals are stored as strings and
datetimes as ISO-8601 so a round trip is exact.

Schema drift is tolerated: every field except record identity is optional and
falls back to a documented default (a missing payday threshold is re-rolled in
[3, 6]). On load, messages repeating an earlier (sender_id, timestamp, content)
are dropped, and an inbox left empty gets the onboarding script.

SnapshotStore fails soft: a snapshot that cannot be decoded loads as None (the
caller starts a fresh game); a state that cannot be written is skipped and the
in-memory state stays authoritative.
"""

from __future__ import annotations
from datetime import datetime
from decimal import Decimal, InvalidOperation
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .core import (
    AccountType, Asset, AssetType, BusinessOpportunity, MarketUpdate, MarketUpdateItem,
    Message, Opportunity, OpportunityStatus, OpportunityType, Player, Post, SnapshotError,
    Transaction, make_id,
)
from .content import onboarding_messages
from .messaging import MessageStore
from .state import GameState, default_balances, default_player, roll_payday_threshold, PAYDAY_THRESHOLD_MIN


SNAPSHOT_VERSION = 1


# ============================================================================
# ENCODING
# ============================================================================

def _dec(value: Optional[Decimal]) -> Optional[str]:
    return None if value is None else str(value)


def _dt(value: Optional[datetime]) -> Optional[str]:
    return None if value is None else value.isoformat()


def encode_asset(asset: Asset) -> Dict[str, Any]:
    return {
        "symbol": asset.symbol,
        "name": asset.name,
        "quantity": _dec(asset.quantity),
        "current_price": _dec(asset.current_price),
        "purchase_price": _dec(asset.purchase_price),
        "asset_type": asset.asset_type.value,
    }


def encode_business(business: BusinessOpportunity) -> Dict[str, Any]:
    return {
        "id": business.id,
        "title": business.title,
        "symbol": business.symbol,
        "description": business.description,
        "opportunity_type": business.opportunity_type.value,
        "monthly_revenue": _dec(business.monthly_revenue),
        "monthly_expenses": _dec(business.monthly_expenses),
        "setup_cost": _dec(business.setup_cost),
        "potential_sale_multiple": _dec(business.potential_sale_multiple),
        "revenue_share": _dec(business.revenue_share),
        "current_exit_multiple": _dec(business.current_exit_multiple),
    }


def encode_opportunity(opportunity: Opportunity) -> Dict[str, Any]:
    return {
        "id": opportunity.id,
        "title": opportunity.title,
        "description": opportunity.description,
        "kind": opportunity.kind.value,
        "required_investment": _dec(opportunity.required_investment),
        "business": encode_business(opportunity.business) if opportunity.business else None,
        "asset": encode_asset(opportunity.asset) if opportunity.asset else None,
    }


def encode_message(message: Message) -> Dict[str, Any]:
    return {
        "id": message.id,
        "sender_id": message.sender_id,
        "sender_name": message.sender_name,
        "sender_role": message.sender_role,
        "timestamp": _dt(message.timestamp),
        "content": message.content,
        "opportunity": encode_opportunity(message.opportunity) if message.opportunity else None,
        "status": message.status.value,
        "is_read": message.is_read,
        "is_archived": message.is_archived,
        "from_player": message.from_player,
        "sequence": message.sequence,
        "cycle": message.cycle,
    }


def encode_market_update(update: MarketUpdate) -> Dict[str, Any]:
    return {
        "id": update.id,
        "title": update.title,
        "description": update.description,
        "items": [
            {
                "symbol": item.symbol,
                "asset_type": item.asset_type.value,
                "message": item.message,
                "new_price": _dec(item.new_price),
                "multiple_change": _dec(item.multiple_change),
            }
            for item in update.items
        ],
    }


def encode_post(post: Post) -> Dict[str, Any]:
    return {
        "id": post.id,
        "author": post.author,
        "role": post.role,
        "handle": post.handle,
        "content": post.content,
        "timestamp": _dt(post.timestamp),
        "is_sponsored": post.is_sponsored,
        "by_player": post.by_player,
        "media": list(post.media),
        "linked_opportunity": (encode_business(post.linked_opportunity)
                               if post.linked_opportunity else None),
        "linked_asset": encode_asset(post.linked_asset) if post.linked_asset else None,
        "linked_market_update": (encode_market_update(post.linked_market_update)
                                 if post.linked_market_update else None),
    }


def encode_state(state: GameState) -> Dict[str, Any]:
    """Everything except the ephemeral feed."""
    return {
        "version": SNAPSHOT_VERSION,
        "player": {
            "id": state.player.id,
            "name": state.player.name,
            "handle": state.player.handle,
            "role_id": state.player.role_id,
            "children": state.player.children,
        },
        "goal_id": state.goal_id,
        "profile": dict(state.profile),
        "balances": {account.value: _dec(amount) for account, amount in state.balances.items()},
        "transactions": [
            {
                "date": _dt(tx.date),
                "description": tx.description,
                "amount": _dec(tx.amount),
                "is_income": tx.is_income,
                "account": tx.account.value,
            }
            for tx in state.transactions
        ],
        "crypto_portfolio": [encode_asset(a) for a in state.crypto_portfolio.values()],
        "equity_portfolio": [encode_asset(a) for a in state.equity_portfolio.values()],
        "active_businesses": [encode_business(b) for b in state.active_businesses.values()],
        "messages": [encode_message(m) for m in state.messages],
        "user_posts": [encode_post(p) for p in state.user_posts],
        "pending_user_posts": list(state.pending_user_posts),
        "last_recorded_month": _dt(state.last_recorded_month),
        "refresh_count": state.refresh_count,
        "refreshes_since_payday": state.refreshes_since_payday,
        "payday_threshold": state.payday_threshold,
        "has_leveled_up": state.has_leveled_up,
        "startup_owned": state.startup_owned,
        "exit_offer_id": state.exit_offer_id,
        "current_market_update": (encode_market_update(state.current_market_update)
                                  if state.current_market_update else None),
        "last_day_type": state.last_day_type,
    }


def dumps(state: GameState) -> str:
    return json.dumps(encode_state(state), indent=2, sort_keys=True, ensure_ascii=False)


# ============================================================================
# DECODING
# ============================================================================

def _opt_dec(value: Any) -> Optional[Decimal]:
    return None if value is None else Decimal(str(value))


def _opt_dt(value: Any) -> Optional[datetime]:
    return None if value is None else datetime.fromisoformat(value)


def decode_asset(data: Dict[str, Any]) -> Asset:
    return Asset(
        symbol=data["symbol"],
        name=data.get("name", data["symbol"]),
        quantity=Decimal(str(data.get("quantity", "0"))),
        current_price=Decimal(str(data.get("current_price", "0"))),
        purchase_price=Decimal(str(data.get("purchase_price", data.get("current_price", "0")))),
        asset_type=AssetType(data.get("asset_type", AssetType.CRYPTO.value)),
    )


def decode_business(data: Dict[str, Any]) -> BusinessOpportunity:
    return BusinessOpportunity(
        id=data["id"],
        title=data.get("title", ""),
        symbol=data.get("symbol", ""),
        description=data.get("description", ""),
        opportunity_type=OpportunityType(data.get("opportunity_type", OpportunityType.STARTUP.value)),
        monthly_revenue=Decimal(str(data.get("monthly_revenue", "0"))),
        monthly_expenses=Decimal(str(data.get("monthly_expenses", "0"))),
        setup_cost=Decimal(str(data.get("setup_cost", "0"))),
        potential_sale_multiple=Decimal(str(data.get("potential_sale_multiple", "1"))),
        revenue_share=Decimal(str(data.get("revenue_share", "0"))),
        current_exit_multiple=_opt_dec(data.get("current_exit_multiple")),
    )


def decode_opportunity(data: Dict[str, Any]) -> Opportunity:
    return Opportunity(
        id=data["id"],
        title=data.get("title", ""),
        description=data.get("description", ""),
        kind=OpportunityType(data.get("kind", OpportunityType.STARTUP.value)),
        required_investment=Decimal(str(data.get("required_investment", "0"))),
        business=decode_business(data["business"]) if data.get("business") else None,
        asset=decode_asset(data["asset"]) if data.get("asset") else None,
    )


def decode_message(data: Dict[str, Any], rng=None) -> Message:
    return Message(
        id=data.get("id") or make_id(rng),
        sender_id=data["sender_id"],
        sender_name=data.get("sender_name", data["sender_id"]),
        sender_role=data.get("sender_role", ""),
        timestamp=datetime.fromisoformat(data["timestamp"]),
        content=data["content"],
        opportunity=decode_opportunity(data["opportunity"]) if data.get("opportunity") else None,
        status=OpportunityStatus(data.get("status", OpportunityStatus.NONE.value)),
        is_read=data.get("is_read", False),
        is_archived=data.get("is_archived", False),
        from_player=data.get("from_player", False),
        sequence=data.get("sequence", 0),
        cycle=data.get("cycle", 0),
    )


def decode_market_update(data: Dict[str, Any]) -> MarketUpdate:
    return MarketUpdate(
        id=data["id"],
        title=data.get("title", "Market Update"),
        description=data.get("description", ""),
        items=tuple(
            MarketUpdateItem(
                symbol=item["symbol"],
                asset_type=AssetType(item["asset_type"]),
                message=item.get("message", ""),
                new_price=_opt_dec(item.get("new_price")),
                multiple_change=_opt_dec(item.get("multiple_change")),
            )
            for item in data.get("items", [])
        ),
    )


def decode_post(data: Dict[str, Any]) -> Post:
    linked_update = data.get("linked_market_update")
    return Post(
        id=data["id"],
        author=data.get("author", ""),
        role=data.get("role", ""),
        handle=data.get("handle", ""),
        content=data.get("content", ""),
        timestamp=datetime.fromisoformat(data["timestamp"]),
        is_sponsored=data.get("is_sponsored", False),
        by_player=data.get("by_player", False),
        media=tuple(data.get("media", [])),
        linked_opportunity=(decode_business(data["linked_opportunity"])
                            if data.get("linked_opportunity") else None),
        linked_asset=decode_asset(data["linked_asset"]) if data.get("linked_asset") else None,
        linked_market_update=decode_market_update(linked_update) if linked_update else None,
    )


def _decode_player(data: Optional[Dict[str, Any]]) -> Player:
    if not data:
        return default_player()
    fallback = default_player()
    return Player(
        id=data.get("id", fallback.id),
        name=data.get("name", fallback.name),
        handle=data.get("handle", fallback.handle),
        role_id=data.get("role_id", fallback.role_id),
        children=data.get("children", 0),
    )


def _decode_messages(raw: List[Dict[str, Any]], rng) -> MessageStore:
    store = MessageStore(decode_message(m, rng) for m in raw)
    store.remove_duplicates()
    if len(store) == 0:
        store = MessageStore(onboarding_messages())
    return store


def decode_state(data: Dict[str, Any], rng=None) -> GameState:
    """
    Build a GameState from a decoded snapshot.

    Raises:
        SnapshotError: the document is not a snapshot or a record is malformed.
    """
    if not isinstance(data, dict):
        raise SnapshotError(f"Snapshot must be a JSON object, got {type(data).__name__}")
    try:
        balances = default_balances()
        for key, amount in (data.get("balances") or {}).items():
            balances[AccountType(key)] = Decimal(str(amount))

        threshold = data.get("payday_threshold")
        if threshold is None:
            threshold = roll_payday_threshold(rng) if rng is not None else PAYDAY_THRESHOLD_MIN

        businesses = [decode_business(b) for b in data.get("active_businesses", [])]
        update = data.get("current_market_update")

        return GameState(
            player=_decode_player(data.get("player")),
            goal_id=data.get("goal_id"),
            profile=dict(data.get("profile") or {}),
            balances=balances,
            transactions=[
                Transaction(
                    date=datetime.fromisoformat(tx["date"]),
                    description=tx.get("description", ""),
                    amount=Decimal(str(tx["amount"])),
                    is_income=tx.get("is_income", False),
                    account=AccountType(tx.get("account", AccountType.CHECKING.value)),
                )
                for tx in data.get("transactions", [])
            ],
            crypto_portfolio={a.symbol: a for a in map(decode_asset, data.get("crypto_portfolio", []))},
            equity_portfolio={a.symbol: a for a in map(decode_asset, data.get("equity_portfolio", []))},
            active_businesses={b.id: b for b in businesses},
            messages=_decode_messages(data.get("messages", []), rng),
            user_posts=[decode_post(p) for p in data.get("user_posts", [])],
            pending_user_posts=list(data.get("pending_user_posts", [])),
            last_recorded_month=_opt_dt(data.get("last_recorded_month")),
            refresh_count=data.get("refresh_count", 0),
            refreshes_since_payday=data.get("refreshes_since_payday", 0),
            payday_threshold=threshold,
            has_leveled_up=data.get("has_leveled_up", False),
            startup_owned=data.get("startup_owned", bool(businesses)),
            exit_offer_id=data.get("exit_offer_id"),
            current_market_update=decode_market_update(update) if update else None,
            last_day_type=data.get("last_day_type"),
        )
    except (KeyError, ValueError, TypeError, AttributeError, InvalidOperation) as exc:
        raise SnapshotError(f"Malformed snapshot: {exc!r}") from exc


def loads(text: str, rng=None) -> GameState:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise SnapshotError(f"Snapshot is not valid JSON: {exc}") from exc
    return decode_state(data, rng)


# ============================================================================
# STORE
# ============================================================================

class SnapshotStore:
    """
    One snapshot file on disk.

    save() writes synchronously on every call (no dirty tracking). Both save()
    and load() report failures through their return value, never by raising.
    """

    def __init__(self, path: Union[str, Path], verbose: bool = False):
        self.path = Path(path)
        self.verbose = verbose

    def exists(self) -> bool:
        return self.path.exists()

    def save(self, state: GameState) -> bool:
        try:
            text = dumps(state)
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp.write_text(text, encoding="utf-8")
            tmp.replace(self.path)
        except (TypeError, ValueError, OSError) as exc:
            if self.verbose:
                print(f"⚠️  SAVE SKIPPED: {exc}")
            return False
        return True

    def load(self, rng=None) -> Optional[GameState]:
        """The stored game, or None when there is none or it cannot be decoded."""
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            if self.verbose:
                print(f"⚠️  LOAD FAILED: {exc}")
            return None
        try:
            return loads(text, rng)
        except SnapshotError as exc:
            if self.verbose:
                print(f"⚠️  CORRUPT SNAPSHOT, starting fresh: {exc}")
            return None

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
