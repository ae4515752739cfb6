"""
state.py - Game State

GameState is the single mutable struct of the simulation. The controller
(GameEngine) owns exactly one; ledger, portfolio, lifecycle, market and
scheduler functions receive it explicitly and mutate it in place. Nothing
else holds game state, so any GameState can be built by hand in a test.
"""

from __future__ import annotations
from copy import deepcopy
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from .core import (
    AccountType, Asset, BusinessOpportunity, MarketUpdate, Player, Post, Transaction,
    DEFAULT_STARTING_CHECKING, DEFAULT_STARTING_SAVINGS, ZERO,
)
from .catalog import DEFAULT_ROLE_ID
from .content import onboarding_messages
from .messaging import MessageStore


# Payday runs after this many refreshes (inclusive range, re-rolled each payday).
PAYDAY_THRESHOLD_MIN = 3
PAYDAY_THRESHOLD_MAX = 6


def roll_payday_threshold(rng) -> int:
    return int(rng.integers(PAYDAY_THRESHOLD_MIN, PAYDAY_THRESHOLD_MAX + 1))


def default_balances() -> Dict[AccountType, Decimal]:
    balances = {account: ZERO for account in AccountType}
    balances[AccountType.CHECKING] = DEFAULT_STARTING_CHECKING
    balances[AccountType.SAVINGS] = DEFAULT_STARTING_SAVINGS
    return balances


@dataclass
class GameState:
    """
    Everything the simulation knows.

    Attributes:
        player: Identity, role and children
        goal_id: Selected goal from the goal catalog
        profile: Free-form profile fields (bio, image reference)
        balances: Named balances; card balances are amounts owed
        transactions: Append-only log
        crypto_portfolio / equity_portfolio: Holdings keyed by symbol
        active_businesses: Accepted businesses keyed by id, in acceptance order
        messages: Thread aggregate
        feed: Posts generated by the latest refresh (not persisted)
        user_posts: Posts written by the player, newest first
        pending_user_posts: Ids of player posts not yet placed at the top of a feed
        last_recorded_month: Month of the last booked salary/expense run
        refresh_count: Number of completed refresh cycles
        refreshes_since_payday / payday_threshold: Payday cadence
        has_leveled_up: Wealth-stage promotion already granted
        startup_owned: Player has accepted at least one business
        exit_offer_id: Business currently surfaced for sale
        current_market_update: Update applied by the latest refresh
        last_day_type: Day type drawn by the latest refresh
    """
    player: Player
    goal_id: Optional[str] = None
    profile: Dict[str, str] = field(default_factory=dict)
    balances: Dict[AccountType, Decimal] = field(default_factory=default_balances)
    transactions: List[Transaction] = field(default_factory=list)
    crypto_portfolio: Dict[str, Asset] = field(default_factory=dict)
    equity_portfolio: Dict[str, Asset] = field(default_factory=dict)
    active_businesses: Dict[str, BusinessOpportunity] = field(default_factory=dict)
    messages: MessageStore = field(default_factory=MessageStore)
    feed: List[Post] = field(default_factory=list)
    user_posts: List[Post] = field(default_factory=list)
    pending_user_posts: List[str] = field(default_factory=list)
    last_recorded_month: Optional[datetime] = None
    refresh_count: int = 0
    refreshes_since_payday: int = 0
    payday_threshold: int = PAYDAY_THRESHOLD_MIN
    has_leveled_up: bool = False
    startup_owned: bool = False
    exit_offer_id: Optional[str] = None
    current_market_update: Optional[MarketUpdate] = None
    last_day_type: Optional[str] = None

    def balance(self, account: AccountType) -> Decimal:
        return self.balances.get(account, ZERO)

    def all_assets(self) -> List[Asset]:
        return list(self.crypto_portfolio.values()) + list(self.equity_portfolio.values())

    def clone(self) -> GameState:
        """Deep copy, for what-if evaluation and tests."""
        return deepcopy(self)


def default_player() -> Player:
    return Player(name="Player", handle="@player", role_id=DEFAULT_ROLE_ID, id="player")


def new_game_state(player: Optional[Player] = None, rng=None,
                   goal_id: Optional[str] = None) -> GameState:
    """
    Fresh game: default balances, onboarding messages, rolled payday threshold.
    """
    state = GameState(
        player=player or default_player(),
        goal_id=goal_id,
        messages=MessageStore(onboarding_messages()),
    )
    if rng is not None:
        state.payday_threshold = roll_payday_threshold(rng)
    return state
