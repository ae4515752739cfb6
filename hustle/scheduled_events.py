"""
scheduled_events.py - Refresh Scheduler

One refresh is one turn of the game. Each refresh, in order:
1. Expire offers still pending from earlier refreshes
2. Generate and apply exactly one market update (crypto, equity or business)
3. Generate 1-2 opportunities
4. Add 5-8 filler posts and one trending-topic post
5. Draw one day type from a fixed weighted distribution and run its handler
6. Advance the payday counter; pay when it reaches the current threshold
7. Compose the feed: generated posts shuffled, player posts on top

Payday is not part of the day-type draw. It runs on its own counter against
a threshold re-rolled in [3, 6] after each payday, so how often the player
refreshes does not decide how often they get paid.

Day types are plain strings and handlers are plain functions registered in a
dict, the same way lifecycle actions map to handlers.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

import numpy as np

from .core import (
    BusinessOpportunity, MarketUpdate, OpportunitySize, Post,
)
from .catalog import BANK, MENTOR, WEALTH_ADVISOR
from .content import (
    WEALTH_STAGE_ADVISOR, WEALTH_STAGE_MENTOR, generate_filler_posts, generate_trending_post,
)
from .ledger import is_out_of_rat_race, monthly_salary, next_payday_date, record_monthly_transactions
from .lifecycle import expire_pending_offers, generate_opportunity
from .market import generate_market_update, market_update_post
from .messaging import compose
from .portfolio import apply_market_update
from .state import GameState, PAYDAY_THRESHOLD_MAX, PAYDAY_THRESHOLD_MIN


# ============================================================================
# DAY TYPES AND NOTIFICATIONS
# ============================================================================

DAY_OPPORTUNITY = "opportunity"
DAY_PAYDAY = "payday"
DAY_EXPENSE = "expense"
DAY_NEW_CHILD = "new_child"
DAY_CRYPTO_UPDATE = "crypto_update"
DAY_EQUITY_UPDATE = "equity_update"
DAY_CRYPTO_DM = "crypto_dm"
DAY_STARTUP_EXIT = "startup_exit"
# Drawn when the uniform sample lands past the last cumulative weight.
DAY_DEFAULT = "default_small_opportunity"

# Weights sum to 0.994; the remaining 0.006 falls through to DAY_DEFAULT.
DEFAULT_DAY_WEIGHTS: Tuple[Tuple[str, float], ...] = (
    (DAY_OPPORTUNITY, 0.35),
    (DAY_PAYDAY, 0.10),
    (DAY_EXPENSE, 0.15),
    (DAY_NEW_CHILD, 0.024),
    (DAY_CRYPTO_UPDATE, 0.12),
    (DAY_EQUITY_UPDATE, 0.12),
    (DAY_CRYPTO_DM, 0.08),
    (DAY_STARTUP_EXIT, 0.05),
)

NOTIFY_EXIT_OFFER = "exit_offer"
NOTIFY_DRAFT_POST = "draft_post"
NOTIFY_INVESTMENT_PURCHASE = "investment_purchase"


@dataclass(frozen=True, slots=True)
class SchedulerConfig:
    """
    Tunables of the refresh cycle.

    Attributes:
        day_weights: (day_type, probability) pairs; must sum to at most 1
        filler_posts: Inclusive range of filler posts per refresh
        opportunities: Inclusive range of opportunities per refresh
        payday_threshold: Inclusive range the payday threshold is rolled from
        large_opportunity_probability: Chance an opportunity slot is large
    """
    day_weights: Tuple[Tuple[str, float], ...] = DEFAULT_DAY_WEIGHTS
    filler_posts: Tuple[int, int] = (5, 8)
    opportunities: Tuple[int, int] = (1, 2)
    payday_threshold: Tuple[int, int] = (PAYDAY_THRESHOLD_MIN, PAYDAY_THRESHOLD_MAX)
    large_opportunity_probability: float = 0.5

    def __post_init__(self):
        weights = [w for _, w in self.day_weights]
        if any(w < 0 for w in weights):
            raise ValueError("Day weights cannot be negative")
        if sum(weights) > 1.0 + 1e-9:
            raise ValueError(f"Day weights sum to {sum(weights)}, more than 1")
        for name in ('filler_posts', 'opportunities', 'payday_threshold'):
            low, high = getattr(self, name)
            if low < 0 or high < low:
                raise ValueError(f"{name} must be a non-negative (low, high) range")


# ============================================================================
# REFRESH CONTEXT
# ============================================================================

@dataclass
class RefreshContext:
    """Per-refresh scratch space handed to every day handler."""
    now: datetime
    rng: Any
    config: SchedulerConfig = field(default_factory=SchedulerConfig)
    posts: List[Post] = field(default_factory=list)
    notifications: List[Tuple[str, Any]] = field(default_factory=list)

    def notify(self, kind: str, payload: Any) -> None:
        self.notifications.append((kind, payload))

    def roll_size(self) -> OpportunitySize:
        if self.rng.random() < self.config.large_opportunity_probability:
            return OpportunitySize.LARGE
        return OpportunitySize.SMALL


@dataclass(frozen=True, slots=True)
class RefreshReport:
    """What one refresh did."""
    refresh_count: int
    day_type: str
    market_update: MarketUpdate
    expired_offers: int
    paid: bool
    leveled_up: bool
    exit_offer: Optional[BusinessOpportunity]  # open exit offer after the refresh
    notifications: Tuple[Tuple[str, Any], ...]


# Handler type: (state, context) -> None
DayHandler = Callable[[GameState, RefreshContext], None]


def draw_day_type(rng, weights: Tuple[Tuple[str, float], ...] = DEFAULT_DAY_WEIGHTS) -> str:
    """
    Sample one day type by cumulative weight.

    A uniform draw beyond the last cumulative weight returns DAY_DEFAULT.
    """
    names = [name for name, _ in weights]
    cumulative = np.cumsum([weight for _, weight in weights])
    index = int(np.searchsorted(cumulative, rng.random(), side="right"))
    if index >= len(names):
        return DAY_DEFAULT
    return names[index]


def _rand_between(rng, bounds: Tuple[int, int]) -> int:
    low, high = bounds
    return int(rng.integers(low, high + 1))


# ============================================================================
# PAYDAY AND WEALTH STAGE
# ============================================================================

def run_payday(state: GameState, ctx: RefreshContext) -> bool:
    """Book the month after the last recorded one and tell the player."""
    date = next_payday_date(state, ctx.now)
    if not record_monthly_transactions(state, date).ok:
        return False
    state.messages.add(compose(
        BANK.sender_id, BANK.name, BANK.role,
        f"Your monthly salary of ${monthly_salary(state):,.0f} has been deposited into your account.",
        ctx.now, rng=ctx.rng, cycle=state.refresh_count,
    ))
    return True


def check_wealth_stage(state: GameState, ctx: RefreshContext) -> bool:
    """One-time promotion the first time income covers expenses."""
    if state.has_leveled_up or not is_out_of_rat_race(state):
        return False
    state.has_leveled_up = True
    for contact, text in ((MENTOR, WEALTH_STAGE_MENTOR), (WEALTH_ADVISOR, WEALTH_STAGE_ADVISOR)):
        state.messages.add(compose(
            contact.sender_id, contact.name, contact.role, text,
            ctx.now, rng=ctx.rng, cycle=state.refresh_count,
        ))
    return True


def advance_payday(state: GameState, ctx: RefreshContext) -> Tuple[bool, bool]:
    """
    Count this refresh towards payday. Returns (paid, leveled_up).
    """
    state.refreshes_since_payday += 1
    if state.refreshes_since_payday < state.payday_threshold:
        return False, False
    paid = run_payday(state, ctx)
    state.refreshes_since_payday = 0
    state.payday_threshold = _rand_between(ctx.rng, ctx.config.payday_threshold)
    leveled_up = check_wealth_stage(state, ctx) if paid else False
    return paid, leveled_up


# ============================================================================
# FEED
# ============================================================================

def compose_feed(state: GameState, generated: List[Post], rng) -> List[Post]:
    """
    Replace the feed: queued player posts first in authoring order, then the
    generated posts shuffled. The player queue is emptied.
    """
    order = rng.permutation(len(generated))
    shuffled = [generated[int(i)] for i in order]
    by_id = {post.id: post for post in state.user_posts}
    mine = [by_id[pid] for pid in state.pending_user_posts if pid in by_id]
    state.pending_user_posts.clear()
    state.feed = mine + shuffled
    return state.feed


# ============================================================================
# SCHEDULER
# ============================================================================

class DayScheduler:
    """
    Runs refresh cycles over a GameState.

    Handlers are registered per day type; a day type with no handler is drawn
    and recorded but does nothing.
    """

    def __init__(self, config: Optional[SchedulerConfig] = None):
        self.config = config or SchedulerConfig()
        self._handlers: Dict[str, DayHandler] = {}

    def register(self, day_type: str, handler: DayHandler) -> None:
        """Register a handler function for a day type."""
        self._handlers[day_type] = handler

    def handler_for(self, day_type: str) -> Optional[DayHandler]:
        return self._handlers.get(day_type)

    def draw(self, rng) -> str:
        return draw_day_type(rng, self.config.day_weights)

    def execute(self, day_type: str, state: GameState, ctx: RefreshContext) -> bool:
        """
        Run the handler for day_type. Returns False if none is registered.

        Exceptions raised by the handler propagate unchanged.
        """
        handler = self._handlers.get(day_type)
        if handler is None:
            return False
        handler(state, ctx)
        return True

    def run_refresh(self, state: GameState, rng, now: datetime) -> RefreshReport:
        """Run one full refresh cycle. Mutates state; the caller persists it."""
        ctx = RefreshContext(now=now, rng=rng, config=self.config)
        state.refresh_count += 1

        expired = expire_pending_offers(state, now, rng)

        update = generate_market_update(state, rng)
        _, exit_offer = apply_market_update(state, update, now, rng)
        ctx.posts.append(market_update_post(update, now, rng))
        if exit_offer is not None:
            ctx.notify(NOTIFY_EXIT_OFFER, exit_offer)

        for _ in range(_rand_between(rng, self.config.opportunities)):
            post, _ = generate_opportunity(state, rng, ctx.roll_size(), now)
            if post is not None:
                ctx.posts.append(post)

        ctx.posts.extend(generate_filler_posts(
            _rand_between(rng, self.config.filler_posts), rng, now))
        ctx.posts.append(generate_trending_post(rng, now))

        day_type = self.draw(rng)
        state.last_day_type = day_type
        self.execute(day_type, state, ctx)

        paid, leveled_up = advance_payday(state, ctx)

        compose_feed(state, ctx.posts, rng)

        return RefreshReport(
            refresh_count=state.refresh_count,
            day_type=day_type,
            market_update=update,
            expired_offers=expired,
            paid=paid,
            leveled_up=leveled_up,
            exit_offer=state.active_businesses.get(state.exit_offer_id or ""),
            notifications=tuple(ctx.notifications),
        )
