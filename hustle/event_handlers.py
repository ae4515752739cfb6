"""
event_handlers.py - Day-Type Handler Functions

One plain function per day type, (state, ctx) -> None. Each is a thin adapter
onto the lifecycle, ledger and market functions; generated posts go into
ctx.posts and host prompts into ctx.notify().
"""

from __future__ import annotations
from typing import Dict, Optional

from .core import AssetType, OpportunitySize, Post, make_id
from .catalog import BANK, EXPENSE_ALERT, FAMILY, UNEXPECTED_EXPENSES
from .content import pick
from .ledger import add_child, apply_unexpected_expense, player_role
from .lifecycle import (
    check_startup_exit_opportunities, generate_investment_dm, generate_opportunity,
)
from .market import trade_tip_post
from .messaging import compose
from .scheduled_events import (
    DAY_CRYPTO_DM, DAY_CRYPTO_UPDATE, DAY_DEFAULT, DAY_EQUITY_UPDATE, DAY_EXPENSE,
    DAY_NEW_CHILD, DAY_OPPORTUNITY, DAY_PAYDAY, DAY_STARTUP_EXIT, NOTIFY_EXIT_OFFER,
    DayHandler, DayScheduler, RefreshContext, SchedulerConfig,
)
from .state import GameState


# ============================================================================
# HANDLER FUNCTIONS
# ============================================================================

def _opportunity(state: GameState, ctx: RefreshContext, size: OpportunitySize) -> None:
    post, _ = generate_opportunity(state, ctx.rng, size, ctx.now)
    if post is not None:
        ctx.posts.append(post)


def handle_opportunity(state: GameState, ctx: RefreshContext) -> None:
    """An extra opportunity of random size."""
    _opportunity(state, ctx, ctx.roll_size())


def handle_default(state: GameState, ctx: RefreshContext) -> None:
    """Fallback for the unweighted remainder: a small opportunity."""
    _opportunity(state, ctx, OpportunitySize.SMALL)


def handle_payday(state: GameState, ctx: RefreshContext) -> None:
    """
    Payday reminder post. Salary itself is paid by the payday counter, not here.
    """
    remaining = max(state.payday_threshold - state.refreshes_since_payday, 1)
    when = "today" if remaining == 1 else f"in {remaining} refreshes"
    ctx.posts.append(Post(
        author=BANK.name,
        role=BANK.role,
        handle="@quantumbank",
        content=f"💰 Payday is coming up {when}. Budget wisely!",
        timestamp=ctx.now,
        is_sponsored=True,
        id=make_id(ctx.rng),
    ))


def handle_expense(state: GameState, ctx: RefreshContext) -> None:
    """Charge a random unexpected expense to checking."""
    expense = pick(ctx.rng, UNEXPECTED_EXPENSES)
    apply_unexpected_expense(state, expense, ctx.now)
    state.messages.add(compose(
        EXPENSE_ALERT.sender_id, EXPENSE_ALERT.name, EXPENSE_ALERT.role,
        f"{expense.title}: {expense.description}\nAmount: ${expense.amount:,.0f}",
        ctx.now, rng=ctx.rng, cycle=state.refresh_count,
    ))


def handle_new_child(state: GameState, ctx: RefreshContext) -> None:
    """Add a child; child care raises monthly expenses from the next payday."""
    player = add_child(state)
    per_child = player_role(state).expenses.per_child
    state.messages.add(compose(
        FAMILY.sender_id, FAMILY.name, FAMILY.role,
        f"👶 Congratulations! Your family just grew to {player.children} "
        f"{'child' if player.children == 1 else 'children'}. "
        f"Child care adds ${per_child:,.0f} to your monthly expenses.",
        ctx.now, rng=ctx.rng, cycle=state.refresh_count,
    ))


def handle_crypto_update(state: GameState, ctx: RefreshContext) -> None:
    ctx.posts.append(trade_tip_post(ctx.rng, AssetType.CRYPTO, ctx.now))


def handle_equity_update(state: GameState, ctx: RefreshContext) -> None:
    ctx.posts.append(trade_tip_post(ctx.rng, AssetType.STOCK, ctx.now))


def handle_crypto_dm(state: GameState, ctx: RefreshContext) -> None:
    """Analyst DM with a pending investment offer."""
    generate_investment_dm(state, ctx.rng, ctx.now)


def handle_startup_exit(state: GameState, ctx: RefreshContext) -> None:
    """Look for a business ready to sell; surface at most one."""
    business = check_startup_exit_opportunities(state, ctx.now, ctx.rng)
    if business is not None:
        ctx.notify(NOTIFY_EXIT_OFFER, business)


# ============================================================================
# HANDLER REGISTRY
# ============================================================================

DEFAULT_HANDLERS: Dict[str, DayHandler] = {
    DAY_OPPORTUNITY: handle_opportunity,
    DAY_PAYDAY: handle_payday,
    DAY_EXPENSE: handle_expense,
    DAY_NEW_CHILD: handle_new_child,
    DAY_CRYPTO_UPDATE: handle_crypto_update,
    DAY_EQUITY_UPDATE: handle_equity_update,
    DAY_CRYPTO_DM: handle_crypto_dm,
    DAY_STARTUP_EXIT: handle_startup_exit,
    DAY_DEFAULT: handle_default,
}


def create_default_scheduler(config: Optional[SchedulerConfig] = None) -> DayScheduler:
    """Create a DayScheduler with every default handler registered."""
    scheduler = DayScheduler(config)
    for day_type, handler in DEFAULT_HANDLERS.items():
        scheduler.register(day_type, handler)
    return scheduler
