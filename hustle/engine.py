"""
engine.py - Game Engine

GameEngine is the one controller a host (UI, CLI, test) talks to. It owns the
GameState, the random generator, the refresh scheduler and the snapshot store,
and exposes every player action as a method returning an OpResult.

Execution model:
1. Validate and apply the action through the pure-function modules
2. Save the snapshot after every mutating action (and after every refresh)
3. Dispatch host notifications (exit offers, draft posts, investment buys)

Nothing here raises on a rejected action; rejections are reported through
the result value and, with verbose=True, printed.
"""

from __future__ import annotations
from collections import defaultdict
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Sequence

import numpy as np

from .core import (
    AccountType, AssetType, BusinessOpportunity, OpResult, OpportunityType, Player, Post,
    make_id, parse_amount,
)
from .catalog import DEFAULT_ROLE_ID, get_goal, get_role
from .content import EXIT_BRAG_TEMPLATES, fill, pick, spin
from .ledger import (
    fund_purchase, goal_progress, is_out_of_rat_race, monthly_cashflow, monthly_expenses,
    monthly_income, net_worth, total_passive_income,
)
from . import ledger, lifecycle, portfolio
from .event_handlers import create_default_scheduler
from .market import listing_for
from .persistence import SnapshotStore
from .scheduled_events import (
    NOTIFY_DRAFT_POST, NOTIFY_INVESTMENT_PURCHASE,
    RefreshReport, SchedulerConfig,
)
from .state import GameState, new_game_state


Listener = Callable[[Any], None]


def _amount_label(amount) -> str:
    parsed = parse_amount(amount)
    return f"${parsed:,.2f}" if parsed is not None else repr(amount)


class GameEngine:
    """
    Controller over one game.

    Example:
        engine = GameEngine(store=SnapshotStore("save.json"), seed=7)
        engine.new_game("Ada", "@ada", role_id="junior_developer")
        engine.refresh()
        for message in engine.state.messages.pending_messages():
            engine.respond_to_opportunity(message.id, accepted=True)
    """

    def __init__(
        self,
        store: Optional[SnapshotStore] = None,
        seed: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None,
        verbose: bool = False,
        config: Optional[SchedulerConfig] = None,
    ):
        """
        Create an engine, resuming the stored game when there is one.

        Args:
            store: Snapshot store; None keeps the game in memory only
            seed: Seed for numpy's default_rng (same seed, same game)
            clock: Zero-argument callable returning "now" (default: datetime.now)
            verbose: Print one status line per action
            config: Scheduler tunables
        """
        self.store = store
        self.rng = np.random.default_rng(seed)
        self.clock = clock or datetime.now
        self.verbose = verbose
        self.scheduler = create_default_scheduler(config)
        self.last_report: Optional[RefreshReport] = None
        self._listeners: Dict[str, List[Listener]] = defaultdict(list)

        loaded = store.load(self.rng) if store is not None else None
        self.state: GameState = loaded or new_game_state(rng=self.rng)

    # ========================================================================
    # NOTIFICATIONS AND BOOKKEEPING
    # ========================================================================

    def subscribe(self, kind: str, callback: Listener) -> Callable[[], None]:
        """
        Register callback for a notification kind. Returns an unsubscribe function.

        Kinds: "exit_offer" (BusinessOpportunity), "draft_post" (str),
        "investment_purchase" (Asset).
        """
        self._listeners[kind].append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners[kind]:
                self._listeners[kind].remove(callback)

        return unsubscribe

    def _notify(self, kind: str, payload: Any) -> None:
        for callback in list(self._listeners.get(kind, ())):
            callback(payload)

    def save(self) -> bool:
        if self.store is None:
            return False
        return self.store.save(self.state)

    def _finish(self, action: str, result: OpResult, detail: str = "") -> OpResult:
        """Persist after a successful action and report the outcome."""
        if result is OpResult.APPLIED:
            self.save()
        if self.verbose:
            suffix = f" {detail}" if detail else ""
            if result is OpResult.APPLIED:
                print(f"✓ APPLIED: {action}{suffix}")
            elif result is OpResult.ALREADY_APPLIED:
                print(f"⚠️  ALREADY_APPLIED: {action}{suffix}")
            else:
                print(f"✗ REJECTED: {action}: {result.value}{suffix}")
        return result

    # ========================================================================
    # SETUP
    # ========================================================================

    def new_game(self, name: str, handle: str, role_id: str = DEFAULT_ROLE_ID,
                 goal_id: Optional[str] = None) -> OpResult:
        """Discard the current game and start over with a new player."""
        if get_role(role_id) is None:
            return self._finish("new_game", OpResult.NOT_FOUND, role_id)
        if goal_id is not None and get_goal(goal_id) is None:
            return self._finish("new_game", OpResult.NOT_FOUND, goal_id)
        try:
            player = Player(name=name, handle=handle, role_id=role_id, id=make_id(self.rng))
        except ValueError as exc:
            return self._finish("new_game", OpResult.INVALID_STATE, str(exc))
        self.state = new_game_state(player=player, rng=self.rng, goal_id=goal_id)
        self.last_report = None
        return self._finish("new_game", OpResult.APPLIED, f"{name} as {role_id}")

    def select_role(self, role_id: str) -> OpResult:
        if get_role(role_id) is None:
            return self._finish("select_role", OpResult.NOT_FOUND, role_id)
        if self.state.player.role_id == role_id:
            return self._finish("select_role", OpResult.ALREADY_APPLIED, role_id)
        self.state.player = replace(self.state.player, role_id=role_id)
        return self._finish("select_role", OpResult.APPLIED, role_id)

    def select_goal(self, goal_id: str) -> OpResult:
        if get_goal(goal_id) is None:
            return self._finish("select_goal", OpResult.NOT_FOUND, goal_id)
        if self.state.goal_id == goal_id:
            return self._finish("select_goal", OpResult.ALREADY_APPLIED, goal_id)
        self.state.goal_id = goal_id
        return self._finish("select_goal", OpResult.APPLIED, goal_id)

    def update_profile(self, name: Optional[str] = None, handle: Optional[str] = None,
                       **fields: str) -> OpResult:
        """Change display name/handle and free-form profile fields (bio, image)."""
        changes = {}
        if name is not None:
            changes["name"] = name
        if handle is not None:
            changes["handle"] = handle
        try:
            player = replace(self.state.player, **changes)
        except ValueError as exc:
            return self._finish("update_profile", OpResult.INVALID_STATE, str(exc))
        self.state.player = player
        self.state.profile.update(fields)
        return self._finish("update_profile", OpResult.APPLIED)

    # ========================================================================
    # REFRESH
    # ========================================================================

    def refresh(self) -> OpResult:
        """
        Run one refresh cycle, save, then dispatch its notifications.

        The full RefreshReport is kept in self.last_report.
        """
        report = self.scheduler.run_refresh(self.state, self.rng, self.clock())
        self.last_report = report
        self._finish("refresh", OpResult.APPLIED,
                     f"#{report.refresh_count} day={report.day_type}")
        for kind, payload in report.notifications:
            self._notify(kind, payload)
        return OpResult.APPLIED

    # ========================================================================
    # OPPORTUNITIES AND BUSINESSES
    # ========================================================================

    def respond_to_opportunity(self, message_id: str, accepted: bool,
                               funding_account: AccountType = AccountType.CHECKING) -> OpResult:
        """
        Accept or reject the offer in a pending message.

        Accepting a business offer first pays its setup cost from funding_account;
        when that fails the offer stays pending. Accepting an investment tip
        resolves the message and asks the host to run the purchase flow.
        """
        action = "respond_to_opportunity"
        message = self.state.messages.get(message_id)
        if message is None:
            return self._finish(action, OpResult.NOT_FOUND, message_id)
        if not message.is_pending:
            return self._finish(action, OpResult.INVALID_STATE, message.status.value)

        now = self.clock()
        opportunity = message.opportunity
        business = opportunity.business if accepted else None
        if business is not None:
            paid = fund_purchase(self.state, funding_account, opportunity.required_investment,
                                 f"Investment in {business.title}", now)
            if paid is not OpResult.APPLIED:
                return self._finish(action, paid, business.title)

        result = lifecycle.handle_opportunity_response(self.state, message_id, accepted, now, self.rng)
        if business is not None:
            lifecycle.accept_opportunity(self.state, business, now, self.rng)
        self._finish(action, result,
                     f"{opportunity.title} {'accepted' if accepted else 'rejected'}")

        if accepted and opportunity.kind is OpportunityType.INVESTMENT and opportunity.asset:
            self._notify(NOTIFY_INVESTMENT_PURCHASE, opportunity.asset)
        return result

    def sell_business(self, business_id: str) -> OpResult:
        """Sell the stake at the current exit multiple and suggest a brag post."""
        business = self.state.active_businesses.get(business_id)
        result, proceeds = lifecycle.sell_business(self.state, business_id, self.clock(), self.rng)
        if result is not OpResult.APPLIED:
            return self._finish("sell_business", result, business_id)
        self._finish("sell_business", result, f"{business.title} for ${proceeds:,.0f}")
        draft = spin(fill(pick(self.rng, EXIT_BRAG_TEMPLATES), company=business.title,
                          multiple=f"{business.current_exit_multiple:.1f}"), self.rng)
        self._notify(NOTIFY_DRAFT_POST, draft)
        return result

    def dismiss_exit_offer(self) -> OpResult:
        return self._finish("dismiss_exit_offer", lifecycle.dismiss_exit_offer(self.state))

    # ========================================================================
    # TRADING
    # ========================================================================

    def buy(self, symbol: str, qty, price=None, asset_type: Optional[AssetType] = None,
            funding_account: AccountType = AccountType.CHECKING,
            name: Optional[str] = None) -> OpResult:
        """
        Buy qty units of symbol.

        price, asset_type and name default to the held asset, whose price follows
        market updates, and to the catalog listing for symbols not yet held.
        """
        quote = portfolio.find_asset(self.state, symbol) or listing_for(symbol)
        if quote is None and (price is None or asset_type is None):
            return self._finish("buy", OpResult.NOT_FOUND, symbol)
        price = quote.current_price if price is None else price
        asset_type = quote.asset_type if asset_type is None else asset_type
        name = name or (quote.name if quote is not None else symbol)
        result = portfolio.buy(self.state, symbol, name, qty, price, asset_type,
                               funding_account, self.clock())
        return self._finish("buy", result, f"{qty} {symbol} @ {price}")

    def sell(self, symbol: str, qty) -> OpResult:
        result, proceeds = portfolio.sell(self.state, symbol, qty, self.clock())
        return self._finish("sell", result, f"{qty} {symbol} for ${proceeds:,.2f}")

    # ========================================================================
    # MONEY MOVEMENT
    # ========================================================================

    def transfer(self, source: AccountType, dest: AccountType, amount) -> OpResult:
        result = ledger.transfer(self.state, source, dest, amount, self.clock())
        return self._finish("transfer", result, _amount_label(amount))

    def pay_credit(self, amount, card: AccountType) -> OpResult:
        result = ledger.pay_credit(self.state, amount, card, self.clock())
        return self._finish("pay_credit", result, _amount_label(amount))

    def use_credit(self, amount, card: AccountType) -> OpResult:
        result = ledger.use_credit(self.state, amount, card, self.clock())
        return self._finish("use_credit", result, _amount_label(amount))

    # ========================================================================
    # SOCIAL
    # ========================================================================

    def add_post(self, content: str, media: Sequence[str] = ()) -> OpResult:
        """Write a player post; it tops the feed on the next refresh."""
        if not content or not content.strip():
            return self._finish("add_post", OpResult.INVALID_STATE, "empty post")
        post = Post(
            author=self.state.player.name,
            role="You",
            handle=self.state.player.handle,
            content=content,
            timestamp=self.clock(),
            by_player=True,
            media=tuple(media),
            id=make_id(self.rng),
        )
        self.state.user_posts.insert(0, post)
        self.state.pending_user_posts.append(post.id)
        return self._finish("add_post", OpResult.APPLIED)

    def archive_message(self, message_id: str) -> OpResult:
        """Toggle the archived flag of the whole thread containing message_id."""
        return self._finish("archive_message", self.state.messages.archive_thread(message_id))

    def mark_message_as_read(self, message_id: str) -> OpResult:
        return self._finish("mark_message_as_read", self.state.messages.mark_read(message_id))

    def mark_thread_as_read(self, participant_id: str) -> OpResult:
        return self._finish("mark_thread_as_read",
                            self.state.messages.mark_thread_read(participant_id))

    # ========================================================================
    # DERIVED VIEWS
    # ========================================================================

    @property
    def monthly_income(self) -> Decimal:
        return monthly_income(self.state)

    @property
    def monthly_expenses(self) -> Decimal:
        return monthly_expenses(self.state)

    @property
    def monthly_cashflow(self) -> Decimal:
        return monthly_cashflow(self.state)

    @property
    def total_passive_income(self) -> Decimal:
        return total_passive_income(self.state)

    @property
    def out_of_rat_race(self) -> bool:
        return is_out_of_rat_race(self.state)

    @property
    def net_worth(self) -> Decimal:
        return net_worth(self.state)

    @property
    def goal_progress(self) -> Decimal:
        return goal_progress(self.state)

    @property
    def unread_count(self) -> int:
        return self.state.messages.unread_count()

    @property
    def exit_offer(self) -> Optional[BusinessOpportunity]:
        return self.state.active_businesses.get(self.state.exit_offer_id or "")

    @property
    def feed(self) -> List[Post]:
        return self.state.feed

    def balance(self, account: AccountType) -> Decimal:
        return self.state.balance(account)
