#!/usr/bin/env python3
"""
demo.py - Interactive Tutorial: Learn the Hustle Engine Step by Step

This is a pedagogical walkthrough of the simulation engine. Each step builds
on the previous one. Press Enter to advance.

WHAT YOU'LL LEARN:
  1-3:   Foundation   - A new game, roles and accounts, money movement
  4-5:   Markets      - Buying assets, market updates
  6-8:   Businesses   - Offers, funding, exit offers and sales
  9-10:  Time         - Refresh cycles, payday and the wealth stage
  11:    Persistence  - Saving, reloading and determinism

Run:
    python demo.py           # Interactive mode (press Enter for each step)
    python demo.py --quick   # Run all steps without pausing
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from pathlib import Path
import sys
import tempfile

from hustle import (
    AccountType, AssetType, BusinessOpportunity, GameEngine, MarketUpdate,
    MarketUpdateItem, Opportunity, OpportunityType, SnapshotStore,
    compose, dumps, NOTIFY_DRAFT_POST, NOTIFY_EXIT_OFFER,
)
from hustle.portfolio import apply_market_update


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass
class DemoConfig:
    """Configuration for the tutorial. Modify these to experiment."""
    seed: int = 2025
    start_time: datetime = datetime(2025, 1, 1, 9, 0, 0)
    player_name: str = "Ada"
    player_handle: str = "@ada"
    role_id: str = "junior_developer"
    goal_id: str = "lamborghini"

    # Scenario funding
    demo_checking: Decimal = Decimal("100000")

    # Refresh loop
    refreshes: int = 8


CONFIG = DemoConfig()

QUICK_MODE = "--quick" in sys.argv


class DemoClock:
    """Clock the tutorial moves by hand."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


def wait_for_enter():
    """Pause for user input unless in quick mode."""
    if not QUICK_MODE:
        input("\n[Press Enter to continue...]")


def step_header(number: int, title: str, objective: str):
    """Print a step header with learning objective."""
    print(f"\n{'='*70}")
    print(f"STEP {number}: {title}")
    print(f"{'='*70}")
    print(f"\nObjective: {objective}\n")


def section_header(text: str):
    print(f"\n--- {text} ---\n")


def show_balances(engine: GameEngine):
    for account in (AccountType.CHECKING, AccountType.SAVINGS, AccountType.CREDIT_CARD,
                    AccountType.FAMILY_TRUST):
        print(f"  {account.label:<14} ${engine.balance(account):>14,.2f}")


# ============================================================================
# PHASE 1: FOUNDATION (Steps 1-3)
# ============================================================================

def step_01_new_game(store: SnapshotStore, clock: DemoClock) -> GameEngine:
    step_header(1, "A New Game",
        "See that a game starts from one explicit state owned by one engine.")

    print("""
    GameEngine is the only object a host talks to. It owns:

    1. STATE     - balances, holdings, businesses, messages, feed
    2. RANDOMNESS - a seeded numpy Generator (same seed, same game)
    3. STORE     - a JSON snapshot written after every change
    """)
    wait_for_enter()

    print(f">>> engine = GameEngine(store=..., seed={CONFIG.seed}, verbose=True)")
    engine = GameEngine(store=store, seed=CONFIG.seed, clock=clock, verbose=True)
    engine.new_game(CONFIG.player_name, CONFIG.player_handle,
                    role_id=CONFIG.role_id, goal_id=CONFIG.goal_id)

    section_header("Initial State")
    print(f"Player:         {engine.state.player.name} ({engine.state.player.role_id})")
    print(f"Unread:         {engine.unread_count} onboarding messages")
    print(f"Refresh count:  {engine.state.refresh_count}")
    show_balances(engine)
    return engine


def step_02_role_and_cashflow(engine: GameEngine) -> GameEngine:
    step_header(2, "Roles and Monthly Cash Flow",
        "Understand income, expenses and the rat race.")

    print(f"Monthly income:    ${engine.monthly_income:,.2f}")
    print(f"Monthly expenses:  ${engine.monthly_expenses:,.2f}")
    print(f"Monthly cash flow: ${engine.monthly_cashflow:,.2f}")
    print(f"Out of rat race:   {engine.out_of_rat_race}")

    section_header("Key Insight")
    print("""
    Expenses come from the role's itemized lines (rent, loans, groceries...).
    You leave the rat race when salary plus passive income beats expenses.
    """)
    return engine


def step_03_money_movement(engine: GameEngine) -> GameEngine:
    step_header(3, "Moving Money",
        "See that every operation returns a result and rejects leave no trace.")

    print(">>> engine.transfer(CHECKING, SAVINGS, 200)")
    engine.transfer(AccountType.CHECKING, AccountType.SAVINGS, 200)

    print("\n>>> engine.transfer(CHECKING, SAVINGS, 1_000_000)   # too much")
    result = engine.transfer(AccountType.CHECKING, AccountType.SAVINGS, 1_000_000)
    print(f"    result = {result}")

    print("\n>>> engine.use_credit(300, CREDIT_CARD)   # cash advance")
    engine.use_credit(300, AccountType.CREDIT_CARD)
    show_balances(engine)
    return engine


# ============================================================================
# PHASE 2: MARKETS (Steps 4-5)
# ============================================================================

def step_04_buy_assets(engine: GameEngine) -> GameEngine:
    step_header(4, "Buying Assets",
        "Watch funding and the holding update together, or not at all.")

    engine.state.balances[AccountType.CHECKING] = CONFIG.demo_checking
    print(f"(Checking topped up to ${CONFIG.demo_checking:,.0f} for the demo)\n")

    print(">>> engine.buy('BTC', 5, price=50000)   # 250k, too much")
    engine.buy("BTC", 5, price=50000)
    print(">>> engine.buy('BTC', '0.5', price=50000)")
    engine.buy("BTC", "0.5", price=50000)
    print(">>> engine.buy('BTC', '0.5', price=60000)")
    engine.buy("BTC", "0.5", price=60000)

    btc = engine.state.crypto_portfolio["BTC"]
    section_header("Weighted Average Cost")
    print(f"Quantity:       {btc.quantity}")
    print(f"Average cost:   ${btc.purchase_price:,.2f}")
    print(f"Current price:  ${btc.current_price:,.2f}")
    return engine


def step_05_market_update(engine: GameEngine, clock: DemoClock) -> GameEngine:
    step_header(5, "Market Updates",
        "See a market update reprice holdings atomically.")

    update = MarketUpdate("Crypto Market Update", "Bitcoin hits $105,000", (
        MarketUpdateItem("BTC", AssetType.CRYPTO, "Bitcoin hits $105,000",
                         new_price="105000"),))
    apply_market_update(engine.state, update, clock(), engine.rng)
    btc = engine.state.crypto_portfolio["BTC"]
    print(f"BTC now ${btc.current_price:,.0f}; unrealized gain "
          f"${btc.unrealized_gain:,.2f}")
    print(f"Net worth:      ${engine.net_worth:,.2f}")
    print(f"Goal progress:  {engine.goal_progress:.2%}")
    return engine


# ============================================================================
# PHASE 3: BUSINESSES (Steps 6-8)
# ============================================================================

def step_06_offer(engine: GameEngine, clock: DemoClock) -> str:
    step_header(6, "A Business Offer",
        "Understand that offers live inside messages and start pending.")

    business = BusinessOpportunity(
        title="AI Health Tech", symbol="AIHT", monthly_revenue=12000,
        monthly_expenses=4000, setup_cost=75000, potential_sale_multiple=4,
        revenue_share=20, description="AI diagnostics for clinics",
    )
    offer = Opportunity(
        title=business.title, description=business.description,
        kind=OpportunityType.STARTUP, required_investment=business.setup_cost,
        business=business,
    )
    _, message = engine.state.messages.add(compose(
        "vc_partner", "Sarah Chen", "VC Partner",
        f"I have an opportunity in {business.title}. Interested?",
        clock(), rng=engine.rng, cycle=engine.state.refresh_count, opportunity=offer,
    ))
    print(f"Message status:   {message.status.value}")
    print(f"Setup cost:       ${business.setup_cost:,.0f}")
    print(f"Monthly dividend: ${business.monthly_dividend:,.0f}")
    print(f"Exit value today: ${business.current_exit_value:,.0f}")
    return message.id


def step_07_accept(engine: GameEngine, message_id: str) -> GameEngine:
    step_header(7, "Accepting and Funding",
        "See the setup cost paid before the business is owned.")

    engine.sell("BTC", 1)
    print(">>> engine.respond_to_opportunity(message_id, accepted=True)")
    engine.respond_to_opportunity(message_id, accepted=True)
    print(">>> engine.respond_to_opportunity(message_id, accepted=True)   # again")
    engine.respond_to_opportunity(message_id, accepted=True)

    section_header("Thread")
    for message in engine.state.messages.thread_messages("vc_partner"):
        who = "You" if message.from_player else message.sender_name
        print(f"  #{message.sequence} {who}: {message.content[:60]}")
    print(f"\nPassive income: ${engine.total_passive_income:,.2f}")
    return engine


def step_08_exit(engine: GameEngine, clock: DemoClock) -> GameEngine:
    step_header(8, "Exit Offers",
        "Watch a multiple rise past 1.2x target and the stake get sold.")

    drafts = []
    engine.subscribe(NOTIFY_DRAFT_POST, drafts.append)
    (business,) = engine.state.active_businesses.values()
    update = MarketUpdate("Startup Market Update", "Acquirers are circling", (
        MarketUpdateItem(business.symbol, AssetType.STARTUP, "Acquirers are circling",
                         multiple_change="2.5"),))
    _, surfaced = apply_market_update(engine.state, update, clock(), engine.rng)
    print(f"Exit offer surfaced: {surfaced is not None}")
    print(f"Multiple:            {engine.exit_offer.current_exit_multiple}x")

    engine.sell_business(business.id)
    print(f"\nSuggested post: {drafts[0] if drafts else '-'}")
    show_balances(engine)
    return engine


# ============================================================================
# PHASE 4: TIME (Steps 9-10)
# ============================================================================

def step_09_refresh(engine: GameEngine, clock: DemoClock) -> GameEngine:
    step_header(9, "Refresh Cycles",
        "See one tick: expiry, market news, offers, a day event, payday.")

    offers = []
    engine.subscribe(NOTIFY_EXIT_OFFER, offers.append)
    engine.verbose = False
    for _ in range(CONFIG.refreshes):
        clock.advance(days=1)
        engine.refresh()
        report = engine.last_report
        flags = " ".join(f for f, on in (("PAYDAY", report.paid),
                                          ("LEVEL-UP", report.leveled_up)) if on)
        print(f"  #{report.refresh_count:<2} {report.day_type:<26} "
              f"expired={report.expired_offers} {flags}")
    engine.verbose = True

    section_header("Feed")
    for post in engine.feed[:5]:
        print(f"  {post.author:<20} {post.content[:45]}")
    return engine


def step_10_wealth_stage(engine: GameEngine) -> GameEngine:
    step_header(10, "The Wealth Stage",
        "Understand the one-time promotion when income covers expenses.")

    salaries = [t for t in engine.state.transactions if t.description == "Salary"]
    print(f"Paydays booked:   {len(salaries)}")
    print(f"Out of rat race:  {engine.out_of_rat_race}")
    print(f"Leveled up:       {engine.state.has_leveled_up}")
    print("""
    Promotion happens at most once, on the first payday where salary plus
    passive income beats expenses. From then on sale proceeds land in the
    family trust.
    """)
    return engine


# ============================================================================
# PHASE 5: PERSISTENCE (Step 11)
# ============================================================================

def step_11_persistence(engine: GameEngine, store: SnapshotStore, clock: DemoClock):
    step_header(11, "Saving and Reloading",
        "Prove the snapshot restores the game and seeds replay it.")

    reloaded = GameEngine(store=store, clock=clock)
    same = dumps(reloaded.state) == dumps(engine.state)
    print(f"Snapshot file:          {store.path}")
    print(f"Reloaded equals live:   {same}")

    a = GameEngine(seed=7, clock=lambda: CONFIG.start_time)
    b = GameEngine(seed=7, clock=lambda: CONFIG.start_time)
    for _ in range(3):
        a.refresh()
        b.refresh()
    print(f"Same seed, same game:   {dumps(a.state) == dumps(b.state)}")


def main():
    """Run the complete tutorial."""
    print("=" * 70)
    print("       HUSTLE ENGINE - INTERACTIVE TUTORIAL")
    print("=" * 70)
    if QUICK_MODE:
        print("Running in QUICK mode (no pauses)")
    else:
        print("Running in INTERACTIVE mode (press Enter to advance)")
    wait_for_enter()

    clock = DemoClock(CONFIG.start_time)
    with tempfile.TemporaryDirectory() as tmp:
        store = SnapshotStore(Path(tmp) / "save.json", verbose=True)

        engine = step_01_new_game(store, clock)
        wait_for_enter()
        engine = step_02_role_and_cashflow(engine)
        wait_for_enter()
        engine = step_03_money_movement(engine)
        wait_for_enter()

        engine = step_04_buy_assets(engine)
        wait_for_enter()
        engine = step_05_market_update(engine, clock)
        wait_for_enter()

        message_id = step_06_offer(engine, clock)
        wait_for_enter()
        engine = step_07_accept(engine, message_id)
        wait_for_enter()
        engine = step_08_exit(engine, clock)
        wait_for_enter()

        engine = step_09_refresh(engine, clock)
        wait_for_enter()
        engine = step_10_wealth_stage(engine)
        wait_for_enter()

        step_11_persistence(engine, store, clock)

    print("\n" + "=" * 70)
    print("       TUTORIAL COMPLETE!")
    print("=" * 70)
    print("""
    Next steps:
      - See hustle/catalog.py for roles, goals and business templates
      - See hustle/event_handlers.py to add a day type
      - Run tests: pytest tests/
    """)


if __name__ == "__main__":
    main()
