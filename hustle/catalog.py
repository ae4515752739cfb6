"""
catalog.py - Static Reference Data

Everything the simulation draws from but never mutates:
- ROLES: careers with salary, credit limit and itemized expenses
- GOALS: purchases the player saves towards
- BUSINESS_TEMPLATES: predefined opportunities with the pitch message that offers them
- STOCK_OFFERINGS / CRYPTO_OFFERINGS: tradeable assets at their listing price
- CRYPTO_PRICE_UPDATES / STOCK_PRICE_UPDATES / STARTUP_MULTIPLE_UPDATES: market news
- UNEXPECTED_EXPENSES: life events that drain checking
- Contact identities used as message senders

Catalog entries are frozen records or plain tuples; lookups return None for
unknown ids rather than raising.
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Optional, Tuple

from .core import (
    Asset, AssetType, BusinessOpportunity, Goal, OpportunitySize, OpportunityType, Role, RoleExpenses,
    LARGE_OPPORTUNITY_THRESHOLD, to_decimal,
)


# ============================================================================
# CONTACTS
# ============================================================================

@dataclass(frozen=True, slots=True)
class Contact:
    """A message sender identity. sender_id is the thread key."""
    sender_id: str
    name: str
    role: str


MENTOR = Contact("mentor", "David Chen", "Startup Advisor")
WEALTH_ADVISOR = Contact("wealth_advisor", "Victoria Sterling", "Private Wealth Advisor")
BANK = Contact("BANK", "Quantum Bank", "Payroll Department")
EXPENSE_ALERT = Contact("EXPENSE", "Life Happens", "Expense Alert")
SYSTEM = Contact("SYSTEM", "System", "Notification")
ACCOUNTANT = Contact("accountant", "Jordan Blake", "Accountant")
EXIT_ADVISOR = Contact("exit_advisor", "Sarah Chen", "M&A Advisor")
FAMILY = Contact("family", "Family", "Home")
MARKET_WATCH = Contact("market_watch", "MarketWatch", "Market Analysis")

STOCK_ANALYSTS = (
    Contact("analyst_michael_roberts", "Michael Roberts", "Stock Market Analyst"),
    Contact("analyst_emma_thompson", "Emma Thompson", "Stock Market Analyst"),
)

CRYPTO_ANALYSTS = (
    Contact("analyst_alex_chen", "Alex Chen", "Crypto Market Analyst"),
    Contact("analyst_sarah_kim", "Sarah Kim", "Crypto Market Analyst"),
)


# ============================================================================
# ROLES
# ============================================================================

def _role(role_id: str, title: str, tier: int, salary, credit_limit,
          rent, cell, loans, groceries, per_child) -> Role:
    """Roles carry no credit card, car note or retail lines."""
    return Role(
        id=role_id,
        title=title,
        tier=tier,
        monthly_salary=to_decimal(salary),
        credit_limit=to_decimal(credit_limit),
        expenses=RoleExpenses(
            rent=rent,
            cell_and_internet=cell,
            student_loans=loans,
            credit_card=0,
            groceries=groceries,
            car_note=0,
            retail=0,
            per_child=per_child,
        ),
    )


ROLES: Tuple[Role, ...] = (
    # Tier 1
    _role("retail_assistant", "Retail Assistant", 1, 2000, 2000, 750, 150, 500, 400, 500),
    _role("junior_developer", "Junior Developer", 1, 5500, 3000, 7500, 200, 600, 500, 600),
    _role("aspiring_actor", "Aspiring Actor", 1, 2000, 1500, 1000, 120, 450, 350, 450),
    _role("fashion_founder", "Fashion Brand Founder", 1, 3000, 5000, 1400, 180, 550, 450, 550),
    _role("ecom_founder", "E-commerce Founder", 1, 3500, 5000, 1300, 170, 500, 400, 500),
    # Tier 2
    _role("accountant", "Accountant", 2, 5500, 8000, 2000, 250, 800, 600, 800),
    _role("party_promoter", "Party Promoter", 2, 4500, 10000, 1800, 220, 700, 550, 700),
    _role("content_creator", "Content Creator", 2, 6000, 12000, 2200, 280, 850, 650, 850),
    _role("growth_manager", "Growth Manager", 2, 7000, 15000, 2500, 300, 900, 700, 900),
    _role("pr_consultant", "PR Consultant", 2, 6500, 12000, 2300, 290, 875, 675, 875),
    _role("executive_assistant", "Executive Assistant", 2, 5000, 8000, 1900, 240, 750, 575, 750),
    # Tier 3
    _role("senior_developer", "Senior Developer", 3, 12500, 25000, 3500, 400, 1200, 900, 1200),
    _role("investment_banker", "Investment Banker", 3, 15000, 50000, 4000, 500, 1500, 1200, 1500),
    _role("footballer", "Professional Footballer", 3, 20000, 100000, 5000, 800, 2000, 1500, 2000),
    _role("fashion_model", "Fashion Model", 3, 18000, 75000, 4500, 600, 1800, 1300, 1800),
    # Tier 4
    _role("owner_angel_investor", "Owner / Angel Investor", 4, 25000, 1000000,
          6000, 1000, 0, 2000, 2500),
)

ROLES_BY_ID: Dict[str, Role] = {role.id: role for role in ROLES}

DEFAULT_ROLE_ID = "junior_developer"


def get_role(role_id: str) -> Optional[Role]:
    return ROLES_BY_ID.get(role_id)


def roles_in_tier(tier: int) -> Tuple[Role, ...]:
    return tuple(role for role in ROLES if role.tier == tier)


# ============================================================================
# GOALS
# ============================================================================

GOALS: Tuple[Goal, ...] = (
    Goal("lamborghini", "Lamborghini", Decimal("500000"), "Own a brand-new supercar"),
    Goal("mansion", "Mansion", Decimal("5000000"), "A mansion with a view"),
    Goal("yacht", "Yacht", Decimal("10000000"), "Sail the world on your own yacht"),
    Goal("retirement", "Early Retirement", Decimal("3000000"), "Never work again"),
    Goal("startup", "Successful Startup", Decimal("1000000000"), "Build a unicorn"),
)

GOALS_BY_ID: Dict[str, Goal] = {goal.id: goal for goal in GOALS}


def get_goal(goal_id: str) -> Optional[Goal]:
    return GOALS_BY_ID.get(goal_id)


# ============================================================================
# BUSINESS TEMPLATES
# ============================================================================

@dataclass(frozen=True, slots=True)
class BusinessTemplate:
    """A predefined business opportunity plus the contact who pitches it."""
    business: BusinessOpportunity
    contact: Contact
    pitch: str

    @property
    def size(self) -> OpportunitySize:
        if self.business.setup_cost >= LARGE_OPPORTUNITY_THRESHOLD:
            return OpportunitySize.LARGE
        return OpportunitySize.SMALL


BUSINESS_TEMPLATES: Tuple[BusinessTemplate, ...] = (
    BusinessTemplate(
        business=BusinessOpportunity(
            title="AI-Powered Health Tech Startup",
            symbol="AIHT",
            description=("Early-stage startup developing AI diagnostics platform for healthcare "
                         "providers. Looking for technical co-founder with $75,000 investment "
                         "for 20% equity."),
            opportunity_type=OpportunityType.STARTUP,
            monthly_revenue=12000,
            monthly_expenses=4000,
            setup_cost=75000,
            potential_sale_multiple=Decimal("4.0"),
            revenue_share=20,
            id="template-aiht",
        ),
        contact=Contact("vc_partner", "Sarah Chen", "VC Partner"),
        pitch=("Hi! I'm leading the seed round for an exciting health tech startup. Your "
               "background would be perfect for the technical co-founder role."),
    ),
    BusinessTemplate(
        business=BusinessOpportunity(
            title="Event Booking Platform",
            symbol="EVNT",
            description=("White-label event booking software for small venues. Established "
                         "customer base with steady revenue."),
            opportunity_type=OpportunityType.SMALL_BUSINESS,
            monthly_revenue=3500,
            monthly_expenses=800,
            setup_cost=10000,
            potential_sale_multiple=Decimal("2.0"),
            revenue_share=40,
            id="template-evnt",
        ),
        contact=Contact("founder", "Mike Wilson", "Founder"),
        pitch=("Looking for a technical partner to help scale our event booking platform. "
               "Great opportunity for passive income."),
    ),
    BusinessTemplate(
        business=BusinessOpportunity(
            title="Profitable E-commerce Store",
            symbol="SHOP",
            description=("Established e-commerce store with loyal customers and reliable "
                         "suppliers. Owner retiring and selling the whole business."),
            opportunity_type=OpportunityType.SMALL_BUSINESS,
            monthly_revenue=25000,
            monthly_expenses=15000,
            setup_cost=150000,
            potential_sale_multiple=Decimal("3.0"),
            revenue_share=100,
            id="template-shop",
        ),
        contact=Contact("broker", "Alex Thompson", "Business Broker"),
        pitch=("I have a profitable e-commerce business for sale. The owner is retiring and "
               "looking for a quick exit. Great opportunity for someone with technical "
               "background to optimize and scale."),
    ),
    BusinessTemplate(
        business=BusinessOpportunity(
            title="Fitness Tracking App",
            symbol="FITX",
            description=("Fitness app with strong early traction looking for a technical "
                         "co-founder to scale the platform."),
            opportunity_type=OpportunityType.STARTUP,
            monthly_revenue=5000,
            monthly_expenses=1000,
            setup_cost=25000,
            potential_sale_multiple=Decimal("3.5"),
            revenue_share=30,
            id="template-fitx",
        ),
        contact=Contact("app_founder", "Lisa Park", "App Founder"),
        pitch=("Hey! I've built a fitness app with great traction, but I need a technical "
               "co-founder to take it to the next level. Interested in joining forces?"),
    ),
    BusinessTemplate(
        business=BusinessOpportunity(
            title="Developer Productivity Tool",
            symbol="DEVT",
            description=("Popular Chrome extension for developers with a growing paid tier."),
            opportunity_type=OpportunityType.STARTUP,
            monthly_revenue=1000,
            monthly_expenses=200,
            setup_cost=5000,
            potential_sale_multiple=Decimal("2.5"),
            revenue_share=50,
            id="template-devt",
        ),
        contact=Contact("indie_dev", "Ryan Cooper", "Indie Developer"),
        pitch=("Built a popular Chrome extension for developers but need help taking it to "
               "the next level. Looking for a technical partner to join me."),
    ),
)


def templates_for_size(size: OpportunitySize) -> Tuple[BusinessTemplate, ...]:
    """Templates with setup cost >= LARGE_OPPORTUNITY_THRESHOLD are large, the rest small."""
    return tuple(t for t in BUSINESS_TEMPLATES if t.size == size)


# ============================================================================
# TRADEABLE ASSETS
# ============================================================================

def _listing(symbol: str, name: str, price, asset_type: AssetType) -> Asset:
    price = to_decimal(price)
    return Asset(symbol=symbol, name=name, quantity=Decimal("0"),
                 current_price=price, purchase_price=price, asset_type=asset_type)


STOCK_OFFERINGS: Tuple[Asset, ...] = (
    _listing("AMZN", "Amazon", 170, AssetType.STOCK),
    _listing("AAPL", "Apple", 190, AssetType.STOCK),
    _listing("MSFT", "Microsoft", 420, AssetType.STOCK),
    _listing("GOOGL", "Alphabet", 150, AssetType.STOCK),
    _listing("NVDA", "NVIDIA", 850, AssetType.STOCK),
)

CRYPTO_OFFERINGS: Tuple[Asset, ...] = (
    _listing("BTC", "Bitcoin", 52000, AssetType.CRYPTO),
    _listing("ETH", "Ethereum", 3200, AssetType.CRYPTO),
    _listing("SOL", "Solana", 120, AssetType.CRYPTO),
    _listing("DOGE", "Dogecoin", "0.15", AssetType.CRYPTO),
    _listing("LINK", "Chainlink", 18, AssetType.CRYPTO),
)


# ============================================================================
# MARKET NEWS
# ============================================================================

# (symbol, new_price, headline)
CRYPTO_PRICE_UPDATES: Tuple[Tuple[str, str, str], ...] = (
    ("BTC", "65000", "Bitcoin surges to $65,000 as institutional demand grows"),
    ("BTC", "35000", "Bitcoin dips to $35,000 amid market uncertainty"),
    ("BTC", "105000", "Bitcoin hits new all-time high of $105,000"),
    ("ETH", "3500", "Ethereum reaches $3,500 following successful network upgrade"),
    ("ETH", "3000", "Ethereum consolidates at $3,000 as DeFi activity increases"),
    ("ETH", "2500", "Ethereum slides to $2,500 as gas fees spike"),
    ("SOL", "500", "Solana rockets to $500 as network adoption explodes"),
    ("SOL", "150", "Solana breaks $150 as network adoption grows"),
    ("SOL", "10", "Solana collapses to $10 after a week-long outage"),
    ("DOGE", "1.20", "Dogecoin jumps to $1.20 following social media buzz"),
    ("DOGE", "0.20", "Dogecoin climbs to $0.20 on meme momentum"),
    ("DOGE", "0.12", "Dogecoin settles at $0.12 as meme coin interest wanes"),
)

STOCK_PRICE_UPDATES: Tuple[Tuple[str, str, str], ...] = (
    ("AAPL", "180", "Apple stock reaches $180 after strong iPhone sales"),
    ("AAPL", "165", "Apple dips to $165 amid supply chain concerns"),
    ("TSLA", "250", "Tesla drops to $250 following production challenges"),
    ("TSLA", "300", "Tesla surges to $300 on record deliveries"),
    ("MSFT", "350", "Microsoft hits $350 driven by AI innovations"),
    ("MSFT", "320", "Microsoft trades at $320 as cloud growth continues"),
    ("AMZN", "145", "Amazon falls to $145 on retail slowdown"),
    ("AMZN", "175", "Amazon reaches $175 as AWS growth accelerates"),
    ("NVDA", "800", "NVIDIA dips to $800 as chip demand normalizes"),
    ("NVDA", "900", "NVIDIA soars to $900 on AI chip demand"),
)

# (multiple_change, headline template with {title})
STARTUP_MULTIPLE_UPDATES: Tuple[Tuple[str, str], ...] = (
    ("1.5", "{title} lands a major enterprise contract"),
    ("0.8", "{title} posts record monthly growth"),
    ("2.5", "Acquirers are circling {title} after a viral launch"),
    ("-0.5", "{title} loses a key customer"),
    ("-1.0", "Funding winter hits {title} valuations"),
)


# ============================================================================
# UNEXPECTED EXPENSES
# ============================================================================

@dataclass(frozen=True, slots=True)
class UnexpectedExpense:
    title: str
    description: str
    amount: Decimal
    category: str


UNEXPECTED_EXPENSES: Tuple[UnexpectedExpense, ...] = (
    UnexpectedExpense("Laptop Stolen",
                      "Your laptop was stolen from a coffee shop. Need immediate replacement for work.",
                      Decimal("2000"), "tech"),
    UnexpectedExpense("Crypto Wallet Compromised",
                      "Your crypto wallet was hacked and funds were drained.",
                      Decimal("5000"), "crypto"),
    UnexpectedExpense("NFT Collection Stolen",
                      "Your NFT collection was stolen through a phishing attack.",
                      Decimal("3000"), "crypto"),
    UnexpectedExpense("Medical Emergency",
                      "Broke your leg during a weekend hike. Medical bills not fully covered by insurance.",
                      Decimal("4000"), "personal"),
    UnexpectedExpense("Server Outage",
                      "Critical server failure requires immediate hardware replacement.",
                      Decimal("1500"), "business"),
)
