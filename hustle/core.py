"""
Core types and helpers for the hustle simulation engine.

This module provides the foundational data structures shared by every other module:
1. Decimal context and money helpers
2. Enums: account types, asset types, opportunity states, result codes
3. Exceptions: EngineError and snapshot errors
4. Immutable records: Transaction, Asset, BusinessOpportunity, Opportunity,
   Message, MarketUpdate, Post, Player, Role, Goal

Records are frozen. State changes go through dataclasses.replace() and are
written back into the GameState struct by the pure-function modules.
"""

from __future__ import annotations
from dataclasses import dataclass, field, fields
from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_EVEN, getcontext
from enum import Enum
from typing import Any, Optional, Tuple
import uuid


# ============================================================================
# DECIMAL CONTEXT CONFIGURATION
# ============================================================================
#
# Balances, prices and quantities are Decimal throughout. The global context is
# configured once at import time so that every module computes identically.
#
# PRECONDITION: No other code should modify the global Decimal context.
#
_ENGINE_DECIMAL_CONTEXT = getcontext()
_ENGINE_DECIMAL_CONTEXT.prec = 50
_ENGINE_DECIMAL_CONTEXT.rounding = ROUND_HALF_EVEN


# ============================================================================
# CONSTANTS
# ============================================================================

ZERO = Decimal("0")
HUNDRED = Decimal("100")
MONTHS_PER_YEAR = Decimal("12")

# Exit multiples are clamped to this band after every market update.
MIN_EXIT_MULTIPLE = Decimal("1.0")
MAX_EXIT_MULTIPLE = Decimal("20.0")

# A business is offered for sale once its multiple reaches this factor
# of the target sale multiple.
EXIT_TRIGGER_FACTOR = Decimal("1.2")

# Templates at or above this setup cost count as "large" opportunities.
LARGE_OPPORTUNITY_THRESHOLD = Decimal("50000")

# Share of equity portfolio value paid out monthly as passive dividends.
EQUITY_DIVIDEND_YIELD = Decimal("0.02")

# Fixed credit limits for premium cards.
PLATINUM_CARD_LIMIT = Decimal("100000")
BLACK_CARD_LIMIT = Decimal("1000000")
DEFAULT_CREDIT_LIMIT = Decimal("5000")

# Starting balances for a fresh game.
DEFAULT_STARTING_CHECKING = Decimal("1000")
DEFAULT_STARTING_SAVINGS = Decimal("0")

# Player tier at which sale proceeds are routed into the family trust.
FAMILY_TRUST_TIER = 4

# Message dedup window and minimum spacing within a thread.
DEDUP_WINDOW_SECONDS = 1
THREAD_TIME_STEP_MS = 1

# Quantities below this are treated as zero.
QUANTITY_EPSILON = Decimal("1e-12")


def to_decimal(value: Any) -> Decimal:
    """Convert int/float/str to Decimal via str() so floats keep their printed value."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def parse_amount(value: Any) -> Optional[Decimal]:
    """
    User-supplied amount as a finite Decimal, or None when it is not a number.

    NaN and infinities count as not a number.
    """
    try:
        amount = to_decimal(value)
    except InvalidOperation:
        return None
    if not amount.is_finite():
        return None
    return amount


def make_id(rng=None) -> str:
    """
    Build a UUID4 string.

    When a numpy Generator is supplied the id is drawn from it, so a seeded game
    produces the same ids on every run.
    """
    if rng is None:
        return str(uuid.uuid4())
    return str(uuid.UUID(bytes=rng.bytes(16), version=4))


# ============================================================================
# ENUMS
# ============================================================================

class OpResult(Enum):
    """
    Outcome of a mutating engine operation.

    APPLIED: State was changed.
    ALREADY_APPLIED: Nothing to do (idempotent repeat, duplicate message, already read).
    INSUFFICIENT_FUNDS: The funding account cannot cover the amount.
    ACCOUNT_NOT_FOUND: The account cannot be used for this operation.
    INVALID_STATE: The operation is not legal in the current state.
    NOT_FOUND: The referenced role, goal, symbol, message or business does not exist.

    A result that is not ``ok`` guarantees that no state was mutated.
    """
    APPLIED = "applied"
    ALREADY_APPLIED = "already_applied"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    ACCOUNT_NOT_FOUND = "account_not_found"
    INVALID_STATE = "invalid_state"
    NOT_FOUND = "not_found"

    @property
    def ok(self) -> bool:
        return self in (OpResult.APPLIED, OpResult.ALREADY_APPLIED)


class AccountType(Enum):
    """Named balances. Card balances hold the amount owed."""
    CHECKING = "checking"
    SAVINGS = "savings"
    CREDIT_CARD = "credit_card"
    PLATINUM_CARD = "platinum_card"
    BLACK_CARD = "black_card"
    FAMILY_TRUST = "family_trust"

    @property
    def is_credit(self) -> bool:
        return self in CREDIT_ACCOUNTS

    @property
    def label(self) -> str:
        return ACCOUNT_LABELS[self]


CREDIT_ACCOUNTS = frozenset({
    AccountType.CREDIT_CARD,
    AccountType.PLATINUM_CARD,
    AccountType.BLACK_CARD,
})

# Accounts that hold cash and can be the source of a transfer.
CASH_ACCOUNTS = (
    AccountType.CHECKING,
    AccountType.SAVINGS,
    AccountType.FAMILY_TRUST,
)

ACCOUNT_LABELS = {
    AccountType.CHECKING: "Checking",
    AccountType.SAVINGS: "Savings",
    AccountType.CREDIT_CARD: "Credit Card",
    AccountType.PLATINUM_CARD: "Platinum Card",
    AccountType.BLACK_CARD: "Black Card",
    AccountType.FAMILY_TRUST: "Family Trust",
}


class AssetType(Enum):
    CRYPTO = "crypto"
    STOCK = "stock"
    STARTUP = "startup"


class OpportunityType(Enum):
    STARTUP = "startup"
    SMALL_BUSINESS = "small_business"
    INVESTMENT = "investment"


class OpportunitySize(Enum):
    SMALL = "small"
    LARGE = "large"


class OpportunityStatus(Enum):
    """
    Status of a message's embedded opportunity.

    NONE marks plain messages. PENDING is the only non-terminal state;
    ACCEPTED, REJECTED and EXPIRED never change once set.
    """
    NONE = "none"
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    EXPIRED = "expired"

    @property
    def is_terminal(self) -> bool:
        return self in (OpportunityStatus.ACCEPTED, OpportunityStatus.REJECTED,
                        OpportunityStatus.EXPIRED)


# ============================================================================
# EXCEPTIONS
# ============================================================================

class EngineError(Exception):
    """Base exception for engine errors that are not reported as OpResult."""
    pass


class SnapshotError(EngineError):
    """Raised when a persisted snapshot cannot be decoded into a GameState."""
    pass


# ============================================================================
# STATIC REFERENCE RECORDS
# ============================================================================

@dataclass(frozen=True, slots=True)
class RoleExpenses:
    """Itemized monthly expense schedule of a role."""
    rent: Decimal
    cell_and_internet: Decimal
    student_loans: Decimal
    credit_card: Decimal
    groceries: Decimal
    car_note: Decimal
    retail: Decimal
    per_child: Decimal

    def __post_init__(self):
        for f in fields(self):
            name = f.name
            value = to_decimal(getattr(self, name))
            if value < 0:
                raise ValueError(f"Expense line {name} cannot be negative: {value}")
            object.__setattr__(self, name, value)

    def line_items(self, children: int = 0) -> Tuple[Tuple[str, Decimal], ...]:
        """(label, amount) for every expense line, child care included."""
        return (
            ("Rent", self.rent),
            ("Cell & Internet", self.cell_and_internet),
            ("Student Loans", self.student_loans),
            ("Credit Card", self.credit_card),
            ("Groceries", self.groceries),
            ("Car Note", self.car_note),
            ("Retail", self.retail),
            ("Child Care", self.per_child * children),
        )

    def total(self, children: int = 0) -> Decimal:
        return sum((amount for _, amount in self.line_items(children)), ZERO)


@dataclass(frozen=True, slots=True)
class Role:
    """A career in the static role catalog."""
    id: str
    title: str
    tier: int
    monthly_salary: Decimal
    credit_limit: Decimal
    expenses: RoleExpenses

    def __post_init__(self):
        if not 1 <= self.tier <= 4:
            raise ValueError(f"Role tier must be 1-4, got {self.tier}")
        object.__setattr__(self, 'monthly_salary', to_decimal(self.monthly_salary))
        object.__setattr__(self, 'credit_limit', to_decimal(self.credit_limit))


@dataclass(frozen=True, slots=True)
class Goal:
    """A purchase the player is saving towards."""
    id: str
    title: str
    price: Decimal
    description: str = ""

    def __post_init__(self):
        object.__setattr__(self, 'price', to_decimal(self.price))


# ============================================================================
# LEDGER RECORDS
# ============================================================================

@dataclass(frozen=True, slots=True)
class Transaction:
    """
    One line of the append-only transaction log.

    Attributes:
        date: When the money moved
        description: Human-readable label ("Salary", "Buy BTC Crypto", ...)
        amount: Non-negative magnitude; direction is given by is_income
        is_income: True for money in, False for money out
        account: The balance the line was booked against
    """
    date: datetime
    description: str
    amount: Decimal
    is_income: bool
    account: AccountType = AccountType.CHECKING

    def __post_init__(self):
        amount = to_decimal(self.amount)
        if amount.is_nan() or amount.is_infinite():
            raise ValueError(f"Transaction amount must be finite, got {amount}")
        if amount < 0:
            raise ValueError(f"Transaction amount must be non-negative, got {amount}")
        object.__setattr__(self, 'amount', amount)

    @property
    def signed_amount(self) -> Decimal:
        return self.amount if self.is_income else -self.amount


@dataclass(frozen=True, slots=True)
class Player:
    """Player identity. Balances live in GameState.balances."""
    name: str
    handle: str
    role_id: str
    children: int = 0
    id: str = field(default_factory=make_id)

    def __post_init__(self):
        if self.children < 0:
            raise ValueError(f"children cannot be negative, got {self.children}")


# ============================================================================
# PORTFOLIO RECORDS
# ============================================================================

@dataclass(frozen=True, slots=True)
class Asset:
    """
    A holding in the crypto or equity portfolio.

    purchase_price is the quantity-weighted average cost of all buys.
    """
    symbol: str
    name: str
    quantity: Decimal
    current_price: Decimal
    purchase_price: Decimal
    asset_type: AssetType

    def __post_init__(self):
        if not self.symbol or not self.symbol.strip():
            raise ValueError("Asset symbol cannot be empty")
        if self.asset_type not in (AssetType.CRYPTO, AssetType.STOCK):
            raise ValueError(f"Asset type must be crypto or stock, got {self.asset_type}")
        for name in ('quantity', 'current_price', 'purchase_price'):
            object.__setattr__(self, name, to_decimal(getattr(self, name)))

    @property
    def market_value(self) -> Decimal:
        return self.quantity * self.current_price

    @property
    def cost_basis(self) -> Decimal:
        return self.quantity * self.purchase_price

    @property
    def unrealized_gain(self) -> Decimal:
        return self.market_value - self.cost_basis


# ============================================================================
# BUSINESS RECORDS
# ============================================================================

def clamp_exit_multiple(multiple: Decimal) -> Decimal:
    """Clamp an exit multiple to [MIN_EXIT_MULTIPLE, MAX_EXIT_MULTIPLE]."""
    return max(MIN_EXIT_MULTIPLE, min(MAX_EXIT_MULTIPLE, multiple))


@dataclass(frozen=True, slots=True)
class BusinessOpportunity:
    """
    A business the player can buy into.

    Attributes:
        title: Display name, also used as the company name in messages
        symbol: Ticker used by startup market updates
        monthly_revenue / monthly_expenses: Business-level monthly figures
        setup_cost: What the player pays to accept
        potential_sale_multiple: Target exit multiple set by the counterparty
        revenue_share: Player's stake in percent (0-100)
        current_exit_multiple: Live multiple, moved by market updates
    """
    title: str
    symbol: str
    monthly_revenue: Decimal
    monthly_expenses: Decimal
    setup_cost: Decimal
    potential_sale_multiple: Decimal
    revenue_share: Decimal
    description: str = ""
    opportunity_type: OpportunityType = OpportunityType.STARTUP
    current_exit_multiple: Optional[Decimal] = None
    id: str = field(default_factory=make_id)

    def __post_init__(self):
        for name in ('monthly_revenue', 'monthly_expenses', 'setup_cost',
                     'potential_sale_multiple', 'revenue_share'):
            object.__setattr__(self, name, to_decimal(getattr(self, name)))
        if not ZERO <= self.revenue_share <= HUNDRED:
            raise ValueError(f"revenue_share must be within 0-100, got {self.revenue_share}")
        if self.setup_cost < 0:
            raise ValueError(f"setup_cost cannot be negative, got {self.setup_cost}")
        multiple = self.current_exit_multiple
        if multiple is None:
            multiple = self.potential_sale_multiple
        object.__setattr__(self, 'current_exit_multiple',
                           clamp_exit_multiple(to_decimal(multiple)))

    @property
    def monthly_cashflow(self) -> Decimal:
        return self.monthly_revenue - self.monthly_expenses

    @property
    def monthly_dividend(self) -> Decimal:
        """Player's share of the monthly cashflow."""
        return self.monthly_cashflow * self.revenue_share / HUNDRED

    @property
    def current_exit_value(self) -> Decimal:
        return self.monthly_cashflow * MONTHS_PER_YEAR * self.current_exit_multiple

    @property
    def player_exit_proceeds(self) -> Decimal:
        return self.current_exit_value * self.revenue_share / HUNDRED

    @property
    def exit_ready(self) -> bool:
        return self.current_exit_multiple >= EXIT_TRIGGER_FACTOR * self.potential_sale_multiple


@dataclass(frozen=True, slots=True)
class Opportunity:
    """
    Offer embedded in a message.

    Startup offers carry the BusinessOpportunity; investment tips carry the Asset
    quote the player may buy at.
    """
    title: str
    description: str
    kind: OpportunityType
    required_investment: Decimal
    business: Optional[BusinessOpportunity] = None
    asset: Optional[Asset] = None
    id: str = field(default_factory=make_id)

    def __post_init__(self):
        object.__setattr__(self, 'required_investment', to_decimal(self.required_investment))


# ============================================================================
# MESSAGING RECORDS
# ============================================================================

@dataclass(frozen=True, slots=True)
class Message:
    """
    A direct message. sender_id is the thread key.

    Messages written by the player carry the counterparty's sender_id with
    from_player=True so that both sides land in the same thread. sequence is
    assigned by the thread and is the ordering key within it.
    """
    sender_id: str
    sender_name: str
    sender_role: str
    timestamp: datetime
    content: str
    opportunity: Optional[Opportunity] = None
    status: OpportunityStatus = OpportunityStatus.NONE
    is_read: bool = False
    is_archived: bool = False
    from_player: bool = False
    sequence: int = 0
    cycle: int = 0
    id: str = field(default_factory=make_id)

    def __post_init__(self):
        if not self.sender_id:
            raise ValueError("Message sender_id cannot be empty")
        if self.opportunity is not None and self.status is OpportunityStatus.NONE:
            object.__setattr__(self, 'status', OpportunityStatus.PENDING)

    @property
    def is_pending(self) -> bool:
        return self.status is OpportunityStatus.PENDING


# ============================================================================
# MARKET RECORDS
# ============================================================================

@dataclass(frozen=True, slots=True)
class MarketUpdateItem:
    """
    One per-symbol change inside a MarketUpdate.

    Crypto/stock items overwrite the asset price with new_price.
    Startup items add multiple_change to the business exit multiple.
    """
    symbol: str
    asset_type: AssetType
    message: str
    new_price: Optional[Decimal] = None
    multiple_change: Optional[Decimal] = None

    def __post_init__(self):
        if self.asset_type is AssetType.STARTUP:
            if self.multiple_change is None:
                raise ValueError("Startup update needs multiple_change")
            object.__setattr__(self, 'multiple_change', to_decimal(self.multiple_change))
        else:
            if self.new_price is None:
                raise ValueError(f"{self.asset_type.value} update needs new_price")
            price = to_decimal(self.new_price)
            if price <= 0:
                raise ValueError(f"new_price must be positive, got {price}")
            object.__setattr__(self, 'new_price', price)


@dataclass(frozen=True, slots=True)
class MarketUpdate:
    """A batch of per-symbol changes applied atomically."""
    title: str
    description: str
    items: Tuple[MarketUpdateItem, ...]
    id: str = field(default_factory=make_id)

    def __post_init__(self):
        object.__setattr__(self, 'items', tuple(self.items))


# ============================================================================
# FEED RECORDS
# ============================================================================

@dataclass(frozen=True, slots=True)
class Post:
    """A feed entry. Only posts with by_player=True outlive a refresh."""
    author: str
    role: str
    content: str
    timestamp: datetime
    handle: str = ""
    is_sponsored: bool = False
    by_player: bool = False
    linked_opportunity: Optional[BusinessOpportunity] = None
    linked_asset: Optional[Asset] = None
    linked_market_update: Optional[MarketUpdate] = None
    media: Tuple[str, ...] = ()
    id: str = field(default_factory=make_id)

    def __post_init__(self):
        object.__setattr__(self, 'media', tuple(self.media))
