"""
hustle - Personal-Finance Life Simulation Engine

Accounts, portfolios, business deals, a refresh-driven event scheduler and a
threaded inbox, all over one explicit GameState.

Usage:
    from hustle import GameEngine, SnapshotStore, AccountType, OpResult

    engine = GameEngine(store=SnapshotStore("save.json"), seed=42)
    engine.new_game("Ada", "@ada", role_id="junior_developer")

    engine.refresh()
    engine.buy("BTC", "0.01", funding_account=AccountType.CHECKING)

    for message in engine.state.messages.pending_messages():
        result = engine.respond_to_opportunity(message.id, accepted=False)
        assert result is OpResult.APPLIED
"""

# Core types
from .core import (
    OpResult,
    AccountType,
    AssetType,
    OpportunityType,
    OpportunitySize,
    OpportunityStatus,
    EngineError,
    SnapshotError,
    RoleExpenses,
    Role,
    Goal,
    Transaction,
    Player,
    Asset,
    BusinessOpportunity,
    Opportunity,
    Message,
    MarketUpdateItem,
    MarketUpdate,
    Post,
    make_id,
)

# Catalogs
from .catalog import ROLES, GOALS, BUSINESS_TEMPLATES, get_role, get_goal

# State
from .state import GameState, new_game_state

# Messaging
from .messaging import MessageStore, Thread, ThreadSummary, compose

# Scheduler
from .scheduled_events import (
    DayScheduler,
    SchedulerConfig,
    RefreshContext,
    RefreshReport,
    draw_day_type,
    DEFAULT_DAY_WEIGHTS,
    NOTIFY_EXIT_OFFER,
    NOTIFY_DRAFT_POST,
    NOTIFY_INVESTMENT_PURCHASE,
)
from .event_handlers import create_default_scheduler

# Persistence
from .persistence import SnapshotStore, encode_state, decode_state, dumps, loads

# Controller
from .engine import GameEngine

__all__ = [
    # Core
    'OpResult', 'AccountType', 'AssetType', 'OpportunityType', 'OpportunitySize',
    'OpportunityStatus', 'EngineError', 'SnapshotError',
    'RoleExpenses', 'Role', 'Goal', 'Transaction', 'Player', 'Asset',
    'BusinessOpportunity', 'Opportunity', 'Message', 'MarketUpdateItem',
    'MarketUpdate', 'Post', 'make_id',
    # Catalogs
    'ROLES', 'GOALS', 'BUSINESS_TEMPLATES', 'get_role', 'get_goal',
    # State
    'GameState', 'new_game_state',
    # Messaging
    'MessageStore', 'Thread', 'ThreadSummary', 'compose',
    # Scheduler
    'DayScheduler', 'SchedulerConfig', 'RefreshContext', 'RefreshReport',
    'draw_day_type', 'DEFAULT_DAY_WEIGHTS', 'create_default_scheduler',
    'NOTIFY_EXIT_OFFER', 'NOTIFY_DRAFT_POST', 'NOTIFY_INVESTMENT_PURCHASE',
    # Persistence
    'SnapshotStore', 'encode_state', 'decode_state', 'dumps', 'loads',
    # Controller
    'GameEngine',
]

__version__ = '1.0.0'
