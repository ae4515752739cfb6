"""
conftest.py - Shared pytest fixtures for hustle tests

Provides common fixtures used across unit, functional and conformance tests:
- A controllable clock and seeded random generators
- Fresh and funded game states
- Factories for businesses and pending offer messages
- Engines backed by a temporary snapshot file
"""

import pytest
from datetime import datetime, timedelta
from decimal import Decimal

import numpy as np

from hustle import (
    AccountType, BusinessOpportunity, GameEngine, Message, Opportunity,
    OpportunityType, Player, SnapshotStore, new_game_state,
)


FIXED_NOW = datetime(2025, 3, 15, 12, 0, 0)


# =============================================================================
# CLOCK AND RANDOMNESS
# =============================================================================

class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = FIXED_NOW):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    """Clock frozen at FIXED_NOW."""
    return FixedClock()


@pytest.fixture
def now():
    return FIXED_NOW


@pytest.fixture
def rng():
    """Seeded numpy Generator."""
    return np.random.default_rng(1234)


# =============================================================================
# GAME STATES
# =============================================================================

@pytest.fixture
def player():
    return Player(name="Ada", handle="@ada", role_id="junior_developer", id="player-ada")


@pytest.fixture
def state(player, rng):
    """Fresh game: 1000 in checking, onboarding messages, no holdings."""
    return new_game_state(player=player, rng=rng)


@pytest.fixture
def funded_state(state):
    """Fresh game with 10,000 in checking."""
    state.balances[AccountType.CHECKING] = Decimal("10000")
    return state


# =============================================================================
# FACTORIES
# =============================================================================

@pytest.fixture
def make_business():
    """Factory for BusinessOpportunity with the health-tech figures as defaults."""
    def _make(**overrides) -> BusinessOpportunity:
        fields = dict(
            title="Health Tech",
            symbol="AIHT",
            monthly_revenue=12000,
            monthly_expenses=4000,
            setup_cost=75000,
            potential_sale_multiple=Decimal("4.0"),
            revenue_share=20,
        )
        fields.update(overrides)
        return BusinessOpportunity(**fields)
    return _make


@pytest.fixture
def add_offer(make_business):
    """
    Factory that stores a pending business offer message in a state.

    Returns the stored Message.
    """
    def _add(state, sender_id="vc_partner", business=None, timestamp=FIXED_NOW,
             cycle=None) -> Message:
        business = business or make_business()
        opportunity = Opportunity(
            title=business.title,
            description=business.description,
            kind=OpportunityType.STARTUP,
            required_investment=business.setup_cost,
            business=business,
        )
        message = Message(
            sender_id=sender_id,
            sender_name="Sarah Chen",
            sender_role="VC Partner",
            timestamp=timestamp,
            content=f"Pitch for {business.title}",
            opportunity=opportunity,
            cycle=state.refresh_count if cycle is None else cycle,
        )
        _, stored = state.messages.add(message)
        return stored
    return _add


# =============================================================================
# ENGINES
# =============================================================================

@pytest.fixture
def snapshot_path(tmp_path):
    return tmp_path / "save.json"


@pytest.fixture
def engine(snapshot_path, clock):
    """Seeded engine persisting to a temporary file."""
    return GameEngine(store=SnapshotStore(snapshot_path), seed=7, clock=clock)
