"""
lifecycle.py - Opportunity and Business Lifecycle

State machine for offers embedded in messages and the businesses they create:

    Offered(pending) --accept--> Accepted(active business) --sell--> Sold
    Offered(pending) --reject--> Rejected
    Offered(pending) --expire--> Expired

PENDING is the only non-terminal message status. handle_opportunity_response()
refuses to touch a message that is not pending, so every offer reaches exactly
one terminal state and never returns to pending.

Funding an accepted offer is the caller's job (GameEngine debits the chosen
account first and only then calls accept_opportunity()).
"""

from __future__ import annotations
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Optional, Tuple

from .core import (
    BusinessOpportunity, Message, OpResult, Opportunity, OpportunitySize,
    OpportunityStatus, OpportunityType, Post, ZERO, make_id,
)
from .catalog import (
    ACCOUNTANT, BUSINESS_TEMPLATES, CRYPTO_ANALYSTS, CRYPTO_OFFERINGS, EXIT_ADVISOR,
    STOCK_ANALYSTS, STOCK_OFFERINGS, SYSTEM, Contact, templates_for_size,
)
from .content import (
    ACCOUNTANT_CONFIRMATIONS, CELEBRATION_TEMPLATES, COUNTERPARTY_FOLLOW_UPS,
    COUNTERPARTY_REJECTION_RESPONSES, TOO_LATE_RESPONSES, USER_ACCEPTANCE_MESSAGES,
    USER_REJECTION_MESSAGES, fill, pick, spin,
)
from .ledger import credit, proceeds_account
from .messaging import compose
from .state import GameState


# Chance that an opportunity slot advertises a tradeable asset instead of a business.
INVESTMENT_POST_PROBABILITY = 0.3


def _money(amount: Decimal) -> str:
    return f"${amount:,.0f}"


def _multiple(multiple: Decimal) -> str:
    return f"{multiple:.1f}x"


def _send(state: GameState, contact: Contact, content: str, now: datetime, rng,
          opportunity: Optional[Opportunity] = None) -> Optional[Message]:
    """Add a message from contact. Returns None when it was a duplicate."""
    message = compose(contact.sender_id, contact.name, contact.role, content, now,
                      rng=rng, cycle=state.refresh_count, opportunity=opportunity)
    result, stored = state.messages.add(message)
    return stored if result is OpResult.APPLIED else None


# ============================================================================
# OFFERING
# ============================================================================

def generate_opportunity(state: GameState, rng, size: OpportunitySize,
                         now: datetime) -> Tuple[Optional[Post], Optional[Message]]:
    """
    Fill one opportunity slot.

    With probability INVESTMENT_POST_PROBABILITY the slot is an informational
    post advertising a tradeable asset (no message, no lifecycle). Otherwise a
    template of the requested size is pitched by DM with a pending offer and
    announced by a feed post.
    """
    if rng.random() < INVESTMENT_POST_PROBABILITY:
        asset = pick(rng, STOCK_OFFERINGS + CRYPTO_OFFERINGS)
        post = Post(
            author="MarketWatch",
            role="Market Analysis",
            handle="@marketwatch",
            content=f"🔥 Hot Investment Opportunity! {asset.name} ({asset.symbol}) "
                    f"trading at {_money(asset.current_price)}.",
            timestamp=now,
            is_sponsored=True,
            linked_asset=asset,
            id=make_id(rng),
        )
        return post, None

    templates = templates_for_size(size) or BUSINESS_TEMPLATES
    template = pick(rng, templates)
    business = replace(template.business, id=make_id(rng))
    opportunity = Opportunity(
        title=business.title,
        description=business.description,
        kind=OpportunityType.STARTUP,
        required_investment=business.setup_cost,
        business=business,
        id=make_id(rng),
    )
    message = _send(state, template.contact, template.pitch, now, rng, opportunity)
    if message is None:
        return None, None

    large = size is OpportunitySize.LARGE
    post = Post(
        author=template.contact.name,
        role=template.contact.role,
        content=("🔥 Exciting Opportunity! DM for details!" if large
                 else "💡 Interesting opportunity. DM me to learn more."),
        timestamp=now,
        is_sponsored=large,
        linked_opportunity=business,
        id=make_id(rng),
    )
    return post, message


def generate_investment_dm(state: GameState, rng, now: datetime) -> Optional[Message]:
    """An analyst tip with a pending investment offer for a listed stock or coin."""
    if rng.random() < 0.5:
        asset = pick(rng, STOCK_OFFERINGS)
        analyst = pick(rng, STOCK_ANALYSTS)
        content = f"💹 {asset.name} is showing strong technical signals. This could be a good entry point."
    else:
        asset = pick(rng, CRYPTO_OFFERINGS)
        analyst = pick(rng, CRYPTO_ANALYSTS)
        content = f"🚀 {asset.name} is showing bullish momentum. Consider adding to your portfolio."

    opportunity = Opportunity(
        title=asset.name,
        description=(f"Add {asset.name} ({asset.symbol}) to your portfolio at the current "
                     f"price of {_money(asset.current_price)}."),
        kind=OpportunityType.INVESTMENT,
        required_investment=asset.current_price,
        asset=asset,
        id=make_id(rng),
    )
    return _send(state, analyst, content, now, rng, opportunity)


# ============================================================================
# RESOLUTION
# ============================================================================

def handle_opportunity_response(state: GameState, message_id: str, accepted: bool,
                                now: datetime, rng, expired: bool = False) -> OpResult:
    """
    Move a pending offer to its terminal status and write the replies.

    Accept/reject append the player's reply and the counterparty's answer to the
    same thread. Expiry appends only the counterparty's "too late" note.
    A message that is not pending returns INVALID_STATE and changes nothing.
    """
    message = state.messages.get(message_id)
    if message is None:
        return OpResult.NOT_FOUND
    if not message.is_pending:
        return OpResult.INVALID_STATE

    if expired:
        status = OpportunityStatus.EXPIRED
    elif accepted:
        status = OpportunityStatus.ACCEPTED
    else:
        status = OpportunityStatus.REJECTED
    state.messages.update(replace(message, status=status, is_read=True))

    if not expired:
        reply = pick(rng, USER_ACCEPTANCE_MESSAGES if accepted else USER_REJECTION_MESSAGES)
        state.messages.add(compose(
            message.sender_id, state.player.name, "You", reply, now,
            rng=rng, cycle=state.refresh_count, from_player=True,
        ))

    if expired:
        answer = fill(pick(rng, TOO_LATE_RESPONSES), title=message.opportunity.title)
    elif accepted:
        answer = pick(rng, COUNTERPARTY_FOLLOW_UPS)
    else:
        answer = pick(rng, COUNTERPARTY_REJECTION_RESPONSES)
    state.messages.add(compose(
        message.sender_id, message.sender_name, message.sender_role, answer, now,
        rng=rng, cycle=state.refresh_count,
    ))
    return OpResult.APPLIED


def expire_pending_offers(state: GameState, now: datetime, rng) -> int:
    """Expire every offer still pending from an earlier refresh cycle. Returns the count."""
    expired = 0
    for message in state.messages.pending_messages():
        if message.cycle < state.refresh_count:
            if handle_opportunity_response(state, message.id, False, now, rng,
                                           expired=True) is OpResult.APPLIED:
                expired += 1
    return expired


def accept_opportunity(state: GameState, business: BusinessOpportunity, now: datetime,
                       rng) -> BusinessOpportunity:
    """
    Add an already-paid-for business to the active set.

    The business gets a fresh id so accepting the same template twice yields two
    independent holdings.
    """
    owned = replace(business, id=make_id(rng))
    state.active_businesses[owned.id] = owned
    state.startup_owned = True

    celebration = spin(fill(pick(rng, CELEBRATION_TEMPLATES), company=owned.title), rng)
    state.feed.insert(0, Post(
        author=state.player.name,
        role=owned.title,
        handle=state.player.handle,
        content=celebration,
        timestamp=now,
        linked_opportunity=owned,
        id=make_id(rng),
    ))

    _send(state, SYSTEM,
          f"Investment confirmed! You now own {owned.revenue_share.normalize():f}% of "
          f"{owned.title}. Your monthly share of the cash flow will be "
          f"{_money(owned.monthly_dividend)}.",
          now, rng)
    _send(state, ACCOUNTANT,
          fill(pick(rng, ACCOUNTANT_CONFIRMATIONS), company=owned.title), now, rng)
    return owned


# ============================================================================
# EXIT
# ============================================================================

def check_startup_exit_opportunities(state: GameState, now: datetime,
                                     rng) -> Optional[BusinessOpportunity]:
    """
    Surface the first business whose multiple reached 1.2x its target.

    Only one offer is open at a time; while one is open nothing new surfaces.
    """
    if state.exit_offer_id in state.active_businesses:
        return None
    state.exit_offer_id = None
    for business in state.active_businesses.values():
        if business.exit_ready:
            state.exit_offer_id = business.id
            _send(state, EXIT_ADVISOR,
                  f"🔥 Hot Exit Opportunity for {business.title}!\n\n"
                  f"Current valuation: {_money(business.current_exit_value)}\n"
                  f"Exit Multiple: {_multiple(business.current_exit_multiple)} annual cash flow\n\n"
                  f"This is significantly above our target exit multiple of "
                  f"{_multiple(business.potential_sale_multiple)}.\n"
                  f"Would you like to explore selling the business at this valuation?",
                  now, rng)
            return business
    return None


def sell_business(state: GameState, business_id: str, now: datetime,
                  rng) -> Tuple[OpResult, Decimal]:
    """
    Sell the player's stake. Returns (result, proceeds).

    proceeds = monthly_cashflow * 12 * current_exit_multiple * revenue_share / 100,
    deposited into the family trust from tier 4 and into checking below it.
    """
    business = state.active_businesses.get(business_id)
    if business is None:
        return OpResult.NOT_FOUND, ZERO

    proceeds = business.player_exit_proceeds
    account = proceeds_account(state)
    credit(state, account, proceeds, f"Sale of {business.title}", now)
    del state.active_businesses[business_id]
    if state.exit_offer_id == business_id:
        state.exit_offer_id = None

    _send(state, EXIT_ADVISOR,
          f"🎉 Congratulations! Sale of {business.title} completed!\n\n"
          f"Sale Price: {_money(proceeds)}\n"
          f"Exit Multiple: {_multiple(business.current_exit_multiple)} annual cash flow\n\n"
          f"The funds have been deposited into your {account.label} account.",
          now, rng)
    return OpResult.APPLIED, proceeds


def dismiss_exit_offer(state: GameState) -> OpResult:
    if state.exit_offer_id is None:
        return OpResult.ALREADY_APPLIED
    state.exit_offer_id = None
    return OpResult.APPLIED
