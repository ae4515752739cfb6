"""
test_lifecycle_offers.py - Unit tests for the opportunity and business lifecycle

Tests:
- Offer generation (business pitches and investment tips)
- Accept / reject / expire transitions and their replies
- Terminal states are final
- Business acceptance side effects
- Exit offers and business sales
"""

import pytest
from datetime import timedelta
from decimal import Decimal

from hustle import AccountType, OpResult, OpportunitySize, OpportunityStatus, OpportunityType
from hustle.catalog import ACCOUNTANT, EXIT_ADVISOR, SYSTEM
from hustle.content import TOO_LATE_RESPONSES
from hustle.core import LARGE_OPPORTUNITY_THRESHOLD
from hustle.lifecycle import (
    accept_opportunity, check_startup_exit_opportunities, dismiss_exit_offer,
    expire_pending_offers, generate_investment_dm, generate_opportunity,
    handle_opportunity_response, sell_business,
)


class TestGeneration:
    """Tests for offer generation."""

    def test_business_pitch_is_pending_offer(self, state, rng, now):
        messages = []
        for i in range(20):
            post, message = generate_opportunity(state, rng, OpportunitySize.LARGE,
                                                 now + timedelta(minutes=i))
            assert post is not None
            if message is not None:
                messages.append((post, message))
        assert messages
        for post, message in messages:
            assert message.is_pending
            assert message.opportunity.kind is OpportunityType.STARTUP
            business = message.opportunity.business
            assert business.setup_cost >= LARGE_OPPORTUNITY_THRESHOLD
            assert message.opportunity.required_investment == business.setup_cost
            assert post.linked_opportunity == business
            assert post.is_sponsored

    def test_small_pitches_are_small(self, state, rng, now):
        for i in range(20):
            _, message = generate_opportunity(state, rng, OpportunitySize.SMALL,
                                              now + timedelta(minutes=i))
            if message is not None:
                assert message.opportunity.business.setup_cost < LARGE_OPPORTUNITY_THRESHOLD

    def test_offer_tagged_with_cycle(self, state, rng, now):
        state.refresh_count = 3
        message = generate_investment_dm(state, rng, now)
        assert message.cycle == 3

    def test_investment_dm(self, state, rng, now):
        message = generate_investment_dm(state, rng, now)
        assert message.is_pending
        offer = message.opportunity
        assert offer.kind is OpportunityType.INVESTMENT
        assert offer.asset is not None
        assert offer.required_investment == offer.asset.current_price
        assert message.sender_id.startswith("analyst_")


class TestResponses:
    """Tests for handle_opportunity_response()."""

    def test_accept_writes_both_replies(self, state, rng, now, add_offer):
        offer = add_offer(state)
        result = handle_opportunity_response(state, offer.id, True, now, rng)
        assert result is OpResult.APPLIED
        stored = state.messages.get(offer.id)
        assert stored.status is OpportunityStatus.ACCEPTED
        assert stored.is_read

        thread = state.messages.thread_messages("vc_partner")
        assert len(thread) == 3
        assert thread[1].from_player
        assert thread[1].sender_name == "Ada"
        assert not thread[2].from_player
        assert thread[2].sender_name == "Sarah Chen"
        assert [m.sequence for m in thread] == [1, 2, 3]

    def test_reject(self, state, rng, now, add_offer):
        offer = add_offer(state)
        assert handle_opportunity_response(state, offer.id, False, now, rng) is OpResult.APPLIED
        assert state.messages.get(offer.id).status is OpportunityStatus.REJECTED

    def test_second_response_rejected(self, state, rng, now, add_offer):
        offer = add_offer(state)
        handle_opportunity_response(state, offer.id, True, now, rng)
        count = len(state.messages)
        result = handle_opportunity_response(state, offer.id, False, now, rng)
        assert result is OpResult.INVALID_STATE
        assert state.messages.get(offer.id).status is OpportunityStatus.ACCEPTED
        assert len(state.messages) == count

    def test_plain_message_rejected(self, state, rng, now):
        result = handle_opportunity_response(state, "onboarding-1", True, now, rng)
        assert result is OpResult.INVALID_STATE

    def test_unknown_message(self, state, rng, now):
        assert handle_opportunity_response(state, "nope", True, now, rng) is OpResult.NOT_FOUND


class TestExpiry:
    """Tests for expire_pending_offers()."""

    def test_expires_offers_from_earlier_cycles(self, state, rng, now, add_offer):
        old = add_offer(state, sender_id="old_partner", cycle=0)
        state.refresh_count = 1
        fresh = add_offer(state, sender_id="new_partner", cycle=1)

        assert expire_pending_offers(state, now, rng) == 1
        assert state.messages.get(old.id).status is OpportunityStatus.EXPIRED
        assert state.messages.get(fresh.id).is_pending

    def test_expiry_writes_only_counterparty_note(self, state, rng, now, add_offer):
        add_offer(state, cycle=0)
        state.refresh_count = 1
        expire_pending_offers(state, now, rng)
        thread = state.messages.thread_messages("vc_partner")
        assert len(thread) == 2
        assert not thread[1].from_player
        titles = [t.replace("{title}", "Health Tech") for t in TOO_LATE_RESPONSES]
        assert thread[1].content in titles

    def test_expired_offer_cannot_be_accepted(self, state, rng, now, add_offer):
        old = add_offer(state, cycle=0)
        state.refresh_count = 1
        expire_pending_offers(state, now, rng)
        assert handle_opportunity_response(state, old.id, True, now, rng) is OpResult.INVALID_STATE


class TestAcceptance:
    """Tests for accept_opportunity()."""

    def test_adds_business_with_fresh_id(self, state, rng, now, make_business):
        template = make_business(id="template-aiht")
        owned = accept_opportunity(state, template, now, rng)
        assert owned.id != template.id
        assert state.active_businesses == {owned.id: owned}
        assert state.startup_owned

    def test_same_template_twice_gives_two_holdings(self, state, rng, now, make_business):
        template = make_business(id="template-aiht")
        accept_opportunity(state, template, now, rng)
        accept_opportunity(state, template, now + timedelta(seconds=5), rng)
        assert len(state.active_businesses) == 2

    def test_celebration_and_confirmations(self, state, rng, now, make_business):
        owned = accept_opportunity(state, make_business(), now, rng)
        assert state.feed[0].linked_opportunity == owned
        assert "{" not in state.feed[0].content

        system = state.messages.thread_messages(SYSTEM.sender_id)
        assert system[-1].content == (
            "Investment confirmed! You now own 20% of Health Tech. "
            "Your monthly share of the cash flow will be $1,600."
        )
        accountant = state.messages.thread_messages(ACCOUNTANT.sender_id)
        assert "Health Tech" in accountant[-1].content


class TestExit:
    """Tests for exit offers and sales."""

    def test_one_offer_at_a_time(self, state, rng, now, make_business):
        first = make_business(current_exit_multiple=6)
        second = make_business(title="Other", symbol="EVNT", current_exit_multiple=6)
        state.active_businesses[first.id] = first
        state.active_businesses[second.id] = second

        assert check_startup_exit_opportunities(state, now, rng) == first
        assert check_startup_exit_opportunities(state, now, rng) is None
        assert state.exit_offer_id == first.id

    def test_nothing_ready(self, state, rng, now, make_business):
        business = make_business()
        state.active_businesses[business.id] = business
        assert check_startup_exit_opportunities(state, now, rng) is None
        assert state.exit_offer_id is None

    def test_sell_into_checking(self, state, rng, now, make_business):
        business = make_business()
        state.active_businesses[business.id] = business
        state.exit_offer_id = business.id

        result, proceeds = sell_business(state, business.id, now, rng)
        assert result is OpResult.APPLIED
        assert proceeds == Decimal("76800")
        assert state.balance(AccountType.CHECKING) == Decimal("77800")
        assert state.active_businesses == {}
        assert state.exit_offer_id is None
        assert state.transactions[-1].description == "Sale of Health Tech"
        note = state.messages.thread_messages(EXIT_ADVISOR.sender_id)[-1]
        assert "Sale of Health Tech completed" in note.content
        assert "Checking" in note.content

    def test_sell_into_family_trust_after_level_up(self, state, rng, now, make_business):
        business = make_business()
        state.active_businesses[business.id] = business
        state.has_leveled_up = True
        sell_business(state, business.id, now, rng)
        assert state.balance(AccountType.FAMILY_TRUST) == Decimal("76800")
        assert state.balance(AccountType.CHECKING) == Decimal("1000")

    def test_sell_unknown(self, state, rng, now):
        result, proceeds = sell_business(state, "nope", now, rng)
        assert result is OpResult.NOT_FOUND
        assert proceeds == Decimal("0")

    def test_dismiss(self, state):
        state.exit_offer_id = "some-business"
        assert dismiss_exit_offer(state) is OpResult.APPLIED
        assert state.exit_offer_id is None
        assert dismiss_exit_offer(state) is OpResult.ALREADY_APPLIED
