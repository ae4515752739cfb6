"""
ledger.py - Accounts and Transaction Log

Pure functions over GameState for everything that moves money between named
balances:

    transfer / pay_credit / use_credit     user-initiated movements
    fund_purchase                          debit for a trade or an accepted deal
    record_monthly_transactions            salary, dividends and bills (once per month)
    apply_unexpected_expense               life events

Every mutating function validates first and mutates second: a result other
than APPLIED means no balance changed and no Transaction was appended.

Cash accounts (checking, savings, family trust) hold positive balances. Card
accounts hold the amount owed; spending on a card increases it and paying the
card reduces it.
"""

from __future__ import annotations
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple

from .core import (
    AccountType, OpResult, Player, Role, Transaction,
    BLACK_CARD_LIMIT, CASH_ACCOUNTS, DEFAULT_CREDIT_LIMIT, EQUITY_DIVIDEND_YIELD,
    FAMILY_TRUST_TIER, PLATINUM_CARD_LIMIT, ZERO, parse_amount, to_decimal,
)
from .catalog import DEFAULT_ROLE_ID, get_goal, get_role, UnexpectedExpense
from .state import GameState


# ============================================================================
# ROLE AND TIER
# ============================================================================

def player_role(state: GameState) -> Role:
    """The player's role, falling back to the default role for unknown ids."""
    return get_role(state.player.role_id) or get_role(DEFAULT_ROLE_ID)


def player_tier(state: GameState) -> int:
    """Role tier, raised to the family-trust tier once the player has leveled up."""
    tier = player_role(state).tier
    if state.has_leveled_up:
        return max(tier, FAMILY_TRUST_TIER)
    return tier


def proceeds_account(state: GameState) -> AccountType:
    """Where business sale proceeds are deposited."""
    if player_tier(state) >= FAMILY_TRUST_TIER:
        return AccountType.FAMILY_TRUST
    return AccountType.CHECKING


# ============================================================================
# CREDIT LIMITS
# ============================================================================

def credit_limit(state: GameState, card: AccountType) -> Decimal:
    if card is AccountType.CREDIT_CARD:
        limit = player_role(state).credit_limit
        return limit if limit > 0 else DEFAULT_CREDIT_LIMIT
    if card is AccountType.PLATINUM_CARD:
        return PLATINUM_CARD_LIMIT
    if card is AccountType.BLACK_CARD:
        return BLACK_CARD_LIMIT
    return ZERO


def is_card_eligible(state: GameState, card: AccountType) -> bool:
    """Standard card always; platinum from a 100k limit; black only at the 1M limit."""
    role_limit = player_role(state).credit_limit
    if card is AccountType.CREDIT_CARD:
        return True
    if card is AccountType.PLATINUM_CARD:
        return role_limit >= PLATINUM_CARD_LIMIT
    if card is AccountType.BLACK_CARD:
        return role_limit == BLACK_CARD_LIMIT
    return False


def available_credit(state: GameState, card: AccountType) -> Decimal:
    if not card.is_credit or not is_card_eligible(state, card):
        return ZERO
    return credit_limit(state, card) - state.balance(card)


# ============================================================================
# AFFORDABILITY PREDICATES
# ============================================================================

def available_funds(state: GameState, account: AccountType) -> Decimal:
    """Spendable amount: balance for cash accounts, available credit for cards."""
    if account.is_credit:
        return available_credit(state, account)
    return state.balance(account)


def can_afford(state: GameState, amount, account: AccountType = AccountType.CHECKING) -> bool:
    amount = parse_amount(amount)
    return amount is not None and amount >= 0 and available_funds(state, account) >= amount


def funding_accounts(state: GameState, amount) -> List[AccountType]:
    """Accounts that could pay amount right now, in display order."""
    return [account for account in AccountType if can_afford(state, amount, account)]


def _validate_funding(state: GameState, account: AccountType,
                      amount: Optional[Decimal]) -> Tuple[bool, OpResult]:
    if not isinstance(account, AccountType):
        return False, OpResult.ACCOUNT_NOT_FOUND
    if account.is_credit and not is_card_eligible(state, account):
        return False, OpResult.ACCOUNT_NOT_FOUND
    if amount is None or amount <= 0:
        return False, OpResult.INVALID_STATE
    if available_funds(state, account) < amount:
        return False, OpResult.INSUFFICIENT_FUNDS
    return True, OpResult.APPLIED


# ============================================================================
# POSTING
# ============================================================================

def _post(state: GameState, account: AccountType, amount: Decimal, is_income: bool,
          description: str, date: datetime) -> Transaction:
    """Apply amount to one balance and append the matching Transaction."""
    inflow = amount if is_income else -amount
    if account.is_credit:
        state.balances[account] = state.balance(account) - inflow
    else:
        state.balances[account] = state.balance(account) + inflow
    tx = Transaction(date=date, description=description, amount=amount,
                     is_income=is_income, account=account)
    state.transactions.append(tx)
    return tx


def credit(state: GameState, account: AccountType, amount, description: str,
           date: datetime) -> Transaction:
    """Money in. No validation: income always lands."""
    return _post(state, account, to_decimal(amount), True, description, date)


def debit(state: GameState, account: AccountType, amount, description: str,
          date: datetime) -> Transaction:
    """Money out without a funds check (bills may overdraw checking)."""
    return _post(state, account, to_decimal(amount), False, description, date)


def fund_purchase(state: GameState, account: AccountType, amount, description: str,
                  date: datetime) -> OpResult:
    """Pay for something from a cash account or an eligible card, if it can cover it."""
    amount = parse_amount(amount)
    valid, result = _validate_funding(state, account, amount)
    if not valid:
        return result
    debit(state, account, amount, description, date)
    return OpResult.APPLIED


# ============================================================================
# USER-INITIATED MOVEMENTS
# ============================================================================

def transfer(state: GameState, source: AccountType, dest: AccountType, amount,
             date: datetime) -> OpResult:
    """
    Move cash between accounts.

    The source must be a cash account. A card destination reduces the amount owed.
    """
    amount = parse_amount(amount)
    if not isinstance(source, AccountType) or not isinstance(dest, AccountType):
        return OpResult.ACCOUNT_NOT_FOUND
    if source not in CASH_ACCOUNTS:
        return OpResult.ACCOUNT_NOT_FOUND
    if dest.is_credit and not is_card_eligible(state, dest):
        return OpResult.ACCOUNT_NOT_FOUND
    if source is dest:
        return OpResult.INVALID_STATE
    valid, result = _validate_funding(state, source, amount)
    if not valid:
        return result

    description = f"Transfer from {source.label} to {dest.label}"
    _post(state, source, amount, False, description, date)
    _post(state, dest, amount, True, description, date)
    return OpResult.APPLIED


def pay_credit(state: GameState, amount, card: AccountType, date: datetime) -> OpResult:
    """Pay down a card from checking."""
    if not isinstance(card, AccountType) or not card.is_credit:
        return OpResult.ACCOUNT_NOT_FOUND
    return transfer(state, AccountType.CHECKING, card, amount, date)


def use_credit(state: GameState, amount, card: AccountType, date: datetime) -> OpResult:
    """Cash advance: charge a card and deposit the cash in checking."""
    amount = parse_amount(amount)
    if not isinstance(card, AccountType) or not card.is_credit:
        return OpResult.ACCOUNT_NOT_FOUND
    valid, result = _validate_funding(state, card, amount)
    if not valid:
        return result
    description = f"Cash advance from {card.label}"
    _post(state, card, amount, False, description, date)
    _post(state, AccountType.CHECKING, amount, True, description, date)
    return OpResult.APPLIED


# ============================================================================
# MONTHLY FIGURES
# ============================================================================

def monthly_salary(state: GameState) -> Decimal:
    return player_role(state).monthly_salary


def monthly_expenses(state: GameState) -> Decimal:
    return player_role(state).expenses.total(state.player.children)


def business_dividends(state: GameState) -> Decimal:
    """Sum over active businesses of cashflow x revenue share."""
    return sum((b.monthly_dividend for b in state.active_businesses.values()), ZERO)


def equity_dividends(state: GameState) -> Decimal:
    value = sum((a.market_value for a in state.equity_portfolio.values()), ZERO)
    return value * EQUITY_DIVIDEND_YIELD


def total_passive_income(state: GameState) -> Decimal:
    return business_dividends(state) + equity_dividends(state)


def monthly_income(state: GameState) -> Decimal:
    return monthly_salary(state) + total_passive_income(state)


def monthly_cashflow(state: GameState) -> Decimal:
    return monthly_income(state) - monthly_expenses(state)


def is_out_of_rat_race(state: GameState) -> bool:
    """Salary plus passive income exceeds expenses."""
    return monthly_income(state) > monthly_expenses(state)


def net_worth(state: GameState) -> Decimal:
    cash = sum((state.balance(a) for a in CASH_ACCOUNTS), ZERO)
    debt = sum((state.balance(a) for a in AccountType if a.is_credit), ZERO)
    holdings = sum((a.market_value for a in state.all_assets()), ZERO)
    stakes = sum((b.player_exit_proceeds for b in state.active_businesses.values()), ZERO)
    return cash + holdings + stakes - debt


def goal_progress(state: GameState) -> Decimal:
    """Net worth as a fraction of the goal price, clamped to [0, 1]."""
    goal = get_goal(state.goal_id) if state.goal_id else None
    if goal is None or goal.price <= 0:
        return ZERO
    return max(ZERO, min(Decimal("1"), net_worth(state) / goal.price))


# ============================================================================
# MONTHLY BOOKING
# ============================================================================

def _same_month(a: Optional[datetime], b: datetime) -> bool:
    return a is not None and a.year == b.year and a.month == b.month


def record_monthly_transactions(state: GameState, date: datetime) -> OpResult:
    """
    Book one month of salary, business dividends and expense lines into checking.

    Only lines with a positive amount are booked. Idempotent within a calendar
    month: a repeat call returns ALREADY_APPLIED without touching anything.
    """
    if _same_month(state.last_recorded_month, date):
        return OpResult.ALREADY_APPLIED

    salary = monthly_salary(state)
    if salary > 0:
        credit(state, AccountType.CHECKING, salary, "Salary", date)

    for business in state.active_businesses.values():
        dividend = business.monthly_dividend
        if dividend > 0:
            credit(state, AccountType.CHECKING, dividend, f"Revenue Share - {business.title}", date)

    for label, amount in player_role(state).expenses.line_items(state.player.children):
        if amount > 0:
            debit(state, AccountType.CHECKING, amount, label, date)

    state.last_recorded_month = date
    return OpResult.APPLIED


def next_payday_date(state: GameState, now: datetime) -> datetime:
    """First day of the month after the last recorded one; now for a fresh game."""
    last = state.last_recorded_month
    if last is None:
        return now
    if last.month == 12:
        return last.replace(year=last.year + 1, month=1, day=1)
    return last.replace(month=last.month + 1, day=1)


# ============================================================================
# LIFE EVENTS
# ============================================================================

def apply_unexpected_expense(state: GameState, expense: UnexpectedExpense,
                             date: datetime) -> Transaction:
    """Unavoidable: debits checking even into a negative balance."""
    return debit(state, AccountType.CHECKING, expense.amount, expense.title, date)


def add_child(state: GameState) -> Player:
    state.player = replace(state.player, children=state.player.children + 1)
    return state.player
