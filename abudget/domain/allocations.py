"""Spent, remaining and carry-over calculations for category allocations"""

import uuid
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from abudget.domain.models import AllocationStatus, BudgetPeriod, CategoryAllocation, PeriodTotals, Transaction
from abudget.domain.categories import CategoryTree
from abudget.utils.date_utils import clamp_date, days_between

ZERO = Decimal("0")


def _in_period(period: BudgetPeriod, transactions: Iterable[Transaction]) -> List[Transaction]:
    return [t for t in transactions if period.contains(t.date)]


def spent_amount(
    category_id: uuid.UUID,
    period: BudgetPeriod,
    transactions: Iterable[Transaction],
    tree: Optional[CategoryTree] = None,
) -> Decimal:
    """
    Total spent against a category within a period.

    A transaction counts when its date falls in [start_date, end_date] and
    either its category or sub-category is category_id or any descendant of
    it in tree. Each transaction is counted at most once. Without a tree
    there is no rollup: only exact category_id matches count.
    """
    matching_ids = tree.subtree_ids(category_id) if tree is not None else {category_id}

    return sum(
        (
            t.total
            for t in _in_period(period, transactions)
            if t.category_id in matching_ids or t.sub_category_id in matching_ids
        ),
        ZERO,
    )


def total_spent(period: BudgetPeriod, transactions: Iterable[Transaction]) -> Decimal:
    """Everything spent in the period regardless of category"""
    return sum((t.total for t in _in_period(period, transactions)), ZERO)


def remaining_amount(allocation: CategoryAllocation, spent: Decimal) -> Decimal:
    """Planned plus carry-over minus spent; negative when over budget"""
    return allocation.planned_amount + allocation.carry_over_amount - spent


def carry_over(previous_allocation: Optional[CategoryAllocation], previous_spent: Decimal) -> Decimal:
    """
    Surplus forwarded from the previous period's allocation.

    Overspending is floored at zero; it never becomes negative carry-over.
    """
    if previous_allocation is None:
        return ZERO
    remainder = remaining_amount(previous_allocation, previous_spent)
    return max(remainder, ZERO)


def carry_overs(
    previous_period: BudgetPeriod,
    previous_transactions: Iterable[Transaction],
    tree: Optional[CategoryTree] = None,
) -> Dict[uuid.UUID, Decimal]:
    """Positive carry-over per category of the previous period"""
    transactions = list(previous_transactions)
    result: Dict[uuid.UUID, Decimal] = {}

    for allocation in previous_period.allocations:
        if allocation.category_id is None:
            continue
        spent = spent_amount(allocation.category_id, previous_period, transactions, tree)
        amount = carry_over(allocation, spent)
        if amount > 0:
            result[allocation.category_id] = amount

    return result


def allocation_status(
    allocation: CategoryAllocation,
    period: BudgetPeriod,
    transactions: Iterable[Transaction],
    tree: Optional[CategoryTree] = None,
) -> AllocationStatus:
    spent = spent_amount(allocation.category_id, period, transactions, tree)
    return AllocationStatus(allocation=allocation, spent=spent, remaining=remaining_amount(allocation, spent))


def allocation_statuses(
    period: BudgetPeriod,
    transactions: Iterable[Transaction],
    tree: Optional[CategoryTree] = None,
) -> List[AllocationStatus]:
    transactions = list(transactions)
    return [
        allocation_status(allocation, period, transactions, tree)
        for allocation in period.allocations
        if allocation.category_id is not None
    ]


def period_totals(
    period: BudgetPeriod,
    transactions: Iterable[Transaction],
    tree: Optional[CategoryTree] = None,
) -> PeriodTotals:
    """
    Income, planned, spent and remaining for a whole period.

    Spent is the sum of spent_amount over every allocated category, so with
    a tree a transaction filed under a child category is counted once per
    allocated ancestor. Remaining is income minus spent.
    """
    transactions = list(transactions)
    income = period.total_income
    planned = period.total_planned
    spent = sum(
        (
            spent_amount(a.category_id, period, transactions, tree)
            for a in period.allocations
            if a.category_id is not None
        ),
        ZERO,
    )

    return PeriodTotals(income=income, planned=planned, spent=spent, remaining=income - spent)


# Budget health


def utilization(planned: Decimal, spent: Decimal) -> Decimal:
    """Spent as a percentage of planned; 0 when nothing is planned"""
    if planned <= 0:
        return ZERO
    return spent / planned * 100


def is_over_budget(allocation: CategoryAllocation, spent: Decimal) -> bool:
    return spent > allocation.total_available


def over_budget_amount(allocation: CategoryAllocation, spent: Decimal) -> Decimal:
    remaining = remaining_amount(allocation, spent)
    return -remaining if remaining < 0 else ZERO


# Projections


def project_end_of_period_spending(current_spent: Decimal, period: BudgetPeriod, as_of: date) -> Decimal:
    """
    Extrapolate spending to the end of the period at the current daily rate.

    Returns current_spent unchanged when no full day has elapsed yet.
    """
    total_days = period.duration_days
    if total_days <= 0:
        return current_spent

    days_elapsed = days_between(period.start_date, min(as_of, period.end_date))
    if days_elapsed <= 0:
        return current_spent

    daily_rate = current_spent / days_elapsed
    return daily_rate * total_days


def daily_spending_limit(
    allocation: CategoryAllocation,
    spent: Decimal,
    period: BudgetPeriod,
    as_of: date,
) -> Decimal:
    """Remaining budget spread evenly over the days left in the period"""
    remaining = remaining_amount(allocation, spent)
    if remaining <= 0:
        return ZERO

    days_remaining = days_between(clamp_date(as_of, period.start_date, period.end_date), period.end_date)
    if days_remaining <= 0:
        return remaining

    return remaining / days_remaining
