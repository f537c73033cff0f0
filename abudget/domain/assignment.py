"""Transaction to budget period assignment by date containment"""

import uuid
from typing import Dict, Iterable, List, Optional

from abudget.domain.models import BudgetPeriod, ReassignmentResult, Transaction


def assign(transaction: Transaction, periods: Iterable[BudgetPeriod]) -> Optional[BudgetPeriod]:
    """
    The period whose inclusive bounds contain the transaction date, or None.

    Periods are expected to be mutually non-overlapping. If they are not,
    the match with the earliest start date is returned.
    """
    for period in sorted(periods, key=lambda p: (p.start_date, p.end_date)):
        if period.contains(transaction.date):
            return period
    return None


def is_orphaned(transaction: Transaction, periods: Iterable[BudgetPeriod]) -> bool:
    """True when no period covers the transaction date"""
    return assign(transaction, periods) is None


def assign_all(transactions: Iterable[Transaction], periods: Iterable[BudgetPeriod]) -> Dict[uuid.UUID, List[Transaction]]:
    """Group transactions by the id of the period they fall in; orphans are left out"""
    periods = list(periods)
    assignments: Dict[uuid.UUID, List[Transaction]] = {}
    for transaction in transactions:
        period = assign(transaction, periods)
        if period is not None:
            assignments.setdefault(period.id, []).append(transaction)
    return assignments


def find_orphaned(transactions: Iterable[Transaction], periods: Iterable[BudgetPeriod]) -> List[Transaction]:
    periods = list(periods)
    return [t for t in transactions if is_orphaned(t, periods)]


def orphan_reason(transaction: Transaction, periods: Iterable[BudgetPeriod]) -> Optional[str]:
    """Why a transaction is unassigned, or None when it is assigned"""
    periods = list(periods)
    if not periods:
        return "no_periods"
    if assign(transaction, periods) is not None:
        return None
    if transaction.date < min(p.start_date for p in periods):
        return "before_earliest_period"
    if transaction.date > max(p.end_date for p in periods):
        return "after_latest_period"
    return "gap_between_periods"


def suggest_period(transaction: Transaction, periods: Iterable[BudgetPeriod]) -> Optional[BudgetPeriod]:
    """Period whose start date is nearest the transaction date"""
    periods = list(periods)
    if not periods:
        return None
    return min(periods, key=lambda p: (abs((p.start_date - transaction.date).days), p.start_date))


def reassign_on_period_change(
    changed_period: BudgetPeriod,
    previous_period: Optional[BudgetPeriod],
    transactions: Iterable[Transaction],
    periods: Iterable[BudgetPeriod],
) -> ReassignmentResult:
    """
    Re-derive membership for transactions affected by a period edit.

    Only transactions dated inside the old or new bounds of the changed
    period are considered. periods is the current set; the changed period
    replaces any entry sharing its id. Nothing is mutated or stored.
    """
    current = [p for p in periods if p.id != changed_period.id] + [changed_period]

    affected = [
        t
        for t in transactions
        if changed_period.contains(t.date) or (previous_period is not None and previous_period.contains(t.date))
    ]

    assigned: Dict[uuid.UUID, List[Transaction]] = {}
    orphaned: List[Transaction] = []
    for transaction in affected:
        period = assign(transaction, current)
        if period is None:
            orphaned.append(transaction)
        else:
            assigned.setdefault(period.id, []).append(transaction)

    return ReassignmentResult(assigned=assigned, orphaned=orphaned, total_processed=len(affected))
