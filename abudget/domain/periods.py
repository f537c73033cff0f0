"""Budget period structure and non-overlap validation"""

from typing import Iterable, List

from abudget.domain.models import BudgetPeriod
from abudget.domain.exceptions import (
    AmountInvalid,
    InvalidDateRange,
    NoIncome,
    PeriodOverlap,
    RequiredFieldMissing,
)


def validate_structure(period: BudgetPeriod) -> None:
    """
    Check a single period in isolation.

    Raises:
        InvalidDateRange: end date is not strictly after start date
        NoIncome: no income sources declared
        AmountInvalid: an income source amount is zero or negative
        RequiredFieldMissing: an income source has a blank name
    """
    if period.end_date <= period.start_date:
        raise InvalidDateRange("End date must be after start date")

    if not period.income_sources:
        raise NoIncome()

    for income in period.income_sources:
        if income.amount <= 0:
            raise AmountInvalid(f"Income amount must be greater than 0 for '{income.source_name}'")

    for income in period.income_sources:
        if not income.source_name or not income.source_name.strip():
            raise RequiredFieldMissing("income source name")


def periods_overlap(a: BudgetPeriod, b: BudgetPeriod) -> bool:
    """Closed-interval intersection; a shared boundary day counts as overlap"""
    return a.start_date <= b.end_date and a.end_date >= b.start_date


def find_overlaps(period: BudgetPeriod, existing_periods: Iterable[BudgetPeriod]) -> List[BudgetPeriod]:
    """Every existing period (other than itself) that intersects period"""
    return [
        existing
        for existing in existing_periods
        if existing.id != period.id and periods_overlap(period, existing)
    ]


def validate_no_overlap(period: BudgetPeriod, existing_periods: Iterable[BudgetPeriod]) -> None:
    """
    Reject period if it intersects any existing period.

    An existing entry with the same id is the period being edited and is
    skipped. Raises PeriodOverlap carrying the bounds of the first conflict.
    """
    for existing in existing_periods:
        if existing.id == period.id:
            continue
        if periods_overlap(period, existing):
            raise PeriodOverlap(existing.start_date, existing.end_date)


def has_overlapping_periods(periods: List[BudgetPeriod]) -> bool:
    """Pairwise check over a whole set of periods"""
    for i, first in enumerate(periods):
        for second in periods[i + 1:]:
            if first.id != second.id and periods_overlap(first, second):
                return True
    return False
