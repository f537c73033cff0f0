"""Validation rules applied to every entity before it reaches storage"""

from datetime import date
from decimal import Decimal
from typing import Callable, Iterable, List, Optional

from abudget.domain.models import BudgetPeriod, CategoryAllocation, IncomeSource, Transaction, UserSettings
from abudget.domain.exceptions import (
    AllocationBudgetPeriodRequired,
    AllocationCategoryRequired,
    AmountInvalid,
    DuplicateAllocation,
    InvalidDateRange,
    RequiredFieldMissing,
    ValidationError,
)
from abudget.domain import periods, percentages


# General helpers


def validate_not_empty(value: Optional[str], field_name: str) -> None:
    if value is None or not value.strip():
        raise RequiredFieldMissing(field_name)


def validate_date_range(start_date: date, end_date: date) -> None:
    if end_date <= start_date:
        raise InvalidDateRange("End date must be after start date")


def validate_decimal_range(value: Decimal, minimum: Decimal, maximum: Decimal, field_name: str) -> None:
    if value < minimum or value > maximum:
        raise AmountInvalid(f"{field_name} must be between {minimum} and {maximum}")


# Transactions


def validate_transaction(transaction: Transaction, today: Optional[date] = None) -> None:
    """Sub-total positive, tax non-negative, merchant present, date not in the future"""
    if transaction.sub_total <= 0:
        raise AmountInvalid("Subtotal must be greater than 0")

    if transaction.tax is not None and transaction.tax < 0:
        raise AmountInvalid("Tax cannot be negative")

    validate_not_empty(transaction.merchant, "merchant")

    if transaction.date > (today or date.today()):
        raise InvalidDateRange("Transaction date cannot be in the future")


def validate_transaction_strict(transaction: Transaction, today: Optional[date] = None) -> None:
    """Basic rules plus a required category"""
    validate_transaction(transaction, today)
    if transaction.category_id is None:
        raise RequiredFieldMissing("category")


# Income and allocations


def validate_income_source(income: IncomeSource) -> None:
    if income.amount <= 0:
        raise AmountInvalid("Income amount must be greater than 0")
    validate_not_empty(income.source_name, "income source name")


def validate_category_allocation(allocation: CategoryAllocation) -> None:
    if allocation.planned_amount < 0:
        raise AmountInvalid("Planned amount cannot be negative")

    if allocation.carry_over_amount < 0:
        raise AmountInvalid("Carry over amount cannot be negative")

    if allocation.category_id is None:
        raise AllocationCategoryRequired()

    if allocation.budget_period_id is None:
        raise AllocationBudgetPeriodRequired()


def validate_unique_allocations(allocations: Iterable[CategoryAllocation]) -> None:
    """At most one allocation per category"""
    seen = set()
    for allocation in allocations:
        if allocation.category_id in seen:
            raise DuplicateAllocation(allocation.category_id)
        seen.add(allocation.category_id)


# Periods


def validate_budget_period(period: BudgetPeriod, existing_periods: Iterable[BudgetPeriod] = ()) -> None:
    """
    Full pre-commit check for a period with its income and allocations.

    Order: structure, allocation fields, allocation uniqueness, overlap.
    """
    periods.validate_structure(period)

    for allocation in period.allocations:
        validate_category_allocation(allocation)

    validate_unique_allocations(period.allocations)

    periods.validate_no_overlap(period, existing_periods)


# Settings


def validate_percentages(settings: UserSettings) -> None:
    percentages.validate_allocation(
        settings.needs_percentage,
        settings.wants_percentage,
        settings.savings_percentage,
    )


def collect_violations(*checks: Callable[[], None]) -> List[ValidationError]:
    """
    Run several independent checks and gather the first violation of each.

    Non-validation exceptions propagate.
    """
    violations: List[ValidationError] = []
    for check in checks:
        try:
            check()
        except ValidationError as e:
            violations.append(e)
    return violations
