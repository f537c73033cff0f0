"""Bucket percentage reconciliation against user targets"""

from decimal import Decimal
from typing import Dict, Iterable

from abudget.domain.models import (
    Bucket,
    BucketReconciliation,
    BudgetPeriod,
    TargetComparison,
    Transaction,
    UserSettings,
)
from abudget.domain.exceptions import PercentageNegative, PercentageSumInvalid

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def bucket_spending(bucket: Bucket, period: BudgetPeriod, transactions: Iterable[Transaction]) -> Decimal:
    """Total of in-period transactions classified under bucket"""
    return sum(
        (t.total for t in transactions if t.bucket == bucket and period.contains(t.date)),
        ZERO,
    )


def all_bucket_spending(period: BudgetPeriod, transactions: Iterable[Transaction]) -> Dict[Bucket, Decimal]:
    spending = {bucket: ZERO for bucket in Bucket}
    for t in transactions:
        if period.contains(t.date):
            spending[t.bucket] += t.total
    return spending


def safe_percentage(amount: Decimal, income: Decimal) -> Decimal:
    """amount as a percentage of income, 0 when there is no income"""
    if income <= 0:
        return ZERO
    return amount / income * HUNDRED


def actual_percentage(bucket: Bucket, period: BudgetPeriod, transactions: Iterable[Transaction]) -> Decimal:
    """Share of period income spent in bucket; 0 for a period without income"""
    return safe_percentage(bucket_spending(bucket, period, transactions), period.total_income)


def compare_to_target(actual: Decimal, target: Decimal, tolerance_basis_points: int = 0) -> TargetComparison:
    """
    Classify actual against target.

    tolerance_basis_points is hundredths of a percentage point; 500 means
    within 5 points either side counts as on target.
    """
    tolerance = Decimal(tolerance_basis_points) / HUNDRED
    difference = actual - target

    if abs(difference) <= tolerance:
        return TargetComparison.ON_TARGET
    if difference < 0:
        return TargetComparison.UNDER_TARGET
    return TargetComparison.OVER_TARGET


def validate_allocation(needs: Decimal, wants: Decimal, savings: Decimal) -> None:
    """
    Hard check on a needs/wants/savings split.

    Raises PercentageNegative for the first negative bucket (needs, wants,
    savings order), otherwise PercentageSumInvalid unless the sum is exactly
    100. No tolerance applies here.
    """
    for name, value in (("needs", needs), ("wants", wants), ("savings", savings)):
        if value < 0:
            raise PercentageNegative(name)

    total = needs + wants + savings
    if total != HUNDRED:
        raise PercentageSumInvalid(total)


def target_amount(bucket: Bucket, income: Decimal, settings: UserSettings) -> Decimal:
    return income * settings.percentage_for(bucket) / HUNDRED


def variance(bucket: Bucket, period: BudgetPeriod, transactions: Iterable[Transaction], settings: UserSettings) -> Decimal:
    """Spent minus target amount; positive means overspent"""
    return bucket_spending(bucket, period, transactions) - target_amount(bucket, period.total_income, settings)


def bucket_remaining(
    bucket: Bucket, period: BudgetPeriod, transactions: Iterable[Transaction], settings: UserSettings
) -> Decimal:
    return target_amount(bucket, period.total_income, settings) - bucket_spending(bucket, period, transactions)


def reconcile(
    period: BudgetPeriod,
    transactions: Iterable[Transaction],
    settings: UserSettings,
    tolerance_basis_points: int = 0,
) -> Dict[Bucket, BucketReconciliation]:
    """Per-bucket actual vs target report, independent of the period's methodology"""
    income = period.total_income
    spending = all_bucket_spending(period, transactions)

    report = {}
    for bucket in Bucket:
        actual = safe_percentage(spending[bucket], income)
        target = settings.percentage_for(bucket)
        report[bucket] = BucketReconciliation(
            bucket=bucket,
            spent=spending[bucket],
            actual_percentage=actual,
            target_percentage=target,
            target_amount=target_amount(bucket, income, settings),
            comparison=compare_to_target(actual, target, tolerance_basis_points),
        )
    return report
