"""Unit tests for entity validation rules"""

import uuid
import pytest
from datetime import date, timedelta
from decimal import Decimal
from conftest import make_period, make_transaction
from abudget.domain.models import CategoryAllocation, IncomeSource, UserSettings
from abudget.domain.validation import (
    collect_violations,
    validate_budget_period,
    validate_category_allocation,
    validate_date_range,
    validate_decimal_range,
    validate_income_source,
    validate_not_empty,
    validate_percentages,
    validate_transaction,
    validate_transaction_strict,
)
from abudget.domain.exceptions import (
    AllocationBudgetPeriodRequired,
    AllocationCategoryRequired,
    AmountInvalid,
    DuplicateAllocation,
    InvalidDateRange,
    NoIncome,
    PercentageSumInvalid,
    PeriodOverlap,
    RequiredFieldMissing,
)


def test_valid_transaction_passes():
    validate_transaction(make_transaction(date(2025, 1, 10), "12.50", tax="1.00"), today=date(2025, 1, 10))


@pytest.mark.parametrize(
    "sub_total,tax",
    [("0", None), ("-5", None), ("10", "-0.01")],
)
def test_transaction_amounts(sub_total, tax):
    """Test subtotal must be positive and tax non-negative"""
    with pytest.raises(AmountInvalid):
        validate_transaction(make_transaction(date(2025, 1, 10), sub_total, tax=tax), today=date(2025, 2, 1))


def test_transaction_merchant_required():
    with pytest.raises(RequiredFieldMissing) as exc:
        validate_transaction(make_transaction(date(2025, 1, 10), "5", merchant="  "), today=date(2025, 2, 1))
    assert exc.value.field == "merchant"


def test_transaction_date_not_in_future():
    future = date.today() + timedelta(days=1)
    with pytest.raises(InvalidDateRange):
        validate_transaction(make_transaction(future, "5"))


def test_strict_transaction_requires_category():
    transaction = make_transaction(date(2025, 1, 10), "5")
    with pytest.raises(RequiredFieldMissing):
        validate_transaction_strict(transaction, today=date(2025, 2, 1))

    transaction.category_id = uuid.uuid4()
    validate_transaction_strict(transaction, today=date(2025, 2, 1))


def test_income_source_rules():
    with pytest.raises(AmountInvalid):
        validate_income_source(IncomeSource(id=uuid.uuid4(), source_name="Salary", amount=Decimal("0")))
    with pytest.raises(RequiredFieldMissing):
        validate_income_source(IncomeSource(id=uuid.uuid4(), source_name="", amount=Decimal("1")))


def test_allocation_rules():
    """Test amount and relationship checks in order"""
    base = dict(id=uuid.uuid4(), category_id=uuid.uuid4(), budget_period_id=uuid.uuid4())

    validate_category_allocation(CategoryAllocation(planned_amount=Decimal("0"), **base))

    with pytest.raises(AmountInvalid):
        validate_category_allocation(CategoryAllocation(planned_amount=Decimal("-1"), **base))
    with pytest.raises(AmountInvalid):
        validate_category_allocation(
            CategoryAllocation(planned_amount=Decimal("1"), carry_over_amount=Decimal("-1"), **base)
        )
    with pytest.raises(AllocationCategoryRequired):
        validate_category_allocation(
            CategoryAllocation(id=uuid.uuid4(), category_id=None, budget_period_id=uuid.uuid4(), planned_amount=Decimal("1"))
        )
    with pytest.raises(AllocationBudgetPeriodRequired):
        validate_category_allocation(
            CategoryAllocation(id=uuid.uuid4(), category_id=uuid.uuid4(), budget_period_id=None, planned_amount=Decimal("1"))
        )


def test_budget_period_full_validation(food):
    """Test structure, allocations, uniqueness and overlap"""
    existing = make_period(date(2025, 1, 1), date(2025, 1, 31))

    validate_budget_period(make_period(date(2025, 2, 1), date(2025, 2, 28), allocations=((food.id, "10", "0"),)), [existing])

    with pytest.raises(NoIncome):
        validate_budget_period(make_period(date(2025, 2, 1), date(2025, 2, 28), incomes=()))

    with pytest.raises(DuplicateAllocation):
        validate_budget_period(
            make_period(date(2025, 2, 1), date(2025, 2, 28), allocations=((food.id, "10", "0"), (food.id, "5", "0")))
        )

    with pytest.raises(PeriodOverlap):
        validate_budget_period(make_period(date(2025, 1, 20), date(2025, 2, 28)), [existing])


def test_percentages_from_settings():
    validate_percentages(UserSettings(id=uuid.uuid4()))

    with pytest.raises(PercentageSumInvalid):
        validate_percentages(UserSettings(id=uuid.uuid4(), needs_percentage=Decimal("60")))


def test_general_helpers():
    validate_not_empty("x", "name")
    with pytest.raises(RequiredFieldMissing):
        validate_not_empty(None, "name")

    with pytest.raises(InvalidDateRange):
        validate_date_range(date(2025, 1, 2), date(2025, 1, 1))

    validate_decimal_range(Decimal("5"), Decimal("0"), Decimal("10"), "Amount")
    with pytest.raises(AmountInvalid):
        validate_decimal_range(Decimal("11"), Decimal("0"), Decimal("10"), "Amount")


def test_collect_violations_accumulates_across_checks():
    """Test one violation per check, all checks run"""
    bad_period = make_period(date(2025, 1, 31), date(2025, 1, 1), incomes=())
    bad_settings = UserSettings(id=uuid.uuid4(), wants_percentage=Decimal("10"))

    violations = collect_violations(
        lambda: validate_budget_period(bad_period),
        lambda: validate_percentages(bad_settings),
        lambda: validate_not_empty("ok", "name"),
    )

    assert [type(v) for v in violations] == [InvalidDateRange, PercentageSumInvalid]
