"""Compose a new period draft from the previous period"""

import uuid
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional, Set

from abudget.domain.models import BudgetPeriod, CategoryAllocation, IncomeSource, Methodology, Transaction
from abudget.domain.categories import CategoryTree
from abudget.domain.drafts import BudgetPeriodDraft, CreationStep
from abudget.domain import allocations as engine

ONE = Decimal("1")


def copy_income_sources(period: BudgetPeriod, adjustment_factor: Decimal = ONE) -> List[IncomeSource]:
    """Income sources with fresh ids, same names, amounts scaled by adjustment_factor"""
    return [
        IncomeSource(id=uuid.uuid4(), source_name=income.source_name, amount=income.amount * adjustment_factor)
        for income in period.income_sources
    ]


def copy_allocations(
    previous_period: BudgetPeriod,
    previous_transactions: Iterable[Transaction],
    budget_period_id: uuid.UUID,
    include_carry_over: bool = True,
    adjustment_factor: Decimal = ONE,
    category_ids: Optional[Set[uuid.UUID]] = None,
    tree: Optional[CategoryTree] = None,
) -> List[CategoryAllocation]:
    """
    Allocations for the new period derived from the previous one.

    Planned amounts are copied (optionally scaled). Carry-over is the
    previous allocation's unspent surplus, floored at zero, measured
    against the unscaled previous figures. category_ids limits the copy to
    a subset of categories. Allocations without a category are skipped.
    """
    transactions = list(previous_transactions)
    result = []

    for allocation in previous_period.allocations:
        if allocation.category_id is None:
            continue
        if category_ids is not None and allocation.category_id not in category_ids:
            continue

        carried = Decimal("0")
        if include_carry_over:
            spent = engine.spent_amount(allocation.category_id, previous_period, transactions, tree)
            carried = engine.carry_over(allocation, spent)

        result.append(
            CategoryAllocation(
                id=uuid.uuid4(),
                category_id=allocation.category_id,
                budget_period_id=budget_period_id,
                planned_amount=allocation.planned_amount * adjustment_factor,
                carry_over_amount=carried,
            )
        )

    return result


def prefill(
    previous_period: BudgetPeriod,
    previous_transactions: Iterable[Transaction],
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    methodology: Optional[Methodology] = None,
    tree: Optional[CategoryTree] = None,
) -> BudgetPeriodDraft:
    """
    Draft a new period seeded from previous_period.

    The draft is never persisted directly: it still has to advance through
    committing like any hand-built draft. Without both dates the draft
    waits at the date range step, otherwise at the allocations step.
    """
    draft_id = uuid.uuid4()
    has_dates = start_date is not None and end_date is not None

    return BudgetPeriodDraft(
        id=draft_id,
        step=CreationStep.SETTING_ALLOCATIONS if has_dates else CreationStep.SETTING_DATE_RANGE,
        methodology=methodology or previous_period.methodology,
        start_date=start_date,
        end_date=end_date,
        income_sources=tuple(copy_income_sources(previous_period)),
        allocations=tuple(copy_allocations(previous_period, previous_transactions, draft_id, tree=tree)),
    )
