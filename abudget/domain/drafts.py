"""In-memory budget period drafts for multi-step period creation"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from abudget.domain.models import BudgetPeriod, CategoryAllocation, IncomeSource, Methodology
from abudget.domain.exceptions import DraftStateError, NoIncome, RequiredFieldMissing, ValidationError
from abudget.domain import periods, validation


class CreationStep(str, Enum):
    SELECTING_METHODOLOGY = "selectingMethodology"
    SETTING_DATE_RANGE = "settingDateRange"
    ENTERING_INCOME = "enteringIncome"
    SETTING_ALLOCATIONS = "settingAllocations"
    COMMITTING = "committing"
    PERSISTED = "persisted"
    ABORTED = "aborted"


_FORWARD = {
    CreationStep.SELECTING_METHODOLOGY: CreationStep.SETTING_DATE_RANGE,
    CreationStep.SETTING_DATE_RANGE: CreationStep.ENTERING_INCOME,
    CreationStep.ENTERING_INCOME: CreationStep.SETTING_ALLOCATIONS,
    CreationStep.SETTING_ALLOCATIONS: CreationStep.COMMITTING,
}

_BACKWARD = {after: before for before, after in _FORWARD.items()}

_TERMINAL = {CreationStep.PERSISTED, CreationStep.ABORTED}


@dataclass(frozen=True)
class BudgetPeriodDraft:
    """Immutable snapshot of a period being built; every edit returns a copy"""

    id: uuid.UUID = field(default_factory=uuid.uuid4)
    step: CreationStep = CreationStep.SELECTING_METHODOLOGY
    methodology: Optional[Methodology] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    income_sources: Tuple[IncomeSource, ...] = ()
    allocations: Tuple[CategoryAllocation, ...] = ()


@dataclass(frozen=True)
class StepResult:
    """Draft after an advance attempt plus the violations that blocked it"""

    draft: BudgetPeriodDraft
    errors: List[ValidationError]

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass(frozen=True)
class DraftSummary:
    total_income: Decimal
    total_planned: Decimal
    total_carry_over: Decimal
    total_available: Decimal
    allocated_percentage: Decimal
    remaining_to_allocate: Decimal

    @property
    def is_fully_allocated(self) -> bool:
        return self.remaining_to_allocate == 0

    @property
    def is_over_allocated(self) -> bool:
        return self.remaining_to_allocate < 0


def from_period(period: BudgetPeriod) -> BudgetPeriodDraft:
    """Draft for editing an existing period in place (same id)"""
    return BudgetPeriodDraft(
        id=period.id,
        step=CreationStep.SETTING_ALLOCATIONS,
        methodology=period.methodology,
        start_date=period.start_date,
        end_date=period.end_date,
        income_sources=tuple(period.income_sources),
        allocations=tuple(period.allocations),
    )


def _editable(draft: BudgetPeriodDraft) -> None:
    if draft.step in _TERMINAL or draft.step == CreationStep.COMMITTING:
        raise DraftStateError(f"Draft cannot be edited while {draft.step.value}")


def with_methodology(draft: BudgetPeriodDraft, methodology: Methodology) -> BudgetPeriodDraft:
    _editable(draft)
    return replace(draft, methodology=methodology)


def with_date_range(draft: BudgetPeriodDraft, start_date: date, end_date: date) -> BudgetPeriodDraft:
    _editable(draft)
    return replace(draft, start_date=start_date, end_date=end_date)


def with_income_sources(draft: BudgetPeriodDraft, income_sources: Iterable[IncomeSource]) -> BudgetPeriodDraft:
    _editable(draft)
    return replace(draft, income_sources=tuple(income_sources))


def with_allocations(draft: BudgetPeriodDraft, allocations: Iterable[CategoryAllocation]) -> BudgetPeriodDraft:
    """Allocations are attached to the draft's period id"""
    _editable(draft)
    return replace(draft, allocations=tuple(replace(a, budget_period_id=draft.id) for a in allocations))


def to_period(draft: BudgetPeriodDraft) -> BudgetPeriod:
    if draft.methodology is None:
        raise RequiredFieldMissing("methodology")
    if draft.start_date is None:
        raise RequiredFieldMissing("start date")
    if draft.end_date is None:
        raise RequiredFieldMissing("end date")

    return BudgetPeriod(
        id=draft.id,
        methodology=draft.methodology,
        start_date=draft.start_date,
        end_date=draft.end_date,
        income_sources=list(draft.income_sources),
        allocations=list(draft.allocations),
    )


def _check_dates(draft: BudgetPeriodDraft, existing_periods: List[BudgetPeriod]) -> List[ValidationError]:
    if draft.start_date is None or draft.end_date is None:
        return [RequiredFieldMissing("start date" if draft.start_date is None else "end date")]

    bounds = BudgetPeriod(
        id=draft.id,
        methodology=draft.methodology or Methodology.ZERO_BASED,
        start_date=draft.start_date,
        end_date=draft.end_date,
    )
    return validation.collect_violations(
        lambda: validation.validate_date_range(draft.start_date, draft.end_date),
        lambda: periods.validate_no_overlap(bounds, existing_periods),
    )


def _check_income(draft: BudgetPeriodDraft) -> List[ValidationError]:
    if not draft.income_sources:
        return [NoIncome()]
    return validation.collect_violations(
        *(lambda income=income: validation.validate_income_source(income) for income in draft.income_sources)
    )


def _check_all(draft: BudgetPeriodDraft, existing_periods: List[BudgetPeriod]) -> List[ValidationError]:
    return validation.collect_violations(
        lambda: validation.validate_budget_period(to_period(draft), existing_periods),
    )


def advance(draft: BudgetPeriodDraft, existing_periods: Iterable[BudgetPeriod] = ()) -> StepResult:
    """
    Validate the current step and move forward when it passes.

    Moving into committing runs the full period validation, so a prefilled
    draft and a hand-built one pass through the same rules.
    """
    if draft.step not in _FORWARD:
        raise DraftStateError(f"Cannot advance a draft that is {draft.step.value}")

    existing = list(existing_periods)

    if draft.step == CreationStep.SELECTING_METHODOLOGY:
        errors = [] if draft.methodology is not None else [RequiredFieldMissing("methodology")]
    elif draft.step == CreationStep.SETTING_DATE_RANGE:
        errors = _check_dates(draft, existing)
    elif draft.step == CreationStep.ENTERING_INCOME:
        errors = _check_income(draft)
    else:
        errors = _check_all(draft, existing)

    if errors:
        return StepResult(draft=draft, errors=errors)
    return StepResult(draft=replace(draft, step=_FORWARD[draft.step]), errors=[])


def go_back(draft: BudgetPeriodDraft) -> BudgetPeriodDraft:
    if draft.step not in _BACKWARD:
        raise DraftStateError(f"Cannot go back from {draft.step.value}")
    return replace(draft, step=_BACKWARD[draft.step])


def abort(draft: BudgetPeriodDraft) -> BudgetPeriodDraft:
    if draft.step in _TERMINAL:
        raise DraftStateError(f"Draft is already {draft.step.value}")
    return replace(draft, step=CreationStep.ABORTED)


def mark_persisted(draft: BudgetPeriodDraft) -> BudgetPeriodDraft:
    if draft.step != CreationStep.COMMITTING:
        raise DraftStateError("Only a committing draft can be persisted")
    return replace(draft, step=CreationStep.PERSISTED)


def summarize(draft: BudgetPeriodDraft) -> DraftSummary:
    total_income = sum((s.amount for s in draft.income_sources), Decimal("0"))
    total_planned = sum((a.planned_amount for a in draft.allocations), Decimal("0"))
    total_carry_over = sum((a.carry_over_amount for a in draft.allocations), Decimal("0"))

    return DraftSummary(
        total_income=total_income,
        total_planned=total_planned,
        total_carry_over=total_carry_over,
        total_available=total_planned + total_carry_over,
        allocated_percentage=total_planned / total_income * 100 if total_income > 0 else Decimal("0"),
        remaining_to_allocate=total_income - total_planned,
    )
