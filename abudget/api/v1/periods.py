"""Budget period endpoints: create/edit, read, delete, summary and prefill"""

import time
import uuid
import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from abudget.api.v1.schemas import (
    AllocationSchema,
    AllocationStatusSchema,
    BucketReportSchema,
    DraftResponse,
    IncomeSourceSchema,
    PeriodRequest,
    PeriodResponse,
    PeriodSummaryResponse,
    PeriodTotalsSchema,
    PrefillRequest,
)
from abudget.api.dependencies import get_request_id, parse_uuid, validation_failed
from abudget.config import settings
from abudget.infrastructure.database.session import get_db
from abudget.infrastructure.database.repositories import (
    CategoryRepository,
    PeriodRepository,
    SettingsRepository,
    TransactionRepository,
)
from abudget.domain.models import BudgetPeriod, CategoryAllocation, IncomeSource
from abudget.domain.exceptions import EntityNotFoundError, PersistenceError
from abudget.domain import allocations, drafts, percentages, prefill
from abudget.infrastructure.observability.metrics import period_commit_counter
from abudget.infrastructure.observability.logging import log_period_commit

router = APIRouter()


def _period_from_request(body: PeriodRequest) -> BudgetPeriod:
    period_id = body.id or uuid.uuid4()
    return BudgetPeriod(
        id=period_id,
        methodology=body.methodology,
        start_date=body.start_date,
        end_date=body.end_date,
        income_sources=[
            IncomeSource(id=s.id or uuid.uuid4(), source_name=s.source_name, amount=s.amount)
            for s in body.income_sources
        ],
        allocations=[
            CategoryAllocation(
                id=a.id or uuid.uuid4(),
                category_id=a.category_id,
                budget_period_id=period_id,
                planned_amount=a.planned_amount,
                carry_over_amount=a.carry_over_amount,
            )
            for a in body.allocations
        ],
    )


def _income_schemas(sources) -> List[IncomeSourceSchema]:
    return [IncomeSourceSchema(id=s.id, source_name=s.source_name, amount=s.amount) for s in sources]


def _allocation_schemas(items) -> List[AllocationSchema]:
    return [
        AllocationSchema(
            id=a.id,
            category_id=a.category_id,
            planned_amount=a.planned_amount,
            carry_over_amount=a.carry_over_amount,
        )
        for a in items
    ]


def _period_response(period: BudgetPeriod) -> PeriodResponse:
    return PeriodResponse(
        id=str(period.id),
        methodology=period.methodology,
        start_date=period.start_date,
        end_date=period.end_date,
        income_sources=_income_schemas(period.income_sources),
        allocations=_allocation_schemas(period.allocations),
    )


def _load_period(repo: PeriodRepository, period_id: str) -> BudgetPeriod:
    try:
        return repo.get_period(parse_uuid(period_id, "period"))
    except EntityNotFoundError:
        raise HTTPException(status_code=404, detail="Budget period not found")


@router.post("/periods", response_model=PeriodResponse, status_code=201)
def commit_period(body: PeriodRequest, request: Request, db: Session = Depends(get_db)):
    """
    Create a period, or replace one in place when the body carries its id.

    Flow:
    1. Build a draft at the allocations step
    2. Advance it to committing (full validation against existing periods)
    3. Persist period, income sources and allocations atomically
    """
    start_time = time.time()
    request_id = get_request_id(request)
    repo = PeriodRepository(db)

    draft = drafts.from_period(_period_from_request(body))
    result = drafts.advance(draft, repo.list_periods())

    if not result.ok:
        period_commit_counter.labels(outcome="rejected").inc()
        logging.warning(
            f"Period rejected: {'; '.join(str(e) for e in result.errors)}",
            extra={"request_id": request_id},
        )
        raise validation_failed(result.errors)

    period = drafts.to_period(result.draft)
    try:
        saved = repo.commit_period(period)
    except PersistenceError as e:
        period_commit_counter.labels(outcome="failed").inc()
        logging.error(f"Period commit failed: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Could not save budget period")

    period_commit_counter.labels(outcome="committed").inc()
    duration_ms = (time.time() - start_time) * 1000
    log_period_commit(request_id, str(saved.id), "committed", len(saved.allocations), duration_ms)

    return _period_response(saved)


@router.get("/periods", response_model=List[PeriodResponse])
def list_periods(db: Session = Depends(get_db)):
    """All periods, most recent first"""
    return [_period_response(p) for p in PeriodRepository(db).list_periods()]


@router.get("/periods/active", response_model=PeriodResponse)
def get_active_period(today: Optional[date] = None, db: Session = Depends(get_db)):
    """The period covering today (or the given day); 404 when none does"""
    period = PeriodRepository(db).active_period(today)
    if period is None:
        raise HTTPException(status_code=404, detail="No budget period covers this date")
    return _period_response(period)


@router.get("/periods/{period_id}", response_model=PeriodResponse)
def get_period(period_id: str, db: Session = Depends(get_db)):
    return _period_response(_load_period(PeriodRepository(db), period_id))


@router.delete("/periods/{period_id}", status_code=204)
def delete_period(period_id: str, request: Request, db: Session = Depends(get_db)):
    repo = PeriodRepository(db)
    period = _load_period(repo, period_id)
    try:
        repo.delete_period(period.id)
    except PersistenceError as e:
        logging.error(f"Period delete failed: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=500, detail="Could not delete budget period")


@router.get("/periods/{period_id}/summary", response_model=PeriodSummaryResponse)
def get_period_summary(period_id: str, db: Session = Depends(get_db)):
    """
    Spending report for one period.

    Returns:
        Totals, per-allocation spent/remaining with category rollup, and
        needs/wants/savings actual vs target percentages
    """
    period = _load_period(PeriodRepository(db), period_id)
    transactions = TransactionRepository(db).list_transactions(period.start_date, period.end_date)
    tree = CategoryRepository(db).tree()
    user_settings = SettingsRepository(db).get_or_create()

    totals = allocations.period_totals(period, transactions, tree)
    statuses = allocations.allocation_statuses(period, transactions, tree)
    buckets = percentages.reconcile(period, transactions, user_settings, settings.target_tolerance_basis_points)

    return PeriodSummaryResponse(
        period_id=str(period.id),
        totals=PeriodTotalsSchema(
            income=totals.income,
            planned=totals.planned,
            spent=totals.spent,
            remaining=totals.remaining,
        ),
        allocations=[
            AllocationStatusSchema(
                category_id=str(s.allocation.category_id),
                planned_amount=s.allocation.planned_amount,
                carry_over_amount=s.allocation.carry_over_amount,
                spent=s.spent,
                remaining=s.remaining,
                over_budget=s.is_over_budget,
            )
            for s in statuses
        ],
        buckets={
            bucket: BucketReportSchema(
                spent=r.spent,
                actual_percentage=r.actual_percentage,
                target_percentage=r.target_percentage,
                target_amount=r.target_amount,
                comparison=r.comparison,
            )
            for bucket, r in buckets.items()
        },
    )


@router.post("/periods/prefill", response_model=DraftResponse)
def prefill_period(body: PrefillRequest, db: Session = Depends(get_db)):
    """
    Propose a new period seeded from a previous one.

    Nothing is saved; the caller reviews the draft and submits it through
    POST /v1/periods.
    """
    try:
        previous = PeriodRepository(db).get_period(body.previous_period_id)
    except EntityNotFoundError:
        raise HTTPException(status_code=404, detail="Previous budget period not found")

    transactions = TransactionRepository(db).list_transactions(previous.start_date, previous.end_date)
    draft = prefill.prefill(
        previous,
        transactions,
        start_date=body.start_date,
        end_date=body.end_date,
        methodology=body.methodology,
        tree=CategoryRepository(db).tree(),
    )
    summary = drafts.summarize(draft)

    return DraftResponse(
        id=str(draft.id),
        step=draft.step.value,
        methodology=draft.methodology,
        start_date=draft.start_date,
        end_date=draft.end_date,
        income_sources=_income_schemas(draft.income_sources),
        allocations=_allocation_schemas(draft.allocations),
        total_income=summary.total_income,
        total_planned=summary.total_planned,
        total_carry_over=summary.total_carry_over,
        remaining_to_allocate=summary.remaining_to_allocate,
    )
