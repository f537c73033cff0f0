"""Pydantic schemas for API request/response validation"""

import uuid
from datetime import date
from decimal import Decimal
from typing import Annotated, Dict, List, Optional

from pydantic import BaseModel, Field

from abudget.domain.models import Bucket, Methodology, TargetComparison

# Stored as NUMERIC(14, 2) and NUMERIC(7, 4); finer input is rejected rather than rounded
Money = Annotated[Decimal, Field(max_digits=14, decimal_places=2)]
Percent = Annotated[Decimal, Field(max_digits=7, decimal_places=4)]


class IncomeSourceSchema(BaseModel):
    """Income line of a period"""

    id: Optional[uuid.UUID] = None
    source_name: str
    amount: Money


class AllocationSchema(BaseModel):
    """Planned amount for one category"""

    id: Optional[uuid.UUID] = None
    category_id: Optional[uuid.UUID] = None
    planned_amount: Money
    carry_over_amount: Money = Decimal("0")


class PeriodRequest(BaseModel):
    """Request body for POST /v1/periods; include id to edit an existing period"""

    id: Optional[uuid.UUID] = None
    methodology: Methodology
    start_date: date
    end_date: date
    income_sources: List[IncomeSourceSchema] = Field(default_factory=list)
    allocations: List[AllocationSchema] = Field(default_factory=list)


class PeriodResponse(BaseModel):
    id: str
    methodology: Methodology
    start_date: date
    end_date: date
    income_sources: List[IncomeSourceSchema]
    allocations: List[AllocationSchema]


class PrefillRequest(BaseModel):
    """Request body for POST /v1/periods/prefill"""

    previous_period_id: uuid.UUID
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    methodology: Optional[Methodology] = None


class DraftResponse(BaseModel):
    """Unpersisted period proposal"""

    id: str
    step: str
    methodology: Optional[Methodology] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    income_sources: List[IncomeSourceSchema]
    allocations: List[AllocationSchema]
    total_income: Decimal
    total_planned: Decimal
    total_carry_over: Decimal
    remaining_to_allocate: Decimal


class PeriodTotalsSchema(BaseModel):
    income: Decimal
    planned: Decimal
    spent: Decimal
    remaining: Decimal


class AllocationStatusSchema(BaseModel):
    category_id: str
    planned_amount: Money
    carry_over_amount: Decimal
    spent: Decimal
    remaining: Decimal
    over_budget: bool


class BucketReportSchema(BaseModel):
    spent: Decimal
    actual_percentage: Decimal
    target_percentage: Decimal
    target_amount: Decimal
    comparison: TargetComparison


class PeriodSummaryResponse(BaseModel):
    """Response for GET /v1/periods/{period_id}/summary"""

    period_id: str
    totals: PeriodTotalsSchema
    allocations: List[AllocationStatusSchema]
    buckets: Dict[Bucket, BucketReportSchema]


class TransactionRequest(BaseModel):
    """Request body for POST /v1/transactions and PUT /v1/transactions/{transaction_id}"""

    date: date
    sub_total: Money
    tax: Optional[Money] = None
    merchant: str
    bucket: Bucket
    category_id: Optional[uuid.UUID] = None
    sub_category_id: Optional[uuid.UUID] = None
    description: Optional[str] = None


class TransactionResponse(BaseModel):
    id: str
    date: date
    sub_total: Decimal
    tax: Optional[Decimal] = None
    total: Decimal
    merchant: str
    description: Optional[str] = None
    bucket: Bucket
    category_id: Optional[str] = None
    sub_category_id: Optional[str] = None
    period_id: Optional[str] = None


class TransactionListResponse(BaseModel):
    transactions: List[TransactionResponse]


class SettingsSchema(BaseModel):
    """Body and response for /v1/settings"""

    needs_percentage: Percent
    wants_percentage: Percent
    savings_percentage: Percent
    last_viewed_budget_period_id: Optional[uuid.UUID] = None
