"""Domain models - pure Python dataclasses representing business entities"""

import uuid
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional

from abudget.utils.date_utils import days_between


class Methodology(str, Enum):
    """Budgeting approach chosen for a period"""

    ZERO_BASED = "zeroBased"
    ENVELOPE = "envelope"
    PERCENTAGE = "percentage"


class Bucket(str, Enum):
    """Coarse spending classification for percentage budgeting"""

    NEEDS = "needs"
    WANTS = "wants"
    SAVINGS = "savings"


@dataclass
class Category:
    """Node of the category tree; parent_id None means root"""

    id: uuid.UUID
    name: str
    parent_id: Optional[uuid.UUID] = None
    sort_order: int = 0
    is_default: bool = False

    @property
    def is_root(self) -> bool:
        return self.parent_id is None


@dataclass
class IncomeSource:
    """Declared income for one budget period"""

    id: uuid.UUID
    source_name: str
    amount: Decimal


@dataclass
class CategoryAllocation:
    """Planned spending for one category within one period"""

    id: uuid.UUID
    category_id: Optional[uuid.UUID]
    budget_period_id: Optional[uuid.UUID]
    planned_amount: Decimal
    carry_over_amount: Decimal = Decimal("0")

    @property
    def total_available(self) -> Decimal:
        return self.planned_amount + self.carry_over_amount

    @property
    def has_carry_over(self) -> bool:
        return self.carry_over_amount > 0


@dataclass
class BudgetPeriod:
    """Contiguous date range over which income and spending are tracked"""

    id: uuid.UUID
    methodology: Methodology
    start_date: date
    end_date: date
    income_sources: List[IncomeSource] = field(default_factory=list)
    allocations: List[CategoryAllocation] = field(default_factory=list)

    @property
    def total_income(self) -> Decimal:
        return sum((s.amount for s in self.income_sources), Decimal("0"))

    @property
    def total_planned(self) -> Decimal:
        return sum((a.planned_amount for a in self.allocations), Decimal("0"))

    @property
    def duration_days(self) -> int:
        return days_between(self.start_date, self.end_date)

    def contains(self, day: date) -> bool:
        """Inclusive on both bounds"""
        return self.start_date <= day <= self.end_date

    def allocation_for(self, category_id: uuid.UUID) -> Optional[CategoryAllocation]:
        return next((a for a in self.allocations if a.category_id == category_id), None)


@dataclass
class Transaction:
    """A single purchase; its period is derived from date, never stored"""

    id: uuid.UUID
    date: date
    sub_total: Decimal
    merchant: str
    bucket: Bucket
    tax: Optional[Decimal] = None
    category_id: Optional[uuid.UUID] = None
    sub_category_id: Optional[uuid.UUID] = None
    description: Optional[str] = None

    @property
    def total(self) -> Decimal:
        return self.sub_total + (self.tax if self.tax is not None else Decimal("0"))


@dataclass
class UserSettings:
    """Target bucket percentages; one instance per dataset"""

    id: uuid.UUID
    needs_percentage: Decimal = Decimal("50")
    wants_percentage: Decimal = Decimal("30")
    savings_percentage: Decimal = Decimal("20")
    last_viewed_budget_period_id: Optional[uuid.UUID] = None

    @property
    def total_percentage(self) -> Decimal:
        return self.needs_percentage + self.wants_percentage + self.savings_percentage

    def percentage_for(self, bucket: Bucket) -> Decimal:
        return {
            Bucket.NEEDS: self.needs_percentage,
            Bucket.WANTS: self.wants_percentage,
            Bucket.SAVINGS: self.savings_percentage,
        }[bucket]


# Calculation results


@dataclass(frozen=True)
class PeriodTotals:
    """Aggregate figures for one budget period"""

    income: Decimal
    planned: Decimal
    spent: Decimal
    remaining: Decimal

    @property
    def planned_percentage(self) -> Decimal:
        return self.planned / self.income * 100 if self.income > 0 else Decimal("0")

    @property
    def spent_percentage(self) -> Decimal:
        return self.spent / self.income * 100 if self.income > 0 else Decimal("0")

    @property
    def execution_percentage(self) -> Decimal:
        return self.spent / self.planned * 100 if self.planned > 0 else Decimal("0")

    @property
    def is_over_allocated(self) -> bool:
        return self.planned > self.income

    @property
    def is_over_budget(self) -> bool:
        return self.spent > self.planned


@dataclass(frozen=True)
class AllocationStatus:
    """Spent and remaining figures for one allocation"""

    allocation: CategoryAllocation
    spent: Decimal
    remaining: Decimal

    @property
    def is_over_budget(self) -> bool:
        return self.remaining < 0


@dataclass(frozen=True)
class ReassignmentResult:
    """Outcome of re-deriving period membership for a batch of transactions"""

    assigned: Dict[uuid.UUID, List[Transaction]]
    orphaned: List[Transaction]
    total_processed: int

    @property
    def assigned_count(self) -> int:
        return sum(len(txns) for txns in self.assigned.values())

    @property
    def orphaned_count(self) -> int:
        return len(self.orphaned)


class TargetComparison(str, Enum):
    """Actual bucket percentage relative to its target"""

    ON_TARGET = "onTarget"
    OVER_TARGET = "overTarget"
    UNDER_TARGET = "underTarget"


@dataclass(frozen=True)
class BucketReconciliation:
    """Actual vs target spending for one bucket"""

    bucket: Bucket
    spent: Decimal
    actual_percentage: Decimal
    target_percentage: Decimal
    target_amount: Decimal
    comparison: TargetComparison

    @property
    def variance(self) -> Decimal:
        """Amount spent beyond (positive) or short of (negative) the target amount"""
        return self.spent - self.target_amount
