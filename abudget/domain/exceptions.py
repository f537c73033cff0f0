"""Domain-specific exceptions"""

from datetime import date
from decimal import Decimal
from uuid import UUID


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ValidationError(DomainException):
    """An entity failed a field or cross-entity rule"""

    pass


# Field errors


class RequiredFieldMissing(ValidationError):
    """A required field is blank or absent"""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Required field '{field}' is missing")


class AmountInvalid(ValidationError):
    """A monetary amount is out of its allowed range"""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Amount is invalid: {reason}")


class InvalidDateRange(ValidationError):
    """A date or date range is not usable"""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid date range: {reason}")


# Cross-entity errors


class PeriodOverlap(ValidationError):
    """Budget period intersects an existing period"""

    def __init__(self, conflict_start: date, conflict_end: date):
        self.conflict_start = conflict_start
        self.conflict_end = conflict_end
        super().__init__(
            f"Budget period overlaps with existing period ({conflict_start.isoformat()} - {conflict_end.isoformat()})"
        )


class NoIncome(ValidationError):
    """Budget period declares no income sources"""

    def __init__(self):
        super().__init__("Budget period must have at least one income source")


class PercentageSumInvalid(ValidationError):
    """Bucket percentages do not add up to exactly 100"""

    def __init__(self, actual_sum: Decimal):
        self.actual_sum = actual_sum
        super().__init__(f"Percentages must sum to 100, but sum to {actual_sum}")


class PercentageNegative(ValidationError):
    """A bucket percentage is below zero"""

    def __init__(self, bucket: str):
        self.bucket = bucket
        super().__init__(f"Percentage for '{bucket}' cannot be negative")


class AllocationCategoryRequired(ValidationError):
    """Allocation has no category"""

    def __init__(self):
        super().__init__("Allocation must have a category assigned")


class AllocationBudgetPeriodRequired(ValidationError):
    """Allocation is not attached to a budget period"""

    def __init__(self):
        super().__init__("Allocation must be assigned to a budget period")


class DuplicateAllocation(ValidationError):
    """Two allocations in one period target the same category"""

    def __init__(self, category_id: UUID):
        self.category_id = category_id
        super().__init__(f"Category {category_id} already has an allocation in this period")


# Boundary errors


class CategoryCycleError(DomainException):
    """Category parent links form a cycle"""

    def __init__(self, category_id: UUID):
        self.category_id = category_id
        super().__init__(f"Category {category_id} is its own ancestor")


class EntityNotFoundError(DomainException):
    """Requested entity does not exist in storage"""

    pass


class PersistenceError(DomainException):
    """Storage rejected a write; nothing from the write is visible"""

    pass


class DraftStateError(DomainException):
    """Operation not allowed in the draft's current creation step"""

    pass
