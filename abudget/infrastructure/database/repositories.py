"""Data access layer for budgeting entities"""

import logging
import uuid
from datetime import date
from typing import Iterable, List, Optional
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from abudget.config import settings as app_settings
from abudget.infrastructure.database.models import (
    BudgetPeriodRecord,
    CategoryAllocationRecord,
    CategoryRecord,
    IncomeSourceRecord,
    TransactionRecord,
    UserSettingsRecord,
)
from abudget.domain.models import (
    Bucket,
    BudgetPeriod,
    Category,
    CategoryAllocation,
    IncomeSource,
    Methodology,
    Transaction,
    UserSettings,
)
from abudget.domain.categories import CategoryTree
from abudget.domain.exceptions import EntityNotFoundError, PersistenceError

logger = logging.getLogger(__name__)


def _to_period(record: BudgetPeriodRecord) -> BudgetPeriod:
    return BudgetPeriod(
        id=record.id,
        methodology=Methodology(record.methodology),
        start_date=record.start_date,
        end_date=record.end_date,
        income_sources=[
            IncomeSource(id=s.id, source_name=s.source_name, amount=s.amount) for s in record.income_sources
        ],
        allocations=[
            CategoryAllocation(
                id=a.id,
                category_id=a.category_id,
                budget_period_id=a.budget_period_id,
                planned_amount=a.planned_amount,
                carry_over_amount=a.carry_over_amount,
            )
            for a in record.allocations
        ],
    )


def _to_transaction(record: TransactionRecord) -> Transaction:
    return Transaction(
        id=record.id,
        date=record.date,
        sub_total=record.sub_total,
        tax=record.tax,
        merchant=record.merchant,
        bucket=Bucket(record.bucket),
        category_id=record.category_id,
        sub_category_id=record.sub_category_id,
        description=record.description,
    )


def _copy_transaction_fields(record: TransactionRecord, transaction: Transaction) -> None:
    record.date = transaction.date
    record.sub_total = transaction.sub_total
    record.tax = transaction.tax
    record.merchant = transaction.merchant
    record.bucket = transaction.bucket.value
    record.category_id = transaction.category_id
    record.sub_category_id = transaction.sub_category_id
    record.description = transaction.description


def _to_settings(record: UserSettingsRecord) -> UserSettings:
    return UserSettings(
        id=record.id,
        needs_percentage=record.needs_percentage,
        wants_percentage=record.wants_percentage,
        savings_percentage=record.savings_percentage,
        last_viewed_budget_period_id=record.last_viewed_budget_period_id,
    )


def _apply_defaults(record: UserSettingsRecord) -> None:
    record.needs_percentage = app_settings.default_needs_percentage
    record.wants_percentage = app_settings.default_wants_percentage
    record.savings_percentage = app_settings.default_savings_percentage
    record.last_viewed_budget_period_id = None


class PeriodRepository:
    """Repository for budget periods with their income sources and allocations"""

    def __init__(self, db: Session):
        self.db = db

    def list_periods(self) -> List[BudgetPeriod]:
        """All periods, most recent first"""
        records = self.db.query(BudgetPeriodRecord).order_by(BudgetPeriodRecord.start_date.desc()).all()
        return [_to_period(r) for r in records]

    def get_period(self, period_id: uuid.UUID) -> BudgetPeriod:
        record = self.db.get(BudgetPeriodRecord, period_id)
        if record is None:
            raise EntityNotFoundError(f"Budget period {period_id} not found")
        return _to_period(record)

    def active_period(self, today: Optional[date] = None) -> Optional[BudgetPeriod]:
        """The period whose inclusive bounds contain today, or None"""
        today = today or date.today()
        record = (
            self.db.query(BudgetPeriodRecord)
            .filter(BudgetPeriodRecord.start_date <= today, BudgetPeriodRecord.end_date >= today)
            .order_by(BudgetPeriodRecord.start_date, BudgetPeriodRecord.end_date)
            .first()
        )
        return _to_period(record) if record is not None else None

    def commit_period(self, period: BudgetPeriod) -> BudgetPeriod:
        """
        Insert or replace a period together with its income and allocations.

        One database transaction: on any failure everything is rolled back
        and PersistenceError is raised, so a partial period is never visible.
        Validation is the caller's job and must happen before this call.
        """
        try:
            existing = self.db.get(BudgetPeriodRecord, period.id)
            if existing is not None:
                self.db.delete(existing)
                self.db.flush()

            record = BudgetPeriodRecord(
                id=period.id,
                methodology=period.methodology.value,
                start_date=period.start_date,
                end_date=period.end_date,
            )
            record.income_sources = [
                IncomeSourceRecord(id=s.id, source_name=s.source_name, amount=s.amount, position=i)
                for i, s in enumerate(period.income_sources)
            ]
            record.allocations = [
                CategoryAllocationRecord(
                    id=a.id,
                    category_id=a.category_id,
                    planned_amount=a.planned_amount,
                    carry_over_amount=a.carry_over_amount,
                )
                for a in period.allocations
            ]
            self.db.add(record)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Period commit rolled back: {e}", extra={"period_id": str(period.id)})
            raise PersistenceError(f"Could not commit budget period {period.id}") from e

        return self.get_period(period.id)

    def delete_period(self, period_id: uuid.UUID) -> None:
        record = self.db.get(BudgetPeriodRecord, period_id)
        if record is None:
            raise EntityNotFoundError(f"Budget period {period_id} not found")
        try:
            self.db.delete(record)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Could not delete budget period {period_id}") from e


class TransactionRepository:
    """Repository for transactions"""

    def __init__(self, db: Session):
        self.db = db

    def add_transaction(self, transaction: Transaction) -> Transaction:
        record = TransactionRecord(id=transaction.id)
        _copy_transaction_fields(record, transaction)
        try:
            self.db.add(record)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Could not save transaction {transaction.id}") from e
        return _to_transaction(record)

    def get_transaction(self, transaction_id: uuid.UUID) -> Transaction:
        record = self.db.get(TransactionRecord, transaction_id)
        if record is None:
            raise EntityNotFoundError(f"Transaction {transaction_id} not found")
        return _to_transaction(record)

    def update_transaction(self, transaction: Transaction) -> Transaction:
        """Overwrite every field of a stored transaction; the id is the lookup key"""
        record = self.db.get(TransactionRecord, transaction.id)
        if record is None:
            raise EntityNotFoundError(f"Transaction {transaction.id} not found")
        _copy_transaction_fields(record, transaction)
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Could not update transaction {transaction.id}") from e
        return _to_transaction(record)

    def delete_transaction(self, transaction_id: uuid.UUID) -> None:
        record = self.db.get(TransactionRecord, transaction_id)
        if record is None:
            raise EntityNotFoundError(f"Transaction {transaction_id} not found")
        try:
            self.db.delete(record)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Could not delete transaction {transaction_id}") from e

    def delete_transactions(self, transaction_ids: Iterable[uuid.UUID]) -> int:
        """Delete several transactions in one commit; unknown ids are ignored"""
        ids = list(transaction_ids)
        if not ids:
            return 0
        try:
            deleted = (
                self.db.query(TransactionRecord)
                .filter(TransactionRecord.id.in_(ids))
                .delete(synchronize_session=False)
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Could not delete {len(ids)} transactions") from e
        return deleted

    def list_transactions(
        self,
        start: Optional[date] = None,
        end: Optional[date] = None,
        category_id: Optional[uuid.UUID] = None,
        bucket: Optional[Bucket] = None,
        merchant: Optional[str] = None,
    ) -> List[Transaction]:
        """
        Transactions ordered by date.

        start/end are inclusive bounds. category_id matches either the
        category or the sub-category; merchant must match exactly.
        """
        query = self.db.query(TransactionRecord)
        if start is not None:
            query = query.filter(TransactionRecord.date >= start)
        if end is not None:
            query = query.filter(TransactionRecord.date <= end)
        if category_id is not None:
            query = query.filter(
                or_(TransactionRecord.category_id == category_id, TransactionRecord.sub_category_id == category_id)
            )
        if bucket is not None:
            query = query.filter(TransactionRecord.bucket == bucket.value)
        if merchant is not None:
            query = query.filter(TransactionRecord.merchant == merchant)
        return [_to_transaction(r) for r in query.order_by(TransactionRecord.date).all()]


class CategoryRepository:
    """Read access to the category tree, plus inserts for seeding"""

    def __init__(self, db: Session):
        self.db = db

    def add_category(self, category: Category) -> Category:
        record = CategoryRecord(
            id=category.id,
            name=category.name,
            parent_id=category.parent_id,
            sort_order=category.sort_order,
            is_default=category.is_default,
        )
        try:
            self.db.add(record)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(f"Could not save category {category.id}") from e
        return category

    def list_categories(self) -> List[Category]:
        records = self.db.query(CategoryRecord).order_by(CategoryRecord.sort_order, CategoryRecord.name).all()
        return [
            Category(
                id=r.id,
                name=r.name,
                parent_id=r.parent_id,
                sort_order=r.sort_order,
                is_default=r.is_default,
            )
            for r in records
        ]

    def tree(self) -> CategoryTree:
        """Whole tree; raises CategoryCycleError if stored parent links loop"""
        return CategoryTree(self.list_categories())

    def descendants(self, category_id: uuid.UUID) -> List[uuid.UUID]:
        return self.tree().descendants(category_id)


class SettingsRepository:
    """Repository for the single user settings row"""

    def __init__(self, db: Session):
        self.db = db

    def get_or_create(self) -> UserSettings:
        """The settings row, created with configured defaults on first access"""
        record = self.db.query(UserSettingsRecord).first()
        if record is None:
            record = UserSettingsRecord(id=uuid.uuid4())
            _apply_defaults(record)
            try:
                self.db.add(record)
                self.db.commit()
            except SQLAlchemyError as e:
                self.db.rollback()
                raise PersistenceError("Could not create user settings") from e
        return _to_settings(record)

    def update(self, user_settings: UserSettings) -> UserSettings:
        """Overwrite the settings row; the id of the stored row is kept"""
        self.get_or_create()
        record = self.db.query(UserSettingsRecord).first()
        record.needs_percentage = user_settings.needs_percentage
        record.wants_percentage = user_settings.wants_percentage
        record.savings_percentage = user_settings.savings_percentage
        record.last_viewed_budget_period_id = user_settings.last_viewed_budget_period_id
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError("Could not update user settings") from e
        return _to_settings(record)

    def reset_to_defaults(self) -> UserSettings:
        """Restore the configured bucket targets and forget the last viewed period"""
        self.get_or_create()
        record = self.db.query(UserSettingsRecord).first()
        _apply_defaults(record)
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError("Could not reset user settings") from e
        return _to_settings(record)
