"""SQLAlchemy ORM models for budgeting entities"""

import uuid
from sqlalchemy import Column, Text, Boolean, Integer, Numeric, DateTime, Date, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()

MONEY = Numeric(14, 2, asdecimal=True)
PERCENT = Numeric(7, 4, asdecimal=True)


class CategoryRecord(Base):
    """Node of the category tree"""

    __tablename__ = "category"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False)
    parent_id = Column(Uuid, ForeignKey("category.id", ondelete="CASCADE"), nullable=True, index=True)
    sort_order = Column(Integer, nullable=False, default=0)
    is_default = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class BudgetPeriodRecord(Base):
    """Budget period header; income and allocations hang off it"""

    __tablename__ = "budget_period"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    methodology = Column(Text, nullable=False)
    start_date = Column(Date, nullable=False, index=True)
    end_date = Column(Date, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    income_sources = relationship(
        "IncomeSourceRecord",
        back_populates="budget_period",
        cascade="all, delete-orphan",
        order_by="IncomeSourceRecord.position",
    )
    allocations = relationship("CategoryAllocationRecord", back_populates="budget_period", cascade="all, delete-orphan")


class IncomeSourceRecord(Base):
    """Income declared for a period; position keeps the entered order"""

    __tablename__ = "income_source"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    budget_period_id = Column(Uuid, ForeignKey("budget_period.id", ondelete="CASCADE"), nullable=False)
    source_name = Column(Text, nullable=False)
    amount = Column(MONEY, nullable=False)
    position = Column(Integer, nullable=False, default=0)

    budget_period = relationship("BudgetPeriodRecord", back_populates="income_sources")


class CategoryAllocationRecord(Base):
    """Planned amount for a category in a period"""

    __tablename__ = "category_allocation"
    __table_args__ = (UniqueConstraint("budget_period_id", "category_id", name="uq_allocation_period_category"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    budget_period_id = Column(Uuid, ForeignKey("budget_period.id", ondelete="CASCADE"), nullable=False)
    category_id = Column(Uuid, ForeignKey("category.id", ondelete="CASCADE"), nullable=False)
    planned_amount = Column(MONEY, nullable=False)
    carry_over_amount = Column(MONEY, nullable=False, default=0)

    budget_period = relationship("BudgetPeriodRecord", back_populates="allocations")


class TransactionRecord(Base):
    """Spending entry; not linked to a period"""

    __tablename__ = "budget_transaction"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    date = Column(Date, nullable=False, index=True)
    sub_total = Column(MONEY, nullable=False)
    tax = Column(MONEY, nullable=True)
    merchant = Column(Text, nullable=False)
    bucket = Column(Text, nullable=False)
    category_id = Column(Uuid, ForeignKey("category.id", ondelete="SET NULL"), nullable=True)
    sub_category_id = Column(Uuid, ForeignKey("category.id", ondelete="SET NULL"), nullable=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class UserSettingsRecord(Base):
    """Single row of bucket targets"""

    __tablename__ = "user_settings"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    needs_percentage = Column(PERCENT, nullable=False)
    wants_percentage = Column(PERCENT, nullable=False)
    savings_percentage = Column(PERCENT, nullable=False)
    last_viewed_budget_period_id = Column(Uuid, nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
