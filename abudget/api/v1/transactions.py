"""Transaction endpoints: record, list, edit, delete and list orphaned"""

import uuid
import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from abudget.api.v1.schemas import TransactionListResponse, TransactionRequest, TransactionResponse
from abudget.api.dependencies import get_request_id, parse_uuid, validation_failed
from abudget.infrastructure.database.session import get_db
from abudget.infrastructure.database.repositories import PeriodRepository, TransactionRepository
from abudget.domain.models import Bucket, BudgetPeriod, Transaction
from abudget.domain.exceptions import EntityNotFoundError, PersistenceError, ValidationError
from abudget.domain import assignment, validation
from abudget.infrastructure.observability.metrics import record_transaction
from abudget.infrastructure.observability.logging import log_transaction_recorded

router = APIRouter()


def _transaction_from_request(transaction_id: uuid.UUID, body: TransactionRequest) -> Transaction:
    return Transaction(
        id=transaction_id,
        date=body.date,
        sub_total=body.sub_total,
        tax=body.tax,
        merchant=body.merchant,
        bucket=body.bucket,
        category_id=body.category_id,
        sub_category_id=body.sub_category_id,
        description=body.description,
    )


def _transaction_response(transaction: Transaction, period: Optional[BudgetPeriod]) -> TransactionResponse:
    return TransactionResponse(
        id=str(transaction.id),
        date=transaction.date,
        sub_total=transaction.sub_total,
        tax=transaction.tax,
        total=transaction.total,
        merchant=transaction.merchant,
        description=transaction.description,
        bucket=transaction.bucket,
        category_id=str(transaction.category_id) if transaction.category_id else None,
        sub_category_id=str(transaction.sub_category_id) if transaction.sub_category_id else None,
        period_id=str(period.id) if period else None,
    )


def _validated(transaction: Transaction, request_id: str) -> Transaction:
    try:
        validation.validate_transaction(transaction)
    except ValidationError as e:
        logging.warning(f"Transaction rejected: {e}", extra={"request_id": request_id})
        raise validation_failed([e])
    return transaction


@router.post("/transactions", response_model=TransactionResponse, status_code=201)
def record_transaction_endpoint(body: TransactionRequest, request: Request, db: Session = Depends(get_db)):
    """
    Validate and store a transaction.

    The response reports the period whose dates cover it; a null period_id
    means the transaction is orphaned, which is not an error.
    """
    request_id = get_request_id(request)
    transaction = _validated(_transaction_from_request(uuid.uuid4(), body), request_id)

    try:
        saved = TransactionRepository(db).add_transaction(transaction)
    except PersistenceError as e:
        logging.error(f"Transaction save failed: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Could not save transaction")

    period = assignment.assign(saved, PeriodRepository(db).list_periods())
    record_transaction(period is not None)
    log_transaction_recorded(request_id, str(saved.id), str(period.id) if period else None)

    return _transaction_response(saved, period)


@router.get("/transactions", response_model=TransactionListResponse)
def list_transactions(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    category_id: Optional[uuid.UUID] = None,
    bucket: Optional[Bucket] = None,
    merchant: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """
    Transactions ordered by date, each with the period that covers it.

    category_id matches the category or the sub-category; merchant is exact.
    """
    periods = PeriodRepository(db).list_periods()
    transactions = TransactionRepository(db).list_transactions(
        start=start_date,
        end=end_date,
        category_id=category_id,
        bucket=bucket,
        merchant=merchant,
    )
    return TransactionListResponse(
        transactions=[_transaction_response(t, assignment.assign(t, periods)) for t in transactions]
    )


@router.get("/transactions/orphaned", response_model=TransactionListResponse)
def list_orphaned_transactions(db: Session = Depends(get_db)):
    """Transactions whose dates fall outside every period"""
    periods = PeriodRepository(db).list_periods()
    orphaned = assignment.find_orphaned(TransactionRepository(db).list_transactions(), periods)
    return TransactionListResponse(transactions=[_transaction_response(t, None) for t in orphaned])


@router.put("/transactions/{transaction_id}", response_model=TransactionResponse)
def update_transaction(
    transaction_id: str,
    body: TransactionRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    """Correct a stored transaction; its period is re-derived from the new date"""
    request_id = get_request_id(request)
    transaction = _validated(_transaction_from_request(parse_uuid(transaction_id, "transaction"), body), request_id)

    try:
        saved = TransactionRepository(db).update_transaction(transaction)
    except EntityNotFoundError:
        raise HTTPException(status_code=404, detail="Transaction not found")
    except PersistenceError as e:
        logging.error(f"Transaction update failed: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Could not update transaction")

    period = assignment.assign(saved, PeriodRepository(db).list_periods())
    return _transaction_response(saved, period)


@router.delete("/transactions/{transaction_id}", status_code=204)
def delete_transaction(transaction_id: str, request: Request, db: Session = Depends(get_db)):
    try:
        TransactionRepository(db).delete_transaction(parse_uuid(transaction_id, "transaction"))
    except EntityNotFoundError:
        raise HTTPException(status_code=404, detail="Transaction not found")
    except PersistenceError as e:
        logging.error(f"Transaction delete failed: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=500, detail="Could not delete transaction")
