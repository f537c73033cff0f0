"""Shared helpers for FastAPI endpoints"""

import uuid
from typing import List

from fastapi import HTTPException, Request

from abudget.domain.exceptions import PeriodOverlap, ValidationError
from abudget.infrastructure.observability.metrics import record_validation_failure


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def parse_uuid(value: str, label: str) -> uuid.UUID:
    try:
        return uuid.UUID(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid {label} ID format")


def validation_failed(errors: List[ValidationError]) -> HTTPException:
    """
    HTTP error describing every violation with its offending values.

    409 when a period overlap is among them, 422 otherwise.
    """
    for error in errors:
        record_validation_failure(error)

    status = 409 if any(isinstance(e, PeriodOverlap) for e in errors) else 422
    detail = [
        {
            "error": type(e).__name__,
            "message": str(e),
            **{k: str(v) for k, v in vars(e).items()},
        }
        for e in errors
    ]
    return HTTPException(status_code=status, detail=detail)
