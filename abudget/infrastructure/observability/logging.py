"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger

from abudget.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_period_commit(
    request_id: str,
    period_id: str,
    outcome: str,
    allocation_count: int,
    duration_ms: float,
) -> None:
    """Log structured period commit outcome"""
    logging.info(
        "Budget period commit",
        extra={
            "request_id": request_id,
            "period_id": period_id,
            "step": "period_commit",
            "outcome": outcome,
            "allocation_count": allocation_count,
            "duration_ms": duration_ms,
        },
    )


def log_transaction_recorded(request_id: str, transaction_id: str, period_id: Optional[str]) -> None:
    """Log where a new transaction landed; period_id None means orphaned"""
    logging.info(
        "Transaction recorded",
        extra={
            "request_id": request_id,
            "transaction_id": transaction_id,
            "step": "transaction_recorded",
            "assignment": "assigned" if period_id else "orphaned",
            "period_id": period_id,
        },
    )
