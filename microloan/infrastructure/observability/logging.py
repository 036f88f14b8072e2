"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger
from microloan.config import settings


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

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_loan_created(
    request_id: str,
    loan_id: int,
    client_id: int,
    principal: str,
    term_count: int,
    created_by: str,
) -> None:
    """Log structured loan creation outcome"""
    logging.info(
        "Loan created",
        extra={
            "request_id": request_id,
            "loan_id": loan_id,
            "client_id": client_id,
            "step": "loan_created",
            "principal": principal,
            "term_count": term_count,
            "created_by": created_by,
        },
    )


def log_creation_rejected(request_id: str, client_id: int | None, rule: str) -> None:
    """Log which creation rule turned a request down"""
    logging.info(
        "Loan creation rejected",
        extra={
            "request_id": request_id,
            "client_id": client_id,
            "step": "loan_rejected",
            "rule": rule,
        },
    )


def log_installment_toggled(
    request_id: str,
    loan_id: int,
    installment_id: int,
    paid: bool,
    loan_status: str,
) -> None:
    """Log a paid/unpaid toggle together with the recomputed loan status"""
    logging.info(
        "Installment updated",
        extra={
            "request_id": request_id,
            "loan_id": loan_id,
            "installment_id": installment_id,
            "step": "installment_toggled",
            "paid": paid,
            "loan_status": loan_status,
        },
    )


def log_overdue_sweep(request_id: str, installments_marked: int, loans_updated: int, today: str) -> None:
    logging.info(
        "Overdue sweep completed",
        extra={
            "request_id": request_id,
            "step": "overdue_sweep",
            "installments_marked": installments_marked,
            "loans_updated": loans_updated,
            "as_of": today,
        },
    )
