"""Structured JSON logging for production observability"""

import logging
import sys
from typing import Any, Dict, Optional

from pythonjsonlogger.json import JsonFormatter

from wallet_master.utils.date_utils import utc_now

SERVICE_NAME = "wallet-master-api"


class CustomJsonFormatter(JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = utc_now().isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = SERVICE_NAME


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


def log_payment(
    operation: str,
    outcome: str,
    user_id: Optional[int],
    amount: Any,
    payment_id: Optional[str],
    duration_ms: float,
) -> None:
    """Log structured payment outcome for analysis"""
    logging.getLogger("wallet_master.payments").info(
        "Payment operation completed",
        extra={
            "step": "payment_complete",
            "operation": operation,
            "outcome": outcome,
            "user_id": user_id,
            "amount": str(amount) if amount is not None else None,
            "payment_id": payment_id,
            "duration_ms": round(duration_ms, 2),
        },
    )
