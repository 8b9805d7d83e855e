"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger

from manpower_exchange.config import settings


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


def log_operation_outcome(
    request_id: str,
    operation: str,
    outcome: str,
    employee_id: Optional[str],
    duration_ms: float,
    error: Optional[str] = None,
) -> None:
    """Log one transaction operation as seen by the API layer"""
    level = logging.INFO if outcome == "ok" else logging.WARNING
    logging.log(
        level,
        "Transaction operation finished",
        extra={
            "request_id": request_id,
            "operation": operation,
            "outcome": outcome,
            "employee_id": employee_id,
            "duration_ms": duration_ms,
            "error": error,
        },
    )
