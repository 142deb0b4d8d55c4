"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger

from velocity_limits.config import settings


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


def log_decision(
    load_id: str,
    customer_id: str,
    outcome: str,
    breached: Optional[str],
    duration_ms: float,
) -> None:
    """Log structured admission outcome; identifiers are passed explicitly"""
    logging.info(
        "Load evaluated",
        extra={
            "load_id": load_id,
            "customer_id": customer_id,
            "step": "evaluation_complete",
            "outcome": outcome,
            "breached_limit": breached,
            "duration_ms": duration_ms,
        },
    )


def log_skipped_line(line_no: int, reason: str) -> None:
    """Log a batch line that could not be turned into a load request"""
    logging.warning(
        "Skipping input line",
        extra={"line_no": line_no, "step": "batch_parse", "reason": reason},
    )
