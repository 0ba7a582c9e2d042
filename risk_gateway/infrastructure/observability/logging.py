"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger

from risk_gateway.config import settings


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


audit_logger = logging.getLogger("risk_gateway.audit")


def audit_event(
    event_type: str,
    action: str,
    resource: str,
    resource_id: Optional[int] = None,
    status: str = "SUCCESS",
    details: Optional[Dict[str, Any]] = None,
    error_message: Optional[str] = None,
) -> None:
    """
    Emit an audit trail record.

    FAILURE events log at ERROR, WARNING events at WARNING, everything else
    at INFO.
    """
    extra = {
        "audit": True,
        "event_type": event_type,
        "action": action,
        "resource": resource,
        "resource_id": resource_id,
        "audit_status": status,
        "details": details or {},
    }
    if error_message:
        extra["error_message"] = error_message

    if status == "FAILURE":
        audit_logger.error(f"AUDIT {event_type}", extra=extra)
    elif status == "WARNING":
        audit_logger.warning(f"AUDIT {event_type}", extra=extra)
    else:
        audit_logger.info(f"AUDIT {event_type}", extra=extra)


def log_decision(
    request_id: str,
    transaction_id: int,
    customer_id: int,
    risk_score: int,
    status: str,
    matched_rules: int,
    rules_evaluated: int,
    duration_ms: float,
) -> None:
    """Log structured decision outcome for analysis"""
    logging.info(
        "Decision completed",
        extra={
            "request_id": request_id,
            "transaction_id": transaction_id,
            "customer_id": customer_id,
            "step": "decision_complete",
            "risk_score": risk_score,
            "decision_status": status,
            "matched_rules": matched_rules,
            "rules_evaluated": rules_evaluated,
            "duration_ms": duration_ms,
        },
    )
