"""Structured JSON logging for eligibility checks"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

from pythonjsonlogger.json import JsonFormatter

from safetransfer.models import EligibilityVerdict

SERVICE_NAME = "safetransfer-eligibility"


class CustomJsonFormatter(JsonFormatter):
    """JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = SERVICE_NAME


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging on the root logger"""
    logger = logging.getLogger()
    logger.setLevel(level)

    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def mask_document(document_number: str) -> str:
    """Keep only the last 4 characters of a document number for logs."""
    if len(document_number) <= 4:
        return "*" * len(document_number)
    return "*" * (len(document_number) - 4) + document_number[-4:]


def log_eligibility(
    business_id: str,
    document_number: str,
    verdict: EligibilityVerdict,
    step: str = "eligibility_check",
) -> None:
    """Log a verdict without the contributing transfers."""
    logging.getLogger("safetransfer.eligibility").info(
        "Eligibility evaluated",
        extra={
            "business_id": business_id,
            "document": mask_document(document_number),
            "step": step,
            "allowed": verdict.allowed,
            "reason_code": verdict.reason_code,
            "amount_available": str(verdict.amount_available),
            "days_remaining": verdict.days_remaining,
        },
    )
