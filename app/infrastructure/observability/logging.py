"""
Structured logging setup for the visa eligibility engine.
Provides JSON-formatted logs with consistent fields for production monitoring.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.stdlib import LoggerFactory

from app.config import settings


def setup_logging(log_level: str | None = None) -> None:
    """
    Configure structured logging with JSON output for production.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
            Defaults to settings.LOG_LEVEL.
    """
    level = (log_level or settings.LOG_LEVEL).upper()

    # Configure structlog
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            _add_service_context,
            # JSON formatting for production
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    # Configure stdlib logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level),
    )


def _add_service_context(logger, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Stamp every entry with the service name and environment."""
    event_dict.setdefault("service", settings.SERVICE_NAME)
    event_dict.setdefault("environment", settings.environment)
    return event_dict


def get_logger(name: str = None) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


# Convenience functions for common log patterns
def log_evaluation(
    stage: str,
    visa_type: str,
    duration_ms: float,
    application_type: str | None = None,
    **fields: Any,
):
    """Log one evaluation stage with consistent fields."""
    logger = get_logger("evaluation")

    log_data = {
        "stage": stage,
        "visa_type": visa_type,
        "duration_ms": round(duration_ms, 2),
        "event_type": "evaluation_stage",
        **fields,
    }

    if application_type:
        log_data["application_type"] = application_type

    if fields.get("outcome") in {"incomplete", "unsupported"}:
        logger.warning("Evaluation stage degraded", **log_data)
    else:
        logger.info("Evaluation stage completed", **log_data)
