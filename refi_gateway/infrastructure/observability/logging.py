"""Structured JSON logging for the API and the scheduled jobs"""

import logging
import sys
from typing import Any, Dict
from pythonjsonlogger import jsonlogger
from refi_gateway.config import settings
from refi_gateway.utils.date_utils import utc_now_iso

# Held at WARNING; the HTTP client logs every request at INFO
QUIET_LOGGERS = ("httpx", "httpcore")


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter adding a UTC timestamp, level and service name to each record"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = utc_now_iso()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Route the root logger to stdout as JSON; safe to call more than once"""
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s"))
    root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def log_analysis(
    request_id: str,
    rate_source: str,
    verdict_color: str,
    best_scenario_id: str,
    horizon_months: int,
    duration_ms: float,
) -> None:
    """One line per /v1/analyze call, joined to access logs by request_id"""
    logging.getLogger("refi_gateway.analysis").info(
        "Analysis completed",
        extra={
            "request_id": request_id,
            "step": "analysis_complete",
            "rate_source": rate_source,
            "verdict_color": verdict_color,
            "best_scenario_id": best_scenario_id,
            "horizon_months": horizon_months,
            "duration_ms": round(duration_ms, 2),
        },
    )
