import logging
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict

from pythonjsonlogger import jsonlogger

from recruiter.core.config import settings

# set by CorrelationIdMiddleware for the duration of a request
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RecruiterJsonFormatter(jsonlogger.JsonFormatter):
    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record.setdefault("timestamp", datetime.now(timezone.utc).isoformat())
        log_record["level"] = record.levelname
        request_id = request_id_var.get()
        if request_id:
            log_record["request_id"] = request_id


def setup_logging() -> None:
    """Install one JSON handler on the root logger. Safe to call more than once."""
    root = logging.getLogger()
    if any(isinstance(h.formatter, RecruiterJsonFormatter) for h in root.handlers):
        return
    handler = logging.StreamHandler()
    handler.setFormatter(RecruiterJsonFormatter("%(timestamp) %(level) %(name) %(message)"))
    root.addHandler(handler)
    root.setLevel(settings.log_level)

    for noisy in ("uvicorn.access", "sqlalchemy.engine", "urllib3"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
