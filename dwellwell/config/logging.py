import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

SERVICE_NAME = "dwellwell"
PLAIN_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"

# Driver and HTTP client chatter only surfaces at WARNING and above.
QUIET_LOGGERS = ("httpx", "httpcore", "sqlalchemy.engine", "aiosqlite")

# Attributes every LogRecord carries; anything else arrived through ``extra=``.
_RECORD_ATTRIBUTES = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}


def _event_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RECORD_ATTRIBUTES
    }


class StructuredLogFormatter(logging.Formatter):
    """One JSON object per record; ``extra=`` fields land under ``extra``."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "service": SERVICE_NAME,
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        fields = _event_fields(record)
        if fields:
            payload["extra"] = fields
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(level: str = "INFO", *, structured: bool = False) -> None:
    """Route the root logger to stdout, as JSON when ``structured`` is set."""

    formatter: logging.Formatter
    if structured:
        formatter = StructuredLogFormatter()
    else:
        formatter = logging.Formatter(PLAIN_FORMAT)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        handlers=[handler],
        force=True,
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        "logging.configured", extra={"level": level.upper(), "structured": structured}
    )
