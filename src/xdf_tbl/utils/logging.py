"""JSON logging for xdf tables.

Every record carries the process run id so the log lines of one summarise
call can be picked out of a shared stream. Operation records also carry the
operation name, its duration and any context passed to ``log_operation``.
"""

import logging
import sys
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

import orjson

ROOT_LOGGER = "xdf_tbl"

RUN_ID = uuid.uuid4().hex[:8]

# Record attributes copied into the JSON payload when present
_OPTIONAL_FIELDS = ("operation", "duration_ms")


class StructuredFormatter(logging.Formatter):
    """Render a record as one line of JSON."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "run_id": RUN_ID,
            "message": record.getMessage(),
        }
        for name in _OPTIONAL_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                payload[name] = value
        payload.update(getattr(record, "extra_fields", {}))
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return orjson.dumps(payload, default=str).decode("utf-8")


def setup_logging(level: str = "INFO", structured: bool = True) -> logging.Logger:
    """Send package logs to stderr.

    stdout is left alone so the CLI can print its JSON result there.

    Args:
        level: Level name such as ``"DEBUG"`` or ``"WARNING"``
        structured: JSON lines if True, plain text otherwise

    Returns:
        The package's root logger
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(numeric_level)
    handler.setFormatter(
        StructuredFormatter()
        if structured
        else logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )

    logger = logging.getLogger(ROOT_LOGGER)
    logger.handlers = [handler]
    logger.setLevel(numeric_level)
    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def log_operation(
    logger: logging.Logger, operation: str, duration_ms: Optional[float] = None, **extra_fields: Any
) -> None:
    """Emit an INFO record for ``operation`` with its duration and context."""
    if not logger.isEnabledFor(logging.INFO):
        return
    logger.info(
        "Operation: %s",
        operation,
        extra={"operation": operation, "duration_ms": duration_ms, "extra_fields": extra_fields},
    )


def log_timing(logger: logging.Logger, stage: str, duration_ms: float) -> None:
    log_operation(logger, f"timing.{stage}", duration_ms=duration_ms, stage=stage)
