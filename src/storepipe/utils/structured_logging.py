r"""Structured logging utilities for machine-readable log output.

The executors log every attempt, credential refresh and final outcome
through ``log_structured`` with the call fields ``endpoint``,
``attempt``, ``status_code`` and ``error_kind``. Plain formatters show
the message only; the ``StructuredFormatter`` below renders one JSON
object per record with the call fields always present.

Example:
    Enable structured logging for storepipe:

    ```python
    import logging
    from storepipe.utils.structured_logging import StructuredFormatter

    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter())

    logger = logging.getLogger("storepipe")
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    ```

    A refresh of an expired token then renders as:

    ```json
    {"timestamp": "2024-05-01T10:00:00.123Z", "level": "DEBUG",
     "logger": "storepipe.executor",
     "message": "files/get_metadata: access token expired, refreshing credential",
     "endpoint": "files/get_metadata", "attempt": 1, "status_code": 401,
     "error_kind": "expired_credential"}
    ```
"""

from __future__ import annotations

__all__ = ["CALL_FIELDS", "StructuredFormatter", "log_structured"]

import json
import logging
import time
from typing import Any

# Fields describing the endpoint call a record belongs to
CALL_FIELDS = ("endpoint", "attempt", "status_code", "error_kind")

# Attributes present on every LogRecord; anything else came from ``extra``
_RESERVED_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "msecs",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "sinfo",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "message",
        "taskName",
    }
)


class StructuredFormatter(logging.Formatter):
    """JSON formatter for endpoint call records.

    Each record is rendered as one JSON object with the fields
    ``timestamp``, ``level``, ``logger`` and ``message``, followed by the
    call fields (``None`` when the record does not carry them). Other
    fields passed via ``extra`` are grouped under ``extra``, and the
    formatted exception, when present, under ``exception``. Values that
    are not JSON serializable are rendered with ``str``.

    Example:
        ```pycon
        >>> import json
        >>> import logging
        >>> from storepipe.utils.structured_logging import StructuredFormatter
        >>> record = logging.LogRecord(
        ...     "storepipe.executor", logging.DEBUG, __file__, 1, "files/get_metadata failed",
        ...     None, None,
        ... )
        >>> record.endpoint = "files/get_metadata"
        >>> record.error_kind = "http"
        >>> data = json.loads(StructuredFormatter().format(record))
        >>> data["endpoint"], data["attempt"], data["error_kind"]
        ('files/get_metadata', None, 'http')

        ```
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in CALL_FIELDS:
            log_data[key] = getattr(record, key, None)

        extra = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS and key not in CALL_FIELDS
        }
        if extra:
            log_data["extra"] = extra

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:  # noqa: N802
        """Format timestamp as ISO 8601 in UTC with millisecond precision."""
        return (
            time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime(record.created))
            + f".{int(record.msecs):03d}Z"
        )


def log_structured(
    logger: logging.Logger,
    level: int,
    message: str,
    **extra: Any,
) -> None:
    """Log a message with structured fields.

    Args:
        logger: Logger to use.
        level: Log level (e.g., logging.DEBUG).
        message: Log message.
        **extra: Additional structured fields to include in the record,
            usually the call fields.
    """
    if logger.isEnabledFor(level):
        logger.log(level, message, extra=extra)
