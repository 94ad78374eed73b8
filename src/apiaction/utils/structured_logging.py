r"""Structured logging utilities for machine-readable log output.

The library never configures logging itself. To get JSON records for
the ``apiaction`` loggers, attach a handler using ``StructuredFormatter``:

```python
import logging

from apiaction.utils.structured_logging import StructuredFormatter

handler = logging.StreamHandler()
handler.setFormatter(StructuredFormatter())
logger = logging.getLogger("apiaction")
logger.addHandler(handler)
logger.setLevel(logging.DEBUG)
```

A correlation ID set with ``set_correlation_id`` is added to every record
emitted from the same context (task or thread), which ties the records
of the hooks of one action together.
"""

from __future__ import annotations

__all__ = [
    "StructuredFormatter",
    "clear_correlation_id",
    "get_correlation_id",
    "log_structured",
    "set_correlation_id",
]

import contextvars
import json
import logging
import time
from typing import Any

_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "apiaction_correlation_id", default=None
)

# Attributes of every LogRecord, i.e. everything that is not an ``extra`` field
_RECORD_ATTRIBUTES = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"}


def get_correlation_id() -> str | None:
    r"""Get the correlation ID of the current context.

    Returns:
        The correlation ID, or ``None`` if not set.

    Example:
        ```pycon
        >>> from apiaction.utils.structured_logging import get_correlation_id
        >>> get_correlation_id()

        ```
    """
    return _correlation_id.get()


def set_correlation_id(correlation_id: str) -> None:
    r"""Set the correlation ID of the current context.

    Args:
        correlation_id: The correlation ID (e.g. a request or trace ID).

    Example:
        ```pycon
        >>> from apiaction.utils.structured_logging import (
        ...     clear_correlation_id,
        ...     get_correlation_id,
        ...     set_correlation_id,
        ... )
        >>> set_correlation_id("call-1")
        >>> get_correlation_id()
        'call-1'
        >>> clear_correlation_id()

        ```
    """
    _correlation_id.set(correlation_id)


def clear_correlation_id() -> None:
    r"""Clear the correlation ID of the current context."""
    _correlation_id.set(None)


class StructuredFormatter(logging.Formatter):
    r"""Format log records as JSON objects.

    Every object has the fields ``timestamp`` (ISO 8601, UTC), ``level``,
    ``logger``, ``message``, ``module``, ``function`` and ``line``, plus
    ``correlation_id`` when set, ``exception`` when the record carries
    exception info, and every field passed through ``extra``. Values
    that are not JSON serializable are rendered with ``str``.

    Example:
        ```pycon
        >>> import json
        >>> import logging
        >>> from io import StringIO
        >>> from apiaction.utils.structured_logging import StructuredFormatter
        >>> stream = StringIO()
        >>> handler = logging.StreamHandler(stream)
        >>> handler.setFormatter(StructuredFormatter())
        >>> logger = logging.getLogger("doctest_structured_formatter")
        >>> logger.addHandler(handler)
        >>> logger.setLevel(logging.INFO)
        >>> logger.info("sent", extra={"action": "get_user"})
        >>> json.loads(stream.getvalue())["action"]
        'get_user'

        ```
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        correlation_id = get_correlation_id()
        if correlation_id is not None:
            log_data["correlation_id"] = correlation_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRIBUTES:
                log_data[key] = value

        return json.dumps(log_data, default=str)

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:  # noqa: N802
        r"""Format the record time as ISO 8601 with millisecond precision.

        ``datefmt`` is ignored.
        """
        return (
            time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime(record.created))
            + f".{int(record.msecs):03d}Z"
        )


def log_structured(logger: logging.Logger, level: int, message: str, **extra: Any) -> None:
    r"""Log a message with structured fields.

    Fields whose value is ``None`` are dropped.

    Args:
        logger: The logger to use.
        level: The log level (e.g. ``logging.INFO``).
        message: The log message.
        **extra: The structured fields.
    """
    if not logger.isEnabledFor(level):
        return
    logger.log(level, message, extra={k: v for k, v in extra.items() if v is not None})
