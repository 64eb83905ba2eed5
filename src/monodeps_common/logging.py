# SPDX-License-Identifier: MIT
"""Structured logging helpers with correlation IDs.

This module provides a LoggerAdapter that injects structured fields
(``correlation_id``, ``operation``, ``status``) into every record, a JSON
formatter that renders one object per line, and module-level loggers with
NullHandler so the library never configures output on its own.

Results are written to stdout by the CLI; logs are diagnostics and go to
stderr once :func:`setup_logging` has run.

Examples
--------
>>> from monodeps_common.logging import get_logger
>>> logger = get_logger(__name__)
>>> logger.info("Scan started", extra={"operation": "scan", "status": "started"})
"""

from __future__ import annotations

import contextvars
import json
import logging
import sys
import time
from collections.abc import Mapping, MutableMapping
from contextlib import AbstractContextManager
from typing import TYPE_CHECKING, Any, Self, TextIO

if TYPE_CHECKING:
    from types import TracebackType

__all__ = [
    "CorrelationContext",
    "JsonFormatter",
    "LoggerAdapter",
    "get_correlation_id",
    "get_logger",
    "measure_duration",
    "set_correlation_id",
    "setup_logging",
    "with_fields",
]

# Context variable for correlation ID propagation
_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "correlation_id", default=None
)

_STANDARD_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "thread",
        "threadName",
        "taskName",
        "exc_info",
        "exc_text",
        "stack_info",
        "ts",
    }
)


class JsonFormatter(logging.Formatter):
    """JSON formatter for structured logging.

    Formats log records as JSON with timestamp, level, name, message and
    any JSON-compatible extra fields. The correlation ID is taken from the
    record, or from the context variable when the record has none.

    Examples
    --------
    >>> import logging
    >>> handler = logging.StreamHandler()
    >>> handler.setFormatter(JsonFormatter())
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON.

        Parameters
        ----------
        record : logging.LogRecord
            Log record to format.

        Returns
        -------
        str
            JSON-encoded log entry.
        """
        data: dict[str, Any] = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S") + f".{int(record.msecs):03d}Z",
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }

        for field in ("correlation_id", "operation", "status", "duration_ms"):
            value = getattr(record, field, None)
            if value is not None:
                data[field] = value

        if "correlation_id" not in data:
            ctx_correlation_id = _correlation_id.get()
            if ctx_correlation_id is not None:
                data["correlation_id"] = ctx_correlation_id

        for key, value in record.__dict__.items():
            if (
                key not in _STANDARD_ATTRS
                and key not in data
                and not key.startswith("_")
                and value is not None
                and isinstance(value, (str, int, float, bool, list, dict))
            ):
                data[key] = value

        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(data, default=str)


class LoggerAdapter(logging.LoggerAdapter[logging.Logger]):
    """Logger adapter that injects structured context fields.

    Every record carries ``operation`` and ``status``; missing values
    default to ``"unknown"`` and a status inferred from the level. Fields
    bound at construction (see :func:`with_fields`) are merged into each
    call's ``extra`` without overriding explicit values.

    Examples
    --------
    >>> logger = get_logger(__name__)
    >>> logger.warning("Manifest skipped", extra={"operation": "scan", "path": "a/go.mod"})
    """

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        """Merge bound fields and the context correlation ID into ``extra``.

        Parameters
        ----------
        msg : Any
            Log message.
        kwargs : MutableMapping[str, Any]
            Keyword arguments from the logging call.

        Returns
        -------
        tuple[Any, MutableMapping[str, Any]]
            Message and kwargs with a populated ``extra`` dict.
        """
        extra = dict(kwargs.get("extra") or {})
        if isinstance(self.extra, Mapping):
            for key, value in self.extra.items():
                extra.setdefault(key, value)
        if "correlation_id" not in extra:
            ctx_correlation_id = _correlation_id.get()
            if ctx_correlation_id is not None:
                extra["correlation_id"] = ctx_correlation_id
        kwargs["extra"] = extra
        return msg, kwargs

    def log(self, level: int, msg: object, *args: object, **kwargs: Any) -> None:
        """Log ``msg`` at ``level`` with structured fields."""
        if not self.isEnabledFor(level):
            return
        msg, kwargs = self.process(msg, kwargs)
        self._ensure_operation_and_status(kwargs["extra"], level)
        self.logger.log(level, msg, *args, **kwargs)

    @staticmethod
    def _ensure_operation_and_status(extra: dict[str, Any], level: int) -> None:
        extra.setdefault("operation", "unknown")
        if "status" not in extra:
            if level >= logging.ERROR:
                extra["status"] = "error"
            elif level >= logging.WARNING:
                extra["status"] = "warning"
            else:
                extra["status"] = "success"


def get_logger(name: str) -> LoggerAdapter:
    """Get a logger adapter with structured logging support.

    Parameters
    ----------
    name : str
        Logger name (typically ``__name__``).

    Returns
    -------
    LoggerAdapter
        Adapter wrapping ``logging.getLogger(name)``. A NullHandler is
        attached when the logger has no handlers.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.addHandler(logging.NullHandler())
    return LoggerAdapter(logger, {})


def setup_logging(level: int | str = logging.INFO, stream: TextIO | None = None) -> None:
    """Configure the root logger with :class:`JsonFormatter`.

    Should be called once at application startup.

    Parameters
    ----------
    level : int | str, optional
        Threshold level (``logging.DEBUG`` or ``"DEBUG"``). Defaults to INFO.
    stream : TextIO | None, optional
        Destination stream. Defaults to ``sys.stderr`` so stdout stays
        reserved for results.
    """
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(JsonFormatter())
    if isinstance(level, str):
        level = logging.getLevelNamesMapping().get(level.upper(), logging.INFO)
    logging.basicConfig(level=level, handlers=[handler], force=True)


def set_correlation_id(correlation_id: str | None) -> None:
    """Set the correlation ID injected into subsequent log entries."""
    _correlation_id.set(correlation_id)


def get_correlation_id() -> str | None:
    """Return the current correlation ID, or None when unset.

    Returns
    -------
    str | None
        Current correlation ID.
    """
    return _correlation_id.get()


class CorrelationContext:
    """Context manager binding a correlation ID for the duration of a block.

    The previous correlation ID is restored on exit.

    Parameters
    ----------
    correlation_id : str | None
        Correlation ID to bind (None clears it).

    Examples
    --------
    >>> with CorrelationContext(correlation_id="run-123"):
    ...     get_logger(__name__).info("Resolution started")
    """

    def __init__(self, correlation_id: str | None) -> None:
        self.correlation_id = correlation_id
        self._token: contextvars.Token[str | None] | None = None

    def __enter__(self) -> Self:
        self._token = _correlation_id.set(self.correlation_id)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._token is not None:
            _correlation_id.reset(self._token)
        del exc_type, exc_val, exc_tb


class _WithFieldsContext(AbstractContextManager[LoggerAdapter]):
    def __init__(
        self, logger: logging.Logger | LoggerAdapter, fields: Mapping[str, object]
    ) -> None:
        self._logger = logger
        self._fields = dict(fields)
        self._token: contextvars.Token[str | None] | None = None

    def __enter__(self) -> LoggerAdapter:
        if isinstance(self._logger, LoggerAdapter):
            base_logger = self._logger.logger
            bound = dict(self._logger.extra or {})
        else:
            base_logger = self._logger
            bound = {}
        bound.update(self._fields)
        correlation_id = self._fields.get("correlation_id")
        if isinstance(correlation_id, str):
            self._token = _correlation_id.set(correlation_id)
        return LoggerAdapter(base_logger, bound)

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._token is not None:
            _correlation_id.reset(self._token)
        del exc_type, exc_value, exc_tb


def with_fields(
    logger: logging.Logger | LoggerAdapter,
    **fields: object,
) -> AbstractContextManager[LoggerAdapter]:
    """Context manager attaching structured fields to log entries.

    Parameters
    ----------
    logger : logging.Logger | LoggerAdapter
        Base logger to wrap (may already be an adapter).
    **fields : object
        Fields injected into every entry logged through the yielded adapter.
        A ``correlation_id`` field is also bound to the context variable.

    Returns
    -------
    AbstractContextManager[LoggerAdapter]
        Context manager yielding the bound adapter.

    Examples
    --------
    >>> logger = get_logger(__name__)
    >>> with with_fields(logger, operation="resolve", target="example.com/a") as log:
    ...     log.info("Resolving dependents")
    """
    return _WithFieldsContext(logger, fields)


def measure_duration() -> tuple[float, float]:
    """Return a monotonic start time and the wall-clock time.

    Returns
    -------
    tuple[float, float]
        ``(monotonic_start, wall_time)``. Compute ``duration_ms`` as
        ``(time.monotonic() - monotonic_start) * 1000``.
    """
    return time.monotonic(), time.time()
