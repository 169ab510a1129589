"""
Structured logging for project storage.

Storage code logs store calls through :func:`operation_logger`, which binds
the operation name and the project/user/store it concerns to every record.
:class:`StructuredJsonFormatter` lifts those fields to the top level of a
single-line JSON object, the shape Azure Container Apps and Log Analytics
ingest.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

# Record attributes promoted to top-level JSON keys
CONTEXT_FIELDS = ("operation", "store", "project_id", "user_id")


class StructuredJsonFormatter(logging.Formatter):
    """
    JSON formatter for storage logs.

    Every line carries ``timestamp``, ``level``, ``logger`` and ``message``,
    followed by whichever context fields the record has. A ``cause``
    exception is rendered as ``"<Type>: <message>"``.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_obj: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                log_obj[name] = value

        cause = getattr(record, "cause", None)
        if isinstance(cause, BaseException):
            log_obj["cause"] = f"{type(cause).__name__}: {cause}"

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_obj, default=str)


class StorageLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that stamps storage context onto every record.

    Per-call ``extra`` values are merged over the bound context.
    """

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        kwargs["extra"] = {**(self.extra or {}), **(kwargs.get("extra") or {})}
        return msg, kwargs


def operation_logger(
    logger: logging.Logger,
    operation: str,
    *,
    store: str | None = None,
    project_id: str | None = None,
    user_id: str | None = None,
) -> StorageLoggerAdapter:
    """Bind an operation and the project it touches to a logger.

    Args:
        logger: Module logger
        operation: Store operation name (``save``, ``delete``, ``migrate``, ...)
        store: Backing store the record is about (``cloud`` or ``local``)
        project_id: Project the operation targets
        user_id: Identity the operation runs under
    """
    context = {
        "operation": operation,
        "store": store,
        "project_id": project_id,
        "user_id": user_id,
    }
    return StorageLoggerAdapter(logger, {k: v for k, v in context.items() if v is not None})


def configure_structured_logging(
    level: int = logging.INFO,
    logger_name: str | None = "smello_project_storage",
) -> logging.Logger:
    """
    Send a logger's records to stdout as structured JSON.

    Args:
        level: Logging level (default: INFO)
        logger_name: Logger to configure (default: the package logger;
            pass None for the root logger)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(logger_name)

    # Remove existing handlers to avoid duplicates
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredJsonFormatter())

    logger.addHandler(handler)
    logger.setLevel(level)

    return logger
