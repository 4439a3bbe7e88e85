"""
Structured logging configuration for blueprint-codec.

Emits one JSON object per event so that batch checks of many blueprints can
be collected and filtered by machines. Handlers write to stderr; stdout is
reserved for command output.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

_RESERVED_RECORD_KEYS = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "taskName",
    "getMessage",
    "exc_info",
    "exc_text",
    "stack_info",
}


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "component": record.name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_KEYS:
                log_entry[key] = value

        return json.dumps(log_entry, default=str)


class CodecLogger:
    """Structured logger carrying a per-document context."""

    def __init__(self, name: str = "blueprint_codec"):
        self.logger = logging.getLogger(f"blueprint_codec.{name}")
        self._setup_logger()
        self.context: Dict[str, Any] = {}

    def _setup_logger(self) -> None:
        if not self.logger.handlers:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(StructuredFormatter())
            self.logger.addHandler(handler)
            self.logger.setLevel(logging.WARNING)
            self.logger.propagate = False

    def set_context(
        self,
        document: Optional[str] = None,
        total_lines: Optional[int] = None,
    ) -> None:
        self.context = {}
        if document:
            self.context["document"] = document
        if total_lines is not None:
            self.context["total_lines"] = total_lines

    def clear_context(self) -> None:
        self.context.clear()

    def _log(self, level: str, event_type: str, **kwargs) -> None:
        log_data = {"event_type": event_type, **self.context, **kwargs}
        getattr(self.logger, level)(event_type, extra=log_data)

    def info(self, event_type: str, **kwargs) -> None:
        self._log("info", event_type, **kwargs)

    def warning(self, event_type: str, **kwargs) -> None:
        self._log("warning", event_type, **kwargs)

    def error(self, event_type: str, **kwargs) -> None:
        self._log("error", event_type, **kwargs)

    def debug(self, event_type: str, **kwargs) -> None:
        self._log("debug", event_type, **kwargs)


_decode_logger = CodecLogger("decode")
_document_logger = CodecLogger("document")
_cli_logger = CodecLogger("cli")


def get_decode_logger() -> CodecLogger:
    """Get line decoding logger."""
    return _decode_logger


def get_document_logger() -> CodecLogger:
    """Get document load/save logger."""
    return _document_logger


def get_cli_logger() -> CodecLogger:
    return _cli_logger


def log_decode_start(field_name: str, total_lines: int, document: Optional[str] = None) -> None:
    logger = get_decode_logger()
    logger.set_context(document=document, total_lines=total_lines)
    logger.debug("decode_started", field=field_name)


def log_decode_complete(
    field_name: str, decoded_count: int, error_count: int, duration_ms: float
) -> None:
    logger = get_decode_logger()
    log_data = {
        "field": field_name,
        "decoded_lines": decoded_count,
        "rejected_lines": error_count,
        "duration_ms": round(duration_ms, 3),
    }
    if error_count:
        logger.warning("decode_completed_with_errors", **log_data)
    else:
        logger.info("decode_completed", **log_data)
    logger.clear_context()


def log_line_rejected(field_name: str, index: int, kind: str) -> None:
    """Log a rejected line by position only; line text may hold secrets."""
    get_decode_logger().warning(
        "line_rejected", field=field_name, line_index=index, kind=kind
    )


def log_document_operation(operation: str, **kwargs) -> None:
    get_document_logger().info("document_operation", operation=operation, **kwargs)


def configure_logging(log_level: str = "WARNING", enable_json: bool = True) -> None:
    """Configure logging for the application."""
    level = getattr(logging, log_level.upper(), logging.WARNING)

    for logger in [_decode_logger, _document_logger, _cli_logger]:
        logger.logger.setLevel(level)
        formatter = (
            StructuredFormatter()
            if enable_json
            else logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        for handler in logger.logger.handlers:
            handler.setFormatter(formatter)
