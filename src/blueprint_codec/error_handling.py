"""
Error handling for blueprint-codec.

Defines the typed format errors raised by the line codecs and the structured
logging, callback and statistics machinery used by the document layer and
the CLI when lines are rejected.
"""

import logging
import re
import sys
import traceback
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional


class FormatErrorKind(Enum):
    """Taxonomy of line-level format errors."""

    UNKNOWN_PREFIX = "UnknownPrefix"
    MALFORMED_DEPENDENCY = "MalformedDependency"
    UNKNOWN_CATEGORY = "UnknownCategory"
    MISSING_SEPARATOR = "MissingSeparator"
    EMPTY_KEY = "EmptyKey"
    LINE_TOO_LONG = "LineTooLong"


class FormatError(ValueError):
    """A single line could not be decoded."""

    kind = FormatErrorKind.MALFORMED_DEPENDENCY

    def __init__(self, message: str, line: Optional[str] = None, value: Optional[str] = None):
        super().__init__(message)
        self.line = line
        self.value = value


class MalformedDependencyError(FormatError):
    """Dependency line does not match the bracket grammar."""

    kind = FormatErrorKind.MALFORMED_DEPENDENCY


class UnknownPrefixError(MalformedDependencyError):
    """Dependency line starts with neither '-' nor '|'."""

    kind = FormatErrorKind.UNKNOWN_PREFIX


class UnknownCategoryError(MalformedDependencyError):
    """Category tag is not one of the known categories."""

    kind = FormatErrorKind.UNKNOWN_CATEGORY


class MissingSeparatorError(FormatError):
    kind = FormatErrorKind.MISSING_SEPARATOR


class EmptyKeyError(FormatError):
    kind = FormatErrorKind.EMPTY_KEY


class LineTooLongError(FormatError):
    kind = FormatErrorKind.LINE_TOO_LONG


class ErrorLevel(Enum):
    """Error severity levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ErrorCategory(Enum):
    """Error categories for better classification."""

    PARSING = "PARSING"
    VALIDATION = "VALIDATION"
    CONFIGURATION = "CONFIGURATION"
    FILESYSTEM = "FILESYSTEM"


@dataclass
class ErrorContext:
    """Structured error context information."""

    level: ErrorLevel
    category: ErrorCategory
    message: str
    module: str
    function: str
    details: Dict[str, Any] = field(default_factory=dict)
    exception: Optional[Exception] = None
    traceback_info: Optional[str] = None
    suggestions: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error context to dictionary for logging."""
        return {
            "level": self.level.value,
            "category": self.category.value,
            "message": self.message,
            "module": self.module,
            "function": self.function,
            "details": self.details,
            "exception_type": type(self.exception).__name__ if self.exception else None,
            "exception_message": str(self.exception) if self.exception else None,
            "traceback": self.traceback_info,
            "suggestions": self.suggestions,
        }


class SecureLogger:
    """Logger that masks secrets before they reach a handler."""

    SENSITIVE_PATTERNS = [
        (r'token["\s]*[:=]["\s]*([a-zA-Z0-9_\-+=/.]{8,})', 'token="[REDACTED]"'),
        (r'key["\s]*[:=]["\s]*([a-zA-Z0-9_\-+=/.]{8,})', 'key="[REDACTED]"'),
        (r'password["\s]*[:=]["\s]*([^\s"\']+)', 'password="[REDACTED]"'),
        (r'secret["\s]*[:=]["\s]*([^\s"\']+)', 'secret="[REDACTED]"'),
        (r"(https?://[^@\s]+:)[^@\s]+@", r"\1[REDACTED]@"),  # URLs with credentials
    ]
    SENSITIVE_KEYS = {"token", "key", "password", "secret", "credential", "auth"}

    def __init__(self, name: str, level: int = logging.WARNING, mask: bool = True):
        """
        Initialize secure logger.

        Args:
            name: Logger name
            level: Logging level
            mask: Whether to redact sensitive values
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(level)
        self.mask = mask

        if not self.logger.handlers:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(
                logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
            )
            self.logger.addHandler(handler)

    def _sanitize_message(self, message: str) -> str:
        if not self.mask:
            return message

        sanitized = message
        for pattern, replacement in self.SENSITIVE_PATTERNS:
            sanitized = re.sub(pattern, replacement, sanitized, flags=re.IGNORECASE)
        return sanitized

    def _sanitize_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Sanitize dictionary values to remove sensitive info."""
        if not self.mask or not isinstance(data, dict):
            return data

        sanitized = {}
        for key, value in data.items():
            if any(sensitive in key.lower() for sensitive in self.SENSITIVE_KEYS):
                sanitized[key] = "[REDACTED]"
            elif isinstance(value, dict):
                sanitized[key] = self._sanitize_dict(value)
            elif isinstance(value, str):
                sanitized[key] = self._sanitize_message(value)
            else:
                sanitized[key] = value
        return sanitized

    def log_error_context(self, context: ErrorContext):
        """
        Log error context with appropriate level.

        Args:
            context: Error context to log
        """
        log_data = {
            "category": context.category.value,
            "module": context.module,
            "function": context.function,
            "details": self._sanitize_dict(context.details),
        }

        if context.exception:
            log_data["exception"] = type(context.exception).__name__

        if context.suggestions:
            log_data["suggestions"] = context.suggestions

        log_message = f"{self._sanitize_message(context.message)} | {log_data}"
        self.logger.log(getattr(logging, context.level.value), log_message)


# Error callback type
ErrorCallback = Callable[[ErrorContext], None]


class ErrorHandler:
    """
    Centralized error handler for consistent error management.

    Provides logging, callbacks, and structured error handling
    for library components.
    """

    def __init__(
        self,
        logger_name: str = "blueprint_codec",
        log_level: int = logging.WARNING,
        enable_callbacks: bool = True,
        mask_sensitive: bool = True,
    ):
        self.logger = SecureLogger(logger_name, log_level, mask=mask_sensitive)
        self.enable_callbacks = enable_callbacks
        self.error_callbacks: Dict[ErrorCategory, List[ErrorCallback]] = {}
        self.global_callbacks: List[ErrorCallback] = []
        self.error_stats: Dict[str, int] = {}

    def register_callback(
        self, callback: ErrorCallback, category: Optional[ErrorCategory] = None
    ):
        """
        Register error callback.

        Args:
            callback: Function to call on errors
            category: Error category to filter, None for all errors
        """
        if not self.enable_callbacks:
            return

        if category is None:
            self.global_callbacks.append(callback)
        else:
            self.error_callbacks.setdefault(category, []).append(callback)

    def handle_error(
        self,
        level: ErrorLevel,
        category: ErrorCategory,
        message: str,
        module: str,
        function: str,
        exception: Optional[Exception] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ) -> ErrorContext:
        """
        Handle an error with structured logging and callbacks.

        Returns:
            ErrorContext: The created error context
        """
        context = ErrorContext(
            level=level,
            category=category,
            message=message,
            module=module,
            function=function,
            details=details or {},
            exception=exception,
            traceback_info=(
                "".join(traceback.format_exception_only(type(exception), exception))
                if exception
                else None
            ),
            suggestions=suggestions or [],
        )

        stat_key = f"{category.value}_{level.value}"
        self.error_stats[stat_key] = self.error_stats.get(stat_key, 0) + 1

        self.logger.log_error_context(context)

        if self.enable_callbacks:
            for callback in self.error_callbacks.get(category, []):
                try:
                    callback(context)
                except Exception as cb_error:
                    # Don't let callback errors break the main flow
                    self.logger.logger.error(f"Error in callback: {cb_error}")

            for callback in self.global_callbacks:
                try:
                    callback(context)
                except Exception as cb_error:
                    self.logger.logger.error(f"Error in global callback: {cb_error}")

        return context

    def warning(
        self,
        category: ErrorCategory,
        message: str,
        module: str,
        function: str,
        **kwargs,
    ) -> ErrorContext:
        """Handle warning level error."""
        return self.handle_error(
            ErrorLevel.WARNING, category, message, module, function, **kwargs
        )

    def error(
        self,
        category: ErrorCategory,
        message: str,
        module: str,
        function: str,
        **kwargs,
    ) -> ErrorContext:
        """Handle error level error."""
        return self.handle_error(
            ErrorLevel.ERROR, category, message, module, function, **kwargs
        )

    def get_error_stats(self) -> Dict[str, int]:
        """Get error statistics."""
        return self.error_stats.copy()


# Global error handler instance
_global_error_handler: Optional[ErrorHandler] = None


def get_error_handler() -> ErrorHandler:
    """
    Get the global error handler instance.

    Returns:
        ErrorHandler: Global error handler
    """
    global _global_error_handler
    if _global_error_handler is None:
        _global_error_handler = ErrorHandler()
    return _global_error_handler


def setup_error_handling(
    log_level: int = logging.WARNING,
    enable_callbacks: bool = True,
    logger_name: str = "blueprint_codec",
    mask_sensitive: bool = True,
) -> ErrorHandler:
    """
    Setup global error handling configuration.

    Returns:
        ErrorHandler: Configured error handler
    """
    global _global_error_handler
    _global_error_handler = ErrorHandler(
        logger_name, log_level, enable_callbacks, mask_sensitive
    )
    return _global_error_handler


def log_parsing_error(
    message: str,
    module: str,
    function: str,
    line_number: Optional[int] = None,
    file_path: Optional[str] = None,
    exception: Optional[Exception] = None,
) -> ErrorContext:
    """
    Convenience function for logging rejected lines.

    Args:
        message: Error message
        module: Module name
        function: Function name
        line_number: Zero-based index of the rejected line
        file_path: Blueprint file being decoded
        exception: Optional exception
    """
    details: Dict[str, Any] = {}
    if line_number is not None:
        details["line_number"] = line_number
    if file_path is not None:
        # Only filename, not full path
        details["file_path"] = Path(file_path).name
    if isinstance(exception, FormatError):
        details["kind"] = exception.kind.value

    suggestions = [
        "Dependency lines look like '- [PyPI] name [version]'",
        "Extended lines look like '| [Apt] name [version] {extra1} {extra2}'",
        "Environment lines look like 'KEY=VALUE'",
    ]

    return get_error_handler().warning(
        ErrorCategory.PARSING,
        message,
        module,
        function,
        details=details,
        exception=exception,
        suggestions=suggestions,
    )
