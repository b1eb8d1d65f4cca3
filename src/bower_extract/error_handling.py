"""
Error handling for bower-extract.

Defines the resolution error hierarchy and the error channel every failure is
reported to. Per-dependency failures are reported and the dependency is
dropped; manifest and command failures are fatal to the run.
"""

import logging
import sys
import traceback
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from functools import partialmethod
from typing import Any, Callable, Dict, List, Optional

PLUGIN_LABEL = "bower-extract"
DIAGNOSTIC_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class ErrorLevel(Enum):
    """Severity of a reported diagnostic."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


FAILURE_LEVELS = (ErrorLevel.ERROR, ErrorLevel.CRITICAL)


class ErrorCategory(Enum):
    """Where in an extraction run a diagnostic originated."""

    FILESYSTEM = "FILESYSTEM"
    PARSING = "PARSING"
    RESOLUTION = "RESOLUTION"
    SUBSET = "SUBSET"
    MANIFEST = "MANIFEST"
    COMMAND = "COMMAND"
    CONFIGURATION = "CONFIGURATION"


class ResolutionError(Exception):
    """Base class for every error raised while extracting dependencies."""

    category = ErrorCategory.RESOLUTION
    fatal = False

    def __init__(self, message: str, dependency: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.dependency = dependency


class FileReadError(ResolutionError):
    """A file could not be read from disk."""

    category = ErrorCategory.FILESYSTEM

    def __init__(
        self, message: str, path: str, dependency: Optional[str] = None
    ):
        super().__init__(message, dependency)
        self.path = path


class ManifestParseError(ResolutionError):
    """A manifest file is not valid JSON."""

    category = ErrorCategory.PARSING

    def __init__(
        self, message: str, path: str, dependency: Optional[str] = None
    ):
        super().__init__(message, dependency)
        self.path = path


class EntryNotFoundError(ResolutionError):
    """No entry file survived the locator cascade."""

    category = ErrorCategory.RESOLUTION

    def __init__(self, dependency: str, reason: Optional[str] = None):
        message = f"didn't find file for: {dependency}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message, dependency)


class SubsetLoadError(ResolutionError):
    """No subset handler is registered for a dependency with a subset config."""

    category = ErrorCategory.SUBSET


class ManifestError(ResolutionError):
    """The project manifest is unreadable or malformed."""

    category = ErrorCategory.MANIFEST
    fatal = True


class CommandError(ResolutionError):
    """The package manager command failed before resolution started."""

    category = ErrorCategory.COMMAND
    fatal = True

    def __init__(self, message: str, returncode: Optional[int] = None):
        super().__init__(message)
        self.returncode = returncode


@dataclass
class ErrorContext:
    """A reported diagnostic, scoped to a dependency when one is known."""

    level: ErrorLevel
    category: ErrorCategory
    message: str
    module: str
    function: str
    dependency: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)
    exception: Optional[BaseException] = None
    traceback_info: Optional[str] = None

    @property
    def label(self) -> str:
        return PLUGIN_LABEL

    @property
    def origin(self) -> str:
        return f"{self.module}.{self.function}"

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "label": self.label,
            "level": self.level.value,
            "category": self.category.value,
            "message": self.message,
            "origin": self.origin,
            "dependency": self.dependency,
            "details": dict(self.details),
        }
        if self.exception is not None:
            data["exception"] = {
                "type": type(self.exception).__name__,
                "message": str(self.exception),
                "traceback": self.traceback_info,
            }
        return data

    def __str__(self) -> str:
        return f"[{self.label}] {self.message}"


class DiagnosticLogger:
    """Writes reported contexts to a standard library logger."""

    def __init__(
        self,
        name: str,
        level: int = logging.WARNING,
        log_format: str = DIAGNOSTIC_FORMAT,
    ):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(level)

        if not self.logger.handlers:
            self.logger.addHandler(logging.StreamHandler(sys.stderr))
        for handler in self.logger.handlers:
            handler.setFormatter(logging.Formatter(log_format))

    def log_error_context(self, context: ErrorContext) -> None:
        scope = f" ({context.dependency})" if context.dependency else ""
        suffix = f" [{context.category.value} in {context.origin}]"
        if context.exception is not None and not isinstance(
            context.exception, ResolutionError
        ):
            suffix += f" {type(context.exception).__name__}"
        self.logger.log(
            logging.getLevelName(context.level.value),
            "%s%s%s",
            context,
            scope,
            suffix,
        )


ErrorCallback = Callable[[ErrorContext], None]


class ErrorHandler:
    """
    Error channel shared by the resolver and the orchestrator.

    Every reported error is logged, recorded in ``contexts`` and passed to the
    registered callbacks. A callback registered without a category sees
    every context.
    """

    def __init__(
        self,
        logger_name: str = "bower_extract",
        log_level: int = logging.WARNING,
        enable_callbacks: bool = True,
        log_format: str = DIAGNOSTIC_FORMAT,
    ):
        self.logger = DiagnosticLogger(logger_name, log_level, log_format)
        self.enable_callbacks = enable_callbacks
        self._callbacks: Dict[Optional[ErrorCategory], List[ErrorCallback]] = {}
        self._stats: Counter = Counter()
        self.contexts: List[ErrorContext] = []

    def register_callback(
        self, callback: ErrorCallback, category: Optional[ErrorCategory] = None
    ) -> None:
        if self.enable_callbacks:
            self._callbacks.setdefault(category, []).append(callback)

    def _notify(self, context: ErrorContext) -> None:
        listeners = self._callbacks.get(context.category, []) + self._callbacks.get(
            None, []
        )
        for callback in listeners:
            try:
                callback(context)
            except Exception as cb_error:
                self.logger.logger.error(
                    "[%s] error callback %r failed: %s",
                    PLUGIN_LABEL,
                    getattr(callback, "__name__", callback),
                    cb_error,
                )

    def handle_error(
        self,
        level: ErrorLevel,
        category: ErrorCategory,
        message: str,
        module: str,
        function: str,
        exception: Optional[BaseException] = None,
        dependency: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> ErrorContext:
        """
        Record, log and dispatch one diagnostic.

        Args:
            level: Severity
            category: Error category
            message: Human readable message
            module: Reporting module
            function: Reporting function
            exception: Exception behind the diagnostic, if any
            dependency: Dependency the diagnostic is scoped to, if any
            details: Extra structured data

        Returns:
            ErrorContext: The recorded context
        """
        traceback_info = None
        if exception is not None and exception.__traceback__ is not None:
            traceback_info = "".join(traceback.format_exception(exception))

        context = ErrorContext(
            level=level,
            category=category,
            message=message,
            module=module,
            function=function,
            dependency=dependency,
            details=dict(details or {}),
            exception=exception,
            traceback_info=traceback_info,
        )

        self._stats[f"{category.value}_{level.value}"] += 1
        self.contexts.append(context)
        self.logger.log_error_context(context)

        if self.enable_callbacks:
            self._notify(context)
        return context

    warning = partialmethod(handle_error, ErrorLevel.WARNING)

    def report(
        self,
        exception: BaseException,
        module: str,
        function: str,
        dependency: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> ErrorContext:
        """
        Report an exception on the error channel.

        Resolution errors keep their own category; fatal ones are reported at
        CRITICAL level. Anything else is reported as a resolution error.
        """
        if isinstance(exception, ResolutionError):
            category = exception.category
            level = ErrorLevel.CRITICAL if exception.fatal else ErrorLevel.ERROR
            message = exception.message
            dependency = dependency or exception.dependency
        else:
            category = ErrorCategory.RESOLUTION
            level = ErrorLevel.ERROR
            message = str(exception) or type(exception).__name__

        return self.handle_error(
            level,
            category,
            message,
            module,
            function,
            exception=exception,
            dependency=dependency,
            details=details,
        )

    @property
    def errors(self) -> List[ErrorContext]:
        """Reported contexts at ERROR level or above."""
        return [ctx for ctx in self.contexts if ctx.level in FAILURE_LEVELS]

    def get_error_stats(self) -> Dict[str, int]:
        """Counts keyed ``<CATEGORY>_<LEVEL>``."""
        return dict(self._stats)

    def reset_stats(self) -> None:
        """Forget counts and recorded contexts."""
        self._stats.clear()
        self.contexts.clear()


_global_error_handler: Optional[ErrorHandler] = None


def get_error_handler() -> ErrorHandler:
    """Process-wide error channel, created on first use."""
    global _global_error_handler
    if _global_error_handler is None:
        _global_error_handler = ErrorHandler()
    return _global_error_handler


def setup_error_handling(
    log_level: int = logging.WARNING,
    enable_callbacks: bool = True,
    logger_name: str = "bower_extract",
    log_format: str = DIAGNOSTIC_FORMAT,
) -> ErrorHandler:
    """Replace the process-wide error channel with a fresh one and return it."""
    global _global_error_handler
    _global_error_handler = ErrorHandler(
        logger_name, log_level, enable_callbacks, log_format
    )
    return _global_error_handler
