"""
Structured logging configuration for bower-extract.

Emits one JSON document per event so extraction runs can be followed by
build tooling.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_RESERVED_RECORD_KEYS = frozenset(
    [
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
        "getMessage",
        "exc_info",
        "exc_text",
        "stack_info",
        "taskName",
    ]
)


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


class EventLogger:
    """Structured logger for extraction events."""

    def __init__(self, name: str = "bower_extract"):
        self.logger = logging.getLogger(f"bower_extract.{name}")
        self._setup_logger()
        self.run_context: Dict[str, Any] = {}

    def _setup_logger(self) -> None:
        """Setup logger with structured formatting."""
        if not self.logger.handlers:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(StructuredFormatter())
            self.logger.addHandler(handler)
            self.logger.setLevel(logging.WARNING)
            self.logger.propagate = False

    def set_run_context(
        self,
        run_id: Optional[str] = None,
        project_root: Optional[str] = None,
        total_dependencies: Optional[int] = None,
    ) -> None:
        """Set run context for logging."""
        self.run_context = {}
        if run_id:
            self.run_context["run_id"] = run_id
        if project_root:
            self.run_context["project_root"] = project_root
        if total_dependencies is not None:
            self.run_context["total_dependencies"] = total_dependencies

    def clear_run_context(self) -> None:
        """Clear run context."""
        self.run_context.clear()

    def _log(self, level: str, event_type: str, **kwargs) -> None:
        log_data = {"event_type": event_type, **self.run_context, **kwargs}
        getattr(self.logger, level.lower())(event_type, extra=log_data)

    def info(self, event_type: str, **kwargs) -> None:
        """Log info level event."""
        self._log("info", event_type, **kwargs)

    def warning(self, event_type: str, **kwargs) -> None:
        """Log warning level event."""
        self._log("warning", event_type, **kwargs)

    def debug(self, event_type: str, **kwargs) -> None:
        """Log debug level event."""
        self._log("debug", event_type, **kwargs)


# Global logger instances
_orchestrator_logger = EventLogger("orchestrator")
_resolver_logger = EventLogger("resolver")
_locator_logger = EventLogger("locator")
_command_logger = EventLogger("command")

_ALL_LOGGERS = (
    _orchestrator_logger,
    _resolver_logger,
    _locator_logger,
    _command_logger,
)


def get_orchestrator_logger() -> EventLogger:
    """Get orchestration events logger."""
    return _orchestrator_logger


def get_resolver_logger() -> EventLogger:
    """Get dependency resolution logger."""
    return _resolver_logger


def get_locator_logger() -> EventLogger:
    """Get heuristic locator logger."""
    return _locator_logger


def get_command_logger() -> EventLogger:
    """Get package manager command logger."""
    return _command_logger


def log_run_start(run_id: str, project_root: str, total_dependencies: int) -> None:
    """Log extraction start and tag every later event with the run."""
    set_run_context(run_id, project_root, total_dependencies)
    get_orchestrator_logger().info(
        "extraction_started",
        run_id=run_id,
        project_root=project_root,
        total_dependencies=total_dependencies,
    )


def log_run_complete(
    run_id: str, duration_ms: int, emitted_count: int, failed_count: int
) -> None:
    """Log extraction completion event."""
    get_orchestrator_logger().info(
        "extraction_completed",
        run_id=run_id,
        duration_ms=duration_ms,
        emitted_files=emitted_count,
        failed_dependencies=failed_count,
    )


def log_dependency_resolved(
    dependency: str, path: str, source: str, size: Optional[int] = None
) -> None:
    """Log where a dependency's file came from (subset, manifest or locator)."""
    log_data: Dict[str, Any] = {
        "dependency": dependency,
        "path": path,
        "source": source,
    }
    if size is not None:
        log_data["size"] = size
    get_resolver_logger().info("dependency_resolved", **log_data)


def log_cascade_step(dependency: str, step: str, candidates: int) -> None:
    """Log which locator step produced the candidates."""
    get_locator_logger().debug(
        "cascade_step_matched",
        dependency=dependency,
        step=step,
        candidates=candidates,
    )


def log_command_message(command: str, stream: str, message: str) -> None:
    """Log one line of package manager output."""
    get_command_logger().info(
        "command_output", command=command, stream=stream, line=message
    )


def set_run_context(
    run_id: Optional[str] = None,
    project_root: Optional[str] = None,
    total_dependencies: Optional[int] = None,
) -> None:
    """Set global run context for all loggers."""
    for logger in _ALL_LOGGERS:
        logger.set_run_context(run_id, project_root, total_dependencies)


def clear_run_context() -> None:
    """Clear global run context."""
    for logger in _ALL_LOGGERS:
        logger.clear_run_context()


def configure_logging(
    log_level: str = "WARNING",
    enable_json: bool = True,
    log_format: str = DEFAULT_LOG_FORMAT,
) -> None:
    """
    Configure the event loggers.

    Args:
        log_level: Minimum level emitted
        enable_json: Emit JSON documents; otherwise format with ``log_format``
        log_format: ``logging.Formatter`` format string for plain text output
    """
    level = getattr(logging, log_level.upper(), logging.WARNING)

    for logger in _ALL_LOGGERS:
        logger.logger.setLevel(level)
        for handler in logger.logger.handlers:
            handler.setFormatter(
                StructuredFormatter() if enable_json else logging.Formatter(log_format)
            )
