"""JSON structured logging for actor lifecycle and state events.

Key features:
- One JSON object per line with timestamp, level, event_type and metrics
- Thread-safe singleton via ``get_observability_logger``
- Optional size-based rotation when a log file is configured
"""

import json
import logging
import uuid
from datetime import datetime, timezone
from enum import Enum
from logging.handlers import RotatingFileHandler
from pathlib import Path
from threading import Lock
from typing import Any

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RESERVED_RECORD_KEYS = frozenset(
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
        "event_type",
        "correlation_id",
        "metrics",
    }
)


class EventType(Enum):
    """Types of runtime events to log."""

    # Actor lifecycle
    ACTOR_REGISTERED = "actor_registered"
    ACTOR_UNREGISTERED = "actor_unregistered"
    ACTOR_ACTIVATED = "actor_activated"
    ACTOR_DEACTIVATED = "actor_deactivated"
    ACTOR_RESET = "actor_reset"

    # Evaluation
    STATE_TRANSITION = "state_transition"
    SAMPLE_SANITIZED = "sample_sanitized"
    TICK_FAILED = "tick_failed"

    # Scheduler
    SCHEDULER_STARTED = "scheduler_started"
    SCHEDULER_STOPPED = "scheduler_stopped"

    # System
    SYSTEM_STARTUP = "system_startup"
    SYSTEM_SHUTDOWN = "system_shutdown"


class JSONFormatter(logging.Formatter):
    """Formats log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "timestamp_unix": record.created,
            "level": record.levelname,
            "logger": record.name,
            "event_type": getattr(record, "event_type", "log"),
            "message": record.getMessage(),
            "metrics": getattr(record, "metrics", {}),
        }
        correlation_id = getattr(record, "correlation_id", None)
        if correlation_id:
            log_entry["correlation_id"] = correlation_id

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_KEYS and not key.startswith("_"):
                log_entry[key] = value

        return json.dumps(log_entry, default=str)


class ObservabilityLogger:
    """Thread-safe structured event logger.

    Features:
    - JSON output on console and, when ``log_file`` is set, a rotating file
    - Correlation IDs returned from every call
    - Convenience methods for each actor lifecycle event
    """

    def __init__(
        self,
        logger_name: str = "neurowave_observability",
        log_dir: Path | str | None = None,
        log_file: str | None = None,
        max_bytes: int = 10 * 1024 * 1024,  # 10 MB
        backup_count: int = 5,
        console_output: bool = True,
        min_level: int = logging.INFO,
    ):
        """Initialize observability logger.

        Args:
            logger_name: Name for the logger instance
            log_dir: Directory for the log file (None for current directory)
            log_file: Log file name; no file handler when None
            max_bytes: Maximum size of a log file before rotation
            backup_count: Number of rotated files to keep
            console_output: Whether to output logs to console
            min_level: Minimum logging level
        """
        self.logger = logging.getLogger(logger_name)
        self.logger.setLevel(logging.DEBUG)
        self.logger.propagate = False
        self._lock = Lock()

        self.logger.handlers.clear()
        json_formatter = JSONFormatter()

        self.log_path: Path | None = None
        if log_file:
            if log_dir:
                directory = Path(log_dir)
                directory.mkdir(parents=True, exist_ok=True)
                self.log_path = directory / log_file
            else:
                self.log_path = Path(log_file)

            file_handler = RotatingFileHandler(
                filename=str(self.log_path),
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
            file_handler.setLevel(min_level)
            file_handler.setFormatter(json_formatter)
            self.logger.addHandler(file_handler)

        if console_output:
            console_handler = logging.StreamHandler()
            console_handler.setLevel(min_level)
            console_handler.setFormatter(json_formatter)
            self.logger.addHandler(console_handler)

        self.max_bytes = max_bytes
        self.backup_count = backup_count
        self.min_level = min_level

    def _log_event(
        self,
        event_type: EventType,
        level: int,
        message: str,
        correlation_id: str | None = None,
        metrics: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> str:
        with self._lock:
            if correlation_id is None:
                correlation_id = str(uuid.uuid4())

            extra = {
                "event_type": event_type.value,
                "correlation_id": correlation_id,
                "metrics": metrics or {},
            }
            extra.update(kwargs)
            self.logger.log(level, message, extra=extra)
            return correlation_id

    def debug(self, event_type: EventType, message: str, **kwargs: Any) -> str:
        return self._log_event(event_type, logging.DEBUG, message, **kwargs)

    def info(self, event_type: EventType, message: str, **kwargs: Any) -> str:
        return self._log_event(event_type, logging.INFO, message, **kwargs)

    def warning(self, event_type: EventType, message: str, **kwargs: Any) -> str:
        return self._log_event(event_type, logging.WARNING, message, **kwargs)

    def error(self, event_type: EventType, message: str, **kwargs: Any) -> str:
        return self._log_event(event_type, logging.ERROR, message, **kwargs)

    # ------------------------------------------------------------------
    # Actor lifecycle
    # ------------------------------------------------------------------

    def log_actor_registered(self, actor_id: str, profile_id: str) -> str:
        return self.info(
            EventType.ACTOR_REGISTERED,
            f"Actor {actor_id} registered",
            metrics={"actor_id": actor_id, "profile_id": profile_id},
        )

    def log_actor_unregistered(self, actor_id: str) -> str:
        return self.info(
            EventType.ACTOR_UNREGISTERED,
            f"Actor {actor_id} unregistered",
            metrics={"actor_id": actor_id},
        )

    def log_actor_activated(self, actor_id: str, previous_actor_id: str | None = None) -> str:
        metrics: dict[str, Any] = {"actor_id": actor_id}
        if previous_actor_id is not None:
            metrics["previous_actor_id"] = previous_actor_id
        return self.info(EventType.ACTOR_ACTIVATED, f"Actor {actor_id} activated", metrics=metrics)

    def log_actor_deactivated(self, actor_id: str) -> str:
        return self.info(
            EventType.ACTOR_DEACTIVATED,
            f"Actor {actor_id} deactivated",
            metrics={"actor_id": actor_id},
        )

    def log_actor_reset(self, actor_id: str, state: str) -> str:
        return self.info(
            EventType.ACTOR_RESET,
            f"Actor {actor_id} reset",
            metrics={"actor_id": actor_id, "state": state},
        )

    def log_state_transition(
        self,
        actor_id: str,
        old_state: str,
        new_state: str,
        instability: float | None = None,
    ) -> str:
        metrics: dict[str, Any] = {
            "actor_id": actor_id,
            "old_state": old_state,
            "new_state": new_state,
        }
        if instability is not None:
            metrics["instability"] = round(instability, 4)
        return self.info(
            EventType.STATE_TRANSITION,
            f"Actor {actor_id}: {old_state} -> {new_state}",
            metrics=metrics,
        )

    def log_sample_sanitized(self, bands: list[float]) -> str:
        return self.debug(
            EventType.SAMPLE_SANITIZED,
            "Wave sample required sanitization",
            metrics={"bands": bands},
        )

    def log_tick_failed(
        self, actor_id: str, error: BaseException, error_code: str | None = None
    ) -> str:
        metrics: dict[str, Any] = {"actor_id": actor_id, "error_type": type(error).__name__}
        if error_code is not None:
            metrics["error_code"] = error_code
        return self.error(
            EventType.TICK_FAILED,
            f"Tick failed for actor {actor_id}: {error}",
            metrics=metrics,
        )

    # ------------------------------------------------------------------
    # Scheduler / system
    # ------------------------------------------------------------------

    def log_scheduler_started(self, actor_id: str, interval: float) -> str:
        return self.debug(
            EventType.SCHEDULER_STARTED,
            f"Evaluation loop started for {actor_id}",
            metrics={"actor_id": actor_id, "interval_s": interval},
        )

    def log_scheduler_stopped(self, actor_id: str, ticks: int) -> str:
        return self.debug(
            EventType.SCHEDULER_STOPPED,
            f"Evaluation loop stopped for {actor_id}",
            metrics={"actor_id": actor_id, "ticks": ticks},
        )

    def log_system_startup(
        self,
        version: str | None = None,
        config: dict[str, Any] | None = None,
    ) -> str:
        metrics: dict[str, Any] = {}
        if version:
            metrics["version"] = version
        if config:
            metrics["config"] = config
        return self.info(EventType.SYSTEM_STARTUP, "neurowave starting up", metrics=metrics)

    def log_system_shutdown(self, reason: str | None = None) -> str:
        metrics: dict[str, Any] = {}
        if reason:
            metrics["reason"] = reason
        return self.info(EventType.SYSTEM_SHUTDOWN, "neurowave shutting down", metrics=metrics)

    def get_config(self) -> dict[str, Any]:
        return {
            "logger_name": self.logger.name,
            "log_path": str(self.log_path) if self.log_path else None,
            "max_bytes": self.max_bytes,
            "backup_count": self.backup_count,
            "min_level": logging.getLevelName(self.min_level),
            "handlers": len(self.logger.handlers),
        }


# Global instance for convenience
_observability_logger: ObservabilityLogger | None = None
_observability_logger_lock = Lock()


def get_observability_logger(
    logger_name: str = "neurowave_observability",
    **kwargs: Any,
) -> ObservabilityLogger:
    """Get or create the process-wide observability logger.

    Uses double-checked locking; ``kwargs`` only apply on first creation.
    """
    global _observability_logger

    if _observability_logger is None:
        with _observability_logger_lock:
            if _observability_logger is None:
                _observability_logger = ObservabilityLogger(logger_name=logger_name, **kwargs)

    return _observability_logger


def configure_logging(level: str | int = "INFO", json_logging: bool = False) -> None:
    """Configure the ``neurowave`` package logger.

    Args:
        level: Log level name or number
        json_logging: Emit JSON lines instead of plain text
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    package_logger = logging.getLogger("neurowave")
    package_logger.setLevel(level)
    package_logger.handlers.clear()

    handler = logging.StreamHandler()
    if json_logging:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
    package_logger.addHandler(handler)
