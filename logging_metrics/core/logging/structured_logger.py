"""
Structured Logging with Correlation IDs for the measurement engine
"""

import json
import uuid
import logging
import inspect
from typing import Dict, Any, Optional, Union
from datetime import datetime
from enum import Enum
from dataclasses import dataclass, field, asdict
from contextvars import ContextVar
from functools import wraps
import traceback

from ...config import get_settings

# Context variables for correlation tracking
correlation_id: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)

PACKAGE_LOGGER_NAME = "logging_metrics"


class LogLevel(Enum):
    """Log levels understood by the structured logger"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class EventType(Enum):
    """Types of events for categorization"""
    CLIENT_RESOLUTION = "client_resolution"
    METRIC_TRACKED = "metric_tracked"
    PERFORMANCE_METRIC = "performance_metric"
    BATCH_EXECUTION = "batch_execution"
    ERROR_OCCURRED = "error_occurred"
    CLIENT_FLUSH = "client_flush"
    SYSTEM_EVENT = "system_event"


@dataclass
class LogContext:
    """Context information for structured logging"""
    correlation_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, excluding None values"""
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class LogEvent:
    """Structured log event"""
    timestamp: datetime
    level: str
    logger: str
    message: str
    event_type: EventType
    context: LogContext
    metadata: Dict[str, Any] = field(default_factory=dict)
    error_details: Optional[Dict[str, Any]] = None
    performance_metrics: Optional[Dict[str, Union[int, float]]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        result = {
            "timestamp": self.timestamp.isoformat(),
            "level": self.level,
            "logger": self.logger,
            "message": self.message,
            "event_type": self.event_type.value,
            "context": self.context.to_dict(),
            "metadata": self.metadata
        }

        if self.error_details:
            result["error"] = self.error_details

        if self.performance_metrics:
            result["performance"] = self.performance_metrics

        return result

    def to_json(self) -> str:
        """Convert to JSON string"""
        return json.dumps(self.to_dict(), default=str)


class StructuredFormatter(logging.Formatter):
    """Formats log records as one JSON object per line"""

    def format(self, record: logging.LogRecord) -> str:
        event = LogEvent(
            timestamp=datetime.fromtimestamp(record.created),
            level=record.levelname,
            logger=record.name,
            message=record.getMessage(),
            event_type=getattr(record, 'event_type', EventType.SYSTEM_EVENT),
            context=LogContext(correlation_id=correlation_id.get()),
            metadata=getattr(record, 'metadata', {}),
            error_details=self._extract_error_details(record),
            performance_metrics=getattr(record, 'performance_metrics', None)
        )

        return event.to_json()

    def _extract_error_details(self, record: logging.LogRecord) -> Optional[Dict[str, Any]]:
        if record.exc_info:
            return {
                "exception_type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "exception_message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": traceback.format_exception(*record.exc_info),
                "module": record.module,
                "function": record.funcName,
                "line_number": record.lineno
            }
        return None


class StructuredLogger:
    """Thin wrapper over a stdlib logger that attaches event metadata to each record"""

    def __init__(self, name: str):
        self.name = name
        self.logger = logging.getLogger(name)

    def _log(self,
             level: LogLevel,
             message: str,
             event_type: EventType = EventType.SYSTEM_EVENT,
             metadata: Optional[Dict[str, Any]] = None,
             error: Optional[BaseException] = None,
             performance_metrics: Optional[Dict[str, Union[int, float]]] = None):
        log_level = getattr(logging, level.value)
        if not self.logger.isEnabledFor(log_level):
            return

        extra = {
            'event_type': event_type,
            'metadata': metadata or {},
            'performance_metrics': performance_metrics
        }

        if error is not None:
            exc_info = (type(error), error, error.__traceback__)
            self.logger.log(log_level, message, exc_info=exc_info, extra=extra)
        else:
            self.logger.log(log_level, message, extra=extra)

    def debug(self, message: str, **kwargs):
        self._log(LogLevel.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs):
        self._log(LogLevel.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs):
        self._log(LogLevel.WARNING, message, **kwargs)

    def error(self, message: str, error: Optional[BaseException] = None, **kwargs):
        self._log(LogLevel.ERROR, message, error=error, **kwargs)

    def metric_tracked(self, name: str, duration: float, did_error: bool, **kwargs):
        """Log a metric that was handed to the telemetry client"""
        status = "failed" if did_error else "succeeded"
        message = f"Tracked metric '{name}' ({status}) in {duration:.6f}s"

        metadata = kwargs.pop('metadata', {})
        metadata.update({"metric_name": name, "did_error": did_error})
        performance_metrics = {"duration_ms": duration * 1000}

        self._log(LogLevel.DEBUG, message, EventType.METRIC_TRACKED,
                  metadata=metadata, performance_metrics=performance_metrics, **kwargs)


class LoggerManager:
    """Caches structured loggers by name"""

    def __init__(self):
        self.loggers: Dict[str, StructuredLogger] = {}

    def get_logger(self, name: str) -> StructuredLogger:
        if name not in self.loggers:
            self.loggers[name] = StructuredLogger(name)
        return self.loggers[name]


# Global logger manager
logger_manager = LoggerManager()


def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger instance"""
    return logger_manager.get_logger(name)


def configure_logging(level: Union[str, LogLevel, None] = None) -> logging.Logger:
    """Attach the JSON handler to the package logger.

    ``level`` defaults to the ``LOG_LEVEL`` setting. Safe to call
    repeatedly; only the level is updated after the first call.
    """
    if level is None:
        level = get_settings().log_level
    if isinstance(level, LogLevel):
        level = level.value

    package_logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    package_logger.setLevel(getattr(logging, level.upper()))

    if not any(isinstance(h.formatter, StructuredFormatter) for h in package_logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(StructuredFormatter())
        package_logger.addHandler(handler)

    return package_logger


def generate_correlation_id() -> str:
    """Generate a new correlation ID"""
    return str(uuid.uuid4())


def with_correlation_id(correlation_id_value: Optional[str] = None):
    """Decorator to set correlation ID for function execution"""
    def decorator(func):
        @wraps(func)
        async def async_wrapper(*args, **kwargs):
            token = correlation_id.set(correlation_id_value or generate_correlation_id())
            try:
                return await func(*args, **kwargs)
            finally:
                correlation_id.reset(token)

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            token = correlation_id.set(correlation_id_value or generate_correlation_id())
            try:
                return func(*args, **kwargs)
            finally:
                correlation_id.reset(token)

        return async_wrapper if inspect.iscoroutinefunction(func) else sync_wrapper
    return decorator
