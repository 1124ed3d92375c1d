"""
Standardized Exception Classes for logging-metrics
"""

from typing import Optional, Dict, Any
from enum import Enum
from dataclasses import dataclass
from datetime import datetime, timezone


class ErrorCategory(Enum):
    """Categories of errors for classification and handling"""
    CONFIGURATION = "configuration"
    STATE = "state"
    VALIDATION = "validation"
    UNKNOWN = "unknown"


@dataclass
class ErrorContext:
    """Context information for errors"""
    correlation_id: Optional[str] = None
    operation: Optional[str] = None
    component: Optional[str] = None
    metadata: Dict[str, Any] = None

    def __post_init__(self):
        if self.metadata is None:
            self.metadata = {}


class LoggingMetricsError(Exception):
    """Base exception for all errors raised by the measurement engine itself"""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        error_code: Optional[str] = None,
        context: Optional[ErrorContext] = None
    ):
        super().__init__(message)
        self.message = message
        self.category = category
        self.error_code = error_code or self._generate_error_code()
        self.context = context or ErrorContext()
        self.timestamp = datetime.now(timezone.utc)

    def _generate_error_code(self) -> str:
        """Generate error code based on exception class"""
        class_name = self.__class__.__name__
        return f"{self.category.value.upper()}_{class_name.upper().replace('ERROR', '')}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for structured logs"""
        return {
            "error": True,
            "error_code": self.error_code,
            "message": self.message,
            "category": self.category.value,
            "timestamp": self.timestamp.isoformat(),
            "context": {
                "correlation_id": self.context.correlation_id,
                "operation": self.context.operation,
                "component": self.context.component,
                "metadata": self.context.metadata
            }
        }


# Configuration Exceptions
class ConfigurationError(LoggingMetricsError):
    """Telemetry client cannot be configured"""

    def __init__(self, message: str = "No connection string found to create a new telemetry client.", **kwargs):
        super().__init__(message, category=ErrorCategory.CONFIGURATION, **kwargs)


# State Exceptions
class StateError(LoggingMetricsError):
    """Operation invoked in a state that does not allow it"""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, category=ErrorCategory.STATE, **kwargs)


class ClientNotInitializedError(StateError):
    """No telemetry client has been resolved yet"""

    def __init__(self, operation: str = "flush", **kwargs):
        message = f"Cannot {operation}: no telemetry client has been resolved yet"
        super().__init__(message, **kwargs)


# Validation Exceptions
class ValidationError(LoggingMetricsError):
    """Caller supplied invalid input"""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, category=ErrorCategory.VALIDATION, **kwargs)


class InvalidMetricRequestError(ValidationError):
    """Metric request is missing or malformed"""

    def __init__(self, message: str = "Metric request requires a non-empty name", **kwargs):
        super().__init__(message, **kwargs)


def create_error_context(
    correlation_id: Optional[str] = None,
    operation: Optional[str] = None,
    component: Optional[str] = None,
    **metadata
) -> ErrorContext:
    """Create error context with provided information"""
    return ErrorContext(
        correlation_id=correlation_id,
        operation=operation,
        component=component,
        metadata=metadata
    )
