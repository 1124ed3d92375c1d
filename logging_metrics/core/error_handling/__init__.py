"""
Error taxonomy for the measurement engine
"""

from .exceptions import (
    ErrorCategory, ErrorContext, LoggingMetricsError, ConfigurationError,
    StateError, ClientNotInitializedError, ValidationError,
    InvalidMetricRequestError, create_error_context
)

__all__ = [
    'ErrorCategory', 'ErrorContext', 'LoggingMetricsError', 'ConfigurationError',
    'StateError', 'ClientNotInitializedError', 'ValidationError',
    'InvalidMetricRequestError', 'create_error_context'
]
