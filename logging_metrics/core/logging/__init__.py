"""
Structured logging for the measurement engine
"""

from .structured_logger import (
    EventType, LogLevel, StructuredFormatter, StructuredLogger,
    configure_logging, get_logger,
    generate_correlation_id, with_correlation_id
)

__all__ = [
    'EventType', 'LogLevel', 'StructuredFormatter', 'StructuredLogger',
    'configure_logging', 'get_logger',
    'generate_correlation_id', 'with_correlation_id'
]
