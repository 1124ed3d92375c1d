"""
logging-metrics: time units of work and report each run as a telemetry metric
"""

from .core.error_handling.exceptions import (
    ClientNotInitializedError, ConfigurationError, InvalidMetricRequestError,
    LoggingMetricsError, StateError
)
from .core.logging.structured_logger import configure_logging
from .core.telemetry import (
    AzureMonitorTelemetryClient, BatchResult, ExecutionResult, Metric, MetricRequest,
    MetricsService, TelemetryClient, TelemetryClientConfig
)

__version__ = "1.0.0"

__all__ = [
    'ClientNotInitializedError', 'ConfigurationError', 'InvalidMetricRequestError',
    'LoggingMetricsError', 'StateError', 'configure_logging',
    'AzureMonitorTelemetryClient', 'BatchResult', 'ExecutionResult', 'Metric', 'MetricRequest',
    'MetricsService', 'TelemetryClient', 'TelemetryClientConfig'
]
