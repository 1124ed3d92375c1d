"""
Telemetry and metrics measurement module
"""

from .client import (
    AzureMonitorTelemetryClient, ClientResolver, TelemetryClient, TelemetryClientConfig
)
from .metric import BatchResult, ExecutionResult, Metric, MetricRequest, build_metric
from .metrics_service import MetricsService
from .timer import Timer, TimingContext

__all__ = [
    'AzureMonitorTelemetryClient', 'ClientResolver', 'TelemetryClient', 'TelemetryClientConfig',
    'BatchResult', 'ExecutionResult', 'Metric', 'MetricRequest', 'build_metric',
    'MetricsService', 'Timer', 'TimingContext'
]
