"""
Telemetry client abstraction, the Azure Monitor backed implementation
and the resolver that lazily obtains one
"""

import re
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Mapping, Optional, Union

from azure.monitor.opentelemetry.exporter import AzureMonitorMetricExporter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from ...config import get_settings
from ..error_handling.exceptions import ConfigurationError, create_error_context
from ..logging.structured_logger import EventType, get_logger
from .metric import Metric

logger = get_logger(__name__)

ATTRIBUTE_TYPES = (str, bool, int, float)
METRIC_NAME_ATTRIBUTE = "metricName"
MAX_INSTRUMENT_NAME_LENGTH = 255
INVALID_INSTRUMENT_CHARS = re.compile(r"[^A-Za-z0-9_.\-/]")
CONNECTION_STRING_ALIASES = ("connection_string", "connectionString")


class TelemetryClientConfig(BaseModel):
    """Connection string plus free-form transport options"""
    model_config = ConfigDict(extra="allow")

    connection_string: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(*CONNECTION_STRING_ALIASES)
    )

    @classmethod
    def from_value(
        cls, value: Union["TelemetryClientConfig", Mapping[str, Any], None]
    ) -> "TelemetryClientConfig":
        if value is None:
            return cls()
        if isinstance(value, TelemetryClientConfig):
            return value
        return cls.model_validate(dict(value))

    @property
    def transport_options(self) -> Dict[str, Any]:
        """Every key except the connection string, under either spelling"""
        options = dict(self.model_extra or {})
        for alias in CONNECTION_STRING_ALIASES:
            options.pop(alias, None)
        return options


class TelemetryClient(ABC):
    """What the measurement engine needs from a telemetry backend"""

    def __init__(self):
        self.config: Dict[str, Any] = {}

    def configure(self, **options: Any) -> None:
        """Apply transport options onto the client's configuration"""
        self.config.update(options)

    @abstractmethod
    def track_metric(self, metric: Metric) -> None:
        pass

    @abstractmethod
    def flush(self) -> None:
        pass


def to_attributes(properties: Mapping[str, Any]) -> Dict[str, Any]:
    """Coerce metric properties into OpenTelemetry attribute values"""
    attributes = {}
    for key, value in properties.items():
        if value is None:
            continue
        attributes[str(key)] = value if isinstance(value, ATTRIBUTE_TYPES) else str(value)
    return attributes


def instrument_name(name: str) -> str:
    """Map a metric name onto the OpenTelemetry instrument name syntax

    Characters outside ``[A-Za-z0-9_.-/]`` become ``_``, a leading
    non-letter gets an ``m_`` prefix and the result is capped at 255
    characters. The exact name travels in the ``metricName`` attribute.
    """
    sanitized = INVALID_INSTRUMENT_CHARS.sub("_", name)
    if not sanitized[:1].isalpha():
        sanitized = f"m_{sanitized}"
    return sanitized[:MAX_INSTRUMENT_NAME_LENGTH]


class AzureMonitorTelemetryClient(TelemetryClient):
    """Records metrics as OpenTelemetry histograms exported to Azure Monitor.

    Recognised options are ``service_name``, ``export_interval_millis`` and
    ``export_timeout_millis``; anything else is handed to
    ``AzureMonitorMetricExporter``. The meter provider is built on first use,
    so options must be applied before the first metric is tracked.
    """

    def __init__(self, connection_string: str):
        super().__init__()
        self.connection_string = connection_string
        self._meter_provider: Optional[MeterProvider] = None
        self._meter = None
        self._histograms: Dict[str, Any] = {}

        settings = get_settings()
        self.config.update({
            "service_name": settings.service_name,
            "export_interval_millis": settings.export_interval_millis,
            "export_timeout_millis": settings.export_timeout_millis
        })

    def configure(self, **options: Any) -> None:
        if self._meter_provider is not None and options:
            logger.warning(
                "Telemetry client already started; options apply to new clients only",
                event_type=EventType.CLIENT_RESOLUTION,
                metadata={"options": sorted(options)}
            )
        super().configure(**options)

    @property
    def started(self) -> bool:
        return self._meter_provider is not None

    def _ensure_provider(self) -> None:
        if self._meter_provider is not None:
            return

        options = dict(self.config)
        service_name = options.pop("service_name")
        export_interval_millis = options.pop("export_interval_millis")
        export_timeout_millis = options.pop("export_timeout_millis")

        exporter = AzureMonitorMetricExporter(connection_string=self.connection_string, **options)
        reader = PeriodicExportingMetricReader(
            exporter,
            export_interval_millis=export_interval_millis,
            export_timeout_millis=export_timeout_millis
        )
        self._meter_provider = MeterProvider(
            resource=Resource.create({"service.name": service_name}),
            metric_readers=[reader]
        )
        self._meter = self._meter_provider.get_meter("logging_metrics")

        logger.info(
            "Azure Monitor metric exporter started",
            event_type=EventType.CLIENT_RESOLUTION,
            metadata={"service_name": service_name, "export_interval_millis": export_interval_millis}
        )

    def _histogram(self, name: str):
        instrument = instrument_name(name)
        key = instrument.lower()
        if key not in self._histograms:
            self._histograms[key] = self._meter.create_histogram(
                name=instrument,
                unit="s",
                description=f"Execution duration of {name}"
            )
        return self._histograms[key]

    def track_metric(self, metric: Metric) -> None:
        self._ensure_provider()
        attributes = to_attributes(metric.properties)
        attributes[METRIC_NAME_ATTRIBUTE] = metric.name
        self._histogram(metric.name).record(metric.value, attributes=attributes)

    def flush(self) -> None:
        if self._meter_provider is None:
            return
        self._meter_provider.force_flush()


ClientFactory = Callable[[str], TelemetryClient]


class ClientResolver:
    """Holds at most one telemetry client, creating it on first demand"""

    def __init__(
        self,
        client: Optional[TelemetryClient] = None,
        client_factory: Optional[ClientFactory] = None
    ):
        self._client = client
        self._client_factory = client_factory or AzureMonitorTelemetryClient

    @property
    def client(self) -> Optional[TelemetryClient]:
        return self._client

    def ensure_client(
        self, config: Union[TelemetryClientConfig, Mapping[str, Any], None] = None
    ) -> TelemetryClient:
        """Return the held client, creating it from ``config`` when none exists yet.

        The connection string comes from ``config`` when non-empty, otherwise
        from ``APPLICATIONINSIGHTS_CONNECTION_STRING``. Once a client is held,
        ``config`` is ignored.
        """
        if self._client is not None:
            return self._client

        config = TelemetryClientConfig.from_value(config)

        if config.connection_string:
            connection_string = config.connection_string
            source = "config"
        else:
            connection_string = get_settings().applicationinsights_connection_string
            source = "environment"

        if not connection_string:
            error = ConfigurationError(
                context=create_error_context(operation="ensure_client", component="ClientResolver")
            )
            logger.error(
                error.message,
                event_type=EventType.ERROR_OCCURRED,
                metadata=error.to_dict()
            )
            raise error

        client = self._client_factory(connection_string)
        options = config.transport_options
        if options:
            client.configure(**options)

        self._client = client

        logger.info(
            f"Telemetry client created from {source} connection string",
            event_type=EventType.CLIENT_RESOLUTION,
            metadata={"source": source, "client": type(client).__name__, "options": sorted(options)}
        )

        return client
