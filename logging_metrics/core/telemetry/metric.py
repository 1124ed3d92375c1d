"""
Metric records and the builder that turns a measurement into one
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Generic, List, Mapping, NamedTuple, Optional, TypeVar, Union

from ..error_handling.exceptions import InvalidMetricRequestError

T = TypeVar("T")

DID_ERROR = "didError"
ERROR_MESSAGE = "errorMessage"


@dataclass(frozen=True)
class MetricRequest:
    """Caller supplied template a Metric is built from"""
    name: str
    properties: Optional[Dict[str, Any]] = None

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name:
            raise InvalidMetricRequestError()
        if self.properties is not None and not isinstance(self.properties, Mapping):
            raise InvalidMetricRequestError(
                f"Metric properties must be a mapping, got {type(self.properties).__name__}"
            )

    @classmethod
    def from_value(cls, value: Union["MetricRequest", Mapping[str, Any]]) -> "MetricRequest":
        """Accept either a MetricRequest or a ``{"name": ..., "properties": ...}`` mapping"""
        if isinstance(value, MetricRequest):
            return value
        if isinstance(value, Mapping):
            return cls(name=value.get("name"), properties=value.get("properties"))
        raise InvalidMetricRequestError(
            f"Metric request must be a MetricRequest or a mapping, got {type(value).__name__}"
        )


@dataclass(frozen=True)
class Metric:
    """A single reported measurement; ``value`` is elapsed seconds"""
    name: str
    value: float
    properties: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "properties", MappingProxyType(dict(self.properties)))

    @property
    def did_error(self) -> bool:
        return bool(self.properties.get(DID_ERROR))

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "value": self.value, "properties": dict(self.properties)}


class ExecutionResult(NamedTuple, Generic[T]):
    """Outcome of a single measured unit of work"""
    result: T
    duration: float


@dataclass
class BatchResult(Generic[T]):
    """Outcome of a measured batch, index-aligned with the submitted units

    ``durations[i]`` is None exactly when unit ``i`` failed. ``errors`` is
    None for fail-fast batches, which raise instead of collecting failures.
    """
    results: List[Optional[T]]
    durations: List[Optional[float]]
    errors: Optional[List[Optional[BaseException]]] = None

    @property
    def succeeded(self) -> List[int]:
        return [i for i, duration in enumerate(self.durations) if duration is not None]

    @property
    def failed(self) -> List[int]:
        return [i for i, duration in enumerate(self.durations) if duration is None]


def describe_error(error: BaseException) -> str:
    """Message of an error, falling back to its string form"""
    message = getattr(error, "message", None)
    if isinstance(message, str) and message:
        return message
    return str(error) or repr(error)


def build_metric(request: MetricRequest, value: float, error: Optional[BaseException] = None) -> Metric:
    """Build the Metric for one measurement.

    Caller properties are copied first so that ``didError`` and
    ``errorMessage`` always reflect the measured outcome.
    """
    properties: Dict[str, Any] = dict(request.properties or {})
    properties.pop(ERROR_MESSAGE, None)

    if error is None:
        properties[DID_ERROR] = False
    else:
        properties[DID_ERROR] = True
        properties[ERROR_MESSAGE] = describe_error(error)

    return Metric(name=request.name, value=value, properties=properties)
