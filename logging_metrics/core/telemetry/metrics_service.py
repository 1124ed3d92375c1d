"""
Measurement engine: times units of work and reports one metric per unit
"""

import asyncio
import inspect
from functools import partial, wraps
from typing import Any, Awaitable, Callable, List, Mapping, Optional, Sequence, Set, TypeVar, Union

from ..error_handling.exceptions import ClientNotInitializedError
from ..logging.structured_logger import EventType, get_logger
from .client import ClientFactory, ClientResolver, TelemetryClient, TelemetryClientConfig
from .metric import BatchResult, ExecutionResult, MetricRequest, build_metric, describe_error
from .timer import TimingContext

logger = get_logger(__name__)

T = TypeVar("T")

MetricLike = Union[MetricRequest, Mapping[str, Any]]
ConfigLike = Union[TelemetryClientConfig, Mapping[str, Any], None]
AsyncUnit = Callable[[], Awaitable[T]]


class MetricsService:
    """Runs units of work under a timer and tracks a metric for each.

    A client passed at construction is used as-is. Otherwise one is created
    on the first call from that call's ``config`` (or the environment) and
    reused for every later call on this instance.
    """

    def __init__(
        self,
        telemetry_client: Optional[TelemetryClient] = None,
        client_factory: Optional[ClientFactory] = None
    ):
        self._resolver = ClientResolver(telemetry_client, client_factory)
        self._background_tasks: Set[asyncio.Task] = set()

    @property
    def telemetry_client(self) -> Optional[TelemetryClient]:
        return self._resolver.client

    @property
    def has_client(self) -> bool:
        return self._resolver.client is not None

    def execute(self, unit: Callable[[], T], metric: MetricLike, config: ConfigLike = None) -> ExecutionResult[T]:
        """Run ``unit`` and return its result with the measured duration in seconds.

        An exception raised by ``unit`` is re-raised after its metric is tracked.
        """
        request = MetricRequest.from_value(metric)
        client = self._resolver.ensure_client(config)

        return self._measure(client, unit, request)

    async def execute_async(self, unit: AsyncUnit, metric: MetricLike, config: ConfigLike = None) -> ExecutionResult:
        """Await ``unit()`` and return its result with the measured duration in seconds"""
        request = MetricRequest.from_value(metric)
        client = self._resolver.ensure_client(config)

        return await self._measure_async(client, unit, request)

    async def execute_all_async(
        self, units: Sequence[AsyncUnit], metric: MetricLike, config: ConfigLike = None
    ) -> BatchResult:
        """Run all units concurrently and wait for every one of them to settle.

        Never raises for a failing unit: its error is placed in ``errors`` at the
        unit's index and its ``results``/``durations`` entries are None.
        """
        request = MetricRequest.from_value(metric)
        client = self._resolver.ensure_client(config)

        return await self._measure_all_async(client, units, request, fail_fast=False)

    async def execute_all_fail_fast_async(
        self, units: Sequence[AsyncUnit], metric: MetricLike, config: ConfigLike = None
    ) -> BatchResult:
        """Run all units concurrently, raising the first failure as soon as it happens.

        Units still running at that point are not cancelled; they finish in the
        background and their metrics are still tracked.
        """
        request = MetricRequest.from_value(metric)
        client = self._resolver.ensure_client(config)

        return await self._measure_all_async(client, units, request, fail_fast=True)

    def flush_client(self) -> None:
        client = self._resolver.client
        if client is None:
            raise ClientNotInitializedError("flush")

        client.flush()
        logger.debug("Telemetry client flushed", event_type=EventType.CLIENT_FLUSH)

    def measure(self, metric: MetricLike, config: ConfigLike = None):
        """Decorator form of ``execute``/``execute_async``; the wrapped call returns only the result"""
        def decorator(func):
            @wraps(func)
            async def async_wrapper(*args, **kwargs):
                outcome = await self.execute_async(partial(func, *args, **kwargs), metric, config)
                return outcome.result

            @wraps(func)
            def sync_wrapper(*args, **kwargs):
                return self.execute(partial(func, *args, **kwargs), metric, config).result

            return async_wrapper if inspect.iscoroutinefunction(func) else sync_wrapper
        return decorator

    def _track_metric(
        self,
        client: TelemetryClient,
        request: MetricRequest,
        duration: float,
        error: Optional[BaseException]
    ) -> None:
        metric = build_metric(request, duration, error)
        client.track_metric(metric)

        if error is not None:
            logger.warning(
                f"Unit of work measured by '{request.name}' failed: {describe_error(error)}",
                event_type=EventType.ERROR_OCCURRED,
                metadata={"metric_name": request.name, "error_type": type(error).__name__}
            )
        logger.metric_tracked(metric.name, duration, metric.did_error)

    def _measure(self, client: TelemetryClient, unit: Callable[[], T], request: MetricRequest) -> ExecutionResult[T]:
        error = None
        timing = TimingContext()

        try:
            with timing:
                result = unit()
        except BaseException as err:
            error = err
            raise
        finally:
            self._track_metric(client, request, timing.duration, error)

        return ExecutionResult(result, timing.duration)

    async def _measure_async(self, client: TelemetryClient, unit: AsyncUnit, request: MetricRequest) -> ExecutionResult:
        error = None
        timing = TimingContext()

        try:
            with timing:
                result = unit()
                if inspect.isawaitable(result):
                    result = await result
        except BaseException as err:
            error = err
            raise
        finally:
            self._track_metric(client, request, timing.duration, error)

        return ExecutionResult(result, timing.duration)

    async def _measure_all_async(
        self,
        client: TelemetryClient,
        units: Sequence[AsyncUnit],
        request: MetricRequest,
        fail_fast: bool
    ) -> BatchResult:
        tasks: List[asyncio.Task] = []
        for unit in units:
            task = asyncio.create_task(self._measure_async(client, unit, request))
            self._background_tasks.add(task)
            task.add_done_callback(self._background_tasks.discard)
            tasks.append(task)

        logger.debug(
            f"Launched batch of {len(tasks)} units for metric '{request.name}'",
            event_type=EventType.BATCH_EXECUTION,
            metadata={"metric_name": request.name, "size": len(tasks), "fail_fast": fail_fast}
        )

        if fail_fast:
            # the first failure propagates from gather; siblings keep running
            outcomes = await asyncio.gather(*tasks)
            return BatchResult(
                results=[outcome.result for outcome in outcomes],
                durations=[outcome.duration for outcome in outcomes]
            )

        outcomes = await asyncio.gather(*tasks, return_exceptions=True)

        results, durations, errors = [], [], []
        for outcome in outcomes:
            if isinstance(outcome, ExecutionResult):
                results.append(outcome.result)
                durations.append(outcome.duration)
                errors.append(None)
            else:
                results.append(None)
                durations.append(None)
                errors.append(outcome)

        return BatchResult(results=results, durations=durations, errors=errors)
