"""
Unit tests for metric building and timing
"""

import time

import pytest

from logging_metrics.core.error_handling.exceptions import (
    InvalidMetricRequestError, LoggingMetricsError, create_error_context
)
from logging_metrics.core.telemetry.metric import (
    BatchResult, ExecutionResult, Metric, MetricRequest, build_metric, describe_error
)
from logging_metrics.core.telemetry.timer import Timer, TimingContext


class CustomError(Exception):
    """Error carrying an explicit message attribute"""

    def __init__(self, message):
        super().__init__("positional text")
        self.message = message


class TestMetricRequest:
    """Test MetricRequest normalisation"""

    def test_from_mapping(self):
        request = MetricRequest.from_value({"name": "m", "properties": {"a": 1}})

        assert request == MetricRequest("m", {"a": 1})

    def test_instance_passes_through(self):
        request = MetricRequest("m")

        assert MetricRequest.from_value(request) is request

    @pytest.mark.parametrize("value", [
        {"name": ""}, {}, {"name": 5}, "m", None,
        {"name": "m", "properties": ["a"]}, {"name": "m", "properties": "a=1"}
    ])
    def test_rejects_invalid(self, value):
        with pytest.raises(InvalidMetricRequestError):
            MetricRequest.from_value(value)


class TestBuildMetric:
    """Test build_metric functionality"""

    def test_success(self):
        metric = build_metric(MetricRequest("m"), 0.5)

        assert metric.name == "m"
        assert metric.value == 0.5
        assert metric.properties == {"didError": False}
        assert metric.did_error is False

    def test_error_message(self):
        metric = build_metric(MetricRequest("m", {"a": 1}), 0.5, ValueError("boom"))

        assert metric.to_dict() == {
            "name": "m",
            "value": 0.5,
            "properties": {"a": 1, "didError": True, "errorMessage": "boom"}
        }

    def test_does_not_mutate_request(self):
        """Test caller properties are copied, never modified"""
        properties = {"a": 1}
        request = MetricRequest("m", properties)

        build_metric(request, 0.1, ValueError("boom"))

        assert properties == {"a": 1}

    def test_metric_is_immutable(self):
        metric = build_metric(MetricRequest("m"), 0.1)

        with pytest.raises(TypeError):
            metric.properties["didError"] = True
        with pytest.raises(AttributeError):
            metric.value = 2.0

    def test_metric_copies_properties(self):
        properties = {"a": 1}
        metric = Metric("m", 0.1, properties)
        properties["b"] = 2

        assert "b" not in metric.properties


class TestDescribeError:
    """Test error message extraction"""

    def test_message_attribute_preferred(self):
        assert describe_error(CustomError("explicit")) == "explicit"

    def test_engine_errors_use_message(self):
        assert describe_error(LoggingMetricsError("engine failure")) == "engine failure"

    def test_string_form(self):
        assert describe_error(RuntimeError("boom")) == "boom"

    def test_empty_message_falls_back_to_repr(self):
        assert describe_error(TimeoutError()) == "TimeoutError()"


class TestLoggingMetricsError:
    """Test engine error serialisation"""

    def test_to_dict(self):
        error = InvalidMetricRequestError(
            context=create_error_context(operation="execute", component="MetricsService", metric="m")
        )

        data = error.to_dict()

        assert data["error"] is True
        assert data["error_code"] == "VALIDATION_INVALIDMETRICREQUEST"
        assert data["message"] == "Metric request requires a non-empty name"
        assert data["category"] == "validation"
        assert data["context"] == {
            "correlation_id": None,
            "operation": "execute",
            "component": "MetricsService",
            "metadata": {"metric": "m"}
        }


class TestResults:
    """Test outcome containers"""

    def test_execution_result_unpacks(self):
        result, duration = ExecutionResult("A value", 0.1)

        assert result == "A value"
        assert duration == 0.1

    def test_batch_result_indices(self):
        outcome = BatchResult(results=["a", None], durations=[0.1, None], errors=[None, ValueError()])

        assert outcome.succeeded == [0]
        assert outcome.failed == [1]


class TestTimer:
    """Test monotonic timing"""

    def test_elapsed_seconds(self):
        start = Timer.start()
        time.sleep(0.01)

        assert Timer.elapsed_seconds(start) >= 0.01

    def test_timing_context_records_on_error(self):
        """Test the duration is captured even when the block raises"""
        context = TimingContext()

        with pytest.raises(ValueError):
            with context:
                raise ValueError("boom")

        assert context.duration is not None
        assert context.duration >= 0
