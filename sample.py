#!/usr/bin/env python3
"""
logging-metrics - usage sample
Runs every public operation once against the configured telemetry backend.

The connection string is read from APPLICATIONINSIGHTS_CONNECTION_STRING
(or a local .env file) unless passed with --connection-string.
"""
import argparse
import asyncio
import sys

from logging_metrics import ConfigurationError, MetricsService, configure_logging

METRIC = {
    "name": "loggingmetrics-sampleMetric",
    "properties": {"sampleDimension": "sampleDimensionValue"}
}


def my_function():
    return "A value"


def my_function_with_error():
    raise RuntimeError("An error")


async def delayed_function(delay):
    await asyncio.sleep(delay)
    return "A value"


async def run(service, config):
    result, duration = service.execute(my_function, METRIC, config)
    print(f"Took {duration} seconds for {result}")

    result, duration = await service.execute_async(lambda: delayed_function(0.5), METRIC, config)
    print(f"Took {duration} seconds for {result}")

    batch = await service.execute_all_async(
        [lambda: delayed_function(0.5), lambda: delayed_function(0.8)], METRIC, config
    )
    for result, duration in zip(batch.results, batch.durations):
        print(f"Took {duration} seconds for {result}")

    batch = await service.execute_all_fail_fast_async(
        [lambda: delayed_function(0.2), lambda: delayed_function(0.3)], METRIC, config
    )
    print(f"Fail-fast batch durations: {batch.durations}")

    try:
        service.execute(my_function_with_error, METRIC, config)
    except RuntimeError as e:
        print(f"Executed function threw error: {e}")

    service.flush_client()


def main():
    parser = argparse.ArgumentParser(description="logging-metrics usage sample")
    parser.add_argument("--connection-string", default="", help="Telemetry backend connection string")
    parser.add_argument("--log-level", default=None, help="Log level for the package logger (defaults to LOG_LEVEL)")
    args = parser.parse_args()

    configure_logging(args.log_level)

    config = {"connection_string": args.connection_string, "export_interval_millis": 5000}

    try:
        asyncio.run(run(MetricsService(), config))
    except ConfigurationError as e:
        print(f"❌ {e.message}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
