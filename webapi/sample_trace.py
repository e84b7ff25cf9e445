"""
Emit a small nested sample trace to an OTLP collector.

Useful for checking that a collector/dashboard is receiving spans before
pointing the web API at it.
"""

from __future__ import annotations

import argparse
import logging
import time
from typing import Optional

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, SpanExporter
from opentelemetry.trace import Status, StatusCode

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "http://localhost:4317"
SOURCE_NAME = "AspireWalkthrough"


def emit_sample_trace(tracer: trace.Tracer, *, delay: bool = True) -> None:
    """Record a "Steps" span with one successful and one failed child."""

    def pause(seconds: float) -> None:
        if delay:
            time.sleep(seconds)

    with tracer.start_as_current_span("Steps"):
        pause(0.1)
        with tracer.start_as_current_span("Step 1") as span:
            pause(0.15)
            span.set_attribute("foo", 1)
            span.set_attribute("bar", "Hello, World!")
            span.set_status(Status(StatusCode.OK))

        with tracer.start_as_current_span("Step 2") as span:
            pause(0.25)
            span.set_attribute("baz", 2)
            span.set_attribute("qux", "Goodbye, World!")
            span.set_status(Status(StatusCode.ERROR))


def build_provider(exporter: SpanExporter, service_name: str) -> TracerProvider:
    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    provider.add_span_processor(BatchSpanProcessor(exporter))
    return provider


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Send a sample trace over OTLP")
    parser.add_argument(
        "--endpoint",
        type=str,
        default=DEFAULT_ENDPOINT,
        help="OTLP/gRPC collector endpoint",
    )
    parser.add_argument(
        "--service-name",
        type=str,
        default="sample-trace",
        help="service.name resource attribute",
    )
    parser.add_argument(
        "--no-delay",
        action="store_true",
        help="Skip the simulated work between spans",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    provider = build_provider(
        OTLPSpanExporter(endpoint=args.endpoint, insecure=True), args.service_name
    )
    try:
        emit_sample_trace(provider.get_tracer(SOURCE_NAME), delay=not args.no_delay)
    finally:
        provider.shutdown()
    logger.info("Sent sample trace to %s", args.endpoint)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
