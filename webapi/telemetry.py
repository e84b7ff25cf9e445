"""
OpenTelemetry setup for traces and metrics.

Spans and counter increments are exported over OTLP/gRPC when an endpoint is
configured. Without one the providers are still installed, so spans and
counters behave the same, they are just never shipped.
"""

from __future__ import annotations

import logging
from typing import Optional

from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.metrics import Counter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from webapi.config import Settings

logger = logging.getLogger(__name__)

TRACER_NAME = "WebApi"
METER_NAME = "TotalSum"
SUM_COUNTER_NAME = "sum.total"

_configured = False
_sum_counter: Optional[Counter] = None


def configure_telemetry(settings: Settings) -> None:
    """Install global tracer and meter providers once per process."""
    global _configured
    if _configured:
        return

    resource = Resource.create({"service.name": settings.otel_service_name})
    tracer_provider = TracerProvider(resource=resource)
    metric_readers = []
    endpoint = settings.otel_exporter_otlp_endpoint
    if endpoint:
        insecure = settings.otel_exporter_otlp_insecure
        tracer_provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint, insecure=insecure))
        )
        metric_readers.append(
            PeriodicExportingMetricReader(
                OTLPMetricExporter(endpoint=endpoint, insecure=insecure)
            )
        )
        logger.info("Exporting telemetry to %s", endpoint)
    else:
        logger.info("No OTLP endpoint configured; telemetry is not exported")

    trace.set_tracer_provider(tracer_provider)
    metrics.set_meter_provider(
        MeterProvider(resource=resource, metric_readers=metric_readers)
    )
    _configured = True


def get_tracer() -> trace.Tracer:
    return trace.get_tracer(TRACER_NAME)


def get_sum_counter() -> Counter:
    """Return the process-wide ``sum.total`` counter."""
    global _sum_counter
    if _sum_counter is None:
        _sum_counter = metrics.get_meter(METER_NAME).create_counter(
            SUM_COUNTER_NAME, description="Total of all sums computed"
        )
    return _sum_counter
