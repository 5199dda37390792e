import os

import structlog
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

log = structlog.get_logger(__name__)


def tracing_disabled() -> bool:
    return os.getenv("DISABLE_TRACING", "").lower() in {"1", "true", "yes"}


def init_tracer(app_name: str = "payment-bridge"):
    """Initialize OpenTelemetry tracer with OTLP exporter"""
    provider = TracerProvider(resource=Resource.create({"service.name": app_name}))

    # Spans are still created when disabled, just never exported
    if not tracing_disabled():
        try:
            otlp_exporter = OTLPSpanExporter()
        except Exception as exc:  # pragma: no cover – only hit when the collector is absent
            log.warning("OTLP exporter unavailable, tracing to console", error=str(exc))
            otlp_exporter = ConsoleSpanExporter()
        provider.add_span_processor(BatchSpanProcessor(otlp_exporter))

    trace.set_tracer_provider(provider)
    return provider
