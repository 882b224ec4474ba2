"""OpenTelemetry tracing setup (OTLP over HTTP)."""

import logging

from arr_auth import __version__
from arr_auth.config import (
    DEPLOYMENT_ENVIRONMENT,
    OTLP_ENDPOINT,
    TRACING_ENABLED,
    TRACING_SERVICE_NAME,
)

logger = logging.getLogger(__name__)
_initialized = False
_tracer_provider = None


def _resolve_endpoint(endpoint: str) -> str:
    """Append the OTLP/HTTP traces path when the endpoint lacks it."""
    endpoint = endpoint.rstrip("/")
    if not endpoint.endswith("/v1/traces"):
        endpoint = f"{endpoint}/v1/traces"
    return endpoint


def _build_resource():
    """Build Resource with service identity."""
    from opentelemetry.sdk.resources import Resource

    return Resource.create(
        {
            "service.name": TRACING_SERVICE_NAME,
            "service.version": __version__,
            "deployment.environment": DEPLOYMENT_ENVIRONMENT,
        }
    )


def _build_pipeline(endpoint: str):
    """Build a TracerProvider exporting batches to the OTLP collector and install it globally."""
    from opentelemetry import trace
    from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor

    provider = TracerProvider(resource=_build_resource())
    exporter = OTLPSpanExporter(endpoint=_resolve_endpoint(endpoint))
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)
    return provider


def init_tracing(enabled: bool | None = None, endpoint: str | None = None) -> None:
    """Initialize OTLP tracing (call once at startup). No-op unless enabled."""
    global _initialized, _tracer_provider
    if enabled is None:
        enabled = TRACING_ENABLED
    if _initialized or not enabled:
        return

    _tracer_provider = _build_pipeline(endpoint or OTLP_ENDPOINT)
    _initialized = True
    logger.debug("Tracing initialized, exporting to %s", endpoint or OTLP_ENDPOINT)


def get_tracer():
    """Return the OpenTelemetry tracer (a no-op tracer until init_tracing has run)."""
    from opentelemetry import trace

    return trace.get_tracer("arr-auth", __version__)


def get_tracer_provider():
    """Return the global tracer provider (for shutdown)."""
    from opentelemetry import trace

    return _tracer_provider if _tracer_provider is not None else trace.get_tracer_provider()


def shutdown_tracing() -> None:
    """Flush and shutdown the tracer provider so spans are exported before process exit."""
    from opentelemetry.sdk.trace import TracerProvider

    provider = get_tracer_provider()
    if isinstance(provider, TracerProvider):
        provider.force_flush(timeout_millis=5000)
        provider.shutdown()
