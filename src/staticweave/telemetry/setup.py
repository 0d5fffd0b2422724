"""StaticWeave telemetry setup - OpenTelemetry initialization.

Configures the OpenTelemetry SDK with:
- MeterProvider with a PrometheusMetricReader (or caller-supplied readers)
- TracerProvider with caller-supplied span processors

No port is opened: Prometheus text is available from
``prometheus_metrics()`` for the host application to serve.
"""

from collections.abc import Sequence
from typing import Any

from opentelemetry import metrics, trace
from opentelemetry.exporter.prometheus import PrometheusMetricReader
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import MetricReader
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import SpanProcessor, TracerProvider
from prometheus_client import REGISTRY, generate_latest

from staticweave.config.models import TelemetryConfig

from .metrics import RenderMetrics

# Global telemetry state
_telemetry: dict[str, Any] | None = None


def setup_telemetry(
    config: TelemetryConfig | None = None,
    metric_readers: Sequence[MetricReader] | None = None,
    span_processors: Sequence[SpanProcessor] | None = None,
    install_global: bool = True,
) -> dict[str, Any]:
    """Set up OpenTelemetry instrumentation.

    Args:
        config: Telemetry configuration (uses defaults if None)
        metric_readers: Readers to attach instead of the Prometheus reader
        span_processors: Span processors (exporters) for render spans
        install_global: Also register the providers as OTEL globals

    Returns:
        Dictionary with meter, tracer, metrics and provider instances
    """
    global _telemetry

    if _telemetry is not None:
        return _telemetry

    config = config or TelemetryConfig()

    if not config.enabled:
        _telemetry = {
            "meter": None,
            "tracer": None,
            "metrics": None,
            "config": config,
        }
        return _telemetry

    resource = Resource.create(
        {
            SERVICE_NAME: config.service_name,
            SERVICE_VERSION: config.service_version,
            **config.attributes,
        }
    )

    meter = None
    render_metrics = None
    meter_provider = None
    if config.metrics_enabled:
        readers = list(metric_readers) if metric_readers is not None else [PrometheusMetricReader()]
        meter_provider = MeterProvider(metric_readers=readers, resource=resource)
        if install_global:
            metrics.set_meter_provider(meter_provider)
        meter = meter_provider.get_meter(config.service_name, config.service_version)
        render_metrics = RenderMetrics(meter)

    tracer = None
    tracer_provider = None
    if config.traces_enabled:
        tracer_provider = TracerProvider(resource=resource)
        for processor in span_processors or []:
            tracer_provider.add_span_processor(processor)
        if install_global:
            trace.set_tracer_provider(tracer_provider)
        tracer = tracer_provider.get_tracer(config.service_name, config.service_version)

    _telemetry = {
        "meter": meter,
        "tracer": tracer,
        "metrics": render_metrics,
        "config": config,
        "meter_provider": meter_provider,
        "tracer_provider": tracer_provider,
    }

    return _telemetry


def get_telemetry() -> dict[str, Any] | None:
    """Get current telemetry state (None until setup_telemetry runs)."""
    return _telemetry


def prometheus_metrics() -> bytes:
    """Current metrics in the Prometheus text exposition format."""
    return generate_latest(REGISTRY)


def reset_telemetry() -> None:
    """Shut down providers and forget telemetry state (for testing)."""
    global _telemetry
    if _telemetry is not None:
        for key in ("meter_provider", "tracer_provider"):
            provider = _telemetry.get(key)
            if provider is not None:
                provider.shutdown()
    _telemetry = None
