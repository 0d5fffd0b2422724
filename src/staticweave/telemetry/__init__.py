"""StaticWeave telemetry - OpenTelemetry-based observability."""

from .instrumentation import instrument_render, record_cache_lookup, record_template_load
from .metrics import MetricLabels, RenderMetrics
from .setup import get_telemetry, prometheus_metrics, reset_telemetry, setup_telemetry

__all__ = [
    # Metrics
    "RenderMetrics",
    "MetricLabels",
    # Instrumentation
    "instrument_render",
    "record_cache_lookup",
    "record_template_load",
    # Setup
    "setup_telemetry",
    "get_telemetry",
    "prometheus_metrics",
    "reset_telemetry",
]
