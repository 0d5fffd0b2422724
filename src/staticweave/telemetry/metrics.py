"""StaticWeave metrics schema - OpenTelemetry conventions.

Metrics:
- staticweave_renders_total: render_page calls by template and status
- staticweave_render_duration_seconds: render_page latency
- staticweave_cache_hits_total / staticweave_cache_misses_total: cache lookups
- staticweave_template_loads_total: loader invocations by source kind and status
- staticweave_template_load_duration_seconds: loader latency
"""

from typing import Any

from opentelemetry import metrics
from opentelemetry.metrics import Counter, Histogram

# Metric prefix for all StaticWeave metrics
METRIC_PREFIX = "staticweave"


class MetricLabels:
    """Standard metric labels/attributes."""

    TEMPLATE = "template"
    SOURCE_KIND = "source_kind"
    CACHE = "cache"
    STATUS = "status"
    ERROR_CODE = "error_code"

    # Status values
    STATUS_SUCCESS = "success"
    STATUS_ERROR = "error"

    # Cache names
    CACHE_BODY = "body"
    CACHE_RENDERED = "rendered"


class RenderMetrics:
    """Counters and histograms for the render pipeline."""

    def __init__(self, meter: metrics.Meter):
        """Initialize metrics.

        Args:
            meter: OpenTelemetry Meter instance
        """
        self._meter = meter

        self.renders_total: Counter = meter.create_counter(
            name=f"{METRIC_PREFIX}_renders_total",
            description="Total number of render_page calls",
            unit="1",
        )
        self.cache_hits_total: Counter = meter.create_counter(
            name=f"{METRIC_PREFIX}_cache_hits_total",
            description="Cache lookups that returned a live entry",
            unit="1",
        )
        self.cache_misses_total: Counter = meter.create_counter(
            name=f"{METRIC_PREFIX}_cache_misses_total",
            description="Cache lookups that found nothing or an expired entry",
            unit="1",
        )
        self.template_loads_total: Counter = meter.create_counter(
            name=f"{METRIC_PREFIX}_template_loads_total",
            description="Template bodies loaded from their source",
            unit="1",
        )
        self.render_duration_seconds: Histogram = meter.create_histogram(
            name=f"{METRIC_PREFIX}_render_duration_seconds",
            description="render_page duration in seconds",
            unit="s",
        )
        self.template_load_duration_seconds: Histogram = meter.create_histogram(
            name=f"{METRIC_PREFIX}_template_load_duration_seconds",
            description="Template load duration in seconds",
            unit="s",
        )

    def record_render(
        self,
        template: str,
        duration_seconds: float,
        status: str,
        error_code: str | None = None,
    ) -> None:
        """Record a finished render.

        Args:
            template: Template name
            duration_seconds: Render duration
            status: success or error
            error_code: Error code if status is error
        """
        labels: dict[str, Any] = {
            MetricLabels.TEMPLATE: template,
            MetricLabels.STATUS: status,
        }
        if error_code:
            labels[MetricLabels.ERROR_CODE] = error_code

        self.renders_total.add(1, labels)
        self.render_duration_seconds.record(duration_seconds, labels)

    def record_cache_lookup(self, cache: str, hit: bool) -> None:
        """Record a cache hit or miss.

        Args:
            cache: Which cache (body or rendered)
            hit: Whether a live entry was found
        """
        counter = self.cache_hits_total if hit else self.cache_misses_total
        counter.add(1, {MetricLabels.CACHE: cache})

    def record_template_load(
        self,
        source_kind: str,
        duration_seconds: float,
        status: str,
    ) -> None:
        """Record a loader invocation.

        Args:
            source_kind: remote, file or string
            duration_seconds: Load duration
            status: success or error
        """
        labels = {MetricLabels.SOURCE_KIND: source_kind, MetricLabels.STATUS: status}
        self.template_loads_total.add(1, labels)
        self.template_load_duration_seconds.record(duration_seconds, labels)
