"""StaticWeave telemetry instrumentation - render spans and metric helpers.

Every helper is a no-op until setup_telemetry has run.
"""

import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from .metrics import MetricLabels
from .setup import get_telemetry


@contextmanager
def instrument_render(template_name: str) -> Iterator[dict[str, Any]]:
    """Context manager for instrumenting one render_page call.

    Records:
    - Render counter and duration histogram
    - Trace span "render:<template_name>", current for the duration

    Args:
        template_name: Template being rendered

    Yields:
        Dictionary the caller may annotate (e.g. "source_kind", "cache_hit")
    """
    telemetry = get_telemetry()
    start_time = time.perf_counter()
    result: dict[str, Any] = {"status": MetricLabels.STATUS_SUCCESS, "error_code": None}

    tracer = telemetry["tracer"] if telemetry else None
    metrics = telemetry["metrics"] if telemetry else None

    span = None
    if tracer:
        span = tracer.start_span(f"render:{template_name}")
        span.set_attribute("template.name", template_name)

    try:
        if span:
            with trace.use_span(
                span,
                end_on_exit=False,
                record_exception=False,
                set_status_on_exception=False,
            ):
                yield result
        else:
            yield result
    except Exception as e:
        result["status"] = MetricLabels.STATUS_ERROR
        result["error_code"] = getattr(e, "code", type(e).__name__)
        if span:
            span.set_status(Status(StatusCode.ERROR, str(e)))
            span.record_exception(e)
        raise
    finally:
        duration = time.perf_counter() - start_time

        if metrics:
            metrics.record_render(
                template=template_name,
                duration_seconds=duration,
                status=result["status"],
                error_code=result.get("error_code"),
            )

        if span:
            for key in ("source_kind", "cache_hit"):
                if result.get(key) is not None:
                    span.set_attribute(f"template.{key}", result[key])
            if result["status"] == MetricLabels.STATUS_SUCCESS:
                span.set_status(Status(StatusCode.OK))
            span.end()


def record_cache_lookup(cache: str, hit: bool) -> None:
    """Record a cache hit or miss.

    Args:
        cache: Cache name (body or rendered)
        hit: Whether a live entry was found
    """
    telemetry = get_telemetry()
    if telemetry and telemetry["metrics"]:
        telemetry["metrics"].record_cache_lookup(cache, hit)


def record_template_load(source_kind: str, duration_seconds: float, success: bool) -> None:
    """Record a loader invocation.

    Args:
        source_kind: remote, file or string
        duration_seconds: Load duration
        success: Whether the load succeeded
    """
    telemetry = get_telemetry()
    if telemetry and telemetry["metrics"]:
        status = MetricLabels.STATUS_SUCCESS if success else MetricLabels.STATUS_ERROR
        telemetry["metrics"].record_template_load(source_kind, duration_seconds, status)
