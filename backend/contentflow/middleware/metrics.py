"""Metrics endpoint and request tracking middleware.

Tracks: request count, latency, error rate, realtime change events and
open websocket sessions.
"""
import time
import logging
from collections import defaultdict

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import PlainTextResponse, Response

logger = logging.getLogger(__name__)

_metrics: dict[str, float] = defaultdict(float)
_durations: list[float] = []
_MAX_SAMPLES = 10_000


def record_content_event(event_type: str) -> None:
    _metrics[f"content_change_events_{event_type.lower()}"] += 1


class MetricsMiddleware(BaseHTTPMiddleware):
    """Track request metrics."""

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.perf_counter()
        status = 500
        _metrics["http_requests_active"] += 1
        try:
            response = await call_next(request)
            status = response.status_code
            return response
        except Exception:
            _metrics["http_requests_errors_total"] += 1
            raise
        finally:
            duration = time.perf_counter() - start
            _metrics["http_requests_active"] -= 1
            _metrics["http_requests_total"] += 1
            _metrics[f"http_requests_by_status_{status // 100}xx"] += 1
            _durations.append(duration)
            if len(_durations) > _MAX_SAMPLES:
                del _durations[: len(_durations) - _MAX_SAMPLES]
            if duration > 0.5:
                logger.warning(
                    "Slow request %s %s: %.1fms (status %d)",
                    request.method, request.url.path, duration * 1000, status,
                )


def _percentile(data: list[float], p: float) -> float:
    if not data:
        return 0.0
    sorted_data = sorted(data)
    idx = int(len(sorted_data) * p / 100)
    return sorted_data[min(idx, len(sorted_data) - 1)]


def render_metrics() -> str:
    from contentflow.api.websocket import manager

    lines = [
        "# HELP http_requests_total Total HTTP requests",
        "# TYPE http_requests_total counter",
        f'http_requests_total {_metrics["http_requests_total"]:.0f}',
        "# HELP http_requests_errors_total Unhandled HTTP errors",
        "# TYPE http_requests_errors_total counter",
        f'http_requests_errors_total {_metrics["http_requests_errors_total"]:.0f}',
        "# HELP http_request_duration_seconds Request duration",
        "# TYPE http_request_duration_seconds summary",
    ]
    for q in (50, 90, 99):
        lines.append(f'http_request_duration_seconds{{quantile="{q / 100}"}} {_percentile(_durations, q):.6f}')
    lines.append(f"http_request_duration_seconds_count {len(_durations)}")
    lines += ["# HELP http_requests_by_status HTTP requests by status class", "# TYPE http_requests_by_status counter"]
    for cls in ("2xx", "3xx", "4xx", "5xx"):
        lines.append(f'http_requests_by_status{{status="{cls}"}} {_metrics[f"http_requests_by_status_{cls}"]:.0f}')
    lines += ["# HELP content_change_events_total Realtime content change events", "# TYPE content_change_events_total counter"]
    for event in ("insert", "update", "delete"):
        lines.append(f'content_change_events_total{{event="{event}"}} {_metrics[f"content_change_events_{event}"]:.0f}')
    lines += [
        "# HELP websocket_connections_active Open websocket sessions",
        "# TYPE websocket_connections_active gauge",
        f"websocket_connections_active {manager.total()}",
    ]
    return "\n".join(lines) + "\n"


def setup_metrics(app: FastAPI) -> None:
    """Register the /metrics endpoint."""

    @app.get("/metrics", tags=["monitoring"], include_in_schema=False)
    async def metrics_endpoint():
        return PlainTextResponse(render_metrics(), media_type="text/plain")
