import time
from prometheus_client import (
    Counter,
    Summary,
    Gauge,
    CollectorRegistry,
    generate_latest,
    CONTENT_TYPE_LATEST
)
from starlette.types import ASGIApp, Message, Scope, Receive, Send

registry = CollectorRegistry()

REQUEST_COUNT = Counter(
    "mux_requests_total",
    "Total number of requests",
    ["method", "status"],
    registry=registry
)

REQUEST_DURATION = Summary(
    "mux_request_duration_seconds",
    "Request duration in seconds",
    ["method"],
    registry=registry
)

ACTIVE_REQUESTS = Gauge(
    "mux_concurrent_requests",
    "Current number of concurrent requests being handled",
    registry=registry
)

RATE_LIMITED = Counter(
    "mux_rate_limited_requests_total",
    "Number of requests that were rate-limited",
    ["route"],
    registry=registry
)


def render_prometheus_metrics() -> tuple[bytes, str]:
    return generate_latest(registry), CONTENT_TYPE_LATEST


class MetricsMiddleware:
    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        method = scope["method"]
        status = "500"

        async def send_with_status(message: Message):
            nonlocal status
            if message["type"] == "http.response.start":
                status = str(message["status"])
            await send(message)

        ACTIVE_REQUESTS.inc()
        start = time.time()
        try:
            await self.app(scope, receive, send_with_status)
        finally:
            ACTIVE_REQUESTS.dec()
            REQUEST_DURATION.labels(method=method).observe(time.time() - start)
            REQUEST_COUNT.labels(method=method, status=status).inc()
