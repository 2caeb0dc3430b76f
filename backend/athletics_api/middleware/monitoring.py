"""Request metrics, request ids and session/auth counters"""
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.routing import Match

from athletics_api.config import settings
from athletics_api.utils.logger import logger, request_id_var

REQUEST_ID_HEADER = "X-Request-ID"


# ===== Prometheus Metrics =====

http_requests_total = Counter(
    "athletics_http_requests_total",
    "HTTP requests by route and status",
    ["method", "route", "status"]
)

http_request_duration_seconds = Histogram(
    "athletics_http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "route"]
)

session_events_total = Counter(
    "athletics_session_events_total",
    "Session lifecycle events",
    ["event"]  # login, refresh, logout
)

authentication_failures_total = Counter(
    "athletics_authentication_failures_total",
    "Rejected credentials by reason",
    ["reason"]  # missing_token, expired, not_cached, ...
)


def _route_template(request: Request) -> str:
    """Path template of the matched route, e.g. ``/api/user/{user_id}``"""
    for route in request.app.routes:
        match, _ = route.matches(request.scope)
        if match == Match.FULL:
            return getattr(route, "path", request.url.path)
    return "unmatched"


class MonitoringMiddleware(BaseHTTPMiddleware):
    """Tags each request with an id and records its latency and outcome"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        method = request.method
        route = _route_template(request)

        context_token = request_id_var.set(request_id)
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            http_requests_total.labels(method=method, route=route, status=500).inc()
            logger.error(
                f"Request failed: {method} {route}",
                extra={"method": method, "path": request.url.path},
                exc_info=True
            )
            raise
        else:
            duration = time.perf_counter() - start
            http_requests_total.labels(method=method, route=route, status=response.status_code).inc()
            http_request_duration_seconds.labels(method=method, route=route).observe(duration)

            if duration > settings.SLOW_REQUEST_SECONDS:
                logger.warning(
                    f"Slow request: {method} {route} took {duration:.3f}s",
                    extra={"method": method, "path": request.url.path}
                )
        finally:
            request_id_var.reset(context_token)

        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Response-Time"] = f"{duration:.3f}s"
        return response


def record_session_event(event: str):
    """Record a login, refresh or logout"""
    session_events_total.labels(event=event).inc()


def record_auth_failure(reason: str):
    """Record a rejected credential"""
    authentication_failures_total.labels(reason=reason).inc()
