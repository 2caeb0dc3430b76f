"""Middleware modules for production-ready features"""
from athletics_api.middleware.monitoring import (
    MonitoringMiddleware,
    record_auth_failure,
    record_session_event
)
from athletics_api.middleware.rate_limit import limiter

__all__ = [
    "MonitoringMiddleware",
    "record_auth_failure",
    "record_session_event",
    "limiter"
]
