"""Liveness and readiness endpoints"""
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from athletics_api.api.deps import get_token_cache
from athletics_api.database import get_db
from athletics_api.utils.errors import CacheUnavailable
from athletics_api.utils.logger import logger
from athletics_api.utils.token_cache import TokenCache

router = APIRouter(prefix="/api/health_check", tags=["health"])

STARTED_AT = time.time()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/check")
def health_check():
    """Liveness: the process is up and serving requests"""
    return {
        "status": "success",
        "message": "Athletics API is running",
        "uptime_seconds": round(time.time() - STARTED_AT, 1),
        "timestamp": _now()
    }


@router.get("/ready")
def readiness_check(
    db: Session = Depends(get_db),
    cache: TokenCache = Depends(get_token_cache)
):
    """
    Readiness: the database answers and the token cache is open

    Expired cache entries are purged as a side effect. Returns 503 when
    either dependency is unavailable.
    """
    checks = {"database": False, "token_cache": False, "active_tokens": None, "purged_tokens": None}

    try:
        checks["purged_tokens"] = cache.purge_expired()
        checks["active_tokens"] = len(cache)
        checks["token_cache"] = True
    except CacheUnavailable:
        logger.error("Readiness check: token cache closed", extra={"action": "readiness"})

    try:
        started = time.perf_counter()
        db.execute(text("SELECT 1"))
        checks["database"] = True
        checks["database_latency_ms"] = round((time.perf_counter() - started) * 1000, 2)
    except SQLAlchemyError:
        logger.error("Readiness check: database unreachable", extra={"action": "readiness"}, exc_info=True)

    if not (checks["database"] and checks["token_cache"]):
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unavailable", "checks": checks, "timestamp": _now()}
        )

    return {"status": "ready", "checks": checks, "timestamp": _now()}
