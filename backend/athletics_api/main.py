"""FastAPI application entry point"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from slowapi.errors import RateLimitExceeded

from athletics_api import models  # noqa: F401  registers tables on Base.metadata
from athletics_api.api import auth, health, points, users
from athletics_api.config import settings
from athletics_api.database import Base, SessionLocal, engine
from athletics_api.middleware.monitoring import MonitoringMiddleware
from athletics_api.middleware.rate_limit import limiter
from athletics_api.utils.errors import AuthError
from athletics_api.utils.keys import load_key_material
from athletics_api.utils.logger import logger, setup_logging
from athletics_api.utils.token_cache import TokenCache

SERVICE_NAME = "Athletics API"
VERSION = "0.1.0"

setup_logging(settings.LOG_LEVEL)


def seed_points_table() -> None:
    """Load the scoring table at startup; an unreadable file only logs"""
    db = SessionLocal()
    try:
        imported = points.import_points_table(db)
    except points.POINTS_FILE_ERRORS as exc:
        logger.warning(
            f"Startup points import skipped: {exc}",
            extra={"action": "import_points"}
        )
        return
    finally:
        db.close()

    if imported is None:
        logger.info("Scoring table already loaded", extra={"action": "import_points"})


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load signing keys and open the token cache for the life of the process"""
    if settings.DATABASE_CREATE_TABLES:
        Base.metadata.create_all(bind=engine)

    if settings.POINTS_IMPORT_ON_STARTUP:
        seed_points_table()

    app.state.key_material = load_key_material(settings)
    app.state.token_cache = TokenCache()
    logger.info(
        f"{SERVICE_NAME} started: {app.state.key_material!r}",
        extra={"action": "startup"}
    )

    yield

    # Every issued token becomes unusable once the cache is gone
    app.state.token_cache.close()
    logger.info(f"{SERVICE_NAME} stopped", extra={"action": "shutdown"})


app = FastAPI(
    title=SERVICE_NAME,
    description="User accounts and World Athletics scoring behind cookie and bearer token auth",
    version=VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# ===== Middleware =====

# Credentials are cookies, so the origin list must be explicit
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
)

if settings.METRICS_ENABLED:
    app.add_middleware(MonitoringMiddleware)

    Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=True,
        excluded_handlers=[settings.METRICS_PATH, "/api/health_check/.*"],
    ).instrument(app).expose(app, endpoint=settings.METRICS_PATH, include_in_schema=False)

app.state.limiter = limiter

# ===== Routes =====

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(users.registration_router)
app.include_router(users.router)
app.include_router(points.router)
app.include_router(points.user_points_router)


@app.get("/")
def root():
    """Service index"""
    return {
        "service": SERVICE_NAME,
        "version": VERSION,
        "status": "operational",
        "docs": "/docs",
        "health": "/api/health_check/check",
        "metrics": settings.METRICS_PATH if settings.METRICS_ENABLED else None
    }


# ===== Error Handlers =====

def _status_body(status_code: int, status: str, message: str, headers: dict = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"status": status, "message": message},
        headers=headers
    )


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError):
    """Render authentication failures without internal detail"""
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return _status_body(exc.status_code, exc.status, exc.message, headers)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    logger.warning(
        f"Rate limit exceeded ({exc.detail})",
        extra={"path": request.url.path, "method": request.method, "action": "rate_limit"}
    )
    return _status_body(429, "fail", "Too many requests. Please try again later.")


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Log anything unhandled and answer with a generic 500"""
    logger.error(
        f"Unhandled exception: {type(exc).__name__}",
        extra={"path": request.url.path, "method": request.method},
        exc_info=True
    )
    return _status_body(500, "error", "An unexpected error occurred.")
