"""Login, token refresh and logout endpoints"""
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from athletics_api.api.deps import (
    ACCESS_TOKEN_COOKIE,
    LOGGED_IN_COOKIE,
    REFRESH_TOKEN_COOKIE,
    get_key_material,
    get_token_cache,
    get_user_store,
    require_auth,
)
from athletics_api.config import settings
from athletics_api.database import get_db
from athletics_api.middleware.monitoring import record_auth_failure, record_session_event
from athletics_api.middleware.rate_limit import limiter
from athletics_api.schemas.auth import LoginRequest, StatusResponse, TokenResponse
from athletics_api.utils import sessions
from athletics_api.utils.auth import verify_password
from athletics_api.utils.errors import AuthError
from athletics_api.utils.jwt_utils import TokenDetails
from athletics_api.utils.keys import KeyMaterial
from athletics_api.utils.logger import logger
from athletics_api.utils.sessions import AuthContext
from athletics_api.utils.token_cache import TokenCache
from athletics_api.utils.user_store import SqlUserStore, UserStore

router = APIRouter(prefix="/api/auth", tags=["authentication"])


# ---------------------------------------------------------------------------
# Cookies
# ---------------------------------------------------------------------------

def _set_cookie(response: JSONResponse, key: str, value: str, max_age_minutes: int, httponly: bool) -> None:
    response.set_cookie(
        key=key,
        value=value,
        max_age=max_age_minutes * 60,
        path="/",
        httponly=httponly,
        samesite="lax",
        secure=settings.COOKIE_SECURE,
    )


def _access_response(access: TokenDetails, keys: KeyMaterial) -> JSONResponse:
    """Body plus ``access_token`` and ``logged_in`` cookies for a new access token."""
    response = JSONResponse(content=TokenResponse(access_token=access.token).model_dump())
    _set_cookie(response, ACCESS_TOKEN_COOKIE, access.token, keys.access_token_max_age, httponly=True)
    # UX hint for client script only; carries no authority
    _set_cookie(response, LOGGED_IN_COOKIE, "true", keys.access_token_max_age, httponly=False)
    return response


# ---------------------------------------------------------------------------
# POST /api/auth/login
# ---------------------------------------------------------------------------

@router.post("/login", response_model=TokenResponse)
@limiter.limit(settings.RATE_LIMIT_LOGIN)
def login(
    request: Request,
    body: LoginRequest,
    db: Session = Depends(get_db),
    keys: KeyMaterial = Depends(get_key_material),
    cache: TokenCache = Depends(get_token_cache),
):
    """Exchange email and password for an access/refresh token pair.

    Sets ``access_token`` and ``refresh_token`` (httponly) and ``logged_in``
    cookies. The access token is also returned in the body for clients that
    send ``Authorization: Bearer <token>`` instead of cookies.
    """
    user = SqlUserStore(db).get_user_by_email(body.email)

    if user is None or not verify_password(body.password, user.password):
        logger.info("Login rejected", extra={"action": "login", "reason": "invalid_credentials"})
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"status": "fail", "message": "Invalid email or password"},
        )

    issued = sessions.login(user.id, keys, cache)

    response = _access_response(issued.access, keys)
    _set_cookie(response, REFRESH_TOKEN_COOKIE, issued.refresh.token, keys.refresh_token_max_age, httponly=True)

    record_session_event("login")
    return response


# ---------------------------------------------------------------------------
# GET /api/auth/refresh_token
# ---------------------------------------------------------------------------

@router.get("/refresh_token", response_model=TokenResponse)
def refresh_access_token(
    request: Request,
    keys: KeyMaterial = Depends(get_key_material),
    cache: TokenCache = Depends(get_token_cache),
    store: UserStore = Depends(get_user_store),
):
    """Issue a new access token from the ``refresh_token`` cookie.

    The refresh token itself is not rotated and stays valid until its own
    expiry. Fails with 403 when no refresh cookie is present and 401 when the
    refresh token is invalid, expired or no longer registered.
    """
    refresh_token: Optional[str] = request.cookies.get(REFRESH_TOKEN_COOKIE)

    try:
        access = sessions.refresh(refresh_token, keys, cache, store)
    except AuthError as exc:
        record_auth_failure(exc.reason)
        logger.info(
            f"Refresh rejected: {exc.reason}",
            extra={"reason": exc.reason, "action": "refresh"},
        )
        raise

    record_session_event("refresh")
    return _access_response(access, keys)


# ---------------------------------------------------------------------------
# GET /api/auth/logout
# ---------------------------------------------------------------------------

@router.get("/logout", response_model=StatusResponse)
def logout(
    ctx: AuthContext = Depends(require_auth),
    cache: TokenCache = Depends(get_token_cache),
) -> StatusResponse:
    """Revoke the access token used for this request.

    Any later request with the same access token returns 401. The refresh
    token issued with it is left untouched.
    """
    sessions.logout(ctx, cache)
    record_session_event("logout")
    return StatusResponse()
