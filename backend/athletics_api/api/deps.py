"""API dependencies for authentication.

Every protected route depends on :func:`require_auth`, which runs the
per-request state machine:

    ExtractCredential  access_token cookie, else Authorization: Bearer <token>
          │                                           (none -> MissingToken)
    VerifySignature    access public key, [nbf, exp] window
          │                      (MalformedToken | SignatureInvalid | Expired)
    CacheLookup        token_uuid must be registered       (miss -> NotCached)
          │
    ResolveUser        UserStore.get_user_by_id(cached.user_id)
          │                      (None -> UserNotFound, db error -> 500)
    Authenticated      AuthContext on request.state.auth

A cache miss is final: it covers logout, eviction and expiry alike, and the
cached entry (not the signature) decides whether the token is live. The user
is resolved from the cached ``user_id``, not from the token's ``sub`` claim.
"""
import uuid
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from athletics_api.database import get_db
from athletics_api.middleware.monitoring import record_auth_failure
from athletics_api.utils.errors import AuthError, MissingToken, NotCached, UserNotFound
from athletics_api.utils.jwt_utils import verify_token
from athletics_api.utils.keys import KeyMaterial
from athletics_api.utils.logger import logger
from athletics_api.utils.sessions import AuthContext
from athletics_api.utils.token_cache import TokenCache
from athletics_api.utils.user_store import SqlUserStore, UserStore

ACCESS_TOKEN_COOKIE = "access_token"
REFRESH_TOKEN_COOKIE = "refresh_token"
LOGGED_IN_COOKIE = "logged_in"

_bearer_scheme = HTTPBearer(auto_error=False)


# ---------------------------------------------------------------------------
# Shared state
# ---------------------------------------------------------------------------

def get_token_cache(request: Request) -> TokenCache:
    """The process-wide token cache created in the app lifespan."""
    return request.app.state.token_cache


def get_key_material(request: Request) -> KeyMaterial:
    """The signing keys loaded in the app lifespan."""
    return request.app.state.key_material


def get_user_store(db: Session = Depends(get_db)) -> UserStore:
    return SqlUserStore(db)


# ---------------------------------------------------------------------------
# require_auth
# ---------------------------------------------------------------------------

def _extract_credential(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials],
) -> str:
    token = request.cookies.get(ACCESS_TOKEN_COOKIE)
    if token:
        return token
    if credentials and credentials.credentials:
        return credentials.credentials
    raise MissingToken()


def authenticate(
    token: str,
    keys: KeyMaterial,
    cache: TokenCache,
    store: UserStore,
) -> AuthContext:
    """Resolve a raw access token into an AuthContext or raise an AuthError."""
    claims = verify_token(token, keys.access_public_key)
    token_uuid = uuid.UUID(claims["token_uuid"])

    cached = cache.get(token_uuid)
    if cached is None:
        raise NotCached()

    user = store.get_user_by_id(cached.user_id)
    if user is None:
        raise UserNotFound()

    return AuthContext(user=user, access_token_uuid=token_uuid)


def require_auth(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    keys: KeyMaterial = Depends(get_key_material),
    cache: TokenCache = Depends(get_token_cache),
    store: UserStore = Depends(get_user_store),
) -> AuthContext:
    """Require a live access token.

    Accepts (in priority order):
    - ``access_token`` cookie
    - ``Authorization: Bearer <token>``

    Returns the :class:`AuthContext` and attaches it to ``request.state.auth``.
    """
    try:
        token = _extract_credential(request, credentials)
        ctx = authenticate(token, keys, cache, store)
    except AuthError as exc:
        record_auth_failure(exc.reason)
        logger.info(
            f"Authentication failed: {exc.reason}",
            extra={"reason": exc.reason, "path": request.url.path, "action": "authenticate"},
        )
        raise

    request.state.auth = ctx
    return ctx
