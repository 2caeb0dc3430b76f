"""Session lifecycle: login, refresh and logout over the token cache.

Login issues an independent access/refresh pair and registers both in the
token cache. Refresh trusts the cache entry of the presented refresh token,
not the token's own ``sub`` claim, to decide who is re-authenticated, and
reissues the access token only. Logout revokes the current access token only.

Known trade-offs, kept deliberately as observed behaviour:
- logout leaves the paired refresh token live until its own TTL, so a
  captured refresh token can keep minting access tokens after logout;
- refresh does not rotate the refresh token;
- the access token replaced by a refresh is not revoked, it just expires.
"""
import uuid
from typing import NamedTuple, Optional

from athletics_api.models.user import User
from athletics_api.utils.errors import NotCached, RefreshTokenMissing, UserNotFound
from athletics_api.utils.jwt_utils import TokenDetails, generate_token, verify_token
from athletics_api.utils.keys import KeyMaterial
from athletics_api.utils.logger import logger
from athletics_api.utils.token_cache import TokenCache
from athletics_api.utils.user_store import UserStore


class AuthContext(NamedTuple):
    """Resolved identity for one authenticated request."""
    user: User
    access_token_uuid: uuid.UUID


class IssuedSession(NamedTuple):
    access: TokenDetails
    refresh: TokenDetails


def _register(details: TokenDetails, ttl_minutes: int, cache: TokenCache) -> None:
    cache.insert(details.token_uuid, details, ttl_seconds=ttl_minutes * 60)


def login(user_id: int, keys: KeyMaterial, cache: TokenCache) -> IssuedSession:
    """Issue and register an access/refresh pair for an already-authenticated user.

    Raises:
        SigningFailure: either token could not be signed.
        CacheUnavailable: the cache has been shut down.
    """
    # Nothing is registered unless both tokens signed
    access = generate_token(user_id, keys.access_token_max_age, keys.access_private_key)
    refresh_details = generate_token(user_id, keys.refresh_token_max_age, keys.refresh_private_key)

    _register(access, keys.access_token_max_age, cache)
    _register(refresh_details, keys.refresh_token_max_age, cache)

    logger.info(
        f"Issued token pair for user {user_id}",
        extra={"user_id": user_id, "token_uuid": access.token_uuid, "action": "login"},
    )
    return IssuedSession(access=access, refresh=refresh_details)


def refresh(
    refresh_token: Optional[str],
    keys: KeyMaterial,
    cache: TokenCache,
    store: UserStore,
) -> TokenDetails:
    """Exchange a live refresh token for a new access token.

    Raises:
        RefreshTokenMissing: no refresh token was presented.
        MalformedToken, SignatureInvalid, Expired: refresh token failed verification.
        NotCached: refresh token is not (or no longer) registered.
        UserNotFound: the cached user no longer exists.
        StoreUnavailable, SigningFailure, CacheUnavailable: server-side failures.
    """
    if not refresh_token:
        raise RefreshTokenMissing()

    claims = verify_token(refresh_token, keys.refresh_public_key)

    cached = cache.get(uuid.UUID(claims["token_uuid"]))
    if cached is None:
        raise NotCached()

    user = store.get_user_by_id(cached.user_id)
    if user is None:
        raise UserNotFound()

    access = generate_token(user.id, keys.access_token_max_age, keys.access_private_key)
    _register(access, keys.access_token_max_age, cache)

    logger.info(
        f"Refreshed access token for user {user.id}",
        extra={"user_id": user.id, "token_uuid": access.token_uuid, "action": "refresh"},
    )
    return access


def logout(ctx: AuthContext, cache: TokenCache) -> None:
    """Revoke the access token the current request authenticated with."""
    cache.remove(ctx.access_token_uuid)
    logger.info(
        f"Revoked access token for user {ctx.user.id}",
        extra={"user_id": ctx.user.id, "token_uuid": ctx.access_token_uuid, "action": "logout"},
    )
