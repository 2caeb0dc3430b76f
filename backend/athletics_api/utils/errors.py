"""Authentication error taxonomy.

Every failure on the authentication path is terminal for the request. Each
error carries the HTTP status and a fixed, classified message; the exception
handler in ``main`` renders ``{"status": ..., "message": ...}`` and never
exposes the underlying exception text.

    AuthError
    ├── MissingToken          401
    ├── MalformedToken        401
    ├── SignatureInvalid      401
    ├── Expired               401
    ├── NotCached             401  (revoked, logged out, or evicted)
    ├── UserNotFound          401
    ├── RefreshTokenMissing   403
    └── InternalAuthError     500
        ├── SigningFailure
        ├── CacheUnavailable
        └── StoreUnavailable
"""
from fastapi import status as http_status


class AuthError(Exception):
    """Base class for authentication and session failures."""

    status_code: int = http_status.HTTP_401_UNAUTHORIZED
    status: str = "fail"
    message: str = "Authentication failed"
    reason: str = "auth_error"

    def __init__(self, message: str = None):
        super().__init__(message or self.message)
        if message:
            self.message = message


class MissingToken(AuthError):
    message = "You are not logged in, please provide a token"
    reason = "missing_token"


class MalformedToken(AuthError):
    message = "Invalid token"
    reason = "malformed_token"


class SignatureInvalid(AuthError):
    message = "Invalid token signature"
    reason = "signature_invalid"


class Expired(AuthError):
    message = "Token has expired"
    reason = "expired"


class NotCached(AuthError):
    message = "Token is invalid or session has expired"
    reason = "not_cached"


class UserNotFound(AuthError):
    message = "The user belonging to this token no longer exists"
    reason = "user_not_found"


class RefreshTokenMissing(AuthError):
    status_code = http_status.HTTP_403_FORBIDDEN
    message = "Could not refresh access token"
    reason = "refresh_token_missing"


class InternalAuthError(AuthError):
    """Server-side failure; reported as 500 so it is never mistaken for a 401."""

    status_code = http_status.HTTP_500_INTERNAL_SERVER_ERROR
    status = "error"
    message = "Internal authentication error"
    reason = "internal_error"


class SigningFailure(InternalAuthError):
    message = "Error generating token"
    reason = "signing_failure"


class CacheUnavailable(InternalAuthError):
    message = "Session store unavailable"
    reason = "cache_unavailable"


class StoreUnavailable(InternalAuthError):
    message = "User store unavailable"
    reason = "store_unavailable"
