"""JWT utilities: RS256 token signing and verification for access and refresh tokens"""
import time
import uuid
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional, TypedDict

from jose import JWTError, jwt
from jose.exceptions import JOSEError

from athletics_api.config import settings
from athletics_api.utils.errors import Expired, MalformedToken, SignatureInvalid, SigningFailure
from athletics_api.utils.logger import logger

# Time-window checks are done here rather than by jose so that a token outside
# [nbf, exp] is always reported as Expired, and so ``now`` can be pinned.
# jose only accepts string subjects; ours is the integer user id. Claim shape,
# iat included, is checked in verify_token.
_DECODE_OPTIONS: Dict[str, bool] = {
    "verify_exp": False,
    "verify_nbf": False,
    "verify_iat": False,
    "verify_sub": False,
}


@dataclass(frozen=True)
class TokenDetails:
    """An issued token and the server-side record kept for it.

    ``token`` is the signed compact string; it is set at issuance and dropped
    from the copy stored in the token cache.
    """

    token: Optional[str]
    token_uuid: uuid.UUID
    user_id: int
    expires_in: Optional[int]  # absolute epoch seconds

    def without_token(self) -> "TokenDetails":
        return replace(self, token=None)


class TokenClaims(TypedDict):
    """The signed payload"""

    sub: int
    token_uuid: str
    exp: int
    iat: int
    nbf: int


# ---------------------------------------------------------------------------
# Token creation
# ---------------------------------------------------------------------------

def generate_token(
    user_id: int,
    ttl_minutes: int,
    private_key: str,
    algorithm: Optional[str] = None,
) -> TokenDetails:
    """Sign a new token for ``user_id``.

    Args:
        user_id:     Value for the 'sub' claim.
        ttl_minutes: Lifetime of the token; ``exp = now + ttl_minutes * 60``.
        private_key: PEM private key of the token class (access or refresh).
        algorithm:   Signing algorithm, defaults to ``settings.JWT_ALGORITHM``.

    Returns:
        TokenDetails carrying the signed string and a fresh ``token_uuid``.

    Raises:
        SigningFailure: the key cannot be parsed or signing fails.
    """
    now = int(time.time())
    token_uuid = uuid.uuid4()
    expires_in = now + ttl_minutes * 60

    payload: Dict[str, Any] = {
        "sub": user_id,
        "token_uuid": str(token_uuid),
        "iat": now,
        "nbf": now,
        "exp": expires_in,
    }

    try:
        token = jwt.encode(payload, private_key, algorithm=algorithm or settings.JWT_ALGORITHM)
    except JOSEError as exc:
        logger.error(
            "Token signing failed",
            extra={"user_id": user_id, "action": "sign_token"},
            exc_info=True,
        )
        raise SigningFailure() from exc

    return TokenDetails(
        token=token,
        token_uuid=token_uuid,
        user_id=user_id,
        expires_in=expires_in,
    )


# ---------------------------------------------------------------------------
# Token verification
# ---------------------------------------------------------------------------

def verify_token(
    token: str,
    public_key: str,
    algorithm: Optional[str] = None,
    now: Optional[int] = None,
) -> TokenClaims:
    """Verify a token and return its claims.

    Checks, in order:
    1. The token is structurally a JWS            -> MalformedToken
    2. Signature validity against ``public_key``   -> SignatureInvalid
    3. Claims have the expected shape              -> MalformedToken
    4. ``nbf <= now <= exp``                       -> Expired

    This does not consult the token cache; a verified token may still have
    been revoked.
    """
    try:
        jwt.get_unverified_header(token)
    except JWTError as exc:
        logger.debug(f"JWT header decode failed: {exc}")
        raise MalformedToken() from exc

    try:
        payload = jwt.decode(
            token,
            public_key,
            algorithms=[algorithm or settings.JWT_ALGORITHM],
            options=_DECODE_OPTIONS,
        )
    except JWTError as exc:
        logger.debug(f"JWT decode failed: {exc}")
        raise SignatureInvalid() from exc

    try:
        claims: TokenClaims = {
            "sub": int(payload["sub"]),
            "token_uuid": str(uuid.UUID(str(payload["token_uuid"]))),
            "exp": int(payload["exp"]),
            "iat": int(payload["iat"]),
            "nbf": int(payload["nbf"]),
        }
    except (KeyError, TypeError, ValueError) as exc:
        raise MalformedToken() from exc

    current = int(time.time()) if now is None else now
    if not claims["nbf"] <= current <= claims["exp"]:
        raise Expired()

    return claims
