"""Signing key material for access and refresh tokens"""
import base64
import binascii
from dataclasses import dataclass
from typing import Optional, Tuple

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from athletics_api.config import Settings
from athletics_api.utils.logger import logger


@dataclass(frozen=True)
class KeyMaterial:
    """The two RSA key pairs and token lifetimes, fixed for the process lifetime.

    Access and refresh tokens are signed with different key pairs so a refresh
    token can never pass as an access token and vice versa.
    """

    access_private_key: str
    access_public_key: str
    access_token_max_age: int     # minutes
    refresh_private_key: str
    refresh_public_key: str
    refresh_token_max_age: int    # minutes

    def __repr__(self) -> str:
        return (
            f"KeyMaterial(access_token_max_age={self.access_token_max_age}, "
            f"refresh_token_max_age={self.refresh_token_max_age})"
        )


# ---------------------------------------------------------------------------
# PEM helpers
# ---------------------------------------------------------------------------

def decode_pem(value: str) -> str:
    """Accept PEM text as-is, or decode base64-encoded PEM (the usual .env form)."""
    value = value.strip()
    if value.startswith("-----BEGIN"):
        return value
    try:
        decoded = base64.b64decode(value, validate=True).decode()
    except (binascii.Error, UnicodeDecodeError) as exc:
        raise ValueError("Key is neither PEM text nor base64-encoded PEM") from exc
    if not decoded.lstrip().startswith("-----BEGIN"):
        raise ValueError("Base64 key does not decode to PEM")
    return decoded.strip()


def public_pem_from_private(private_pem: str) -> str:
    """Derive the PEM public key from a PEM private key."""
    private_key = serialization.load_pem_private_key(private_pem.encode(), password=None)
    return private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode()


def generate_rsa_keypair(key_size: int = 2048) -> Tuple[str, str]:
    """Generate a fresh RSA keypair and return ``(private_pem, public_pem)``."""
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=key_size)
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()
    return private_pem, public_pem_from_private(private_pem)


def _resolve_pair(name: str, private_value: Optional[str], public_value: Optional[str]) -> Tuple[str, str]:
    """Resolve one key pair from settings values.

    - private + public given: both decoded and used as-is
    - only private given: public key derived from it
    - neither given: a fresh keypair is generated for this process
    - only public given: error, tokens could be verified but never issued
    """
    if private_value:
        private_pem = decode_pem(private_value)
        public_pem = decode_pem(public_value) if public_value else public_pem_from_private(private_pem)
        logger.info(f"{name} keypair loaded from settings", extra={"action": "load_keys"})
        return private_pem, public_pem

    if public_value:
        raise ValueError(f"{name} public key is set but its private key is missing")

    logger.warning(
        f"{name.upper()}_PRIVATE_KEY not set, auto-generated RSA-2048 keypair for this session. "
        "All tokens will be invalidated on restart.",
        extra={"action": "generate_keys"},
    )
    return generate_rsa_keypair()


def load_key_material(settings: Settings) -> KeyMaterial:
    """Build the immutable KeyMaterial from settings."""
    access_private, access_public = _resolve_pair(
        "ACCESS_TOKEN", settings.ACCESS_TOKEN_PRIVATE_KEY, settings.ACCESS_TOKEN_PUBLIC_KEY
    )
    refresh_private, refresh_public = _resolve_pair(
        "REFRESH_TOKEN", settings.REFRESH_TOKEN_PRIVATE_KEY, settings.REFRESH_TOKEN_PUBLIC_KEY
    )
    return KeyMaterial(
        access_private_key=access_private,
        access_public_key=access_public,
        access_token_max_age=settings.ACCESS_TOKEN_MAXAGE,
        refresh_private_key=refresh_private,
        refresh_public_key=refresh_public,
        refresh_token_max_age=settings.REFRESH_TOKEN_MAXAGE,
    )
