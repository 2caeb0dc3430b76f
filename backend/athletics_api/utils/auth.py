"""Authentication utilities"""
from argon2 import PasswordHasher, Type
from argon2.exceptions import InvalidHash, VerificationError

_pwd_hasher = PasswordHasher(type=Type.ID)


def hash_password(password: str) -> str:
    """Hash a password with argon2id"""
    return _pwd_hasher.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify a password against a stored hash

    Returns False on mismatch or when the stored hash is unreadable.
    """
    try:
        return _pwd_hasher.verify(password_hash, password)
    except (InvalidHash, VerificationError):
        return False
