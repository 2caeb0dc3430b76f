"""Rate limiting for credential endpoints"""
from slowapi import Limiter
from slowapi.util import get_remote_address

from athletics_api.config import settings

# Login is the only endpoint that accepts a password, so it is the one limited
limiter = Limiter(
    key_func=get_remote_address,
    enabled=settings.RATE_LIMIT_ENABLED,
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    strategy="fixed-window"
)
