"""
In-memory token registry.

The cache is the authority on whether an issued token is still live: a token
whose uuid is not present here is rejected even if its signature and expiry
check out. Logout removes entries; every entry also expires on its own after
the token's TTL so forgotten entries never outlive the token itself.

One instance is created at startup, stored on ``app.state`` and closed at
shutdown. All operations hold a single lock for the duration of a dict access,
so concurrent request threads never observe a partially applied insert or
remove.
"""
import threading
import time
import uuid
from typing import Callable, Dict, Optional, Tuple

from athletics_api.utils.errors import CacheUnavailable
from athletics_api.utils.jwt_utils import TokenDetails

# token_uuid -> (details, expires_at on the cache clock)
_Entry = Tuple[TokenDetails, float]


class TokenCache:
    """Thread-safe TTL map from token uuid to TokenDetails."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[uuid.UUID, _Entry] = {}
        self._lock = threading.Lock()
        self._closed = False

    def insert(self, token_uuid: uuid.UUID, details: TokenDetails, ttl_seconds: Optional[float] = None) -> None:
        """Store ``details`` under ``token_uuid``.

        ``ttl_seconds`` defaults to the time left until ``details.expires_in``.
        The signed token string is not kept.
        """
        if ttl_seconds is None:
            if details.expires_in is None:
                raise ValueError("ttl_seconds is required when details.expires_in is not set")
            ttl_seconds = details.expires_in - time.time()

        with self._lock:
            self._ensure_open()
            if ttl_seconds <= 0:
                self._entries.pop(token_uuid, None)
                return
            self._entries[token_uuid] = (details.without_token(), self._clock() + ttl_seconds)

    def get(self, token_uuid: uuid.UUID) -> Optional[TokenDetails]:
        """Return the live entry for ``token_uuid``, or None if absent or expired."""
        with self._lock:
            self._ensure_open()
            entry = self._entries.get(token_uuid)
            if entry is None:
                return None
            details, expires_at = entry
            if self._clock() >= expires_at:
                del self._entries[token_uuid]
                return None
            return details

    def remove(self, token_uuid: uuid.UUID) -> bool:
        """Drop ``token_uuid``; returns whether a live entry was removed."""
        with self._lock:
            self._ensure_open()
            entry = self._entries.pop(token_uuid, None)
            return entry is not None and self._clock() < entry[1]

    def purge_expired(self) -> int:
        """Evict every expired entry and return how many were dropped."""
        with self._lock:
            self._ensure_open()
            now = self._clock()
            expired = [key for key, (_, expires_at) in self._entries.items() if now >= expires_at]
            for key in expired:
                del self._entries[key]
            return len(expired)

    def close(self) -> None:
        """Drop every entry; later operations raise CacheUnavailable."""
        with self._lock:
            self._entries.clear()
            self._closed = True

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _ensure_open(self) -> None:
        if self._closed:
            raise CacheUnavailable()
