"""
In-memory read cache for the storage layer

Values are the raw JSON text of a storage key, the same thing a browser
key-value store would hold, so every read parses a fresh copy and callers
can never mutate cached state.
"""
import time
from threading import Lock
from typing import Callable, Dict, Optional, Tuple


class TTLCache:
    """
    Thread-safe text cache with a per-entry TTL
    """
    def __init__(self, ttl_seconds: int = 60):
        self.ttl = ttl_seconds
        self._entries: Dict[str, Tuple[str, float]] = {}
        self._lock = Lock()

    def get(self, key: str) -> Optional[str]:
        """Return cached text, or None when missing or expired"""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            text, expires_at = entry
            if time.monotonic() >= expires_at:
                del self._entries[key]
                return None
            return text

    def set(self, key: str, text: str):
        with self._lock:
            self._entries[key] = (text, time.monotonic() + self.ttl)

    def get_or_load(self, key: str, loader: Callable[[], Optional[str]]) -> Optional[str]:
        """
        Return cached text for key, calling loader on a miss

        A loader result of None (nothing stored) is not cached.
        """
        text = self.get(key)
        if text is not None:
            return text
        text = loader()
        if text is not None:
            self.set(key, text)
        return text

    def invalidate(self, key: str):
        with self._lock:
            self._entries.pop(key, None)
