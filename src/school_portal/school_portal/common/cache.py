from __future__ import annotations

import time
from typing import Any, Callable, Dict, Optional, Protocol, Tuple


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


class Cache(Protocol):
    """Key/value cache with per-entry TTL.

    ``get`` returns ``MISSING`` for absent or expired keys so that ``None`` can be
    cached as a real value.
    """

    def get(self, key: str) -> Any:
        raise NotImplementedError

    def set(self, key: str, value: Any, *, ttl_seconds: float) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError


class TTLCache(Cache):
    """In-process cache; entries expire lazily on read.

    No locking: concurrent readers may briefly see an overwritten value.
    """

    def __init__(self, *, clock: Optional[Callable[[], float]] = None):
        self._clock = clock or time.monotonic
        self._entries: Dict[str, Tuple[float, Any]] = {}

    def get(self, key: str) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return MISSING
        expires_at, value = entry
        if self._clock() >= expires_at:
            self._entries.pop(key, None)
            return MISSING
        return value

    def set(self, key: str, value: Any, *, ttl_seconds: float) -> None:
        if ttl_seconds <= 0:
            self._entries.pop(key, None)
            return
        self._entries[key] = (self._clock() + float(ttl_seconds), value)

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
