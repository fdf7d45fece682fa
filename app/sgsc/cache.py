from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from flask import Flask, current_app

logger = logging.getLogger(__name__)

# TTLs in seconds, per lookup collection.
DEFAULT_TTL = 10 * 60
TTL_SECTORS = 5 * 60
TTL_SHIFTS = 5 * 60
TTL_PERSONNEL = 2 * 60
TTL_VEHICLES = 3 * 60
TTL_BOOTHS = 5 * 60
TTL_SUPERVISORS = 2 * 60

KEY_SECTORS = "sectors"
KEY_SHIFTS = "shifts"
KEY_PERSONNEL = "personnel"
KEY_VEHICLES = "vehicles"
KEY_BOOTHS = "booths"
KEY_SUPERVISORS = "supervisors"


@dataclass
class CacheEntry:
    value: Any
    stored_at: float
    ttl: float


class DataCache:
    """
    In-process key/value store with a per-entry TTL.

    Expiry is checked lazily: an entry whose age has reached its TTL is
    dropped the next time it is read. There is no locking and no
    persistence; two concurrent misses may both hit the database.
    """

    def __init__(self, clock: Callable[[], float] | None = None) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._clock = clock or time.monotonic

    def set(self, key: str, value: Any, ttl: float = DEFAULT_TTL) -> None:
        self._entries[key] = CacheEntry(value=value, stored_at=self._clock(), ttl=ttl)

    def _live_entry(self, key: str) -> CacheEntry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.stored_at >= entry.ttl:
            del self._entries[key]
            return None
        return entry

    def get(self, key: str) -> Any | None:
        entry = self._live_entry(key)
        return entry.value if entry is not None else None

    def has(self, key: str) -> bool:
        return self._live_entry(key) is not None

    def clear(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear_all(self) -> None:
        self._entries.clear()

    def stats(self) -> dict[str, Any]:
        return {"size": len(self._entries), "keys": list(self._entries.keys())}


def init_cache(app: Flask, clock: Callable[[], float] | None = None) -> DataCache:
    cache = DataCache(clock=clock)
    app.extensions["reference_cache"] = cache
    return cache


def get_cache(app: Flask | None = None) -> DataCache:
    if app is None:
        app = current_app  # type: ignore[assignment]
    return app.extensions["reference_cache"]


# ---------- Invalidation hooks ----------
def on_sector_change(cache: DataCache | None = None) -> None:
    cache = cache or get_cache()
    cache.clear(KEY_SECTORS)
    cache.clear(KEY_PERSONNEL)  # personnel rows carry sector names


def on_shift_change(cache: DataCache | None = None) -> None:
    cache = cache or get_cache()
    cache.clear(KEY_SHIFTS)
    cache.clear(KEY_PERSONNEL)


def on_personnel_change(cache: DataCache | None = None) -> None:
    cache = cache or get_cache()
    cache.clear(KEY_PERSONNEL)
    cache.clear(KEY_SUPERVISORS)


def on_vehicle_change(cache: DataCache | None = None) -> None:
    cache = cache or get_cache()
    cache.clear(KEY_VEHICLES)


def on_booth_change(cache: DataCache | None = None) -> None:
    cache = cache or get_cache()
    cache.clear(KEY_BOOTHS)


def clear_all(cache: DataCache | None = None) -> None:
    cache = cache or get_cache()
    cache.clear_all()
    logger.info("Reference cache cleared")
