"""
Result caching: cache-key derivation, one-shot cache activation, and an
in-process TTL store.

Any object exposing ``has(key)``, ``get(key)`` and ``set(key, value, ttl)``
can back the cache; :class:`MemoryCacheStore` is the bundled implementation.
"""

from __future__ import annotations

import copy
import hashlib
import json
import logging
import math
import time
from collections.abc import Callable
from datetime import timedelta
from typing import NamedTuple, Protocol

from cachetools import TLRUCache

from .config import DEFAULT_CACHE_MAXSIZE
from .errors import CacheNotConfiguredError

TTL = int | float | timedelta | None


class CacheStore(Protocol):
    """Key-value store with per-entry TTL."""

    def has(self, key: str) -> bool: ...

    def get(self, key: str) -> object: ...

    def set(self, key: str, value: object, ttl: TTL = None) -> None: ...


def ttl_seconds(ttl: TTL) -> float | None:
    """Normalize a TTL to seconds; ``None`` stays ``None``."""
    if ttl is None:
        return None
    if isinstance(ttl, timedelta):
        return ttl.total_seconds()
    return float(ttl)


# ---------------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------------

def _canonical(value: object) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), default=str)


def derive_cache_key(params: list) -> str:
    """
    Derive a stable cache key from a positional parameter array.

    The array's elements are sorted by their canonical JSON encoding
    (sorted mapping keys, compact separators, ``str()`` for values JSON
    cannot encode), which is a total order that does not depend on the
    process.  The sorted array is encoded the same way and hashed with MD5.

    Sorting discards argument positions, so two arrays holding the same
    elements in a different order share a key.

    Args:
        params: Parameter array as built by :class:`ParameterBuilder`.

    Returns:
        32-character hexadecimal digest.
    """
    ordered = sorted(params, key=_canonical)
    return hashlib.md5(_canonical(ordered).encode("utf-8")).hexdigest()


# ---------------------------------------------------------------------------
# One-shot result cache
# ---------------------------------------------------------------------------

class ResultCache:
    """
    Serves read-like results from a store when caching was armed for the call.

    Caching is opt-in per call: :meth:`activate` arms a directive that the
    next :meth:`fetch_or_compute` consumes, hit or miss.

    Args:
        store: Backing store, or ``None`` when caching is unavailable.
        logger: Optional diagnostic sink.
    """

    def __init__(self, store: CacheStore | None = None, logger: logging.Logger | None = None) -> None:
        self.store = store
        self.logger = logger
        self.active = False
        self.ttl: TTL = None

    def activate(self, ttl: TTL = None) -> None:
        """
        Arm the cache for the next read-like call.

        Raises:
            CacheNotConfiguredError: No store is attached.
        """
        if self.store is None:
            raise CacheNotConfiguredError(
                "The cache cannot be activated as no cache store has been registered."
            )
        self.active = True
        self.ttl = ttl

    def reset(self) -> None:
        self.active = False
        self.ttl = None

    def fetch_or_compute(self, key: str, compute: Callable[[], object]) -> object:
        """
        Return the cached value for ``key`` or compute (and maybe store) it.

        Args:
            key: Key from :func:`derive_cache_key`.
            compute: Performs the remote call on a miss.

        Returns:
            Cached or freshly computed result.
        """
        if not self.active:
            self._debug("Cache not used, calling remote", key)
            return compute()

        ttl = self.ttl
        if self.store.has(key):
            self.reset()
            self._debug("Cache match", key)
            return self.store.get(key)

        self._debug("Cache miss, calling remote", key)
        try:
            result = compute()
        finally:
            self.reset()

        self.store.set(key, result, ttl)
        return result

    def _debug(self, message: str, key: str) -> None:
        if self.logger is not None:
            self.logger.debug(message, extra={"payload": {"key": key}})


# ---------------------------------------------------------------------------
# In-process store
# ---------------------------------------------------------------------------

class _Entry(NamedTuple):
    value: object
    ttl: float | None


class MemoryCacheStore:
    """
    In-process :class:`CacheStore` with per-entry expiry.

    Entries set with ``ttl=None`` use ``default_ttl`` (``None`` meaning they
    never expire).  Least-recently-used entries are evicted past ``maxsize``.
    Values are copied on the way in and out, so callers may mutate results.

    Args:
        maxsize: Maximum number of entries held.
        default_ttl: TTL applied when ``set`` receives ``None``.
        timer: Clock returning seconds; injectable for tests.
    """

    def __init__(
        self,
        maxsize: int = DEFAULT_CACHE_MAXSIZE,
        default_ttl: TTL = None,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self.default_ttl = ttl_seconds(default_ttl)
        self._cache = TLRUCache(maxsize=maxsize, ttu=self._expires_at, timer=timer)

    @staticmethod
    def _expires_at(_key: str, entry: _Entry, now: float) -> float:
        if entry.ttl is None:
            return math.inf
        return now + entry.ttl

    def has(self, key: str) -> bool:
        return key in self._cache

    def get(self, key: str) -> object:
        entry = self._cache.get(key)
        return None if entry is None else copy.deepcopy(entry.value)

    def set(self, key: str, value: object, ttl: TTL = None) -> None:
        seconds = ttl_seconds(ttl)
        if seconds is None:
            seconds = self.default_ttl
        self._cache[key] = _Entry(copy.deepcopy(value), seconds)

    def delete(self, key: str) -> None:
        self._cache.pop(key, None)

    def clear(self) -> None:
        self._cache.clear()
