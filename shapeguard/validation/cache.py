"""Single-flight cache for derived schemas.

Each structural key maps to a ``Future``. The first caller for a key computes
it; concurrent callers block on the same future. Deterministic failures
(``SchemaError``) are cached like results. Anything else, interrupts
included, is handed to the waiting callers and then evicted so a later call
can retry.

The cache holds at most ``maxsize`` entries. Past that, the least recently
used completed entries are evicted; entries still being computed are never
dropped.
"""
from __future__ import annotations

import threading
from collections import OrderedDict
from concurrent.futures import Future
from typing import Any, Callable, Hashable, TypeVar

from shapeguard.core.errors import SchemaError
from shapeguard.core.logging import algebra_logger

T = TypeVar("T")

log = algebra_logger()

DEFAULT_MAXSIZE = 4096


class DerivedSchemaCache:
    """Thread-safe compute-once mapping from structural keys to schemas."""

    def __init__(self, cacheable: tuple[type[BaseException], ...] = (SchemaError,),
                 maxsize: int | None = DEFAULT_MAXSIZE) -> None:
        if maxsize is not None and maxsize < 1:
            raise ValueError(f"maxsize must be positive or None, not {maxsize}")
        self._lock = threading.Lock()
        self._entries: OrderedDict[Hashable, tuple[Future, int]] = OrderedDict()
        self._cacheable = cacheable
        self.maxsize = maxsize
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def get_or_compute(self, key: Hashable, compute: Callable[[], T],
                       cache_if: Callable[[T], bool] | None = None) -> T:
        """Return the cached value for ``key`` or compute it once.

        A result for which ``cache_if`` returns False is still handed to the
        callers waiting on it, but is not kept.
        """
        try:
            hash(key)
        except TypeError:
            return compute()

        me = threading.get_ident()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                future: Future = Future()
                self._entries[key] = (future, me)
                self.misses += 1
                owner = True
                self._evict()
            else:
                future, computing_thread = entry
                owner = False
                self.hits += 1
                self._entries.move_to_end(key)

        if not owner:
            if not future.done() and computing_thread == me:
                # Re-entrant request for a key this thread is still computing.
                return compute()
            log.debug("derived_schema_cache_hit", op=key[0] if isinstance(key, tuple) else key)
            return future.result()

        try:
            result = compute()
        except BaseException as e:
            future.set_exception(e)
            if not isinstance(e, self._cacheable):
                self._forget(key, future)
            raise
        future.set_result(result)
        if cache_if is not None and not cache_if(result):
            self._forget(key, future)
        return result

    def _forget(self, key: Hashable, future: Future) -> None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and entry[0] is future:
                del self._entries[key]

    def _evict(self) -> None:
        # Called with the lock held.
        if self.maxsize is None:
            return
        excess = len(self._entries) - self.maxsize
        if excess <= 0:
            return
        for key in [k for k, (future, _) in self._entries.items() if future.done()][:excess]:
            del self._entries[key]
            self.evictions += 1

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0
            self.evictions = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: Any) -> bool:
        try:
            hash(key)
        except TypeError:
            return False
        with self._lock:
            return key in self._entries

    @property
    def stats(self) -> dict[str, int]:
        with self._lock:
            return {"entries": len(self._entries), "hits": self.hits, "misses": self.misses}


derived_schemas = DerivedSchemaCache()
