from __future__ import annotations

import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable

from quotedesk.schemas.quote import Quote

DEFAULT_TTL_MS = 10_000


def _monotonic_ms() -> int:
    # entry age only; as_of is stamped from the wall clock
    return int(time.monotonic() * 1000)


@dataclass(frozen=True)
class QuoteCacheEntry:
    quote: Quote
    fetched_at_ms: int


class QuoteCache:
    """Per-symbol quote cache with a fixed freshness window.

    Entries are only written after a successful upstream fetch and are never
    swept; a stale entry stays in place until the next fetch for that symbol
    overwrites it. With ``max_entries`` set, the least recently written symbol
    is dropped once the bound is exceeded.
    """

    def __init__(
        self,
        ttl_ms: int = DEFAULT_TTL_MS,
        clock: Callable[[], int] | None = None,
        max_entries: int | None = None,
    ) -> None:
        if ttl_ms <= 0:
            raise ValueError("ttl_ms must be positive")
        if max_entries is not None and max_entries <= 0:
            raise ValueError("max_entries must be positive")
        self.ttl_ms = ttl_ms
        self.clock = clock or _monotonic_ms
        self.max_entries = max_entries
        self._lock = threading.Lock()
        self._rows: OrderedDict[str, QuoteCacheEntry] = OrderedDict()
        self.writes = 0
        self.evictions = 0

    def now_ms(self) -> int:
        return int(self.clock())

    def is_fresh(self, entry: QuoteCacheEntry, now_ms: int) -> bool:
        return now_ms - entry.fetched_at_ms < self.ttl_ms

    def get(self, symbol: str) -> QuoteCacheEntry | None:
        with self._lock:
            return self._rows.get(symbol)

    def get_fresh(self, symbol: str, now_ms: int | None = None) -> Quote | None:
        entry = self.get(symbol)
        if entry is None:
            return None
        ref = self.now_ms() if now_ms is None else now_ms
        if self.is_fresh(entry, ref):
            return entry.quote
        return None

    def put(self, symbol: str, quote: Quote, fetched_at_ms: int) -> QuoteCacheEntry:
        entry = QuoteCacheEntry(quote=quote, fetched_at_ms=fetched_at_ms)
        with self._lock:
            self._rows[symbol] = entry
            self._rows.move_to_end(symbol)
            self.writes += 1
            if self.max_entries is not None:
                while len(self._rows) > self.max_entries:
                    self._rows.popitem(last=False)
                    self.evictions += 1
        return entry

    def list_all(self) -> list[QuoteCacheEntry]:
        with self._lock:
            return list(self._rows.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._rows)

    def metrics(self, now_ms: int | None = None) -> dict:
        ref = self.now_ms() if now_ms is None else now_ms
        rows = self.list_all()
        fresh = sum(1 for r in rows if self.is_fresh(r, ref))
        return {
            "cached_symbols": len(rows),
            "fresh_symbols": fresh,
            "stale_symbols": len(rows) - fresh,
            "cache_writes": self.writes,
            "cache_evictions": self.evictions,
            "ttl_ms": self.ttl_ms,
        }
