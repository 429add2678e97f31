from __future__ import annotations

import math
import threading
from datetime import datetime, timezone
from typing import Any, Callable

from quotedesk.errors import InvalidSymbolError, MissingCredentialError, NoDataError, UpstreamError
from quotedesk.schemas.quote import Quote
from quotedesk.services.quote_cache import QuoteCache

_SECONDARY_FIELDS = ("change", "change_percent", "high", "low", "open", "previous_close")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_symbol(raw: str | None) -> str:
    symbol = (raw or "").strip().upper()
    if not symbol:
        raise InvalidSymbolError(raw)
    return symbol


def _finite_float(value: Any) -> float | None:
    """JSON number as a finite float; ``None`` for anything else."""
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return None
    try:
        out = float(value)
    except OverflowError:
        return None
    return out if math.isfinite(out) else None


def is_valid_price(value: Any) -> bool:
    """Upstream reports unknown symbols as a zero or missing current price."""
    price = _finite_float(value)
    return price is not None and price > 0


def _to_float_default(value: Any, default: float = 0.0) -> float:
    out = _finite_float(value)
    return default if out is None else out


class _InFlight:
    def __init__(self) -> None:
        self.done = threading.Event()
        self.quote: Quote | None = None
        self.error: Exception | None = None


class QuoteGatewayService:
    """Cache-first quote lookup with a single upstream attempt on miss.

    Cache age is measured on the cache's own clock; ``as_of`` is wall-clock
    UTC from ``utc_now``.
    """

    def __init__(
        self,
        *,
        quote_cache: QuoteCache,
        rest_client,
        single_flight: bool = False,
        utc_now: Callable[[], datetime] | None = None,
    ) -> None:
        self.quote_cache = quote_cache
        self.rest_client = rest_client
        self.single_flight = single_flight
        self.utc_now = utc_now or _utc_now
        self._inflight_lock = threading.Lock()
        self._inflight: dict[str, _InFlight] = {}

        self._counter_lock = threading.Lock()
        self.metrics_counters = {
            "cache_hits": 0,
            "cache_misses": 0,
            "upstream_calls": 0,
            "upstream_errors": 0,
            "no_data": 0,
            "coalesced": 0,
        }

    def _inc(self, key: str, value: int = 1) -> None:
        with self._counter_lock:
            self.metrics_counters[key] = self.metrics_counters.get(key, 0) + value

    def get_quote(self, symbol_raw: str) -> Quote:
        symbol = normalize_symbol(symbol_raw)

        cached = self.quote_cache.get_fresh(symbol)
        if cached is not None:
            self._inc("cache_hits")
            return cached

        self._inc("cache_misses")
        if self.single_flight:
            return self._fetch_coalesced(symbol)
        return self._fetch_and_store(symbol)

    def get_quotes(self, symbols: list[str]) -> list[Quote]:
        unique_symbols: list[str] = []
        seen: set[str] = set()
        for raw in symbols:
            value = str(raw).strip().upper()
            if not value or value in seen:
                continue
            seen.add(value)
            unique_symbols.append(value)

        out: list[Quote] = []
        for symbol in unique_symbols:
            try:
                out.append(self.get_quote(symbol))
            except NoDataError:
                continue
        return out

    def _fetch_coalesced(self, symbol: str) -> Quote:
        with self._inflight_lock:
            call = self._inflight.get(symbol)
            leader = call is None
            if leader:
                call = _InFlight()
                self._inflight[symbol] = call

        if not leader:
            self._inc("coalesced")
            call.done.wait()
            if call.error is not None:
                raise call.error
            if call.quote is None:
                raise UpstreamError("abandoned")
            return call.quote

        try:
            call.quote = self._fetch_and_store(symbol)
            return call.quote
        except Exception as exc:
            call.error = exc
            raise
        finally:
            with self._inflight_lock:
                self._inflight.pop(symbol, None)
            call.done.set()

    def _fetch_and_store(self, symbol: str) -> Quote:
        if not self.rest_client.has_credential():
            print("[QUOTE][config_error] setting=FINNHUB_API_KEY", flush=True)
            raise MissingCredentialError("FINNHUB_API_KEY")

        self._inc("upstream_calls")
        try:
            payload = self.rest_client.get_quote(symbol)
        except UpstreamError as exc:
            self._inc("upstream_errors")
            print(f"[QUOTE][upstream_error] symbol={symbol} status={exc.status}", flush=True)
            raise

        price = payload.get("price")
        if not is_valid_price(price):
            self._inc("no_data")
            raise NoDataError(symbol)

        # nothing is written unless a validated quote exists
        fetched_at_ms = self.quote_cache.now_ms()
        quote = Quote(
            symbol=symbol,
            price=float(price),
            as_of=self.utc_now(),
            **{name: _to_float_default(payload.get(name)) for name in _SECONDARY_FIELDS},
        )
        self.quote_cache.put(symbol, quote, fetched_at_ms)
        return quote

    def metrics(self) -> dict[str, int | bool]:
        with self._counter_lock:
            out: dict[str, int | bool] = dict(self.metrics_counters)
        out["single_flight"] = self.single_flight
        return out
