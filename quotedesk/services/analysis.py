from __future__ import annotations

from typing import Any

from quotedesk.errors import QuoteError
from quotedesk.schemas.analysis import CompanyAnalysis, CompanySummary, Factor
from quotedesk.services.quote_gateway import normalize_symbol

_SEVERITIES = {"good", "medium", "bad"}


def _coerce_score(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    try:
        # non-numeric and zero both collapse to "no score"
        return float(value) or None
    except (TypeError, ValueError):
        return None


def _coerce_factor(raw: Any) -> Factor:
    if not isinstance(raw, dict):
        return Factor()
    sev = raw.get("sev")
    return Factor(
        label=str(raw.get("label") or ""),
        text=str(raw.get("text") or ""),
        sev=sev if sev in _SEVERITIES else "medium",
    )


def normalize_analysis(payload: dict, requested_ticker: str) -> CompanyAnalysis:
    factors = payload.get("factors")
    return CompanyAnalysis(
        name=str(payload.get("name") or ""),
        desc=str(payload.get("desc") or ""),
        ticker=str(payload.get("ticker") or requested_ticker).upper(),
        score=_coerce_score(payload.get("score")),
        factors=[_coerce_factor(f) for f in factors] if isinstance(factors, list) else [],
    )


class AnalysisService:
    def __init__(self, *, rest_client, default_year: int, default_quarter: int) -> None:
        self.rest_client = rest_client
        self.default_year = default_year
        self.default_quarter = default_quarter
        self.searches = 0
        self.analyses = 0

    def search(self, q: str | None) -> list[CompanySummary]:
        query = (q or "").strip()
        if not query:
            return []
        self.searches += 1
        try:
            rows = self.rest_client.search(query)
        except QuoteError as exc:
            print(f"[ANALYSIS][search_error] q={query} error={exc}", flush=True)
            raise
        return [
            CompanySummary(
                ticker=str(row.get("ticker") or "").upper(),
                name=str(row.get("name") or ""),
                desc=str(row.get("desc") or ""),
            )
            for row in rows
            if row.get("ticker")
        ]

    def analyze(self, ticker_raw: str | None) -> CompanyAnalysis:
        ticker = normalize_symbol(ticker_raw)
        self.analyses += 1
        try:
            payload = self.rest_client.analyze(ticker, self.default_year, self.default_quarter)
        except QuoteError as exc:
            print(f"[ANALYSIS][analyze_error] ticker={ticker} error={exc}", flush=True)
            raise
        return normalize_analysis(payload, ticker)
