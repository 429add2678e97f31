from __future__ import annotations

from typing import Any, Dict, List, Optional

import requests

from quotedesk.errors import MissingCredentialError, UpstreamError
from quotedesk.integrations.finnhub_rest import get_json


class AnalysisRestClient:
    """Client for the research service's summary search and analyze endpoints."""

    def __init__(
        self,
        base_url: Optional[str],
        session: Optional[Any] = None,
        timeout: float = 10,
    ) -> None:
        self.base_url = base_url.rstrip("/") if base_url else None
        self.session = session or requests
        self.timeout = timeout

    def _url(self, path: str) -> str:
        if not self.base_url:
            raise MissingCredentialError("ANALYSIS_SERVICE_BASE_URL")
        return f"{self.base_url}{path}"

    def search(self, q: str) -> List[Dict[str, Any]]:
        payload = get_json(self.session, self._url("/api/summary"), params={"q": q}, timeout=self.timeout)
        if not isinstance(payload, dict):
            raise UpstreamError("invalid_payload")
        results = payload.get("results") or []
        return [row for row in results if isinstance(row, dict)]

    def analyze(self, ticker: str, year: int, quarter: int) -> Dict[str, Any]:
        payload = get_json(
            self.session,
            self._url("/api/analyze"),
            params={"ticker": ticker, "year": str(year), "quarter": str(quarter)},
            timeout=self.timeout,
        )
        if not isinstance(payload, dict):
            raise UpstreamError("invalid_payload")
        return payload
