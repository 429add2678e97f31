from __future__ import annotations

from typing import Any, Dict, Optional

import requests

from quotedesk.errors import MissingCredentialError, UpstreamError

# Finnhub /quote field -> provider-neutral name
_FIELD_MAP = {
    "c": "price",
    "d": "change",
    "dp": "change_percent",
    "h": "high",
    "l": "low",
    "o": "open",
    "pc": "previous_close",
}

NO_STORE_HEADERS = {
    "Accept": "application/json",
    "Cache-Control": "no-cache, no-store",
    "Pragma": "no-cache",
}


def status_code_from_error(exc: Exception) -> int | None:
    response = getattr(exc, "response", None)
    code = getattr(response, "status_code", None)
    if isinstance(code, int):
        return code
    return None


def get_json(session: Any, url: str, *, params: Dict[str, Any], timeout: float) -> Any:
    """Single uncached GET; every failure mode surfaces as ``UpstreamError``."""
    try:
        response = session.get(url, headers=NO_STORE_HEADERS, params=params, timeout=timeout)
        response.raise_for_status()
    except requests.Timeout as exc:
        raise UpstreamError("timeout") from exc
    except requests.HTTPError as exc:
        raise UpstreamError(status_code_from_error(exc) or "http_error") from exc
    except requests.ConnectionError as exc:
        raise UpstreamError("unreachable") from exc
    except requests.RequestException as exc:
        raise UpstreamError("request_failed") from exc

    try:
        return response.json()
    except ValueError as exc:
        raise UpstreamError("invalid_payload") from exc


class FinnhubRestClient:
    """Finnhub quote endpoint client. Returns raw provider values, unvalidated."""

    DEFAULT_BASE_URL = "https://finnhub.io/api/v1"

    def __init__(
        self,
        api_key: Optional[str],
        session: Optional[Any] = None,
        base_url: Optional[str] = None,
        timeout: float = 5,
    ) -> None:
        self.api_key = api_key
        self.session = session or requests
        self.base_url = (base_url or self.DEFAULT_BASE_URL).rstrip("/")
        self.timeout = timeout

    def has_credential(self) -> bool:
        return bool(self.api_key)

    def get_quote(self, symbol: str) -> Dict[str, Any]:
        if not self.has_credential():
            raise MissingCredentialError("FINNHUB_API_KEY")

        payload = get_json(
            self.session,
            f"{self.base_url}/quote",
            params={"symbol": symbol, "token": self.api_key},
            timeout=self.timeout,
        )
        if not isinstance(payload, dict):
            raise UpstreamError("invalid_payload")

        out: Dict[str, Any] = {"symbol": symbol}
        for src, dst in _FIELD_MAP.items():
            out[dst] = payload.get(src)
        return out
