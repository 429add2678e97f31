from __future__ import annotations


class QuoteError(Exception):
    code = "QUOTE_ERROR"


class InvalidSymbolError(QuoteError):
    code = "INVALID_SYMBOL"

    def __init__(self, raw: str | None = None) -> None:
        super().__init__(self.code)
        self.raw = raw


class MissingCredentialError(QuoteError):
    """Deployment fault: a required upstream setting is not configured."""

    code = "MISSING_CREDENTIAL"

    def __init__(self, setting: str) -> None:
        super().__init__(f"{setting} is not configured")
        self.setting = setting


class UpstreamError(QuoteError):
    code = "UPSTREAM_ERROR"

    def __init__(self, status: int | str) -> None:
        super().__init__(f"upstream request failed: status={status}")
        self.status = status

    @property
    def is_timeout(self) -> bool:
        return self.status == "timeout"


class NoDataError(QuoteError):
    code = "NO_DATA"

    def __init__(self, symbol: str) -> None:
        super().__init__(f"no quote data for symbol {symbol}")
        self.symbol = symbol
