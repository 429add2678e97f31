from __future__ import annotations

import uvicorn
from fastapi import FastAPI, Request

from quotedesk.api.routes import router
from quotedesk.config.settings import Settings, get_settings
from quotedesk.integrations.analysis_rest import AnalysisRestClient
from quotedesk.integrations.finnhub_rest import FinnhubRestClient
from quotedesk.services.analysis import AnalysisService
from quotedesk.services.quote_cache import QuoteCache
from quotedesk.services.quote_gateway import QuoteGatewayService

NO_STORE = {
    "Cache-Control": "no-store, max-age=0",
    "Pragma": "no-cache",
    "CDN-Cache-Control": "no-store",
}


def bind_services(app: FastAPI, settings: Settings) -> None:
    """Build the process-wide cache and services and attach them to ``app.state``."""
    cache = QuoteCache(
        ttl_ms=settings.QUOTE_CACHE_TTL_MS,
        max_entries=settings.QUOTE_CACHE_MAX_ENTRIES,
    )
    app.state.quote_gateway_service = QuoteGatewayService(
        quote_cache=cache,
        rest_client=FinnhubRestClient(
            api_key=settings.FINNHUB_API_KEY,
            base_url=settings.FINNHUB_BASE_URL,
            timeout=settings.QUOTE_UPSTREAM_TIMEOUT_SEC,
        ),
        single_flight=settings.QUOTE_SINGLE_FLIGHT,
    )
    app.state.analysis_service = AnalysisService(
        rest_client=AnalysisRestClient(base_url=settings.ANALYSIS_SERVICE_BASE_URL),
        default_year=settings.ANALYSIS_DEFAULT_YEAR,
        default_quarter=settings.ANALYSIS_DEFAULT_QUARTER,
    )
    print(
        "[QUOTE][services_bound] "
        f"ttl_ms={settings.QUOTE_CACHE_TTL_MS} "
        f"max_entries={settings.QUOTE_CACHE_MAX_ENTRIES} "
        f"single_flight={int(settings.QUOTE_SINGLE_FLIGHT)} "
        f"credential={int(bool(settings.FINNHUB_API_KEY))}",
        flush=True,
    )


app = FastAPI(title="Quotedesk Gateway", version="0.1.0")
app.include_router(router, prefix="/v1")


@app.middleware("http")
async def no_store_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers.update(NO_STORE)
    return response


@app.get("/healthz")
def healthz():
    return {"status": "ok"}


bind_services(app, get_settings())


def run(host: str = "0.0.0.0", port: int = 8000) -> None:
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run()
