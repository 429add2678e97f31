from typing import NoReturn

from fastapi import APIRouter, HTTPException, Request

from quotedesk.errors import (
    InvalidSymbolError,
    MissingCredentialError,
    NoDataError,
    QuoteError,
    UpstreamError,
)
from quotedesk.schemas.analysis import AnalysisRequest

router = APIRouter()


def _raise_http(exc: QuoteError) -> NoReturn:
    if isinstance(exc, InvalidSymbolError):
        raise HTTPException(status_code=400, detail={"code": exc.code}) from exc
    if isinstance(exc, NoDataError):
        raise HTTPException(status_code=404, detail={"code": exc.code, "symbol": exc.symbol}) from exc
    if isinstance(exc, MissingCredentialError):
        raise HTTPException(status_code=500, detail={"code": exc.code, "setting": exc.setting}) from exc
    if isinstance(exc, UpstreamError):
        status_code = 504 if exc.is_timeout else 502
        raise HTTPException(status_code=status_code, detail={"code": exc.code, "status": exc.status}) from exc
    raise HTTPException(status_code=500, detail={"code": exc.code}) from exc


@router.get('/quotes/{symbol}')
def get_quote(symbol: str, request: Request):
    service = request.app.state.quote_gateway_service
    try:
        quote = service.get_quote(symbol)
    except QuoteError as exc:
        _raise_http(exc)
    return quote.to_payload()


@router.get('/quote')
def get_quote_by_param(request: Request, symbol: str | None = None):
    if not symbol:
        raise HTTPException(status_code=400, detail={'code': 'MISSING_SYMBOL'})
    return get_quote(symbol, request)


@router.get('/quotes')
def get_quotes(symbols: str, request: Request):
    service = request.app.state.quote_gateway_service
    req = [s for s in symbols.split(',') if s.strip()]
    try:
        rows = service.get_quotes(req)
    except QuoteError as exc:
        _raise_http(exc)
    return [row.to_payload() for row in rows]


@router.get('/search')
def search(request: Request, q: str = ''):
    service = request.app.state.analysis_service
    try:
        rows = service.search(q)
    except QuoteError as exc:
        _raise_http(exc)
    return {'results': [row.model_dump() for row in rows]}


@router.post('/analysis')
def analyze(req: AnalysisRequest, request: Request):
    service = request.app.state.analysis_service
    try:
        result = service.analyze(req.ticker)
    except QuoteError as exc:
        _raise_http(exc)
    return result.model_dump()


@router.get('/metrics/quote')
def quote_metrics(request: Request):
    service = request.app.state.quote_gateway_service
    metrics = service.quote_cache.metrics()
    metrics.update(service.metrics())
    return metrics
