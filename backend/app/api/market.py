"""Market API: local JSON endpoints for the dashboard. Backend talks to Bitget via BitgetClient."""
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse, Response

from app.schemas.market import MarketDataEnvelope
from app.services.bitget_client import DEFAULT_CANDLES_LIMIT, DEFAULT_GRANULARITY, BitgetClient
from app.services.granularity import Market
from app.services.mock_data import MOCK_MESSAGE
from app.services.upstream import FetchResult

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}
SYMBOLS_CACHE_CONTROL = "public, max-age=300"
TICKERS_CACHE_CONTROL = "public, max-age=60"
ORDERBOOK_CACHE_CONTROL = "public, s-maxage=1, stale-while-revalidate=5"

MARKET_PATHS = ("/symbols", "/tickers", "/ticker", "/candles", "/orderbook")


def get_bitget_client() -> BitgetClient:
    # Dependency override in main.py will supply singleton.
    raise RuntimeError("bitget client dependency is not configured")


def market_response(result: FetchResult, cache_control: str | None = None) -> JSONResponse:
    envelope = MarketDataEnvelope(msg=MOCK_MESSAGE if result.is_mock else "success", data=result.data)
    headers = dict(CORS_HEADERS)
    if cache_control:
        headers["Cache-Control"] = cache_control
    if result.is_mock:
        headers["X-Data-Source"] = "mock"
    return JSONResponse(envelope.model_dump(by_alias=True, mode="json"), headers=headers)


async def preflight() -> Response:
    return Response(status_code=200, headers=CORS_HEADERS)


def build_market_router(market: Market) -> APIRouter:
    """Build the five resource endpoints for one market; spot and futures share every handler."""
    router = APIRouter(tags=[market.value])

    @router.get("/symbols")
    async def list_symbols(bitget_client: BitgetClient = Depends(get_bitget_client)) -> JSONResponse:
        """[Frontend] Return tradable symbols for the market selector."""
        result = await bitget_client.list_symbols(market)
        return market_response(result, SYMBOLS_CACHE_CONTROL)

    @router.get("/tickers")
    async def list_tickers(bitget_client: BitgetClient = Depends(get_bitget_client)) -> JSONResponse:
        """[Frontend] Return 24h ticker snapshots for every symbol."""
        result = await bitget_client.list_tickers(market)
        return market_response(result, TICKERS_CACHE_CONTROL)

    @router.get("/ticker")
    async def get_ticker(
        symbol: str | None = Query(default=None),
        bitget_client: BitgetClient = Depends(get_bitget_client),
    ) -> JSONResponse:
        """[Frontend] Return the 24h ticker of one symbol; used to validate a typed-in symbol."""
        result = await bitget_client.get_ticker(market, symbol)
        return market_response(result)

    @router.get("/candles")
    async def list_candles(
        symbol: str | None = Query(default=None),
        granularity: str = Query(default=DEFAULT_GRANULARITY, description="1min,5min,15min,1h,4h,1day,1week,1month"),
        start_time: int | None = Query(default=None, alias="startTime", description="Unix seconds or milliseconds"),
        end_time: int | None = Query(default=None, alias="endTime", description="Unix seconds or milliseconds"),
        limit: int = Query(default=DEFAULT_CANDLES_LIMIT, ge=1),
        bitget_client: BitgetClient = Depends(get_bitget_client),
    ) -> JSONResponse:
        """[Frontend] Return raw candle rows ``[ts, open, high, low, close, volume, quoteVolume]``."""
        result = await bitget_client.get_candles(
            market,
            symbol,
            granularity=granularity,
            start_time=start_time,
            end_time=end_time,
            limit=limit,
        )
        return market_response(result)

    @router.get("/orderbook")
    async def get_orderbook(
        symbol: str | None = Query(default=None),
        limit: int | None = Query(default=None, ge=1),
        bitget_client: BitgetClient = Depends(get_bitget_client),
    ) -> JSONResponse:
        """[Frontend] Return an order book snapshot; polled by the dashboard."""
        result = await bitget_client.get_orderbook(market, symbol, limit)
        return market_response(result, ORDERBOOK_CACHE_CONTROL)

    for path in MARKET_PATHS:
        router.add_api_route(path, preflight, methods=["OPTIONS"], include_in_schema=False)

    return router


router = APIRouter(prefix="/api/bitget")
router.include_router(build_market_router(Market.SPOT))
router.include_router(build_market_router(Market.FUTURES), prefix="/futures")
