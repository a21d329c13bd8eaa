import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import httpx

from app.config import settings
from app.errors import MissingParameterError, SymbolNotFoundError
from app.services import mock_data, normalizers
from app.services.granularity import Market, map_granularity
from app.services.upstream import DataSource, FetchResult, UpstreamFetcher

logger = logging.getLogger(__name__)

# Values above this are milliseconds; Bitget candle windows are sent in seconds.
MAX_SECONDS_TIMESTAMP = 9_999_999_999

CANDLES_MAX_LIMIT = 1000
DEFAULT_CANDLES_LIMIT = 200
DEFAULT_GRANULARITY = "1day"


@dataclass(frozen=True)
class Endpoint:
    name: str
    path: str
    normalize: Callable[[Any], Any]
    params: dict[str, str] = field(default_factory=dict)
    symbol_suffix: str = ""


@dataclass(frozen=True)
class MarketConfig:
    market: Market
    label: str
    symbols: tuple[Endpoint, ...]
    tickers: tuple[Endpoint, ...]
    ticker: Endpoint
    candles: Endpoint
    orderbook: tuple[Endpoint, ...]
    orderbook_max_limit: int
    default_orderbook_limit: int
    orderbook_timeout: float
    mock_symbols: Callable[[], Any] | None = None
    mock_tickers: Callable[[], Any] | None = None
    mock_orderbook: Callable[[], Any] | None = None


_V2_FUTURES = {"productType": "USDT-FUTURES"}
_V1_FUTURES = {"productType": "umcbl"}

MARKETS: dict[Market, MarketConfig] = {
    Market.SPOT: MarketConfig(
        market=Market.SPOT,
        label="",
        symbols=(
            Endpoint("spot-symbols-v2", "/api/v2/spot/public/symbols", normalizers.spot_symbols),
            Endpoint("spot-symbols-v1", "/api/spot/v1/public/products", normalizers.spot_symbols),
        ),
        tickers=(
            Endpoint("spot-tickers-v2", "/api/v2/spot/market/tickers", normalizers.spot_tickers),
            Endpoint("spot-tickers-v1", "/api/spot/v1/market/tickers", normalizers.spot_tickers),
        ),
        ticker=Endpoint("spot-ticker-v2", "/api/v2/spot/market/tickers", normalizers.spot_tickers),
        candles=Endpoint("spot-candles-v2", "/api/v2/spot/market/candles", normalizers.candles),
        orderbook=(
            Endpoint("spot-orderbook-v2", "/api/v2/spot/market/orderbook", normalizers.orderbook, {"type": "step0"}),
            Endpoint(
                "spot-depth-v1",
                "/api/spot/v1/market/depth",
                normalizers.orderbook,
                {"type": "step0"},
                symbol_suffix="_SPBL",
            ),
        ),
        orderbook_max_limit=500,
        default_orderbook_limit=100,
        orderbook_timeout=settings.orderbook_timeout_seconds,
        mock_symbols=mock_data.spot_symbols,
        mock_tickers=mock_data.spot_tickers,
        mock_orderbook=mock_data.spot_orderbook,
    ),
    Market.FUTURES: MarketConfig(
        market=Market.FUTURES,
        label="futures ",
        symbols=(
            Endpoint("futures-contracts-v2", "/api/v2/mix/market/contracts", normalizers.futures_symbols, _V2_FUTURES),
            Endpoint("futures-contracts-v1", "/api/mix/v1/market/contracts", normalizers.futures_symbols, _V1_FUTURES),
        ),
        tickers=(
            Endpoint("futures-tickers-v2", "/api/v2/mix/market/tickers", normalizers.futures_tickers, _V2_FUTURES),
            Endpoint("futures-tickers-v1", "/api/mix/v1/market/tickers", normalizers.futures_tickers, _V1_FUTURES),
        ),
        ticker=Endpoint("futures-ticker-v2", "/api/v2/mix/market/ticker", normalizers.futures_tickers, _V2_FUTURES),
        candles=Endpoint("futures-candles-v2", "/api/v2/mix/market/candles", normalizers.candles, _V2_FUTURES),
        orderbook=(
            Endpoint("futures-orderbook-v2", "/api/v2/mix/market/orderbook", normalizers.orderbook, _V2_FUTURES),
        ),
        orderbook_max_limit=100,
        default_orderbook_limit=20,
        orderbook_timeout=settings.request_timeout_seconds,
        mock_symbols=mock_data.futures_symbols,
        mock_tickers=mock_data.futures_tickers,
    ),
}


def normalize_timestamp(value: int | str) -> int:
    """Return a Unix timestamp in seconds; millisecond inputs are detected by magnitude."""
    number = int(value)
    if number > MAX_SECONDS_TIMESTAMP:
        return number // 1000
    return number


def clamp_limit(limit: int, maximum: int) -> int:
    return max(1, min(int(limit), maximum))


def require_symbol(symbol: str | None) -> str:
    if symbol is None or not symbol.strip():
        raise MissingParameterError("Symbol")
    return symbol.strip()


class BitgetClient:
    """Proxy over the public Bitget REST API, one operation per resource and market."""

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        base_url: str | None = None,
        backoff_seconds: float | None = None,
    ) -> None:
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=settings.request_timeout_seconds)
        self._base_url = (base_url or settings.bitget_rest_base_url).rstrip("/")
        self._fetcher = UpstreamFetcher(self._http, backoff_seconds=backoff_seconds)

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    def _sources(
        self,
        endpoints: tuple[Endpoint, ...],
        attempts: int = 1,
        timeout: float | None = None,
        symbol: str | None = None,
        **params: Any,
    ) -> list[DataSource]:
        sources = []
        for endpoint in endpoints:
            query = {**endpoint.params, **{k: str(v) for k, v in params.items() if v is not None}}
            if symbol is not None:
                query["symbol"] = f"{symbol}{endpoint.symbol_suffix}"
            sources.append(
                DataSource(
                    name=endpoint.name,
                    url=f"{self._base_url}{endpoint.path}",
                    params=query,
                    normalize=endpoint.normalize,
                    attempts=attempts,
                    timeout=timeout or settings.request_timeout_seconds,
                )
            )
        return sources

    async def list_symbols(self, market: Market) -> FetchResult:
        config = MARKETS[market]
        return await self._fetcher.fetch_first(
            self._sources(config.symbols, attempts=settings.retry_attempts),
            fallback=config.mock_symbols,
            resource=f"{config.label}symbols",
        )

    async def list_tickers(self, market: Market) -> FetchResult:
        config = MARKETS[market]
        return await self._fetcher.fetch_first(
            self._sources(config.tickers, attempts=settings.retry_attempts),
            fallback=config.mock_tickers,
            resource=f"{config.label}tickers",
        )

    async def get_ticker(self, market: Market, symbol: str | None) -> FetchResult:
        config = MARKETS[market]
        clean_symbol = require_symbol(symbol)
        result = await self._fetcher.fetch_first(
            self._sources((config.ticker,), timeout=settings.orderbook_timeout_seconds, symbol=clean_symbol),
            resource=f"{config.label}ticker data",
        )
        matches = [ticker for ticker in result.data if ticker["symbol"] == clean_symbol]
        if not matches:
            raise SymbolNotFoundError(clean_symbol)
        return FetchResult(data=matches[:1], source=result.source, is_mock=result.is_mock)

    async def get_candles(
        self,
        market: Market,
        symbol: str | None,
        granularity: str | None = None,
        start_time: int | str | None = None,
        end_time: int | str | None = None,
        limit: int = DEFAULT_CANDLES_LIMIT,
    ) -> FetchResult:
        config = MARKETS[market]
        clean_symbol = require_symbol(symbol)
        params: dict[str, Any] = {
            "granularity": map_granularity(granularity or DEFAULT_GRANULARITY, market),
            "limit": clamp_limit(limit, CANDLES_MAX_LIMIT),
        }
        if start_time is not None:
            params["startTime"] = normalize_timestamp(start_time)
        if end_time is not None:
            params["endTime"] = normalize_timestamp(end_time)
        return await self._fetcher.fetch_first(
            self._sources((config.candles,), symbol=clean_symbol, **params),
            resource=f"{config.label}historical data",
        )

    async def get_orderbook(self, market: Market, symbol: str | None, limit: int | None = None) -> FetchResult:
        config = MARKETS[market]
        clean_symbol = require_symbol(symbol)
        depth = clamp_limit(limit or config.default_orderbook_limit, config.orderbook_max_limit)
        return await self._fetcher.fetch_first(
            self._sources(config.orderbook, timeout=config.orderbook_timeout, symbol=clean_symbol, limit=depth),
            fallback=config.mock_orderbook,
            resource=f"{config.label}orderbook data",
        )
