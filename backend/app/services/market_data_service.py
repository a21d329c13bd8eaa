"""Client side of the local proxy.

Calls the ``/api/bitget`` endpoints, turns string-encoded candle rows into
``Candle`` records, derives the window summary handed to an LLM prompt and
renders CSV/JSON exports.
"""
import json
import logging
import math
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

import httpx

from app.errors import MarketDataFetchError, NoDataAvailableError
from app.schemas.market import AIDataset, Candle, Summary
from app.services.bitget_client import CANDLES_MAX_LIMIT, DEFAULT_CANDLES_LIMIT, MARKETS
from app.services.granularity import Market

logger = logging.getLogger(__name__)

API_BASE_PATH = "/api/bitget"
MS_PER_DAY = 24 * 60 * 60 * 1000
RECENT_FALLBACK_LIMIT = 200
CSV_HEADER = ("Date", "Open", "High", "Low", "Close", "Volume", "Quote Volume")

# Expected candles per day for each UI granularity.
POINTS_PER_DAY = {
    "1min": 24 * 60,
    "5min": 24 * 12,
    "15min": 24 * 4,
    "1h": 24,
    "4h": 6,
    "1day": 1,
}
# Coarser than a day: one point per this many days.
DAYS_PER_POINT = {
    "1week": 7,
    "1month": 30,
}


def estimate_limit(window_days: int, granularity: str) -> int:
    """Number of candles to request for a window, clamped to the upstream maximum."""
    if granularity in DAYS_PER_POINT:
        points = math.ceil(window_days / DAYS_PER_POINT[granularity])
    else:
        points = window_days * POINTS_PER_DAY.get(granularity, 1)
    return max(1, min(points, CANDLES_MAX_LIMIT))


def parse_candle(row: list[Any]) -> Candle:
    return Candle(
        timestamp=int(row[0]),
        open=float(row[1]),
        high=float(row[2]),
        low=float(row[3]),
        close=float(row[4]),
        volume=float(row[5]),
        quote_volume=float(row[6]),
    )


def utc_date(timestamp_ms: int) -> str:
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc).strftime("%Y-%m-%d")


def summarize(candles: list[Candle], window_days: int) -> Summary:
    """Window statistics over an ascending, non-empty candle series.

    ``totalDays`` is the requested window length; the number of candles
    actually returned is ``dataPoints``.
    """
    if not candles:
        raise ValueError("cannot summarize an empty candle series")
    first, last = candles[0], candles[-1]
    price_change = last.close - first.open
    return Summary(
        total_days=window_days,
        data_points=len(candles),
        start_date=utc_date(first.timestamp),
        end_date=utc_date(last.timestamp),
        start_price=first.open,
        end_price=last.close,
        highest_price=max(c.high for c in candles),
        lowest_price=min(c.low for c in candles),
        total_volume=sum(c.volume for c in candles),
        price_change=price_change,
        price_change_percent=(price_change / first.open * 100) if first.open else 0.0,
    )


def decimal_text(value: float) -> str:
    """Shortest round-trip text of a float, never in exponent notation (1.234e-05 becomes 0.00001234)."""
    return format(Decimal(repr(value)), "f")


def export_to_csv(candles: list[Candle]) -> str:
    rows = [",".join(CSV_HEADER)]
    for c in candles:
        rows.append(
            ",".join(
                [utc_date(c.timestamp)]
                + [decimal_text(value) for value in (c.open, c.high, c.low, c.close, c.volume, c.quote_volume)]
            )
        )
    return "\n".join(rows)


def export_to_json(candles: list[Candle], symbol: str, summary: Summary | None = None) -> str:
    payload = {
        "symbol": symbol,
        "exportDate": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "summary": summary.model_dump(by_alias=True) if summary else None,
        "data": [{"date": utc_date(c.timestamp), **c.model_dump(by_alias=True)} for c in candles],
    }
    return json.dumps(payload, indent=2)


class MarketDataService:
    """Reads one market (spot or futures) through the local proxy.

    The ``httpx.AsyncClient`` is injected so one client per process can be
    shared; its ``base_url`` points at the proxy.
    """

    def __init__(self, http_client: httpx.AsyncClient, market: Market = Market.SPOT, base_path: str = API_BASE_PATH) -> None:
        self._http = http_client
        self.market = market
        self._base_path = base_path.rstrip("/") + ("/futures" if market == Market.FUTURES else "")
        self._symbols: list[dict[str, Any]] = []

    async def _get(self, resource: str, params: dict[str, Any] | None = None) -> Any:
        clean_params = {k: v for k, v in (params or {}).items() if v is not None}
        url = f"{self._base_path}/{resource}"
        response = await self._http.get(url, params=clean_params)
        response.raise_for_status()
        try:
            payload = response.json()
        except ValueError as exc:
            raise MarketDataFetchError(f"Invalid JSON from {url}") from exc
        if not isinstance(payload, dict):
            raise MarketDataFetchError(f"Unexpected response from {url}", details=type(payload).__name__)
        return payload.get("data")

    async def get_symbols(self) -> list[dict[str, Any]]:
        try:
            symbols = await self._get("symbols") or []
        except httpx.HTTPError as exc:
            logger.warning("Error fetching %s symbols: %s", self.market.value, exc)
            raise MarketDataFetchError("Failed to fetch symbols") from exc
        self._symbols = symbols
        return symbols

    def cached_symbols(self) -> list[dict[str, Any]]:
        return self._symbols

    async def get_all_tickers(self) -> list[dict[str, Any]]:
        try:
            return await self._get("tickers") or []
        except httpx.HTTPError as exc:
            logger.warning("Error fetching %s tickers: %s", self.market.value, exc)
            raise MarketDataFetchError("Failed to fetch ticker data") from exc

    async def get_recent_price(self, symbol: str) -> float:
        try:
            tickers = await self._get("ticker", {"symbol": symbol})
            return float(tickers[0]["lastPr"])
        except (httpx.HTTPError, IndexError, KeyError, TypeError, ValueError) as exc:
            logger.warning("Error fetching recent price for %s: %s", symbol, exc)
            raise MarketDataFetchError(f"Failed to fetch recent price for {symbol}") from exc

    async def get_orderbook(self, symbol: str, limit: int = 100) -> dict[str, Any]:
        depth = min(limit, MARKETS[self.market].orderbook_max_limit)
        try:
            return await self._get("orderbook", {"symbol": symbol, "limit": depth})
        except httpx.HTTPError as exc:
            logger.warning("Error fetching orderbook for %s: %s", symbol, exc)
            raise MarketDataFetchError(f"Failed to fetch orderbook for {symbol}") from exc

    async def get_historical_data(
        self,
        symbol: str,
        granularity: str = "1day",
        start_time: int | None = None,
        end_time: int | None = None,
        limit: int = DEFAULT_CANDLES_LIMIT,
    ) -> list[Candle]:
        params = {
            "symbol": symbol,
            "granularity": granularity,
            "limit": min(limit, CANDLES_MAX_LIMIT),
            "startTime": start_time,
            "endTime": end_time,
        }
        try:
            rows = await self._get("candles", params) or []
        except httpx.HTTPError as exc:
            logger.warning("Error fetching historical data for %s: %s", symbol, exc)
            raise MarketDataFetchError(f"Failed to fetch historical data for {symbol}") from exc
        candles = [parse_candle(row) for row in rows]
        candles.sort(key=lambda c: c.timestamp)
        return candles

    async def get_data_for_ai(self, symbol: str, window_days: int = 30, granularity: str = "1day") -> AIDataset:
        end_ms = int(datetime.now(timezone.utc).timestamp() * 1000)
        start_ms = end_ms - window_days * MS_PER_DAY
        limit = estimate_limit(window_days, granularity)

        data = await self.get_historical_data(symbol, granularity, start_ms, end_ms, limit)
        if not data:
            # Some symbols reject deep historical windows; ask for the most recent points instead.
            logger.warning("No data found for %s in specified time range, trying recent data...", symbol)
            data = await self.get_historical_data(symbol, granularity, limit=min(limit, RECENT_FALLBACK_LIMIT))
        if not data:
            raise NoDataAvailableError(f"No data available for {symbol}")

        return AIDataset(symbol=symbol, data=data, summary=summarize(data, window_days))
