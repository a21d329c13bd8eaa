"""Map the v1 and v2 Bitget payload shapes onto one schema.

v2 answers ``{code, msg, data}``; some v1 endpoints answer the same envelope
while others hand back a bare list. Callers of the proxy never see the
difference: every normalizer returns plain dicts keyed by the wire aliases of
``app.schemas.market``.
"""
from typing import Any

from app.schemas.market import FuturesSymbolInfo, FuturesTickerData, OrderbookData, SymbolInfo, TickerData
from app.services.upstream import UpstreamError

SUCCESS_CODE = "00000"
CANDLE_COLUMNS = 7

V1_SUFFIXES = ("_SPBL", "_UMCBL", "_DMCBL", "_CMCBL")


def unwrap(payload: Any) -> Any:
    """Return the ``data`` member of an envelope, or the payload itself when it is bare."""
    if isinstance(payload, list):
        return payload
    if not isinstance(payload, dict):
        raise UpstreamError(f"unexpected payload type {type(payload).__name__}")
    code = payload.get("code")
    if code is not None and str(code) != SUCCESS_CODE:
        raise UpstreamError(f"API error: {payload.get('msg') or 'Unknown error'}")
    if "data" not in payload:
        raise UpstreamError("API response has no data member")
    return payload["data"]


def strip_suffix(symbol: str) -> str:
    for suffix in V1_SUFFIXES:
        if symbol.upper().endswith(suffix):
            return symbol[: -len(suffix)]
    return symbol


def _text(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _dump(model_cls, row: dict[str, Any]) -> dict[str, Any]:
    return model_cls.model_validate(row).model_dump(by_alias=True)


def _records(data: Any) -> list[dict[str, Any]]:
    """Check that an unwrapped list payload holds one object per record; ``null`` reads as no records."""
    if data is None:
        return []
    if not isinstance(data, list):
        raise UpstreamError(f"expected a list of records, got {type(data).__name__}")
    for item in data:
        if not isinstance(item, dict):
            raise UpstreamError(f"record is not an object: {item!r}")
    return data


def spot_symbols(payload: Any) -> list[dict[str, Any]]:
    symbols = []
    for item in _records(unwrap(payload)):
        symbols.append(
            _dump(
                SymbolInfo,
                {
                    # v1 products carry the plain pair in symbolName and a suffixed symbol.
                    "symbol": item.get("symbolName") or strip_suffix(item["symbol"]),
                    "baseCoin": item["baseCoin"],
                    "quoteCoin": item["quoteCoin"],
                    "minTradeAmount": _text(item.get("minTradeAmount")),
                    "maxTradeAmount": _text(item.get("maxTradeAmount")),
                    "takerFeeRate": _text(item.get("takerFeeRate")),
                    "makerFeeRate": _text(item.get("makerFeeRate")),
                    "status": str(item.get("status", "")),
                },
            )
        )
    return symbols


def futures_symbols(payload: Any) -> list[dict[str, Any]]:
    symbols = []
    for item in _records(unwrap(payload)):
        symbols.append(
            _dump(
                FuturesSymbolInfo,
                {
                    "symbol": strip_suffix(item["symbol"]),
                    "baseCoin": item["baseCoin"],
                    "quoteCoin": item["quoteCoin"],
                    "status": str(item.get("symbolStatus") or item.get("status") or ""),
                    "contractType": _text(item.get("symbolType")),
                    "minTradeNum": _text(item.get("minTradeNum")),
                    "priceEndStep": _text(item.get("priceEndStep")),
                    "volumePlace": _text(item.get("volumePlace")),
                    "pricePlace": _text(item.get("pricePlace")),
                },
            )
        )
    return symbols


def _ticker_row(item: dict[str, Any]) -> dict[str, Any]:
    # v2 names first, v1 names as fallback.
    return {
        "symbol": strip_suffix(item["symbol"]),
        "lastPr": _text(item.get("lastPr", item.get("close", item.get("last")))),
        "open": _text(item.get("open", item.get("open24h"))),
        "high24h": _text(item.get("high24h")),
        "low24h": _text(item.get("low24h")),
        "change24h": _text(item.get("change24h", item.get("change", item.get("priceChangePercent")))),
        "changeUtc24h": _text(item.get("changeUtc24h", item.get("changeUtc", item.get("chgUtc")))),
        "baseVolume": _text(item.get("baseVolume", item.get("baseVol"))),
        "quoteVolume": _text(item.get("quoteVolume", item.get("quoteVol"))),
        "usdtVolume": _text(item.get("usdtVolume", item.get("usdtVol"))),
        "bidPr": _text(item.get("bidPr", item.get("buyOne", item.get("bestBid")))),
        "askPr": _text(item.get("askPr", item.get("sellOne", item.get("bestAsk")))),
        "bidSz": _text(item.get("bidSz")),
        "askSz": _text(item.get("askSz")),
        "openUtc": _text(item.get("openUtc", item.get("openUtc0"))),
        "ts": _text(item.get("ts", item.get("timestamp"))),
    }


def spot_tickers(payload: Any) -> list[dict[str, Any]]:
    return [_dump(TickerData, _ticker_row(item)) for item in _records(unwrap(payload))]


def futures_tickers(payload: Any) -> list[dict[str, Any]]:
    tickers = []
    data = unwrap(payload)
    # The single-ticker endpoint may answer with one object instead of a list.
    if isinstance(data, dict):
        data = [data]
    for item in _records(data):
        row = _ticker_row(item)
        row.update(
            {
                "indexPrice": _text(item.get("indexPrice")),
                "markPrice": _text(item.get("markPrice")),
                "fundingRate": _text(item.get("fundingRate")),
                "holdingAmount": _text(item.get("holdingAmount")),
            }
        )
        tickers.append(_dump(FuturesTickerData, row))
    return tickers


def candles(payload: Any) -> list[list[str]]:
    """Cut every row to ``[ts, open, high, low, close, volume, quoteVolume]`` strings."""
    rows = []
    for row in unwrap(payload) or []:
        if len(row) < CANDLE_COLUMNS:
            raise ValueError(f"candle row has {len(row)} columns, expected {CANDLE_COLUMNS}")
        rows.append([str(value) for value in row[:CANDLE_COLUMNS]])
    return rows


def _levels(levels: Any) -> list[tuple[str, str]]:
    return [(str(level[0]), str(level[1])) for level in levels or []]


def orderbook(payload: Any) -> dict[str, Any]:
    data = unwrap(payload)
    if isinstance(data, list) and data:
        data = data[0]
    if not isinstance(data, dict):
        raise UpstreamError(f"order book payload is not an object: {data!r}")
    asks = sorted(_levels(data.get("asks")), key=lambda level: float(level[0]))
    bids = sorted(_levels(data.get("bids")), key=lambda level: float(level[0]), reverse=True)
    ts = data.get("ts", data.get("timestamp"))
    return _dump(OrderbookData, {"asks": asks, "bids": bids, "ts": str(ts) if ts is not None else ""})
