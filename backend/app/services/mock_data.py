"""Hard-coded payloads served when every live source is down.

Responses built from these are tagged ``X-Data-Source: mock`` by the router.
"""
import time
from typing import Any

MOCK_MESSAGE = "success (mock data)"

_SPOT_PAIRS = (
    ("BTCUSDT", "BTC", "0.0001"),
    ("ETHUSDT", "ETH", "0.001"),
    ("BNBUSDT", "BNB", "0.01"),
    ("SOLUSDT", "SOL", "0.01"),
    ("XRPUSDT", "XRP", "1"),
    ("ADAUSDT", "ADA", "1"),
    ("DOGEUSDT", "DOGE", "10"),
    ("DOTUSDT", "DOT", "0.1"),
    ("LTCUSDT", "LTC", "0.01"),
    ("LINKUSDT", "LINK", "0.1"),
)

_FUTURES_CONTRACTS = (
    ("BTCUSDT", "BTC", "0.001", "0.1", "3", "1"),
    ("ETHUSDT", "ETH", "0.01", "0.01", "2", "2"),
    ("ADAUSDT", "ADA", "1", "0.0001", "0", "4"),
    ("SOLUSDT", "SOL", "0.1", "0.001", "1", "3"),
    ("MATICUSDT", "MATIC", "1", "0.0001", "0", "4"),
)


def _now_ms() -> str:
    return str(int(time.time() * 1000))


def spot_symbols() -> list[dict[str, Any]]:
    return [
        {
            "symbol": symbol,
            "baseCoin": base,
            "quoteCoin": "USDT",
            "minTradeAmount": min_amount,
            "maxTradeAmount": "10000000",
            "takerFeeRate": "0.001",
            "makerFeeRate": "0.001",
            "status": "online",
        }
        for symbol, base, min_amount in _SPOT_PAIRS
    ]


def futures_symbols() -> list[dict[str, Any]]:
    return [
        {
            "symbol": symbol,
            "baseCoin": base,
            "quoteCoin": "USDT",
            "status": "normal",
            "contractType": "perpetual",
            "minTradeNum": min_num,
            "priceEndStep": step,
            "volumePlace": volume_place,
            "pricePlace": price_place,
        }
        for symbol, base, min_num, step, volume_place, price_place in _FUTURES_CONTRACTS
    ]


def _ticker(symbol: str, last: str, high: str, low: str, open_: str, change: str, base_vol: str, quote_vol: str,
            bid: str, ask: str, bid_sz: str, ask_sz: str) -> dict[str, Any]:
    return {
        "symbol": symbol,
        "lastPr": last,
        "open": open_,
        "high24h": high,
        "low24h": low,
        "change24h": change,
        "changeUtc24h": change,
        "baseVolume": base_vol,
        "quoteVolume": quote_vol,
        "usdtVolume": quote_vol,
        "bidPr": bid,
        "askPr": ask,
        "bidSz": bid_sz,
        "askSz": ask_sz,
        "openUtc": open_,
        "ts": _now_ms(),
    }


def spot_tickers() -> list[dict[str, Any]]:
    return [
        _ticker("BTCUSDT", "45000.00", "46000.00", "44000.00", "44000.00", "0.0227",
                "1234.567", "55555555.00", "44999.50", "45000.50", "0.123", "0.456"),
        _ticker("ETHUSDT", "3200.00", "3300.00", "3100.00", "3100.00", "0.0323",
                "2345.678", "7500000.00", "3199.50", "3200.50", "1.234", "2.345"),
        _ticker("SOLUSDT", "100.00", "104.00", "96.00", "98.00", "0.0204",
                "54321.0", "5432100.00", "99.99", "100.01", "12.5", "8.75"),
    ]


def futures_tickers() -> list[dict[str, Any]]:
    tickers = spot_tickers()[:2]
    for ticker, index_price in zip(tickers, ("45010.00", "3201.00")):
        ticker.update({"indexPrice": index_price, "markPrice": ticker["lastPr"], "fundingRate": "0.0001", "holdingAmount": "0"})
    return tickers


def spot_orderbook() -> dict[str, Any]:
    return {
        "asks": [("50000.00", "0.1"), ("50100.00", "0.2"), ("50200.00", "0.15")],
        "bids": [("49900.00", "0.1"), ("49800.00", "0.2"), ("49700.00", "0.15")],
        "ts": _now_ms(),
    }
