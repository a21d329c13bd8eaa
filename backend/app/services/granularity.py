from enum import Enum


class Market(str, Enum):
    SPOT = "spot"
    FUTURES = "futures"


# UI timeframe tokens offered by the dashboard.
GRANULARITIES = ("1min", "5min", "15min", "1h", "4h", "1day", "1week", "1month")

_SPOT_GRANULARITY = {
    "1min": "1min",
    "5min": "5min",
    "15min": "15min",
    "1h": "1h",
    "4h": "4h",
    "1day": "1day",
    "1week": "1week",
    "1month": "1M",
}

_FUTURES_GRANULARITY = {
    "1min": "1m",
    "5min": "5m",
    "15min": "15m",
    "1h": "1H",
    "4h": "4H",
    "1day": "1D",
    "1week": "1W",
    "1month": "1M",
}

FUTURES_DEFAULT_GRANULARITY = "1D"


def map_granularity(granularity: str, market: Market) -> str:
    """Translate a UI token into the token the market's candle endpoint expects.

    Spot passes unknown tokens through untouched while futures falls back to
    the daily token; the two upstream API families disagree and both
    behaviours are relied upon.
    """
    if market == Market.FUTURES:
        return _FUTURES_GRANULARITY.get(granularity, FUTURES_DEFAULT_GRANULARITY)
    return _SPOT_GRANULARITY.get(granularity, granularity)
