import asyncio

import httpx
import pytest

from app.errors import MissingParameterError, SymbolNotFoundError, UpstreamUnavailableError
from app.services.bitget_client import BitgetClient, clamp_limit, normalize_timestamp, require_symbol
from app.services.granularity import Market


def envelope(data) -> dict:
    return {"code": "00000", "msg": "success", "data": data}


CANDLE_ROW = ["1704067200000", "42000", "42500", "41800", "42300", "10.5", "441000"]


def test_normalize_timestamp_detects_milliseconds():
    assert normalize_timestamp(1700000000000) == 1700000000
    assert normalize_timestamp("1700000000123") == 1700000000
    assert normalize_timestamp(1700000000) == 1700000000
    assert normalize_timestamp(9_999_999_999) == 9_999_999_999
    assert normalize_timestamp(10_000_000_000) == 10_000_000


def test_clamp_limit():
    assert clamp_limit(5000, 500) == 500
    assert clamp_limit(20, 100) == 20
    assert clamp_limit(0, 100) == 1


def test_require_symbol():
    assert require_symbol(" BTCUSDT ") == "BTCUSDT"
    with pytest.raises(MissingParameterError):
        require_symbol(None)
    with pytest.raises(MissingParameterError):
        require_symbol("   ")


def test_spot_symbols_retry_primary_then_use_secondary(fake_bitget, bitget_client):
    fake_bitget.add("/api/v2/spot/public/symbols", 500)
    fake_bitget.add(
        "/api/spot/v1/public/products",
        envelope([{"symbol": "BTCUSDT_SPBL", "symbolName": "BTCUSDT", "baseCoin": "BTC", "quoteCoin": "USDT", "status": "online"}]),
    )

    result = asyncio.run(bitget_client.list_symbols(Market.SPOT))

    assert len(fake_bitget.calls("/api/v2/spot/public/symbols")) == 3
    assert result.source == "spot-symbols-v1"
    assert result.is_mock is False
    assert result.data[0]["symbol"] == "BTCUSDT"


def test_application_error_code_fails_over_without_retry(fake_bitget, bitget_client):
    fake_bitget.add("/api/v2/mix/market/contracts", {"code": "40034", "msg": "Parameter does not exist", "data": None})
    fake_bitget.add(
        "/api/mix/v1/market/contracts",
        envelope([{"symbol": "BTCUSDT_UMCBL", "baseCoin": "BTC", "quoteCoin": "USDT", "symbolStatus": "normal"}]),
    )

    result = asyncio.run(bitget_client.list_symbols(Market.FUTURES))

    assert len(fake_bitget.calls("/api/v2/mix/market/contracts")) == 1
    [v1_call] = fake_bitget.calls("/api/mix/v1/market/contracts")
    assert v1_call.url.params["productType"] == "umcbl"
    assert result.data[0]["symbol"] == "BTCUSDT"


def test_symbols_fall_back_to_mock(fake_bitget, bitget_client):
    spot = asyncio.run(bitget_client.list_symbols(Market.SPOT))
    futures = asyncio.run(bitget_client.list_symbols(Market.FUTURES))

    assert spot.is_mock and len(spot.data) == 10
    assert futures.is_mock and len(futures.data) == 5


def test_tickers_fall_back_to_mock(fake_bitget, bitget_client):
    spot = asyncio.run(bitget_client.list_tickers(Market.SPOT))
    futures = asyncio.run(bitget_client.list_tickers(Market.FUTURES))

    assert [t["symbol"] for t in spot.data] == ["BTCUSDT", "ETHUSDT", "SOLUSDT"]
    assert len(futures.data) == 2
    assert "fundingRate" in futures.data[0]


def test_ticker_filters_exact_symbol(fake_bitget, bitget_client):
    fake_bitget.add(
        "/api/v2/spot/market/tickers",
        envelope([{"symbol": "BTCUSDTX", "lastPr": "1"}, {"symbol": "BTCUSDT", "lastPr": "45000.5"}]),
    )

    result = asyncio.run(bitget_client.get_ticker(Market.SPOT, "BTCUSDT"))

    assert len(result.data) == 1
    assert result.data[0]["lastPr"] == "45000.5"
    [call] = fake_bitget.calls("/api/v2/spot/market/tickers")
    assert call.url.params["symbol"] == "BTCUSDT"


def test_ticker_unknown_symbol(fake_bitget, bitget_client):
    fake_bitget.add("/api/v2/mix/market/ticker", envelope([]))

    with pytest.raises(SymbolNotFoundError) as excinfo:
        asyncio.run(bitget_client.get_ticker(Market.FUTURES, "NOPEUSDT"))

    assert excinfo.value.message == "Symbol NOPEUSDT not found"


def test_futures_candles_request(fake_bitget, bitget_client):
    fake_bitget.add("/api/v2/mix/market/candles", envelope([CANDLE_ROW]))

    result = asyncio.run(
        bitget_client.get_candles(
            Market.FUTURES, "BTCUSDT", granularity="4h", start_time=1700000000000, end_time=1700086400000, limit=5000
        )
    )

    [call] = fake_bitget.calls("/api/v2/mix/market/candles")
    assert dict(call.url.params) == {
        "productType": "USDT-FUTURES",
        "granularity": "4H",
        "limit": "1000",
        "startTime": "1700000000",
        "endTime": "1700086400",
        "symbol": "BTCUSDT",
    }
    assert result.data == [CANDLE_ROW]


def test_spot_candles_pass_unknown_granularity_and_omit_window(fake_bitget, bitget_client):
    fake_bitget.add("/api/v2/spot/market/candles", envelope([]))

    asyncio.run(bitget_client.get_candles(Market.SPOT, "BTCUSDT", granularity="3min"))

    [call] = fake_bitget.calls("/api/v2/spot/market/candles")
    assert call.url.params["granularity"] == "3min"
    assert call.url.params["limit"] == "200"
    assert "startTime" not in call.url.params
    assert "endTime" not in call.url.params


def test_candles_failure_has_no_mock(fake_bitget, bitget_client):
    fake_bitget.add("/api/v2/mix/market/candles", 500)

    with pytest.raises(UpstreamUnavailableError) as excinfo:
        asyncio.run(bitget_client.get_candles(Market.FUTURES, "BTCUSDT"))

    assert excinfo.value.message == "Failed to fetch futures historical data"
    assert len(fake_bitget.calls("/api/v2/mix/market/candles")) == 1


def test_spot_orderbook_secondary_uses_suffixed_symbol(fake_bitget, bitget_client):
    fake_bitget.add("/api/v2/spot/market/orderbook", 502)
    fake_bitget.add(
        "/api/spot/v1/market/depth",
        envelope({"asks": [["101", "1"], ["100", "2"]], "bids": [["99", "1"]], "timestamp": "1700000000000"}),
    )

    result = asyncio.run(bitget_client.get_orderbook(Market.SPOT, "BTCUSDT", 5000))

    [v2_call] = fake_bitget.calls("/api/v2/spot/market/orderbook")
    [v1_call] = fake_bitget.calls("/api/spot/v1/market/depth")
    assert v2_call.url.params["limit"] == "500"
    assert v2_call.url.params["type"] == "step0"
    assert v1_call.url.params["symbol"] == "BTCUSDT_SPBL"
    assert result.data["asks"][0] == ("100", "2")


def test_futures_orderbook_defaults_and_has_no_mock(fake_bitget, bitget_client):
    fake_bitget.add("/api/v2/mix/market/orderbook", 503)

    with pytest.raises(UpstreamUnavailableError) as excinfo:
        asyncio.run(bitget_client.get_orderbook(Market.FUTURES, "BTCUSDT"))

    [call] = fake_bitget.calls("/api/v2/mix/market/orderbook")
    assert call.url.params["limit"] == "20"
    assert call.url.params["productType"] == "USDT-FUTURES"
    assert excinfo.value.message == "Failed to fetch futures orderbook data"


def test_owned_http_client_is_closed():
    client = BitgetClient()
    asyncio.run(client.aclose())
    assert client._http.is_closed

    shared = httpx.AsyncClient()
    asyncio.run(BitgetClient(http_client=shared).aclose())
    assert not shared.is_closed


def test_futures_ticker_failure_message(fake_bitget, bitget_client):
    fake_bitget.add("/api/v2/mix/market/ticker", 500)

    with pytest.raises(UpstreamUnavailableError) as excinfo:
        asyncio.run(bitget_client.get_ticker(Market.FUTURES, "BTCUSDT"))

    assert excinfo.value.message == "Failed to fetch futures ticker data"
