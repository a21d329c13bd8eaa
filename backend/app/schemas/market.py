from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _Model(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SymbolInfo(_Model):
    symbol: str
    base_coin: str = Field(alias="baseCoin")
    quote_coin: str = Field(alias="quoteCoin")
    min_trade_amount: str | None = Field(default=None, alias="minTradeAmount")
    max_trade_amount: str | None = Field(default=None, alias="maxTradeAmount")
    taker_fee_rate: str | None = Field(default=None, alias="takerFeeRate")
    maker_fee_rate: str | None = Field(default=None, alias="makerFeeRate")
    status: str


class FuturesSymbolInfo(_Model):
    symbol: str
    base_coin: str = Field(alias="baseCoin")
    quote_coin: str = Field(alias="quoteCoin")
    status: str
    contract_type: str | None = Field(default=None, alias="contractType")
    min_trade_num: str | None = Field(default=None, alias="minTradeNum")
    price_end_step: str | None = Field(default=None, alias="priceEndStep")
    volume_place: str | None = Field(default=None, alias="volumePlace")
    price_place: str | None = Field(default=None, alias="pricePlace")


class TickerData(_Model):
    """24h snapshot for one spot pair. Values are kept as the strings Bitget sends."""

    symbol: str
    last_pr: str | None = Field(default=None, alias="lastPr")
    open: str | None = None
    high_24h: str | None = Field(default=None, alias="high24h")
    low_24h: str | None = Field(default=None, alias="low24h")
    change_24h: str | None = Field(default=None, alias="change24h")
    change_utc_24h: str | None = Field(default=None, alias="changeUtc24h")
    base_volume: str | None = Field(default=None, alias="baseVolume")
    quote_volume: str | None = Field(default=None, alias="quoteVolume")
    usdt_volume: str | None = Field(default=None, alias="usdtVolume")
    bid_pr: str | None = Field(default=None, alias="bidPr")
    ask_pr: str | None = Field(default=None, alias="askPr")
    bid_sz: str | None = Field(default=None, alias="bidSz")
    ask_sz: str | None = Field(default=None, alias="askSz")
    open_utc: str | None = Field(default=None, alias="openUtc")
    ts: str | None = None


class FuturesTickerData(TickerData):
    index_price: str | None = Field(default=None, alias="indexPrice")
    mark_price: str | None = Field(default=None, alias="markPrice")
    funding_rate: str | None = Field(default=None, alias="fundingRate")
    holding_amount: str | None = Field(default=None, alias="holdingAmount")


class OrderbookData(_Model):
    asks: list[tuple[str, str]]  # [price, size], ascending by price
    bids: list[tuple[str, str]]  # [price, size], descending by price
    ts: str


class MarketDataEnvelope(_Model):
    """Normalized body of every successful proxy response."""

    code: str = "00000"
    msg: str = "success"
    data: Any


class ErrorResponse(_Model):
    error: str
    details: str | None = None


class Candle(_Model):
    timestamp: int  # Unix milliseconds
    open: float
    high: float
    low: float
    close: float
    volume: float
    quote_volume: float = Field(alias="quoteVolume")


class Summary(_Model):
    total_days: int = Field(alias="totalDays")
    data_points: int = Field(alias="dataPoints")
    start_date: str = Field(alias="startDate")
    end_date: str = Field(alias="endDate")
    start_price: float = Field(alias="startPrice")
    end_price: float = Field(alias="endPrice")
    highest_price: float = Field(alias="highestPrice")
    lowest_price: float = Field(alias="lowestPrice")
    total_volume: float = Field(alias="totalVolume")
    price_change: float = Field(alias="priceChange")
    price_change_percent: float = Field(alias="priceChangePercent")


class AIDataset(_Model):
    symbol: str
    data: list[Candle]
    summary: Summary
