import asyncio
import logging

from app.config import settings
from app.errors import MarketDataFetchError
from app.services.market_data_service import MarketDataService

logger = logging.getLogger(__name__)

DEFAULT_ORDERBOOK_DEPTH = 20


class OrderbookPoller:
    """Periodic order book refresh for the selected symbol.

    Every tick launches its own fetch, so a slow response may overlap the next
    tick. Whichever response lands last replaces ``snapshot``; on failure the
    previous snapshot stays and ``error`` carries a symbol-specific message.
    ``stop()`` cancels the timer and every fetch still in flight.
    """

    def __init__(
        self,
        service: MarketDataService,
        symbol: str,
        limit: int = DEFAULT_ORDERBOOK_DEPTH,
        interval_seconds: float | None = None,
    ) -> None:
        self._service = service
        self.symbol = symbol
        self.limit = limit
        self.interval_seconds = settings.orderbook_poll_interval_seconds if interval_seconds is None else interval_seconds
        self.snapshot: dict | None = None
        self.error: str = ""
        self._task: asyncio.Task[None] | None = None
        self._in_flight: set[asyncio.Task[None]] = set()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if not self.running:
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        tasks = list(self._in_flight)
        if self._task is not None:
            tasks.append(self._task)
            self._task = None
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._in_flight.clear()

    async def refresh(self) -> None:
        """Fetch once now, outside the timer."""
        await self._fetch(self.symbol)

    async def set_symbol(self, symbol: str) -> None:
        self.symbol = symbol
        await self.refresh()

    async def __aenter__(self) -> "OrderbookPoller":
        self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            task = asyncio.create_task(self._fetch(self.symbol))
            self._in_flight.add(task)
            task.add_done_callback(self._in_flight.discard)

    async def _fetch(self, symbol: str) -> None:
        try:
            self.snapshot = await self._service.get_orderbook(symbol, self.limit)
            self.error = ""
        except MarketDataFetchError as exc:
            logger.warning("Failed to load orderbook for %s: %s", symbol, exc)
            self.error = f"Failed to load orderbook for {symbol}"
