"""Error taxonomy shared by the proxy and the client data service."""


class MarketDataError(Exception):
    """Base error. ``status_code`` is the HTTP status the proxy answers with."""

    status_code = 500

    def __init__(self, message: str, details: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class MissingParameterError(MarketDataError):
    status_code = 400

    def __init__(self, name: str = "Symbol") -> None:
        super().__init__(f"{name} parameter is required")


class SymbolNotFoundError(MarketDataError):
    status_code = 404

    def __init__(self, symbol: str) -> None:
        super().__init__(f"Symbol {symbol} not found")
        self.symbol = symbol


class UpstreamUnavailableError(MarketDataError):
    """Every live source failed and no mock tier was available."""

    status_code = 500


class MarketDataFetchError(MarketDataError):
    """Client side: the local proxy call failed (network, 4xx or 5xx)."""


class NoDataAvailableError(MarketDataError):
    """Client side: well-formed request, zero data points even after the fallback query."""

    status_code = 404
