"""Ordered-source fetching against the Bitget REST API.

A request is described as a list of ``DataSource`` candidates, tried in
preference order. A source may allow a bounded number of attempts with a
linearly growing pause between them. When every live source has failed the
caller may hand in a static fallback, which is returned flagged as mock so
it can never be mistaken for live data further down.
"""
import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import httpx

from app.config import settings
from app.errors import UpstreamUnavailableError

logger = logging.getLogger(__name__)

RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504})


class UpstreamError(Exception):
    """One source failed. Carries enough context to decide on a retry."""

    def __init__(self, message: str, url: str = "", status_code: int | None = None, retryable: bool = False) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.retryable = retryable


def _identity(payload: Any) -> Any:
    return payload


@dataclass(frozen=True)
class DataSource:
    name: str
    url: str
    params: dict[str, str] = field(default_factory=dict)
    normalize: Callable[[Any], Any] = _identity
    attempts: int = 1
    timeout: float = 15.0


@dataclass(frozen=True)
class FetchResult:
    data: Any
    source: str
    is_mock: bool = False


class UpstreamFetcher:
    def __init__(
        self,
        http_client: httpx.AsyncClient,
        backoff_seconds: float | None = None,
    ) -> None:
        self._http = http_client
        self._backoff_seconds = settings.retry_backoff_seconds if backoff_seconds is None else backoff_seconds
        self._headers = {"User-Agent": settings.user_agent, "Accept": "application/json"}

    async def get_json(self, source: DataSource) -> Any:
        try:
            response = await self._http.get(
                source.url, params=source.params, headers=self._headers, timeout=source.timeout
            )
        except httpx.TimeoutException as exc:
            raise UpstreamError(f"timed out after {source.timeout}s", url=source.url, retryable=True) from exc
        except httpx.TransportError as exc:
            raise UpstreamError(f"transport error: {exc}", url=source.url, retryable=True) from exc

        if response.status_code >= 400:
            raise UpstreamError(
                f"HTTP error! status: {response.status_code}, response: {response.text[:200]}",
                url=source.url,
                status_code=response.status_code,
                retryable=response.status_code in RETRYABLE_STATUS,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamError("response body is not JSON", url=source.url, status_code=response.status_code) from exc

    async def fetch_with_retry(self, source: DataSource) -> Any:
        attempts = max(source.attempts, 1)
        for attempt in range(1, attempts + 1):
            try:
                return await self.get_json(source)
            except UpstreamError as exc:
                logger.warning(
                    "Upstream %s attempt %d/%d failed (url=%s, status=%s): %s",
                    source.name,
                    attempt,
                    attempts,
                    source.url,
                    exc.status_code,
                    exc,
                )
                if not exc.retryable or attempt == attempts:
                    raise
                await asyncio.sleep(self._backoff_seconds * attempt)
        raise UpstreamError("All retry attempts failed", url=source.url)

    async def fetch_first(
        self,
        sources: list[DataSource],
        fallback: Callable[[], Any] | None = None,
        resource: str = "market data",
    ) -> FetchResult:
        """Return the first source that answers with a usable payload."""
        last_error: Exception | None = None
        for source in sources:
            try:
                payload = await self.fetch_with_retry(source)
                return FetchResult(data=source.normalize(payload), source=source.name)
            except UpstreamError as exc:
                last_error = exc
            except (AttributeError, KeyError, TypeError, ValueError, IndexError) as exc:
                logger.warning("Upstream %s returned an unexpected shape (url=%s): %s", source.name, source.url, exc)
                last_error = exc

        if fallback is not None:
            logger.warning("All upstream sources failed for %s, returning mock data", resource)
            return FetchResult(data=fallback(), source="mock", is_mock=True)

        raise UpstreamUnavailableError(
            f"Failed to fetch {resource}",
            details=str(last_error) if last_error else None,
        )
