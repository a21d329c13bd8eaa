from collections.abc import Callable

import httpx
import pytest

from app.services.bitget_client import BitgetClient

Handler = Callable[[httpx.Request], httpx.Response]


class FakeBitget:
    """Stands in for api.bitget.com: routes by URL path and records every request."""

    def __init__(self) -> None:
        self.routes: dict[str, Handler] = {}
        self.requests: list[httpx.Request] = []

    def add(self, path: str, handler: Handler | dict | list | int) -> None:
        if isinstance(handler, int):
            status = handler
            self.routes[path] = lambda request: httpx.Response(status, text="upstream failure")
        elif isinstance(handler, (dict, list)):
            body = handler
            self.routes[path] = lambda request: httpx.Response(200, json=body)
        else:
            self.routes[path] = handler

    def calls(self, path: str) -> list[httpx.Request]:
        return [request for request in self.requests if request.url.path == path]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get(request.url.path)
        if handler is None:
            return httpx.Response(503, text="no route")
        return handler(request)


@pytest.fixture
def fake_bitget() -> FakeBitget:
    return FakeBitget()


@pytest.fixture
def bitget_client(fake_bitget: FakeBitget) -> BitgetClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(fake_bitget))
    return BitgetClient(http_client=http_client, base_url="https://api.bitget.com", backoff_seconds=0)
