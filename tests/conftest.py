"""Pytest fixtures: a scripted origin, a controllable clock and an app client."""

import asyncio
from collections import Counter

import httpx
import pytest
from fastapi.testclient import TestClient

from llamaboard.api import get_fetcher
from llamaboard.cache import Fetcher, MemoryCacheStore
from llamaboard.main import app, upstream_client


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FakeOrigin:
    """Serves canned JSON per URL and counts how often each URL was requested."""

    def __init__(self):
        self.routes: dict[str, tuple[int, object]] = {}
        self.calls: Counter = Counter()

    def add(self, url: str, payload, status: int = 200):
        self.routes[url] = (status, payload)

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.calls[url] += 1
        if url not in self.routes:
            return httpx.Response(404, json={"message": "not found"})
        status, payload = self.routes[url]
        if isinstance(payload, (bytes, str)):
            return httpx.Response(status, content=payload)
        return httpx.Response(status, json=payload)

    @property
    def total_calls(self) -> int:
        return sum(self.calls.values())


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def origin():
    return FakeOrigin()


@pytest.fixture
def store(clock):
    return MemoryCacheStore(clock=clock)


@pytest.fixture
def fetcher(origin, store, clock):
    client = upstream_client(transport=httpx.MockTransport(origin.handler))
    yield Fetcher(client, store, clock=clock)
    asyncio.run(client.aclose())


@pytest.fixture
def client(fetcher):
    app.dependency_overrides[get_fetcher] = lambda: fetcher
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def settle(client, fetcher):
    """Wait, on the app's event loop, for background cache writes to land."""
    return lambda: client.portal.call(fetcher.drain)
