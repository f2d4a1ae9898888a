"""Read-through response cache in front of the DefiLlama origin.

A fresh entry is served straight from the store. On a miss the origin is
called, and a successful response is written back in the background with a
``Cache-Control: max-age`` lifetime counted from when the origin answered.
The store decides staleness from that directive. Failures are never cached.
"""

import asyncio
import json
import logging
import re
import time
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Protocol

import httpx
from cachetools import TLRUCache

from .config import CACHE_MAX_ENTRIES

logger = logging.getLogger(__name__)

_MAX_AGE_RE = re.compile(r"max-age=(\d+)")
# Describe the raw upstream payload, not the decoded body we keep
_DROP_HEADERS = {"content-encoding", "content-length", "transfer-encoding", "cache-control"}


class UpstreamError(Exception):
    """The origin could not produce a usable response."""

    def __init__(self, url: str, status: int | None, reason: str):
        super().__init__(f"Failed to fetch {url}: {reason}")
        self.url = url
        self.status = status
        self.reason = reason


class UpstreamUnavailable(UpstreamError):
    """Network failure, non-2xx status or an undecodable body."""


@dataclass(frozen=True)
class CacheEntry:
    body: bytes
    status: int = 200
    headers: dict[str, str] = field(default_factory=dict)
    # when the origin answered; the store stamps entries that arrive without one
    stored_at: float | None = None

    def max_age(self) -> int | None:
        m = _MAX_AGE_RE.search(self.headers.get("cache-control", ""))
        return int(m.group(1)) if m else None

    def json(self) -> Any:
        return json.loads(self.body)


class CacheStore(Protocol):
    async def get(self, key: str) -> CacheEntry | None: ...

    async def put(self, key: str, entry: CacheEntry, ttl: int) -> None: ...


def _expires(key: str, value: tuple[int, CacheEntry], now: float) -> float:
    ttl, entry = value
    max_age = entry.max_age()
    return entry.stored_at + (ttl if max_age is None else max_age)


class MemoryCacheStore:
    """Process-local store bounded to ``maxsize`` entries.

    An entry is fresh until ``stored_at + max-age``. Expired entries are
    swept on every write and the least recently used one makes room when
    the store is full.
    """

    def __init__(self, maxsize: int = CACHE_MAX_ENTRIES, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._entries = TLRUCache(maxsize=maxsize, ttu=_expires, timer=clock)

    async def get(self, key: str) -> CacheEntry | None:
        hit = self._entries.get(key)
        return hit[1] if hit is not None else None

    async def put(self, key: str, entry: CacheEntry, ttl: int) -> None:
        if entry.stored_at is None:
            entry = replace(entry, stored_at=self._clock())
        self._entries[key] = (ttl, entry)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class Fetcher:
    """GET-only JSON fetcher backed by a ``CacheStore``."""

    def __init__(self, client: httpx.AsyncClient, store: CacheStore, clock: Callable[[], float] = time.time):
        self.client = client
        self.store = store
        self._clock = clock
        self._pending: set[asyncio.Task] = set()

    async def fetch_with_cache(self, url: str, ttl_seconds: int = 300) -> Any:
        """Return the parsed JSON document at ``url``.

        Raises UpstreamUnavailable when the origin fails; nothing is cached
        in that case.
        """
        cached = await self.store.get(url)
        if cached is not None:
            logger.debug("Cache hit: %s", url)
            return cached.json()

        logger.debug("Cache miss: %s", url)
        try:
            resp = await self.client.get(url)
        except httpx.HTTPError as e:
            raise UpstreamUnavailable(url, None, str(e) or type(e).__name__) from e

        if not resp.is_success:
            raise UpstreamUnavailable(url, resp.status_code, resp.reason_phrase or str(resp.status_code))

        try:
            data = resp.json()
        except ValueError as e:
            raise UpstreamUnavailable(url, resp.status_code, "invalid JSON body") from e

        headers = {k: v for k, v in resp.headers.items() if k not in _DROP_HEADERS}
        headers["cache-control"] = f"public, max-age={ttl_seconds}"
        entry = CacheEntry(resp.content, resp.status_code, headers, stored_at=self._clock())
        self._write_back(url, entry, ttl_seconds)
        return data

    def _write_back(self, key: str, entry: CacheEntry, ttl: int):
        task = asyncio.create_task(self.store.put(key, entry, ttl))
        self._pending.add(task)
        task.add_done_callback(self._write_done)

    def _write_done(self, task: asyncio.Task):
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.debug("Cache write failed: %r", exc)

    async def drain(self):
        """Wait for in-flight cache writes."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
