# tumblr_mirror/crawler/fetcher.py
"""
Fetcher module: rate-limited HTTP GET requests with a fixed User-Agent.
"""
from __future__ import annotations

import asyncio
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from aiohttp import ClientError, ClientResponse, ClientSession, ClientTimeout

from tumblr_mirror.config import MirrorConfig
from tumblr_mirror.crawler.models import FetchedPage
from tumblr_mirror.errors import FetchError
from tumblr_mirror.logger import logger

__all__ = ("RateLimiter", "Fetcher", "open_session")


class RateLimiter:
    """
    Admits at most *rate* acquisitions per second, evenly spaced.

    Spacing is measured from the previous admission, so there is no burst
    allowance at the start of a window. Concurrent acquirers queue on a lock.
    """

    def __init__(self, rate: float) -> None:
        if rate <= 0:
            raise ValueError("rate must be > 0")
        self.interval = 1.0 / rate
        self._lock = asyncio.Lock()
        self._last: Optional[float] = None

    async def acquire(self) -> float:
        """Wait for a permit; return the number of seconds slept."""
        async with self._lock:
            slept = 0.0
            if self._last is not None:
                wait = self.interval - (time.monotonic() - self._last)
                if wait > 0:
                    await asyncio.sleep(wait)
                    slept = wait
            self._last = time.monotonic()
            return slept


def open_session(config: MirrorConfig) -> ClientSession:
    """Create the run's HTTP session carrying the User-Agent and timeout."""
    return ClientSession(
        timeout=ClientTimeout(total=config.timeout),
        headers={"User-Agent": config.user_agent},
        raise_for_status=False,
    )


class Fetcher:
    """Performs GET requests gated by a shared :class:`RateLimiter`."""

    def __init__(self, session: ClientSession, limiter: RateLimiter) -> None:
        self.session = session
        self.limiter = limiter

    @asynccontextmanager
    async def get(self, url: str) -> AsyncIterator[ClientResponse]:
        """
        Issue ``GET url`` once the limiter admits it and yield the response.

        Raises FetchError on transport errors, timeouts and HTTP status >= 400.
        The body is left unread; use :meth:`read` to drain it.
        """
        await self.limiter.acquire()
        logger.info("retrieving %s.", url)
        try:
            resp = await self.session.get(url)
        except (ClientError, asyncio.TimeoutError, ValueError) as exc:
            raise FetchError(url, exc) from exc
        try:
            if resp.status >= 400:
                raise FetchError(url, f"HTTP {resp.status}", status=resp.status)
            yield resp
        finally:
            resp.release()

    @staticmethod
    async def read(url: str, resp: ClientResponse) -> bytes:
        """Drain the whole response body into memory."""
        try:
            return await resp.read()
        except (ClientError, asyncio.TimeoutError) as exc:
            raise FetchError(url, exc, status=resp.status, during="read") from exc

    async def fetch(self, url: str) -> FetchedPage:
        """GET *url* and return the drained response."""
        async with self.get(url) as resp:
            content = await self.read(url, resp)
            return FetchedPage(
                url=url,
                status=resp.status,
                content_type=resp.headers.get("Content-Type"),
                content=content,
            )
