# File: tests/test_fetcher.py
from __future__ import annotations

import asyncio
import time

import pytest

from tumblr_mirror.crawler.fetcher import Fetcher, RateLimiter, open_session
from tumblr_mirror.errors import FetchError


@pytest.mark.asyncio()
async def test_rate_limiter_spaces_admissions():
    limiter = RateLimiter(20.0)  # one every 50 ms
    stamps = []
    for _ in range(4):
        await limiter.acquire()
        stamps.append(time.monotonic())
    gaps = [b - a for a, b in zip(stamps, stamps[1:])]
    assert all(gap >= 0.045 for gap in gaps)


@pytest.mark.asyncio()
async def test_rate_limiter_serializes_concurrent_acquirers():
    limiter = RateLimiter(20.0)
    stamps = []

    async def worker():
        await limiter.acquire()
        stamps.append(time.monotonic())

    start = time.monotonic()
    await asyncio.gather(*(worker() for _ in range(5)))
    stamps.sort()
    assert all(b - a >= 0.045 for a, b in zip(stamps, stamps[1:]))
    assert stamps[-1] - start >= 0.18


def test_rate_limiter_rejects_non_positive_rate():
    with pytest.raises(ValueError):
        RateLimiter(0)


@pytest.mark.asyncio()
async def test_fetch_sets_user_agent_and_reads_body(blog, blog_url, make_config):
    blog.add("/image.png", b"\x89PNG", content_type="image/png")
    config = make_config(blog_url)
    async with open_session(config) as session:
        page = await Fetcher(session, RateLimiter(config.requests_per_second)).fetch(f"{blog_url}/image.png")

    assert page.content == b"\x89PNG"
    assert page.status == 200
    assert page.content_type == "image/png"
    assert not page.is_html
    assert blog.user_agents == ["TestAgent/1.0"]


@pytest.mark.asyncio()
async def test_fetch_http_error_status(blog, blog_url, make_config):
    config = make_config(blog_url)
    async with open_session(config) as session:
        with pytest.raises(FetchError) as info:
            await Fetcher(session, RateLimiter(1000.0)).fetch(f"{blog_url}/missing")
    assert info.value.status == 404
    assert blog.hits["/missing"] == 1


@pytest.mark.asyncio()
async def test_fetch_connection_refused(make_config, unused_tcp_port):
    base = f"http://127.0.0.1:{unused_tcp_port}"
    config = make_config(base)
    async with open_session(config) as session:
        with pytest.raises(FetchError):
            await Fetcher(session, RateLimiter(1000.0)).fetch(f"{base}/robots.txt")
