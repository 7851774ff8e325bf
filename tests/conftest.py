# File: tests/conftest.py
from __future__ import annotations

import logging
from collections import Counter
from collections.abc import AsyncIterator, Awaitable, Callable
from pathlib import Path

import pytest
import pytest_asyncio
from aiohttp import web

from tumblr_mirror.config import MirrorConfig

SITEMAP_TEMPLATE = (
    '<?xml version="1.0" encoding="UTF-8"?>'
    '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{entries}</urlset>'
)


def sitemap_xml(*locs: str) -> str:
    """Build a urlset sitemap containing *locs*."""
    return SITEMAP_TEMPLATE.format(entries="".join(f"<url><loc>{loc}</loc></url>" for loc in locs))


async def serve_app(app: web.Application, port: int) -> AsyncIterator[str]:
    """Start *app* on *port*, yield base URL, ensure cleanup."""
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", port)
    await site.start()
    try:
        yield f"http://127.0.0.1:{port}"
    finally:
        await runner.cleanup()


class FakeBlog:
    """
    Tiny aiohttp app serving fixed responses per path and counting requests.

    ``pages`` maps a path to ``(body, content_type)``; ``{base}`` in a body is
    replaced with the server's base URL. ``handlers`` overrides a path with a
    raw aiohttp handler, for responses that misbehave on the wire.
    """

    def __init__(self) -> None:
        self.pages: dict[str, tuple[str | bytes, str]] = {}
        self.handlers: dict[str, Callable[[web.Request], Awaitable[web.StreamResponse]]] = {}
        self.hits: Counter[str] = Counter()
        self.user_agents: list[str] = []
        self.base = ""

    def add(self, path: str, body: str | bytes, content_type: str = "text/html") -> None:
        self.pages[path] = (body, content_type)

    def add_handler(self, path: str, handler: Callable[[web.Request], Awaitable[web.StreamResponse]]) -> None:
        self.handlers[path] = handler

    async def handle(self, request: web.Request) -> web.StreamResponse:
        self.hits[request.path] += 1
        self.user_agents.append(request.headers.get("User-Agent", ""))
        if request.path in self.handlers:
            return await self.handlers[request.path](request)
        if request.path not in self.pages:
            raise web.HTTPNotFound()
        body, content_type = self.pages[request.path]
        if isinstance(body, str):
            body = body.replace("{base}", self.base).encode("utf-8")
        return web.Response(body=body, content_type=content_type)

    def app(self) -> web.Application:
        app = web.Application()
        app.router.add_route("GET", "/{tail:.*}", self.handle)
        return app


@pytest.fixture()
def blog() -> FakeBlog:
    return FakeBlog()


@pytest_asyncio.fixture
async def blog_url(blog: FakeBlog, unused_tcp_port: int) -> AsyncIterator[str]:
    async for base in serve_app(blog.app(), unused_tcp_port):
        blog.base = base
        yield base


@pytest.fixture()
def db_file(tmp_path: Path) -> Path:
    return tmp_path / "mirror.db"


@pytest.fixture()
def make_config(db_file: Path) -> Callable[..., MirrorConfig]:
    """Return a factory for MirrorConfig pointed at a test server."""

    def _make(base_url: str | None = None, **kwargs) -> MirrorConfig:
        values = {
            "tumblr_name": "x",
            "db_file": db_file,
            "request_time": 1,
            "timeout": 5.0,
            "user_agent": "TestAgent/1.0",
            "base_url": base_url,
        }
        values.update(kwargs)
        return MirrorConfig(**values)

    return _make


@pytest.fixture(autouse=True)
def _reset_logger():
    """CLI tests install stdout handlers bound to CliRunner streams."""
    yield
    lg = logging.getLogger("TumblrMirror")
    for handler in list(lg.handlers):
        lg.removeHandler(handler)
        handler.close()
    lg.propagate = True
