# File: tumblr_mirror/engine.py
"""tumblr_mirror.engine: orchestration layer for running a mirror."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Union

from tumblr_mirror.config import MirrorConfig
from tumblr_mirror.crawler.crawler import TumblrMirror
from tumblr_mirror.crawler.models import CrawlStats
from tumblr_mirror.storage import ContentStore

__all__ = ["start_mirror", "read_page", "list_pages"]


async def start_mirror(cfg: MirrorConfig) -> CrawlStats:
    """
    Run one mirror pass inside its context and return the run's counters.

    Parameters
    ----------
    cfg : MirrorConfig
        Run configuration.

    Raises
    ------
    SetupError
        No database connection or no robots.txt.
    """
    async with TumblrMirror(cfg) as mirror:
        return await mirror.run()


async def read_page(db_file: Union[str, Path], url: str) -> Optional[bytes]:
    """Stored content for *url* (canonicalized by the caller), or None."""
    async with ContentStore(db_file) as store:
        return await store.get_content(url)


async def list_pages(db_file: Union[str, Path]) -> List[str]:
    async with ContentStore(db_file) as store:
        return await store.urls()


