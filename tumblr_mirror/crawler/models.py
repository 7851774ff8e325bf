"""
Data models for the TumblrMirror crawler.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, Optional, Set


class MirrorState(str, Enum):
    """Lifecycle of one mirror run."""

    INIT = "init"
    ROBOTS_LOADED = "robots_loaded"
    SITEMAP_LOADED = "sitemap_loaded"
    CRAWLING = "crawling"
    DONE = "done"
    FAILED = "failed"


@dataclass(slots=True)
class FetchedPage:
    """A fully drained response: canonical URL, status, content type and body."""

    url: str
    status: int
    content_type: Optional[str]
    content: bytes

    @property
    def is_html(self) -> bool:
        return self.content_type is not None and "text/html" in self.content_type.lower()


class KnownPages:
    """
    Every URL discovered this run, mapped to the pages that referenced it.

    Keys are kept in discovery order and never removed.
    """

    def __init__(self) -> None:
        self._referrers: Dict[str, Set[str]] = {}

    def add(self, url: str, referrer: str) -> bool:
        """Record the edge *referrer* → *url*; return True if *url* is new."""
        refs = self._referrers.get(url)
        if refs is None:
            self._referrers[url] = {referrer}
            return True
        refs.add(referrer)
        return False

    def referrers(self, url: str) -> Set[str]:
        return set(self._referrers.get(url, ()))

    def __contains__(self, url: object) -> bool:
        return url in self._referrers

    def __iter__(self) -> Iterator[str]:
        return iter(self._referrers)

    def __len__(self) -> int:
        return len(self._referrers)


@dataclass(slots=True)
class CrawlStats:
    """Counters collected over one run."""

    state: MirrorState = MirrorState.INIT
    known: int = 0
    fetched: int = 0
    stored: int = 0
    disallowed: int = 0
    fetch_errors: int = 0
    store_errors: int = 0
    parse_errors: int = 0
    fetched_urls: list[str] = field(default_factory=list)

    def summary(self) -> str:
        return (
            f"{self.state.value}: {self.fetched} fetched, {self.stored} stored, "
            f"{self.disallowed} disallowed, {self.fetch_errors} fetch errors, "
            f"{self.store_errors} store errors, {self.known} known URLs"
        )
