# tumblr_mirror/errors.py
"""
Error taxonomy for a mirror run.

Only :class:`SetupError` stops a run; everything else is caught by the crawl
loop, logged with context and counted.
"""
from __future__ import annotations

from typing import Optional


class MirrorError(Exception):
    """Base class for all tumblr_mirror errors."""


class SetupError(MirrorError):
    """The run cannot start: no store connection or no robots.txt."""


class PolicyViolation(MirrorError):
    """The URL is excluded by robots.txt."""

    def __init__(self, url: str) -> None:
        super().__init__(f"{url} is disallowed by robots.txt")
        self.url = url


class FetchError(MirrorError):
    """Transport failure, timeout or HTTP error status for a single URL."""

    def __init__(
        self,
        url: str,
        reason: object,
        *,
        status: Optional[int] = None,
        during: str = "request",
    ) -> None:
        super().__init__(f"{during} failed for {url}: {reason}")
        self.url = url
        self.status = status
        self.during = during


class ParseError(MirrorError):
    """Malformed HTML, XML or URL."""


class StoreError(MirrorError):
    """Persistence failure; the record was not written."""


class StoreConsistencyError(StoreError):
    """An upsert touched an unexpected number of rows."""


__all__ = [
    "MirrorError",
    "SetupError",
    "PolicyViolation",
    "FetchError",
    "ParseError",
    "StoreError",
    "StoreConsistencyError",
]
