"""
Exclusion policy read from the blog's robots.txt.

Only ``Sitemap: `` and ``Disallow: `` lines are understood. User-agent groups,
``Allow`` and wildcards are not; this is what Tumblr's robots.txt needs and
nothing more.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from tumblr_mirror.crawler.urls import split_url
from tumblr_mirror.errors import PolicyViolation
from tumblr_mirror.logger import logger

_SITEMAP = "Sitemap: "
_DISALLOW = "Disallow: "


@dataclass(frozen=True)
class RobotsInfo:
    """Disallowed path prefixes and sitemap URLs, both in file order."""

    disallowed_prefixes: Tuple[str, ...] = ()
    sitemap_urls: Tuple[str, ...] = ()

    @classmethod
    def parse(cls, text: str) -> RobotsInfo:
        """Scan robots.txt line by line."""
        sitemaps: list[str] = []
        disallowed: list[str] = []
        for line in text.splitlines():
            if line.startswith(_SITEMAP):
                url = line[len(_SITEMAP):].strip()
                if url:
                    sitemaps.append(url)
            elif line.startswith(_DISALLOW):
                # an empty Disallow allows everything
                prefix = line[len(_DISALLOW):].rstrip()
                if prefix:
                    disallowed.append(prefix)
        return cls(disallowed_prefixes=tuple(disallowed), sitemap_urls=tuple(sitemaps))

    def check_url(self, url: str) -> bool:
        """Return True unless *url* is malformed or its path is disallowed."""
        parts = split_url(url)
        if parts is None:
            logger.warning("malformed URL passed to check_url: %r", url)
            return False
        return not any(parts.path.startswith(prefix) for prefix in self.disallowed_prefixes)

    def require(self, url: str) -> None:
        """Raise PolicyViolation if :meth:`check_url` rejects *url*."""
        if not self.check_url(url):
            raise PolicyViolation(url)
