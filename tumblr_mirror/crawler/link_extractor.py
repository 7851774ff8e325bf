# tumblr_mirror/crawler/link_extractor.py
"""
Link extraction for mirrored HTML pages.
"""
from __future__ import annotations

from typing import Set
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from bs4.builder import ParserRejectedMarkup
from bs4.element import Tag

from tumblr_mirror.crawler.urls import canonicalize
from tumblr_mirror.errors import ParseError

__all__ = ("extract_links",)

# (CSS selector, attribute): anchors, stylesheet/alternate imports, media
_REFERENCES = (
    ("a[href]", "href"),
    ("link[href]", "href"),
    ("[src]", "src"),
)
_SKIPPED_SCHEMES = ("mailto:", "javascript:", "data:")


def extract_links(base_url: str, content: bytes) -> Set[str]:
    """
    Return the canonical absolute URL of every reference in an HTML page.

    Relative values resolve against ``<base href>`` when the page has one,
    otherwise against *base_url*. Raises ParseError if the markup is
    rejected by the parser.
    """
    try:
        soup = BeautifulSoup(content, "html.parser")
    except ParserRejectedMarkup as exc:
        raise ParseError(f"cannot parse {base_url}: {exc}") from exc

    base = base_url
    base_tag = soup.find("base", href=True)
    if isinstance(base_tag, Tag):
        try:
            base = urljoin(base_url, str(base_tag["href"]).strip())
        except ValueError:
            base = base_url

    links: Set[str] = set()
    for selector, attr in _REFERENCES:
        for tag in soup.select(selector):
            value = tag.get(attr)
            if not isinstance(value, str):
                continue
            raw = value.strip()
            if not raw or raw.lower().startswith(_SKIPPED_SCHEMES):
                continue
            try:
                absolute = urljoin(base, raw)
            except ValueError:
                continue
            links.add(canonicalize(absolute))
    return links
