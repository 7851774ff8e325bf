# File: tumblr_mirror/parser/sitemap_parser.py
"""tumblr_mirror.parser.sitemap_parser: parsing of sitemap.xml documents."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from lxml import etree

from tumblr_mirror.errors import ParseError

SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"
_LOC = f"{{{SITEMAP_NS}}}loc"
_SITEMAP_INDEX = f"{{{SITEMAP_NS}}}sitemapindex"


@dataclass
class Sitemap:
    """The ``<loc>`` values of one sitemap document."""

    locations: List[str] = field(default_factory=list)
    is_index: bool = False


def parse_sitemap(xml_content: bytes) -> Sitemap:
    """Parse sitemap XML and return the text of every namespaced ``<loc>``.

    Args:
        xml_content: raw bytes of sitemap.xml.

    Returns:
        Sitemap with the stripped, non-empty ``<loc>`` values in document
        order; ``is_index`` is set for ``<sitemapindex>`` documents.

    Raises:
        ParseError: the bytes are not well-formed XML.
    """
    parser = etree.XMLParser(resolve_entities=False, no_network=True)
    try:
        root = etree.fromstring(xml_content, parser=parser)
    except (etree.XMLSyntaxError, ValueError) as exc:
        raise ParseError(f"malformed sitemap: {exc}") from exc
    if root is None:
        raise ParseError("empty sitemap document")

    locations = [loc.text.strip() for loc in root.iter(_LOC) if loc.text and loc.text.strip()]
    return Sitemap(locations=locations, is_index=root.tag == _SITEMAP_INDEX)
