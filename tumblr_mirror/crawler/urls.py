# tumblr_mirror/crawler/urls.py
"""
URL canonicalization for dedup and storage keys.

Tumblr serves the same post under ``/post/<id>`` and
``/post/<id>/<descriptive-slug>``, and treats ``%20`` and ``-`` in tag paths
as the same thing. :func:`canonicalize` folds these aliases onto one key.

The scheme is part of the key: ``http://x/post/1`` and ``https://x/post/1``
are stored as two pages. Same-authority filtering compares only
``host[:port]``, so a blog that links to itself under both schemes is
mirrored under both keys.
"""
from __future__ import annotations

import re
from typing import Optional
from urllib.parse import SplitResult, urlsplit

from tumblr_mirror.logger import logger

__all__ = ("canonicalize", "split_url", "authority_of")

_POST_RE = re.compile(r"/post/(\d+)")


def split_url(raw: str) -> Optional[SplitResult]:
    """Split *raw* into components, or return None if it is not an absolute URL."""
    try:
        parts = urlsplit(raw)
        # accessing .port validates the port component
        parts.port
    except ValueError:
        return None
    if not parts.scheme or not parts.netloc:
        return None
    return parts


def authority_of(url: str) -> Optional[str]:
    """Return ``host[:port]`` (with any userinfo) of *url*, None if malformed."""
    parts = split_url(url)
    return None if parts is None else parts.netloc


def canonicalize(raw: str) -> str:
    """
    Map *raw* to the key used for dedup and storage.

    Post URLs collapse to ``scheme://authority/post/<id>``; everything else
    loses its query and fragment. Malformed input comes back unchanged.
    """
    url = raw.replace("%20", "-")
    parts = split_url(url)
    if parts is None:
        logger.warning("malformed URL while attempting canonicalization: %r", raw)
        return raw

    match = _POST_RE.match(parts.path)
    if match:
        return f"{parts.scheme}://{parts.netloc}/post/{match.group(1)}"
    return f"{parts.scheme}://{parts.netloc}{parts.path}"
