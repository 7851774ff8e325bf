# === FILE: tumblr_mirror/crawler/crawler.py ===
from __future__ import annotations

import time
from collections import deque
from dataclasses import replace
from typing import Deque, List, Optional, Set

from aiohttp import ClientSession

from tumblr_mirror.config import MirrorConfig
from tumblr_mirror.crawler.fetcher import Fetcher, RateLimiter, open_session
from tumblr_mirror.crawler.link_extractor import extract_links
from tumblr_mirror.crawler.models import CrawlStats, FetchedPage, KnownPages, MirrorState
from tumblr_mirror.crawler.robots import RobotsInfo
from tumblr_mirror.crawler.urls import authority_of, canonicalize
from tumblr_mirror.errors import FetchError, ParseError, SetupError, StoreError
from tumblr_mirror.logger import for_blog
from tumblr_mirror.parser.sitemap_parser import parse_sitemap
from tumblr_mirror.storage import ContentStore

__all__ = ("TumblrMirror",)


class TumblrMirror:
    """
    Mirrors one blog into a ContentStore.

    robots.txt → sitemaps → breadth-first crawl restricted to each page's own
    authority. All run state (known pages, work queue, counters) lives on the
    instance; one instance serves one run.
    """

    def __init__(self, config: MirrorConfig) -> None:
        self.config = config
        self.logger = for_blog(config.tumblr_name)
        self.state = MirrorState.INIT
        self.stats = CrawlStats()
        self.known_pages = KnownPages()
        self.work_queue: Deque[str] = deque()
        self._fetched: Set[str] = set()
        self.robots: Optional[RobotsInfo] = None
        self.store: Optional[ContentStore] = None
        self.session: Optional[ClientSession] = None
        self.fetcher: Optional[Fetcher] = None
        self.limiter = RateLimiter(config.requests_per_second)

    async def __aenter__(self) -> TumblrMirror:
        self.logger.info("starting up.")
        self.logger.info("getting DB connection.")
        try:
            self.store = await ContentStore.open(self.config.db_file)
        except StoreError as exc:
            self._set_state(MirrorState.FAILED)
            self.logger.critical("could not get DB connection! %s", exc)
            raise SetupError(str(exc)) from exc
        self.session = open_session(self.config)
        self.fetcher = Fetcher(self.session, self.limiter)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self.session and not self.session.closed:
            await self.session.close()
        if self.store is not None:
            await self.store.close()
        self.logger.info("shutting down.")

    # ------------------------------------------------------------------ #
    # run                                                                #
    # ------------------------------------------------------------------ #

    async def run(self) -> CrawlStats:
        """Load robots.txt and sitemaps, then crawl until the queue is empty."""
        if self.fetcher is None or self.store is None:
            raise RuntimeError("TumblrMirror must be used as an async context manager")
        start = time.monotonic()
        try:
            self.robots = await self.read_robots()
        except SetupError:
            self._set_state(MirrorState.FAILED)
            raise
        self._set_state(MirrorState.ROBOTS_LOADED)

        self.logger.info("starting update sequence.")
        await self.read_sitemaps(self.robots)
        self._set_state(MirrorState.SITEMAP_LOADED)

        await self.download_pages()
        self._set_state(MirrorState.DONE)

        self.stats.known = len(self.known_pages)
        self.logger.info(
            "update sequence complete: %s (%.2f s)", self.stats.summary(), time.monotonic() - start
        )
        return self.stats

    # ------------------------------------------------------------------ #
    # setup phase                                                        #
    # ------------------------------------------------------------------ #

    async def read_robots(self) -> RobotsInfo:
        """Fetch and parse robots.txt; any failure is a SetupError."""
        fetcher = self._require_fetcher()
        robots_url = self.config.robots_url
        self.logger.info("parsing robots.txt...")
        try:
            page = await fetcher.fetch(robots_url)
        except FetchError as exc:
            self.logger.critical("could not read robots.txt! %s", exc)
            raise SetupError(f"could not read {robots_url}: {exc}") from exc
        robots = RobotsInfo.parse(page.content.decode("utf-8", errors="replace"))
        self.logger.debug(
            "robots.txt: %d sitemap(s), %d disallowed prefix(es)",
            len(robots.sitemap_urls),
            len(robots.disallowed_prefixes),
        )
        return robots

    async def read_sitemaps(self, robots: RobotsInfo) -> KnownPages:
        """
        Seed known pages from every sitemap listed in robots.txt.

        A fetch failure stops sitemap processing; a parse failure only skips
        that sitemap. Sitemap indexes add their children to the list.
        """
        fetcher = self._require_fetcher()
        self.logger.info("downloading site maps.")
        pending: Deque[str] = deque(robots.sitemap_urls)
        seen: Set[str] = set(pending)

        while pending:
            sitemap_url = pending.popleft()
            try:
                page = await fetcher.fetch(sitemap_url)
            except FetchError as exc:
                self.logger.warning("problem retrieving sitemap content. %s", exc)
                self.stats.fetch_errors += 1
                break

            # children of an index are known pages too; the crawl reuses this fetch
            key = canonicalize(sitemap_url)
            if key in self.known_pages and robots.check_url(key):
                self._record_fetch(key)
                await self._store(replace(page, url=key))

            try:
                sitemap = parse_sitemap(page.content)
            except ParseError as exc:
                self.logger.warning("problem parsing sitemap %s: %s", sitemap_url, exc)
                self.stats.parse_errors += 1
                continue

            for loc in sitemap.locations:
                self.known_pages.add(canonicalize(loc), sitemap_url)
                if sitemap.is_index and loc not in seen:
                    seen.add(loc)
                    pending.append(loc)

        self.logger.info("%d page(s) known from site maps.", len(self.known_pages))
        return self.known_pages

    # ------------------------------------------------------------------ #
    # crawl phase                                                        #
    # ------------------------------------------------------------------ #

    async def download_pages(self) -> None:
        """Breadth-first crawl of the work queue, seeded from known pages."""
        if self.robots is None:
            raise RuntimeError("robots.txt not loaded")
        self._set_state(MirrorState.CRAWLING)
        self.logger.info("downloading pages.")
        self.work_queue.extend(url for url in self.known_pages if url not in self._fetched)

        while self.work_queue:
            page_url = self.work_queue.popleft()

            if not self.robots.check_url(page_url):
                self.logger.info("ignoring %s due to robots.txt.", page_url)
                self.stats.disallowed += 1
                continue

            page = await self._download(page_url)
            if page is None:
                continue

            await self._store(page)

            if page.is_html:
                self._enqueue_links(page)

    async def _download(self, page_url: str) -> Optional[FetchedPage]:
        fetcher = self._require_fetcher()
        try:
            page = await fetcher.fetch(page_url)
        except FetchError as exc:
            if exc.during == "read":
                self.logger.warning("error reading content. %s", exc)
            else:
                self.logger.warning(
                    "problem retrieving content. (linked from %s) %s",
                    ", ".join(sorted(self.known_pages.referrers(page_url))),
                    exc,
                )
            self.stats.fetch_errors += 1
            return None
        self._record_fetch(page_url)
        return page

    async def _store(self, page: FetchedPage) -> None:
        store = self._require_store()
        try:
            await store.set_content(page.url, page.content)
        except StoreError as exc:
            self.logger.warning("error updating page database. %s", exc)
            self.stats.store_errors += 1
        else:
            self.stats.stored += 1

    def _enqueue_links(self, page: FetchedPage) -> List[str]:
        """Queue unknown same-authority links; record every referrer edge."""
        self.logger.info("parsing page for links...")
        try:
            links = extract_links(page.url, page.content)
        except ParseError as exc:
            self.logger.warning("error while parsing page for links. %s", exc)
            self.stats.parse_errors += 1
            return []

        page_authority = authority_of(page.url)
        if page_authority is None:
            self.logger.warning("error getting authority for page %s", page.url)
            return []

        queued: List[str] = []
        for link_url in sorted(links):
            if authority_of(link_url) != page_authority:
                continue
            if link_url not in self.known_pages:
                self.logger.info("queueing %s for download.", link_url)
                self.work_queue.append(link_url)
                queued.append(link_url)
            self.known_pages.add(link_url, page.url)
        return queued

    def _set_state(self, state: MirrorState) -> None:
        self.logger.debug("state %s -> %s", self.state.value, state.value)
        self.state = state
        self.stats.state = state

    def _record_fetch(self, url: str) -> None:
        self._fetched.add(url)
        self.stats.fetched += 1
        self.stats.fetched_urls.append(url)

    def _require_fetcher(self) -> Fetcher:
        if self.fetcher is None:
            raise RuntimeError("Session not initialized")
        return self.fetcher

    def _require_store(self) -> ContentStore:
        if self.store is None:
            raise RuntimeError("Page database not opened")
        return self.store
