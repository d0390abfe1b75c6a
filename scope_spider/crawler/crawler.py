# scope_spider/crawler/crawler.py
from __future__ import annotations

import asyncio
import time
from typing import Coroutine, List, Optional, Set
from urllib.parse import urljoin, urlsplit

from aiohttp import ClientSession, ClientTimeout, TCPConnector

from scope_spider.config import CrawlConfig
from scope_spider.crawler.dedup import DedupRegistry
from scope_spider.crawler.fetcher import DomainLimiter, Fetcher
from scope_spider.crawler.linkfinder import ScriptLinkResolver
from scope_spider.crawler.models import Artifact, ArtifactKind, FetchOutcome, FrontierEntry, Target
from scope_spider.crawler.normalizer import normalize_url
from scope_spider.crawler.scope import ScopeFilter
from scope_spider.extractors import decode_chars, find_aws_s3, find_subdomains
from scope_spider.logger import logger
from scope_spider.output import Sink
from scope_spider.parser.html_parser import ParsedPage, parse_html
from scope_spider.parser.robots_parser import parse_robots
from scope_spider.parser.sitemap_parser import parse_sitemap
from scope_spider.patterns import SCRIPT_EXTENSIONS
from scope_spider.utils import get_ext

__all__ = ("AsyncCrawler", "ROOT_DEPTH", "RETRY_STATUS", "DROPPED_STATUS")

ROOT_DEPTH = 1
# 999 is what some sites answer to crawlers they throttle.
RETRY_STATUS = 999
# 0 means no response at all (DNS failure, refused connection, timeout).
DROPPED_STATUS = frozenset({0, 404, 429})


class AsyncCrawler:
    """Асинхронный краулер: пул воркеров над общей очередью frontier."""

    def __init__(self, config: CrawlConfig, sink: Sink) -> None:
        self.config = config
        self.sink = sink
        self.target = Target(url=config.site_url, domain=config.domain)
        self.scope = ScopeFilter(
            self.target.domain,
            [config.blacklist] if config.blacklist else None,
            include_subdomains=config.include_subdomains,
        )
        self.registry = DedupRegistry()
        self.session: Optional[ClientSession] = None
        self.fetcher: Optional[Fetcher] = None
        self.resolver: Optional[ScriptLinkResolver] = None
        self.visited = 0
        self._queue: Optional[asyncio.Queue[FrontierEntry]] = None
        self._side_tasks: Set[asyncio.Task] = set()

    async def __aenter__(self) -> AsyncCrawler:
        self.session = ClientSession(
            timeout=ClientTimeout(total=self.config.timeout),
            connector=TCPConnector(ssl=False),
            raise_for_status=False,
        )
        self.fetcher = Fetcher(
            self.session,
            headers=self.config.request_headers(),
            user_agent=self.config.user_agent,
            proxy=self.config.proxy,
            follow_redirects=self.config.follow_redirects,
            limiter=DomainLimiter(self.config.concurrency, self.config.delay, self.config.random_delay),
        )
        self.resolver = ScriptLinkResolver(
            self.fetcher,
            self.scope,
            self.target.url,
            emit=self.emit,
            scan_body=self.scan_body,
            feed=lambda link, base, referer: self.submit(link, base, ROOT_DEPTH, referer),
        )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self.session and not self.session.closed:
            await self.session.close()

    # ------------------------------------------------------------------ #
    # Frontier                                                           #
    # ------------------------------------------------------------------ #

    def submit(self, raw: str, base: str, depth: int, referer: Optional[str] = None) -> bool:
        """Normalize, scope-check and dedup *raw*; enqueue it when all pass."""
        url = normalize_url(raw, base)
        if url is None or not self.scope(url):
            return False
        if self.config.max_depth and depth > self.config.max_depth:
            return False
        if self.registry.check_and_mark(ArtifactKind.URL, url):
            return False
        assert self._queue is not None
        self._queue.put_nowait(FrontierEntry(url, depth, referer))
        return True

    def spawn(self, coro: Coroutine) -> asyncio.Task:
        """Start an out-of-band task the crawl waits for before finishing."""
        task = asyncio.create_task(coro)
        self._side_tasks.add(task)
        task.add_done_callback(self._side_tasks.discard)
        return task

    # ------------------------------------------------------------------ #
    # Run                                                                #
    # ------------------------------------------------------------------ #

    async def crawl(self) -> List[Artifact]:
        if self.fetcher is None:
            raise RuntimeError("Session not initialized")
        logger.info("Crawling site: %s", self.target.url)
        start = time.monotonic()
        self._queue = asyncio.Queue()

        root = self.target.url
        self.registry.check_and_mark(ArtifactKind.URL, root)
        if not urlsplit(root).path:
            # "http://host" and "http://host/" are the same resource
            self.registry.check_and_mark(ArtifactKind.URL, root + "/")
        self._queue.put_nowait(FrontierEntry(root, ROOT_DEPTH))
        if self.config.robots:
            self.spawn(self._seed_robots())
        if self.config.sitemap:
            self.spawn(self._seed_sitemap(urljoin(root + "/", "sitemap.xml"), set()))

        workers = [asyncio.create_task(self._worker()) for _ in range(self.config.concurrency)]
        try:
            await self._drain()
        finally:
            for w in workers:
                w.cancel()
            await asyncio.gather(*workers, return_exceptions=True)

        duration = time.monotonic() - start
        logger.info(
            "Finished %s: %d requests, %d artifacts in %.2f s",
            self.target.url, self.visited, len(self.sink.artifacts), duration,
        )
        return self.sink.artifacts

    async def _drain(self) -> None:
        assert self._queue is not None
        while True:
            await self._queue.join()
            if not self._side_tasks:
                return
            await asyncio.gather(*tuple(self._side_tasks), return_exceptions=True)

    async def _worker(self) -> None:
        assert self._queue is not None
        while True:
            try:
                entry = await self._queue.get()
            except asyncio.CancelledError:
                break
            try:
                await self.visit(entry)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Unexpected error while processing %s", entry.url)
            finally:
                self._queue.task_done()

    # ------------------------------------------------------------------ #
    # Fetch & dispatch                                                   #
    # ------------------------------------------------------------------ #

    async def visit(self, entry: FrontierEntry) -> FetchOutcome:
        assert self.fetcher is not None
        self.visited += 1
        outcome = await self.fetcher.fetch(entry.url, entry.referer)
        if outcome.status == RETRY_STATUS:
            logger.debug("Retrying %s after status %d", entry.url, RETRY_STATUS)
            self.visited += 1
            outcome = await self.fetcher.fetch(entry.url, entry.referer)

        if outcome.ok:
            self.handle_response(entry, outcome)
        else:
            self.handle_failure(outcome)
        return outcome

    def handle_failure(self, outcome: FetchOutcome) -> None:
        logger.debug("Error request: %s - Status code: %s - Error: %s", outcome.url, outcome.status, outcome.error)
        if outcome.status in DROPPED_STATUS:
            return
        self.emit(Artifact(ArtifactKind.URL, outcome.url, status=outcome.status))

    def handle_response(self, entry: FrontierEntry, outcome: FetchOutcome) -> None:
        text = outcome.text
        self.scan_body(text)
        self.emit(Artifact(ArtifactKind.URL, outcome.url, status=outcome.status))
        if "html" in outcome.content_type or not outcome.content_type:
            self.discover(parse_html(text, outcome.url), entry.depth)

    def discover(self, page: ParsedPage, depth: int) -> None:
        """Route every link-bearing attribute of *page* into the pipeline."""
        for href in page.hrefs:
            self.submit(href, page.url, depth + 1, referer=page.url)

        for action in page.form_actions:
            form_url = normalize_url(action, page.url)
            if form_url and self.scope(form_url) and not self.registry.check_and_mark(ArtifactKind.FORM, form_url):
                self.emit(Artifact(ArtifactKind.FORM, form_url))

        if page.has_upload and not self.registry.check_and_mark(ArtifactKind.UPLOAD_FORM, page.url):
            self.emit(Artifact(ArtifactKind.UPLOAD_FORM, page.url))

        for src in page.srcs:
            script_url = normalize_url(src, page.url)
            if script_url is None or get_ext(script_url) not in SCRIPT_EXTENSIONS:
                continue
            if not self.scope(script_url):
                continue
            if self.registry.check_and_mark(ArtifactKind.JAVASCRIPT, script_url):
                continue
            self.emit(Artifact(ArtifactKind.JAVASCRIPT, script_url))
            assert self.resolver is not None
            self.spawn(self.resolver.resolve_all(script_url))

    def scan_body(self, text: str) -> None:
        """Report new subdomains and S3 buckets mentioned in *text*."""
        decoded = decode_chars(text)
        for sub in find_subdomains(decoded, self.target.domain):
            if not self.registry.check_and_mark(ArtifactKind.SUBDOMAIN, sub):
                self.emit(Artifact(ArtifactKind.SUBDOMAIN, sub))
        for bucket in find_aws_s3(decoded):
            if not self.registry.check_and_mark(ArtifactKind.AWS_S3, bucket):
                self.emit(Artifact(ArtifactKind.AWS_S3, bucket))

    def emit(self, artifact: Artifact) -> None:
        self.sink.emit(artifact)

    # ------------------------------------------------------------------ #
    # robots.txt / sitemap.xml seeds                                     #
    # ------------------------------------------------------------------ #

    async def _fetch_text(self, url: str) -> Optional[str]:
        assert self.fetcher is not None
        outcome = await self.fetcher.fetch(url, limited=False)
        if outcome.error is not None or outcome.status != 200:
            logger.debug("Skip %s: status=%s error=%s", url, outcome.status, outcome.error)
            return None
        return outcome.text

    async def _seed_robots(self) -> None:
        robots_url = urljoin(self.target.url + "/", "robots.txt")
        text = await self._fetch_text(robots_url)
        if text is None:
            return
        for path in parse_robots(text):
            url = normalize_url(path, self.target.url)
            if url is None:
                continue
            self.emit(Artifact(ArtifactKind.ROBOTS, url))
            self.submit(url, self.target.url, ROOT_DEPTH, referer=robots_url)

    async def _seed_sitemap(self, sitemap_url: str, seen: Set[str]) -> None:
        if sitemap_url in seen:
            return
        seen.add(sitemap_url)
        text = await self._fetch_text(sitemap_url)
        if text is None:
            return
        for loc in parse_sitemap(text):
            url = normalize_url(loc, sitemap_url)
            if url is None or not self.scope.matches_domain(url):
                continue
            if get_ext(url) == ".xml":
                await self._seed_sitemap(url, seen)
                continue
            self.emit(Artifact(ArtifactKind.SITEMAP, url))
            self.submit(url, sitemap_url, ROOT_DEPTH, referer=sitemap_url)
