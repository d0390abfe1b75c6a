# scope_spider/crawler/linkfinder.py
"""
Script link resolver.

Fetches a script or data file outside the dispatcher's depth and limiter
bookkeeping, reports the endpoint-like strings it contains and feeds them
back into the crawl frontier through the normal admission path.
"""
from __future__ import annotations

from typing import Callable, List, Optional
from urllib.parse import urlsplit

from scope_spider.crawler.fetcher import Fetcher
from scope_spider.crawler.models import Artifact, ArtifactKind
from scope_spider.crawler.scope import ScopeFilter
from scope_spider.extractors import find_links
from scope_spider.logger import logger
from scope_spider.patterns import MINIFIED_MARKER

__all__ = ["ScriptLinkResolver", "deminified_url"]

EmitFn = Callable[[Artifact], object]
BodyFn = Callable[[str], object]
# feed(raw_link, base, referer) -> admitted
FeedFn = Callable[[str, str, Optional[str]], bool]


def deminified_url(url: str) -> Optional[str]:
    """``app.min.js`` -> ``app.js``; None when *url* is not minified.

    The derived path is a guess and is not checked before fetching.
    """
    if MINIFIED_MARKER not in url:
        return None
    return url.replace(MINIFIED_MARKER, ".js")


class ScriptLinkResolver:
    """Fetch-extract-feed cycle for one script URL at a time."""

    def __init__(
        self,
        fetcher: Fetcher,
        scope: ScopeFilter,
        site: str,
        *,
        emit: EmitFn,
        scan_body: BodyFn,
        feed: FeedFn,
    ) -> None:
        self.fetcher = fetcher
        self.scope = scope
        self.site = site
        self._emit = emit
        self._scan_body = scan_body
        self._feed = feed

    def candidates(self, url: str) -> List[str]:
        """URLs to resolve for a discovered script: the de-minified guess first, then the script."""
        original = deminified_url(url)
        return [original, url] if original else [url]

    async def resolve_all(self, url: str) -> None:
        for candidate in self.candidates(url):
            try:
                await self.resolve(candidate)
            except Exception as exc:
                logger.debug("Linkfinder failed for %s: %s", candidate, exc)

    async def resolve(self, script_url: str) -> List[str]:
        """Process one script; return the links reported from it."""
        outcome = await self.fetcher.fetch(script_url, referer=self.site, limited=False)
        if outcome.error is not None or outcome.status != 200:
            logger.debug("Skip script %s: status=%s error=%s", script_url, outcome.status, outcome.error)
            return []

        body = outcome.text
        self._scan_body(body)

        reported: List[str] = []
        for link in find_links(body):
            link = self._scoped(link)
            if link is None:
                continue
            self._emit(Artifact(ArtifactKind.LINKFINDER, link, source=script_url))
            reported.append(link)
            self._feed(link, self.site, script_url)
        return reported

    def _scoped(self, link: str) -> Optional[str]:
        """Apply the domain check to absolute links; relative links pass as-is."""
        if link.startswith("//"):
            link = "https:" + link
            return link if self.scope.matches_domain(link) else None
        try:
            parts = urlsplit(link)
        except ValueError:
            return None
        if parts.scheme and not self.scope.matches_domain(link):
            return None
        return link
