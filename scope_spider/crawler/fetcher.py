# scope_spider/crawler/fetcher.py
"""
Fetcher module: HTTP transport with per-domain parallelism, delay and timeout.

Transport problems never raise out of :meth:`Fetcher.fetch`; they come back
as a :class:`FetchOutcome` with ``status == 0`` and ``error`` set.
"""
from __future__ import annotations

import asyncio
import random
from typing import Dict, Mapping, Optional
from urllib.parse import urlsplit

from aiohttp import ClientError, ClientSession

from scope_spider.crawler.models import FetchOutcome
from scope_spider.logger import logger
from scope_spider.utils import random_user_agent, resolve_user_agent

__all__ = ["DomainLimiter", "Fetcher"]


class DomainLimiter:
    """Per-host slot pool; each slot is held for the request plus the configured delay."""

    def __init__(self, parallelism: int, delay: float = 0.0, random_delay: float = 0.0) -> None:
        if parallelism < 1:
            raise ValueError("parallelism must be >= 1")
        self.parallelism = parallelism
        self.delay = delay
        self.random_delay = random_delay
        self._slots: Dict[str, asyncio.Semaphore] = {}

    def _slot(self, host: str) -> asyncio.Semaphore:
        sem = self._slots.get(host)
        if sem is None:
            sem = self._slots[host] = asyncio.Semaphore(self.parallelism)
        return sem

    def pause(self) -> float:
        jitter = random.uniform(0, self.random_delay) if self.random_delay > 0 else 0.0
        return self.delay + jitter

    async def run(self, host: str, coro_factory):
        async with self._slot(host):
            try:
                return await coro_factory()
            finally:
                wait = self.pause()
                if wait > 0:
                    await asyncio.sleep(wait)


class Fetcher:
    """Issues GET requests on a shared :class:`aiohttp.ClientSession`."""

    def __init__(
        self,
        session: ClientSession,
        *,
        headers: Optional[Mapping[str, str]] = None,
        user_agent: str = "web",
        proxy: Optional[str] = None,
        follow_redirects: bool = True,
        limiter: Optional[DomainLimiter] = None,
    ) -> None:
        self.session = session
        self.headers = dict(headers or {})
        self.user_agent_mode = user_agent.lower()
        self._fixed_ua = resolve_user_agent(user_agent)
        self.proxy = proxy
        self.follow_redirects = follow_redirects
        self.limiter = limiter

    def _request_headers(self, referer: Optional[str]) -> Dict[str, str]:
        headers = {"User-Agent": self._fixed_ua or random_user_agent(self.user_agent_mode)}
        if referer:
            headers["Referer"] = referer
        headers.update(self.headers)
        return headers

    async def fetch(self, url: str, referer: Optional[str] = None, *, limited: bool = True) -> FetchOutcome:
        """
        GET *url* and read the whole body.

        *limited* requests go through the per-domain limiter; out-of-band
        requests (script resolution, robots, sitemap) bypass it.
        """
        if limited and self.limiter is not None:
            host = urlsplit(url).hostname or ""
            return await self.limiter.run(host, lambda: self._get(url, referer))
        return await self._get(url, referer)

    async def _get(self, url: str, referer: Optional[str]) -> FetchOutcome:
        try:
            async with self.session.get(
                url,
                headers=self._request_headers(referer),
                proxy=self.proxy,
                allow_redirects=self.follow_redirects,
                ssl=False,
            ) as resp:
                body = await resp.read()
                return FetchOutcome(
                    url=url,
                    status=resp.status,
                    body=body,
                    content_type=resp.headers.get("Content-Type", "").lower(),
                )
        except asyncio.TimeoutError:
            logger.debug("Timeout: %s", url)
            return FetchOutcome(url=url, status=0, error="timeout")
        except (ClientError, ValueError) as exc:
            logger.debug("Request error %s: %s", url, exc)
            return FetchOutcome(url=url, status=0, error=str(exc) or type(exc).__name__)
