# File: tests/conftest.py
import asyncio
import io
from typing import Awaitable, Callable, List

import pytest
import pytest_asyncio
from aiohttp import web

from scope_spider.config import CrawlConfig
from scope_spider.crawler.crawler import AsyncCrawler
from scope_spider.output import Sink


def pytest_configure(config):
    """Register custom markers so that `--strict-markers` does not fail."""
    config.addinivalue_line(
        "markers",
        "slow: marks tests as slow (deselect with '-m \"not slow\"')",
    )


@pytest_asyncio.fixture
async def serve(unused_tcp_port_factory) -> Callable[[web.Application], Awaitable[str]]:
    """Start aiohttp apps on free localhost ports; yields a starter returning the base URL."""
    runners: List[web.AppRunner] = []

    async def _serve(app: web.Application) -> str:
        runner = web.AppRunner(app)
        await runner.setup()
        port = unused_tcp_port_factory()
        site = web.TCPSite(runner, "localhost", port)
        await site.start()
        runners.append(runner)
        return f"http://localhost:{port}"

    yield _serve
    for runner in runners:
        await runner.cleanup()


@pytest.fixture()
def make_config() -> Callable[..., CrawlConfig]:
    """
    Return a factory for test configs: robots.txt seeding off, short timeout.
    """
    def _make(site: str, **overrides) -> CrawlConfig:
        params = dict(site=site, max_depth=2, concurrency=4, timeout=5.0, robots=False, user_agent="TestAgent/1.0")
        params.update(overrides)
        return CrawlConfig(**params)

    return _make


async def crawl_lines(config: CrawlConfig, timeout: float = 15.0) -> List[str]:
    """Run a full crawl and return the emitted lines."""
    stream = io.StringIO()
    sink = Sink(config.site_url, stream=stream)
    async with AsyncCrawler(config, sink) as crawler:
        await asyncio.wait_for(crawler.crawl(), timeout=timeout)
    return stream.getvalue().splitlines()


@pytest.fixture()
def run_crawl() -> Callable[..., Awaitable[List[str]]]:
    return crawl_lines
