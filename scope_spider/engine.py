# File: scope_spider/engine.py
"""scope_spider.engine: Запуск обхода и сборка сводного отчёта."""

from __future__ import annotations

from typing import Optional

from scope_spider.aggregator import CrawlReport, aggregate_results
from scope_spider.config import CrawlConfig
from scope_spider.crawler.crawler import AsyncCrawler
from scope_spider.logger import logger
from scope_spider.output import Sink

__all__ = ["start_crawl"]


async def start_crawl(cfg: CrawlConfig, sink: Optional[Sink] = None) -> CrawlReport:
    """
    Запускает AsyncCrawler в контексте и возвращает CrawlReport.

    Parameters
    ----------
    cfg : CrawlConfig
        Конфигурация обхода.
    sink : Sink, optional
        Получатель артефактов; по умолчанию создаётся из ``cfg``
        (stdout + ``cfg.output_dir``) и закрывается по завершении.

    Returns
    -------
    CrawlReport
        Все выведенные артефакты, сгруппированные по типу.
    """
    own_sink = sink is None
    if sink is None:
        sink = Sink(cfg.site_url, output_dir=cfg.output_dir, json_lines=cfg.json_lines)
    try:
        async with AsyncCrawler(cfg, sink) as crawler:
            artifacts = await crawler.crawl()
    finally:
        if own_sink:
            sink.close()
    if sink.path is not None:
        logger.info("Results saved to %s", sink.path)
    return aggregate_results(cfg.site_url, artifacts)
