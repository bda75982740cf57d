# site_health/crawler/orchestrator.py
"""
Runs one SiteCrawler per configured domain concurrently and merges the results.
"""
from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import AsyncIterator, List, Optional

from aiohttp import ClientSession, ClientTimeout

from site_health.aggregator import CrawlReport, build_report
from site_health.config import CrawlerConfig
from site_health.crawler.crawler import ProgressCallback, SiteCrawler
from site_health.crawler.fetcher import Fetcher
from site_health.crawler.models import SiteCrawlResult

__all__ = ("CrawlOrchestrator",)


class CrawlOrchestrator:
    """
    Fan-out over domains: one asyncio task per domain, one shared HTTP session.

    Usage::

        async with CrawlOrchestrator(config) as orchestrator:
            report = await orchestrator.run()
    """

    def __init__(
        self,
        config: CrawlerConfig,
        session: Optional[ClientSession] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        self.config = config
        self.session = session
        self.on_progress = on_progress
        self.logger = logging.getLogger("SiteHealth")
        self._owns_session = session is None
        self._semaphore: Optional[asyncio.Semaphore] = None

    async def __aenter__(self) -> CrawlOrchestrator:
        if self.session is None:
            self.session = ClientSession(
                timeout=ClientTimeout(total=self.config.timeout),
                headers={"User-Agent": self.config.user_agent},
                raise_for_status=False,
            )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._owns_session and self.session and not self.session.closed:
            await self.session.close()

    async def run(self) -> CrawlReport:
        """Crawl every domain and wait for all of them before building the report."""
        start = time.monotonic()
        self.logger.info("Starting parallel crawl on %d sites…", len(self.config.domains))
        tasks = self._spawn()
        try:
            results = await asyncio.gather(*tasks)
        finally:
            await self._cancel(tasks)
        report = build_report(results, total_duration=time.monotonic() - start)
        self.logger.info(
            "Crawl completed: %d pages, %d errors (%.2f s)",
            report.summary.total_checked, report.summary.total_errors, report.summary.total_duration,
        )
        return report

    async def stream(self) -> AsyncIterator[SiteCrawlResult]:
        """Yield each domain's result as soon as that domain is done."""
        tasks = self._spawn()
        try:
            for next_done in asyncio.as_completed(tasks):
                yield await next_done
        finally:
            await self._cancel(tasks)

    def _spawn(self) -> List[asyncio.Task[SiteCrawlResult]]:
        if self.session is None:
            raise RuntimeError("Session not initialized; use 'async with CrawlOrchestrator(...)'")
        if self.config.max_concurrent_sites:
            self._semaphore = asyncio.Semaphore(self.config.max_concurrent_sites)
        fetcher = Fetcher(self.session, self.config.timeout)
        return [
            asyncio.create_task(self._crawl_one(domain, fetcher), name=f"crawl:{domain}")
            for domain in self.config.domains
        ]

    async def _crawl_one(self, domain: str, fetcher: Fetcher) -> SiteCrawlResult:
        if self._semaphore is None:
            return await self._guarded_crawl(domain, fetcher)
        async with self._semaphore:
            return await self._guarded_crawl(domain, fetcher)

    async def _guarded_crawl(self, domain: str, fetcher: Fetcher) -> SiteCrawlResult:
        crawler = SiteCrawler(domain, fetcher, self.config, on_progress=self.on_progress)
        try:
            return await crawler.crawl()
        except Exception as exc:
            self.logger.error("Crawl of %s failed: %s", domain, exc)
            return SiteCrawlResult(
                site=domain,
                total_checked=0,
                errors_404=0,
                scan_date=datetime.now(timezone.utc).isoformat(timespec="seconds"),
            )

    @staticmethod
    async def _cancel(tasks: List[asyncio.Task[SiteCrawlResult]]) -> None:
        pending = [t for t in tasks if not t.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
