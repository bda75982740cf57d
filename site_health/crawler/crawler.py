# === FILE: site_health/crawler/crawler.py ===
from __future__ import annotations

import logging
import time
from collections import deque
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Deque, Dict, List, Optional, Set

from site_health.config import CrawlerConfig
from site_health.crawler.fetcher import Fetcher
from site_health.crawler.link_extractor import (
    LinkPolicy,
    canonical_root,
    display_path,
    extract_links,
    normalize_link,
)
from site_health.crawler.models import (
    BrokenLink,
    CrawlProgress,
    OutcomeKind,
    PageOutcome,
    SiteCrawlResult,
)

__all__ = ("CrawlState", "SiteCrawler", "ProgressCallback")

ProgressCallback = Callable[[CrawlProgress], None]


class CrawlState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    DONE = "done"


class SiteCrawler:
    """
    Breadth-first crawl of one domain, one fetch at a time.

    Owns its frontier, visited set and the reverse map target → referring
    pages; all three are dropped once :meth:`crawl` returns.
    """

    def __init__(
        self,
        domain: str,
        fetcher: Fetcher,
        config: CrawlerConfig,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        self.domain = domain
        self.fetcher = fetcher
        self.config = config
        self.policy = LinkPolicy.from_config(config)
        self.on_progress = on_progress
        self.state = CrawlState.IDLE
        self.logger = logging.getLogger("SiteHealth")

        self._frontier: Deque[str] = deque()
        self._seen: Set[str] = set()
        self._visited: Set[str] = set()
        self._referrers: Dict[str, Dict[str, None]] = {}
        self._not_found: Set[str] = set()
        self._errors: List[str] = []
        self._broken: Dict[BrokenLink, None] = {}

    async def crawl(self) -> SiteCrawlResult:
        if self.state is not CrawlState.IDLE:
            raise RuntimeError(f"SiteCrawler for {self.domain} is {self.state.value}, not reusable")
        self.state = CrawlState.RUNNING
        self.logger.info("Crawling %s…", self.domain)
        start = time.monotonic()

        root = canonical_root(self.domain, self.config.scheme)
        self._enqueue(root)
        try:
            while self._frontier and len(self._visited) < self.config.max_pages:
                url = self._frontier.popleft()
                if url in self._visited:
                    continue
                self._visited.add(url)
                await self._visit(url)
                self._report_progress()
        finally:
            self.state = CrawlState.DONE

        duration = time.monotonic() - start
        result = SiteCrawlResult(
            site=self.domain,
            total_checked=len(self._visited),
            errors_404=len(self._errors),
            errors_list=tuple(self._errors[: self.config.max_errors_listed]),
            broken_links=tuple(self._broken),
            crawl_duration=round(duration, 3),
            scan_date=datetime.now(timezone.utc).isoformat(timespec="seconds"),
        )
        self.logger.info(
            "%s completed: %d pages, %d errors, %d broken links (%.2f s)",
            self.domain, result.total_checked, result.errors_404, len(result.broken_links), duration,
        )
        self._discard_state()
        return result

    async def _visit(self, url: str) -> None:
        try:
            outcome = await self.fetcher.fetch(url)
            self._handle(outcome)
        except Exception as exc:
            # CancelledError is a BaseException and still propagates
            self.logger.warning("Error processing %s: %s", url, exc)
            self._handle(PageOutcome.other_error(url, reason=str(exc)))

    def _handle(self, outcome: PageOutcome) -> None:
        if outcome.kind is OutcomeKind.NOT_FOUND:
            self._record_not_found(outcome.url)
        elif outcome.kind is OutcomeKind.HTML:
            self._follow_links(outcome.url, outcome.body or "")
        elif outcome.kind is OutcomeKind.TIMEOUT:
            self.logger.debug("Timeout: %s", outcome.url)
        elif outcome.kind is OutcomeKind.OTHER_ERROR:
            self.logger.debug("Skipped %s (%s)", outcome.url, outcome.reason)
        # NON_HTML: counted as visited, nothing to extract

    def _record_not_found(self, url: str) -> None:
        path = display_path(url)
        self._not_found.add(url)
        self._errors.append(path)
        self.logger.info("404 on %s: %s", self.domain, path)
        for source in self._referrers.get(url, ()):
            self._broken[BrokenLink(display_path(source), path)] = None

    def _follow_links(self, page_url: str, html: str) -> None:
        for href in extract_links(html):
            link = normalize_link(href, page_url, self.domain, self.policy)
            if link is None or link == page_url:
                continue
            self._referrers.setdefault(link, {})[page_url] = None
            if link in self._not_found:
                self._broken[BrokenLink(display_path(page_url), display_path(link))] = None
            self._enqueue(link)

    def _enqueue(self, url: str) -> None:
        if url in self._seen:
            return
        self._seen.add(url)
        self._frontier.append(url)

    def _report_progress(self) -> None:
        if self.on_progress is None:
            return
        count = len(self._visited)
        if count % self.config.progress_every:
            return
        percent = min(round(count / self.config.max_pages * 100), 100)
        try:
            self.on_progress(CrawlProgress(self.domain, count, len(self._errors), percent))
        except Exception as exc:
            self.logger.warning("Progress callback failed for %s: %s", self.domain, exc)

    def _discard_state(self) -> None:
        self._frontier.clear()
        self._seen.clear()
        self._visited.clear()
        self._referrers.clear()
        self._not_found.clear()
