# File: tests/conftest.py
from __future__ import annotations

from typing import Dict, List, Tuple

import pytest
import pytest_asyncio
from aiohttp import ClientSession, web
from sitekit import Page, build_site

from site_health.config import CrawlerConfig
from site_health.crawler.crawler import SiteCrawler
from site_health.crawler.fetcher import Fetcher


@pytest_asyncio.fixture
async def site_factory(unused_tcp_port_factory):
    """
    Start synthetic sites on free ports.
    ``await site_factory(pages)`` returns ``("127.0.0.1:<port>", hits)``.
    """
    runners: List[web.AppRunner] = []

    async def _start(pages: Dict[str, Page]) -> Tuple[str, List[str]]:
        hits: List[str] = []
        runner = web.AppRunner(build_site(pages, hits))
        await runner.setup()
        port = unused_tcp_port_factory()
        await web.TCPSite(runner, "127.0.0.1", port).start()
        runners.append(runner)
        return f"127.0.0.1:{port}", hits

    yield _start
    for runner in runners:
        await runner.cleanup()


@pytest.fixture()
def make_config():
    """Config factory for local synthetic sites (plain http, no history file)."""

    def _make(*domains: str, **overrides) -> CrawlerConfig:
        params = dict(domains=list(domains), scheme="http", timeout=2.0, history_file=None)
        params.update(overrides)
        return CrawlerConfig(**params)

    return _make


@pytest.fixture()
def crawl_domain():
    """Run one SiteCrawler over the first configured domain with a fresh session."""

    async def _crawl(config: CrawlerConfig, on_progress=None):
        async with ClientSession() as session:
            crawler = SiteCrawler(
                config.domains[0], Fetcher(session, config.timeout), config, on_progress=on_progress
            )
            return await crawler.crawl()

    return _crawl
