# File: site_health/engine.py
"""site_health.engine: Точка запуска обхода («run a crawl») и передача отчёта в историю."""

from __future__ import annotations

import asyncio
from typing import Optional

from site_health.aggregator import CrawlReport
from site_health.config import CrawlerConfig, load_config
from site_health.crawler.crawler import ProgressCallback
from site_health.crawler.orchestrator import CrawlOrchestrator
from site_health.history import HistoryRecord, JsonHistoryStore
from site_health.logger import logger

__all__ = ["Engine", "start_scan"]


async def start_scan(
    cfg: CrawlerConfig, on_progress: Optional[ProgressCallback] = None
) -> CrawlReport:
    """
    Запускает обход всех доменов конфигурации и возвращает CrawlReport.

    Parameters
    ----------
    cfg : CrawlerConfig
        Конфигурация обхода.
    on_progress : callable, optional
        Получает CrawlProgress каждые ``cfg.progress_every`` страниц домена.
    """
    async with CrawlOrchestrator(cfg, on_progress=on_progress) as orchestrator:
        return await orchestrator.run()


class Engine:
    """Фасад для CLI и тестов: загрузка конфига, запуск обхода и запись истории."""

    @staticmethod
    def load_config(path: Optional[str]) -> CrawlerConfig:
        """Загружает конфиг из YAML/JSON."""
        return load_config(path)

    def __init__(self, config: CrawlerConfig, store: Optional[JsonHistoryStore] = None) -> None:
        self.config = config
        if store is None and config.history_file:
            store = JsonHistoryStore(config.history_file)
        self.store = store
        self.last_record: Optional[HistoryRecord] = None

    def run(self, scan_timeout: Optional[float] = None, record: bool = True) -> CrawlReport:
        """
        Запускает обход; *scan_timeout* ограничивает весь запуск и отменяет все домены.
        При ``record=True`` и настроенном хранилище отчёт сохраняется в историю.
        """
        logger.info("Starting crawl…")
        try:
            if scan_timeout is not None:
                report = asyncio.run(asyncio.wait_for(start_scan(self.config), timeout=scan_timeout))
            else:
                report = asyncio.run(start_scan(self.config))
        except asyncio.TimeoutError:
            logger.error("Crawl did not finish within %s seconds", scan_timeout)
            raise
        except Exception as exc:
            logger.error("Crawl failed: %s", exc)
            raise

        if record and self.store is not None:
            self.last_record = self.store.append(report)
        return report
