# File: site_health/aggregator.py
"""site_health.aggregator: Сводный отчёт по одному запуску обхода."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from site_health.crawler.models import BrokenLink, SiteCrawlResult


@dataclass(frozen=True, slots=True)
class CrawlSummary:
    """Итоги по всем доменам запуска."""

    total_sites: int = 0
    total_checked: int = 0
    total_errors: int = 0
    total_broken_links: int = 0
    total_duration: float = 0.0


@dataclass(frozen=True, slots=True)
class CrawlReport:
    """Результат одного запуска: по одному SiteCrawlResult на домен и сводка."""

    results: Tuple[SiteCrawlResult, ...] = ()
    summary: CrawlSummary = field(default_factory=CrawlSummary)
    timestamp: str = ""

    def site(self, domain: str) -> Optional[SiteCrawlResult]:
        """Результат для домена или None."""
        for result in self.results:
            if result.site == domain:
                return result
        return None

    def broken_links(self) -> List[Tuple[str, BrokenLink]]:
        """Все битые ссылки запуска в виде пар (домен, ссылка)."""
        return [(r.site, link) for r in self.results for link in r.broken_links]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "results": [r.to_dict() for r in self.results],
            "summary": {
                "total_sites": self.summary.total_sites,
                "total_checked": self.summary.total_checked,
                "total_errors": self.summary.total_errors,
                "total_broken_links": self.summary.total_broken_links,
                "total_duration": self.summary.total_duration,
            },
            "timestamp": self.timestamp,
        }

    def json(self, *, pretty: bool = False) -> str:
        """Возвращает JSON-представление отчёта."""
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2 if pretty else None)


def summarize(results: Iterable[SiteCrawlResult], total_duration: float = 0.0) -> CrawlSummary:
    """Чистая свёртка по результатам доменов."""
    items = list(results)
    return CrawlSummary(
        total_sites=len(items),
        total_checked=sum(r.total_checked for r in items),
        total_errors=sum(r.errors_404 for r in items),
        total_broken_links=sum(len(r.broken_links) for r in items),
        total_duration=round(total_duration, 3),
    )


def build_report(
    results: Iterable[SiteCrawlResult],
    total_duration: float = 0.0,
    timestamp: Optional[str] = None,
) -> CrawlReport:
    """Собирает CrawlReport из завершённых результатов доменов."""
    items = tuple(results)
    return CrawlReport(
        results=items,
        summary=summarize(items, total_duration),
        timestamp=timestamp or datetime.now(timezone.utc).isoformat(timespec="seconds"),
    )


__all__ = ["CrawlSummary", "CrawlReport", "summarize", "build_report"]
