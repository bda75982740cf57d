# site_health/crawler/models.py
"""
Data models for the SiteHealth crawler.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class OutcomeKind(str, Enum):
    """Classification of one fetched URL."""

    HTML = "html"
    NON_HTML = "non_html"
    NOT_FOUND = "not_found"
    OTHER_ERROR = "other_error"
    TIMEOUT = "timeout"


@dataclass(frozen=True, slots=True)
class PageOutcome:
    """Result of fetching one URL. Only ``html`` outcomes carry a body."""

    kind: OutcomeKind
    url: str
    status: Optional[int] = None
    body: Optional[str] = None
    reason: str = ""

    @classmethod
    def html(cls, url: str, body: str, status: int = 200) -> PageOutcome:
        return cls(OutcomeKind.HTML, url, status, body)

    @classmethod
    def non_html(cls, url: str, status: int) -> PageOutcome:
        return cls(OutcomeKind.NON_HTML, url, status)

    @classmethod
    def not_found(cls, url: str) -> PageOutcome:
        return cls(OutcomeKind.NOT_FOUND, url, 404)

    @classmethod
    def other_error(cls, url: str, status: Optional[int] = None, reason: str = "") -> PageOutcome:
        return cls(OutcomeKind.OTHER_ERROR, url, status, reason=reason)

    @classmethod
    def timeout(cls, url: str) -> PageOutcome:
        return cls(OutcomeKind.TIMEOUT, url, reason="timeout")


@dataclass(frozen=True, slots=True)
class BrokenLink:
    """A same-origin link (``source`` page → ``target`` path) that resolved to a 404."""

    source: str
    target: str

    def as_tuple(self) -> Tuple[str, str]:
        return (self.source, self.target)


@dataclass(frozen=True, slots=True)
class CrawlProgress:
    """In-progress snapshot emitted while a domain is still being crawled."""

    site: str
    total_checked: int
    errors_404: int
    progress_percent: int


@dataclass(frozen=True, slots=True)
class SiteCrawlResult:
    """Final, immutable summary of one domain's crawl."""

    site: str
    total_checked: int
    errors_404: int
    errors_list: Tuple[str, ...] = ()
    broken_links: Tuple[BrokenLink, ...] = ()
    crawl_duration: float = 0.0
    scan_date: str = ""

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["errors_list"] = list(self.errors_list)
        data["broken_links"] = [asdict(b) for b in self.broken_links]
        return data


__all__ = [
    "OutcomeKind",
    "PageOutcome",
    "BrokenLink",
    "CrawlProgress",
    "SiteCrawlResult",
]
