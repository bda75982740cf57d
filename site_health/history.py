# File: site_health/history.py
"""site_health.history: Append-only history of crawl runs stored in a JSON file.

Each run becomes one immutable :class:`HistoryRecord`; the store assigns the
run id and creation timestamp.  Records are what the evolution aggregator
(:mod:`site_health.evolution`) reads.
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from site_health.aggregator import CrawlReport

logger = logging.getLogger("SiteHealth")


class HistoryError(RuntimeError):
    """History file cannot be read or written."""


@dataclass(frozen=True, slots=True)
class SiteHistoryEntry:
    site: str
    total_checked: int
    errors_404: int
    errors_list: List[str] = field(default_factory=list)
    broken_links: List[Dict[str, str]] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class HistoryRecord:
    id: str
    scan_date: str
    total_sites: int
    total_pages_checked: int
    total_errors_404: int
    total_broken_links: int
    crawl_duration_seconds: float
    sites_results: List[SiteHistoryEntry]
    created_at: str

    @property
    def scanned_at(self) -> datetime:
        return parse_timestamp(self.scan_date)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> HistoryRecord:
        sites = [
            SiteHistoryEntry(
                site=s["site"],
                total_checked=int(s.get("total_checked", 0)),
                errors_404=int(s.get("errors_404", 0)),
                errors_list=list(s.get("errors_list", [])),
                broken_links=[dict(b) for b in s.get("broken_links", [])],
            )
            for s in data.get("sites_results", [])
        ]
        return cls(
            id=str(data["id"]),
            scan_date=str(data["scan_date"]),
            total_sites=int(data.get("total_sites", len(sites))),
            total_pages_checked=int(data.get("total_pages_checked", 0)),
            total_errors_404=int(data.get("total_errors_404", 0)),
            total_broken_links=int(data.get("total_broken_links", 0)),
            crawl_duration_seconds=float(data.get("crawl_duration_seconds", 0.0)),
            sites_results=sites,
            created_at=str(data.get("created_at", data["scan_date"])),
        )

    @classmethod
    def from_report(cls, report: CrawlReport) -> HistoryRecord:
        now = datetime.now(timezone.utc).isoformat(timespec="seconds")
        return cls(
            id=uuid.uuid4().hex,
            scan_date=report.timestamp or now,
            total_sites=report.summary.total_sites,
            total_pages_checked=report.summary.total_checked,
            total_errors_404=report.summary.total_errors,
            total_broken_links=report.summary.total_broken_links,
            crawl_duration_seconds=report.summary.total_duration,
            sites_results=[
                SiteHistoryEntry(
                    site=r.site,
                    total_checked=r.total_checked,
                    errors_404=r.errors_404,
                    errors_list=list(r.errors_list),
                    broken_links=[{"source": b.source, "target": b.target} for b in r.broken_links],
                )
                for r in report.results
            ],
            created_at=now,
        )


def parse_timestamp(value: str) -> datetime:
    """ISO-8601 → aware UTC datetime (naive values are taken as UTC)."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


class JsonHistoryStore:
    """One JSON array of records per file; every append rewrites the file."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def _read(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "[]")
        except (OSError, json.JSONDecodeError) as exc:
            raise HistoryError(f"Cannot read history file {self.path}: {exc}") from exc
        if not isinstance(data, list):
            raise HistoryError(f"History file {self.path} must contain a JSON array")
        return data

    def _write(self, rows: List[Dict[str, Any]]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp.write_text(json.dumps(rows, ensure_ascii=False, indent=2), encoding="utf-8")
            tmp.replace(self.path)
        except OSError as exc:
            raise HistoryError(f"Cannot write history file {self.path}: {exc}") from exc

    def append(self, report: CrawlReport) -> HistoryRecord:
        """Persist *report* as a new run and return the stored record."""
        record = HistoryRecord.from_report(report)
        rows = self._read()
        rows.append(record.to_dict())
        self._write(rows)
        logger.info("History recorded: run %s (%s)", record.id, self.path)
        return record

    def records(self, since: Optional[datetime] = None) -> List[HistoryRecord]:
        """All runs, oldest first; optionally only those scanned at or after *since*."""
        rows = self._read()
        try:
            records = [HistoryRecord.from_dict(row) for row in rows]
            if since is not None:
                records = [r for r in records if r.scanned_at >= since]
            return sorted(records, key=lambda r: r.scanned_at)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise HistoryError(f"Malformed record in {self.path}: {exc}") from exc

    def last(self) -> Optional[HistoryRecord]:
        records = self.records()
        return records[-1] if records else None

    def get(self, run_id: str) -> Optional[HistoryRecord]:
        for record in self.records():
            if record.id == run_id:
                return record
        return None


__all__ = [
    "HistoryError",
    "HistoryRecord",
    "SiteHistoryEntry",
    "JsonHistoryStore",
    "parse_timestamp",
]
