# File: site_health/evolution.py
"""site_health.evolution: Тренды по истории запусков.

* :func:`evolution`: временной ряд по дням или по отдельным запускам.
* :func:`delta`: какие 404 и битые ссылки появились/исчезли между двумя запусками.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Literal, Optional, Sequence, Set, Tuple

from site_health.history import HistoryRecord

BucketMode = Literal["day", "run"]


@dataclass(frozen=True, slots=True)
class EvolutionPoint:
    date: str
    nb_scans: int
    avg_pages_checked: float
    avg_errors_404: float
    min_errors_404: int
    max_errors_404: int
    avg_broken_links: float
    avg_duration_seconds: float


@dataclass(frozen=True, slots=True)
class SiteDelta:
    site: str
    gained: int
    lost: int
    persisting: int


@dataclass(frozen=True, slots=True)
class SetDelta:
    """Разница двух множеств записей вида (site, ...)."""

    gained: List[Tuple[str, ...]] = field(default_factory=list)
    lost: List[Tuple[str, ...]] = field(default_factory=list)
    persisting: int = 0
    by_site: List[SiteDelta] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class RunDelta:
    from_scan_id: str
    to_scan_id: str
    urls_404: SetDelta
    broken_links: SetDelta


def _day_key(record: HistoryRecord) -> str:
    scanned = record.scanned_at
    return datetime(scanned.year, scanned.month, scanned.day, tzinfo=timezone.utc).isoformat()


def _point(date: str, records: Sequence[HistoryRecord]) -> EvolutionPoint:
    count = len(records)
    errors = [r.total_errors_404 for r in records]
    return EvolutionPoint(
        date=date,
        nb_scans=count,
        avg_pages_checked=round(sum(r.total_pages_checked for r in records) / count, 2),
        avg_errors_404=round(sum(errors) / count, 2),
        min_errors_404=min(errors),
        max_errors_404=max(errors),
        avg_broken_links=round(sum(r.total_broken_links for r in records) / count, 2),
        avg_duration_seconds=round(sum(r.crawl_duration_seconds for r in records) / count, 2),
    )


def evolution(
    records: Iterable[HistoryRecord],
    days: int = 30,
    mode: BucketMode = "day",
    now: Optional[datetime] = None,
) -> List[EvolutionPoint]:
    """Группирует запуски за последние *days* дней; результат упорядочен по времени."""
    if mode not in ("day", "run"):
        raise ValueError(f"Unknown bucketing mode: {mode!r}")
    now = now or datetime.now(timezone.utc)
    cutoff = now - timedelta(days=days)
    window = sorted((r for r in records if r.scanned_at >= cutoff), key=lambda r: r.scanned_at)

    if mode == "run":
        return [_point(r.scanned_at.isoformat(), [r]) for r in window]

    buckets: "OrderedDict[str, List[HistoryRecord]]" = OrderedDict()
    for record in window:
        buckets.setdefault(_day_key(record), []).append(record)
    return [_point(date, items) for date, items in buckets.items()]


def _set_delta(before: Set[Tuple[str, ...]], after: Set[Tuple[str, ...]]) -> SetDelta:
    sites = sorted({item[0] for item in before | after})
    by_site = [
        SiteDelta(
            site=site,
            gained=sum(1 for i in after - before if i[0] == site),
            lost=sum(1 for i in before - after if i[0] == site),
            persisting=sum(1 for i in after & before if i[0] == site),
        )
        for site in sites
    ]
    return SetDelta(
        gained=sorted(after - before),
        lost=sorted(before - after),
        persisting=len(after & before),
        by_site=by_site,
    )


def _urls_404(record: HistoryRecord) -> Set[Tuple[str, ...]]:
    return {(s.site, path) for s in record.sites_results for path in s.errors_list}


def _broken(record: HistoryRecord) -> Set[Tuple[str, ...]]:
    return {
        (s.site, link["source"], link["target"])
        for s in record.sites_results
        for link in s.broken_links
    }


def delta(from_record: HistoryRecord, to_record: HistoryRecord) -> RunDelta:
    """Сравнивает два запуска по спискам 404 и по битым ссылкам."""
    return RunDelta(
        from_scan_id=from_record.id,
        to_scan_id=to_record.id,
        urls_404=_set_delta(_urls_404(from_record), _urls_404(to_record)),
        broken_links=_set_delta(_broken(from_record), _broken(to_record)),
    )


def latest_delta(records: Sequence[HistoryRecord]) -> Optional[RunDelta]:
    """Delta между двумя последними запусками или None, если их меньше двух."""
    ordered = sorted(records, key=lambda r: r.scanned_at)
    if len(ordered) < 2:
        return None
    return delta(ordered[-2], ordered[-1])


def as_dicts(points: Iterable[EvolutionPoint]) -> List[Dict[str, object]]:
    return [asdict(p) for p in points]


__all__ = [
    "BucketMode",
    "EvolutionPoint",
    "SetDelta",
    "SiteDelta",
    "RunDelta",
    "evolution",
    "delta",
    "latest_delta",
    "as_dicts",
]
