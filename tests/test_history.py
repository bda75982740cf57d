# File: tests/test_history.py
from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest

from site_health.aggregator import build_report
from site_health.crawler.models import BrokenLink, SiteCrawlResult
from site_health.evolution import as_dicts, delta, evolution, latest_delta
from site_health.history import HistoryError, HistoryRecord, JsonHistoryStore

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def record(run_id, scan_date, errors=0, pages=100, duration=10.0, broken=0, sites=None):
    return HistoryRecord.from_dict(
        {
            "id": run_id,
            "scan_date": scan_date,
            "total_sites": len(sites or []),
            "total_pages_checked": pages,
            "total_errors_404": errors,
            "total_broken_links": broken,
            "crawl_duration_seconds": duration,
            "sites_results": sites or [],
        }
    )


def sample_report():
    result = SiteCrawlResult(
        site="example.com",
        total_checked=4,
        errors_404=1,
        errors_list=("/missing",),
        broken_links=(BrokenLink("/", "/missing"),),
        crawl_duration=1.5,
        scan_date="2026-10-19T10:00:00+00:00",
    )
    return build_report([result], total_duration=1.6, timestamp="2026-10-19T10:00:01+00:00")


def test_append_assigns_id_and_persists(tmp_path):
    store = JsonHistoryStore(tmp_path / "data" / "history.json")
    stored = store.append(sample_report())

    assert stored.id
    assert stored.created_at
    assert stored.total_pages_checked == 4
    assert stored.total_errors_404 == 1
    assert stored.total_broken_links == 1
    assert stored.sites_results[0].broken_links == [{"source": "/", "target": "/missing"}]

    rows = json.loads((tmp_path / "data" / "history.json").read_text(encoding="utf-8"))
    assert len(rows) == 1
    assert rows[0]["id"] == stored.id
    assert store.get(stored.id) == stored


def test_records_are_append_only_and_time_ordered(tmp_path):
    store = JsonHistoryStore(tmp_path / "history.json")
    first = store.append(sample_report())
    second = store.append(sample_report())
    assert first.id != second.id
    assert [r.id for r in store.records()] == [first.id, second.id]
    assert store.last().id == second.id


def test_records_since(tmp_path):
    path = tmp_path / "history.json"
    rows = [
        record("old", "2026-09-01T08:00:00Z").to_dict(),
        record("new", "2026-10-18T08:00:00Z").to_dict(),
    ]
    path.write_text(json.dumps(rows), encoding="utf-8")
    store = JsonHistoryStore(path)
    assert [r.id for r in store.records(since=datetime(2026, 10, 1, tzinfo=timezone.utc))] == ["new"]


def test_empty_store(tmp_path):
    store = JsonHistoryStore(tmp_path / "absent.json")
    assert store.records() == []
    assert store.last() is None


@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        '{"a": 1}',
        '[{"no_id": true}]',
        "[1]",
        '[{"id": "a", "scan_date": "2026-10-18T08:00:00Z"}, {"id": "b", "scan_date": "not-a-date"}]',
    ],
)
def test_corrupt_history_raises(tmp_path, content):
    path = tmp_path / "history.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(HistoryError):
        JsonHistoryStore(path).records()


def test_daily_evolution():
    records = [
        record("a", "2026-10-17T08:00:00Z", errors=4, pages=100, duration=10, broken=2),
        record("b", "2026-10-17T20:00:00Z", errors=2, pages=120, duration=20, broken=0),
        record("c", "2026-10-18T09:30:00Z", errors=7, pages=90, duration=5, broken=1),
        record("ancient", "2026-08-01T09:30:00Z", errors=99),
    ]
    points = evolution(records, days=30, mode="day", now=NOW)

    assert [p.date for p in points] == ["2026-10-17T00:00:00+00:00", "2026-10-18T00:00:00+00:00"]
    day = points[0]
    assert day.nb_scans == 2
    assert day.avg_errors_404 == 3
    assert day.min_errors_404 == 2
    assert day.max_errors_404 == 4
    assert day.avg_pages_checked == 110
    assert day.avg_broken_links == 1
    assert day.avg_duration_seconds == 15
    assert points[1].nb_scans == 1


def test_per_run_evolution_is_time_ordered():
    records = [
        record("late", "2026-10-18T09:30:00Z", errors=1),
        record("early", "2026-10-18T08:00:00Z", errors=3),
    ]
    points = evolution(records, days=7, mode="run", now=NOW)
    assert [p.max_errors_404 for p in points] == [3, 1]
    assert all(p.nb_scans == 1 for p in points)
    assert as_dicts(points)[0]["date"] == "2026-10-18T08:00:00+00:00"


def test_unknown_mode():
    with pytest.raises(ValueError):
        evolution([], mode="week")


def test_delta_between_runs():
    before = record(
        "r1",
        "2026-10-17T08:00:00Z",
        sites=[
            {"site": "a.fr", "total_checked": 10, "errors_404": 2, "errors_list": ["/x", "/y"],
             "broken_links": [{"source": "/", "target": "/x"}]},
            {"site": "b.fr", "total_checked": 5, "errors_404": 1, "errors_list": ["/old"]},
        ],
    )
    after = record(
        "r2",
        "2026-10-18T08:00:00Z",
        sites=[
            {"site": "a.fr", "total_checked": 10, "errors_404": 2, "errors_list": ["/y", "/z"],
             "broken_links": [{"source": "/", "target": "/x"}, {"source": "/blog", "target": "/z"}]},
            {"site": "b.fr", "total_checked": 5, "errors_404": 0},
        ],
    )
    result = delta(before, after)

    assert result.from_scan_id == "r1"
    assert result.to_scan_id == "r2"
    assert result.urls_404.gained == [("a.fr", "/z")]
    assert result.urls_404.lost == [("a.fr", "/x"), ("b.fr", "/old")]
    assert result.urls_404.persisting == 1
    by_site = {s.site: s for s in result.urls_404.by_site}
    assert (by_site["a.fr"].gained, by_site["a.fr"].lost, by_site["a.fr"].persisting) == (1, 1, 1)
    assert (by_site["b.fr"].gained, by_site["b.fr"].lost) == (0, 1)
    assert result.broken_links.gained == [("a.fr", "/blog", "/z")]
    assert result.broken_links.persisting == 1


def test_latest_delta_needs_two_runs():
    assert latest_delta([record("only", "2026-10-18T08:00:00Z")]) is None
    runs = [
        record("r3", "2026-10-19T08:00:00Z"),
        record("r1", "2026-10-17T08:00:00Z"),
        record("r2", "2026-10-18T08:00:00Z"),
    ]
    result = latest_delta(runs)
    assert (result.from_scan_id, result.to_scan_id) == ("r2", "r3")
