"""Tests for cookie_audit.pipeline.worker_pool — queue draining, isolation and row accounting."""

from __future__ import annotations

import asyncio
import csv
import json
import pathlib

import pytest

from cookie_audit import config
from cookie_audit.analysis.cookie_classifier import CookieClassifier
from cookie_audit.data.sites import parse_sites
from cookie_audit.models.audit import CookieRecord, SiteTask
from cookie_audit.pipeline import worker_pool
from cookie_audit.pipeline.report_sink import HEADER, ReportSink
from cookie_audit.utils.errors import ReportSinkError

from fakes import FakeBrowser

_SITES = [f"site{i}.umn.edu" for i in range(7)]


def _run(
    tasks: list[SiteTask],
    options: config.AuditOptions,
    browser: FakeBrowser,
    path: pathlib.Path,
) -> tuple[list[worker_pool.AuditWorker], ReportSink]:
    async def scenario():
        async with ReportSink(path, options.joiner, len(tasks)) as sink:
            workers = await worker_pool.run_audit(tasks, options, sink, browser.open, CookieClassifier())
        return workers, sink

    return asyncio.run(scenario())


def _rows(path: pathlib.Path) -> list[list[str]]:
    with open(path, newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f))
    assert rows[0] == HEADER
    return rows[1:]


class TestPoolSize:
    @pytest.mark.parametrize(
        ("requested", "sites", "expected"),
        [(3, 10, 3), (0, 10, 1), (-2, 10, 1), (8, 3, 3), (1, 1, 1), (4, 0, 0)],
    )
    def test_clamping(self, requested: int, sites: int, expected: int) -> None:
        assert worker_pool.pool_size(requested, sites) == expected


class TestRunAudit:
    """Tests for run_audit()."""

    @pytest.mark.parametrize("workers", [1, 2, 3, 7])
    def test_one_row_per_site_regardless_of_pool_size(self, tmp_path: pathlib.Path, workers: int) -> None:
        tasks = parse_sites(_SITES)
        options = config.AuditOptions(delay_seconds=0, workers=workers)
        browser = FakeBrowser()
        path = tmp_path / "report.csv"

        ran, sink = _run(tasks, options, browser, path)

        rows = _rows(path)
        assert len(rows) == len(tasks)
        assert sorted(row[0] for row in rows) == sorted(t.url for t in tasks)
        assert all(len(row) == len(HEADER) for row in rows)
        assert sink.completed == len(tasks)
        assert len(ran) == workers
        assert sum(w.processed for w in ran) == len(tasks)

    def test_each_worker_reuses_one_session(self, tmp_path: pathlib.Path) -> None:
        browser = FakeBrowser()
        options = config.AuditOptions(delay_seconds=0, workers=3, verify=False)

        ran, _ = _run(parse_sites(_SITES), options, browser, tmp_path / "report.csv")

        assert len(browser.sessions) == 3
        assert all(w.sessions_opened == 1 for w in ran)
        assert all(s.closed for s in browser.sessions)
        assert sum(s.cleared for s in browser.sessions) == len(_SITES)

    def test_failure_is_isolated(self, tmp_path: pathlib.Path, ga_cookie: CookieRecord) -> None:
        tasks = parse_sites(_SITES)
        bad = tasks[2].url
        browser = FakeBrowser(
            cookies_by_url={t.url: [ga_cookie] for t in tasks},
            failing_urls={bad},
        )
        options = config.AuditOptions(delay_seconds=0, workers=2)

        _, sink = _run(tasks, options, browser, tmp_path / "report.csv")

        rows = {row[0]: row for row in _rows(tmp_path / "report.csv")}
        assert rows[bad][1] == "error"
        assert json.loads(rows[bad][9])["error"] == "NavigationError"
        assert all(row[1] == "yes" for site, row in rows.items() if site != bad)
        assert (sink.tally.offending, sink.tally.error) == (len(tasks) - 1, 1)
        # The failed site does not cost the worker its session.
        assert len(browser.sessions) == 2

    def test_lost_session_is_reopened(self, tmp_path: pathlib.Path) -> None:
        tasks = parse_sites(["a.umn.edu", "b.umn.edu", "c.umn.edu"])
        browser = FakeBrowser(crashing_urls={tasks[0].url})
        options = config.AuditOptions(delay_seconds=0, workers=1, verify=False)

        ran, sink = _run(tasks, options, browser, tmp_path / "report.csv")

        assert ran[0].sessions_opened == 2
        assert browser.sessions[0].closed is True
        assert browser.sessions[1].visited == [tasks[1].url, tasks[2].url]
        assert (sink.tally.error, sink.tally.ok) == (1, 2)

    def test_session_open_failure_becomes_error_row(self, tmp_path: pathlib.Path) -> None:
        tasks = parse_sites(["a.umn.edu", "b.umn.edu"])
        browser = FakeBrowser(fail_opens=1)
        options = config.AuditOptions(delay_seconds=0, workers=1)

        _, sink = _run(tasks, options, browser, tmp_path / "report.csv")

        rows = _rows(tmp_path / "report.csv")
        assert [row[1] for row in rows] == ["error", "no"]
        assert json.loads(rows[0][9]) == {"error": "RuntimeError", "message": "Failed to launch browser"}
        assert sink.completed == 2

    def test_malformed_url_is_per_site(self, tmp_path: pathlib.Path) -> None:
        tasks = parse_sites(["https://", "a.umn.edu"])
        options = config.AuditOptions(delay_seconds=0, workers=1, verify=False)

        _run(tasks, options, FakeBrowser(), tmp_path / "report.csv")

        rows = _rows(tmp_path / "report.csv")
        assert [row[1] for row in rows] == ["error", "no"]
        assert json.loads(rows[0][9])["error"] == "MalformedUrlError"

    def test_empty_task_list(self, tmp_path: pathlib.Path) -> None:
        browser = FakeBrowser()
        ran, sink = _run([], config.AuditOptions(delay_seconds=0), browser, tmp_path / "report.csv")
        assert ran == []
        assert browser.sessions == []
        assert _rows(tmp_path / "report.csv") == []

    def test_sink_failure_aborts_run(self, tmp_path: pathlib.Path) -> None:
        tasks = parse_sites(_SITES)
        browser = FakeBrowser()
        options = config.AuditOptions(delay_seconds=0, workers=2)
        sink = ReportSink(tmp_path / "report.csv", options.joiner, len(tasks))

        async def scenario() -> None:
            # Never opened: every submit fails.
            await worker_pool.run_audit(tasks, options, sink, browser.open, CookieClassifier())

        with pytest.raises(ReportSinkError):
            asyncio.run(scenario())
        assert all(s.closed for s in browser.sessions)

    def test_settle_delay_overlaps_across_workers(self, tmp_path: pathlib.Path) -> None:
        tasks = parse_sites(["a.umn.edu", "b.umn.edu", "c.umn.edu", "d.umn.edu"])
        options = config.AuditOptions(delay_seconds=0.2, workers=4, verify=False)

        async def scenario() -> float:
            loop = asyncio.get_running_loop()
            start = loop.time()
            async with ReportSink(tmp_path / "report.csv", "\n", len(tasks)) as sink:
                await worker_pool.run_audit(tasks, options, sink, FakeBrowser().open, CookieClassifier())
            return loop.time() - start

        # Four sequential delays would take 0.8s.
        assert asyncio.run(scenario()) < 0.6
