"""
Bounded worker pool that drains the site queue.

Each worker owns one browser session for its whole lifetime and reuses
it across every site it dequeues.  Workers pop sites without waiting:
the batch is known up front, so a worker that finds the queue empty
simply finishes.  Every site is attempted exactly once and produces
exactly one report row, either a normal result or an error row.

Report sink failures sit outside the per-site boundary.
They propagate out of the task group, which cancels the remaining
workers and aborts the run.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

from cookie_audit import config
from cookie_audit.analysis import cookie_classifier
from cookie_audit.browser import session as browser_session
from cookie_audit.models import audit
from cookie_audit.pipeline import report_sink, site_audit
from cookie_audit.utils import errors, logger

log = logger.create_logger("WorkerPool")


def pool_size(requested: int, site_count: int) -> int:
    """Clamp the worker count to at least one and at most one per site.

    An empty batch needs no workers at all.
    """
    if site_count <= 0:
        return 0
    return max(1, min(requested, site_count))


class AuditWorker:
    """A single worker: one session, many sites, one at a time."""

    def __init__(
        self,
        worker_id: int,
        queue: asyncio.Queue[audit.SiteTask],
        options: config.AuditOptions,
        sink: report_sink.ReportSink,
        open_session: browser_session.SessionFactory,
        classifier: cookie_classifier.CookieClassifier,
    ) -> None:
        self.worker_id = worker_id
        self.processed = 0
        self.sessions_opened = 0
        self._queue = queue
        self._options = options
        self._sink = sink
        self._open_session = open_session
        self._classifier = classifier
        self._session: browser_session.AuditSession | None = None

    async def run(self) -> None:
        """Audit sites until the queue is empty, then release the session."""
        try:
            while True:
                try:
                    task = self._queue.get_nowait()
                except asyncio.QueueEmpty:
                    break
                result = await self.audit(task)
                await self._sink.submit(result)
                self.processed += 1
        finally:
            await self._release_session()
        log.debug("Worker finished", {"worker": self.worker_id, "sites": self.processed})

    async def audit(self, task: audit.SiteTask) -> audit.AuditResult:
        """Audit one site inside a single failure boundary."""
        try:
            if self._session is None:
                self._session = await self._open_session()
                self.sessions_opened += 1
            return await site_audit.audit_site(self._session, task, self._options, self._classifier)
        except Exception as exc:
            log.debug(
                "Site audit failed",
                {"worker": self.worker_id, "site": task.url, "error": errors.get_error_message(exc)},
            )
            if self._session is not None and not self._session.is_alive():
                log.warn("Browser session lost, reopening for next site", {"worker": self.worker_id})
                await self._release_session()
            return audit.AuditResult.from_exception(task.url, exc)

    async def _release_session(self) -> None:
        session, self._session = self._session, None
        if session is None:
            return
        try:
            await session.close()
        except Exception as exc:
            log.debug("Session close error (non-fatal)", {"worker": self.worker_id, "error": str(exc)})


async def run_audit(
    tasks: Sequence[audit.SiteTask],
    options: config.AuditOptions,
    sink: report_sink.ReportSink,
    open_session: browser_session.SessionFactory,
    classifier: cookie_classifier.CookieClassifier,
) -> list[AuditWorker]:
    """Audit every task with a bounded pool of workers.

    Returns:
        The workers, for per-worker accounting once all have joined.
    """
    queue: asyncio.Queue[audit.SiteTask] = asyncio.Queue()
    for task in tasks:
        queue.put_nowait(task)

    if not tasks:
        return []
    workers = [
        AuditWorker(worker_id, queue, options, sink, open_session, classifier)
        for worker_id in range(1, pool_size(options.workers, len(tasks)) + 1)
    ]

    try:
        async with asyncio.TaskGroup() as group:
            for worker in workers:
                group.create_task(worker.run(), name=f"audit-worker-{worker.worker_id}")
    except ExceptionGroup as failures:
        # Surface the fatal error itself rather than the group wrapper.
        raise failures.exceptions[0]
    return workers
