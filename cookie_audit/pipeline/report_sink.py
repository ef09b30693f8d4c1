"""
CSV report sink shared by all audit workers.

Rows are appended in completion order.  Each ``submit`` writes one
row, flushes it, bumps the shared progress counter and logs the
progress line, all under one lock, so concurrent workers can never
interleave partial rows or skip a count.
"""

from __future__ import annotations

import asyncio
import csv
import io
import json
import pathlib
from types import TracebackType
from typing import Any

from cookie_audit.models import audit
from cookie_audit.pipeline import progress
from cookie_audit.utils import errors, logger

log = logger.create_logger("Report")

HEADER = [
    "site",
    "offending?",
    "offending_cookie_count",
    "offending_cookie_names",
    "offending_cookie_sizes",
    "offending_total_size",
    "verification_ok",
    "verification_excerpt",
    "remediation",
    "all_cookies_blob",
]


def _format_flag(value: bool | None) -> str:
    if value is None:
        return ""
    return "true" if value else "false"


def cookies_blob(result: audit.AuditResult) -> str:
    """Serialize the cookie list, or the error object for failed sites."""
    if result.error is not None:
        payload: object = {"error": result.error.kind, "message": result.error.message}
    else:
        payload = [cookie.to_blob_dict() for cookie in result.cookies]
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))


def to_row(result: audit.AuditResult, joiner: str) -> list[object]:
    """Flatten an audit result into one report row."""
    if result.failed:
        offending = "error"
    else:
        offending = "yes" if result.is_offending else "no"
    return [
        result.site,
        offending,
        result.offending_count,
        joiner.join(result.offending_names),
        joiner.join(result.offending_sizes),
        result.offending_total_size,
        _format_flag(result.verification_ok),
        result.verification_excerpt or "",
        result.remediation,
        cookies_blob(result),
    ]


class ReportSink:
    """Append-only CSV report with serialized writes and progress tracking."""

    def __init__(self, path: str | pathlib.Path, joiner: str, total: int) -> None:
        self._path = pathlib.Path(path)
        self._joiner = joiner
        self._total = total
        self._lock = asyncio.Lock()
        self._stream: io.TextIOWrapper | None = None
        self._writer: Any = None
        self._completed = 0
        self.tally = progress.Tally()

    @property
    def completed(self) -> int:
        return self._completed

    @property
    def path(self) -> pathlib.Path:
        return self._path

    # ==========================================================================
    # Lifecycle
    # ==========================================================================

    def open(self) -> None:
        """Create the report file and write the header row.

        Raises:
            ReportSinkError: If the file cannot be created or written.
        """
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._stream = open(self._path, "w", newline="", encoding="utf-8")  # noqa: SIM115
            self._writer = csv.writer(self._stream)
            self._writer.writerow(HEADER)
            self._stream.flush()
        except (OSError, csv.Error) as exc:
            raise errors.ReportSinkError(f"Cannot open report {self._path}: {exc}") from exc

    def close(self) -> None:
        if self._stream is not None:
            try:
                self._stream.close()
            except OSError as exc:
                raise errors.ReportSinkError(f"Cannot close report {self._path}: {exc}") from exc
            finally:
                self._stream = None
                self._writer = None

    async def __aenter__(self) -> ReportSink:
        self.open()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    # ==========================================================================
    # Submission
    # ==========================================================================

    async def submit(self, result: audit.AuditResult) -> int:
        """Write one result row and record its completion.

        Returns:
            The completion count after this row.

        Raises:
            ReportSinkError: If the row cannot be encoded or written.
        """
        async with self._lock:
            if self._writer is None or self._stream is None:
                raise errors.ReportSinkError("Report sink is not open")
            try:
                self._writer.writerow(to_row(result, self._joiner))
                self._stream.flush()
            except (OSError, UnicodeError, csv.Error) as exc:
                raise errors.ReportSinkError(f"Cannot write row for {result.site}: {exc}") from exc

            self._completed += 1
            self.tally.add(result)
            line = progress.format_progress(self._completed, self._total, result)
            if result.failed:
                log.error(line, {"error": result.error.message if result.error else None})
            elif result.is_offending:
                log.warn(line)
            else:
                log.success(line)
            return self._completed
