"""
Progress and outcome formatting for the console.
"""

from __future__ import annotations

import dataclasses

from cookie_audit.models import audit
from cookie_audit.utils import logger

STATUS_ICONS = {
    "ok": "✓",
    "offending": "⚠",
    "error": "✗",
}


def status_key(result: audit.AuditResult) -> str:
    """Bucket a result as ``ok``, ``offending`` or ``error``."""
    if result.failed:
        return "error"
    return "offending" if result.is_offending else "ok"


def status_of(result: audit.AuditResult) -> str:
    """Return the status text shown in progress lines."""
    key = status_key(result)
    if key == "offending":
        return f"offending={result.offending_count}"
    return key


def format_progress(completed: int, total: int, result: audit.AuditResult) -> str:
    """Format one ``(k/total) <site> <icon> <status>`` line."""
    icon = STATUS_ICONS[status_key(result)]
    return f"({completed}/{total}) {result.site} {icon} {status_of(result)}"


@dataclasses.dataclass
class Tally:
    """Per-status counts accumulated by the report sink."""

    ok: int = 0
    offending: int = 0
    error: int = 0

    def add(self, result: audit.AuditResult) -> None:
        key = status_key(result)
        setattr(self, key, getattr(self, key) + 1)

    @property
    def total(self) -> int:
        return self.ok + self.offending + self.error


def format_start(site_count: int, workers: int) -> str:
    plural = "" if site_count == 1 else "s"
    return f"Starting cookie audit for {site_count} site{plural} with {workers} worker{'' if workers == 1 else 's'}..."


def format_summary(tally: Tally, elapsed_ms: float, output_path: str) -> str:
    """Format the end-of-run summary line."""
    return (
        f"Scan complete in {logger.format_duration(elapsed_ms)}: "
        f"{tally.ok} ok, {tally.offending} offending, {tally.error} error. "
        f"Results written to {output_path}"
    )
