"""
Logging utility with timestamps and timing support.
Provides structured, colourful console output for audit progress.
Optionally writes logs to a timestamped file when WRITE_TO_FILE is set.

Every line carries a full ISO-8601 UTC timestamp.  Colour output can
be disabled process-wide (``--no-color`` or the ``NO_COLOR`` env var),
in which case lines are emitted without ANSI escape codes.
"""

from __future__ import annotations

import io
import os
import pathlib
import re
import sys
import time
from datetime import UTC, datetime

_ANSI_RE = re.compile(r"\033\[[0-9;]*m")

# ============================================================================
# Process-wide state
# ============================================================================

_timers: dict[str, tuple[float, str]] = {}
_colour_enabled = not os.environ.get("NO_COLOR")
_log_file_stream: io.TextIOWrapper | None = None


def set_colour_enabled(enabled: bool) -> None:
    """Turn ANSI colour output on or off for every logger."""
    global _colour_enabled
    _colour_enabled = enabled


def is_colour_enabled() -> bool:
    """Return whether ANSI colour output is currently enabled."""
    return _colour_enabled


# ============================================================================
# File Logging
# ============================================================================

_write_to_file = os.environ.get("WRITE_TO_FILE", "").lower() == "true"


def start_log_file(label: str) -> str | None:
    """Start a new log file for an audit run.

    Only writes when ``WRITE_TO_FILE`` is enabled.

    Returns:
        The log file path, or ``None`` if skipped.
    """
    global _log_file_stream
    if not _write_to_file:
        return None

    end_log_file()

    logs_dir = pathlib.Path.cwd() / ".logs"
    logs_dir.mkdir(parents=True, exist_ok=True)

    safe_label = "".join(c if c.isalnum() or c in ".-" else "_" for c in label)[:50]
    now = datetime.now(UTC)
    timestamp = now.strftime("%Y-%m-%d_%H-%M-%S")
    log_file_path = str(logs_dir / f"{safe_label}_{timestamp}.log")

    try:
        stream = open(log_file_path, "a", encoding="utf-8")  # noqa: SIM115
    except OSError as exc:
        print(f"✗ [Logger] Failed to open log file: {exc}", file=sys.stderr)
        return None

    _log_file_stream = stream
    stream.write(f"\n{'=' * 80}\n  Audit Log - {label}\n  Started: {now.isoformat()}\n{'=' * 80}\n")
    print(f"ℹ [Logger] Writing logs to: {log_file_path}", file=sys.stderr)
    return log_file_path


def end_log_file() -> None:
    """Flush and close the current log file."""
    global _log_file_stream
    if _log_file_stream is not None:
        try:
            _log_file_stream.flush()
            _log_file_stream.close()
        except OSError:
            print("⚠ [Logger] Failed to flush/close log file stream", file=sys.stderr)
        _log_file_stream = None


def _write_to_log_file(line: str) -> None:
    """Write a line to the log file (without ANSI colours)."""
    if _log_file_stream is None:
        return
    _log_file_stream.write(_ANSI_RE.sub("", line) + "\n")
    _log_file_stream.flush()


# ============================================================================
# ANSI Colours
# ============================================================================

_colours = {
    "reset": "\033[0m",
    "bright": "\033[1m",
    "dim": "\033[2m",
    "cyan": "\033[36m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "red": "\033[31m",
    "magenta": "\033[35m",
    "blue": "\033[34m",
    "gray": "\033[90m",
}

_no_colours = {key: "" for key in _colours}

_level_colour = {
    "info": "cyan",
    "success": "green",
    "warn": "yellow",
    "error": "red",
    "debug": "gray",
    "timing": "magenta",
}

_level_symbol = {
    "info": "ℹ",
    "success": "✓",
    "warn": "⚠",
    "error": "✗",
    "debug": "•",
    "timing": "⏱",
}


def _palette() -> dict[str, str]:
    """Return the active colour table (empty codes when colour is off)."""
    return _colours if _colour_enabled else _no_colours


def _get_timestamp() -> str:
    """Return the current UTC time as an ISO-8601 string."""
    return datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


def format_duration(ms: float) -> str:
    """Format a duration in milliseconds for display."""
    if ms < 1000:
        return f"{int(ms)}ms"
    if ms < 60000:
        return f"{ms / 1000:.2f}s"
    minutes = int(ms // 60000)
    seconds = (ms % 60000) / 1000
    return f"{minutes}m {seconds:.1f}s"


def _format_value(value: object) -> str:
    """Return a (possibly coloured) representation of *value*."""
    c = _palette()
    if value is None:
        return f"{c['dim']}None{c['reset']}"
    if isinstance(value, bool):
        return f"{c['green']}True{c['reset']}" if value else f"{c['red']}False{c['reset']}"
    if isinstance(value, (int, float)):
        return f"{c['yellow']}{value}{c['reset']}"
    if isinstance(value, str):
        display = value[:497] + "..." if len(value) > 500 else value
        return f'{c["green"]}"{display}"{c["reset"]}'
    if isinstance(value, list):
        return f"{c['cyan']}[{len(value)} items]{c['reset']}"
    if isinstance(value, dict):
        return f"{c['cyan']}{{{len(value)} keys}}{c['reset']}"
    return str(value)


def _emit(line: str) -> None:
    print(line, file=sys.stderr, flush=True)
    _write_to_log_file(line)


# ============================================================================
# Logger Class
# ============================================================================


class Logger:
    """Structured logger with context prefix and timing support."""

    def __init__(self, context: str = "Audit") -> None:
        """Create a logger that prefixes messages with *context*."""
        self._context = context

    def _log(self, level: str, message: str, data: dict[str, object] | None = None) -> None:
        """Format and emit a log line at the given level."""
        ts = _get_timestamp()
        c = _palette()
        colour = c[_level_colour.get(level, "cyan")]
        symbol = _level_symbol.get(level, "ℹ")

        prefix = f"{c['gray']}[{ts}]{c['reset']} {colour}{symbol}{c['reset']} {c['bright']}[{self._context}]{c['reset']}"

        if data:
            data_str = " ".join(f"{c['dim']}{k}={c['reset']}{_format_value(v)}" for k, v in data.items())
            _emit(f"{prefix} {message} {data_str}")
        else:
            _emit(f"{prefix} {message}")

    def info(self, message: str, data: dict[str, object] | None = None) -> None:
        """Log an informational message."""
        self._log("info", message, data)

    def success(self, message: str, data: dict[str, object] | None = None) -> None:
        """Log a success message."""
        self._log("success", message, data)

    def warn(self, message: str, data: dict[str, object] | None = None) -> None:
        """Log a warning message."""
        self._log("warn", message, data)

    def error(self, message: str, data: dict[str, object] | None = None) -> None:
        """Log an error message."""
        self._log("error", message, data)

    def debug(self, message: str, data: dict[str, object] | None = None) -> None:
        """Log a debug-level message."""
        self._log("debug", message, data)

    def start_timer(self, label: str) -> None:
        """Start a named timer for performance measurement."""
        key = f"{self._context}:{label}"
        _timers[key] = (time.monotonic() * 1000, _get_timestamp())
        self._log("timing", f"Starting: {label}")

    def end_timer(self, label: str, message: str | None = None) -> float:
        """Stop a named timer and log the elapsed time."""
        key = f"{self._context}:{label}"
        entry = _timers.pop(key, None)
        if entry is None:
            self.warn(f'Timer "{label}" was not started')
            return 0.0

        start_ms, start_ts = entry
        duration = time.monotonic() * 1000 - start_ms
        c = _palette()
        duration_str = f"{c['magenta']}{format_duration(duration)}{c['reset']}"
        display_message = message or f"Completed: {label}"
        self._log(
            "timing",
            f"{display_message} {c['dim']}took{c['reset']} {duration_str} {c['dim']}(started {start_ts}){c['reset']}",
        )
        return duration

    def section(self, title: str) -> None:
        """Print a prominent section divider with *title*."""
        c = _palette()
        line = "─" * 60
        for ln in (
            "",
            f"{c['blue']}{line}{c['reset']}",
            f"{c['blue']}{c['bright']}  {title}{c['reset']}",
            f"{c['blue']}{line}{c['reset']}",
            "",
        ):
            _emit(ln)


def create_logger(context: str) -> Logger:
    """Create a logger for a specific module."""
    return Logger(context)
