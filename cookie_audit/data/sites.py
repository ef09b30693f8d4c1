"""
Site list loading.

The input is line-oriented: one host or URL per line.  Blank lines
and lines starting with ``#`` are skipped.
"""

from __future__ import annotations

import pathlib
from collections.abc import Iterable

from cookie_audit.models import audit
from cookie_audit.utils import errors

COMMENT_MARKER = "#"


def parse_sites(lines: Iterable[str]) -> list[audit.SiteTask]:
    """Turn raw input lines into ordered site tasks."""
    kept = (line.strip() for line in lines)
    sites = [line for line in kept if line and not line.startswith(COMMENT_MARKER)]
    return [audit.SiteTask(raw_input=raw, sequence_index=index) for index, raw in enumerate(sites)]


def load_sites(path: str | pathlib.Path) -> list[audit.SiteTask]:
    """Read and parse the site list at *path*.

    Raises:
        InputError: If the file does not exist or cannot be read.
    """
    site_path = pathlib.Path(path)
    if not site_path.is_file():
        raise errors.InputError(f"Site list not found: {site_path}")
    try:
        text = site_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise errors.InputError(f"Cannot read site list {site_path}: {exc}") from exc
    return parse_sites(text.splitlines())
