"""
Audit configuration.

Centralises environment variable names, default values, and the
run options assembled from the command line.

Uses ``pydantic_settings.BaseSettings`` for automatic environment
variable binding, and a plain ``pydantic.BaseModel`` for the
per-run options so values are validated in one place.
"""

from __future__ import annotations

from typing import Literal

import pydantic
import pydantic_settings

from cookie_audit.analysis import tracker_patterns

# ── Verification page ───────────────────────────────────────────────
VERIFICATION_URL = "https://apps.lib.umn.edu/cookiecutter/"
NO_ISSUES_MARKER = "No cookies were found that are eligible for deletion."
EXCERPT_LIMIT = 4000

# ── Browser ─────────────────────────────────────────────────────────
DEFAULT_BROWSER_PATH = "/usr/bin/chromium"

Separator = Literal["newline", "comma", "pipe"]

SEPARATORS: dict[str, str] = {
    "newline": "\n",
    "comma": ", ",
    "pipe": "|",
}


class AuditSettings(pydantic_settings.BaseSettings):
    """Process-environment configuration.

    Attributes:
        browser_path: Override path to the Chromium executable.
        no_color: Disable ANSI colours when set to any value.
        root_domain: Institution-wide domain cookies must not be scoped to.
    """

    model_config = pydantic_settings.SettingsConfigDict(extra="ignore")

    browser_path: str = pydantic.Field(default="", validation_alias="BROWSER_PATH")
    no_color: str = pydantic.Field(default="", validation_alias="NO_COLOR")
    root_domain: str = pydantic.Field(
        default=tracker_patterns.DEFAULT_ROOT_DOMAIN,
        validation_alias="COOKIE_AUDIT_ROOT_DOMAIN",
    )


class AuditOptions(pydantic.BaseModel):
    """Options for a single audit run."""

    input_path: str = "/data/sites.txt"
    output_path: str = "/data/report.csv"
    delay_seconds: float = 4
    timeout_seconds: float = 25
    headless: bool = True
    verify: bool = True
    separator: Separator = "newline"
    color: bool = True
    workers: int = 3

    @pydantic.field_validator("workers")
    @classmethod
    def _clamp_workers(cls, value: int) -> int:
        return max(value, 1)

    @pydantic.field_validator("delay_seconds", "timeout_seconds")
    @classmethod
    def _non_negative(cls, value: float) -> float:
        if value < 0:
            raise ValueError("must not be negative")
        return value

    @property
    def joiner(self) -> str:
        """The string used to join multi-value report cells."""
        return SEPARATORS[self.separator]

    @property
    def timeout_ms(self) -> int:
        return int(self.timeout_seconds * 1000)
