"""Pydantic models for site tasks, harvested cookies, and audit results."""

from __future__ import annotations

from typing import Any, Literal

import pydantic

from cookie_audit.utils import errors, serialization, url as url_mod


class SiteTask(pydantic.BaseModel):
    """A single site to audit, created once from the input list."""

    model_config = pydantic.ConfigDict(frozen=True)

    raw_input: str
    sequence_index: int

    @property
    def url(self) -> str:
        """The site URL with a scheme guaranteed."""
        return url_mod.normalize_url(self.raw_input)


class CookieRecord(pydantic.BaseModel):
    """A cookie as reported by the DevTools protocol.

    Optional fields the browser did not report stay ``None`` and are
    omitted from the serialized blob.
    """

    model_config = pydantic.ConfigDict(
        alias_generator=serialization.snake_to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    name: str
    value: str = ""
    domain: str = ""
    path: str = "/"
    expires: float | None = None
    http_only: bool = False
    secure: bool = False
    same_site: str | None = None
    session: bool = False
    size: int = 0
    priority: str | None = None
    source_scheme: str | None = None
    source_port: int | None = None

    @pydantic.field_validator("expires")
    @classmethod
    def _drop_session_expiry(cls, value: float | None) -> float | None:
        # DevTools reports session cookies with expires <= 0.
        if value is None or value <= 0:
            return None
        return value

    def to_blob_dict(self) -> dict[str, Any]:
        """Serialize with camelCase keys, dropping absent fields."""
        return self.model_dump(by_alias=True, exclude_none=True)


class AuditFailure(pydantic.BaseModel):
    """Error kind and message recorded for a failed site."""

    kind: str
    message: str


class AuditResult(pydantic.BaseModel):
    """The outcome of auditing one site.

    Either a success carrying classification fields, or an error whose
    classification fields are all empty and ``is_offending == "error"``.
    """

    model_config = pydantic.ConfigDict(frozen=True)

    site: str
    is_offending: bool | Literal["error"]
    offending_count: int = 0
    offending_names: tuple[str, ...] = ()
    offending_sizes: tuple[str, ...] = ()
    offending_total_size: int = 0
    verification_ok: bool | None = None
    verification_excerpt: str | None = None
    remediation: str = ""
    cookies: tuple[CookieRecord, ...] = ()
    error: AuditFailure | None = None

    @pydantic.model_validator(mode="after")
    def _check_error_shape(self) -> AuditResult:
        if self.error is not None:
            if self.is_offending != "error" or self.offending_count or self.offending_names or self.cookies:
                raise ValueError("error results must not carry classification fields")
        elif self.is_offending == "error":
            raise ValueError("is_offending='error' requires an error")
        return self

    @property
    def failed(self) -> bool:
        return self.error is not None

    @classmethod
    def from_exception(cls, site: str, exc: BaseException) -> AuditResult:
        """Build an error-kind result for *site* from *exc*."""
        return cls(
            site=site,
            is_offending="error",
            error=AuditFailure(kind=errors.error_kind(exc), message=errors.get_error_message(exc)),
        )
