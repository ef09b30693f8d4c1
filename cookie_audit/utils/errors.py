"""
Error types and helpers for consistent error reporting.

Per-site errors (navigation, malformed URLs) are converted into
error rows by the worker pool.  Input and report sink errors are
fatal and abort the run.
"""


class AuditError(Exception):
    """Base class for all cookie audit errors."""


class InputError(AuditError):
    """The site list is missing or unreadable."""


class NavigationError(AuditError):
    """A page could not be loaded (timeout, DNS or TLS failure)."""


class MalformedUrlError(AuditError, ValueError):
    """A site URL could not be parsed or has no host."""


class ReportSinkError(AuditError):
    """A report row could not be written."""


def get_error_message(error: BaseException | object) -> str:
    """
    Safely extract an error message from an unknown error type.

    Falls back to the exception class name when the message is empty.
    """
    if isinstance(error, Exception):
        return str(error) or type(error).__name__
    return "Unknown error"


def error_kind(error: BaseException) -> str:
    """Return the short class name used as the error kind in reports."""
    return type(error).__name__
