"""
Per-site audit steps.

One call audits one site on an already-open session:
clear cookies, load the page, wait out the settle delay, harvest
and classify cookies, compute the remediation, then optionally ask
the CookieCutter page whether any deletable cookies remain.

Failures are not caught here; the worker pool wraps the whole call
in a single failure boundary per site.
"""

from __future__ import annotations

import dataclasses

from cookie_audit import config
from cookie_audit.analysis import cookie_classifier, remediation
from cookie_audit.browser import session as browser_session
from cookie_audit.models import audit
from cookie_audit.utils import logger

log = logger.create_logger("SiteAudit")


@dataclasses.dataclass(frozen=True)
class Verdict:
    """Outcome of the CookieCutter verification page check."""

    ok: bool
    excerpt: str


async def check_verification_page(session: browser_session.AuditSession) -> Verdict:
    """Load the verification page and look for the no-issues marker."""
    await session.navigate(config.VERIFICATION_URL)
    body = await session.page_body()
    if config.NO_ISSUES_MARKER in body:
        return Verdict(ok=True, excerpt=config.NO_ISSUES_MARKER)
    return Verdict(ok=False, excerpt=body[: config.EXCERPT_LIMIT])


def build_result(
    site: str,
    cookies: list[audit.CookieRecord],
    classifier: cookie_classifier.CookieClassifier,
    verdict: Verdict | None = None,
) -> audit.AuditResult:
    """Fold harvested cookies into an audit result for *site*."""
    offending = classifier.offending_cookies(cookies)
    names = sorted({cookie.name for cookie in offending})
    return audit.AuditResult(
        site=site,
        is_offending=bool(offending),
        offending_count=len(offending),
        offending_names=tuple(names),
        offending_sizes=tuple(f"{cookie.name}:{cookie.size}" for cookie in offending),
        offending_total_size=sum(cookie.size for cookie in offending),
        verification_ok=verdict.ok if verdict else None,
        verification_excerpt=verdict.excerpt if verdict else None,
        remediation=remediation.remediate(names, site, classifier.root_domain),
        cookies=tuple(cookies),
    )


async def audit_site(
    session: browser_session.AuditSession,
    task: audit.SiteTask,
    options: config.AuditOptions,
    classifier: cookie_classifier.CookieClassifier,
) -> audit.AuditResult:
    """Run every audit step for one site and return its result."""
    url = task.url
    await session.clear_cookies()
    await session.navigate(url)
    await session.wait_for_timeout(options.delay_seconds)

    cookies = await session.read_cookies()
    log.debug("Cookies harvested", {"site": url, "count": len(cookies)})

    result = build_result(url, cookies, classifier)
    if not options.verify:
        return result

    verdict = await check_verification_page(session)
    return result.model_copy(
        update={"verification_ok": verdict.ok, "verification_excerpt": verdict.excerpt}
    )
