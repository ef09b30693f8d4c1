"""
Command-line entry point for the cookie audit.

Loads the site list, opens the report, runs the worker pool, and
prints the summary.  Input and report errors are fatal and exit
with status 1; per-site failures only produce error rows.
"""

from __future__ import annotations

import argparse
import asyncio
from collections.abc import Sequence

import dotenv
import pydantic

from cookie_audit import config
from cookie_audit.analysis import cookie_classifier
from cookie_audit.browser import session as browser_session
from cookie_audit.data import sites
from cookie_audit.models import audit
from cookie_audit.pipeline import progress, report_sink, worker_pool
from cookie_audit.utils import errors, logger

log = logger.create_logger("Audit")

_DEFAULTS = config.AuditOptions()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cookie-audit",
        description="Audit sites for tracking cookies scoped to the institution-wide domain.",
    )
    parser.add_argument("--sites", dest="input_path", default=_DEFAULTS.input_path,
                        help="Text file of sites (one URI per line)")
    parser.add_argument("--output", dest="output_path", default=_DEFAULTS.output_path,
                        help="CSV output file")
    parser.add_argument("--delay", dest="delay_seconds", type=float, default=_DEFAULTS.delay_seconds,
                        help="Seconds to wait after page load")
    parser.add_argument("--timeout", dest="timeout_seconds", type=float, default=_DEFAULTS.timeout_seconds,
                        help="Navigation timeout in seconds")
    parser.add_argument("--headful", dest="headless", action="store_false",
                        help="Run with a visible window")
    parser.add_argument("--no-verify-cookiecutter", dest="verify", action="store_false",
                        help="Skip post-visit CookieCutter verdict check")
    parser.add_argument("--separator", choices=list(config.SEPARATORS), default=_DEFAULTS.separator,
                        help="Cell joiner: newline (default), comma, pipe")
    parser.add_argument("--no-color", dest="color", action="store_false",
                        help="Disable coloured console output")
    parser.add_argument("--workers", type=int, default=_DEFAULTS.workers,
                        help="Number of concurrent browser sessions (minimum 1)")
    return parser


def parse_options(argv: Sequence[str] | None = None) -> config.AuditOptions:
    """Parse command-line arguments into validated audit options."""
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return config.AuditOptions(**vars(args))
    except pydantic.ValidationError as exc:
        parser.error(str(exc))
        raise  # parser.error exits


async def run(
    tasks: list[audit.SiteTask],
    options: config.AuditOptions,
    settings: config.AuditSettings,
) -> progress.Tally:
    """Audit *tasks* and write the report; return per-status counts."""
    classifier = cookie_classifier.CookieClassifier(root_domain=settings.root_domain)
    open_session = browser_session.session_factory(options, browser_session.resolve_browser_path(settings))

    log.info(progress.format_start(len(tasks), worker_pool.pool_size(options.workers, len(tasks))))
    log.start_timer("audit")
    async with report_sink.ReportSink(options.output_path, options.joiner, len(tasks)) as sink:
        await worker_pool.run_audit(tasks, options, sink, open_session, classifier)
    elapsed = log.end_timer("audit", "Audit finished")
    log.success(progress.format_summary(sink.tally, elapsed, options.output_path))
    return sink.tally


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for the ``cookie-audit`` console script."""
    dotenv.load_dotenv()
    settings = config.AuditSettings()
    options = parse_options(argv)
    logger.set_colour_enabled(options.color and not settings.no_color)
    logger.start_log_file("audit")

    try:
        try:
            tasks = sites.load_sites(options.input_path)
        except errors.InputError as exc:
            log.error("Cannot load site list", {"error": errors.get_error_message(exc)})
            return 1

        try:
            asyncio.run(run(tasks, options, settings))
        except errors.ReportSinkError as exc:
            log.error(
                "Report write failed; the report is incomplete",
                {"output": options.output_path, "error": errors.get_error_message(exc)},
            )
            return 1
        return 0
    finally:
        logger.end_log_file()


if __name__ == "__main__":
    raise SystemExit(main())
