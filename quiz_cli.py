#!/usr/bin/env python3
"""
Run the homeowner lead quiz in a terminal.
Walks the same steps as the landing page and submits the lead to both sinks.
"""

import json
import logging
import sys
import time

from rich.console import Console
from rich.logging import RichHandler
from rich.prompt import Prompt

import settings
from lead_submitter import SubmissionResult, build_payload
from quiz_flow import TERMINAL_STEP, QuizSession, VariantStore
from sinks import SinkResult

log = logging.getLogger("quiz_cli")
console = Console()


def _dry_run_submitter(record, *, variant: str, page_url: str) -> SubmissionResult:
    payload = build_payload(record, variant=variant, page_url=page_url)
    log.info("DRY_RUN payload %s", json.dumps(payload))
    skipped = SinkResult("dry_run", True)
    return SubmissionResult(True, payload, skipped, skipped, message="dry run")


def _render(session: QuizSession) -> None:
    console.rule(f"[bold]{session.title}[/bold]  [dim]{session.progress}%[/dim]")


def run(session: QuizSession) -> int:
    _render(session)
    answer = Prompt.ask("Homeowner?", choices=["yes", "no"])
    outcome = session.answer_homeowner(answer)
    if outcome.alert:
        console.print(f"[yellow]{outcome.alert}[/yellow]")
        return 1
    time.sleep(outcome.delay)

    while session.current_step != TERMINAL_STEP:
        _render(session)
        value = Prompt.ask(session.placeholder or "")
        outcome = session.advance(value)
        if outcome.error:
            console.print(f"[red]{outcome.error}[/red]")
            if outcome.submission is not None:
                log.debug(
                    "sheet=%s automation=%s",
                    outcome.submission.sheet,
                    outcome.submission.automation,
                )
            time.sleep(outcome.flash_seconds)

    _render(session)
    console.print("[green]Thanks! A specialist will reach out shortly.[/green]")
    return 0


def main() -> int:
    import argparse, textwrap

    ap = argparse.ArgumentParser(
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description=textwrap.dedent(
            """\
            Homeowner lead quiz in the terminal.
            Examples:
              python quiz_cli.py                 # submit to the configured sinks
              python quiz_cli.py --dry-run       # log the payload, no network
              python quiz_cli.py --variant B     # force the B bucket
            """
        ),
    )
    ap.add_argument("--page-url", default=settings.PAGE_URL, help="Source URL recorded with the lead")
    ap.add_argument("--sticky", action="store_true", help="Lock page scroll until the quiz completes")
    ap.add_argument("--dry-run", action="store_true", help="Build the payload without sending it")
    ap.add_argument("--variant", choices=["A", "B"], help="Override the stored A/B bucket")
    args = ap.parse_args()

    variant = args.variant or VariantStore().get_or_assign()
    kwargs = {"submitter": _dry_run_submitter} if args.dry_run else {}
    session = QuizSession(variant=variant, page_url=args.page_url, sticky=args.sticky, **kwargs)
    try:
        return run(session)
    except (KeyboardInterrupt, EOFError):
        console.print()
        log.info("Quiz abandoned at step %s", session.current_step)
        return 130


if __name__ == "__main__":
    logging.basicConfig(
        level=settings.LOGLEVEL,
        format="%(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[RichHandler(markup=True, rich_tracebacks=True)],
    )
    sys.exit(main())
