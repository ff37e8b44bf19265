"""Normalize a finished quiz record and fan it out to both lead sinks.

Both sinks are dispatched concurrently and awaited together. The submission
succeeds when either sink accepts the lead; only a double failure is surfaced
to the visitor.
"""
from __future__ import annotations

import concurrent.futures
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Sequence

import settings
from errors import MissingFieldError
from lead_format import clean_email, split_name, to_e164
from sinks import SinkResult, get_sinks

logger = logging.getLogger("lead_submitter")

REQUIRED_FIELDS = ("homeowner", "name", "email", "phone", "zip")


@dataclass
class SubmissionResult:
    success: bool
    payload: Dict[str, Any]
    sheet: SinkResult
    automation: SinkResult
    message: str = ""
    errors: Dict[str, str] = field(default_factory=dict)


def _value(record: Any, name: str) -> Any:
    if isinstance(record, dict):
        return record.get(name)
    return getattr(record, name, None)


def validate_record(record: Any) -> None:
    """Raise ``MissingFieldError`` for the first missing or blank field."""
    for name in REQUIRED_FIELDS:
        value = _value(record, name)
        if value is None or not str(value).strip():
            raise MissingFieldError(name)


def client_timestamp(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def build_payload(
    record: Any,
    *,
    variant: str,
    page_url: str,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    validate_record(record)
    first, last = split_name(_value(record, "name"))
    quiz_answers = {
        "homeowner": str(_value(record, "homeowner")).strip(),
        "variant": variant,
    }
    return {
        "first_name": first,
        "last_name": last,
        "phone": to_e164(_value(record, "phone")),
        "email": clean_email(_value(record, "email")),
        "zip": str(_value(record, "zip")).strip(),
        "quiz_answers": json.dumps(quiz_answers),
        "page_url": (page_url or "").strip(),
        "timestamp": client_timestamp(now),
    }


def failure_message() -> str:
    return (
        "We couldn't save your information. "
        f"Please try again or call us at {settings.SUPPORT_PHONE}."
    )


def dispatch(payload: Dict[str, Any], sinks: Sequence[Any]) -> list[SinkResult]:
    """Send ``payload`` to every sink at once and wait for all of them."""
    with concurrent.futures.ThreadPoolExecutor(max_workers=len(sinks)) as pool:
        futures = [pool.submit(s.send, payload) for s in sinks]
        results = []
        for sink, fut in zip(sinks, futures):
            try:
                results.append(fut.result())
            except Exception as exc:
                logger.exception("Sink %s raised while sending lead", getattr(sink, "name", sink))
                results.append(SinkResult(getattr(sink, "name", "unknown"), False, error=str(exc)))
    return results


def submit_lead(
    record: Any,
    *,
    variant: str,
    page_url: str,
    sinks: Optional[Sequence[Any]] = None,
) -> SubmissionResult:
    payload = build_payload(record, variant=variant, page_url=page_url)
    sheet_sink, automation_sink = sinks if sinks is not None else get_sinks()

    logger.info("Sending lead to sheet webhook and automation hook: %s", payload)
    sheet, automation = dispatch(payload, (sheet_sink, automation_sink))

    if sheet.ok or automation.ok:
        if not (sheet.ok and automation.ok):
            failed = automation if sheet.ok else sheet
            logger.warning("Lead stored in one sink only; %s failed: %s", failed.sink, failed.error)
        return SubmissionResult(True, payload, sheet, automation, message="Lead submitted")

    logger.error(
        "Both sinks failed – sheet: %s, automation: %s",
        sheet.error,
        automation.error,
    )
    return SubmissionResult(
        False,
        payload,
        sheet,
        automation,
        message=failure_message(),
        errors={sheet.sink: sheet.error or "", automation.sink: automation.error or ""},
    )
