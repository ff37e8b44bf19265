#!/usr/bin/env python3
"""Re-process lead payloads recorded on the Errors sheet."""

from __future__ import annotations

import argparse
import logging
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Tuple

import pytz

import settings
from webhook_server import get_errors_ws, process_lead

LOG = logging.getLogger("replay_errors")

COL_TS, COL_MESSAGE, COL_STACK, COL_RAW = range(4)
MIN_COLS = 4


def _parse_iso(ts_value: str) -> Optional[datetime]:
    if not ts_value:
        return None
    try:
        parsed = datetime.fromisoformat(ts_value.replace("Z", "+00:00"))
    except ValueError:
        return None
    tz = pytz.timezone(settings.RECEIVER_TZ)
    if parsed.tzinfo is None:
        return tz.localize(parsed)
    return parsed.astimezone(tz)


def _load_rows() -> List[List[str]]:
    rows = get_errors_ws().get_all_values()
    if len(rows) <= 1:
        return []
    return rows[1:]


def _eligible_rows(
    rows: Iterable[List[str]],
    cutoff: datetime,
) -> List[Tuple[int, str, str]]:
    matches: List[Tuple[int, str, str]] = []
    for idx, row in enumerate(rows, start=2):
        row = row + [""] * (MIN_COLS - len(row))
        raw = row[COL_RAW].strip()
        if not raw:
            continue
        logged_at = _parse_iso(row[COL_TS].strip())
        if logged_at and logged_at >= cutoff:
            matches.append((idx, row[COL_MESSAGE].strip(), raw))
    return matches


def replay(hours: float, *, dry_run: bool = False) -> Tuple[int, int]:
    """Return ``(recovered, attempted)`` for error rows logged in the last ``hours``."""
    now = datetime.now(tz=pytz.timezone(settings.RECEIVER_TZ))
    cutoff = now - timedelta(hours=hours)
    candidates = _eligible_rows(_load_rows(), cutoff)
    if not candidates:
        LOG.info("No error rows eligible for replay in the last %.2f hours.", hours)
        return 0, 0

    LOG.info("Replaying %s payloads (since %s).", len(candidates), cutoff.isoformat())
    recovered = 0
    for row_idx, message, raw in candidates:
        if dry_run:
            LOG.info("DRY_RUN row %s (%s): %s", row_idx, message, raw)
            continue
        result = process_lead(raw, log_errors=False)
        if result.get("success"):
            recovered += 1
            LOG.info("Recovered lead from error row %s", row_idx)
        else:
            LOG.error("Error row %s still failing: %s", row_idx, result.get("error"))

    LOG.info("Replay complete: %s/%s leads recovered.", recovered, len(candidates))
    return recovered, len(candidates)


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Re-process lead payloads recorded on the Errors sheet.",
    )
    parser.add_argument(
        "--hours",
        type=float,
        default=24.0,
        help="How many hours back to replay (default: 24).",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="List the payloads that would be replayed without appending rows.",
    )
    args = parser.parse_args()
    replay(args.hours, dry_run=args.dry_run)
    return 0


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s: %(message)s",
    )
    raise SystemExit(main())
