# webhook_server.py – receives quiz leads, appends them to the Leads sheet
#                     and records every rejected payload on the Errors tab

import asyncio
import json
import logging
import threading
import traceback
from datetime import datetime
from typing import Any, Dict, List, Optional

import gspread
import pytz
from fastapi import FastAPI, HTTPException, Request, Response
from gspread.utils import rowcol_to_a1
from google.oauth2.service_account import Credentials

import settings
from errors import ReceiverError
from lead_format import to_e164, valid_phone

# ──────────────────────────────────────────────────────────────────────
# Configuration & logging
# ──────────────────────────────────────────────────────────────────────
LEAD_HEADERS = [
    "Timestamp",
    "First Name",
    "Last Name",
    "Phone",
    "Email",
    "Zip Code",
    "Quiz Answers",
    "Source URL",
]
ERROR_HEADERS = ["Timestamp", "Error Message", "Stack Trace", "Raw Payload"]
REQUIRED_FIELDS = ("first_name", "email", "phone", "zip")

logging.basicConfig(
    level=settings.LOGLEVEL,
    format="%(asctime)s %(levelname)s: %(message)s",
)
logger = logging.getLogger("webhook_server")

# FastAPI app
app = FastAPI()

_workbook: Optional[Any] = None
_ws_lock = threading.Lock()


def _now() -> str:
    return datetime.now(tz=pytz.timezone(settings.RECEIVER_TZ)).isoformat(timespec="seconds")


# ──────────────────────────────────────────────────────────────────────
# Google Sheets helpers
# ──────────────────────────────────────────────────────────────────────
def get_workbook():
    """Open the lead spreadsheet once and reuse the handle."""
    global _workbook
    if _workbook is None:
        if not settings.GSHEET_ID or not settings.GCP_SERVICE_ACCOUNT_JSON:
            raise ReceiverError("Google Sheets credentials are not configured")
        sc_json = json.loads(settings.GCP_SERVICE_ACCOUNT_JSON)
        creds = Credentials.from_service_account_info(sc_json, scopes=settings.SCOPES)
        _workbook = gspread.authorize(creds).open_by_key(settings.GSHEET_ID)
    return _workbook


def _get_or_create_ws(title: str, headers: List[str], *, protect_header: bool):
    wb = get_workbook()
    with _ws_lock:
        try:
            return wb.worksheet(title)
        except gspread.WorksheetNotFound:
            pass

        ws = wb.add_worksheet(title=title, rows="1000", cols=str(len(headers)))
        try:
            ws.append_row(headers)
            ws.format("1:1", {"textFormat": {"bold": True}})
            ws.freeze(rows=1)
            if protect_header:
                header_range = "A1:" + rowcol_to_a1(1, len(headers))
                ws.add_protected_range(header_range, description=f"{title} header row")
        except Exception:
            # a half-built tab would be picked up as-is by every later request
            logger.warning("Setting up '%s' sheet failed; removing partial tab", title)
            try:
                wb.del_worksheet(ws)
            except Exception:
                logger.exception("Unable to remove partial '%s' sheet", title)
            raise
        logger.info("Created '%s' sheet with header row", title)
        return ws


def get_leads_ws():
    """Ensure the Leads sheet exists (header locked) and return it."""
    return _get_or_create_ws(settings.LEADS_TAB, LEAD_HEADERS, protect_header=True)


def get_errors_ws():
    return _get_or_create_ws(settings.ERRORS_TAB, ERROR_HEADERS, protect_header=False)


def log_error(message: str, raw: str, stack: str = "") -> None:
    """Append a row to the Errors sheet; never raises."""
    try:
        get_errors_ws().append_row([_now(), message, stack, raw])
    except Exception:
        logger.debug("Unable to write error log row", exc_info=True)


# ──────────────────────────────────────────────────────────────────────
# Lead processing
# ──────────────────────────────────────────────────────────────────────
def parse_lead(raw: str) -> Dict[str, Any]:
    if not raw or not raw.strip():
        raise ReceiverError("No POST data received")
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ReceiverError(f"Invalid JSON: {exc.msg}") from exc
    if not isinstance(data, dict):
        raise ReceiverError("Invalid JSON: expected an object")
    for name in REQUIRED_FIELDS:
        value = data.get(name)
        if value is None or not str(value).strip():
            raise ReceiverError(f"Missing required field: {name}")
    phone = str(data["phone"]).strip()
    if not valid_phone(phone):
        raise ReceiverError(f"Invalid phone: {phone}")
    return data


def _text(data: Dict[str, Any], key: str) -> str:
    value = data.get(key)
    return "" if value is None else str(value).strip()


def build_row(data: Dict[str, Any], received_at: Optional[str] = None) -> List[str]:
    quiz_answers = data.get("quiz_answers")
    if quiz_answers is None:
        quiz_answers = ""
    elif not isinstance(quiz_answers, str):
        quiz_answers = json.dumps(quiz_answers)
    return [
        _text(data, "timestamp") or received_at or _now(),
        _text(data, "first_name"),
        _text(data, "last_name"),
        to_e164(_text(data, "phone")),
        _text(data, "email"),
        _text(data, "zip"),
        quiz_answers,
        _text(data, "page_url"),
    ]


def process_lead(raw: str, *, log_errors: bool = True) -> Dict[str, Any]:
    """Validate ``raw`` and append it to the Leads sheet.

    Every failure comes back in-body as ``{"success": False, "error": ...}``
    and, unless ``log_errors`` is off, is written to the Errors sheet along
    with the unparsed payload.
    """
    try:
        row = build_row(parse_lead(raw))
    except ReceiverError as exc:
        logger.warning("Rejected lead payload: %s", exc)
        if log_errors:
            log_error(str(exc), raw, traceback.format_exc())
        return {"success": False, "error": str(exc)}

    try:
        get_leads_ws().append_row(row)
    except Exception as exc:
        logger.exception("Sheet append error: %s", exc)
        message = f"Error saving lead: {exc}"
        if log_errors:
            log_error(message, raw, traceback.format_exc())
        return {"success": False, "error": message}

    logger.info("Recorded lead %s %s (%s)", row[1], row[2], row[4])
    return {"success": True, "message": "Lead recorded successfully", "timestamp": _now()}


# ──────────────────────────────────────────────────────────────────────
# Health check
# ──────────────────────────────────────────────────────────────────────
@app.get("/")
def root():
    return {"status": "ok", "message": "Lead webhook is running", "timestamp": _now()}


@app.head("/")
def root_head():
    return Response(status_code=200)


@app.get("/healthz")
def healthz():
    return {"status": "ok"}


# ──────────────────────────────────────────────────────────────────────
# Webhook – receives leads from the quiz
# ──────────────────────────────────────────────────────────────────────
@app.post("/")
async def receive_lead(request: Request):
    """
    Accepts the quiz payload as a JSON body:
        {
          "first_name": "Jane", "last_name": "Doe",
          "phone": "+16075551234", "email": "jane@example.com",
          "zip": "13901", "quiz_answers": "{\"homeowner\": \"yes\"}",
          "page_url": "https://...", "timestamp": "2024-01-01T00:00:00Z"
        }

    If LEAD_WEBHOOK_TOKEN is configured, the webhook URL must include
    ?token=<LEAD_WEBHOOK_TOKEN>.  Errors are reported in the body with HTTP 200.
    """
    raw = (await request.body()).decode("utf-8", errors="replace")

    token = request.query_params.get("token")
    if settings.WEBHOOK_TOKEN:
        if token != settings.WEBHOOK_TOKEN:
            logger.warning("Rejected lead POST with bad token")
            await asyncio.to_thread(log_error, "Rejected request: bad token", raw)
            raise HTTPException(status_code=403, detail="bad token")
    elif token:
        logger.info("Ignoring unused token query param while token auth disabled")

    logger.debug("Incoming lead payload: %s", raw)
    return await asyncio.to_thread(process_lead, raw)
