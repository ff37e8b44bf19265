"""Environment-driven settings shared by the quiz, submitter and receiver."""

import os

from dotenv import load_dotenv

# Load environment variables from .env
load_dotenv()

# ──────────────────────────────────────────────────────────────────────
# Outbound sinks (browser side)
# ──────────────────────────────────────────────────────────────────────
SHEET_WEBHOOK_URL   = os.getenv("SHEET_WEBHOOK_URL", "")
AUTOMATION_HOOK_URL = os.getenv("AUTOMATION_HOOK_URL", "")
HTTP_TIMEOUT        = float(os.getenv("HTTP_TIMEOUT", "15"))
SUPPORT_PHONE       = os.getenv("SUPPORT_PHONE", "(607) 555-0100")
PAGE_URL            = os.getenv("PAGE_URL", "https://example.com/quiz")

# Placeholder left in freshly deployed landing pages; treated as "not configured".
URL_PLACEHOLDER = "PASTE_YOUR"

# A/B bucket persistence and analytics
VARIANT_STORE_PATH = os.getenv(
    "VARIANT_STORE_PATH",
    os.path.join(os.path.expanduser("~"), ".lead_quiz", "variant.json"),
)
ANALYTICS_URL = os.getenv("ANALYTICS_URL", "")

# ──────────────────────────────────────────────────────────────────────
# Receiver (Google Sheets)
# ──────────────────────────────────────────────────────────────────────
GSHEET_ID          = os.getenv("GSHEET_ID", "")
GCP_SERVICE_ACCOUNT_JSON = os.getenv("GCP_SERVICE_ACCOUNT_JSON", "")
SCOPES             = ["https://www.googleapis.com/auth/spreadsheets"]
LEADS_TAB          = os.getenv("LEADS_TAB", "Leads")
ERRORS_TAB         = os.getenv("ERRORS_TAB", "Errors")
WEBHOOK_TOKEN      = os.getenv("LEAD_WEBHOOK_TOKEN")
RECEIVER_TZ        = os.getenv("RECEIVER_TZ", "UTC")

LOGLEVEL = os.getenv("LOGLEVEL", "INFO")
