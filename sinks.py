import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import requests

import settings

logger = logging.getLogger("sinks")


@dataclass
class SinkResult:
    sink: str
    ok: bool
    status: Optional[int] = None
    error: Optional[str] = None
    body: Any = None


def _configured(url: str) -> bool:
    return bool(url) and settings.URL_PLACEHOLDER not in url


class SheetWebhookSink:
    """Posts the full lead payload to the spreadsheet webhook receiver."""

    name = "sheet"

    def __init__(self, url: str, timeout: float = settings.HTTP_TIMEOUT):
        self.url = url
        self.timeout = timeout

    def send(self, payload: Dict[str, Any]) -> SinkResult:
        if not _configured(self.url):
            logger.warning("Sheet webhook URL not configured yet")
            return SinkResult(self.name, False, error="sheet webhook URL not configured")
        try:
            r = requests.post(self.url, data=json.dumps(payload), timeout=self.timeout)
        except requests.RequestException as exc:
            logger.error("Error sending lead to sheet webhook: %s", exc)
            return SinkResult(self.name, False, error=str(exc))

        logger.info("Sheet webhook response status: %s", r.status_code)
        try:
            body = r.json()
        except ValueError:
            body = r.text
        logger.info("Sheet webhook response data: %s", body)

        if not 200 <= r.status_code < 300:
            return SinkResult(self.name, False, status=r.status_code, error=f"HTTP {r.status_code}", body=body)
        # the receiver signals errors in-body with HTTP 200
        if isinstance(body, dict) and body.get("success") is False:
            return SinkResult(
                self.name, False, status=r.status_code, error=str(body.get("error") or "rejected"), body=body
            )
        return SinkResult(self.name, True, status=r.status_code, body=body)


class AutomationHookSink:
    """Posts a contact subset to the marketing-automation catch hook."""

    name = "automation"

    def __init__(self, url: str, timeout: float = settings.HTTP_TIMEOUT):
        self.url = url
        self.timeout = timeout

    @staticmethod
    def subset(payload: Dict[str, Any]) -> Dict[str, Any]:
        name = " ".join(p for p in (payload.get("first_name"), payload.get("last_name")) if p)
        return {
            "name": name,
            "first_name": payload.get("first_name", ""),
            "last_name": payload.get("last_name", ""),
            "email": payload.get("email", ""),
            "phone": payload.get("phone", ""),
            "zip": payload.get("zip", ""),
        }

    def send(self, payload: Dict[str, Any]) -> SinkResult:
        if not _configured(self.url):
            logger.warning("Automation hook URL not configured yet")
            return SinkResult(self.name, False, error="automation hook URL not configured")
        try:
            r = requests.post(self.url, data=json.dumps(self.subset(payload)), timeout=self.timeout)
        except requests.RequestException as exc:
            logger.error("Error sending lead to automation hook: %s", exc)
            return SinkResult(self.name, False, error=str(exc))

        logger.info("Automation hook response status: %s", r.status_code)
        logger.info("Automation hook response data: %s", r.text)
        if not 200 <= r.status_code < 300:
            return SinkResult(self.name, False, status=r.status_code, error=f"HTTP {r.status_code}", body=r.text)
        return SinkResult(self.name, True, status=r.status_code, body=r.text)


def get_sinks() -> Tuple[SheetWebhookSink, AutomationHookSink]:
    """Return the (sheet, automation) sink pair from settings."""
    return (
        SheetWebhookSink(settings.SHEET_WEBHOOK_URL),
        AutomationHookSink(settings.AUTOMATION_HOOK_URL),
    )
