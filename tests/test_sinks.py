import json
import sys
from pathlib import Path

import requests

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import sinks

PAYLOAD = {
    "first_name": "Jane",
    "last_name": "Doe",
    "phone": "+16075551234",
    "email": "jane@x.com",
    "zip": "13901",
    "quiz_answers": json.dumps({"homeowner": "yes", "variant": "A"}),
    "page_url": "https://x",
    "timestamp": "2024-01-01T00:00:00Z",
}


class _FakeResponse:
    def __init__(self, status_code=200, body=None, text=""):
        self.status_code = status_code
        self._body = body
        self.text = text if body is None else json.dumps(body)

    def json(self):
        if self._body is None:
            raise ValueError("no json")
        return self._body


def _capture_post(monkeypatch, response=None, exc=None):
    calls = []

    def fake_post(url, data=None, timeout=None, **kwargs):
        calls.append({"url": url, "data": data, "timeout": timeout})
        if exc is not None:
            raise exc
        return response

    monkeypatch.setattr(sinks.requests, "post", fake_post)
    return calls


def test_sheet_sink_accepts_success_body(monkeypatch):
    calls = _capture_post(monkeypatch, _FakeResponse(200, {"success": True, "message": "ok"}))
    result = sinks.SheetWebhookSink("https://sheet.example/exec").send(PAYLOAD)

    assert result.ok
    assert result.status == 200
    assert json.loads(calls[0]["data"]) == PAYLOAD


def test_sheet_sink_treats_in_body_error_as_failure(monkeypatch):
    _capture_post(monkeypatch, _FakeResponse(200, {"success": False, "error": "Missing required field: zip"}))
    result = sinks.SheetWebhookSink("https://sheet.example/exec").send(PAYLOAD)

    assert not result.ok
    assert result.error == "Missing required field: zip"


def test_sheet_sink_reports_http_error(monkeypatch):
    _capture_post(monkeypatch, _FakeResponse(502, text="bad gateway"))
    result = sinks.SheetWebhookSink("https://sheet.example/exec").send(PAYLOAD)

    assert not result.ok
    assert result.status == 502
    assert result.error == "HTTP 502"


def test_network_failure_becomes_failed_result(monkeypatch):
    _capture_post(monkeypatch, exc=requests.ConnectionError("connection refused"))
    result = sinks.AutomationHookSink("https://hooks.example/catch/1").send(PAYLOAD)

    assert not result.ok
    assert "connection refused" in result.error


def test_unconfigured_url_skips_request(monkeypatch):
    calls = _capture_post(monkeypatch, _FakeResponse(200, {"success": True}))

    placeholder = sinks.SheetWebhookSink("https://script.example/PASTE_YOUR_URL_HERE").send(PAYLOAD)
    empty = sinks.AutomationHookSink("").send(PAYLOAD)

    assert not placeholder.ok and "not configured" in placeholder.error
    assert not empty.ok and "not configured" in empty.error
    assert calls == []


def test_automation_sink_posts_contact_subset(monkeypatch):
    calls = _capture_post(monkeypatch, _FakeResponse(200, text="<html>opaque</html>"))
    result = sinks.AutomationHookSink("https://hooks.example/catch/1").send(PAYLOAD)

    assert result.ok
    assert result.body == "<html>opaque</html>"
    assert json.loads(calls[0]["data"]) == {
        "name": "Jane Doe",
        "first_name": "Jane",
        "last_name": "Doe",
        "email": "jane@x.com",
        "phone": "+16075551234",
        "zip": "13901",
    }


def test_get_sinks_reads_settings(monkeypatch):
    monkeypatch.setattr(sinks.settings, "SHEET_WEBHOOK_URL", "https://sheet.example/exec")
    monkeypatch.setattr(sinks.settings, "AUTOMATION_HOOK_URL", "https://hooks.example/catch/1")

    sheet, automation = sinks.get_sinks()

    assert isinstance(sheet, sinks.SheetWebhookSink) and sheet.url == "https://sheet.example/exec"
    assert isinstance(automation, sinks.AutomationHookSink) and automation.url == "https://hooks.example/catch/1"
