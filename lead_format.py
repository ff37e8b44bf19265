from __future__ import annotations

import re
from typing import Tuple

# ───────────────────── regexes ─────────────────────
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
ZIP_RE   = re.compile(r"^\d{5}$")
PHONE_RE = re.compile(r"^[\d\s().+\-]+$")

MIN_NAME_LEN     = 2
MIN_PHONE_DIGITS = 10
MAX_PHONE_DIGITS = 15


# ───────────────────── phone / email / name helpers ─────────────────────
def _digits(raw: str) -> str:
    return re.sub(r"\D", "", raw or "")


def to_e164(raw: str) -> str:
    """Return ``raw`` as an E.164 string.

    10 digits get a ``+1`` prefix, 11 digits that already start with the
    country code ``1`` get a bare ``+``; anything else is a best-effort
    ``+1`` prefix on whatever digits are present.
    """
    d = _digits(raw)
    if len(d) == 10:
        return "+1" + d
    if len(d) == 11 and d.startswith("1"):
        return "+" + d
    return "+1" + d


def split_name(name: str) -> Tuple[str, str]:
    parts = (name or "").split()
    if not parts:
        return "", ""
    return parts[0], " ".join(parts[1:])


def clean_email(e: str) -> str:
    return (e or "").strip().lower()


# ───────────────────── per-field checks ─────────────────────
def valid_name(value: str) -> bool:
    return len(value.strip()) >= MIN_NAME_LEN


def valid_email(value: str) -> bool:
    return bool(EMAIL_RE.match(value.strip()))


def valid_phone(value: str) -> bool:
    value = value.strip()
    if not PHONE_RE.match(value):
        return False
    return MIN_PHONE_DIGITS <= len(_digits(value)) <= MAX_PHONE_DIGITS


def valid_zip(value: str) -> bool:
    return bool(ZIP_RE.match(value.strip()))
