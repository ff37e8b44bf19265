import logging
from datetime import datetime, timezone
from typing import Any, Optional

import requests

import settings

logger = logging.getLogger("analytics")


def track_event(name: str, url: Optional[str] = None, **params: Any) -> None:
    """Record an analytics event; never raises."""
    url = settings.ANALYTICS_URL if url is None else url
    logger.info("analytics event %s %s", name, params)
    if not url:
        return
    payload = {
        "event": name,
        "params": params,
        "ts": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
    }
    try:
        r = requests.post(url, json=payload, timeout=settings.HTTP_TIMEOUT)
        r.raise_for_status()
    except Exception as exc:
        logger.warning("analytics event %s not delivered: %s", name, exc)
