"""Time and local ID helpers."""

from __future__ import annotations

import threading
import time
from datetime import datetime, timezone

LOCAL_ID_PREFIX = "local-"
LEGACY_OFFLINE_ID_PREFIX = "offline_"

_id_lock = threading.Lock()
_last_local_ms = 0


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def epoch_millis() -> int:
    """Milliseconds since the epoch."""
    return time.time_ns() // 1_000_000


def local_report_id() -> str:
    """Return a ``local-<epoch ms>`` id, strictly increasing within the process."""
    global _last_local_ms
    with _id_lock:
        millis = max(epoch_millis(), _last_local_ms + 1)
        _last_local_ms = millis
    return f"{LOCAL_ID_PREFIX}{millis}"


def is_local_id(report_id: str) -> bool:
    """True for ids assigned on the device rather than by the remote store."""
    return report_id.startswith((LOCAL_ID_PREFIX, LEGACY_OFFLINE_ID_PREFIX))
