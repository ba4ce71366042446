"""
dropmint/core/time.py

Two clocks:

    unix_now()         — integer seconds; the only time pricing and
                         stage windows ever see
    event_timestamp()  — YYYY-MM-DDTHH:MM:SS.mmmZ for event envelopes

Engines take a `clock` callable so tests can pin the time.
"""

import time
from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], int]


def unix_now() -> int:
    return int(time.time())


def fixed_clock(at: int) -> Clock:
    """A clock that always reads `at`."""
    return lambda: at


def event_timestamp() -> str:
    now = datetime.now(timezone.utc)
    ms  = now.microsecond // 1000
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{ms:03d}Z"
