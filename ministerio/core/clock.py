from __future__ import annotations

import time
from datetime import date


def monotonic_ms() -> int:
    """Monotonic clock in milliseconds.

    Use this for latency measurements.
    """

    return int(time.monotonic() * 1000)


def local_today() -> date:
    return date.today()
