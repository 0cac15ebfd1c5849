from __future__ import annotations

import math
from typing import NamedTuple


class HoursParts(NamedTuple):
    h: int
    m: int
    s: int


def format_total_hours(total_hours: float) -> str:
    """Decimal hours as "H:MM" (minutes rounded)."""

    h = int(total_hours // 1)
    m = round((total_hours - h) * 60)
    if m == 60:
        h, m = h + 1, 0
    return f"{h}:{m:02d}"


def hours_parts(decimal_hours: float) -> HoursParts:
    total_seconds = round(decimal_hours * 3600)
    return HoursParts(total_seconds // 3600, (total_seconds % 3600) // 60, total_seconds % 60)


def hours_from_parts(h: int, m: int, s: int) -> float:
    return h + m / 60 + s / 3600


def parse_duration(text: str) -> float:
    """Accept decimal hours ("1.5") or a clock value ("1:30" / "1:30:15")."""

    value = text.strip()
    if ":" not in value:
        hours = float(value)
        if not math.isfinite(hours) or hours < 0:
            raise ValueError(f"hours must be a finite number >= 0, got {text!r}")
        return hours

    pieces = value.split(":")
    if len(pieces) not in (2, 3) or not all(p.isdigit() for p in pieces):
        raise ValueError(f"invalid duration: {text!r}")
    nums = [int(p) for p in pieces] + [0] * (3 - len(pieces))
    return hours_from_parts(*nums)


def parse_count(text: str) -> int:
    """Non-negative whole number for counters and hour parts."""

    count = int(text)
    if count < 0:
        raise ValueError(f"must be >= 0, got {text!r}")
    return count
