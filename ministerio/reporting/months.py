"""Calendar helpers for the month/day report view.

Months are keyed by ``MonthKey(year, month)``. The Spanish label
("Febrero 2024") is for display and input only.
"""

from __future__ import annotations

import calendar
import re
from dataclasses import dataclass
from datetime import date


SPANISH_MONTHS = (
    "enero",
    "febrero",
    "marzo",
    "abril",
    "mayo",
    "junio",
    "julio",
    "agosto",
    "septiembre",
    "octubre",
    "noviembre",
    "diciembre",
)

_ISO_MONTH_RE = re.compile(r"^(\d{4})-(\d{1,2})$")


@dataclass(frozen=True, order=True, slots=True)
class MonthKey:
    year: int
    month: int

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise ValueError(f"month out of range: {self.month}")

    @classmethod
    def of(cls, d: date) -> "MonthKey":
        return cls(d.year, d.month)

    @property
    def label(self) -> str:
        return month_label(self.year, self.month)

    @property
    def days_in_month(self) -> int:
        return calendar.monthrange(self.year, self.month)[1]

    def __str__(self) -> str:
        return self.label


def month_label(year: int, month: int) -> str:
    name = SPANISH_MONTHS[month - 1]
    return f"{name[0].upper()}{name[1:]} {year}"


def parse_month(text: str) -> MonthKey:
    """Parse "Febrero 2024" (any case) or "2024-02"."""

    value = text.strip()
    m = _ISO_MONTH_RE.match(value)
    if m:
        return MonthKey(int(m.group(1)), int(m.group(2)))

    parts = value.split()
    if len(parts) != 2 or not parts[1].isdigit():
        raise ValueError(f"unrecognized month: {text!r}")
    name = parts[0].lower()
    if name == "setiembre":
        name = "septiembre"
    if name not in SPANISH_MONTHS:
        raise ValueError(f"unrecognized month name: {parts[0]!r}")
    return MonthKey(int(parts[1]), SPANISH_MONTHS.index(name) + 1)


def construct_date_string(month: MonthKey, day: int) -> str:
    """Build the YYYY-MM-DD row key for ``day`` of ``month``."""

    if not 1 <= day <= month.days_in_month:
        raise ValueError(f"{month.label} has no day {day}")
    return date(month.year, month.month, day).isoformat()


def parse_date_string(fecha: str) -> tuple[MonthKey, int]:
    d = date.fromisoformat(fecha[:10])
    return MonthKey.of(d), d.day
