from __future__ import annotations

import logging
from datetime import date
from typing import Any, Callable, Iterable, Protocol

from ministerio.core.clock import local_today
from ministerio.reporting.formatting import hours_from_parts, hours_parts
from ministerio.reporting.models import (
    DailyRecord,
    MonthSummary,
    MonthTotals,
    ServiceLogRow,
    ServiceReport,
)
from ministerio.reporting.months import MonthKey, construct_date_string, parse_date_string


logger = logging.getLogger(__name__)


class ReportStore(Protocol):
    @property
    def user_id(self) -> str: ...

    def get_all_reports(self) -> list[ServiceLogRow]: ...

    def save_daily_report(self, row: ServiceLogRow) -> list[ServiceLogRow]: ...

    def delete_daily_report(self, fecha: str) -> None: ...


def to_daily_record(row: ServiceLogRow) -> DailyRecord:
    _, day = parse_date_string(row.fecha)
    return DailyRecord(
        day=day,
        hours=row.horario_servicio,
        placements=row.publicaciones,
        return_visits=row.revisitas,
        bible_studies=row.cursos_biblicos,
        notes=row.nota_del_dia,
        public_places_found=row.encuentra_lugares_publicos,
    )


def build_month_report(rows: Iterable[ServiceLogRow], month: MonthKey) -> ServiceReport:
    days = [to_daily_record(r) for r in rows if parse_date_string(r.fecha)[0] == month]
    days.sort(key=lambda d: d.day)
    return ServiceReport(month=month.label, days=days)


def months_present(rows: Iterable[ServiceLogRow]) -> list[MonthKey]:
    """Distinct months with at least one row, newest first."""

    return sorted({parse_date_string(r.fecha)[0] for r in rows}, reverse=True)


def build_history(rows: Iterable[ServiceLogRow]) -> list[MonthSummary]:
    rows = list(rows)
    history: list[MonthSummary] = []
    for month in months_present(rows):
        in_month = [r for r in rows if parse_date_string(r.fecha)[0] == month]
        history.append(
            MonthSummary(
                month=month.label,
                hours=sum(r.horario_servicio for r in in_month),
                placements=sum(r.publicaciones for r in in_month),
            )
        )
    return history


class ReportBook:
    """In-memory state of the report page for one user.

    Holds the raw rows plus the selected month/day, and derives the month
    view from them. Edits only touch memory; ``save`` and ``delete`` are the
    round-trips to the backend.
    """

    def __init__(self, store: ReportStore, *, today: date | None = None):
        self._store = store
        self._rows: list[ServiceLogRow] = []
        self._today = today
        now = today or local_today()
        self._month = MonthKey.of(now)
        self._day = now.day
        self._selection_listeners: list[Callable[[], None]] = []

    # --- state ---------------------------------------------------------------

    @property
    def rows(self) -> tuple[ServiceLogRow, ...]:
        return tuple(self._rows)

    @property
    def month(self) -> MonthKey:
        return self._month

    @property
    def selected_day(self) -> int:
        return self._day

    @property
    def selected_date(self) -> str:
        return construct_date_string(self._month, self._day)

    @property
    def report(self) -> ServiceReport:
        return build_month_report(self._rows, self._month)

    @property
    def totals(self) -> MonthTotals:
        return self.report.totals

    @property
    def current_day_record(self) -> DailyRecord:
        return self.report.day(self._day)

    @property
    def history(self) -> list[MonthSummary]:
        return build_history(self._rows)

    @property
    def is_current_month(self) -> bool:
        return self._month == MonthKey.of(self._today or local_today())

    def day_markers(self) -> dict[int, bool]:
        """day -> has data, for every day of the selected month."""

        report = self.report
        return {d: report.day(d).has_data for d in range(1, self._month.days_in_month + 1)}

    def on_selection_change(self, callback: Callable[[], None]) -> None:
        self._selection_listeners.append(callback)

    # --- navigation ----------------------------------------------------------

    def select_day(self, day: int) -> None:
        if not 1 <= day <= self._month.days_in_month:
            raise ValueError(f"{self._month.label} has no day {day}")
        changed = day != self._day
        self._day = day
        if changed:
            self._notify_selection()

    def switch_to_month(self, month: MonthKey) -> None:
        self._month = month
        self._day = 1
        self._notify_selection()

    def switch_to_current(self) -> None:
        now = self._today or local_today()
        self._month = MonthKey.of(now)
        self._day = now.day
        self._notify_selection()

    def _notify_selection(self) -> None:
        for callback in list(self._selection_listeners):
            callback()

    # --- edits ---------------------------------------------------------------

    def update_field(self, name: str, value: Any) -> DailyRecord:
        """Apply one field edit to the selected day, in memory only."""

        fecha = self.selected_date
        updated = self.current_day_record.with_field(name, value)
        new_row = updated.to_row(user_id=self._store.user_id, fecha=fecha)

        for i, row in enumerate(self._rows):
            if row.fecha == fecha:
                # Keep server-managed columns of the existing row.
                self._rows[i] = ServiceLogRow(**{**new_row.to_payload(), "id": row.id, "created_at": row.created_at})
                break
        else:
            self._rows.append(new_row)
        return updated

    def update_hours_part(self, part: str, value: int) -> DailyRecord:
        """Set the hour, minute or second component of the selected day's hours."""

        if part not in {"h", "m", "s"}:
            raise ValueError(f"unknown hours part: {part!r}")
        if value < 0:
            raise ValueError(f"hours part must be >= 0, got {value!r}")
        current = hours_parts(self.current_day_record.hours or 0)._asdict()
        current[part] = int(value)
        return self.update_field("hours", hours_from_parts(current["h"], current["m"], current["s"]))

    # --- round-trips ---------------------------------------------------------

    def load(self) -> None:
        self._rows = list(self._store.get_all_reports())

    def save(self) -> ServiceLogRow:
        """Persist the selected day's full record, then reload everything."""

        row = self.current_day_record.to_row(user_id=self._store.user_id, fecha=self.selected_date)
        self._store.save_daily_report(row)
        self.load()
        return row

    def delete(self) -> None:
        fecha = self.selected_date
        self._store.delete_daily_report(fecha)
        self._rows = [r for r in self._rows if r.fecha != fecha]
