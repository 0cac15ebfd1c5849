from __future__ import annotations

from datetime import date

import pytest

from conftest import USER_ID, FakeReportStore
from ministerio.reporting.book import ReportBook, build_history, build_month_report, months_present
from ministerio.reporting.models import DailyRecord, ServiceLogRow
from ministerio.reporting.months import MonthKey


def _book(rows: list[ServiceLogRow], *, today: date = date(2024, 2, 5)) -> tuple[ReportBook, FakeReportStore]:
    store = FakeReportStore(rows)
    book = ReportBook(store, today=today)
    book.load()
    return book, store


def test_month_view_for_february(february_rows: list[ServiceLogRow]) -> None:
    report = build_month_report(february_rows, MonthKey(2024, 2))

    assert report.month == "Febrero 2024"
    assert report.day(5) == DailyRecord(day=5, hours=1.5, placements=3)
    assert report.day(6) == DailyRecord(day=6)
    assert report.totals.hours == pytest.approx(3.5)
    assert report.totals.placements == 4
    assert report.totals.return_visits == 2
    assert [d.day for d in report.days] == [5, 10]


def test_months_present_newest_first(february_rows: list[ServiceLogRow]) -> None:
    assert months_present(february_rows) == [MonthKey(2024, 2), MonthKey(2024, 1)]


def test_history_sums_per_month(february_rows: list[ServiceLogRow]) -> None:
    history = build_history(february_rows)
    assert [(h.month, h.hours, h.placements) for h in history] == [
        ("Febrero 2024", 3.5, 4),
        ("Enero 2024", 0.5, 0),
    ]


def test_selection_defaults_to_today(february_rows: list[ServiceLogRow]) -> None:
    book, _ = _book(february_rows)
    assert book.month == MonthKey(2024, 2)
    assert book.selected_day == 5
    assert book.selected_date == "2024-02-05"
    assert book.current_day_record.hours == 1.5
    assert book.is_current_month


def test_update_field_on_empty_day_creates_row(february_rows: list[ServiceLogRow]) -> None:
    book, store = _book(february_rows)
    book.select_day(6)

    updated = book.update_field("placements", 2)

    assert updated == DailyRecord(day=6, placements=2)
    new_row = next(r for r in book.rows if r.fecha == "2024-02-06")
    assert new_row.user_id == USER_ID
    assert new_row.horario_servicio == 0.0
    # Memory only; nothing saved yet.
    assert store.saved == []


def test_update_field_keeps_existing_values_and_server_columns(february_rows: list[ServiceLogRow]) -> None:
    book, _ = _book(february_rows)

    book.update_field("notes", "Prediqué en el parque")

    rows = [r for r in book.rows if r.fecha == "2024-02-05"]
    assert len(rows) == 1
    assert rows[0].horario_servicio == 1.5
    assert rows[0].publicaciones == 3
    assert rows[0].nota_del_dia == "Prediqué en el parque"
    assert rows[0].id == "row-1"
    assert rows[0].created_at == "2024-02-05T10:00:00Z"


def test_update_field_rejects_unknown_field(february_rows: list[ServiceLogRow]) -> None:
    book, _ = _book(february_rows)
    with pytest.raises(ValueError):
        book.update_field("hours_total", 3)


def test_save_twice_leaves_one_row(february_rows: list[ServiceLogRow]) -> None:
    book, store = _book(february_rows)
    book.select_day(6)
    book.update_field("hours", 1.0)

    book.save()
    book.save()

    assert len([r for r in store.rows if r.fecha == "2024-02-06"]) == 1
    assert len(store.saved) == 2
    assert store.saved[0] == store.saved[1]
    assert book.current_day_record.hours == 1.0


def test_save_writes_full_record_with_defaults(february_rows: list[ServiceLogRow]) -> None:
    book, store = _book(february_rows)
    book.select_day(7)
    book.update_field("public_places_found", True)

    loads_before = store.loads
    saved = book.save()

    assert saved.to_payload() == {
        "user_id": USER_ID,
        "fecha": "2024-02-07",
        "horario_servicio": 0.0,
        "publicaciones": 0,
        "cursos_biblicos": 0,
        "revisitas": 0,
        "nota_del_dia": "",
        "encuentra_lugares_publicos": True,
    }
    assert store.loads == loads_before + 1


def test_delete_then_reload_shows_zero_day(february_rows: list[ServiceLogRow]) -> None:
    book, store = _book(february_rows)

    book.delete()

    assert store.deleted == ["2024-02-05"]
    assert book.current_day_record == DailyRecord(day=5)
    book.load()
    assert book.current_day_record == DailyRecord(day=5)
    assert book.totals.hours == pytest.approx(2.0)


def test_switch_month_resets_day_and_notifies(february_rows: list[ServiceLogRow]) -> None:
    book, _ = _book(february_rows)
    calls: list[int] = []
    book.on_selection_change(lambda: calls.append(book.selected_day))

    book.switch_to_month(MonthKey(2024, 1))
    assert book.selected_day == 1
    assert book.report.month == "Enero 2024"
    assert not book.is_current_month

    book.switch_to_current()
    assert (book.month, book.selected_day) == (MonthKey(2024, 2), 5)
    assert calls == [1, 5]


def test_select_same_day_does_not_notify(february_rows: list[ServiceLogRow]) -> None:
    book, _ = _book(february_rows)
    calls: list[str] = []
    book.on_selection_change(lambda: calls.append("x"))

    book.select_day(5)
    assert calls == []
    with pytest.raises(ValueError):
        book.select_day(30)


def test_day_markers(february_rows: list[ServiceLogRow]) -> None:
    book, _ = _book(february_rows)
    markers = book.day_markers()
    assert len(markers) == 29
    assert markers[5] and markers[10]
    assert not markers[6]


def test_update_hours_part(february_rows: list[ServiceLogRow]) -> None:
    book, _ = _book(february_rows)

    book.update_hours_part("m", 45)
    assert book.current_day_record.hours == pytest.approx(1.75)

    book.update_hours_part("s", 30)
    assert book.current_day_record.hours == pytest.approx(1 + 45 / 60 + 30 / 3600)

    with pytest.raises(ValueError):
        book.update_hours_part("x", 1)
    with pytest.raises(ValueError):
        book.update_hours_part("m", -5)
    assert book.current_day_record.hours == pytest.approx(1 + 45 / 60 + 30 / 3600)
