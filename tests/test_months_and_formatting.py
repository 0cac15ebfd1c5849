from __future__ import annotations

from datetime import date

import pytest

from ministerio.reporting.formatting import (
    format_total_hours,
    hours_from_parts,
    hours_parts,
    parse_count,
    parse_duration,
)
from ministerio.reporting.months import (
    MonthKey,
    construct_date_string,
    month_label,
    parse_date_string,
    parse_month,
)


def test_month_label_is_capitalized_spanish() -> None:
    assert month_label(2024, 2) == "Febrero 2024"
    assert MonthKey(2023, 12).label == "Diciembre 2023"


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Febrero 2024", MonthKey(2024, 2)),
        ("febrero 2024", MonthKey(2024, 2)),
        ("  Septiembre 2023 ", MonthKey(2023, 9)),
        ("setiembre 2023", MonthKey(2023, 9)),
        ("2024-02", MonthKey(2024, 2)),
        ("2024-11", MonthKey(2024, 11)),
    ],
)
def test_parse_month(text: str, expected: MonthKey) -> None:
    assert parse_month(text) == expected


@pytest.mark.parametrize("text", ["Febrero", "Smarch 2024", "2024-13", "2024"])
def test_parse_month_rejects_garbage(text: str) -> None:
    with pytest.raises(ValueError):
        parse_month(text)


def test_month_keys_order_chronologically() -> None:
    keys = [MonthKey(2024, 1), MonthKey(2023, 12), MonthKey(2024, 2)]
    assert sorted(keys) == [MonthKey(2023, 12), MonthKey(2024, 1), MonthKey(2024, 2)]


def test_construct_date_string_zero_pads() -> None:
    assert construct_date_string(MonthKey(2024, 2), 5) == "2024-02-05"


def test_construct_date_string_rejects_days_past_month_end() -> None:
    assert construct_date_string(MonthKey(2024, 2), 29) == "2024-02-29"
    with pytest.raises(ValueError):
        construct_date_string(MonthKey(2023, 2), 29)
    with pytest.raises(ValueError):
        construct_date_string(MonthKey(2024, 4), 0)


def test_parse_date_string_round_trips() -> None:
    assert parse_date_string("2024-02-05") == (MonthKey(2024, 2), 5)
    assert parse_date_string("2024-02-05T00:00:00") == (MonthKey(2024, 2), 5)
    assert MonthKey.of(date(2026, 10, 18)) == MonthKey(2026, 10)


@pytest.mark.parametrize(
    "hours, text",
    [(0, "0:00"), (1.5, "1:30"), (2.25, "2:15"), (0.999999, "1:00"), (10 + 1 / 60, "10:01")],
)
def test_format_total_hours(hours: float, text: str) -> None:
    assert format_total_hours(hours) == text


def test_hours_parts_and_back() -> None:
    assert hours_parts(1.5) == (1, 30, 0)
    assert hours_parts(0.025) == (0, 1, 30)
    assert hours_from_parts(1, 30, 0) == 1.5


@pytest.mark.parametrize(
    "text, hours",
    [("1.5", 1.5), ("1:30", 1.5), ("0:01:30", 0.025), ("2", 2.0)],
)
def test_parse_duration(text: str, hours: float) -> None:
    assert parse_duration(text) == pytest.approx(hours)


@pytest.mark.parametrize("text", ["-1", "1:xx", "1:2:3:4", "abc", "nan", "inf", "-inf"])
def test_parse_duration_rejects(text: str) -> None:
    with pytest.raises(ValueError):
        parse_duration(text)


def test_parse_count_rejects_negative_and_fractional() -> None:
    assert parse_count("0") == 0
    assert parse_count("12") == 12
    for text in ("-1", "1.5", ""):
        with pytest.raises(ValueError):
            parse_count(text)
