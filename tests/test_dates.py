from datetime import date, datetime, timezone

import pytest

from conftest import NOW
from src.todo.dates import (
    NaturalDateParser,
    add_months,
    format_date,
    is_before_today,
    parse_iso_date,
    shift_date,
)


@pytest.fixture
def parser():
    return NaturalDateParser()


def at(year, month, day, hour=12, minute=0):
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "text,expected",
    [
        ("tomorrow", at(2025, 6, 12)),
        ("the day after tomorrow", at(2025, 6, 13)),
        ("today", at(2025, 6, 11)),
        ("tonight", at(2025, 6, 11, 20)),
        ("friday", at(2025, 6, 13)),
        ("next friday", at(2025, 6, 13)),
        ("wednesday", at(2025, 6, 11)),
        ("next wednesday", at(2025, 6, 18)),
        ("in 3 days", at(2025, 6, 14)),
        ("in two weeks", at(2025, 6, 25)),
        ("in 2 hours", at(2025, 6, 11, 11)),
        ("at 5pm", at(2025, 6, 11, 17)),
        ("tomorrow at 9:30am", at(2025, 6, 12, 9, 30)),
        ("march 3", at(2026, 3, 3)),
        ("December 25, 2025", at(2025, 12, 25)),
        ("25th of july", at(2025, 7, 25)),
        ("2025-07-01", at(2025, 7, 1)),
        ("end of month", at(2025, 6, 30)),
    ],
)
def test_parse_date_is_forward_biased(parser, text, expected):
    assert parser.parse_date(text, NOW) == expected


def test_time_already_passed_rolls_to_tomorrow(parser):
    assert parser.parse_date("7am", NOW) == at(2025, 6, 12, 7)


def test_parse_date_returns_none_for_noise(parser):
    assert parser.parse_date("buy some milk", NOW) is None
    assert parser.parse_date("", NOW) is None
    assert parser.parse_date(None, NOW) is None


def test_week_ranges(parser):
    this_week = parser.parse_date_range("this week", NOW)
    assert this_week.start == datetime(2025, 6, 9, tzinfo=timezone.utc)
    assert this_week.end.date() == date(2025, 6, 15)
    assert (this_week.end.hour, this_week.end.minute, this_week.end.second) == (23, 59, 59)

    next_week = parser.parse_date_range("next week", NOW)
    assert next_week.start.date() == date(2025, 6, 16)
    assert next_week.end.date() == date(2025, 6, 22)


def test_between_range(parser):
    found = parser.parse_date_range("between tomorrow and friday", NOW)
    assert found.start == datetime(2025, 6, 12, tzinfo=timezone.utc)
    assert found.end.date() == date(2025, 6, 13)


def test_single_date_range_has_open_end(parser):
    found = parser.parse_date_range("tomorrow", NOW)
    assert found.start == datetime(2025, 6, 12, tzinfo=timezone.utc)
    assert found.end is None


def test_add_months_clamps_to_month_end():
    assert add_months(date(2025, 1, 31), 1) == date(2025, 2, 28)
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2025, 11, 15), 3) == date(2026, 2, 15)


def test_shift_date_combines_units():
    assert shift_date(date(2025, 6, 11), days=3) == date(2025, 6, 14)
    assert shift_date(date(2025, 6, 11), weeks=1, days=-1) == date(2025, 6, 17)
    assert shift_date(date(2025, 1, 31), months=1, days=1) == date(2025, 3, 1)


def test_iso_date_helpers():
    assert parse_iso_date("2025-06-11") == date(2025, 6, 11)
    assert parse_iso_date("2025-02-30") is None
    assert parse_iso_date("06/11/2025") is None
    assert format_date(date(2025, 1, 2)) == "2025-01-02"


def test_is_before_today_uses_calendar_days():
    assert is_before_today("2025-06-10", NOW) is True
    assert is_before_today("2025-06-11", NOW) is False
    assert is_before_today("2025-06-12", NOW) is False
    assert is_before_today(None, NOW) is False
