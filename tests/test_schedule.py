"""Tests for calendar window parsing and matching."""

from datetime import datetime

import pytest

from cronscale.core.exceptions import ScheduleParseError
from cronscale.scaling.schedule import CalendarWindow


def at(year=2025, month=10, day=15, hour=10, minute=0, second=0):
    return datetime(year, month, day, hour, minute, second)


def test_weekday_business_hours(wednesday_10am, saturday_10am):
    window = CalendarWindow.parse("* * 9-17 * * mon-fri *")
    assert window.contains(wednesday_10am)
    assert not window.contains(saturday_10am)


def test_all_wildcards_match_anything():
    window = CalendarWindow.parse("* * * * * * *")
    assert window.contains(at())
    assert window.contains(at(2031, 2, 28, 23, 59, 59))


def test_question_mark_is_wildcard():
    assert CalendarWindow.parse("* * * ? * ? *").contains(at())


@pytest.mark.parametrize("hour,expected", [
    (21, False),
    (22, True),
    (23, True),
    (0, True),
    (2, True),
    (3, False),
    (12, False),
])
def test_wrapping_hour_range(hour, expected):
    window = CalendarWindow.parse("* * 22-2 * * * *")
    assert window.contains(at(hour=hour)) is expected


def test_wrapping_weekday_range():
    window = CalendarWindow.parse("* * * * * fri-mon *")
    # 2025-10-17 is a Friday
    assert [window.contains(at(day=d)) for d in range(13, 20)] == [
        True, False, False, False, True, True, True
    ]


def test_weekday_names_are_case_insensitive():
    window = CalendarWindow.parse("* * * * * WED,Sat *")
    assert window.contains(at(day=15))
    assert window.contains(at(day=18))
    assert not window.contains(at(day=16))


def test_sunday_is_zero_or_seven():
    sunday = at(day=19)
    assert CalendarWindow.parse("* * * * * 0 *").contains(sunday)
    assert CalendarWindow.parse("* * * * * 7 *").contains(sunday)
    assert CalendarWindow.parse("* * * * * sun *").contains(sunday)


def test_lists_and_single_values():
    window = CalendarWindow.parse("0 0,30 8 15 oct * 2025")
    assert window.contains(at(hour=8, minute=30))
    assert window.contains(at(hour=8, minute=0))
    assert not window.contains(at(hour=8, minute=15))
    assert not window.contains(at(2026, hour=8, minute=30))
    assert not window.contains(at(hour=8, minute=30, second=1))


def test_steps():
    window = CalendarWindow.parse("* */15 * * * * *")
    assert window.contains(at(minute=45))
    assert not window.contains(at(minute=50))

    window = CalendarWindow.parse("* 10-30/10 * * * * *")
    assert window.contains(at(minute=20))
    assert not window.contains(at(minute=25))
    assert not window.contains(at(minute=40))

    window = CalendarWindow.parse("* 5/20 * * * * *")
    assert window.contains(at(minute=45))
    assert not window.contains(at(minute=0))


def test_short_forms_leave_seconds_and_year_open():
    five = CalendarWindow.parse("0-30 9 * * *")
    assert five.contains(at(hour=9, minute=10, second=42))
    assert not five.contains(at(hour=10))

    six = CalendarWindow.parse("* 9 * * * 2025")
    assert six.contains(at(hour=9, second=13))
    assert not six.contains(at(2026, hour=9))


def test_month_names():
    window = CalendarWindow.parse("* * * * nov-feb * *")
    assert window.contains(at(month=1))
    assert window.contains(at(month=12))
    assert not window.contains(at(month=10))


@pytest.mark.parametrize("expression", [
    "",
    "* * * *",
    "* * * * * * * *",
    "60 * * * * * *",
    "* * 24 * * * *",
    "* * * 0 * * *",
    "* * * * 13 * *",
    "* * * * * 8 *",
    "* * * * * * 1969",
    "* * * * * funday *",
    "* 1,,2 * * * * *",
    "* */0 * * * * *",
    "* */x * * * * *",
    "* -5 * * * * *",
])
def test_invalid_windows(expression):
    with pytest.raises(ScheduleParseError):
        CalendarWindow.parse(expression)


def test_parse_error_names_field():
    with pytest.raises(ScheduleParseError) as exc_info:
        CalendarWindow.parse("* * 25 * * * *")
    assert exc_info.value.details['field'] == 'hour'
