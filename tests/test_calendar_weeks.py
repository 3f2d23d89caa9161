from datetime import date, datetime, timedelta

import pytest

from planner_engine.calendar_weeks import (
    MONTHS,
    iso_week_of,
    month_from_name,
    month_of_week,
    weeks_between,
)


@pytest.mark.parametrize("value, expected", [
    (date(2026, 1, 1), 1),       # Thursday, so it starts week 1
    (date(2026, 1, 15), 3),
    ("2026-01-15", 3),
    (datetime(2026, 6, 1, 12, 30), 23),
    (date(2021, 1, 1), 53),      # Friday, still week 53 of 2020
    (date(2024, 12, 30), 1),     # Monday of week 1 of 2025
])
def test_iso_week_of(value, expected):
    assert iso_week_of(value) == expected


@pytest.mark.parametrize("year", range(2020, 2031))
def test_iso_week_non_decreasing_within_year(year):
    day = date(year, 1, 1)
    previous = None
    while day.year == year:
        week = iso_week_of(day)
        assert 1 <= week <= 53
        at_boundary = (day.month == 1 and week >= 52) or (day.month == 12 and week == 1)
        if not at_boundary:
            if previous is not None:
                assert week >= previous
            previous = week
        day += timedelta(days=1)


def test_month_of_week_is_total_and_matches_table():
    for week in range(1, 53):
        month = month_of_week(week)
        assert 0 <= month <= 11
        assert MONTHS[month].start_week <= week <= MONTHS[month].end_week


def test_month_table_covers_52_weeks_without_gaps():
    expected_start = 1
    for month in MONTHS:
        assert month.start_week == expected_start
        expected_start = month.end_week + 1
    assert MONTHS[-1].end_week == 52


@pytest.mark.parametrize("week, month", [(1, 0), (5, 0), (6, 1), (18, 3), (19, 4), (52, 11), (53, 11), (0, 0)])
def test_month_of_week_boundaries(week, month):
    assert month_of_week(week) == month


@pytest.mark.parametrize("text, expected", [
    ("Januari", 0),
    ("  januari ", 0),
    ("JAN", 0),
    ("Maj", 4),
    ("May", 4),
    ("Okt.", 9),
    ("October", 9),
    ("December", 11),
    ("Responsible", None),
    ("", None),
    (5, None),
    (None, None),
])
def test_month_from_name(text, expected):
    assert month_from_name(text) == expected


def test_weeks_between_range():
    assert weeks_between("2026-01-15", "2026-01-28") == [3, 4, 5]


def test_weeks_between_single_day_and_reversed_range():
    assert weeks_between("2026-01-15") == [3]
    assert weeks_between("2026-01-28", "2026-01-15") == [3, 4, 5]


def test_weeks_between_drops_week_53():
    # 28-31 December 2026 fall in ISO week 53
    assert weeks_between("2026-12-28", "2026-12-31") == []
