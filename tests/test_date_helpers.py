from datetime import date, time

from utils.date_helpers import (
    add_months,
    month_range,
    parse_clock,
    parse_date,
    prior_iso_week,
    prior_month,
    sunday_weekday,
)


def test_add_months_clamps_to_month_end():
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2024, 12, 15), 1) == date(2025, 1, 15)
    assert add_months(date(2024, 3, 31), -1) == date(2024, 2, 29)


def test_sunday_weekday():
    assert sunday_weekday(date(2024, 3, 10)) == 0
    assert sunday_weekday(date(2024, 3, 16)) == 6


def test_prior_iso_week_is_monday_to_sunday():
    assert prior_iso_week(date(2024, 3, 11)) == (date(2024, 3, 4), date(2024, 3, 10))
    assert prior_iso_week(date(2024, 3, 17)) == (date(2024, 3, 4), date(2024, 3, 10))
    assert prior_iso_week(date(2024, 1, 3)) == (date(2023, 12, 25), date(2023, 12, 31))


def test_prior_month_handles_year_transition():
    assert prior_month(date(2025, 1, 5)) == (date(2024, 12, 1), date(2024, 12, 31))


def test_month_helpers():
    assert month_range("2024-02") == ("2024-02-01", "2024-02-29")


def test_parse_date_and_clock():
    assert parse_date("2024-03-05") == date(2024, 3, 5)
    assert parse_date(date(2024, 3, 5)) == date(2024, 3, 5)
    assert parse_date("05/03/2024") is None
    assert parse_clock("06:30") == time(6, 30)
    assert parse_clock("", "03:05") == time(3, 5)
    assert parse_clock("late", "bad") == time(0, 0)
