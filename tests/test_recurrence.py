from datetime import date, timedelta
from types import SimpleNamespace

from services.recurrence import compute_next_run, initial_next_run
from utils.date_helpers import sunday_weekday


def make_rule(frequency="monthly", day_of_month=None, weekday=None):
    return SimpleNamespace(frequency=frequency, day_of_month=day_of_month, weekday=weekday)


def test_monthly_day_31_into_february_clamps_to_month_length():
    rule = make_rule("monthly", day_of_month=31)
    assert compute_next_run(rule, date(2024, 1, 31)) == date(2024, 2, 29)
    assert compute_next_run(rule, date(2023, 1, 31)) == date(2023, 2, 28)


def test_monthly_anchor_is_restored_after_a_short_month():
    rule = make_rule("monthly", day_of_month=31)
    assert compute_next_run(rule, date(2024, 2, 29)) == date(2024, 3, 31)
    assert compute_next_run(rule, date(2024, 3, 31)) == date(2024, 4, 30)


def test_quarterly_and_yearly_clamp_into_february():
    assert compute_next_run(make_rule("quarterly", day_of_month=31), date(2024, 11, 30)) == date(2025, 2, 28)
    assert compute_next_run(make_rule("yearly", day_of_month=29), date(2024, 2, 29)) == date(2025, 2, 28)


def test_unanchored_monthly_keeps_reference_day():
    assert compute_next_run(make_rule("monthly"), date(2024, 1, 15)) == date(2024, 2, 15)
    assert compute_next_run(make_rule("monthly"), date(2024, 1, 31)) == date(2024, 2, 29)


def test_weekly_without_weekday_is_plus_seven_days():
    assert compute_next_run(make_rule("weekly"), date(2024, 3, 4)) == date(2024, 3, 11)


def test_weekly_already_aligned_does_not_move():
    # 2024-03-04 is a Monday, weekday 1 with Sunday = 0
    rule = make_rule("weekly", weekday=1)
    assert compute_next_run(rule, date(2024, 3, 4)) == date(2024, 3, 11)


def test_weekly_aligns_forward_to_weekday():
    assert compute_next_run(make_rule("weekly", weekday=5), date(2024, 3, 4)) == date(2024, 3, 15)
    assert compute_next_run(make_rule("weekly", weekday=0), date(2024, 3, 4)) == date(2024, 3, 17)


def test_biweekly_is_plus_fourteen_days():
    assert compute_next_run(make_rule("biweekly"), date(2024, 3, 4)) == date(2024, 3, 18)


def test_unknown_frequency_is_treated_as_monthly():
    assert compute_next_run(make_rule("fortnightly"), date(2024, 1, 15)) == date(2024, 2, 15)
    assert compute_next_run(make_rule(None), date(2024, 1, 15)) == date(2024, 2, 15)


def test_day_based_frequencies_match_weekday_and_never_run_early():
    start = date(2024, 1, 1)
    for frequency, days in (("weekly", 7), ("biweekly", 14)):
        for weekday in range(7):
            rule = make_rule(frequency, weekday=weekday)
            for offset in range(14):
                ref = start + timedelta(days=offset)
                nxt = compute_next_run(rule, ref)
                assert sunday_weekday(nxt) == weekday
                assert ref + timedelta(days=days) <= nxt < ref + timedelta(days=days + 7)


def test_next_run_is_always_after_reference():
    ref = date(2024, 1, 28)
    for frequency in ("weekly", "biweekly", "monthly", "quarterly", "yearly"):
        for day in (None, 1, 15, 31):
            for offset in range(40):
                d = ref + timedelta(days=offset)
                assert compute_next_run(make_rule(frequency, day_of_month=day), d) > d


def test_initial_next_run_keeps_future_start_date():
    rule = make_rule("monthly")
    assert initial_next_run(rule, date(2024, 6, 1), date(2024, 5, 10)) == date(2024, 6, 1)


def test_initial_next_run_schedules_from_today_otherwise():
    rule = make_rule("monthly")
    assert initial_next_run(rule, date(2024, 5, 10), date(2024, 5, 10)) == date(2024, 6, 10)
    assert initial_next_run(rule, None, date(2024, 5, 10)) == date(2024, 6, 10)
