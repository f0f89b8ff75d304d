"""Next-occurrence arithmetic for recurring rules.

Pure functions: no storage, no clock. Callers pass the reference date.
"""
import logging
from datetime import date, timedelta

from utils.constants import DAY_INTERVALS, MONTH_INTERVALS
from utils.date_helpers import add_months, clamp_day_to_month, sunday_weekday

logger = logging.getLogger(__name__)


def compute_next_run(rule, reference_date: date) -> date:
    """Return the next run date for `rule` fired (or created) on reference_date.

    `rule` needs `frequency`, `day_of_month` and `weekday` attributes; weekday
    is 0=Sunday..6=Saturday. Unknown frequencies are treated as monthly.
    """
    frequency = getattr(rule, "frequency", None)

    if frequency in DAY_INTERVALS:
        candidate = reference_date + timedelta(days=DAY_INTERVALS[frequency])
        return _align_to_weekday(candidate, getattr(rule, "weekday", None))

    months = MONTH_INTERVALS.get(frequency)
    if months is None:
        logger.debug("Unknown frequency %r, treating as monthly", frequency)
        months = MONTH_INTERVALS["monthly"]
    return _add_months_anchored(reference_date, months, getattr(rule, "day_of_month", None))


def initial_next_run(rule, start_date: date | None, today: date) -> date:
    """First next_run_date for a new rule.

    A start date after today is kept; anything else schedules from today.
    """
    if start_date and start_date > today:
        return start_date
    return compute_next_run(rule, today)


def _align_to_weekday(d: date, weekday: int | None) -> date:
    if weekday is None or not 0 <= weekday <= 6:
        return d
    while sunday_weekday(d) != weekday:
        d += timedelta(days=1)
    return d


def _add_months_anchored(d: date, months: int, day_of_month: int | None) -> date:
    nxt = add_months(d, months)
    if day_of_month:
        nxt = nxt.replace(day=clamp_day_to_month(nxt.year, nxt.month, day_of_month))
    return nxt
