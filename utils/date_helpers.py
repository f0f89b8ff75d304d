from datetime import date, datetime, time, timedelta
import calendar
from utils.constants import DATE_FORMAT, MONTH_FORMAT


def today() -> date:
    return date.today()


def current_month_str() -> str:
    return date.today().strftime(MONTH_FORMAT)


def parse_date(date_str) -> date | None:
    """Parse a date string in YYYY-MM-DD format, returning None on failure.

    date objects are passed through unchanged.
    """
    if not date_str:
        return None
    if isinstance(date_str, datetime):
        return date_str.date()
    if isinstance(date_str, date):
        return date_str
    for fmt in ("%Y-%m-%d", "%Y/%m/%d", "%Y.%m.%d"):
        try:
            return datetime.strptime(str(date_str).strip(), fmt).date()
        except ValueError:
            continue
    return None


def format_date(d: date) -> str:
    return d.strftime(DATE_FORMAT)


def format_month(d: date) -> str:
    return d.strftime(MONTH_FORMAT)


def parse_month(month_str: str) -> date | None:
    """Return the first day of the given YYYY-MM month string."""
    if not month_str:
        return None
    try:
        return datetime.strptime(month_str, MONTH_FORMAT).date()
    except ValueError:
        return None


def parse_clock(value: str, default: str = "00:00") -> time:
    """Parse an HH:MM wall-clock setting."""
    for candidate in (value, default):
        try:
            return datetime.strptime((candidate or "").strip(), "%H:%M").time()
        except ValueError:
            continue
    return time(0, 0)


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def month_bounds(d: date) -> tuple[date, date]:
    """Return (first_day, last_day) of the month containing d."""
    return d.replace(day=1), d.replace(day=days_in_month(d.year, d.month))


def month_range(month_str: str) -> tuple[str, str]:
    """Return (first_day_str, last_day_str) for a YYYY-MM month."""
    d = parse_month(month_str)
    if d is None:
        raise ValueError(f"Invalid month: {month_str}")
    first, last = month_bounds(d)
    return format_date(first), format_date(last)


def clamp_day_to_month(year: int, month: int, day: int) -> int:
    """Clamp day to valid range for the given year/month."""
    return min(day, days_in_month(year, month))


def add_months(d: date, n: int) -> date:
    """Add n months to date d, clamping day to month end."""
    month = d.month - 1 + n
    year = d.year + month // 12
    month = month % 12 + 1
    day = clamp_day_to_month(year, month, d.day)
    return d.replace(year=year, month=month, day=day)


def sunday_weekday(d: date) -> int:
    """Weekday number with 0 = Sunday .. 6 = Saturday."""
    return (d.weekday() + 1) % 7


def prior_iso_week(d: date) -> tuple[date, date]:
    """Monday..Sunday of the ISO week before the one containing d."""
    this_monday = d - timedelta(days=d.weekday())
    start = this_monday - timedelta(days=7)
    return start, start + timedelta(days=6)


def prior_month(d: date) -> tuple[date, date]:
    """First..last day of the calendar month before the one containing d."""
    return month_bounds(add_months(d.replace(day=1), -1))
