"""Pure calendar calculations: no UI dependencies."""

import calendar
from datetime import date, datetime, timedelta

DAY_LABELS = ["M", "T", "W", "T", "F", "S", "S"]


def calendar_day(value: date | datetime) -> date:
    """Project a date or datetime onto its calendar day.

    A timezone-aware datetime keeps its own timezone; nothing is converted.
    """
    if isinstance(value, datetime):
        return value.date()
    return value


def first_of_month(value: date | datetime) -> date:
    """Return the 1st of the month containing ``value``."""
    return calendar_day(value).replace(day=1)


def first_of_next_month(first_day: date) -> date:
    """Return the 1st of the month after ``first_day``.

    35 days past any 1st always lands inside the following month, whatever
    the month's length, so no length table is needed.
    """
    return (first_day + timedelta(days=35)).replace(day=1)


def month_weeks(reference: date | datetime) -> dict[int, list[date]]:
    """Partition the month of ``reference`` into ISO weeks.

    Returns ``{iso_week_number: [date, ...]}`` with the dates of each week in
    ascending order. Week numbers wrap at year boundaries (52/53 -> 1), so
    use :func:`ordered_weeks` to get display order.
    """
    first_day = first_of_month(reference)
    end = first_of_next_month(first_day)

    weeks: dict[int, list[date]] = {}
    d = first_day
    while d < end:
        weeks.setdefault(d.isocalendar()[1], []).append(d)
        d += timedelta(days=1)
    return weeks


def ordered_weeks(weeks: dict[int, list[date]]) -> list[list[date]]:
    """Return the weeks of a partition ordered by their first date."""
    return sorted(weeks.values(), key=lambda days: days[0])


def leading_padding(days: list[date]) -> int:
    """Number of empty columns before the first day (Monday = 0)."""
    return days[0].weekday()


def day_key(d: date) -> str:
    return d.isoformat()


def week_key(days: list[date]) -> str:
    return day_key(days[0])


def format_day(d: date) -> str:
    """Zero-padded day of month, e.g. ``"05"``."""
    return f"{d.day:02d}"


def month_title(value: date | datetime) -> str:
    """Return e.g. ``"February 2024"``."""
    d = calendar_day(value)
    return f"{calendar.month_name[d.month]} {d.year:04d}"


def prev_month(year: int, month: int) -> tuple[int, int]:
    """Return (year, month) for one month earlier."""
    if month == 1:
        return year - 1, 12
    return year, month - 1


def next_month(year: int, month: int) -> tuple[int, int]:
    """Return (year, month) for one month later."""
    if month == 12:
        return year + 1, 1
    return year, month + 1


def shift_month(value: date | datetime, months: int) -> date | datetime:
    """Move ``value`` to the 1st of the month ``months`` away.

    Keeps the value's type, time of day and tzinfo.
    """
    year, month = value.year, value.month
    step = next_month if months > 0 else prev_month
    for _ in range(abs(months)):
        year, month = step(year, month)
    return value.replace(year=year, month=month, day=1)
