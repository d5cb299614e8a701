"""Date helpers for the weekly dues calendar.

Schedule windows coming from the backend describe the pay day with a
Sunday-based index (0 = Sunday ... 6 = Saturday). Python's ``date.weekday()``
is Monday-based (0 = Monday ... 6 = Sunday), so every conversion between the
two conventions goes through :func:`sunday_based_weekday`. Mixing the two is
the easiest way to get pay dates that are off by one day.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Union

DEFAULT_PAY_DAY = 5  # Friday, Sunday-based

DAY_NAMES = {
    "en": ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"],
    "id": ["Minggu", "Senin", "Selasa", "Rabu", "Kamis", "Jumat", "Sabtu"],
}


def parse_iso_date(value: Union[str, date, datetime]) -> date:
    """Parse a ``YYYY-MM-DD`` value into a ``date``.

    Parameters
    ----------
    value: str | date | datetime
        Backend payloads sometimes carry full timestamps such as
        ``"2026-01-01T00:00:00.000000Z"``; only the first ten characters are
        used, so the time component and timezone suffix are ignored.

    Raises
    ------
    ValueError
        If the value is empty or not a valid calendar date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or len(value.strip()) < 10:
        raise ValueError(f"Invalid ISO date: {value!r}")
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError as exc:
        raise ValueError(f"Invalid ISO date: {value!r}") from exc


def sunday_based_weekday(dt: date) -> int:
    """Return the weekday of ``dt`` with Sunday = 0 and Saturday = 6."""
    return (dt.weekday() + 1) % 7


def align_to_weekday(base: date, pay_day: int) -> date:
    """Move ``base`` to ``pay_day`` within its Sunday-to-Saturday week.

    The shift is measured forward from the Sunday that starts ``base``'s
    week, so the result can lie up to six days before or after ``base``.
    """
    week_start = base - timedelta(days=sunday_based_weekday(base))
    return week_start + timedelta(days=pay_day)


def start_of_week(dt: date) -> date:
    """Return the Monday of the week containing ``dt``."""
    return dt - timedelta(days=dt.weekday())


def same_week(a: date, b: date) -> bool:
    """True when ``a`` and ``b`` fall in the same Monday-start week."""
    return start_of_week(a) == start_of_week(b)


def day_name(pay_day: int, locale: str = "en") -> str:
    names = DAY_NAMES.get(locale, DAY_NAMES["en"])
    if 0 <= pay_day < len(names):
        return names[pay_day]
    return names[DEFAULT_PAY_DAY]


def relative_label(offset: int, locale: str = "en") -> str:
    """Label a slot by its distance from the center slot.

    ``0`` is the current week, positive offsets are rendered with a leading
    plus sign. The Indonesian locale prefixes the label with ``Minggu``.
    """
    if offset == 0:
        text = "ini" if locale == "id" else "this week"
    elif offset > 0:
        text = f"+{offset}"
    else:
        text = str(offset)
    if locale == "id":
        return f"Minggu {text}"
    return text
