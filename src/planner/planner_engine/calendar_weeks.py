"""ISO week numbers and the month/week table used by planning sheets."""

from datetime import date, datetime, timedelta
from typing import List, NamedTuple, Optional, Union


class MonthDef(NamedTuple):
    index: int  # 0-11
    name: str
    short_name: str
    start_week: int
    end_week: int


# Fixed week spans per month; December absorbs the remainder.
MONTHS: List[MonthDef] = [
    MonthDef(0, "Januari", "Jan", 1, 5),
    MonthDef(1, "Februari", "Feb", 6, 9),
    MonthDef(2, "Mars", "Mar", 10, 13),
    MonthDef(3, "April", "Apr", 14, 18),
    MonthDef(4, "Maj", "Maj", 19, 22),
    MonthDef(5, "Juni", "Jun", 23, 26),
    MonthDef(6, "Juli", "Jul", 27, 30),
    MonthDef(7, "Augusti", "Aug", 31, 35),
    MonthDef(8, "September", "Sep", 36, 39),
    MonthDef(9, "Oktober", "Okt", 40, 44),
    MonthDef(10, "November", "Nov", 45, 48),
    MonthDef(11, "December", "Dec", 49, 52),
]

MAX_WEEK = 52

_ENGLISH_NAMES = [
    "january", "february", "march", "april", "may", "june",
    "july", "august", "september", "october", "november", "december",
]


def _build_month_aliases() -> dict:
    aliases = {}
    for month in MONTHS:
        aliases[month.name.lower()] = month.index
        aliases[month.short_name.lower()] = month.index
    for index, name in enumerate(_ENGLISH_NAMES):
        aliases.setdefault(name, index)
        aliases.setdefault(name[:3], index)
    aliases['sept'] = 8
    return aliases


MONTH_ALIASES = _build_month_aliases()

DateLike = Union[date, datetime, str]


def _to_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def iso_week_of(value: DateLike) -> int:
    """
    Return the ISO-8601 week number of a date.

    The week containing the year's first Thursday is week 1, so dates in
    early January can belong to week 52 or 53 of the previous year.

    Args:
        value: date, datetime or ISO "YYYY-MM-DD" string

    Returns:
        Week number in [1, 53]
    """
    return _to_date(value).isocalendar()[1]


def month_of_week(week: int) -> int:
    """Map a week number to its month index (0-11) using MONTHS."""
    for month in MONTHS:
        if month.start_week <= week <= month.end_week:
            return month.index
    return MONTHS[-1].index if week > MAX_WEEK else MONTHS[0].index


def month_from_name(text: object) -> Optional[int]:
    """
    Resolve a month name (full or abbreviated) to its index.

    Args:
        text: Cell value such as "Januari", "jan", "Okt." or "October"

    Returns:
        Month index 0-11 or None if the text is not a month name
    """
    if not isinstance(text, str):
        return None
    key = text.strip().lower().rstrip('.')
    return MONTH_ALIASES.get(key)


def weeks_between(start: DateLike, end: Optional[DateLike] = None) -> List[int]:
    """
    List the ISO weeks touched by a date range, limited to 1-52.

    Args:
        start: First day of the range
        end: Last day of the range (defaults to start)

    Returns:
        Sorted, deduplicated week numbers
    """
    first = _to_date(start)
    last = _to_date(end) if end else first
    if last < first:
        first, last = last, first

    weeks = set()
    current = first
    while current <= last:
        weeks.add(iso_week_of(current))
        current += timedelta(days=7)
    weeks.add(iso_week_of(last))

    return sorted(w for w in weeks if 1 <= w <= MAX_WEEK)
