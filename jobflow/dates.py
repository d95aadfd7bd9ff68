"""Calendar-day helpers for deadlines.

All helpers work on the ``YYYY-MM-DD`` part of a date string and build
plain ``date`` values from it, so the result never depends on the caller's
timezone offset.
"""

import re
from datetime import date, datetime, time, timedelta
from typing import Iterable, Optional

_YMD_RE = re.compile(r"^\s*(\d{4})-(\d{1,2})-(\d{1,2})")

MONTHS = {
    # French
    "janvier": 1, "février": 2, "fevrier": 2, "mars": 3, "avril": 4, "mai": 5,
    "juin": 6, "juillet": 7, "août": 8, "aout": 8, "septembre": 9,
    "octobre": 10, "novembre": 11, "décembre": 12, "decembre": 12,
    # English
    "january": 1, "february": 2, "march": 3, "april": 4, "may": 5, "june": 6,
    "july": 7, "august": 8, "september": 9, "october": 10, "november": 11,
    "december": 12,
}

# strftime patterns for the locales the UI is used with
LOCALE_FORMATS = {
    "fr-ch": "%d.%m.%Y",
    "de-ch": "%d.%m.%Y",
    "fr-fr": "%d/%m/%Y",
    "en-gb": "%d/%m/%Y",
    "en-us": "%m/%d/%Y",
}


def parse_ymd(date_str: Optional[str]) -> Optional[date]:
    """Return the calendar date at the start of ``date_str``, or None."""
    if not date_str:
        return None
    match = _YMD_RE.match(date_str)
    if not match:
        return None
    year, month, day = (int(g) for g in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def normalize_ymd(date_str: Optional[str]) -> str:
    """Normalize to ``YYYY-MM-DD``; empty string when not a date."""
    parsed = parse_ymd(date_str)
    return parsed.isoformat() if parsed else ""


def days_until(date_str: Optional[str], today: Optional[date] = None) -> Optional[int]:
    """Calendar days from today to ``date_str``; None means no deadline."""
    target = parse_ymd(date_str)
    if target is None:
        return None
    today = today or date.today()
    return (target - today).days


def is_overdue(date_str: Optional[str], today: Optional[date] = None) -> bool:
    days = days_until(date_str, today)
    return days is not None and days < 0


def is_urgent(date_str: Optional[str], today: Optional[date] = None, within: int = 7) -> bool:
    days = days_until(date_str, today)
    return days is not None and 0 <= days <= within


def matches_calendar_day(date_str: Optional[str], year: int, month: int, day: int) -> bool:
    """True iff ``date_str`` falls on the given calendar day.

    ``month`` is 1-12 like ``datetime.date.month``, not a 0-based month
    index. Compares normalized strings only, never datetimes.
    """
    normalized = normalize_ymd(date_str)
    if not normalized:
        return False
    return normalized == f"{year:04d}-{month:02d}-{day:02d}"


def format_for_display(date_str: Optional[str], locale: str = "fr-CH") -> str:
    """Format a deadline for display; empty string when missing."""
    parsed = parse_ymd(date_str)
    if parsed is None:
        return ""
    # Noon keeps the value on the same day whatever the offset
    at_noon = datetime.combine(parsed, time(12, 0))
    pattern = LOCALE_FORMATS.get(locale.lower())
    if pattern is None:
        return parsed.isoformat()
    return at_noon.strftime(pattern)


def parse_deadline(raw: Optional[str]) -> Optional[str]:
    """Parse a human deadline to ISO ``YYYY-MM-DD``.

    Accepts ``DD/MM/YYYY``, ``DD.MM.YYYY``, ``DD-MM-YY`` and
    ``DD <month> YYYY`` with French or English month names.
    """
    if not raw:
        return None
    cleaned = re.sub(r"\s+", " ", raw.strip()).lower()

    match = re.search(r"(\d{1,2})(?:er)?\s+([a-zéû]+)\s+(\d{4})", cleaned)
    if match and match.group(2) in MONTHS:
        return _safe_iso(int(match.group(3)), MONTHS[match.group(2)], int(match.group(1)))

    match = re.search(r"(\d{1,2})[./-](\d{1,2})[./-](\d{2,4})", cleaned)
    if match:
        day, month, year = (int(g) for g in match.groups())
        if year < 100:
            year += 2000
        return _safe_iso(year, month, day)

    return None


def _safe_iso(year: int, month: int, day: int) -> Optional[str]:
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def week_days(today: Optional[date] = None) -> list[date]:
    """Monday to Sunday of the week containing ``today``."""
    today = today or date.today()
    monday = today - timedelta(days=today.weekday())
    return [monday + timedelta(days=i) for i in range(7)]


def deadlines_on(applications: Iterable, day: date) -> list:
    """Applications whose deadline falls on ``day``."""
    return [
        app for app in applications
        if matches_calendar_day(app.deadline, day.year, day.month, day.day)
    ]
