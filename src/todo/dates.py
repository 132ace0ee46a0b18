"""Calendar helpers and the default natural-language date parser.

Due dates are stored as plain ``YYYY-MM-DD`` strings. Whenever a due date is
compared against an instant it is placed at midday so that a timezone shift
of a few hours never moves it onto a neighbouring day.

``NaturalDateParser`` is the injected date capability used by the store,
the resolver and the priority heuristic. Anything exposing the same two
methods (``parse_date`` and ``parse_date_range``) can replace it.
"""

from __future__ import annotations

import calendar
import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Optional, Tuple

ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

MIDDAY = time(12, 0)
ONE_MS = timedelta(milliseconds=1)

_WEEKDAYS = {
    "monday": 0,
    "tue": 1, "tues": 1, "tuesday": 1,
    "wednesday": 2,
    "thu": 3, "thur": 3, "thurs": 3, "thursday": 3,
    "fri": 4, "friday": 4,
    "saturday": 5,
    "sunday": 6,
}

_MONTHS = {
    "jan": 1, "january": 1,
    "feb": 2, "february": 2,
    "mar": 3, "march": 3,
    "apr": 4, "april": 4,
    "may": 5,
    "jun": 6, "june": 6,
    "jul": 7, "july": 7,
    "aug": 8, "august": 8,
    "sep": 9, "sept": 9, "september": 9,
    "oct": 10, "october": 10,
    "nov": 11, "november": 11,
    "dec": 12, "december": 12,
}

_NUMBER_WORDS = {
    "a": 1, "an": 1, "one": 1, "two": 2, "three": 3, "four": 4, "five": 5,
    "six": 6, "seven": 7, "eight": 8, "nine": 9, "ten": 10, "couple of": 2,
}

_WEEKDAY_PATTERN = "|".join(sorted(_WEEKDAYS, key=len, reverse=True))
_MONTH_PATTERN = "|".join(sorted(_MONTHS, key=len, reverse=True))
_AMOUNT_PATTERN = r"\d+|" + "|".join(sorted(_NUMBER_WORDS, key=len, reverse=True))

_ISO_RE = re.compile(r"\b(\d{4})-(\d{1,2})-(\d{1,2})\b")
_RELATIVE_RE = re.compile(
    rf"\bin\s+({_AMOUNT_PATTERN})\s+(minute|min|hour|hr|day|week|month)s?\b"
)
_WEEKDAY_RE = re.compile(rf"\b(?:(next|this|coming)\s+)?({_WEEKDAY_PATTERN})\b")
_MONTH_DAY_RE = re.compile(
    rf"\b({_MONTH_PATTERN})\.?\s+(\d{{1,2}})(?:st|nd|rd|th)?(?:,?\s*(\d{{4}}))?\b"
)
_DAY_MONTH_RE = re.compile(
    rf"\b(\d{{1,2}})(?:st|nd|rd|th)?\s+(?:of\s+)?({_MONTH_PATTERN})\b(?:,?\s*(\d{{4}}))?"
)
_NUMERIC_RE = re.compile(r"\b(\d{1,2})/(\d{1,2})(?:/(\d{2,4}))?\b")
_TIME_AMPM_RE = re.compile(r"\b(\d{1,2})(?::(\d{2}))?\s*([ap])\.?m\.?\b")
_TIME_24H_RE = re.compile(r"\b(?:at\s+)?([01]?\d|2[0-3]):([0-5]\d)\b")
_BETWEEN_RE = re.compile(r"\b(?:between|from)\s+(.+?)\s+(?:and|to|until|till)\s+(.+)$")


@dataclass(frozen=True)
class DateRange:
    """Inclusive instant range. ``end`` is None when only a start was found."""

    start: datetime
    end: Optional[datetime] = None


def format_date(value: date) -> str:
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    """Return the calendar date for ``YYYY-MM-DD`` or None when invalid."""
    if not value or not ISO_DATE_RE.match(value.strip()):
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        return None


def is_iso_date(value: Optional[str]) -> bool:
    return parse_iso_date(value) is not None


def start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def end_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=23, minute=59, second=59, microsecond=999000)


def at_midday(day: date, reference: datetime) -> datetime:
    """Place ``day`` at 12:00 in the timezone of ``reference``."""
    return datetime.combine(day, MIDDAY, tzinfo=reference.tzinfo)


def add_months(day: date, months: int) -> date:
    """Shift by whole months, clamping to the last day of the target month."""
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return day.replace(year=year, month=month, day=min(day.day, last_day))


def shift_date(day: date, days: int = 0, weeks: int = 0, months: int = 0) -> date:
    shifted = add_months(day, months) if months else day
    return shifted + timedelta(days=days, weeks=weeks)


def is_before_today(due_date: Optional[str], now: datetime) -> bool:
    """True when ``due_date`` falls strictly before the calendar day of ``now``."""
    day = parse_iso_date(due_date)
    if day is None:
        return False
    return at_midday(day, now) < start_of_day(now)


def _amount(token: str) -> int:
    token = token.strip()
    if token.isdigit():
        return int(token)
    return _NUMBER_WORDS.get(token, 1)


def _next_weekday(day: date, weekday: int, strictly_after: bool) -> date:
    ahead = (weekday - day.weekday()) % 7
    if ahead == 0 and strictly_after:
        ahead = 7
    return day + timedelta(days=ahead)


def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


class NaturalDateParser:
    """Regex based, forward-biased date parser.

    "Friday" means the next Friday (today counts), "next Friday" is strictly
    after today, and a month/day without a year that already passed rolls
    over into next year. Expressions without a time of day land at midday.
    """

    def parse_date(self, text: Optional[str], reference: datetime) -> Optional[datetime]:
        if not text:
            return None
        lowered = text.strip().lower()
        found = self._find_day(lowered, reference)
        clock = self._find_time(lowered)

        if found is None:
            if clock is None:
                return None
            moment = datetime.combine(reference.date(), clock, tzinfo=reference.tzinfo)
            if moment < reference:
                moment += timedelta(days=1)
            return moment

        day, exact = found
        if exact is not None:
            return exact
        if clock is None:
            clock = time(20, 0) if "tonight" in lowered else MIDDAY
        return datetime.combine(day, clock, tzinfo=reference.tzinfo)

    def parse_date_range(self, text: Optional[str], reference: datetime) -> Optional[DateRange]:
        if not text:
            return None
        lowered = text.strip().lower()
        today = reference.date()

        between = _BETWEEN_RE.search(lowered)
        if between:
            first = self.parse_date(between.group(1), reference)
            second = self.parse_date(between.group(2), reference)
            if first and second:
                low, high = sorted((first, second))
                return DateRange(start_of_day(low), end_of_day(high))

        span = self._find_span(lowered, today)
        if span is not None:
            first_day, last_day = span
            return DateRange(
                datetime.combine(first_day, time.min, tzinfo=reference.tzinfo),
                end_of_day(datetime.combine(last_day, time.min, tzinfo=reference.tzinfo)),
            )

        single = self.parse_date(lowered, reference)
        if single is None:
            return None
        return DateRange(start_of_day(single))

    def _find_span(self, text: str, today: date) -> Optional[Tuple[date, date]]:
        monday = today - timedelta(days=today.weekday())
        if re.search(r"\b(this|current)\s+week\b", text) or text.strip() in ("week", "the week"):
            return monday, monday + timedelta(days=6)
        if re.search(r"\bnext\s+week\b", text):
            start = monday + timedelta(days=7)
            return start, start + timedelta(days=6)
        if re.search(r"\blast\s+week\b", text):
            start = monday - timedelta(days=7)
            return start, start + timedelta(days=6)
        if re.search(r"\b(this\s+)?weekend\b", text):
            saturday = _next_weekday(today, 5, strictly_after=False)
            if today.weekday() == 6:
                saturday = today - timedelta(days=1)
            return saturday, saturday + timedelta(days=1)
        if re.search(r"\b(this|current)\s+month\b", text):
            first = today.replace(day=1)
            return first, today.replace(day=calendar.monthrange(today.year, today.month)[1])
        if re.search(r"\bnext\s+month\b", text):
            first = add_months(today.replace(day=1), 1)
            return first, first.replace(day=calendar.monthrange(first.year, first.month)[1])
        return None

    def _find_day(self, text: str, reference: datetime) -> Optional[Tuple[date, Optional[datetime]]]:
        """Return (day, exact) where ``exact`` is set for minute/hour offsets."""
        today = reference.date()

        match = _ISO_RE.search(text)
        if match:
            day = _safe_date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
            if day:
                return day, None

        if "day after tomorrow" in text:
            return today + timedelta(days=2), None
        if re.search(r"\b(tomorrow|tmrw|tmr)\b", text):
            return today + timedelta(days=1), None
        if re.search(r"\b(today|tonight|this evening|this afternoon|this morning)\b", text):
            return today, None
        if re.search(r"\byesterday\b", text):
            return today - timedelta(days=1), None

        match = _RELATIVE_RE.search(text)
        if match:
            amount = _amount(match.group(1))
            unit = match.group(2)
            if unit in ("minute", "min"):
                exact = reference + timedelta(minutes=amount)
                return exact.date(), exact
            if unit in ("hour", "hr"):
                exact = reference + timedelta(hours=amount)
                return exact.date(), exact
            if unit == "day":
                return today + timedelta(days=amount), None
            if unit == "week":
                return today + timedelta(weeks=amount), None
            return add_months(today, amount), None

        if re.search(r"\bnext\s+week\b", text):
            return today + timedelta(days=7), None
        if re.search(r"\bnext\s+month\b", text):
            return add_months(today, 1), None
        if re.search(r"\bend\s+of\s+(the\s+)?month\b", text):
            return today.replace(day=calendar.monthrange(today.year, today.month)[1]), None
        if re.search(r"\bend\s+of\s+(the\s+)?week\b", text):
            return _next_weekday(today, 6, strictly_after=False), None

        match = _WEEKDAY_RE.search(text)
        if match:
            qualifier, name = match.group(1), match.group(2)
            return _next_weekday(today, _WEEKDAYS[name], strictly_after=qualifier == "next"), None

        match = _MONTH_DAY_RE.search(text)
        if match:
            day = self._calendar_day(today, _MONTHS[match.group(1)], int(match.group(2)), match.group(3))
            if day:
                return day, None

        match = _DAY_MONTH_RE.search(text)
        if match:
            day = self._calendar_day(today, _MONTHS[match.group(2)], int(match.group(1)), match.group(3))
            if day:
                return day, None

        match = _NUMERIC_RE.search(text)
        if match:
            year_text = match.group(3)
            if year_text and len(year_text) == 2:
                year_text = f"20{year_text}"
            day = self._calendar_day(today, int(match.group(1)), int(match.group(2)), year_text)
            if day:
                return day, None

        return None

    @staticmethod
    def _calendar_day(today: date, month: int, day: int, year_text: Optional[str]) -> Optional[date]:
        if year_text:
            return _safe_date(int(year_text), month, day)
        candidate = _safe_date(today.year, month, day)
        if candidate and candidate < today:
            candidate = _safe_date(today.year + 1, month, day)
        return candidate

    @staticmethod
    def _find_time(text: str) -> Optional[time]:
        if re.search(r"\bnoon\b", text):
            return time(12, 0)
        if re.search(r"\bmidnight\b", text):
            return time(23, 59)
        match = _TIME_AMPM_RE.search(text)
        if match:
            hour = int(match.group(1))
            minute = int(match.group(2)) if match.group(2) else 0
            if hour > 12 or minute > 59:
                return None
            if match.group(3) == "p" and hour != 12:
                hour += 12
            if match.group(3) == "a" and hour == 12:
                hour = 0
            return time(hour, minute)
        match = _TIME_24H_RE.search(text)
        if match:
            return time(int(match.group(1)), int(match.group(2)))
        return None
