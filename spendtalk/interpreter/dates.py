"""
Date and time phrase resolution.

Turns phrases such as "yesterday", "last friday", "in 2 weeks",
"March 5th" or "from 3/1 to 3/15" into concrete datetimes.

Two entry points:
- resolve_date(): one instant, falling back to ``now``
- resolve_date_range(): a (start, end) pair, or None

All datetimes are naive local time. Every function takes an explicit
``now`` so callers (and tests) control the clock.

Ambiguity rule: a bare weekday or a calendar date without a year is
read forward ("friday" = the coming Friday, today included) when
``forward`` is true, and backward (the most recent one) otherwise.
Qualified weekdays ignore ``forward``: "last friday" is always in
the past, "next friday" always in the future.
"""

import re
from datetime import datetime, time, timedelta
from typing import Callable, Optional

from dateutil import parser as dateparser
from dateutil.relativedelta import FR, MO, SA, SU, TH, TU, WE, relativedelta


DateRange = tuple[datetime, datetime]

WEEKDAY_NAMES = (
    "monday", "tuesday", "wednesday", "thursday",
    "friday", "saturday", "sunday",
)
_WEEKDAYS = (MO, TU, WE, TH, FR, SA, SU)

MONTH_NAMES = (
    "january", "february", "march", "april", "may", "june",
    "july", "august", "september", "october", "november", "december",
)

# Weeks run Sunday..Saturday. Python numbers Monday as 0.
WEEK_STARTS_ON = 6

_NUMBER_WORDS = {
    "a": 1, "an": 1, "one": 1, "two": 2, "three": 3, "four": 4,
    "five": 5, "six": 6, "seven": 7, "eight": 8, "nine": 9, "ten": 10,
}
_COUNT = r"(?P<count>\d+|an?|one|two|three|four|five|six|seven|eight|nine|ten)"

_UNITS = {
    "day": relativedelta(days=1),
    "week": relativedelta(weeks=1),
    "month": relativedelta(months=1),
    "year": relativedelta(years=1),
}

_PAST_WORDS = {"last", "past", "previous"}
_NEXT_WORDS = {"next", "coming"}

_WEEKDAY_ALT = "|".join(WEEKDAY_NAMES)
_MONTH_ALT = (
    r"jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|june?|july?"
    r"|aug(?:ust)?|sep(?:t(?:ember)?)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?"
)
_ORDINAL = r"(?:st|nd|rd|th)?"

# Relative date words stripped from categories and descriptions.
RELATIVE_DATE_PATTERN = (
    r"\b(?:(?:the\s+)?day\s+(?:before|after)\s+)?(?:yesterday|today|tonight|tomorrow)\b"
    r"|\b(?:last|next|this|past|previous|coming)\s+\w+"
    rf"|\b(?:{_WEEKDAY_ALT})\b"
    r"|\b(?:\d+|an?)\s+(?:day|week|month|year)s?\s+ago\b"
)
RELATIVE_DATE_RE = re.compile(RELATIVE_DATE_PATTERN, re.IGNORECASE)


# =============================================================================
# CALENDAR BOUNDARIES
# =============================================================================

def start_of_day(value: datetime) -> datetime:
    return datetime.combine(value.date(), time.min)


def end_of_day(value: datetime) -> datetime:
    return datetime.combine(value.date(), time.max)


def start_of_week(value: datetime) -> datetime:
    offset = (value.weekday() - WEEK_STARTS_ON) % 7
    return start_of_day(value - timedelta(days=offset))


def end_of_week(value: datetime) -> datetime:
    return end_of_day(start_of_week(value) + timedelta(days=6))


def start_of_month(value: datetime) -> datetime:
    return start_of_day(value.replace(day=1))


def end_of_month(value: datetime) -> datetime:
    return end_of_day(value + relativedelta(day=31))


def start_of_year(value: datetime) -> datetime:
    return start_of_day(value.replace(month=1, day=1))


def end_of_year(value: datetime) -> datetime:
    return end_of_day(value.replace(month=12, day=31))


def day_range(value: datetime) -> DateRange:
    return start_of_day(value), end_of_day(value)


def week_range(value: datetime) -> DateRange:
    return start_of_week(value), end_of_week(value)


def month_range(value: datetime) -> DateRange:
    return start_of_month(value), end_of_month(value)


def year_range(value: datetime) -> DateRange:
    return start_of_year(value), end_of_year(value)


_PERIOD_RANGES: dict[str, Callable[[datetime], DateRange]] = {
    "week": week_range,
    "month": month_range,
    "year": year_range,
}


def _count(word: str) -> int:
    word = word.lower()
    return int(word) if word.isdigit() else _NUMBER_WORDS[word]


def _shift(qualifier: str) -> int:
    qualifier = qualifier.lower()
    if qualifier in _PAST_WORDS:
        return -1
    if qualifier in _NEXT_WORDS:
        return 1
    return 0


# =============================================================================
# POINT RULES
# =============================================================================

PointHandler = Callable[[re.Match, datetime, bool], Optional[datetime]]


def _days_from_now(days: int) -> PointHandler:
    def handler(match: re.Match, now: datetime, forward: bool) -> datetime:
        return now + timedelta(days=days)
    return handler


def _weekday(match: re.Match, now: datetime, forward: bool) -> datetime:
    qualifier = (match.group("qualifier") or "").lower()
    target = _WEEKDAYS[WEEKDAY_NAMES.index(match.group("weekday").lower())]

    if qualifier in _PAST_WORDS:
        return now - timedelta(days=1) + relativedelta(weekday=target(-1))
    if qualifier in _NEXT_WORDS:
        return now + timedelta(days=1) + relativedelta(weekday=target(+1))
    if qualifier == "this" or forward:
        return now + relativedelta(weekday=target(+1))
    return now + relativedelta(weekday=target(-1))


def _relative_unit(match: re.Match, now: datetime, forward: bool) -> datetime:
    unit = _UNITS[match.group("unit").lower()]
    return now + unit * _shift(match.group("qualifier"))


def _ago(match: re.Match, now: datetime, forward: bool) -> datetime:
    unit = _UNITS[match.group("unit").lower()]
    return now - unit * _count(match.group("count"))


def _in_future(match: re.Match, now: datetime, forward: bool) -> datetime:
    unit = _UNITS[match.group("unit").lower()]
    return now + unit * _count(match.group("count"))


def _calendar_date(match: re.Match, now: datetime, forward: bool) -> Optional[datetime]:
    """Explicit calendar date; dateutil does the field parsing."""
    anchor = datetime.combine(now.date(), time(12, 0))
    try:
        parsed = dateparser.parse(match.group(0), default=anchor, fuzzy=True)
    except (ValueError, OverflowError):
        return None

    if match.groupdict().get("year"):
        return parsed
    if forward and parsed.date() < now.date():
        return parsed + relativedelta(years=1)
    if not forward and parsed.date() > now.date():
        return parsed - relativedelta(years=1)
    return parsed


_POINT_RULES: list[tuple[re.Pattern, PointHandler]] = [
    (re.compile(r"\b(?:the\s+)?day\s+before\s+yesterday\b", re.I), _days_from_now(-2)),
    (re.compile(r"\b(?:the\s+)?day\s+after\s+tomorrow\b", re.I), _days_from_now(2)),
    (re.compile(r"\b(?:today|tonight)\b", re.I), _days_from_now(0)),
    (re.compile(r"\byesterday\b", re.I), _days_from_now(-1)),
    (re.compile(r"\btomorrow\b", re.I), _days_from_now(1)),
    (
        re.compile(
            rf"\b(?:(?P<qualifier>last|past|previous|next|coming|this)\s+)?"
            rf"(?P<weekday>{_WEEKDAY_ALT})\b",
            re.I,
        ),
        _weekday,
    ),
    (
        re.compile(
            r"\b(?P<qualifier>last|past|previous|next|coming|this)\s+"
            r"(?P<unit>week|month|year)\b",
            re.I,
        ),
        _relative_unit,
    ),
    (
        re.compile(rf"\b{_COUNT}\s+(?P<unit>day|week|month|year)s?\s+ago\b", re.I),
        _ago,
    ),
    (
        re.compile(rf"\bin\s+{_COUNT}\s+(?P<unit>day|week|month|year)s?\b", re.I),
        _in_future,
    ),
    (
        re.compile(r"\b(?P<year>\d{4})-\d{1,2}-\d{1,2}\b"),
        _calendar_date,
    ),
    (
        re.compile(r"\b\d{1,2}/\d{1,2}(?:/(?P<year>\d{4}|\d{2}))?\b"),
        _calendar_date,
    ),
    (
        re.compile(
            rf"\b(?:{_MONTH_ALT})\.?\s+\d{{1,2}}{_ORDINAL}\b(?:,?\s+(?P<year>\d{{4}})\b)?",
            re.I,
        ),
        _calendar_date,
    ),
    (
        re.compile(
            rf"\b\d{{1,2}}{_ORDINAL}\s+(?:of\s+)?(?:{_MONTH_ALT})\b(?:,?\s+(?P<year>\d{{4}})\b)?",
            re.I,
        ),
        _calendar_date,
    ),
]

_TIME_RULES: list[re.Pattern] = [
    re.compile(
        r"\b(?:at\s+)?(?P<hour>1[0-2]|0?[1-9])(?::(?P<minute>[0-5]\d))?\s*(?P<meridiem>am|pm)\b",
        re.I,
    ),
    re.compile(r"\b(?:at\s+)?(?P<hour>[01]?\d|2[0-3]):(?P<minute>[0-5]\d)\b"),
]


def _earliest(hits: list[tuple[re.Match, object]]) -> Optional[tuple[re.Match, object]]:
    """Earliest match in the text wins; ties go to the longer phrase."""
    if not hits:
        return None
    return min(hits, key=lambda hit: (hit[0].start(), -(hit[0].end() - hit[0].start())))


def _find_point(text: str, now: datetime, forward: bool) -> Optional[tuple[re.Match, datetime]]:
    hits = []
    for pattern, handler in _POINT_RULES:
        for match in pattern.finditer(text):
            value = handler(match, now, forward)
            if value is not None:
                hits.append((match, value))
                break
    return _earliest(hits)


def _find_time(text: str) -> Optional[tuple[int, int]]:
    for pattern in _TIME_RULES:
        match = pattern.search(text)
        if not match:
            continue
        hour = int(match.group("hour"))
        minute = int(match.group("minute") or 0)
        meridiem = (match.groupdict().get("meridiem") or "").lower()
        if meridiem == "pm" and hour < 12:
            hour += 12
        elif meridiem == "am" and hour == 12:
            hour = 0
        return hour, minute
    return None


def resolve_date(
    text: str,
    now: Optional[datetime] = None,
    forward: bool = True,
) -> datetime:
    """
    Resolve the first date/time phrase in ``text`` to an instant.

    Relative day phrases keep the current time of day; explicit
    calendar dates default to noon. A time of day ("at 3pm", "15:30")
    is applied to whichever day was found. Returns ``now`` when the
    text has no recognisable phrase.
    """
    now = now or datetime.now()

    point = _find_point(text, now, forward)
    clock = _find_time(text)

    resolved = point[1] if point else now
    if clock is not None:
        hour, minute = clock
        resolved = resolved.replace(hour=hour, minute=minute, second=0, microsecond=0)
    return resolved


# =============================================================================
# RANGE RULES
# =============================================================================

RangeHandler = Callable[[re.Match, datetime, bool], Optional[DateRange]]


def _calendar_period(match: re.Match, now: datetime, forward: bool) -> DateRange:
    unit = match.group("unit").lower()
    anchor = now + _UNITS[unit] * _shift(match.group("qualifier"))
    return _PERIOD_RANGES[unit](anchor)


def _rolling_window(match: re.Match, now: datetime, forward: bool) -> DateRange:
    unit = _UNITS[match.group("unit").lower()]
    return start_of_day(now - unit * _count(match.group("count"))), end_of_day(now)


def _named_month(match: re.Match, now: datetime, forward: bool) -> Optional[DateRange]:
    month = MONTH_NAMES.index(match.group("month").lower()) + 1
    if match.group("year"):
        year = int(match.group("year"))
    elif forward:
        year = now.year if month >= now.month else now.year + 1
    else:
        # A month later than the current one must be last year's
        year = now.year if month <= now.month else now.year - 1
    try:
        return month_range(datetime(year, month, 1))
    except ValueError:
        # Year 0 and friends
        return None


_SPAN_RE = re.compile(
    r"\b(?:from|between)\s+(?P<first>.+?)\s+(?:to|until|till|through|and)\s+(?P<second>.+)",
    re.I,
)

_MONTHS_WITHOUT_MAY = "|".join(name for name in MONTH_NAMES if name != "may")

_RANGE_RULES: list[tuple[re.Pattern, RangeHandler]] = [
    (
        re.compile(
            r"\b(?P<qualifier>last|past|previous|this|current|next|coming)\s+"
            r"(?P<unit>week|month|year)\b",
            re.I,
        ),
        _calendar_period,
    ),
    (
        re.compile(
            rf"\b(?:last|past|previous)\s+{_COUNT}\s+(?P<unit>day|week|month|year)s\b",
            re.I,
        ),
        _rolling_window,
    ),
    (
        re.compile(
            rf"\b(?:(?:in|during)\s+)?(?P<month>{_MONTHS_WITHOUT_MAY})(?:\s+(?P<year>\d{{4}}))?\b",
            re.I,
        ),
        _named_month,
    ),
    (
        # "may" is only a month when it clearly reads as one
        re.compile(r"\b(?:in|during)\s+(?P<month>may)(?:\s+(?P<year>\d{4}))?\b", re.I),
        _named_month,
    ),
]


def _resolve_span(text: str, now: datetime, forward: bool) -> Optional[DateRange]:
    match = _SPAN_RE.search(text)
    if not match:
        return None
    first = _find_point(match.group("first"), now, forward)
    second = _find_point(match.group("second"), now, forward)
    if first is None or second is None:
        return None
    start, end = sorted((first[1], second[1]))
    return start_of_day(start), end_of_day(end)


def resolve_date_range(
    text: str,
    now: Optional[datetime] = None,
    forward: bool = False,
) -> Optional[DateRange]:
    """
    Resolve the first date phrase in ``text`` to a (start, end) range.

    Spans ("from X to Y") win when both ends resolve. Otherwise the
    earliest phrase wins: calendar periods and month names cover their
    whole period, single days cover start-of-day to end-of-day.
    Returns None when nothing date-like is present.
    """
    now = now or datetime.now()

    span = _resolve_span(text, now, forward)
    if span is not None:
        return span

    hits: list[tuple[re.Match, DateRange]] = []
    for pattern, handler in _RANGE_RULES:
        match = pattern.search(text)
        if not match:
            continue
        window = handler(match, now, forward)
        if window is not None:
            hits.append((match, window))

    point = _find_point(text, now, forward)
    if point is not None:
        match, value = point
        hits.append((match, day_range(value)))

    best = _earliest(hits)
    return best[1] if best else None
