"""
Filter construction for "show" and "total" sentences.

Builds a QueryFilters in a fixed order:
1. Amount bounds ("over 20", "under 50")
2. Category (only when it is not the "general" fallback, or the user
   literally said "category")
3. Text ("containing uber", or a "quoted phrase")
4. Date range: the fixed phrases today / yesterday / this week /
   this month / this year first (first one wins), then general range
   resolution
"""

import re
from datetime import datetime, timedelta
from typing import Callable, Optional

from spendtalk.interpreter.amount import AMOUNT_TOKEN_PATTERN, parse_amount_cents
from spendtalk.interpreter.category import GENERAL_CATEGORY, extract_category
from spendtalk.interpreter.dates import (
    DateRange,
    day_range,
    month_range,
    resolve_date_range,
    week_range,
    year_range,
)
from spendtalk.models.command import QueryFilters


_MIN_BOUND_RE = re.compile(rf"\b(?:over|above)\s+({AMOUNT_TOKEN_PATTERN})", re.IGNORECASE)
_MAX_BOUND_RE = re.compile(rf"\b(?:under|below)\s+({AMOUNT_TOKEN_PATTERN})", re.IGNORECASE)

_CATEGORY_WORD_RE = re.compile(r"\bcategory\b", re.IGNORECASE)

_QUOTED_TEXT_RE = re.compile(r'"([^"]+)"')
_CONTAINING_RE = re.compile(r"\b(?:containing|matching)\s+(\w[\w-]*)", re.IGNORECASE)

_FIXED_RANGES: list[tuple[re.Pattern, Callable[[datetime], DateRange]]] = [
    (re.compile(r"\btoday\b", re.IGNORECASE), day_range),
    (re.compile(r"\byesterday\b", re.IGNORECASE), lambda now: day_range(now - timedelta(days=1))),
    (re.compile(r"\bthis\s+week\b", re.IGNORECASE), week_range),
    (re.compile(r"\bthis\s+month\b", re.IGNORECASE), month_range),
    (re.compile(r"\bthis\s+year\b", re.IGNORECASE), year_range),
]


def _bound(pattern: re.Pattern, text: str) -> Optional[int]:
    # Parse only the matched token so other numbers in the sentence
    # cannot leak into this bound.
    match = pattern.search(text)
    if not match:
        return None
    return parse_amount_cents(match.group(1))


def _text_filter(text: str) -> Optional[str]:
    match = _QUOTED_TEXT_RE.search(text) or _CONTAINING_RE.search(text)
    if not match:
        return None
    value = match.group(1).strip()
    return value or None


def _date_range(text: str, now: datetime) -> Optional[DateRange]:
    for pattern, to_range in _FIXED_RANGES:
        if pattern.search(text):
            return to_range(now)
    return resolve_date_range(text, now=now)


def build_filters(text: str, now: Optional[datetime] = None) -> QueryFilters:
    """Build the QueryFilters described by a "show"/"total" sentence."""
    now = now or datetime.now()
    fields: dict = {}

    fields["min_cents"] = _bound(_MIN_BOUND_RE, text)
    fields["max_cents"] = _bound(_MAX_BOUND_RE, text)

    category = extract_category(text)
    if category != GENERAL_CATEGORY or _CATEGORY_WORD_RE.search(text):
        fields["category"] = category

    fields["text"] = _text_filter(text)

    date_range = _date_range(text, now)
    if date_range is not None:
        fields["start"], fields["end"] = date_range

    return QueryFilters(**fields)
