"""
Amount extraction.

Money is always handled as an integer count of cents so that totals
never drift. The extractor scans for the FIRST number in whatever text
it is given; callers that need a specific number (e.g. the bound after
"over") pass only the matched substring.
"""

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional


_MONEY_RE = re.compile(r"(?:\$|€|£)?\s*(-?\d+(?:\.\d+)?)")

# A monetary token as it appears in raw text (commas and symbol included).
AMOUNT_TOKEN_PATTERN = r"[\$€£]?\s*\d+[\d,.]*"
AMOUNT_TOKEN_RE = re.compile(AMOUNT_TOKEN_PATTERN)

_CENT = Decimal("1")


def parse_amount_cents(text: str) -> Optional[int]:
    """
    Parse the first monetary quantity in ``text`` into cents.

    Thousands separators are ignored and the value is rounded half away
    from zero to the nearest cent.

    Examples:
        "$4.50"    -> 450
        "1,234.5"  -> 123450
        "4.455"    -> 446
        "abc"      -> None
    """
    normalized = text.replace(",", "").strip()
    match = _MONEY_RE.search(normalized)
    if not match:
        return None

    try:
        value = Decimal(match.group(1))
        if not value.is_finite():
            return None
        # quantize raises InvalidOperation past the context precision
        return int((value * 100).quantize(_CENT, rounding=ROUND_HALF_UP))
    except InvalidOperation:
        return None
