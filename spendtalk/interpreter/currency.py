"""Currency detection from symbols and ISO codes in free text."""

import re

from spendtalk.models.command import DEFAULT_CURRENCY, CurrencyCode


# Checked in order; the first hit wins.
_CURRENCY_EVIDENCE: list[tuple[re.Pattern, CurrencyCode]] = [
    (re.compile("€"), CurrencyCode.EUR),
    (re.compile("£"), CurrencyCode.GBP),
    (re.compile(r"\bINR\b|₹"), CurrencyCode.INR),
    (re.compile(r"\bCAD\b"), CurrencyCode.CAD),
    (re.compile(r"\bAUD\b"), CurrencyCode.AUD),
    (re.compile(r"\bJPY\b|¥"), CurrencyCode.JPY),
]

CURRENCY_CODE_RE = re.compile(
    r"\b(?:" + "|".join(code.value for code in CurrencyCode) + r")\b"
)


def detect_currency(text: str) -> CurrencyCode:
    """
    Infer the currency of ``text``.

    This is a fixed priority list, not a vote: "€5 and £3" is EUR.
    Anything unrecognised is USD.
    """
    for pattern, code in _CURRENCY_EVIDENCE:
        if pattern.search(text):
            return code
    return DEFAULT_CURRENCY
