"""
Category extraction.

Two stages, first hit wins:
1. The phrase after a connective ("for", "on", "at"), cleaned of date
   words, month names, currency codes, numbers, articles and any later
   connective left at its front. Its first word is the category.
2. A fixed vocabulary of common spending categories found anywhere.

Nothing found -> "general".
"""

import re

from spendtalk.interpreter.currency import CURRENCY_CODE_RE
from spendtalk.interpreter.dates import MONTH_NAMES, RELATIVE_DATE_RE


GENERAL_CATEGORY = "general"

_MONTH_NAME_RE = re.compile(r"\b(?:" + "|".join(MONTH_NAMES) + r")\b", re.IGNORECASE)

_CONNECTIVE_RE = re.compile(r"\b(?:for|on|at)\s+([\w\s-]{2,})", re.IGNORECASE)

# Bare numbers, including ordinals and clock times like 9, 5th, 12:30 or 3 pm.
_BARE_NUMBER_RE = re.compile(
    r"\b\d+(?:st|nd|rd|th)?(?::\d{2})?(?:\s*(?:am|pm))?\b",
    re.IGNORECASE,
)

# Articles, and connectives left over once date words are gone ("on friday for lunch").
_LEADING_FILLER_RE = re.compile(r"^(?:(?:the|a|an|my|some|for|on|at)\b\s*)+", re.IGNORECASE)

_KNOWN_CATEGORY_RE = re.compile(
    r"\b(grocer(?:y|ies)|food|lunch|dinner|coffee|transport|gas|fuel|uber|lyft"
    r"|rent|utilities|entertainment|shopping|health|medical|travel|flight"
    r"|hotel|subscriptions?)\b",
    re.IGNORECASE,
)

# Plurals ending in "-ies" whose singular ends in "-ie", not "-y".
_IE_PLURALS = frozenset({
    "movies", "cookies", "smoothies", "pies", "ties", "brownies", "selfies",
})


def normalize_category(word: str) -> str:
    """
    Lowercase a category and fold "-ies" plurals to "-y".

    "Groceries" -> "grocery", "utilities" -> "utility", "movies" stays.
    """
    word = word.strip().lower()
    if word.endswith("ies") and len(word) > 4 and word not in _IE_PLURALS:
        return word[:-3] + "y"
    return word


def _from_connective(text: str) -> str:
    match = _CONNECTIVE_RE.search(text)
    if not match:
        return ""
    phrase = RELATIVE_DATE_RE.sub(" ", match.group(1))
    phrase = _MONTH_NAME_RE.sub(" ", phrase)
    phrase = CURRENCY_CODE_RE.sub(" ", phrase)
    phrase = _BARE_NUMBER_RE.sub(" ", phrase)
    phrase = _LEADING_FILLER_RE.sub("", phrase.strip())
    words = phrase.split()
    return words[0] if words else ""


def extract_category(text: str) -> str:
    """Infer a short, normalized category label from ``text``."""
    word = _from_connective(text)
    if word:
        return normalize_category(word)

    match = _KNOWN_CATEGORY_RE.search(text)
    if match:
        return normalize_category(match.group(0))

    return GENERAL_CATEGORY
