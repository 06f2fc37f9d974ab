"""
Interpreter Package

Deterministic, rule-based interpretation of one sentence into one
Command. Pure and synchronous; every entry point takes an explicit
``now`` for its clock.
"""

from spendtalk.interpreter.amount import parse_amount_cents
from spendtalk.interpreter.category import (
    GENERAL_CATEGORY,
    extract_category,
    normalize_category,
)
from spendtalk.interpreter.classifier import (
    COMMAND_RULES,
    CommandRule,
    ParseContext,
    describe,
    parse_command,
)
from spendtalk.interpreter.currency import detect_currency
from spendtalk.interpreter.dates import resolve_date, resolve_date_range
from spendtalk.interpreter.filters import build_filters

__all__ = [
    # Classifier
    "COMMAND_RULES",
    "CommandRule",
    "ParseContext",
    "describe",
    "parse_command",
    # Extractors
    "GENERAL_CATEGORY",
    "build_filters",
    "detect_currency",
    "extract_category",
    "normalize_category",
    "parse_amount_cents",
    "resolve_date",
    "resolve_date_range",
]
