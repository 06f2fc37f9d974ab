"""
Command Classifier

Turns one free-form sentence into exactly one Command.

DESIGN DECISION: Classification is a PRIORITY LIST, not a best-match
search. COMMAND_RULES is evaluated top to bottom; the first rule that
applies AND builds a command wins. A rule may apply but still decline
(build returns None), e.g. "spent on lunch" has an add verb but no
amount, so the cascade moves on.

Because the table is plain data, tests and callers can inspect it or
pass a different table to parse_command() without touching dispatch.

GUARANTEE: parse_command() never raises. Anything unrecognised, or any
unexpected failure inside a rule, degrades to Help.
"""

import re
from datetime import datetime
from typing import Callable, Optional, Sequence

from pydantic import BaseModel, ConfigDict

from spendtalk.audit.logger import get_logger
from spendtalk.interpreter.amount import AMOUNT_TOKEN_RE, parse_amount_cents
from spendtalk.interpreter.category import extract_category, normalize_category
from spendtalk.interpreter.currency import CURRENCY_CODE_RE, detect_currency
from spendtalk.interpreter.dates import RELATIVE_DATE_RE, resolve_date
from spendtalk.interpreter.filters import build_filters
from spendtalk.models.command import (
    AddExpense,
    BudgetPeriod,
    ClearAll,
    Command,
    DeleteById,
    DeleteLast,
    Help,
    SetBudget,
    Show,
    Total,
    Undo,
)


logger = get_logger(__name__)


class ParseContext(BaseModel):
    """One sentence being classified."""
    model_config = ConfigDict(frozen=True)

    text: str       # trimmed original text
    lowered: str
    now: datetime


class CommandRule(BaseModel):
    """
    One entry of the classification table.

    ``applies`` is a cheap predicate; ``build`` produces the command or
    None to let the cascade continue.
    """
    model_config = ConfigDict(frozen=True)

    name: str
    applies: Callable[[ParseContext], bool]
    build: Callable[[ParseContext], Optional[Command]]


# =============================================================================
# PATTERNS
# =============================================================================

_HELP_RE = re.compile(r"\bhelp\b|\bwhat can i say\b")
_UNDO_RE = re.compile(r"\bundo\b")
_CLEAR_ALL_RE = re.compile(r"\bclear\s+all\b")
_DELETE_LAST_RE = re.compile(r"\b(?:delete|remove)\s+last\b")
_DELETE_ID_RE = re.compile(r"\b(?:delete|remove)\s+([a-z]+_[a-z0-9]+_[a-z0-9]+)\b")
_SHOW_RE = re.compile(r"\b(?:show|list|filter)\b")
_TOTAL_RE = re.compile(r"\btotal\b|\bsum\b|\bhow much\b|\bspent\s+in\s+total\b")
_ACTION_VERB_RE = re.compile(r"\b(?:add|spent|spend|buy|bought|record|log)\b", re.IGNORECASE)
_TEMPORAL_RE = re.compile(r"\b(?:this|last|today|yesterday|week|month|year)\b")

_CURRENCY_CODES = r"USD|EUR|GBP|CAD|AUD|INR|JPY"
_BUDGET_RE = re.compile(
    r"\bset\s+budget\s+"
    rf"(?P<amount>[\$€£₹¥]?\s*\d[\d,]*(?:\.\d+)?(?:\s*(?:{_CURRENCY_CODES})\b)?)"
    r"\s+(?:for\s+)?(?P<category>[\w-]+)"
    r"(?:\s+(?P<period>monthly|weekly))?",
    re.IGNORECASE,
)

_FOR_RE = re.compile(r"\bfor\b", re.IGNORECASE)
_EDGE_CONNECTIVES_RE = re.compile(
    r"^(?:(?:for|on|at)\b\s*)+|(?:\s*\b(?:for|on|at))+$",
    re.IGNORECASE,
)


# =============================================================================
# BUILDERS
# =============================================================================

def _matches(pattern: re.Pattern) -> Callable[[ParseContext], bool]:
    return lambda ctx: pattern.search(ctx.lowered) is not None


def _always(ctx: ParseContext) -> bool:
    return True


def _constant(command: Command) -> Callable[[ParseContext], Command]:
    return lambda ctx: command


def _delete_by_id(ctx: ParseContext) -> Optional[Command]:
    match = _DELETE_ID_RE.search(ctx.lowered)
    return DeleteById(id=match.group(1)) if match else None


def _show(ctx: ParseContext) -> Command:
    return Show(filters=build_filters(ctx.text, now=ctx.now))


def _total(ctx: ParseContext) -> Command:
    return Total(filters=build_filters(ctx.text, now=ctx.now))


def _set_budget(ctx: ParseContext) -> Optional[Command]:
    match = _BUDGET_RE.search(ctx.text)
    if not match:
        return None
    amount_cents = parse_amount_cents(match.group("amount"))
    if amount_cents is None:
        return None
    period = match.group("period")
    return SetBudget(
        category=normalize_category(match.group("category")),
        amount_cents=amount_cents,
        period=BudgetPeriod(period.lower()) if period else BudgetPeriod.MONTHLY,
        currency=detect_currency(match.group("amount").upper()),
    )


def describe(text: str, category: str) -> str:
    """
    Derive an expense description from the original sentence.

    Removes the action verb, the word "for", the amount, currency codes
    and relative date words, then any connective left dangling at
    either end. Falls back to the category when nothing is left.
    """
    cleaned = _ACTION_VERB_RE.sub(" ", text, count=1)
    cleaned = _FOR_RE.sub(" ", cleaned, count=1)
    cleaned = AMOUNT_TOKEN_RE.sub(" ", cleaned, count=1)
    cleaned = CURRENCY_CODE_RE.sub(" ", cleaned)
    cleaned = RELATIVE_DATE_RE.sub(" ", cleaned)
    cleaned = " ".join(cleaned.split())
    cleaned = _EDGE_CONNECTIVES_RE.sub("", cleaned).strip()
    return cleaned or category


def _add_expense(ctx: ParseContext) -> Optional[Command]:
    amount_cents = parse_amount_cents(ctx.text)
    if amount_cents is None:
        return None
    category = extract_category(ctx.text)
    return AddExpense(
        description=describe(ctx.text, category),
        category=category,
        amount_cents=amount_cents,
        currency=detect_currency(ctx.text),
        spent_at=resolve_date(ctx.text, now=ctx.now),
    )


def _bare_amount(ctx: ParseContext) -> Optional[Command]:
    amount_cents = parse_amount_cents(ctx.text)
    if amount_cents is None:
        return None
    category = extract_category(ctx.text)
    return AddExpense(
        description=category,
        category=category,
        amount_cents=amount_cents,
        currency=detect_currency(ctx.text),
        spent_at=resolve_date(ctx.text, now=ctx.now),
    )


# =============================================================================
# THE TABLE (order is load-bearing)
# =============================================================================

COMMAND_RULES: tuple[CommandRule, ...] = (
    CommandRule(name="empty", applies=lambda ctx: not ctx.text, build=_constant(Help())),
    CommandRule(name="help", applies=_matches(_HELP_RE), build=_constant(Help())),
    CommandRule(name="undo", applies=_matches(_UNDO_RE), build=_constant(Undo())),
    CommandRule(name="clear_all", applies=_matches(_CLEAR_ALL_RE), build=_constant(ClearAll())),
    CommandRule(name="delete_last", applies=_matches(_DELETE_LAST_RE), build=_constant(DeleteLast())),
    CommandRule(name="delete_by_id", applies=_matches(_DELETE_ID_RE), build=_delete_by_id),
    CommandRule(name="show", applies=_matches(_SHOW_RE), build=_show),
    CommandRule(name="total", applies=_matches(_TOTAL_RE), build=_total),
    CommandRule(name="set_budget", applies=_matches(_BUDGET_RE), build=_set_budget),
    CommandRule(name="add_expense", applies=_matches(_ACTION_VERB_RE), build=_add_expense),
    CommandRule(name="bare_amount", applies=_always, build=_bare_amount),
    CommandRule(name="temporal_show", applies=_matches(_TEMPORAL_RE), build=_show),
    CommandRule(name="fallback", applies=_always, build=_constant(Help())),
)


def parse_command(
    text: str,
    now: Optional[datetime] = None,
    rules: Sequence[CommandRule] = COMMAND_RULES,
) -> Command:
    """
    Classify ``text`` into exactly one Command.

    Args:
        text: The sentence as typed by the user
        now: Reference instant for relative dates (defaults to now)
        rules: Classification table, highest priority first

    Returns:
        The command built by the first rule that applies and accepts
        the text, or Help.
    """
    text = (text or "").strip()
    ctx = ParseContext(text=text, lowered=text.lower(), now=now or datetime.now())

    for rule in rules:
        try:
            if not rule.applies(ctx):
                continue
            command = rule.build(ctx)
        except Exception as e:
            logger.warning("command_rule_failed", rule=rule.name, error=str(e))
            return Help()
        if command is not None:
            logger.debug("command_parsed", rule=rule.name, kind=command.kind)
            return command

    return Help()
