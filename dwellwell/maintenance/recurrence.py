"""Helpers for turning free-text recurrence intervals into due dates."""

from __future__ import annotations

import calendar
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Literal

IntervalUnit = Literal["day", "week", "month", "year"]

_NUMERIC_PATTERN = re.compile(
    r"(\d+)\s*(day|days|week|weeks|month|months|year|years)\b"
)
_LEADING_INT = re.compile(r"^\s*(\d+)")
_ANY_INT = re.compile(r"\d+")
_KEYWORDS: dict[str, tuple[IntervalUnit, int]] = {
    "daily": ("day", 1),
    "weekly": ("week", 1),
    "monthly": ("month", 1),
    "yearly": ("year", 1),
    "annual": ("year", 1),
    "annually": ("year", 1),
}
FALLBACK_DAYS = 30


@dataclass(frozen=True, slots=True)
class RecurrenceRule:
    unit: IntervalUnit
    every: int


def _leading_int(text: str, default: int) -> int:
    match = _LEADING_INT.match(text)
    if match is None:
        return default
    return int(match.group(1)) or default


def parse_recurrence_interval(text: str | None) -> RecurrenceRule | None:
    """Parse strings like ``"90 days"``, ``"weekly"`` or ``"3 months"``.

    Empty input yields ``None``. Text that mentions no known unit is treated as
    a 30 day cadence so scheduling never breaks on odd template data.
    """

    if not text or not text.strip():
        return None
    value = text.strip().lower()

    keyword = _KEYWORDS.get(value)
    if keyword is not None:
        return RecurrenceRule(*keyword)

    match = _NUMERIC_PATTERN.search(value)
    if match is not None:
        every = max(1, int(match.group(1)))
        word = match.group(2)
        for unit in ("day", "week", "month", "year"):
            if word.startswith(unit):
                return RecurrenceRule(unit, every)  # type: ignore[arg-type]

    if "week" in value:
        return RecurrenceRule("week", _leading_int(value, 1))
    if "month" in value:
        return RecurrenceRule("month", _leading_int(value, 1))
    if "year" in value:
        return RecurrenceRule("year", _leading_int(value, 1))
    if "day" in value:
        return RecurrenceRule("day", _leading_int(value, FALLBACK_DAYS))

    return RecurrenceRule("day", FALLBACK_DAYS)


def add_months(base: datetime, months: int) -> datetime:
    """Shift ``base`` by whole months, clamping to the last day of the month."""

    month_index = base.month - 1 + months
    year = base.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return base.replace(year=year, month=month, day=min(base.day, last_day))


def add_interval(base: datetime, rule: RecurrenceRule) -> datetime:
    if rule.unit == "day":
        return base + timedelta(days=rule.every)
    if rule.unit == "week":
        return base + timedelta(weeks=rule.every)
    if rule.unit == "month":
        return add_months(base, rule.every)
    if rule.unit == "year":
        return add_months(base, 12 * rule.every)
    return base


def forward_from(base: datetime, text: str | None) -> datetime:
    """Move forward from ``base`` by the recurrence; 30 days if unparseable."""

    rule = parse_recurrence_interval(text)
    if rule is None:
        return base + timedelta(days=FALLBACK_DAYS)
    return add_interval(base, rule)


def initial_due_date(anchor: datetime, text: str | None) -> datetime:
    """First due date for a freshly created task.

    Missing recurrence text means monthly. ``quarter`` counts as three months
    and text with no recognised unit falls back to monthly as well.
    """

    value = (text or "monthly").strip().lower()
    keyword = _KEYWORDS.get(value)
    if keyword is not None:
        return add_interval(anchor, RecurrenceRule(*keyword))

    number = _ANY_INT.search(value)
    every = int(number.group(0)) if number else 1

    if "day" in value:
        return anchor + timedelta(days=every)
    if "week" in value:
        return anchor + timedelta(weeks=every)
    if "month" in value:
        return add_months(anchor, every)
    if "quarter" in value:
        return add_months(anchor, 3 * every)
    if "year" in value or "annual" in value:
        return add_months(anchor, 12 * every)
    return add_months(anchor, every)


__all__ = [
    "FALLBACK_DAYS",
    "RecurrenceRule",
    "add_interval",
    "add_months",
    "forward_from",
    "initial_due_date",
    "parse_recurrence_interval",
]
