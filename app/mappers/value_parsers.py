"""
app/mappers/value_parsers.py

Numeric, percentage and date parsing for raw spreadsheet values.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime, timezone
from typing import Any

_NON_NUMERIC = re.compile(r"[^0-9.\-]")

_MONTH_ABBREVIATIONS: dict[str, int] = {
    "jan": 1,
    "feb": 2,
    "mar": 3,
    "apr": 4,
    "may": 5,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "sep": 9,
    "oct": 10,
    "nov": 11,
    "dec": 12,
}

_DAY_MONTH_NAME = re.compile(r"^(\d{1,2})[-\s/]([A-Za-z]{3,9})[-\s/](\d{2}|\d{4})$")
_NUMERIC_PARTS = re.compile(r"^(\d{1,2})[/\-.](\d{1,2})[/\-.](\d{2,4})$")
_EPOCH = re.compile(r"^\d{10}(\d{3})?$")

DATE_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%Y-%m-%d %H:%M:%S",
    "%Y/%m/%d %H:%M:%S",
    "%d %B %Y",
    "%B %d, %Y",
)

_MIN_EPOCH_YEAR = 2000
_MAX_EPOCH_YEAR = 2050


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()


def stringify_value(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def _normalize_fraction(value: float) -> float:
    if value > 100:
        return 1.0
    return value / 100


def parse_numeric(raw: Any, is_reach_value: bool = False) -> float | None:
    """
    Parse a currency, percentage or plain number into a float.

    Reach values above 1 (and any value written with a ``%`` sign) are read
    as percentages: divided by 100 when at most 100, clamped to 1.0 above.
    Unparseable input yields None.
    """

    if raw is None or isinstance(raw, bool):
        return None

    if isinstance(raw, (int, float)):
        value = float(raw)
        if math.isnan(value):
            return None
        if is_reach_value and value > 1:
            return _normalize_fraction(value)
        return value

    text = str(raw).strip()
    if not text:
        return None

    has_percent = "%" in text
    cleaned = _NON_NUMERIC.sub("", text)
    # Only a leading minus sign is meaningful.
    if "-" in cleaned[1:]:
        cleaned = cleaned[0] + cleaned[1:].replace("-", "")
    try:
        value = float(cleaned)
    except ValueError:
        return None
    if math.isnan(value):
        return None

    if (is_reach_value or has_percent) and value > 1:
        return _normalize_fraction(value)
    return value


def parse_int(raw: Any) -> int | None:
    """
    Parse a whole number; "2.0" is accepted, "2.5" is not.
    """

    value = parse_numeric(raw)
    if value is None or not value.is_integer():
        return None
    return int(value)


def _safe_date(year: int, month: int, day: int) -> date | None:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _expand_year(year: int) -> int:
    return year + 2000 if year < 100 else year


def parse_date(raw: Any) -> date | None:
    """
    Parse a spreadsheet date into a ``date``.

    Accepts ISO dates and timestamps, ``DD-Mon-YY`` / ``DD-Mon-YYYY``,
    slash/dash/dot separated day and month (day first when the first part
    exceeds 12, else month first), and 10/13 digit epoch timestamps.
    """

    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    if isinstance(raw, (int, float)):
        return _parse_epoch(int(raw))

    text = str(raw).strip()
    if not text:
        return None

    if _EPOCH.match(text):
        return _parse_epoch(int(text))

    match = _DAY_MONTH_NAME.match(text)
    if match:
        month = _MONTH_ABBREVIATIONS.get(match.group(2)[:3].lower())
        if month is None:
            return None
        return _safe_date(_expand_year(int(match.group(3))), month, int(match.group(1)))

    match = _NUMERIC_PARTS.match(text)
    if match:
        first, second, year = (int(part) for part in match.groups())
        if first > 12:
            return _safe_date(_expand_year(year), second, first)
        return _safe_date(_expand_year(year), first, second)

    normalized = text[:-1] + "+00:00" if text.endswith("Z") else text
    try:
        return datetime.fromisoformat(normalized).date()
    except ValueError:
        pass

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def _parse_epoch(timestamp: int) -> date | None:
    seconds = timestamp / 1000 if len(str(abs(timestamp))) == 13 else timestamp
    try:
        parsed = datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None
    if not _MIN_EPOCH_YEAR <= parsed.year <= _MAX_EPOCH_YEAR:
        return None
    return parsed.date()


def weeks_between(start: date, end: date) -> float:
    """
    Whole weeks between two dates, rounded to 2 decimals.
    """

    return round((end - start).days / 7, 2)
