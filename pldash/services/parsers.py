import calendar
import datetime as dt
import logging
import math
import re
from typing import Any, Iterable, List, Optional, Tuple

import pandas as pd

from pldash.core.errors import ParseError

logger = logging.getLogger(__name__)

BLANK_MARKERS = {"", "-", "--", "n/a", "na", "none", "nan"}
DATE_FORMATS = ("%m/%d/%Y", "%m/%d/%y", "%Y-%m-%d", "%Y/%m/%d", "%b %d, %Y", "%B %d, %Y")
MONTH_NAMES = {name: index for index, name in enumerate(calendar.month_name) if name}
_MONTH_LABEL = re.compile(r"^(%s)\s+(\d{4})$" % "|".join(MONTH_NAMES))


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and pd.isna(value):
        return True
    return isinstance(value, str) and value.strip().lower() in BLANK_MARKERS


def _clean_number_text(value: str) -> Tuple[str, bool]:
    text = value.strip().replace("$", "").replace(",", "").replace(" ", "")
    negative = text.startswith("(") and text.endswith(")")
    if negative:
        text = text[1:-1]
    return text, negative


def parse_currency(value: Any) -> float:
    """
    Parse a spreadsheet money cell such as "$12,345.67" or "(1,200.00)".

    Blank cells and "-" read as 0.0. Anything else that is not a number
    raises ParseError so the caller can decide how to recover.
    """
    if isinstance(value, bool):
        raise ParseError(value, "currency")
    if isinstance(value, (int, float)) and not is_blank(value):
        if not math.isfinite(value):
            raise ParseError(value, "currency")
        return float(value)
    if is_blank(value):
        return 0.0
    if not isinstance(value, str):
        raise ParseError(value, "currency")

    text, negative = _clean_number_text(value)
    try:
        number = float(text)
    except ValueError:
        raise ParseError(value, "currency")
    if not math.isfinite(number):
        raise ParseError(value, "currency")
    return -number if negative else number


def parse_percent(value: Any) -> float:
    """Parse "12.5%" as 12.5. Blank cells read as 0.0."""
    if isinstance(value, (int, float)) and not isinstance(value, bool) and not is_blank(value):
        return float(value)
    if is_blank(value):
        return 0.0
    if not isinstance(value, str):
        raise ParseError(value, "percent")
    text = value.strip()
    if text.endswith("%"):
        text = text[:-1]
    try:
        return parse_currency(text)
    except ParseError:
        raise ParseError(value, "percent")


def parse_date(value: Any) -> dt.date:
    """
    Parse a date cell using explicit formats (M/d/yyyy first).

    Never falls back to today or the epoch: blank or malformed input raises
    ParseError.
    """
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if is_blank(value) or not isinstance(value, str):
        raise ParseError(value, "date")

    text = value.strip()
    for fmt in DATE_FORMATS:
        try:
            return dt.datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    # ISO timestamps ("2024-03-14T00:00:00Z")
    if len(text) > 10 and text[4] == "-" and text[10] in "T ":
        try:
            return dt.datetime.strptime(text[:10], "%Y-%m-%d").date()
        except ValueError:
            pass
    raise ParseError(value, "date")


def currency_or_zero(value: Any) -> float:
    try:
        return parse_currency(value)
    except ParseError as e:
        logger.debug(f"Defaulting to 0: {e}")
        return 0.0


def date_or_none(value: Any) -> Optional[dt.date]:
    try:
        return parse_date(value)
    except ParseError as e:
        logger.debug(f"Defaulting to None: {e}")
        return None


def parse_net_terms(value: Any, default: int = 30) -> int:
    """
    Read payment terms as a number of days.

    "Net 15" -> 15, "Weekly" -> 7, "Bi-Monthly" -> 15, "Monthly" -> 30. A
    plain number is taken as-is.
    """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return int(value)
    if is_blank(value) or not isinstance(value, str):
        return default

    text = value.strip().lower()
    if text.isdigit():
        return int(text)
    match = re.search(r"net\s*(\d+)", text)
    if match:
        return int(match.group(1))
    if "weekly" in text:
        return 7
    if "bi-monthly" in text or "bi monthly" in text:
        return 15
    if "monthly" in text:
        return 30
    return default


def is_month_label(text: str) -> bool:
    return bool(_MONTH_LABEL.match(text.strip())) if text else False


def parse_month_label(text: str) -> Optional[Tuple[int, int]]:
    """Parse "July 2025" as (2025, 7)."""
    if not text:
        return None
    match = _MONTH_LABEL.match(text.strip())
    if not match:
        return None
    return int(match.group(2)), MONTH_NAMES[match.group(1)]


def sort_month_labels(labels: Iterable[str], newest_first: bool = True) -> List[str]:
    def _key(label: str) -> int:
        parsed = parse_month_label(label)
        return parsed[0] * 12 + parsed[1] if parsed else 0

    return sorted(labels, key=_key, reverse=newest_first)


def month_label(year: int, month: int) -> str:
    return f"{calendar.month_name[month]} {year}"
