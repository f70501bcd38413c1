"""Locale-tolerant date/time parsing shared by all statement formats."""

import logging
import re
from datetime import datetime
from typing import Iterable, Optional

import pandas as pd

logger = logging.getLogger(__name__)

# Tried after the general parser. MFS exports are day-first.
DATE_FORMATS = [
    "%Y%m%d%H%M%S",
    "%d/%m/%Y %H:%M:%S",
    "%d/%m/%Y %H:%M",
    "%d-%m-%Y %H:%M:%S",
    "%d.%m.%Y %H:%M:%S",
    "%d/%m/%Y",
    "%d-%m-%Y",
    "%d-%b-%y %I:%M:%S %p",
    "%d-%b-%Y %I:%M:%S %p",
    "%d %b %Y %H:%M:%S",
    "%d %b %Y",
]

_COMPACT_STAMP = re.compile(r"^\d{14}$")
# A date needs a day/month part: numeric (01/02, 2023-02) or a month name
_NUMERIC_DATE = re.compile(r"\d{1,4}[/\-.]\d{1,2}")
_MONTH_NAME = re.compile(r"\b(jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)", re.IGNORECASE)
# dateutil resolves these against the clock
_RELATIVE_WORDS = re.compile(r"\b(now|today|tomorrow|yesterday)\b", re.IGNORECASE)


def parse_datetime(value: str, extra_formats: Iterable[str] = ()) -> Optional[datetime]:
    """
    Parse a date/time string, returning None when nothing understands it.

    Order: compact YYYYMMDDHHMMSS, ISO-8601, pandas (day-first), then the
    explicit format list (vendor formats first).
    """
    text = str(value or "").strip()
    if not text:
        return None

    if _COMPACT_STAMP.match(text):
        try:
            return datetime.strptime(text, "%Y%m%d%H%M%S")
        except ValueError:
            return None

    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass

    # Bare numbers are not dates (dateutil would happily read "12" as a day)
    if re.fullmatch(r"[\d.,]+", text):
        return None

    # Time-only text would get today's date filled in
    if _RELATIVE_WORDS.search(text) or not (_NUMERIC_DATE.search(text) or _MONTH_NAME.search(text)):
        logger.debug(f"No date component in {text!r}")
        return None

    try:
        parsed = pd.to_datetime(text, dayfirst=True)
        if pd.notna(parsed):
            return parsed.to_pydatetime()
    except (ValueError, OverflowError, TypeError):
        pass

    for fmt in list(extra_formats) + DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue

    logger.debug(f"Unparseable date/time value: {text!r}")
    return None
