"""
Cell Normalizer.

Pure conversions from raw cells to typed field values. Every function
returns None for "leave the field unset"; nothing is coerced to a default.
"""

import math
import re
from enum import Enum
from typing import Iterable, NamedTuple, Optional, Union

from .catalog import CanonicalField, FieldKind
from .cells import Cell, DateValue, Number, cell_text
from .datetimes import parse_datetime


class Direction(str, Enum):
    CREDIT = "CREDIT"
    DEBIT = "DEBIT"
    OTHER = "OTHER"


DEBIT_TOKENS = frozenset({"DR", "DR.", "DEBIT"})
CREDIT_TOKENS = frozenset({"CR", "CR.", "CREDIT"})

NULL_TOKENS = frozenset({"n/a"})

# Taka sign, "Tk"/"Tk."/"BDT" prefixes, other common symbols, thousands separators
_CURRENCY_NOISE = re.compile(r"৳|\btk\.?|\bbdt\b|[₹$€£¥,\s]", re.IGNORECASE)


class TimestampValue(NamedTuple):
    """ISO-8601 text when parsed, otherwise the original text."""

    value: str
    parsed: bool


FieldValue = Union[str, float, TimestampValue]


def is_blank(cell: Cell) -> bool:
    text = cell_text(cell)
    return text == "" or text.lower() in NULL_TOKENS


def normalize_text(cell: Cell) -> Optional[str]:
    if is_blank(cell):
        return None
    return cell_text(cell)


def normalize_amount(cell: Cell) -> Optional[float]:
    """'৳1,234.50' -> 1234.5; '(20.00)' -> -20.0; unparseable -> None."""
    if is_blank(cell):
        return None
    if isinstance(cell, Number):
        return cell.value

    amount_str = _CURRENCY_NOISE.sub("", cell_text(cell))
    if amount_str.startswith("(") and amount_str.endswith(")"):
        amount_str = "-" + amount_str[1:-1]

    try:
        amount = float(amount_str)
    except ValueError:
        return None
    return amount if math.isfinite(amount) else None


def normalize_timestamp(
    cell: Cell, extra_formats: Iterable[str] = ()
) -> Optional[TimestampValue]:
    """Native dates are used directly; text goes through parse_datetime; failures keep the raw text."""
    if is_blank(cell):
        return None
    if isinstance(cell, DateValue):
        return TimestampValue(cell.value.isoformat(), True)

    raw = cell_text(cell)
    parsed = parse_datetime(raw, extra_formats)
    if parsed is None:
        return TimestampValue(raw, False)
    return TimestampValue(parsed.isoformat(), True)


def normalize_direction(cell: Cell) -> Optional[str]:
    """DR/DR./DEBIT -> DEBIT, CR/CR./CREDIT -> CREDIT, anything else uppercased."""
    if is_blank(cell):
        return None
    token = cell_text(cell).upper()
    if token in DEBIT_TOKENS:
        return Direction.DEBIT.value
    if token in CREDIT_TOKENS:
        return Direction.CREDIT.value
    return token


def normalize_cell(
    field: CanonicalField, cell: Cell, date_formats: Iterable[str] = ()
) -> Optional[FieldValue]:
    """Dispatch on the field's kind."""
    kind = field.kind
    if kind is FieldKind.NUMBER:
        return normalize_amount(cell)
    if kind is FieldKind.TIMESTAMP:
        return normalize_timestamp(cell, date_formats)
    if kind is FieldKind.DIRECTION:
        return normalize_direction(cell)
    return normalize_text(cell)
