"""
Raw cell values as read from a statement sheet.

Loaders hand back whatever the workbook engine produced (str, int, float,
datetime, NaN, None). Everything downstream works on the tagged variant
below instead of inspecting those types again.
"""

import math
import numbers
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any, List, Sequence, Union

import pandas as pd

# Rendering used when a native date cell has to be shown as text
# (header scoring, display). Matches the day-first layout of MFS exports.
DATE_TEXT_FORMAT = "%d/%m/%Y %H:%M:%S"


@dataclass(frozen=True)
class Empty:
    """Blank / missing cell."""


@dataclass(frozen=True)
class Text:
    value: str


@dataclass(frozen=True)
class Number:
    value: float


@dataclass(frozen=True)
class DateValue:
    value: datetime


Cell = Union[Empty, Text, Number, DateValue]

EMPTY = Empty()
_CELL_TYPES = (Empty, Text, Number, DateValue)


def to_cell(value: Any) -> Cell:
    """Convert a loader value into a Cell."""
    if value is None:
        return EMPTY

    if isinstance(value, _CELL_TYPES):
        return value

    if isinstance(value, str):
        return Text(value) if value.strip() else EMPTY

    if isinstance(value, bool):
        return Text(str(value))

    # pd.Timestamp is a datetime subclass; NaT is caught by isna below
    if isinstance(value, datetime):
        if pd.isna(value):
            return EMPTY
        if isinstance(value, pd.Timestamp):
            return DateValue(value.to_pydatetime())
        return DateValue(value)

    if isinstance(value, date):
        return DateValue(datetime.combine(value, time()))

    if isinstance(value, time):
        return Text(value.isoformat())

    if isinstance(value, numbers.Real):
        number = float(value)
        if math.isnan(number) or math.isinf(number):
            return EMPTY
        return Number(number)

    if pd.isna(value):
        return EMPTY

    text = str(value)
    return Text(text) if text.strip() else EMPTY


def to_cells(values: Sequence[Any]) -> List[Cell]:
    return [to_cell(v) for v in values]


def cell_text(cell: Cell) -> str:
    """Render a cell as trimmed text ("" for blank cells)."""
    if isinstance(cell, Text):
        return cell.value.strip()
    if isinstance(cell, Number):
        number = cell.value
        # Account numbers and ids come back from Excel as floats
        if number.is_integer() and abs(number) < 1e16:
            return str(int(number))
        return repr(number)
    if isinstance(cell, DateValue):
        return cell.value.strftime(DATE_TEXT_FORMAT)
    return ""


def is_blank_row(cells: Sequence[Cell]) -> bool:
    return all(cell_text(c) == "" for c in cells)
