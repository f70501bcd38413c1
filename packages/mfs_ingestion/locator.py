"""
Header Row Locator.

Statement exports often carry a title block, blank spacer rows or an OCR
preamble above the real column headers. The locator scores the first few
rows against the vendor's header catalog and picks the most header-like
one, falling back to the vendor's default header list when nothing scores
well enough.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .catalog import CanonicalField, FieldKind
from .cells import Cell, cell_text, is_blank_row
from .formats import VendorFormat

logger = logging.getLogger(__name__)

# Long digit runs are phone/account numbers, i.e. data
_LONG_DIGITS = re.compile(r"^\d{8,}$")
_DATE_SHAPED = re.compile(
    r"^\d{1,2}[/\-.]\d{1,2}[/\-.]\d{2,4}"
    r"|\d{1,2}-(jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)-\d{2}",
    re.IGNORECASE,
)
# Columns whose values are long digit runs by nature
_ID_FIELDS = frozenset({
    CanonicalField.TRANSACTION_ID,
    CanonicalField.STATEMENT_ACCOUNT,
    CanonicalField.COUNTERPARTY_ACCOUNT,
    CanonicalField.SENDER,
    CanonicalField.RECEIVER,
})


@dataclass
class RowScore:
    """Scoring breakdown for one candidate row."""

    row_index: int
    raw_score: float
    non_empty: int
    critical_matched: int
    mapped_fields: frozenset = frozenset()

    @property
    def normalized(self) -> float:
        return self.raw_score / max(1, self.non_empty)


@dataclass
class HeaderDetection:
    """Outcome of header-row location for one sheet."""

    header_row_index: int
    headers: List[str]
    confident: bool
    best_score: Optional[float] = None
    # Raw strings of the detected row; None when the default list was used
    identified_headers: Optional[List[str]] = None
    candidates: List[RowScore] = field(default_factory=list)


def trim_trailing_blanks(headers: Sequence[str]) -> List[str]:
    trimmed = list(headers)
    while trimmed and not str(trimmed[-1] or "").strip():
        trimmed.pop()
    return trimmed


class HeaderRowLocator:
    """Scores candidate header rows for a given vendor format."""

    def __init__(self, vendor_format: VendorFormat):
        self.vendor_format = vendor_format
        self.catalog = vendor_format.catalog
        self.weights = vendor_format.weights
        self._reference_labels = vendor_format.reference_labels
        self._serial_label = re.compile(vendor_format.serial_label_pattern, re.IGNORECASE)

    def looks_like_data(self, text: str, mapped: Optional[CanonicalField]) -> bool:
        """True for long digit strings outside ID columns and date-shaped strings outside date columns."""
        if _LONG_DIGITS.match(text):
            return mapped not in _ID_FIELDS
        if _DATE_SHAPED.search(text):
            return mapped is None or mapped.kind is not FieldKind.TIMESTAMP
        return False

    def score_row(self, row_index: int, texts: Sequence[str]) -> Optional[RowScore]:
        """Score one row, or None when the row has too few non-empty cells to be a header."""
        weights = self.weights
        fmt = self.vendor_format

        non_empty = sum(1 for t in texts if t)
        if non_empty < fmt.min_non_empty_cells:
            return None

        score = 0.0
        matched = set()
        for text in texts:
            if not text:
                continue
            mapped = self.catalog.resolve(text)
            if mapped is not None:
                score += weights.mapped
                matched.add(mapped)
                if mapped in fmt.critical_fields:
                    score += weights.critical
                if text.lower() in self._reference_labels:
                    score += weights.reference_label
            if self.looks_like_data(text, mapped):
                score += weights.data_like_penalty

        critical_matched = len(matched & fmt.critical_fields)
        if critical_matched < fmt.required_critical_count:
            score += weights.insufficient_critical_penalty
        else:
            score += weights.critical_bonus * critical_matched

        return RowScore(
            row_index=row_index,
            raw_score=score,
            non_empty=non_empty,
            critical_matched=critical_matched,
            mapped_fields=frozenset(matched),
        )

    def find_serial_row(self, rows: Sequence[Sequence[Cell]]) -> Optional[int]:
        """Index of the first row whose first cell reads like a serial-number label ('SI.', 'Sl No')."""
        for index, row in enumerate(rows):
            if row and self._serial_label.match(cell_text(row[0])):
                return index
        return None

    def locate(self, rows: Sequence[Sequence[Cell]], file_name: str = "") -> HeaderDetection:
        """Pick the header row of a sheet (all rows; only the first ``scan_depth`` are scored)."""
        fmt = self.vendor_format
        candidates: List[RowScore] = []
        best: Optional[RowScore] = None
        best_texts: List[str] = []

        for index, row in enumerate(rows[: fmt.scan_depth]):
            if is_blank_row(row):
                continue
            texts = [cell_text(c) for c in row]
            scored = self.score_row(index, texts)
            if scored is None:
                continue
            candidates.append(scored)
            if best is None or scored.normalized > best.normalized:
                best = scored
                best_texts = texts

        if best is not None and best.normalized >= fmt.confidence_threshold:
            identified = trim_trailing_blanks(best_texts)
            return HeaderDetection(
                header_row_index=best.row_index,
                headers=identified,
                confident=True,
                best_score=best.normalized,
                identified_headers=list(identified),
                candidates=candidates,
            )

        best_score = best.normalized if best is not None else None
        serial_row = self.find_serial_row(rows)
        header_row_index = serial_row if serial_row is not None else 0
        logger.warning(
            f"{fmt.label}: could not confidently identify a header row "
            f"(best score: {best_score if best_score is None else round(best_score, 2)}). "
            f"File: {file_name or '<unnamed>'}. Using default headers at row {header_row_index}."
        )
        return HeaderDetection(
            header_row_index=header_row_index,
            headers=trim_trailing_blanks(fmt.default_headers),
            confident=False,
            best_score=best_score,
            identified_headers=None,
            candidates=candidates,
        )
