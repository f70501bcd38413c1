"""
Canonical transaction records and the row-by-row builder.
"""

import hashlib
import secrets
from dataclasses import asdict, dataclass, fields
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from .catalog import CanonicalField
from .cells import Cell, is_blank_row
from .formats import VendorFormat
from .normalizer import Direction, TimestampValue, normalize_cell


@dataclass(frozen=True)
class TransactionRecord:
    """One statement line in vendor-independent form. Never mutated after build."""

    id: str
    source_file_id: str
    file_name: str
    row_index: int  # 1-based sheet row, header rows included
    transaction_id: str
    serial: Optional[str] = None
    timestamp: Optional[str] = None  # ISO-8601, or the raw text when unparseable
    transaction_type: Optional[str] = None
    statement_account: Optional[str] = None
    counterparty_account: Optional[str] = None
    counterparty_name: Optional[str] = None
    sender: Optional[str] = None
    receiver: Optional[str] = None
    channel: Optional[str] = None
    reference: Optional[str] = None
    direction: Optional[str] = None  # CREDIT / DEBIT / OTHER or the uppercased raw token
    amount: Optional[float] = None
    fee: Optional[float] = None
    balance_after: Optional[float] = None
    status: Optional[str] = None

    @property
    def fingerprint(self) -> str:
        """
        Deterministic SHA256 of the transaction content (provenance excluded).

        SHA256(timestamp[:19]|amount.2f|TRANSACTION_ID|STATEMENT_ACCOUNT|COUNTERPARTY)
        """
        amount = "" if self.amount is None else f"{self.amount:.2f}"
        counterparty = self.counterparty_account or self.receiver or self.sender or ""
        raw = (
            f"{(self.timestamp or '')[:19]}|{amount}|{self.transaction_id.strip().upper()}"
            f"|{(self.statement_account or '').strip().upper()}|{counterparty.strip().upper()}"
        )
        return hashlib.sha256(raw.encode("utf-8")).hexdigest()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for DataFrame creation / JSON output."""
        data = asdict(self)
        data["fingerprint"] = self.fingerprint
        return data


RECORD_FIELDS = [f.name for f in fields(TransactionRecord)]

HeaderMapping = Mapping[int, CanonicalField]
IdFactory = Callable[[str, int], str]


def random_record_id(source_file_id: str, row_number: int) -> str:
    """'<file>-<row>-<5 random chars>'; unique per build, never reused."""
    return f"{source_file_id}-{row_number}-{secrets.token_hex(3)[:5]}"


class RecordBuilder:
    """
    Turns data rows into TransactionRecords using a fixed header mapping.

    A row is kept only when it has a transaction id and either a parsed
    timestamp or a parsed amount; anything else is discarded quietly.
    """

    def __init__(
        self,
        mapping: HeaderMapping,
        vendor_format: VendorFormat,
        source_file_id: str,
        file_name: Optional[str] = None,
        id_factory: Optional[IdFactory] = None,
    ):
        self.mapping = dict(sorted(mapping.items()))
        self.vendor_format = vendor_format
        self.source_file_id = source_file_id
        self.file_name = file_name or source_file_id
        self.id_factory = id_factory or random_record_id

    def infer_direction(self, transaction_type: Optional[str]) -> Optional[str]:
        """Keyword-based direction for formats without a DR/CR column."""
        keywords = self.vendor_format.direction_keywords
        if not keywords or not transaction_type:
            return None
        lower = transaction_type.lower()
        for direction, needles in keywords.items():
            if any(needle in lower for needle in needles):
                return direction
        return Direction.OTHER.value

    def build(self, row: Sequence[Cell], sheet_row_index: int) -> Optional[TransactionRecord]:
        """
        Build the record for one data row.

        Args:
            row: Cells of the data row.
            sheet_row_index: 0-based position of the row in the sheet.

        Returns:
            The record, or None when the row fails the retention gate.
        """
        if is_blank_row(row):
            return None

        row_number = sheet_row_index + 1
        values: Dict[str, Any] = {
            "id": self.id_factory(self.source_file_id, row_number),
            "source_file_id": self.source_file_id,
            "file_name": self.file_name,
            "row_index": row_number,
        }

        has_timestamp = False
        for column, canonical in self.mapping.items():
            if column >= len(row):
                continue
            # First populated column wins when several map to one field
            if values.get(canonical.value) is not None:
                continue
            value = normalize_cell(canonical, row[column], self.vendor_format.date_formats)
            if value is None:
                continue
            if isinstance(value, TimestampValue):
                has_timestamp = has_timestamp or value.parsed
                value = value.value
            values[canonical.value] = value

        if values.get("direction") is None:
            inferred = self.infer_direction(values.get("transaction_type"))
            if inferred is not None:
                values["direction"] = inferred

        has_id = bool(values.get("transaction_id"))
        has_amount = isinstance(values.get("amount"), float)
        if not (has_id and (has_timestamp or has_amount)):
            return None

        return TransactionRecord(**values)

    def build_all(
        self, rows: Sequence[Sequence[Cell]], first_sheet_row_index: int
    ) -> List[TransactionRecord]:
        records = []
        for offset, row in enumerate(rows):
            record = self.build(row, first_sheet_row_index + offset)
            if record is not None:
                records.append(record)
        return records
