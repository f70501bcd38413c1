"""
Header Synonym Catalog.

Maps raw header strings from vendor statements (English, Bengali, OCR
spellings) onto canonical field identifiers. A catalog is built once per
vendor format and is read-only afterwards.
"""

import re
import unicodedata
from enum import Enum
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional, Tuple


class FieldKind(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    TIMESTAMP = "timestamp"
    DIRECTION = "direction"


class CanonicalField(str, Enum):
    """Vendor-independent field names; values match TransactionRecord attributes."""

    SERIAL = "serial"
    TIMESTAMP = "timestamp"
    TRANSACTION_ID = "transaction_id"
    TRANSACTION_TYPE = "transaction_type"
    STATEMENT_ACCOUNT = "statement_account"
    COUNTERPARTY_ACCOUNT = "counterparty_account"
    COUNTERPARTY_NAME = "counterparty_name"
    SENDER = "sender"
    RECEIVER = "receiver"
    CHANNEL = "channel"
    REFERENCE = "reference"
    DIRECTION = "direction"
    AMOUNT = "amount"
    FEE = "fee"
    BALANCE_AFTER = "balance_after"
    STATUS = "status"

    @property
    def kind(self) -> FieldKind:
        return FIELD_KINDS.get(self, FieldKind.TEXT)


FIELD_KINDS: Mapping[CanonicalField, FieldKind] = MappingProxyType(
    {
        CanonicalField.TIMESTAMP: FieldKind.TIMESTAMP,
        CanonicalField.AMOUNT: FieldKind.NUMBER,
        CanonicalField.FEE: FieldKind.NUMBER,
        CanonicalField.BALANCE_AFTER: FieldKind.NUMBER,
        CanonicalField.DIRECTION: FieldKind.DIRECTION,
    }
)

_SEPARATORS = re.compile(r"[\s._-]+")
_SEPARATORS_NO_UNDERSCORE = re.compile(r"[\s.-]+")


def normalize_key(raw: str) -> str:
    """Trim + lowercase (NFKC, so composed and decomposed Bengali compare equal)."""
    return unicodedata.normalize("NFKC", str(raw or "")).strip().lower()


def compact(text: str) -> str:
    """Remove whitespace, underscores, dots and hyphens: 'Txn.Id' -> 'txnid'."""
    return _SEPARATORS.sub("", text)


def single_spaced(text: str) -> str:
    """'txn__date - time' -> 'txn date time'."""
    return _SEPARATORS.sub(" ", text)


def underscored(text: str) -> str:
    """'txn id.no' -> 'txn_id_no'."""
    return _SEPARATORS_NO_UNDERSCORE.sub("_", text)


class HeaderCatalog:
    """
    Resolves raw header strings to canonical fields.

    Resolution order (first hit wins):
      1. trimmed lowercase input
      2. compacted form (no whitespace / '_' / '.' / '-')
      3. single-space-separated form
      4. underscore-joined form
      5. longest catalog key contained in the input

    All synonyms, whatever the language, are equal entries of the same table.
    """

    def __init__(self, synonyms: Mapping[str, CanonicalField]):
        table: Dict[str, CanonicalField] = {}
        for key, field in synonyms.items():
            normalized = normalize_key(key)
            if normalized:
                table[normalized] = CanonicalField(field)
        self._table = MappingProxyType(table)
        self._keys_longest_first: Tuple[str, ...] = tuple(
            sorted(table, key=len, reverse=True)
        )

    @property
    def synonyms(self) -> Mapping[str, CanonicalField]:
        return self._table

    @property
    def fields(self) -> frozenset:
        return frozenset(self._table.values())

    def resolve(self, raw_header: str) -> Optional[CanonicalField]:
        """Return the canonical field for a raw header, or None when unmapped."""
        normalized = normalize_key(raw_header)
        if not normalized:
            return None

        for variation in (
            normalized,
            compact(normalized),
            single_spaced(normalized),
            underscored(normalized),
        ):
            field = self._table.get(variation)
            if field is not None:
                return field

        for key in self._keys_longest_first:
            if key in normalized:
                return self._table[key]

        return None

    def resolve_all(self, raw_headers: Iterable[str]) -> Dict[int, CanonicalField]:
        """Build a column-index -> canonical-field mapping, skipping blank and unmapped headers."""
        mapping: Dict[int, CanonicalField] = {}
        for index, raw in enumerate(raw_headers):
            field = self.resolve(raw)
            if field is not None:
                mapping[index] = field
        return mapping

    def __len__(self) -> int:
        return len(self._table)

    def __contains__(self, raw_header: str) -> bool:
        return self.resolve(raw_header) is not None
