"""
MFS Statement Ingestion

Nagad / bKash statement parsing, header detection and canonicalization.
"""

__version__ = "0.1.0"

from .catalog import CanonicalField, HeaderCatalog
from .formats import BKASH, NAGAD, VENDOR_FORMATS, ScoringWeights, VendorFormat, get_vendor_format
from .locator import HeaderDetection, HeaderRowLocator
from .parser import (
    ParsedStatement,
    ParseOutcome,
    ParseStats,
    StatementParser,
    UnreadableStatement,
    parse_statement,
    read_sheet,
)
from .records import RecordBuilder, TransactionRecord

__all__ = [
    "CanonicalField",
    "HeaderCatalog",
    "VendorFormat",
    "ScoringWeights",
    "NAGAD",
    "BKASH",
    "VENDOR_FORMATS",
    "get_vendor_format",
    "HeaderRowLocator",
    "HeaderDetection",
    "RecordBuilder",
    "TransactionRecord",
    "StatementParser",
    "ParsedStatement",
    "UnreadableStatement",
    "ParseOutcome",
    "ParseStats",
    "parse_statement",
    "read_sheet",
]
