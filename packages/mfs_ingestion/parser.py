"""
MFS Statement Parser - turns one uploaded statement file into canonical records.

Supports: Nagad and bKash exports (.xlsx / .xlsm, password-protected
workbooks, legacy .xls) and OCR-derived CSV/TSV text dumps.
Only the first sheet of a workbook is read.
"""

import csv
import io
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, ClassVar, List, Optional, Union

import msoffcrypto
import openpyxl
import pandas as pd

from .cells import Cell, is_blank_row, to_cells
from .formats import NAGAD, VendorFormat, get_vendor_format
from .locator import HeaderRowLocator
from .records import RECORD_FIELDS, IdFactory, RecordBuilder, TransactionRecord

logger = logging.getLogger(__name__)

# OLE2 Compound Document magic bytes: legacy .xls or an encrypted Office file
_OLE2_MAGIC = b"\xD0\xCF\x11\xE0\xA1\xB1\x1A\xE1"
# ZIP container = modern Excel (.xlsx / .xlsm)
_ZIP_MAGIC = b"PK\x03\x04"

TEXT_ENCODINGS = ["utf-8-sig", "utf-8", "cp1252", "latin-1"]
TEXT_DELIMITERS = ",\t;|"


class UnreadableFileError(ValueError):
    """The file bytes cannot be loaded as a sheet."""


@dataclass
class ParseStats:
    data_rows: int = 0
    blank_rows: int = 0
    # Rows that did not become records, blank rows included
    excluded_rows: int = 0
    records: int = 0


@dataclass
class ParsedStatement:
    """Best-effort result for a readable file."""

    file_name: str
    vendor: str
    records: List[TransactionRecord]
    headers: List[str]
    header_row_index: int
    identified_headers: Optional[List[str]] = None
    detection_score: Optional[float] = None
    low_confidence: bool = False
    stats: ParseStats = field(default_factory=ParseStats)
    warnings: List[str] = field(default_factory=list)

    ok: ClassVar[bool] = True

    def to_dataframe(self) -> pd.DataFrame:
        """Records as a DataFrame (one column per record field plus fingerprint)."""
        columns = RECORD_FIELDS + ["fingerprint"]
        return pd.DataFrame([r.to_dict() for r in self.records], columns=columns)


@dataclass
class UnreadableStatement:
    """The file could not be read at all; no partial result exists."""

    file_name: str
    reason: str

    ok: ClassVar[bool] = False


ParseOutcome = Union[ParsedStatement, UnreadableStatement]


def detect_file_type(content: bytes, filename: str = "") -> str:
    """Classify content as 'xlsx', 'ole2' or 'text' (magic bytes first, then extension)."""
    if content.startswith(_ZIP_MAGIC):
        return "xlsx"
    if content.startswith(_OLE2_MAGIC):
        return "ole2"
    suffix = Path(filename).suffix.lower()
    if suffix in (".xlsx", ".xlsm", ".xls"):
        # Claims to be a workbook but is neither a ZIP nor an OLE2 container
        raise UnreadableFileError(f"{filename} is not a valid Excel workbook")
    return "text"


def _read_xlsx(stream: io.BytesIO) -> List[List[Any]]:
    workbook = openpyxl.load_workbook(stream, data_only=True)
    try:
        sheet = workbook.worksheets[0]
        return [list(row) for row in sheet.iter_rows(values_only=True)]
    finally:
        workbook.close()


def _decrypt(content: bytes, password: str) -> io.BytesIO:
    decrypted_workbook = io.BytesIO()
    try:
        with io.BytesIO(content) as f:
            office_file = msoffcrypto.OfficeFile(f)
            office_file.load_key(password=password)
            office_file.decrypt(decrypted_workbook)
    except Exception as e:
        msg = str(e).lower()
        if "password" in msg or "decrypt" in msg or "key" in msg:
            raise UnreadableFileError("Invalid password")
        raise UnreadableFileError(f"Failed to decrypt file: {e}")
    decrypted_workbook.seek(0)
    return decrypted_workbook


def _is_encrypted(content: bytes) -> bool:
    try:
        with io.BytesIO(content) as f:
            return msoffcrypto.OfficeFile(f).is_encrypted()
    except Exception:
        # Not an Office container msoffcrypto understands; let the reader decide
        return False


def _read_xls(stream: io.BytesIO) -> List[List[Any]]:
    """Legacy BIFF workbook (xlrd engine)."""
    df = pd.read_excel(stream, sheet_name=0, header=None, dtype=object, engine="xlrd")
    return df.values.tolist()


def _read_ole2(content: bytes, password: Optional[str]) -> List[List[Any]]:
    if not _is_encrypted(content):
        # Plain legacy .xls; a supplied password is not needed
        return _read_xls(io.BytesIO(content))
    if not password:
        raise UnreadableFileError("Password required")

    decrypted = _decrypt(content, password)
    # Encrypted .xlsx decrypts to a ZIP package, encrypted .xls to a BIFF stream
    if decrypted.getvalue().startswith(_ZIP_MAGIC):
        return _read_xlsx(decrypted)
    return _read_xls(decrypted)


def _decode_text(content: bytes) -> str:
    for encoding in TEXT_ENCODINGS:
        try:
            return content.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise UnreadableFileError("Could not decode text file with any known encoding")


def _sniff_delimiter(sample: str) -> str:
    try:
        return csv.Sniffer().sniff(sample, delimiters=TEXT_DELIMITERS).delimiter
    except csv.Error:
        # Preamble lines defeat the sniffer; take the most frequent candidate
        counts = {d: sample.count(d) for d in TEXT_DELIMITERS}
        best = max(counts, key=counts.get)
        return best if counts[best] else ","


def _read_text(content: bytes) -> List[List[Any]]:
    """Delimited text; rows may be ragged (OCR preambles, title lines)."""
    text = _decode_text(content)
    if "\x00" in text:
        raise UnreadableFileError("File looks binary, not a delimited text export")
    delimiter = _sniff_delimiter(text[:8192])
    return [row for row in csv.reader(io.StringIO(text), delimiter=delimiter)]


def read_sheet(content: bytes, filename: str = "", password: Optional[str] = None) -> List[List[Cell]]:
    """Load the first sheet of a statement file as rows of cells."""
    if not content:
        raise UnreadableFileError("File is empty")

    kind = detect_file_type(content, filename)
    try:
        if kind == "xlsx":
            raw_rows = _read_xlsx(io.BytesIO(content))
        elif kind == "ole2":
            raw_rows = _read_ole2(content, password)
        else:
            raw_rows = _read_text(content)
    except UnreadableFileError:
        raise
    except Exception as e:
        raise UnreadableFileError(f"Could not read {kind} file: {e}") from e

    return [to_cells(row) for row in raw_rows]


class StatementParser:
    """
    Parser facade for one vendor format.

    Stateless between files: the same bytes and file name always give the
    same records (record ids aside, which carry a random suffix).
    """

    def __init__(
        self,
        vendor_format: Union[str, VendorFormat] = NAGAD,
        password: Optional[str] = None,
        id_factory: Optional[IdFactory] = None,
    ):
        """
        Initialize parser.

        Args:
            vendor_format: VendorFormat or the name of a built-in one (nagad, bkash)
            password: Password for encrypted workbooks
            id_factory: Callable(source_file_id, row_number) -> record id
        """
        if isinstance(vendor_format, str):
            vendor_format = get_vendor_format(vendor_format)
        self.vendor_format = vendor_format
        self.password = password
        self.id_factory = id_factory
        self.locator = HeaderRowLocator(vendor_format)

    def parse_rows(
        self, rows: List[List[Cell]], filename: str, source_file_id: Optional[str] = None
    ) -> ParsedStatement:
        """Run detection, mapping and record building over already-loaded rows."""
        fmt = self.vendor_format
        source_file_id = source_file_id or filename
        warnings: List[str] = []

        detection = self.locator.locate(rows, filename)
        if not detection.confident:
            warnings.append(
                "Header row not confidently identified; default headers used "
                f"from row {detection.header_row_index}"
            )
        headers = detection.headers or list(fmt.default_headers)

        mapping = fmt.catalog.resolve_all(headers)
        critical_mapped = {f for f in mapping.values() if f in fmt.critical_fields}
        data_rows = rows[detection.header_row_index + 1 :]

        result = ParsedStatement(
            file_name=filename,
            vendor=fmt.name,
            records=[],
            headers=headers,
            header_row_index=detection.header_row_index,
            identified_headers=detection.identified_headers,
            detection_score=detection.best_score,
            low_confidence=not detection.confident,
            stats=ParseStats(data_rows=len(data_rows)),
            warnings=warnings,
        )
        result.stats.blank_rows = sum(1 for row in data_rows if is_blank_row(row))

        if len(critical_mapped) < fmt.required_critical_count:
            logger.error(
                f"{fmt.label}: critical header mapping failed for {filename}. "
                f"Found {len(critical_mapped)} critical headers, needed at least "
                f"{fmt.required_critical_count}. Mapped: "
                f"{', '.join(sorted(f.value for f in mapping.values())) or '-'}"
            )
            warnings.append(
                f"Only {len(critical_mapped)} critical columns recognised "
                f"(need {fmt.required_critical_count}); no records built"
            )
            result.stats.excluded_rows = len(data_rows)
            return result

        builder = RecordBuilder(
            mapping,
            fmt,
            source_file_id=source_file_id,
            file_name=filename,
            id_factory=self.id_factory,
        )
        result.records = builder.build_all(data_rows, detection.header_row_index + 1)
        result.stats.records = len(result.records)
        result.stats.excluded_rows = len(data_rows) - len(result.records)

        if data_rows and not result.records:
            logger.warning(
                f"{fmt.label}: all {len(data_rows)} data rows from {filename} were filtered out. "
                f"Best score: {detection.best_score}. Header row: {detection.header_row_index}. "
                f"Headers: {', '.join(headers)}"
            )
            warnings.append(f"All {len(data_rows)} data rows were filtered out")
        else:
            logger.info(
                f"{fmt.label}: parsed {len(result.records)} records from {filename} "
                f"({result.stats.excluded_rows} rows excluded)"
            )
        return result

    def parse(
        self, content: bytes, filename: str, source_file_id: Optional[str] = None
    ) -> ParseOutcome:
        """
        Parse one statement file.

        Returns:
            ParsedStatement for any readable file (possibly with zero records),
            UnreadableStatement when the bytes cannot be loaded.
        """
        try:
            rows = read_sheet(content, filename, self.password)
        except UnreadableFileError as e:
            logger.error(f"{self.vendor_format.label}: unreadable file {filename}: {e}")
            return UnreadableStatement(file_name=filename, reason=str(e))
        return self.parse_rows(rows, filename, source_file_id)


def parse_statement(
    content: bytes,
    filename: str,
    vendor_format: Union[str, VendorFormat] = NAGAD,
    password: Optional[str] = None,
    id_factory: Optional[IdFactory] = None,
) -> ParseOutcome:
    """
    Convenience function to parse a statement file.

    Args:
        content: File content as bytes
        filename: Original file name (used for provenance)
        vendor_format: VendorFormat or built-in format name
        password: Password for encrypted workbooks
        id_factory: Optional record-id factory

    Returns:
        ParsedStatement or UnreadableStatement
    """
    parser = StatementParser(vendor_format, password=password, id_factory=id_factory)
    return parser.parse(content, filename)
