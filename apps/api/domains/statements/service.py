"""Statements service - vendor format lookup, upload reading and parsing.

Parsing is synchronous; reading the upload is the only awaited step.
"""

from dataclasses import asdict

import structlog
from fastapi import UploadFile

from apps.api.core.config import Settings
from apps.api.core.errors import (
    NotFoundError,
    PayloadTooLargeError,
    UnreadableStatementError,
    UnsupportedFileError,
    ValidationError,
)
from apps.api.domains.statements.schemas import (
    ParseStatsOut,
    StatementResponse,
    TransactionRecordOut,
    VendorFormatOut,
)
from packages.mfs_ingestion.formats import VENDOR_FORMATS, VendorFormat, get_vendor_format
from packages.mfs_ingestion.parser import ParsedStatement, StatementParser, UnreadableStatement

logger = structlog.get_logger()

ALLOWED_EXTENSIONS = (".xlsx", ".xlsm", ".xls", ".csv", ".tsv", ".txt")
TEXT_EXTENSIONS = (".csv", ".tsv", ".txt")


def list_vendor_formats(settings: Settings) -> list[VendorFormatOut]:
    """Describe every built-in vendor format, recalibration applied."""
    formats = []
    for name in sorted(VENDOR_FORMATS):
        fmt = settings.tune(VENDOR_FORMATS[name])
        formats.append(
            VendorFormatOut(
                name=fmt.name,
                label=fmt.label,
                default_headers=list(fmt.default_headers),
                critical_fields=sorted(f.value for f in fmt.critical_fields),
                confidence_threshold=fmt.confidence_threshold,
            )
        )
    return formats


def resolve_vendor_format(vendor: str, settings: Settings) -> VendorFormat:
    """Built-in format by name with settings overrides; 404 when unknown."""
    try:
        fmt = get_vendor_format(vendor)
    except ValueError:
        raise NotFoundError(f"Unknown vendor format '{vendor}'")
    return settings.tune(fmt)


def check_filename(filename: str, password: str | None = None) -> None:
    if not any(filename.lower().endswith(ext) for ext in ALLOWED_EXTENSIONS):
        raise UnsupportedFileError(
            f"Unsupported file type. Accepted: {', '.join(ALLOWED_EXTENSIONS)}"
        )
    if password and filename.lower().endswith(TEXT_EXTENSIONS):
        raise ValidationError("A password only applies to Excel workbooks")


async def read_upload(file: UploadFile, max_bytes: int) -> bytes:
    """Read the whole upload, rejecting anything over max_bytes."""
    contents = await file.read()
    if len(contents) > max_bytes:
        raise PayloadTooLargeError(f"File too large (max {max_bytes / (1024 * 1024):g}MB)")
    return contents


def build_response(parsed: ParsedStatement) -> StatementResponse:
    return StatementResponse(
        file_name=parsed.file_name,
        vendor=parsed.vendor,
        records=[TransactionRecordOut(**r.to_dict()) for r in parsed.records],
        count=len(parsed.records),
        headers=parsed.headers,
        identified_headers=parsed.identified_headers,
        header_row_index=parsed.header_row_index,
        detection_score=parsed.detection_score,
        low_confidence=parsed.low_confidence,
        warnings=parsed.warnings,
        stats=ParseStatsOut(**asdict(parsed.stats)),
    )


async def parse_upload(
    file: UploadFile,
    vendor_format: VendorFormat,
    settings: Settings,
    password: str | None = None,
) -> StatementResponse:
    """Read, parse and shape one uploaded statement.

    Raises:
        UnsupportedFileError: extension is not a statement type.
        ValidationError: a password was sent with a text export.
        PayloadTooLargeError: upload exceeds MAX_UPLOAD_BYTES.
        UnreadableStatementError: the bytes could not be loaded as a sheet.
    """
    filename = file.filename or ""
    check_filename(filename, password)
    contents = await read_upload(file, settings.MAX_UPLOAD_BYTES)

    outcome = StatementParser(vendor_format, password=password).parse(contents, filename)
    if isinstance(outcome, UnreadableStatement):
        logger.warning(
            "statement_unreadable",
            filename=filename,
            vendor=vendor_format.name,
            reason=outcome.reason,
        )
        raise UnreadableStatementError(outcome.reason)

    logger.info(
        "statement_parsed",
        filename=filename,
        vendor=outcome.vendor,
        count=len(outcome.records),
        header_row=outcome.header_row_index,
        low_confidence=outcome.low_confidence,
        excluded=outcome.stats.excluded_rows,
    )
    return build_response(outcome)
