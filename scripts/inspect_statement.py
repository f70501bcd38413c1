"""Print header-detection diagnostics for a local statement file.

    python -m scripts.inspect_statement statement.xlsx --vendor nagad
    STATEMENT_PASSWORD=... python -m scripts.inspect_statement locked.xlsx
"""

import argparse
import logging
import os
import sys

from apps.api.core.config import get_settings
from packages.mfs_ingestion.cells import cell_text
from packages.mfs_ingestion.formats import get_vendor_format
from packages.mfs_ingestion.locator import HeaderRowLocator
from packages.mfs_ingestion.parser import StatementParser, UnreadableFileError, read_sheet


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Inspect MFS statement header detection")
    parser.add_argument("file", help="Path to the statement (.xlsx, .xls, .csv, .txt)")
    parser.add_argument("--vendor", default=None, help="Vendor format (nagad, bkash)")
    parser.add_argument(
        "--password",
        default=os.getenv("STATEMENT_PASSWORD"),
        help="Workbook password (defaults to $STATEMENT_PASSWORD)",
    )
    parser.add_argument("--rows", type=int, default=5, help="Number of records to print")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    settings = get_settings()
    try:
        fmt = settings.tune(get_vendor_format(args.vendor or settings.DEFAULT_VENDOR_FORMAT))
    except ValueError as e:
        print(f"Error: {e}")
        return 2

    with open(args.file, "rb") as f:
        content = f.read()
    filename = os.path.basename(args.file)

    try:
        rows = read_sheet(content, filename, args.password)
    except UnreadableFileError as e:
        print(f"--- UNREADABLE ---\n{e}")
        return 1

    print(f"--- {fmt.label}: {filename} ---")
    print(f"Rows: {len(rows)}")

    detection = HeaderRowLocator(fmt).locate(rows, filename)
    print("\nCandidate rows (index, score, critical fields):")
    for candidate in detection.candidates:
        print(f"  {candidate.row_index:>3}  {candidate.normalized:6.2f}  {candidate.critical_matched}")

    state = "confident" if detection.confident else "LOW CONFIDENCE, default headers"
    print(f"\nHeader row: {detection.header_row_index} ({state})")
    if detection.header_row_index < len(rows):
        raw = [cell_text(c) for c in rows[detection.header_row_index]]
        print(f"Raw row: {raw}")

    print("\nMapping:")
    mapping = fmt.catalog.resolve_all(detection.headers)
    for index, header in enumerate(detection.headers):
        field = mapping.get(index)
        print(f"  {index:>3}  {header!r:40} -> {field.value if field else '-'}")

    result = StatementParser(fmt).parse_rows(rows, filename)
    print(f"\nRecords: {result.stats.records} (excluded {result.stats.excluded_rows}, "
          f"blank {result.stats.blank_rows})")
    for warning in result.warnings:
        print(f"WARNING: {warning}")
    if result.records:
        print(result.to_dataframe().head(args.rows).to_string())
    return 0


if __name__ == "__main__":
    sys.exit(main())
