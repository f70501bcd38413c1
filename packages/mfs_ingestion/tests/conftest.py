import io

import openpyxl
import pytest
import xlwt

NAGAD_HEADERS = [
    "SI.", "TXN_DATE_TIME", "TXN ID", "TXN TYPE", "STATEMENT_FOR_ACC", "TXN_WITH_ACC",
    "CHANNEL", "REFERENCE", "TXN_TYPE_DR_CR", "TXN_AMT", "AVAILABLE_BLC_AFTER_TXN", "STATUS",
]

NAGAD_ROW = [
    "1", "01/02/2023 10:00:00", "TXN123", "Send Money", "01700000000", "01800000000",
    "App", "ref1", "DR", "500.00", "1500.00", "Completed",
]


def build_xlsx(rows) -> bytes:
    """Write rows to the first sheet of an in-memory workbook (None = blank cell)."""
    workbook = openpyxl.Workbook()
    sheet = workbook.active
    for r, row in enumerate(rows, start=1):
        for c, value in enumerate(row, start=1):
            if value is not None:
                sheet.cell(row=r, column=c, value=value)
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def build_xls(rows) -> bytes:
    """Legacy BIFF (.xls) counterpart of build_xlsx."""
    workbook = xlwt.Workbook()
    sheet = workbook.add_sheet("Statement")
    for r, row in enumerate(rows):
        for c, value in enumerate(row):
            if value is not None:
                sheet.write(r, c, value)
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def make_xlsx():
    return build_xlsx


@pytest.fixture
def make_xls():
    return build_xls


@pytest.fixture
def nagad_headers():
    return list(NAGAD_HEADERS)


@pytest.fixture
def nagad_row():
    return list(NAGAD_ROW)


@pytest.fixture
def sequential_ids():
    """Deterministic record ids: '<file>-<row>'."""
    return lambda source_file_id, row_number: f"{source_file_id}-{row_number}"
