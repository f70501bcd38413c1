"""Tests for header row detection."""

import pytest

from packages.mfs_ingestion.catalog import CanonicalField
from packages.mfs_ingestion.cells import to_cells
from packages.mfs_ingestion.formats import BKASH, NAGAD
from packages.mfs_ingestion.locator import HeaderRowLocator, trim_trailing_blanks


def grid(*rows):
    return [to_cells(row) for row in rows]


@pytest.fixture
def locator():
    return HeaderRowLocator(NAGAD)


class TestLocate:
    def test_header_in_row_zero(self, locator, nagad_headers, nagad_row):
        detection = locator.locate(grid(nagad_headers, nagad_row))
        assert detection.header_row_index == 0
        assert detection.confident
        assert detection.identified_headers == nagad_headers
        assert detection.headers == nagad_headers
        assert detection.best_score >= NAGAD.confidence_threshold

    def test_blank_rows_before_header_are_skipped(self, locator, nagad_headers, nagad_row):
        rows = grid([None] * 12, ["", "  "], nagad_headers, nagad_row)
        detection = locator.locate(rows)
        assert detection.header_row_index == 2
        assert detection.confident

    def test_preamble_rows_lose_to_header(self, locator, nagad_headers, nagad_row):
        rows = grid(
            ["Nagad Statement"],
            ["Account: 01700000000", "Name: Rahim", "Period: Jan 2023"],
            nagad_headers,
            nagad_row,
        )
        detection = locator.locate(rows)
        assert detection.header_row_index == 2

    def test_trailing_blank_headers_trimmed(self, locator, nagad_headers, nagad_row):
        detection = locator.locate(grid(nagad_headers + [None, ""], nagad_row + [None, None]))
        assert detection.identified_headers == nagad_headers

    def test_earliest_row_wins_ties(self, locator, nagad_headers):
        detection = locator.locate(grid(nagad_headers, nagad_headers))
        assert detection.header_row_index == 0

    def test_bkash_header(self):
        headers = list(BKASH.default_headers)
        row = ["1", "TRX9", "01-Feb-23 10:00:00 AM", "Send Money", "01711111111",
               "01822222222", "Rahim", "", "1,000.00", "5.00", "9,000.00"]
        detection = HeaderRowLocator(BKASH).locate(grid(["bKash"], headers, row))
        assert detection.header_row_index == 1
        assert detection.confident


class TestFallback:
    def test_no_header_uses_defaults_and_row_zero(self, locator):
        rows = grid(["foo", "bar", "baz"], ["hello", "world", "again"])
        detection = locator.locate(rows, "dump.csv")
        assert not detection.confident
        assert detection.header_row_index == 0
        assert detection.headers == list(NAGAD.default_headers)
        assert detection.identified_headers is None

    def test_serial_label_row_used_as_header_index(self, locator):
        rows = grid(["junk", "junk", "junk"], ["x", "y"], ["Sl No", "a", "b"], ["1", "c", "d"])
        detection = locator.locate(rows)
        assert not detection.confident
        assert detection.header_row_index == 2

    def test_nothing_scoreable(self, locator):
        detection = locator.locate(grid(["only", "two"], [None]))
        assert detection.best_score is None
        assert detection.candidates == []
        assert not detection.confident

    def test_header_beyond_scan_depth_not_detected(self, nagad_headers):
        fmt = NAGAD.with_overrides(scan_depth=2)
        rows = grid(["a"], ["b"], ["c"], nagad_headers)
        detection = HeaderRowLocator(fmt).locate(rows)
        assert not detection.confident

    def test_low_confidence_is_logged(self, locator, caplog):
        with caplog.at_level("WARNING", logger="packages.mfs_ingestion.locator"):
            locator.locate(grid(["foo", "bar", "baz"]), "dump.csv")
        assert "dump.csv" in caplog.text
        assert "default headers" in caplog.text

    def test_threshold_is_configurable(self, nagad_headers, nagad_row):
        strict = NAGAD.with_overrides(confidence_threshold=100.0)
        detection = HeaderRowLocator(strict).locate(grid(nagad_headers, nagad_row))
        assert not detection.confident


class TestScoring:
    def test_rows_with_too_few_cells_not_scored(self, locator):
        assert locator.score_row(0, ["TXN ID", "TXN_AMT", ""]) is None

    def test_full_header_scores_high(self, locator, nagad_headers):
        score = locator.score_row(0, nagad_headers)
        assert score.critical_matched == len(NAGAD.critical_fields)
        assert CanonicalField.AMOUNT in score.mapped_fields
        assert score.normalized > 1

    def test_insufficient_critical_penalty(self, locator):
        score = locator.score_row(0, ["Channel", "Status", "Reference"])
        # 3 x (mapped + reference label) - 5
        assert score.raw_score == pytest.approx(3 * 3 - 5)
        assert score.critical_matched == 0

    def test_looks_like_data(self, locator):
        assert locator.looks_like_data("01700000000", None)
        assert locator.looks_like_data("01/02/2023", None)
        assert not locator.looks_like_data("01/02/2023", CanonicalField.TIMESTAMP)
        assert not locator.looks_like_data("TXN ID", CanonicalField.TRANSACTION_ID)
        assert not locator.looks_like_data("1234", None)

    def test_long_digits_in_account_column_are_not_data(self, locator):
        assert not locator.looks_like_data("01700000000", CanonicalField.STATEMENT_ACCOUNT)
        assert not locator.looks_like_data("88001234567", CanonicalField.TRANSACTION_ID)
        assert locator.looks_like_data("01700000000", CanonicalField.AMOUNT)


def test_trim_trailing_blanks():
    assert trim_trailing_blanks(["a", "", "b", " ", None]) == ["a", "", "b"]
    assert trim_trailing_blanks([]) == []
