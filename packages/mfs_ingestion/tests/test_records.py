"""Tests for record building and the retention gate."""

import re

import pytest

from packages.mfs_ingestion.cells import EMPTY, Number, Text, to_cells
from packages.mfs_ingestion.formats import BKASH, NAGAD
from packages.mfs_ingestion.records import RecordBuilder, TransactionRecord, random_record_id


@pytest.fixture
def nagad_builder(nagad_headers, sequential_ids):
    mapping = NAGAD.catalog.resolve_all(nagad_headers)
    return RecordBuilder(mapping, NAGAD, source_file_id="stmt.xlsx", id_factory=sequential_ids)


def row_with(nagad_row, **changes):
    index = {"serial": 0, "timestamp": 1, "txn_id": 2, "direction": 8, "amount": 9}
    row = list(nagad_row)
    for name, value in changes.items():
        row[index[name]] = value
    return to_cells(row)


class TestBuild:
    def test_full_row(self, nagad_builder, nagad_row):
        record = nagad_builder.build(to_cells(nagad_row), 1)
        assert record.transaction_id == "TXN123"
        assert record.direction == "DEBIT"
        assert record.amount == 500.0
        assert record.balance_after == 1500.0
        assert record.timestamp == "2023-02-01T10:00:00"
        assert record.statement_account == "01700000000"
        assert record.counterparty_account == "01800000000"
        assert record.transaction_type == "Send Money"
        assert record.status == "Completed"
        assert record.serial == "1"

    def test_provenance(self, nagad_builder, nagad_row):
        record = nagad_builder.build(to_cells(nagad_row), 4)
        assert record.id == "stmt.xlsx-5"
        assert record.source_file_id == "stmt.xlsx"
        assert record.file_name == "stmt.xlsx"
        assert record.row_index == 5

    def test_records_are_immutable(self, nagad_builder, nagad_row):
        record = nagad_builder.build(to_cells(nagad_row), 1)
        with pytest.raises(AttributeError):
            record.amount = 1.0

    def test_unmapped_columns_ignored(self, nagad_headers, nagad_row, sequential_ids):
        headers = nagad_headers + ["Agent Code"]
        mapping = NAGAD.catalog.resolve_all(headers)
        builder = RecordBuilder(mapping, NAGAD, "f", id_factory=sequential_ids)
        record = builder.build(to_cells(nagad_row + ["ignore me"]), 1)
        assert record is not None
        assert "ignore me" not in record.to_dict().values()

    def test_short_row_leaves_fields_unset(self, nagad_builder, nagad_row):
        record = nagad_builder.build(to_cells(nagad_row[:10]), 1)
        assert record.balance_after is None
        assert record.status is None

    def test_first_populated_column_wins(self, sequential_ids):
        mapping = NAGAD.catalog.resolve_all(["TXN ID", "Debit Amount", "Credit Amount"])
        builder = RecordBuilder(mapping, NAGAD, "f", id_factory=sequential_ids)
        assert builder.build([Text("T1"), EMPTY, Number(250.0)], 1).amount == 250.0
        assert builder.build([Text("T2"), Text("10"), Number(250.0)], 1).amount == 10.0


class TestRetentionGate:
    def test_missing_id_discarded(self, nagad_builder, nagad_row):
        assert nagad_builder.build(row_with(nagad_row, txn_id=None), 1) is None

    def test_missing_timestamp_and_amount_discarded(self, nagad_builder, nagad_row):
        assert nagad_builder.build(row_with(nagad_row, timestamp=None, amount="n/a"), 1) is None

    def test_unparsed_timestamp_without_amount_discarded(self, nagad_builder, nagad_row):
        row = row_with(nagad_row, timestamp="yesterday-ish", amount=None)
        assert nagad_builder.build(row, 1) is None

    def test_amount_alone_is_enough(self, nagad_builder, nagad_row):
        record = nagad_builder.build(row_with(nagad_row, timestamp="yesterday-ish"), 1)
        assert record is not None
        # Raw text kept when the timestamp cannot be parsed
        assert record.timestamp == "yesterday-ish"

    def test_timestamp_alone_is_enough(self, nagad_builder, nagad_row):
        record = nagad_builder.build(row_with(nagad_row, amount="--"), 1)
        assert record is not None
        assert record.amount is None

    def test_time_only_timestamp_without_amount_discarded(self, sequential_ids):
        mapping = NAGAD.catalog.resolve_all(["TXN ID", "Time"])
        builder = RecordBuilder(mapping, NAGAD, source_file_id="f", id_factory=sequential_ids)
        assert builder.build(to_cells(["T1", "10:00:00"]), 1) is None

    def test_blank_row_discarded(self, nagad_builder):
        assert nagad_builder.build([EMPTY] * 12, 1) is None

    def test_build_all_counts(self, nagad_builder, nagad_row):
        rows = [
            to_cells(nagad_row),
            row_with(nagad_row, txn_id=None),
            [EMPTY] * 12,
            row_with(nagad_row, txn_id="TXN124", direction="CR"),
        ]
        records = nagad_builder.build_all(rows, 1)
        assert [r.transaction_id for r in records] == ["TXN123", "TXN124"]
        assert [r.row_index for r in records] == [2, 5]
        assert records[1].direction == "CREDIT"


class TestDirectionInference:
    @pytest.fixture
    def bkash_builder(self, sequential_ids):
        mapping = BKASH.catalog.resolve_all(BKASH.default_headers)
        return RecordBuilder(mapping, BKASH, "bk.xlsx", id_factory=sequential_ids)

    @pytest.mark.parametrize("trx_type,expected", [
        ("Send Money", "DEBIT"),
        ("Cash Out", "DEBIT"),
        ("Cash In", "CREDIT"),
        ("Received Money", "CREDIT"),
        ("Bill Pay", "OTHER"),
    ])
    def test_inferred_from_type(self, bkash_builder, trx_type, expected):
        row = to_cells(["1", "TRX9", "01-Feb-23 10:00:00 AM", trx_type, "01711111111",
                        "01822222222", "Rahim", "", "1,000.00", "5.00", "9,000.00"])
        record = bkash_builder.build(row, 1)
        assert record.direction == expected
        assert record.fee == 5.0
        assert record.counterparty_name == "Rahim"
        assert record.timestamp == "2023-02-01T10:00:00"

    def test_nagad_does_not_infer(self, nagad_builder, nagad_row):
        record = nagad_builder.build(row_with(nagad_row, direction=None), 1)
        assert record.direction is None


class TestFingerprint:
    def test_excludes_provenance(self):
        a = TransactionRecord(id="a-1-xxxxx", source_file_id="a", file_name="a.xlsx", row_index=2,
                              transaction_id="TXN1", timestamp="2023-02-01T10:00:00", amount=5.0)
        b = TransactionRecord(id="b-9-yyyyy", source_file_id="b", file_name="b.xlsx", row_index=9,
                              transaction_id="txn1 ", timestamp="2023-02-01T10:00:00", amount=5.0)
        assert a.fingerprint == b.fingerprint
        assert len(a.fingerprint) == 64

    def test_content_changes_fingerprint(self):
        a = TransactionRecord(id="1", source_file_id="f", file_name="f", row_index=2,
                              transaction_id="TXN1", amount=5.0)
        b = TransactionRecord(id="1", source_file_id="f", file_name="f", row_index=2,
                              transaction_id="TXN1", amount=5.01)
        assert a.fingerprint != b.fingerprint

    def test_to_dict_includes_fingerprint(self):
        record = TransactionRecord(id="1", source_file_id="f", file_name="f", row_index=2,
                                   transaction_id="TXN1")
        data = record.to_dict()
        assert data["fingerprint"] == record.fingerprint
        assert data["transaction_id"] == "TXN1"


def test_random_record_id_shape():
    first = random_record_id("stmt.xlsx", 3)
    assert re.fullmatch(r"stmt\.xlsx-3-[0-9a-f]{5}", first)
