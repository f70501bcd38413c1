import openpyxl

from scripts.inspect_statement import main

HEADERS = ["SI.", "TXN_DATE_TIME", "TXN ID", "TXN TYPE", "STATEMENT_FOR_ACC", "TXN_WITH_ACC",
           "CHANNEL", "REFERENCE", "TXN_TYPE_DR_CR", "TXN_AMT", "AVAILABLE_BLC_AFTER_TXN", "STATUS"]
ROW = ["1", "01/02/2023 10:00:00", "TXN123", "Send Money", "01700000000", "01800000000",
       "App", "ref1", "DR", "500.00", "1500.00", "Completed"]


def write_statement(path):
    workbook = openpyxl.Workbook()
    workbook.active.append(["Nagad Statement"])
    workbook.active.append(HEADERS)
    workbook.active.append(ROW)
    workbook.save(path)


def test_inspect_prints_detection(tmp_path, capsys):
    path = tmp_path / "statement.xlsx"
    write_statement(path)

    assert main([str(path), "--vendor", "nagad"]) == 0

    out = capsys.readouterr().out
    assert "Header row: 1 (confident)" in out
    assert "-> transaction_id" in out
    assert "Records: 1" in out
    assert "TXN123" in out


def test_inspect_unreadable(tmp_path, capsys):
    path = tmp_path / "broken.xlsx"
    path.write_bytes(b"PK\x03\x04broken")

    assert main([str(path), "--password", ""]) == 1
    assert "UNREADABLE" in capsys.readouterr().out


def test_inspect_unknown_vendor(tmp_path, capsys):
    path = tmp_path / "statement.csv"
    path.write_text("a,b,c\n")

    assert main([str(path), "--vendor", "upay"]) == 2
    assert "Unknown vendor format" in capsys.readouterr().out
