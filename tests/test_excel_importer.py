import io
from datetime import date, datetime

import pytest
from openpyxl import Workbook

from finance_tracker.core.exceptions import ExcelImportError, UnknownRecordKindError
from finance_tracker.utils.excel_importer import ExcelImporter, parse_excel_date

reference_day = date(2024, 6, 1)


def build_workbook(sheets):
    workbook = Workbook()
    workbook.remove(workbook.active)
    for title, rows in sheets.items():
        sheet = workbook.create_sheet(title)
        for row in rows:
            sheet.append(row)
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


employee_rows = [
    ["Date", "Employee Name", "Expense Type", "Amount Paid", "Description", "Status"],
    ["2024-03-15", "Asha", "Travel", "1,250.50", "Cab to airport", "paid"],
    [datetime(2024, 3, 16), "Ravi", "Food", 300, "Team lunch", None],
    [45366, "Meera", "Office", 120.0, "Printer ink", "Pending"],
]


class RecordingWriter:
    def __init__(self, succeed=True):
        self.succeed = succeed
        self.writes = []

    def __call__(self, kind, records):
        self.writes.append((kind, records))
        return self.succeed


def test_parse_excel_date_formats():
    assert parse_excel_date("2024-03-15") == date(2024, 3, 15)
    assert parse_excel_date("03/04/2024") == date(2024, 3, 4)
    assert parse_excel_date("15/03/2024") == date(2024, 3, 15)
    assert parse_excel_date("2024/03/15") == date(2024, 3, 15)
    assert parse_excel_date("2024-03-15T09:30:00") == date(2024, 3, 15)
    assert parse_excel_date(45366) == date(2024, 3, 15)
    assert parse_excel_date(datetime(2024, 1, 2, 10, 0)) == date(2024, 1, 2)


def test_unparseable_date_falls_back_to_today():
    assert parse_excel_date("sometime soon", today=reference_day) == reference_day
    assert parse_excel_date(None, today=reference_day) == reference_day


def test_parse_workbook_maps_columns():
    importer = ExcelImporter(today=reference_day)
    parsed = importer.parse_workbook(build_workbook({"March": employee_rows}), "employee")

    rows = parsed["March"]
    assert len(rows) == 3
    assert rows[0] == {
        "date": date(2024, 3, 15),
        "employee_name": "Asha",
        "expense_type": "Travel",
        "amount_paid": 1250.5,
        "description": "Cab to airport",
        "status": "Paid",
    }
    assert rows[1]["date"] == date(2024, 3, 16)
    assert "status" not in rows[1]
    assert rows[2]["date"] == date(2024, 3, 15)


def test_import_workbook_writes_valid_sheets_and_reports_invalid_ones():
    invalid_rows = [
        ["Date", "Employee Name", "Expense Type", "Amount Paid"],
        ["2024-04-01", None, "Travel", 100],
    ]
    content = build_workbook({"March": employee_rows, "April": invalid_rows, "Empty": []})
    writer = RecordingWriter()

    results = ExcelImporter(today=reference_day).import_workbook(content, "employee", writer=writer)

    assert results["success"] == ["Successfully imported 3 records from March"]
    assert results["errors"] == ["Invalid data format in April"]
    kind, records = writer.writes[0]
    assert kind == "employee"
    assert records[0]["date"] == "2024-03-15"
    assert records[0]["amount_paid"] == 1250.5
    assert records[1]["status"] == "Pending"
    assert all(record["transaction_id"] for record in records)


def test_import_vendor_payments():
    rows = [
        ["Invoice Date", "Vendor Name", "Invoice Number", "Amount Incl GST", "Amount Excl GST", "Status"],
        ["01/02/2024", "Staples", "INV-1", 1180, 1000, "paid"],
    ]
    writer = RecordingWriter()
    results = ExcelImporter().import_workbook(build_workbook({"Vendors": rows}), "vendor", writer=writer)

    assert results["errors"] == []
    record = writer.writes[0][1][0]
    assert record["invoice_date"] == "2024-01-02"
    assert record["status"] == "Paid"
    assert record["amount_excl_gst"] == 1000.0


def test_failed_write_is_reported():
    writer = RecordingWriter(succeed=False)
    results = ExcelImporter().import_workbook(build_workbook({"March": employee_rows}), "employee", writer=writer)
    assert results["success"] == []
    assert results["errors"] == ["Error processing sheet March: storage write failed"]


def test_unknown_kind_is_rejected():
    with pytest.raises(UnknownRecordKindError):
        ExcelImporter().parse_workbook(build_workbook({"March": employee_rows}), "invoices")


def test_unreadable_file_raises():
    with pytest.raises(ExcelImportError):
        ExcelImporter().parse_workbook(b"definitely not a workbook", "employee")
