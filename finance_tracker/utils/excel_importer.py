"""
Excel Importer
Reads .xlsx workbooks, maps spreadsheet columns onto record fields and
writes valid sheets to storage.
"""
from __future__ import annotations

import io
import logging
from datetime import date, datetime
from typing import Any, Callable, Dict, Iterable, List, Optional

from openpyxl import load_workbook
from openpyxl.utils.datetime import from_excel
from pydantic import ValidationError

from finance_tracker.core.exceptions import ExcelImportError, UnknownRecordKindError
from finance_tracker.db import dynamo
from finance_tracker.models.records import RECORD_MODELS

logger = logging.getLogger(__name__)

# Record field -> accepted column headers, per record kind
COLUMN_ALIASES: Dict[str, Dict[str, List[str]]] = {
    "employee": {
        "employee_name": ["Employee Name", "employeeName", "employee_name"],
        "expense_type": ["Expense Type", "Category", "expenseType", "expense_type"],
        "amount_paid": ["Amount Paid", "Amount", "amountPaid", "amount_paid"],
        "date": ["Date", "date"],
        "status": ["Status", "status"],
        "description": ["Description", "description"],
        "remarks": ["Remarks", "remarks"],
    },
    "salary": {
        "employee_name": ["Employee Name", "employeeName", "employee_name"],
        "department": ["Department", "department"],
        "amount_paid": ["Amount Paid", "Salary", "Amount", "amountPaid", "amount_paid"],
        "date": ["Date", "Payment Date", "date", "paymentDate"],
        "month": ["Month", "month"],
        "status": ["Status", "status"],
        "notes": ["Notes", "notes"],
        "remarks": ["Remarks", "Description", "remarks"],
    },
    "vendor": {
        "vendor_name": ["Vendor Name", "Vendor", "vendorName", "vendor_name"],
        "invoice_number": ["Invoice Number", "Invoice No", "invoiceNumber", "invoice_number"],
        "invoice_date": ["Invoice Date", "Date", "invoiceDate", "invoice_date"],
        "gst_number": ["GST Number", "gstNumber", "gst_number"],
        "amount_incl_gst": ["Amount Incl GST", "Amount", "amountInclGST", "amount_incl_gst"],
        "amount_excl_gst": ["Amount Excl GST", "amountExclGST", "amount_excl_gst"],
        "igst": ["IGST", "igst"],
        "cgst": ["CGST", "cgst"],
        "status": ["Status", "status"],
        "remarks": ["Remarks", "Description", "remarks"],
    },
    "income": {
        "source": ["Source", "source"],
        "category": ["Category", "category"],
        "amount_received": ["Amount Received", "Amount", "amountReceived", "amount_received"],
        "payment_method": ["Payment Method", "paymentMethod", "payment_method"],
        "date": ["Date", "date"],
        "remarks": ["Remarks", "Description", "remarks"],
    },
}

DATE_FIELDS = {"date", "invoice_date"}
AMOUNT_FIELDS = {"amount_paid", "amount_incl_gst", "amount_excl_gst", "igst", "cgst", "amount_received"}

# Tried in order; "-" and "/" are interchangeable
DATE_FORMATS = ["%Y-%m-%d", "%m-%d-%Y", "%d-%m-%Y"]

RecordWriter = Callable[[str, List[Dict[str, Any]]], bool]


def parse_excel_date(value: Any, today: Optional[date] = None) -> date:
    """
    Best-effort conversion of a spreadsheet cell to a date.

    Handles date/datetime cells, Excel serial numbers and strings in
    yyyy-mm-dd, mm/dd/yyyy, dd/mm/yyyy or yyyy/mm/dd. Falls back to today.
    """
    fallback = today or date.today()
    if value in (None, ""):
        return fallback
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return from_excel(value).date()
        except (ValueError, OverflowError, TypeError):
            logger.warning(f"Invalid Excel serial date: {value}")
            return fallback
    if isinstance(value, str):
        text = value.strip().split("T")[0].split(" ")[0].replace("/", "-")
        for fmt in DATE_FORMATS:
            try:
                return datetime.strptime(text, fmt).date()
            except ValueError:
                continue

    logger.warning(f"Invalid date found: {value!r}, using {fallback.isoformat()}")
    return fallback


def _to_amount(value: Any) -> Any:
    if value in (None, ""):
        return None
    if isinstance(value, str):
        value = value.replace(",", "").strip()
    try:
        return float(value)
    except (TypeError, ValueError):
        return value  # left for model validation to reject


class ExcelImporter:
    def __init__(self, today: Optional[date] = None) -> None:
        self._today = today

    @staticmethod
    def _aliases(kind: str) -> Dict[str, List[str]]:
        if kind not in COLUMN_ALIASES:
            raise UnknownRecordKindError(kind)
        return COLUMN_ALIASES[kind]

    def map_row(self, row: Dict[str, Any], kind: str) -> Dict[str, Any]:
        mapped: Dict[str, Any] = {}
        for field, headers in self._aliases(kind).items():
            value = next((row[h] for h in headers if row.get(h) not in (None, "")), None)
            if field in DATE_FIELDS:
                value = parse_excel_date(value, self._today)
            elif field in AMOUNT_FIELDS:
                value = _to_amount(value)
            elif field == "status" and isinstance(value, str):
                value = value.strip().capitalize()
            elif isinstance(value, str):
                value = value.strip()
            if value is not None:
                mapped[field] = value
        if kind == "vendor" and "amount_excl_gst" not in mapped and "amount_incl_gst" in mapped:
            mapped["amount_excl_gst"] = mapped["amount_incl_gst"]
        return mapped

    def parse_workbook(self, content: bytes, kind: str) -> Dict[str, List[Dict[str, Any]]]:
        """Map every sheet's rows to record fields. Returns {sheet_name: rows}."""
        self._aliases(kind)
        try:
            workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
        except Exception as e:
            raise ExcelImportError(f"Error processing Excel file: {str(e)}") from e

        result: Dict[str, List[Dict[str, Any]]] = {}
        try:
            for sheet in workbook.worksheets:
                rows = sheet.iter_rows(values_only=True)
                header = next(rows, None)
                if not header:
                    result[sheet.title] = []
                    continue
                headers = [str(cell).strip() if cell is not None else "" for cell in header]
                result[sheet.title] = [
                    self.map_row(dict(zip(headers, values)), kind)
                    for values in rows
                    if any(cell not in (None, "") for cell in values)
                ]
        finally:
            workbook.close()
        return result

    @staticmethod
    def validate_rows(rows: Iterable[Dict[str, Any]], kind: str) -> List[Dict[str, Any]]:
        """Validate rows against the record model; raises pydantic ValidationError."""
        model = RECORD_MODELS[kind]
        return [model(**row).model_dump(mode="json") for row in rows]

    def import_workbook(
        self,
        content: bytes,
        kind: str,
        writer: Optional[RecordWriter] = None,
    ) -> Dict[str, List[str]]:
        writer = writer or dynamo.put_transactions
        parsed = self.parse_workbook(content, kind)
        results: Dict[str, List[str]] = {"success": [], "errors": []}

        for sheet_name, rows in parsed.items():
            if not rows:
                continue
            try:
                records = self.validate_rows(rows, kind)
            except ValidationError as e:
                logger.warning(f"Invalid data format in {sheet_name}: {e.error_count()} errors")
                results["errors"].append(f"Invalid data format in {sheet_name}")
                continue

            if writer(kind, records):
                logger.info(f"Imported {len(records)} {kind} records from sheet {sheet_name}")
                results["success"].append(f"Successfully imported {len(records)} records from {sheet_name}")
            else:
                results["errors"].append(f"Error processing sheet {sheet_name}: storage write failed")

        return results
