import datetime as dt
from typing import Literal, Optional
from uuid import uuid4

from pydantic import BaseModel, Field

PaymentStatus = Literal["Pending", "Paid", "Cancelled"]


class IncomeRecord(BaseModel):
    transaction_id: str = Field(default_factory=lambda: str(uuid4()))
    date: dt.date
    source: str = Field(min_length=1)
    category: str = Field(min_length=1)
    amount_received: float = Field(gt=0)
    payment_method: str = Field(min_length=1)
    remarks: Optional[str] = ""


class EmployeeExpenseRecord(BaseModel):
    transaction_id: str = Field(default_factory=lambda: str(uuid4()))
    date: dt.date
    employee_name: str = Field(min_length=1)
    expense_type: str = Field(min_length=1)
    amount_paid: float = Field(gt=0)
    description: Optional[str] = ""
    remarks: Optional[str] = ""
    status: str = "Pending"


class SalaryExpenseRecord(BaseModel):
    transaction_id: str = Field(default_factory=lambda: str(uuid4()))
    date: dt.date
    employee_name: str = Field(min_length=1)
    amount_paid: float = Field(gt=0)
    department: str = Field(min_length=1)
    month: Optional[str] = None
    status: PaymentStatus = "Pending"
    notes: Optional[str] = ""
    remarks: Optional[str] = ""


class VendorPaymentRecord(BaseModel):
    transaction_id: str = Field(default_factory=lambda: str(uuid4()))
    invoice_date: dt.date
    vendor_name: str = Field(min_length=1)
    gst_number: Optional[str] = None
    amount_incl_gst: float = Field(gt=0)
    amount_excl_gst: float = Field(ge=0)
    igst: float = 0.0
    cgst: float = 0.0
    remarks: Optional[str] = ""
    invoice_number: str = Field(min_length=1)
    status: PaymentStatus = "Pending"


# Record kind -> model, matching the importer's data types
RECORD_MODELS = {
    "income": IncomeRecord,
    "employee": EmployeeExpenseRecord,
    "salary": SalaryExpenseRecord,
    "vendor": VendorPaymentRecord,
}
