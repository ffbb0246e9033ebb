from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional

logger = logging.getLogger(__name__)

MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

# Record kind -> (date field, amount field)
RECORD_FIELDS = {
    "income": ("date", "amount_received"),
    "employee": ("date", "amount_paid"),
    "salary": ("date", "amount_paid"),
    "vendor": ("invoice_date", "amount_incl_gst"),
}
EXPENSE_KINDS = ("employee", "salary", "vendor")


@dataclass
class PeriodTotals:
    """Income, expenses and profit for one reporting period."""

    name: str
    income: float = 0.0
    expenses: float = 0.0

    @property
    def profit(self) -> float:
        return round(self.income - self.expenses, 2)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["income"] = round(self.income, 2)
        data["expenses"] = round(self.expenses, 2)
        data["profit"] = self.profit
        return data


def parse_record_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
        except ValueError:
            return None
    return None


def record_amount(record: Mapping[str, Any], kind: str) -> float:
    _, amount_field = RECORD_FIELDS[kind]
    try:
        return float(record.get(amount_field) or 0)
    except (TypeError, ValueError):
        return 0.0


class FinanceAnalyzer:
    """
    Profit/loss and summary analytics over the four record kinds
    (income, employee, salary, vendor).
    """

    def kind_total(self, records: List[Dict[str, Any]], kind: str) -> float:
        return round(sum(record_amount(record, kind) for record in records), 2)

    def financial_summary(self, records_by_kind: Mapping[str, List[Dict[str, Any]]]) -> Dict[str, Any]:
        totals = {kind: self.kind_total(records_by_kind.get(kind, []), kind) for kind in RECORD_FIELDS}
        total_income = totals["income"]
        total_expenses = round(sum(totals[kind] for kind in EXPENSE_KINDS), 2)
        return {
            "total_income": total_income,
            "total_expenses": total_expenses,
            "net_profit": round(total_income - total_expenses, 2),
            "totals_by_kind": totals,
        }

    def monthly_totals(
        self,
        records_by_kind: Mapping[str, List[Dict[str, Any]]],
        year: int,
    ) -> List[PeriodTotals]:
        months = [PeriodTotals(name=name) for name in MONTH_NAMES]
        for kind, (date_field, _) in RECORD_FIELDS.items():
            for record in records_by_kind.get(kind, []):
                record_date = parse_record_date(record.get(date_field))
                if record_date is None:
                    logger.warning(f"Skipping {kind} record without a valid {date_field}: {record.get('transaction_id')}")
                    continue
                if record_date.year != year:
                    continue
                bucket = months[record_date.month - 1]
                if kind == "income":
                    bucket.income += record_amount(record, kind)
                else:
                    bucket.expenses += record_amount(record, kind)
        return months

    def profit_loss(
        self,
        records_by_kind: Mapping[str, List[Dict[str, Any]]],
        year: Optional[int] = None,
        timeframe: str = "monthly",
    ) -> List[Dict[str, Any]]:
        """
        Profit/loss rows for the year, monthly (Jan..Dec) or quarterly (Q1..Q4).
        """
        year = year or date.today().year
        months = self.monthly_totals(records_by_kind, year)

        if timeframe != "quarterly":
            return [month.to_dict() for month in months]

        quarters = [PeriodTotals(name=f"Q{q + 1}") for q in range(4)]
        for index, month in enumerate(months):
            quarter = quarters[index // 3]
            quarter.income += month.income
            quarter.expenses += month.expenses
        return [quarter.to_dict() for quarter in quarters]
