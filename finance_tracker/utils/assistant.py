"""
Finance Assistant
Answers questions about the business's finances with an OpenAI chat model,
grounded in an up-to-date summary and the most recent entries of each kind.
"""
import json
import logging
from typing import Any, Dict, List, Mapping, Optional

from openai import OpenAI

from finance_tracker.core.config import settings
from finance_tracker.core.exceptions import AssistantUnavailableError
from finance_tracker.utils.analyzer import FinanceAnalyzer

logger = logging.getLogger(__name__)

RECENT_ENTRIES = 3

# (record kind, section title, label field, fallback label, amount field, date field)
RECENT_SECTIONS = [
    ("employee", "Recent Employee Expenses", "description", "Expense", "amount_paid", "date"),
    ("vendor", "Recent Vendor Payments", "vendor_name", "Vendor", "amount_incl_gst", "invoice_date"),
    ("salary", "Recent Salary Expenses", "employee_name", "Employee", "amount_paid", "date"),
    ("income", "Recent Income Entries", "source", "Income", "amount_received", "date"),
]


class FinanceAssistant:
    def __init__(
        self,
        analyzer: Optional[FinanceAnalyzer] = None,
        client: Optional[Any] = None,
        model: Optional[str] = None,
    ) -> None:
        self.analyzer = analyzer or FinanceAnalyzer()
        self.model = model or settings.OPENAI_MODEL
        if client is None and settings.OPENAI_API_KEY:
            client = OpenAI(api_key=settings.OPENAI_API_KEY)
        self.client = client

    @staticmethod
    def normalize_history(history: Any) -> List[Dict[str, str]]:
        """Chat history may arrive as a JSON string; anything unusable becomes []."""
        if isinstance(history, str):
            try:
                history = json.loads(history)
            except json.JSONDecodeError:
                return []
        if not isinstance(history, list):
            return []
        return [item for item in history if isinstance(item, dict) and "role" in item and "content" in item]

    def build_system_prompt(self, records_by_kind: Mapping[str, List[Dict[str, Any]]]) -> str:
        summary = self.analyzer.financial_summary(records_by_kind)
        sections = []
        for kind, title, label_field, fallback, amount_field, date_field in RECENT_SECTIONS:
            recent = records_by_kind.get(kind, [])[-RECENT_ENTRIES:]
            lines = [
                f"- {record.get(label_field) or fallback}: ₹{record.get(amount_field) or 0} "
                f"on {record.get(date_field) or 'N/A'}"
                for record in recent
            ]
            sections.append(f"{title}:\n" + ("\n".join(lines) or "None"))

        return (
            "You are a smart, helpful financial assistant for a business user. Use the following "
            "up-to-date summary and recent transactions to answer questions, provide insights, and "
            "suggest actions. Be concise, clear, and insightful.\n\n"
            "Financial Summary:\n"
            f"- Total Income: ₹{summary['total_income']}\n"
            f"- Total Expenses: ₹{summary['total_expenses']}\n"
            f"- Net Profit: ₹{summary['net_profit']}\n\n" + "\n".join(sections)
        )

    def ask(
        self,
        message: str,
        records_by_kind: Mapping[str, List[Dict[str, Any]]],
        history: Any = None,
    ) -> str:
        if not isinstance(message, str) or not message.strip():
            raise ValueError("Missing or invalid message in request.")
        if self.client is None:
            raise AssistantUnavailableError("OPENAI_API_KEY is not configured")

        messages = [
            {"role": "system", "content": self.build_system_prompt(records_by_kind)},
            *self.normalize_history(history),
            {"role": "user", "content": message},
        ]
        logger.info(f"Asking finance assistant ({len(messages)} messages)")
        completion = self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            max_tokens=512,
            temperature=0.2,
        )
        return completion.choices[0].message.content
