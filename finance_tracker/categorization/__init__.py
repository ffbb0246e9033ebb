"""
Expense categorization.

The ExpenseCategorizer predicts a catalog category for a transaction from
learned vendor/expense-type history and content scoring, and learns from
confirmed categorizations. CorrectionService applies user corrections to
stored transactions.
"""

from .catalog import CATEGORIES, FALLBACK_CATEGORY, is_known_category
from .corrections import CorrectionService
from .engine import ExpenseCategorizer
from .explainer import CorrectionExplainer, OpenAICorrectionExplainer

__all__ = [
    "CATEGORIES",
    "FALLBACK_CATEGORY",
    "CorrectionExplainer",
    "CorrectionService",
    "ExpenseCategorizer",
    "OpenAICorrectionExplainer",
    "is_known_category",
]
