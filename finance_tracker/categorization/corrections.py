import logging
from typing import Any, Callable, Dict, Mapping, Optional

from finance_tracker.categorization.catalog import is_known_category
from finance_tracker.categorization.engine import ExpenseCategorizer
from finance_tracker.categorization.explainer import CorrectionExplainer
from finance_tracker.core.exceptions import (
    InvalidCategoryError,
    TransactionNotFoundError,
    UnknownRecordKindError,
)
from finance_tracker.db import dynamo
from finance_tracker.models.records import RECORD_MODELS

logger = logging.getLogger(__name__)

TransactionLookup = Callable[[str, str], Optional[Mapping[str, Any]]]


class CorrectionService:
    """Applies a user's category correction for a stored transaction."""

    def __init__(
        self,
        categorizer: ExpenseCategorizer,
        lookup: Optional[TransactionLookup] = None,
        explainer: Optional[CorrectionExplainer] = None,
    ) -> None:
        self.categorizer = categorizer
        self.lookup = lookup or dynamo.get_transaction
        self.explainer = explainer

    def apply_correction(self, transaction_id: str, category: str, kind: str = "employee") -> Dict[str, Any]:
        """
        Teach the categorizer that the transaction belongs to ``category``.

        Raises TransactionNotFoundError when the record can't be resolved.
        The optional explainer runs after the memory update and can't undo it.
        """
        if kind not in RECORD_MODELS:
            raise UnknownRecordKindError(kind)
        if not is_known_category(category):
            raise InvalidCategoryError(category)

        record = self.lookup(kind, transaction_id)
        if not record:
            logger.warning(f"Correction for missing {kind} record {transaction_id}")
            raise TransactionNotFoundError(kind, transaction_id)

        previous_category = record.get("suggestedCategory") or record.get("suggested_category")
        self.categorizer.learn(record, category)
        logger.info(f"Learned category {category!r} for {kind} record {transaction_id} (was {previous_category!r})")

        explanation = None
        if self.explainer is not None:
            try:
                explanation = self.explainer.explain_correction(record, previous_category, category)
            except Exception as e:
                logger.error(f"Correction explainer failed for {transaction_id}: {str(e)}", exc_info=True)

        return {
            "transaction_id": transaction_id,
            "kind": kind,
            "category": category,
            "previous_category": previous_category,
            "explanation": explanation,
        }
