from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from nltk.stem import PorterStemmer
from nltk.tokenize import RegexpTokenizer
from pydantic import BaseModel
from rapidfuzz.distance import JaroWinkler
from sklearn.feature_extraction.text import TfidfVectorizer
from sklearn.metrics.pairwise import linear_kernel

from finance_tracker.categorization.catalog import CATEGORIES, FALLBACK_CATEGORY, is_known_category
from finance_tracker.core.config import settings
from finance_tracker.models.transaction import MemoryEntry, Prediction, TransactionRecord

logger = logging.getLogger(__name__)

RELEVANCE_WEIGHT = 0.4
PATTERN_WEIGHT = 0.3
KEYWORD_WEIGHT = 0.3

HISTORICAL_VENDOR_CONFIDENCE = 1.0
SIMILAR_VENDOR_CONFIDENCE = 0.9
EXPENSE_TYPE_CONFIDENCE = 0.8


class ExpenseCategorizer:
    """
    Predicts a catalog category for a transaction and learns from confirmed
    categorizations.

    Vendor and expense-type memory live on the instance for its lifetime.
    Predictions consult memory first (exact vendor, similar vendor, expense
    type) and fall back to content scoring that fuses TF-IDF relevance,
    phrase patterns and stemmed keyword overlap.
    """

    def __init__(
        self,
        confidence_threshold: Optional[int] = None,
        similarity_threshold: Optional[float] = None,
        auto_learn: Optional[bool] = None,
    ) -> None:
        self.confidence_threshold = (
            settings.CATEGORIZER_CONFIDENCE_THRESHOLD if confidence_threshold is None else confidence_threshold
        )
        self.similarity_threshold = (
            settings.CATEGORIZER_SIMILARITY_THRESHOLD if similarity_threshold is None else similarity_threshold
        )
        self.auto_learn = settings.CATEGORIZER_AUTO_LEARN if auto_learn is None else auto_learn

        self._tokenizer = RegexpTokenizer(r"\w+")
        self._stemmer = PorterStemmer()
        self._lock = threading.RLock()

        self._vendor_memory: Dict[str, MemoryEntry] = {}
        self._expense_type_memory: Dict[str, MemoryEntry] = {}

        self._category_names = list(CATEGORIES)
        self._stemmed_keywords = {
            category: {self._stemmer.stem(word.lower()) for word in data["keywords"]}
            for category, data in CATEGORIES.items()
        }
        # One TF-IDF document per category built from its keywords and patterns
        self._vectorizer = TfidfVectorizer(analyzer=self.tokenize_and_stem)
        self._category_matrix = self._vectorizer.fit_transform(
            [" ".join(data["keywords"] + data["patterns"]) for data in CATEGORIES.values()]
        )

    def predict(self, entity: Any) -> Prediction:
        """Predict a category without touching memory. Never raises."""
        try:
            record = TransactionRecord.from_entity(entity)
            with self._lock:
                return self._predict(record)
        except Exception as e:
            logger.error(f"Error predicting category: {str(e)}", exc_info=True)
            return Prediction(category=FALLBACK_CATEGORY, confidence=0.0, method="error_fallback")

    def _predict(self, record: TransactionRecord) -> Prediction:
        vendor = record.vendor_name
        if vendor:
            history = self._vendor_memory.get(vendor)
            if history and history.count >= self.confidence_threshold:
                return Prediction(
                    category=history.category,
                    confidence=HISTORICAL_VENDOR_CONFIDENCE,
                    method="historical_vendor",
                )

            similar = self.find_similar_vendor(vendor)
            if similar:
                return Prediction(
                    category=similar,
                    confidence=SIMILAR_VENDOR_CONFIDENCE,
                    method="similar_vendor",
                )

        expense_type = record.expense_type
        if expense_type:
            history = self._expense_type_memory.get(expense_type)
            if history and history.count >= self.confidence_threshold:
                return Prediction(
                    category=history.category,
                    confidence=EXPENSE_TYPE_CONFIDENCE,
                    method="expense_type",
                )

        category, score = self._best_content_match(record)
        return Prediction(category=category, confidence=score, method="ai_analysis")

    def find_similar_vendor(self, vendor_name: str) -> Optional[str]:
        """
        Return the category of the most similar trusted vendor, or None.

        Similarity is case-insensitive Jaro-Winkler. Highest similarity wins;
        on equal similarity the vendor learned first wins.
        """
        target = vendor_name.lower()
        best: Optional[Tuple[float, str]] = None
        for known_vendor, entry in self._vendor_memory.items():
            if entry.count < self.confidence_threshold:
                continue
            similarity = JaroWinkler.similarity(target, known_vendor.lower())
            if similarity > self.similarity_threshold and (best is None or similarity > best[0]):
                best = (similarity, entry.category)
        return best[1] if best else None

    def score_categories(self, record: TransactionRecord) -> Dict[str, float]:
        """Combined content score per catalog category."""
        text = self.description_text(record)
        tokens = self.tokenize_and_stem(text)

        relevance = linear_kernel(self._vectorizer.transform([text]), self._category_matrix)[0]

        scores: Dict[str, float] = {}
        for index, category in enumerate(self._category_names):
            data = CATEGORIES[category]
            combined = (
                RELEVANCE_WEIGHT * float(relevance[index])
                + PATTERN_WEIGHT * self.pattern_score(text, data["patterns"])
                + KEYWORD_WEIGHT * self.keyword_score(tokens, self._stemmed_keywords[category])
            )
            scores[category] = min(1.0, max(0.0, combined))
        return scores

    def _best_content_match(self, record: TransactionRecord) -> Tuple[str, float]:
        best_category, best_score = FALLBACK_CATEGORY, 0.0
        for category, score in self.score_categories(record).items():
            if score > best_score:
                best_category, best_score = category, score
        return best_category, best_score

    @staticmethod
    def description_text(record: TransactionRecord) -> str:
        return " ".join(
            [
                record.vendor_name or "",
                record.expense_type or "",
                record.description or "",
                record.remarks or "",
            ]
        ).lower()

    def tokenize_and_stem(self, text: str) -> List[str]:
        return [self._stemmer.stem(token) for token in self._tokenizer.tokenize(text.lower())]

    @staticmethod
    def keyword_score(tokens: List[str], stemmed_keywords: Iterable[str]) -> float:
        if not tokens:
            return 0.0
        keywords = set(stemmed_keywords)
        return sum(1 for token in tokens if token in keywords) / len(tokens)

    @staticmethod
    def pattern_score(text: str, patterns: List[str]) -> float:
        if not patterns:
            return 0.0
        lowered = text.lower()
        return sum(1 for pattern in patterns if pattern.lower() in lowered) / len(patterns)

    def learn(self, entity: Any, category: str) -> None:
        """
        Record a confirmed category for the transaction's vendor and expense
        type. A different category than the remembered one replaces it and
        restarts its count at 1. Categories outside the catalog are ignored.
        """
        if not is_known_category(category):
            logger.warning(f"Ignoring unknown category {category!r}")
            return
        record = TransactionRecord.from_entity(entity)
        with self._lock:
            if record.vendor_name:
                self._remember(self._vendor_memory, record.vendor_name, category)
            if record.expense_type:
                self._remember(self._expense_type_memory, record.expense_type, category)

    @staticmethod
    def _remember(memory: Dict[str, MemoryEntry], key: str, category: str) -> None:
        entry = memory.get(key)
        if entry is not None and entry.category == category:
            entry.count += 1
        else:
            memory[key] = MemoryEntry(category=category, count=1)

    @property
    def vendor_memory(self) -> Dict[str, Dict[str, Any]]:
        with self._lock:
            return {key: entry.model_dump() for key, entry in self._vendor_memory.items()}

    @property
    def expense_type_memory(self) -> Dict[str, Dict[str, Any]]:
        with self._lock:
            return {key: entry.model_dump() for key, entry in self._expense_type_memory.items()}

    def categorize_batch(
        self,
        entities: Iterable[Any],
        auto_learn: Optional[bool] = None,
    ) -> List[Dict[str, Any]]:
        """
        Predict a category for each entity in input order.

        With auto-learn on, each prediction is learned before the next entity
        is predicted, so repeated vendors reinforce within the batch.
        """
        learn_from_predictions = self.auto_learn if auto_learn is None else auto_learn
        results: List[Dict[str, Any]] = []

        with self._lock:
            for entity in entities:
                prediction = self.predict(entity)
                if learn_from_predictions and prediction.method != "error_fallback":
                    self.learn(entity, prediction.category)

                results.append(
                    {
                        **_entity_to_dict(entity),
                        "suggestedCategory": prediction.category,
                        "confidence": prediction.confidence,
                        "categorizationMethod": prediction.method,
                    }
                )

        logger.info(f"Categorized {len(results)} transactions (auto_learn={learn_from_predictions})")
        return results


def _entity_to_dict(entity: Any) -> Dict[str, Any]:
    if isinstance(entity, BaseModel):
        return entity.model_dump(by_alias=True)
    if isinstance(entity, Mapping):
        return dict(entity)
    return {}
