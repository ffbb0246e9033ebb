import logging
from typing import Any, Mapping, Optional, Protocol

from openai import OpenAI

from finance_tracker.core.config import settings

logger = logging.getLogger(__name__)


class CorrectionExplainer(Protocol):
    def explain_correction(
        self,
        record: Mapping[str, Any],
        previous_category: Optional[str],
        new_category: str,
    ) -> Optional[str]:
        ...


class OpenAICorrectionExplainer:
    """
    Asks an OpenAI chat model to comment on a user's category correction.

    Purely informational: the categorizer's memory update never depends on
    the response. Returns None when no API key is configured or the call
    fails.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        client: Optional[Any] = None,
    ) -> None:
        self.model = model or settings.OPENAI_MODEL
        self.client = client or self._init_client(api_key or settings.OPENAI_API_KEY)

    @staticmethod
    def _init_client(api_key: Optional[str]) -> Optional[OpenAI]:
        if not api_key:
            logger.warning("OPENAI_API_KEY not set; correction explanations disabled")
            return None
        return OpenAI(api_key=api_key)

    @staticmethod
    def build_prompt(record: Mapping[str, Any], previous_category: Optional[str], new_category: str) -> str:
        description = record.get("description") or record.get("remarks") or ""
        return (
            "Learn from this correction:\n"
            f"Original Description: {description}\n"
            f"Original Category: {previous_category or 'Unknown'}\n"
            f"Correct Category: {new_category}\n\n"
            "Please analyze this correction and update your understanding of how to "
            "categorize similar expenses."
        )

    def explain_correction(
        self,
        record: Mapping[str, Any],
        previous_category: Optional[str],
        new_category: str,
    ) -> Optional[str]:
        if self.client is None:
            return None

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": self.build_prompt(record, previous_category, new_category)}],
                max_tokens=100,
                temperature=0.3,
            )
            explanation = response.choices[0].message.content
            logger.info(f"Correction explanation received: {explanation}")
            return explanation
        except Exception as e:
            logger.error(f"Correction explanation failed: {str(e)}")
            return None
