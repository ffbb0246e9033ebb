from typing import Any, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

PredictionMethod = Literal[
    "historical_vendor",
    "similar_vendor",
    "expense_type",
    "ai_analysis",
    "error_fallback",
]


class TransactionRecord(BaseModel):
    """The fields of a stored transaction the categorizer reads."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    vendor_name: Optional[str] = Field(default=None, alias="vendorName")
    expense_type: Optional[str] = Field(default=None, alias="expenseType")
    description: Optional[str] = None
    remarks: Optional[str] = None

    @classmethod
    def from_entity(cls, entity: Any) -> "TransactionRecord":
        if isinstance(entity, cls):
            return entity
        if not isinstance(entity, Mapping):
            raise TypeError(f"Unsupported transaction entity: {type(entity).__name__}")
        return cls(
            vendor_name=entity.get("vendorName") or entity.get("vendor_name"),
            expense_type=entity.get("expenseType") or entity.get("expense_type"),
            description=entity.get("description"),
            remarks=entity.get("remarks"),
        )


class Prediction(BaseModel):
    category: str
    confidence: float = Field(ge=0.0, le=1.0)
    method: PredictionMethod


class MemoryEntry(BaseModel):
    category: str
    count: int = 1
