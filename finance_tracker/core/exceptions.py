"""Domain exceptions raised across the finance tracker services."""


class FinanceTrackerError(Exception):
    """Base class for all finance tracker errors."""


class TransactionNotFoundError(FinanceTrackerError):
    def __init__(self, kind: str, transaction_id: str):
        self.kind = kind
        self.transaction_id = transaction_id
        super().__init__(f"{kind} record not found: {transaction_id}")


class InvalidCategoryError(FinanceTrackerError):
    def __init__(self, category: str):
        self.category = category
        super().__init__(f"Unknown category: {category!r}")


class UnknownRecordKindError(FinanceTrackerError):
    def __init__(self, kind: str):
        self.kind = kind
        super().__init__(f"Invalid data type: {kind}")


class ExcelImportError(FinanceTrackerError):
    """The uploaded workbook could not be read."""


class AssistantUnavailableError(FinanceTrackerError):
    """No LLM client is configured for the finance assistant."""
