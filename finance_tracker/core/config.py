from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # App settings
    PROJECT_NAME: str = "FinanceTracker"
    LOG_LEVEL: str = Field(default="INFO")

    # DynamoDB (one table per record kind)
    DYNAMO_REGION: str = Field(default="ap-south-1")
    DYNAMO_INCOME_TABLE: str = Field(default="finance-tracker-income")
    DYNAMO_EMPLOYEE_EXPENSES_TABLE: str = Field(default="finance-tracker-employee-expenses")
    DYNAMO_SALARY_EXPENSES_TABLE: str = Field(default="finance-tracker-salary-expenses")
    DYNAMO_VENDOR_PAYMENTS_TABLE: str = Field(default="finance-tracker-vendor-payments")

    # OpenAI (optional; correction explanations and the finance assistant)
    OPENAI_API_KEY: str | None = Field(default=None)
    OPENAI_MODEL: str = "gpt-3.5-turbo"

    # Categorizer
    CATEGORIZER_CONFIDENCE_THRESHOLD: int = 2  # confirmations before history is trusted
    CATEGORIZER_SIMILARITY_THRESHOLD: float = 0.85
    CATEGORIZER_AUTO_LEARN: bool = True

    # Forecasting
    FORECAST_MONTHS: int = 3


settings = Settings()
