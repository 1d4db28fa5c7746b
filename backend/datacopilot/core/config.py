from pydantic_settings import BaseSettings
from typing import Optional
from functools import lru_cache


# Default model per insight provider
DEFAULT_MODELS = {
    "groq": "llama-3.3-70b-versatile",
    "anthropic": "claude-sonnet-4-20250514",
}


class Settings(BaseSettings):
    """Application configuration settings."""

    # Application
    APP_NAME: str = "DataCopilot"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    API_PREFIX: str = "/api"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Insight provider
    LLM_PROVIDER: str = "groq"  # "groq" or "anthropic"
    GROQ_API_KEY: Optional[str] = None
    GROQ_BASE_URL: str = "https://api.groq.com/openai/v1"
    ANTHROPIC_API_KEY: Optional[str] = None
    INSIGHT_MODEL: Optional[str] = None  # Defaults per provider if unset
    INSIGHT_TEMPERATURE: float = 0.3
    INSIGHT_MAX_TOKENS: int = 700
    INSIGHT_TIMEOUT_SECONDS: float = 60.0

    # Profiling
    TYPE_SAMPLE_SIZE: int = 50  # Non-blank values inspected per column
    CATEGORY_TOP_N: int = 15

    # Ingestion
    MAX_UPLOAD_MB: int = 25
    MAX_DATA_ROWS: int = 5000  # Rows past this are dropped
    PREVIEW_ROWS: int = 19  # Data rows shown under the header
    SAMPLE_ROW_LIMIT: int = 20  # Rows forwarded to the model, header included
    ALLOWED_EXTENSIONS: list = ["csv", "tsv", "txt"]

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def insight_model(self) -> str:
        return self.INSIGHT_MODEL or DEFAULT_MODELS.get(self.LLM_PROVIDER, DEFAULT_MODELS["groq"])

    @property
    def cors_origins(self) -> list:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
