"""
Application Configuration

Centralized settings management using Pydantic BaseSettings.
All values are loaded from environment variables or .env file.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings with environment variable binding.

    Required env vars (no defaults):
        POSTGRES_USER, POSTGRES_PASSWORD, POSTGRES_HOST, POSTGRES_DB

    Optional env vars:
        POSTGRES_PORT (5432), LOG_LEVEL (INFO), GEMINI_API_KEY (unset),
        GEMINI_MODEL, GEMINI_EMBEDDING_MODEL, AI_TIMEOUT (30.0)

    An empty GEMINI_API_KEY disables the enrichment pipeline; notes are
    still stored but never enriched.
    """

    PROJECT_NAME: str = "AI Journal"
    ENVIRONMENT: str = "local"

    # Database
    POSTGRES_USER: str
    POSTGRES_PASSWORD: str
    POSTGRES_HOST: str
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str

    # Logging
    LOG_LEVEL: str = "INFO"

    # Generative language API (Gemini REST)
    GEMINI_API_KEY: str | None = None
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com"
    GEMINI_MODEL: str = "gemini-1.5-flash"
    GEMINI_EMBEDDING_MODEL: str = "text-embedding-004"
    AI_TIMEOUT: float = 30.0

    # Enrichment pipeline
    EMBEDDING_DIMENSION: int = 768
    CHUNK_MAX_CHARS: int = 400
    RETRIEVAL_K: int = 5
    RETRIEVAL_DAYS: int = 5
    RETRIEVAL_LIMIT_PER_DAY: int = 20

    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",  # Silently ignore unknown env vars
    )

    @property
    def DATABASE_URL(self) -> str:
        """Async PostgreSQL connection string using asyncpg driver."""
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )


settings = Settings()  # type: ignore[call-arg]
