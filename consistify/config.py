# consistify/config.py
from pydantic_settings import BaseSettings
from typing import Optional
from pydantic import Field

class Settings(BaseSettings):
    SECRET_KEY: str = Field("change-me-in-production")
    ALGORITHM: str = Field("HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(60 * 24)
    REFRESH_TOKEN_EXPIRE_DAYS: int = Field(30)

    DATABASE_URL: str = Field("sqlite+aiosqlite:///./consistify.db")
    SQLALCHEMY_DATABASE_URL: Optional[str] = None
    SQL_ECHO: bool = False

    # Google sign-in. Tokens are checked against this audience.
    GOOGLE_CLIENT_ID: Optional[str] = None
    GOOGLE_CERTS_URL: str = "https://www.googleapis.com/oauth2/v3/certs"

    # Day planner. No key -> deterministic fallback plans only.
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_MODEL: str = "gpt-4o-mini"
    PLANNER_TIMEOUT_SECONDS: float = 30.0

    LOG_LEVEL: str = "INFO"

    model_config = {
        "env_file": ".env",
        "extra": "allow",
    }

    @property
    def effective_database_url(self) -> str:
        url = self.SQLALCHEMY_DATABASE_URL or self.DATABASE_URL
        # Ensure asyncpg is used
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return url

    @property
    def planner_enabled(self) -> bool:
        return bool((self.OPENAI_API_KEY or "").strip())

settings = Settings()
