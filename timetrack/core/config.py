"""Application configuration loaded via pydantic settings."""

from decimal import Decimal
from typing import List, Optional
import secrets

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Strongly-typed application settings with environment overrides."""

    # Application
    APP_NAME: str = "DMF Engineering Timesheet"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    SEED_DEV_DATA: bool = True

    # Identity provider tokens
    SECRET_KEY: str = secrets.token_urlsafe(32)
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Database
    DATABASE_URL: str = "sqlite:///./timetrack/timetrack.db"

    # CORS
    ALLOWED_ORIGINS: List[str] = ["http://localhost:5173", "http://localhost:3000"]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_LEVELS: str = "TRACE,ERROR,WARNING,INFO"
    LOG_FILE_PATH: str = "./timetrack/logs/app.log"
    LOG_TRACE_CALLS: bool = True

    # Timesheet rules
    DEFAULT_BILLING_RATE: Decimal = Decimal("75")
    RECENT_ENTRIES_LIMIT: int = 8
    UNDER_BUDGET_THRESHOLD: Decimal = Decimal("75")
    ON_TRACK_THRESHOLD: Decimal = Decimal("90")

    # AI suggestion gateway (OpenAI-compatible chat completions)
    AI_GATEWAY_URL: str = "https://ai.gateway.lovable.dev/v1/chat/completions"
    AI_API_KEY: Optional[str] = None
    AI_MODEL: str = "google/gemini-3-flash-preview"
    AI_TIMEOUT_SECONDS: float = 60.0

    # Outbound email for notifications
    RESEND_API_KEY: Optional[str] = None
    EMAIL_API_URL: str = "https://api.resend.com/emails"
    EMAIL_FROM: str = "DMF Engineering <timesheet@dmfengineering.com>"

    class Config:
        """Configure environment file loading behavior."""

        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


settings = Settings()
