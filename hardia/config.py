from enum import Enum
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

APP_VERSION = "1.1.0"


class Mode(str, Enum):
    """Controls how much error detail reaches the client."""

    DEVELOPMENT = "development"
    PRODUCTION = "production"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Gemini
    google_gemini_api_key: str = Field(..., min_length=1)
    gemini_model: str = "gemini-2.0-flash"
    max_tokens: int = Field(default=1000, gt=0)

    # Chat
    chat_timeout_seconds: float = Field(default=15.0, gt=0)

    # Rate limiting (requests per client per window)
    api_limit: int = Field(default=100, gt=0)
    rate_limit_window_seconds: int = Field(default=3600, gt=0)

    # Request body cap (bytes), larger bodies get 413
    max_body_bytes: int = Field(default=10 * 1024, gt=0)

    # CORS
    allowed_origins: str = "*"

    # Server
    node_env: str = "development"
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"
    log_access: bool = True
    static_dir: str = "public"

    @property
    def mode(self) -> Mode:
        if self.node_env.strip().lower() == Mode.DEVELOPMENT.value:
            return Mode.DEVELOPMENT
        return Mode.PRODUCTION

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()
