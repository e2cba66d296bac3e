"""
Media Catalog – Application configuration.
Reads environment variables from a .env file via pydantic-settings.
"""

from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration loaded from environment / .env."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # ── App ──
    APP_NAME: str = "Media Catalog"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # ── Database ──
    DATABASE_URL: str = "sqlite+aiosqlite:///./catalog.db"
    STORE_TIMEOUT_SECONDS: float = 5.0

    # ── JWT ──
    SECRET_KEY: str = "change-me-to-a-random-secret"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 480

    # ── Pagination ──
    DEFAULT_PAGE_SIZE: int = 15
    MAX_PAGE_SIZE: int = 50

    # ── Blob storage ──
    MEDIA_DIR: str = "./media"
    MEDIA_URL_PREFIX: str = "/media"
    MAX_UPLOAD_BYTES: int = 5 * 1024 * 1024

    # ── CORS ──
    CORS_ORIGINS: List[str] = ["*"]

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"


settings = Settings()
