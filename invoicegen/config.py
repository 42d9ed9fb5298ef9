from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    app_name: str = Field(default="Invoice Generator")
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:5000",
        ]
    )
    upload_dir: Path = Field(
        default=Path("uploads")
    )
    max_upload_bytes: int = Field(
        default=2 * 1024 * 1024
    )
    asset_timeout: float = Field(
        default=10.0
    )
    currency_symbol: str = Field(
        default="Rs."
    )
    page_margin_mm: float = Field(
        default=20.0
    )
    log_level: str = Field(
        default="INFO"
    )

    model_config = SettingsConfigDict(env_prefix="INVOICEGEN_", case_sensitive=False)

    @field_validator("cors_origins", mode="before")
    def _split_origins(cls, value):
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings()
