"""
Optimizer configuration management
"""

from pathlib import Path
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator

PACKAGE_ROOT = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """Optimizer settings"""

    # Remote service
    API_ENDPOINT: str = "http://api.resmush.it"
    CONNECT_TIMEOUT: float = 5.0

    # Compression quality
    DEFAULT_QUALITY: int = 92
    FALLBACK_QUALITY: int = 85

    # Source validation
    MAX_FILE_SIZE: int = 5 * 1024 * 1024  # 5MB, exclusive
    ALLOWED_EXTENSIONS: List[str] = ["jpg", "jpeg", "png", "gif"]
    ALLOWED_MIME_TYPES: List[str] = ["image/jpg", "image/jpeg", "image/png", "image/gif"]

    # Execution time budget (0 = no cap)
    MAX_EXECUTION_SECONDS: float = 0
    EXECUTION_TIME_MARGIN: float = 10

    # Logging
    LOG_FILE: str = str(PACKAGE_ROOT.parent / "debug.log")

    model_config = SettingsConfigDict(
        env_prefix="RESMUSH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    @field_validator("ALLOWED_EXTENSIONS", mode="before")
    @classmethod
    def parse_allowed_extensions(cls, v):
        if isinstance(v, str):
            v = v.split(",")
        return [ext.strip().lstrip(".").lower() for ext in v if ext.strip()]

    @field_validator("ALLOWED_MIME_TYPES", mode="before")
    @classmethod
    def parse_allowed_mime_types(cls, v):
        if isinstance(v, str):
            return [mime.strip() for mime in v.split(",") if mime.strip()]
        return v

    @field_validator("DEFAULT_QUALITY", "FALLBACK_QUALITY")
    @classmethod
    def check_quality_range(cls, v):
        if not 1 <= v <= 100:
            raise ValueError("quality must be between 1 and 100")
        return v


# Create settings instance
settings = Settings()
