"""Application configuration."""
from pathlib import Path
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Get the project root directory (3 levels up from this file: backend/fmadmin/core/config.py)
PROJECT_ROOT = Path(__file__).parent.parent.parent.parent
ENV_FILE = PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """Application settings."""

    # Application
    APP_NAME: str = "FileMaker Admin Settings Sync"
    DEBUG: bool = False

    # FileMaker Admin API
    FM_ADMIN_API_PREFIX: str = "/fmi/admin/api/v2"
    # Local upper bound only; the server's real token lifetime is unknown and a 401 always wins
    FM_TOKEN_TTL_SECONDS: int = 15 * 60
    FM_REQUEST_TIMEOUT: float = 30.0

    # SSL/TLS Configuration
    FM_VERIFY_SSL: bool = True  # Set to False to disable SSL verification for self-signed certs
    FM_SSL_CERT_PATH: Optional[str] = None  # Path to a CA bundle (.pem or .crt) for the admin endpoint

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None
    LOG_MAX_BYTES: int = 10 * 1024 * 1024  # 10MB
    LOG_BACKUP_COUNT: int = 5

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE) if ENV_FILE.exists() else ".env",
        case_sensitive=True,
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore extra fields from .env that aren't in this model
    )

    @field_validator('FM_ADMIN_API_PREFIX')
    @classmethod
    def validate_api_prefix(cls, v: str) -> str:
        """Validate admin API path prefix."""
        if not v.startswith('/'):
            raise ValueError('FM_ADMIN_API_PREFIX must start with /')
        return v.rstrip('/')

    @field_validator('FM_TOKEN_TTL_SECONDS')
    @classmethod
    def validate_token_ttl(cls, v: int) -> int:
        """Validate local token TTL."""
        if v < 1:
            raise ValueError('FM_TOKEN_TTL_SECONDS must be at least 1')
        return v

    @field_validator('FM_REQUEST_TIMEOUT')
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Every admin API call must carry a bounded timeout."""
        if v <= 0:
            raise ValueError('FM_REQUEST_TIMEOUT must be greater than 0')
        return v

    @field_validator('LOG_LEVEL')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level name."""
        level = v.upper()
        if level not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
            raise ValueError(f'Invalid LOG_LEVEL: {v}')
        return level


settings = Settings()

# Log configuration status (without exposing secrets)
if settings.DEBUG:
    import logging
    logger = logging.getLogger(__name__)
    logger.info(f"Loaded .env from: {ENV_FILE}")
    logger.info(f"FM_ADMIN_API_PREFIX: {settings.FM_ADMIN_API_PREFIX}")
    logger.info(f"FM_TOKEN_TTL_SECONDS: {settings.FM_TOKEN_TTL_SECONDS}")
