"""
Configuration settings for the MicroTools backend.

This module handles environment variables, application settings,
and configuration validation using Pydantic Settings.
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    All settings can be overridden using environment variables
    with the same name (case-insensitive). The instance is frozen:
    handlers receive it through ``get_settings`` and never mutate it.
    """

    # Application settings
    APP_NAME: str = "MicroTools backend"
    VERSION: str = "0.1.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False

    # Server settings
    HOST: str = "0.0.0.0"
    PORT: int = 4000

    # CORS settings
    ALLOWED_ORIGINS: list[str] = ["*"]

    # Logging settings
    LOG_LEVEL: str = "INFO"

    # Temp storage and uploads
    TMP_DIR: str = "tmp"
    MAX_FILE_SIZE: int = 100 * 1024 * 1024  # 100MB

    # External tools settings
    GHOSTSCRIPT_PATH: str = "gs"
    FFMPEG_PATH: str = "ffmpeg"
    SOFFICE_PATH: str = "soffice"
    YTDLP_PATH: str = "yt-dlp"

    # Tool execution settings
    TOOL_TIMEOUT: int = 300  # 5 minutes
    MAX_CONCURRENT_PER_TOOL: int = 4
    MAX_RESIZE_DIMENSION: int = 10000

    # Upstream APIs
    UPSTREAM_TIMEOUT: float | None = None  # None keeps the HTTP client default
    INSTAGRAM_API_URL: str = "https://instasaveapi.vercel.app/api/instagram"
    TIKTOK_API_URL: str = "https://www.tikwm.com/api/"
    FACEBOOK_API_URL: str = "https://api.snapsave.app/"
    REMOVE_BG_URL: str = "https://api.remove.bg/v1.0/removebg"
    REMOVE_BG_KEY: str | None = None

    # Payment gateway
    RAZORPAY_API_URL: str = "https://api.razorpay.com/v1"
    RAZORPAY_KEY_ID: str | None = None
    RAZORPAY_KEY_SECRET: str | None = None
    RAZORPAY_CURRENCY: str = "INR"

    @property
    def payments_configured(self) -> bool:
        """Whether both Razorpay credentials are present."""
        return bool(self.RAZORPAY_KEY_ID and self.RAZORPAY_KEY_SECRET)

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment setting."""
        allowed_envs = ["development", "staging", "production"]
        if v not in allowed_envs:
            raise ValueError(f"ENVIRONMENT must be one of {allowed_envs}")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level setting."""
        allowed_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed_levels:
            raise ValueError(f"LOG_LEVEL must be one of {allowed_levels}")
        return v.upper()

    @field_validator("MAX_FILE_SIZE")
    @classmethod
    def validate_max_file_size(cls, v: int) -> int:
        """Validate maximum file size."""
        if v <= 0:
            raise ValueError("MAX_FILE_SIZE must be positive")
        if v > 1024 * 1024 * 1024:  # 1GB
            raise ValueError("MAX_FILE_SIZE cannot exceed 1GB")
        return v

    @field_validator("TOOL_TIMEOUT", "MAX_CONCURRENT_PER_TOOL", "MAX_RESIZE_DIMENSION")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Validate limits are positive."""
        if v <= 0:
            raise ValueError("value must be positive")
        return v

    class Config:
        """Pydantic configuration."""

        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        frozen = True


# Create settings instance
settings = Settings()


def get_settings() -> Settings:
    """
    Get application settings.

    Returns:
        Settings: Application settings instance
    """
    return settings


# Example .env for a production deployment:
#   ENVIRONMENT=production
#   LOG_LEVEL=WARNING
#   TMP_DIR=/var/tmp/microtools
#   RAZORPAY_KEY_ID=rzp_live_xxx
#   RAZORPAY_KEY_SECRET=xxx
#   REMOVE_BG_KEY=xxx
