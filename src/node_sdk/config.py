"""Configuration and settings management using pydantic-settings."""
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Node pack settings with environment variable loading."""

    model_config = SettingsConfigDict(
        env_prefix="EVALFLOW_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Core settings
    env: str = Field(default="development", description="Environment name")
    log_level: str = Field(default="INFO", description="Log level")
    log_json: bool = Field(default=True, description="Emit JSON log lines")

    # Google APIs
    sheets_base_url: str = Field(
        default="https://sheets.googleapis.com/v4",
        description="Google Sheets REST API base URL",
    )
    google_token_url: str = Field(
        default="https://oauth2.googleapis.com/token",
        description="Token endpoint used for service account credentials",
    )

    # HTTP behaviour
    http_timeout_s: float = Field(
        default=30.0,
        description="Timeout applied to every HTTP call in seconds",
    )
    api_max_retries: int = Field(
        default=5,
        description="Retries for rate-limited or transient API failures",
    )
    api_base_delay_s: float = Field(
        default=1.0,
        description="Base delay for exponential backoff in seconds",
    )

    # Evaluation trigger
    default_max_rows: int = Field(
        default=10,
        description="Row cap used when limitRows is on and maxRows is blank",
    )

    @field_validator("http_timeout_s")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Every HTTP call must be bounded."""
        if v <= 0:
            raise ValueError("http_timeout_s must be positive")
        return v

    @field_validator("api_max_retries", "default_max_rows")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("value must not be negative")
        return v


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings (useful for testing)."""
    global _settings
    _settings = None
