import logging
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from portfolio_audit.errors import ConfigurationError


class AppSettings(BaseSettings):
    """Application settings loaded from environment variables or .env file."""

    # Generative provider credentials (match sources and audit oracle)
    gemini_api_key: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("gemini_api_key", "api_key"),
        description="API key for the generative language service.",
    )
    gemini_base_url: str = Field(
        "https://generativelanguage.googleapis.com/v1beta",
        description="Base URL of the generateContent REST API.",
    )
    catalog_model: str = Field(
        "gemini-3-flash-preview", description="Model used by the match source providers."
    )
    audit_model: str = Field(
        "gemini-3-pro-preview", description="Model used by the audit oracle."
    )

    # Acquisition settings
    primary_timeout_sec: float = Field(
        35.0, gt=0, description="Wall-clock budget for the primary provider."
    )
    fallback_timeout_sec: float = Field(
        35.0, gt=0, description="Wall-clock budget for the fallback provider."
    )
    http_timeout_sec: float = Field(
        90.0, gt=0, description="Socket-level timeout of the HTTP client."
    )
    matches_per_fetch: int = Field(
        6, ge=1, description="Number of open matches requested from a provider."
    )

    # Audit settings
    audit_max_attempts: int = Field(
        3, ge=1, description="Attempts for transient oracle transport failures."
    )
    audit_thinking_budget: int = Field(
        15000, ge=0, description="Reasoning token budget granted to the oracle."
    )

    # Logging Configuration
    log_level: str = Field(
        "INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."
    )

    # Pydantic Settings Configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    def require_api_key(self) -> str:
        """Return the API key or fail fast when it is not configured."""
        if not self.gemini_api_key:
            raise ConfigurationError(
                "GEMINI_API_KEY (or API_KEY) is not set; live providers are unavailable."
            )
        return self.gemini_api_key


def load_settings() -> AppSettings:
    """Loads and validates application settings."""
    try:
        settings = AppSettings()
        log_level_upper = settings.log_level.upper()
        # Validate log_level even if loaded from .env
        if log_level_upper not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            logging.warning(
                f"Invalid LOG_LEVEL '{settings.log_level}' found in .env or default. Using INFO."
            )
            settings.log_level = "INFO"
        else:
            settings.log_level = log_level_upper
        return settings
    except Exception as e:
        logging.exception(f"Error loading application settings: {e}")
        raise SystemExit("Failed to load application settings. Exiting.")


settings: AppSettings = load_settings()
