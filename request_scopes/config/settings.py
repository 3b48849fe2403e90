"""
Configuration settings for request-scopes.
Loads environment variables (prefix ``REQUEST_SCOPES_``) and provides defaults.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="REQUEST_SCOPES_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Parameters nested deeper than this are treated as not supplied
    max_param_depth: int = 32

    # Log skipped scopes at INFO instead of DEBUG
    log_scope_decisions: bool = False

    # Used by configure_logging() when no explicit level is given
    debug: bool = False


# Global settings instance
settings = Settings()
