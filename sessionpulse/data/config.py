"""
SessionPulse Configuration Module
=================================

Centralized runtime configuration using environment variables.
Supports both .env files and system environment variables.

Environment Variables:
    SESSIONPULSE_INPUT_PATH: Raw reviews file (default: data/reviews.json)
    SESSIONPULSE_OUTPUT_DIR: Output directory (default: data)
    SESSIONPULSE_ANALYSIS_PATH: Analysis file served by the API
        (default: <output_dir>/sessions_analysis.json)
    SESSIONPULSE_LEXICON_PATH: Lexicon JSON file (default: bundled lexicons)

    SESSIONPULSE_WORKERS: Enrichment worker threads (default: 4)
    SESSIONPULSE_TOP_N: Top pain points / feature requests per session (default: 5)

    SESSIONPULSE_LOG_LEVEL: Root log level (default: INFO)
    SESSIONPULSE_LOG_JSON: JSON structured logs (default: false)
    SESSIONPULSE_LOG_FILE: Optional log file path
"""

import os
from dataclasses import dataclass, field
from typing import Optional
from pathlib import Path
from dotenv import load_dotenv


# Load environment variables from .env file if present
env_path = Path(__file__).parent.parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)


def get_env(key: str, default: Optional[str] = None, required: bool = False) -> Optional[str]:
    """
    Get environment variable with optional default and required validation.

    Raises:
        ValueError: If required=True and variable is not set
    """
    value = os.getenv(key, default)
    if required and value is None:
        raise ValueError(f"Required environment variable '{key}' is not set")
    return value


def get_env_int(key: str, default: int) -> int:
    """Get environment variable as integer."""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Environment variable '{key}' must be an integer, got: {value}")


def get_env_bool(key: str, default: bool) -> bool:
    """Get environment variable as boolean."""
    value = os.getenv(key)
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


@dataclass
class PathsConfig:
    """Input / output locations."""

    input_path: str = field(default_factory=lambda: get_env("SESSIONPULSE_INPUT_PATH", "data/reviews.json"))
    output_dir: str = field(default_factory=lambda: get_env("SESSIONPULSE_OUTPUT_DIR", "data"))
    lexicon_path: Optional[str] = field(default_factory=lambda: get_env("SESSIONPULSE_LEXICON_PATH"))
    analysis_path: Optional[str] = field(default_factory=lambda: get_env("SESSIONPULSE_ANALYSIS_PATH"))

    @property
    def sessions_file(self) -> str:
        """Path of the session analysis file (what the dashboard fetches)."""
        if self.analysis_path:
            return self.analysis_path
        return os.path.join(self.output_dir, "sessions_analysis.json")

    @property
    def enriched_reviews_file(self) -> str:
        return os.path.join(self.output_dir, "enriched_reviews.json")


@dataclass
class RuntimeConfig:
    """Processing options."""

    workers: int = field(default_factory=lambda: get_env_int("SESSIONPULSE_WORKERS", 4))
    top_n: int = field(default_factory=lambda: get_env_int("SESSIONPULSE_TOP_N", 5))

    def __post_init__(self):
        """Validate configuration."""
        if self.workers <= 0:
            raise ValueError("workers must be positive")
        if self.top_n <= 0:
            raise ValueError("top_n must be positive")


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = field(default_factory=lambda: get_env("SESSIONPULSE_LOG_LEVEL", "INFO"))
    log_file: Optional[str] = field(default_factory=lambda: get_env("SESSIONPULSE_LOG_FILE"))

    # Structured logging
    json_logs: bool = field(default_factory=lambda: get_env_bool("SESSIONPULSE_LOG_JSON", False))


@dataclass
class Settings:
    """Main application settings container."""

    paths: PathsConfig = field(default_factory=PathsConfig)
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    app_name: str = "sessionpulse"
    app_version: str = "1.0.0"


def load_settings() -> Settings:
    """
    Load and validate all application settings.

    Raises:
        ValueError: If configuration is invalid
    """
    return Settings()


# Global settings instance (lazy-loaded)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance (singleton pattern)."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
