"""
config.py
---------
Centralised configuration management for schemagraph.

Loads settings from environment variables (with .env file support via
python-dotenv). Provides typed settings as frozen dataclasses so
configuration is immutable at runtime.

Design Decision:
    Class-level defaults mean the library works without any .env file.
    A missing Gemini API key is not a configuration error: the AI-assisted
    conversion path simply falls back to table-driven mapping.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

_env_path = Path(__file__).parent / ".env"
if _env_path.exists():
    load_dotenv(dotenv_path=_env_path)


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class ConversionConfig:
    """Dialect conversion settings."""
    ai_enabled: bool = field(
        default_factory=lambda: _env_flag("SCHEMAGRAPH_AI_ENABLED", "true")
    )
    gemini_api_key: str | None = field(
        default_factory=lambda: os.getenv("GEMINI_API_KEY") or None
    )
    gemini_model: str = field(
        default_factory=lambda: os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
    )
    ai_timeout_seconds: float = field(
        default_factory=lambda: float(os.getenv("AI_TIMEOUT_SECONDS", "60"))
    )
    # Graphs larger than this are handed to the generative collaborator.
    max_relationships: int = 10
    max_entities: int = 15


@dataclass(frozen=True)
class LoggingConfig:
    """Log output settings."""
    log_level: str = field(
        default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper()
    )
    log_file: str | None = field(
        default_factory=lambda: os.getenv("LOG_FILE")  # None → log to stderr only
    )


@dataclass(frozen=True)
class ApiConfig:
    """HTTP service settings."""
    host: str = field(default_factory=lambda: os.getenv("API_HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.getenv("API_PORT", "8000")))


@dataclass(frozen=True)
class AppConfig:
    """Root application configuration."""
    conversion: ConversionConfig = field(default_factory=ConversionConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    api: ApiConfig = field(default_factory=ApiConfig)
    app_name: str = "schemagraph"
    app_version: str = "1.0.0"


def load_config() -> AppConfig:
    """
    Build and return the application configuration.

    Returns:
        AppConfig: Fully populated (and frozen) configuration object.

    Example::

        cfg = load_config()
        print(cfg.conversion.gemini_model)    # "gemini-2.5-flash"
        print(cfg.conversion.max_entities)    # 15
    """
    return AppConfig()


# Module-level singleton used throughout the application
CONFIG: AppConfig = load_config()


def get_log_level() -> int:
    """Convert string log level from config to logging module constant."""
    level = getattr(logging, CONFIG.logging.log_level, None)
    if not isinstance(level, int):
        return logging.INFO
    return level
