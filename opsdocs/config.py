"""Configuration utilities for the OpsDocs backend."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Tuple

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator


def _env_flag(name: str, default: bool) -> bool:
    """Return a boolean flag derived from environment variables."""

    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


BASE_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = BASE_DIR.parent

DEFAULT_FALLBACK_SECTION_TITLE = "Uncategorized"
DEFAULT_FALLBACK_SECTION_DESCRIPTION = "Documents from deleted sections"
DEFAULT_FALLBACK_SECTION_ORDER = 999


def _load_environment() -> None:
    """Load environment variables from a ``.env`` file if present."""

    explicit_path = os.getenv("OPSDOCS_ENV_FILE")
    candidates = []

    if explicit_path:
        candidates.append(Path(explicit_path))

    candidates.append(PROJECT_ROOT / ".env")

    for candidate in candidates:
        try_path = candidate.expanduser()
        if try_path.exists():
            load_dotenv(try_path, override=False)


_load_environment()


def _database_url_default() -> str:
    """Return the configured database URL using legacy fallbacks."""

    return os.getenv("DATABASE_URL") or os.getenv("DB_URL") or "sqlite:///./opsdocs.db"


def _cors_origin_regex_default() -> str | None:
    """Return the default CORS origin regex allowing local network hosts."""

    raw = os.getenv(
        "CORS_ALLOW_ORIGIN_REGEX",
        r"http://(?:localhost|127\.0\.0\.1|0\.0\.0\.0|(?:\d{1,3}\.){3}\d{1,3})(?::\d{1,5})?",
    )
    if raw is None:
        return None
    raw = raw.strip()
    return raw or None


def _split_csv(raw: str | None) -> Tuple[str, ...]:
    if not raw:
        return ()
    return tuple(item.strip() for item in raw.split(",") if item.strip())


class Settings(BaseModel):
    """Application configuration loaded from environment variables."""

    model_config = ConfigDict(validate_default=True)

    database_url: str = Field(default_factory=_database_url_default)
    cors_allow_origins: Tuple[str, ...] = Field(
        default_factory=lambda: _split_csv(os.getenv("CORS_ALLOW_ORIGINS"))
    )
    cors_allow_origin_regex: str | None = Field(default_factory=_cors_origin_regex_default)
    host: str = Field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = Field(default_factory=lambda: int(os.getenv("PORT", "8000")))
    log_level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "info"))
    fallback_section_title: str = Field(
        default_factory=lambda: os.getenv(
            "OPSDOCS_FALLBACK_SECTION_TITLE", DEFAULT_FALLBACK_SECTION_TITLE
        )
    )
    fallback_section_description: str = Field(
        default_factory=lambda: os.getenv(
            "OPSDOCS_FALLBACK_SECTION_DESCRIPTION",
            DEFAULT_FALLBACK_SECTION_DESCRIPTION,
        )
    )
    fallback_section_order: int = Field(
        default_factory=lambda: int(
            os.getenv(
                "OPSDOCS_FALLBACK_SECTION_ORDER", str(DEFAULT_FALLBACK_SECTION_ORDER)
            )
        )
    )
    repair_on_read: bool = Field(
        default_factory=lambda: _env_flag("OPSDOCS_REPAIR_ON_READ", True)
    )
    search_limit: int = Field(
        default_factory=lambda: int(os.getenv("OPSDOCS_SEARCH_LIMIT", "50"))
    )

    @field_validator("fallback_section_title", mode="after")
    @classmethod
    def _normalise_fallback_title(cls, value: str) -> str:
        value = value.strip()
        return value or DEFAULT_FALLBACK_SECTION_TITLE

    @field_validator("fallback_section_order", mode="after")
    @classmethod
    def _ensure_positive_order(cls, value: int) -> int:
        return value if value >= 1 else DEFAULT_FALLBACK_SECTION_ORDER

    @field_validator("search_limit", mode="after")
    @classmethod
    def _clamp_search_limit(cls, value: int) -> int:
        return max(1, min(500, value))


@lru_cache()
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the cached settings so that subsequent calls reload from the environment."""

    get_settings.cache_clear()
