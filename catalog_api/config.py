"""Environment-driven configuration for the FastAPI application."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Final

DEFAULT_CORS_ORIGIN_PATTERNS: Final[str] = "default"
DEFAULT_DATABASE_URL: Final[str] = "sqlite:///./games.db"
DEFAULT_API_PREFIX: Final[str] = "/api"
DEFAULT_PAGE_SIZE: Final[int] = 12


def _get_env(name: str, *, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip()


def _get_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "t", "yes", "y", "on"}


def _get_int(name: str, default: int) -> int:
    value = _get_env(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer, got {value!r}") from exc


def parse_origin_patterns(raw: str) -> tuple[str, ...]:
    """Split a comma-separated origin pattern string into trimmed entries.

    Blank entries are dropped, so an empty string yields an empty tuple and
    therefore an allow-list that matches no origin.
    """

    return tuple(part.strip() for part in raw.split(",") if part.strip())


@dataclass(frozen=True)
class Settings:
    """Process-wide settings, read once at startup."""

    cors_origin_patterns: str = DEFAULT_CORS_ORIGIN_PATTERNS
    database_url: str = DEFAULT_DATABASE_URL
    app_env: str = "production"
    api_prefix: str = DEFAULT_API_PREFIX
    default_page_size: int = DEFAULT_PAGE_SIZE
    docs_enabled: bool = True

    @property
    def allowed_origin_patterns(self) -> tuple[str, ...]:
        return parse_origin_patterns(self.cors_origin_patterns)


def load_settings() -> Settings:
    """Build :class:`Settings` from the current environment."""

    # An unset variable falls back to the literal default; an explicitly empty
    # one is kept empty so operators can disable cross-origin access.
    cors_raw = os.getenv("CORS_ORIGIN_PATTERNS")
    if cors_raw is None:
        cors_raw = DEFAULT_CORS_ORIGIN_PATTERNS

    api_prefix = (_get_env("API_PREFIX", default=DEFAULT_API_PREFIX) or "").rstrip("/")

    page_size = _get_int("DEFAULT_PAGE_SIZE", DEFAULT_PAGE_SIZE)
    if page_size < 1:
        raise RuntimeError("DEFAULT_PAGE_SIZE must be at least 1")

    return Settings(
        cors_origin_patterns=cors_raw,
        database_url=_get_env("DATABASE_URL", default=DEFAULT_DATABASE_URL)
        or DEFAULT_DATABASE_URL,
        app_env=(_get_env("APP_ENV", default="production") or "production").lower(),
        api_prefix=api_prefix,
        default_page_size=page_size,
        docs_enabled=_get_bool("DOCS_ENABLED", default=True),
    )
