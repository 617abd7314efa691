"""Cross-origin policy built from the configured origin patterns."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Final

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings

logger = logging.getLogger("catalog_api.cors")

ALLOWED_METHODS: Final[tuple[str, ...]] = ("GET", "POST", "PUT", "DELETE", "OPTIONS")
ALLOWED_HEADERS: Final[tuple[str, ...]] = ("*",)
PREFLIGHT_MAX_AGE: Final[int] = 3600
ALL_PATHS: Final[str] = "/**"

_PORT_LIST_PATTERN = re.compile(r"^(?P<origin>.*):\[(?P<ports>[^\]]*)\]$")


@dataclass(frozen=True)
class CorsPolicy:
    """Immutable cross-origin rule applied to every request path."""

    origin_patterns: tuple[str, ...]
    allowed_methods: tuple[str, ...] = ALLOWED_METHODS
    allowed_headers: tuple[str, ...] = ALLOWED_HEADERS
    allow_credentials: bool = True
    max_age: int = PREFLIGHT_MAX_AGE
    path_pattern: str = ALL_PATHS

    @property
    def origin_regex(self) -> str | None:
        """Return a single regular expression matching any allowed origin."""

        if not self.origin_patterns:
            return None
        # origins compare case-insensitively
        alternatives = "|".join(f"(?:{origin_pattern_to_regex(p)})" for p in self.origin_patterns)
        return f"(?i){alternatives}"

    def allows_origin(self, origin: str) -> bool:
        regex = self.origin_regex
        return bool(regex and re.fullmatch(regex, origin))


def origin_pattern_to_regex(pattern: str) -> str:
    """Translate an origin pattern into a regular expression.

    ``*`` matches any run of characters. A trailing ``:[*]`` accepts any port
    (or none) and ``:[8080,8081]`` accepts one of the listed ports.
    """

    port_regex = ""
    match = _PORT_LIST_PATTERN.match(pattern)
    if match:
        pattern = match.group("origin")
        ports = [port.strip() for port in match.group("ports").split(",") if port.strip()]
        if ports == ["*"]:
            port_regex = r"(?::\d+)?"
        else:
            port_regex = ":(?:" + "|".join(re.escape(port) for port in ports) + ")"

    body = ".*".join(re.escape(part) for part in pattern.rstrip("/").split("*"))
    return body + port_regex


def build_cors_policy(settings: Settings) -> CorsPolicy:
    """Derive the cross-origin policy from ``settings`` and log the result."""

    raw = settings.cors_origin_patterns
    origins = settings.allowed_origin_patterns

    logger.info("=== CORS Configuration ===")
    logger.info("corsOriginPatterns: %s", raw)
    logger.info("Parsed origins: %s", list(origins))
    if not origins:
        logger.warning(
            "CORS origin pattern list is empty; cross-origin requests will be refused",
            extra={"event_action": "cors_empty_allow_list"},
        )

    return CorsPolicy(origin_patterns=origins)


def apply_cors(app: FastAPI, policy: CorsPolicy) -> None:
    """Install ``policy`` on ``app``, replacing a previously installed rule."""

    app.user_middleware[:] = [
        middleware for middleware in app.user_middleware if middleware.cls is not CORSMiddleware
    ]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[],
        allow_origin_regex=policy.origin_regex,
        allow_methods=list(policy.allowed_methods),
        allow_headers=list(policy.allowed_headers),
        allow_credentials=policy.allow_credentials,
        max_age=policy.max_age,
    )
    logger.info("CORS registered with max age %d", policy.max_age)


__all__ = [
    "ALLOWED_HEADERS",
    "ALLOWED_METHODS",
    "PREFLIGHT_MAX_AGE",
    "CorsPolicy",
    "apply_cors",
    "build_cors_policy",
    "origin_pattern_to_regex",
]
