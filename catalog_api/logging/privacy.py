"""Utilities for removing sensitive data from log records."""

from __future__ import annotations

from typing import Any
from urllib.parse import parse_qsl, urlencode

SENSITIVE_KEYWORDS = {
    "authorization",
    "cookie",
    "password",
    "passwd",
    "secret",
    "token",
    "apikey",
    "api_key",
    "set-cookie",
    "x-api-key",
    "proxy-authorization",
}
TOKEN_KEYWORDS = {"token", "authorization", "apikey", "api_key", "x-api-key"}
MASKED_VALUE = "<redacted>"
MAX_FIELD_LENGTH = 1024

QUERY_STRING_KEYS = {"url_query", "query_string"}


def _is_sensitive(key: str) -> bool:
    lowered = key.lower()
    return any(keyword in lowered for keyword in SENSITIVE_KEYWORDS)


def _mask_token(value: str) -> str:
    value = value.strip()
    if not value:
        return MASKED_VALUE
    if len(value) <= 8:
        return "***"
    return f"{value[:4]}…{value[-4:]}"


def _mask(key: str, value: str) -> str:
    lowered = key.lower()
    if any(keyword in lowered for keyword in TOKEN_KEYWORDS):
        return _mask_token(value)
    return MASKED_VALUE


def _sanitize_query_string(query: str) -> str:
    """Mask credential-like parameters inside a raw query string."""

    try:
        pairs = parse_qsl(query, keep_blank_values=True)
    except ValueError:
        return query
    if not any(_is_sensitive(key) for key, _ in pairs):
        return query
    return urlencode(
        [(key, _mask(key, value) if _is_sensitive(key) else value) for key, value in pairs]
    )


def sanitize_value(key: Any, value: Any) -> Any:
    """Redact sensitive information and limit field size."""

    if isinstance(key, bytes):
        key_text = key.decode("utf-8", "ignore")
    elif isinstance(key, str):
        key_text = key
    else:
        key_text = ""

    if isinstance(value, str):
        if key_text in QUERY_STRING_KEYS:
            value = _sanitize_query_string(value)
        elif _is_sensitive(key_text):
            return _mask(key_text, value)
        if len(value) > MAX_FIELD_LENGTH:
            return value[:MAX_FIELD_LENGTH] + "…[truncated]"
        return value
    if isinstance(value, dict):
        return {k: sanitize_value(k, v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        sanitized = [sanitize_value(key, item) for item in value]
        if isinstance(value, tuple):
            return tuple(sanitized)
        if isinstance(value, set):
            return set(sanitized)
        return sanitized
    return value
