"""Logging utilities organised into focused modules."""

from .config import configure_logging
from .context import (
    RequestContextTokens,
    bind_request_context,
    client_ip_ctx_var,
    request_id_ctx_var,
    reset_request_context,
)
from .filters import PrivacyFilter, RequestContextFilter
from .formatter import ECSJsonFormatter, FIELD_MAP, SERVICE_NAME
from .handlers import SecureWatchedFileHandler
from .ip_utils import anonymize_ip
from .privacy import sanitize_value

__all__ = [
    "configure_logging",
    "RequestContextTokens",
    "bind_request_context",
    "client_ip_ctx_var",
    "request_id_ctx_var",
    "reset_request_context",
    "PrivacyFilter",
    "RequestContextFilter",
    "ECSJsonFormatter",
    "FIELD_MAP",
    "SERVICE_NAME",
    "SecureWatchedFileHandler",
    "anonymize_ip",
    "sanitize_value",
]
