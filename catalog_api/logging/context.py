"""Request scoped context helpers for logging."""

from __future__ import annotations

from contextvars import ContextVar, Token
from dataclasses import dataclass

request_id_ctx_var: ContextVar[str | None] = ContextVar("request_id", default=None)
client_ip_ctx_var: ContextVar[str | None] = ContextVar("client_ip", default=None)


@dataclass
class RequestContextTokens:
    """Tokens for the context variables set per request."""

    request_id_token: Token[str | None]
    client_ip_token: Token[str | None]


def bind_request_context(request_id: str, client_ip: str | None = None) -> RequestContextTokens:
    """Bind request level context values and return the created tokens."""

    return RequestContextTokens(
        request_id_ctx_var.set(request_id),
        client_ip_ctx_var.set(client_ip),
    )


def reset_request_context(tokens: RequestContextTokens) -> None:
    request_id_ctx_var.reset(tokens.request_id_token)
    client_ip_ctx_var.reset(tokens.client_ip_token)
