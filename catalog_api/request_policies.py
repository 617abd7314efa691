"""Install the cross-origin and content negotiation policies on the app."""

from __future__ import annotations

from fastapi import FastAPI, Request

from .config import Settings
from .cors import CorsPolicy, apply_cors, build_cors_policy
from .negotiation import NegotiationPolicy, build_content_negotiation_policy


def apply_request_policies(app: FastAPI, settings: Settings) -> tuple[CorsPolicy, NegotiationPolicy]:
    """Register both request policies on ``app``.

    Calling this again with the same settings replaces the previous
    registration instead of stacking another CORS rule.
    """

    cors_policy = build_cors_policy(settings)
    apply_cors(app, cors_policy)
    negotiation_policy = build_content_negotiation_policy()
    app.state.cors_policy = cors_policy
    app.state.negotiation_policy = negotiation_policy
    return cors_policy, negotiation_policy


def get_negotiation_policy(app: FastAPI) -> NegotiationPolicy:
    policy = getattr(app.state, "negotiation_policy", None)
    if policy is None:
        # Apps assembled without apply_request_policies still negotiate.
        policy = NegotiationPolicy()
    return policy


def negotiated_media_type(request: Request) -> str:
    """FastAPI dependency resolving the response media type for ``request``."""

    return get_negotiation_policy(request.app).resolve(request)


__all__ = ["apply_request_policies", "get_negotiation_policy", "negotiated_media_type"]
