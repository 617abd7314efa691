"""Parameter-driven content negotiation."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Final

from starlette.requests import HTTPConnection

logger = logging.getLogger("catalog_api.negotiation")

APPLICATION_JSON: Final[str] = "application/json"
APPLICATION_XML: Final[str] = "application/xml"
APPLICATION_YAML: Final[str] = "application/yaml"

MEDIA_TYPE_PARAMETER: Final[str] = "mediaType"

DEFAULT_MEDIA_TYPES: Final[Mapping[str, str]] = MappingProxyType(
    {
        "json": APPLICATION_JSON,
        "xml": APPLICATION_XML,
        "yaml": APPLICATION_YAML,
    }
)


def _freeze(media_types: Mapping[str, str]) -> Mapping[str, str]:
    return MappingProxyType({key.lower(): value for key, value in media_types.items()})


@dataclass(frozen=True)
class NegotiationPolicy:
    """Select a response media type from an explicit request parameter.

    The ``Accept`` header is consulted only when ``ignore_accept_header`` is
    disabled; the active configuration keeps it disabled.
    """

    parameter_name: str = MEDIA_TYPE_PARAMETER
    ignore_accept_header: bool = True
    use_registered_extensions_only: bool = False
    default_media_type: str = APPLICATION_JSON
    media_types: Mapping[str, str] = field(default_factory=lambda: DEFAULT_MEDIA_TYPES)

    def __post_init__(self) -> None:
        object.__setattr__(self, "media_types", _freeze(self.media_types))

    # mappingproxy is unhashable
    def __hash__(self) -> int:
        return hash(
            (
                self.parameter_name,
                self.ignore_accept_header,
                self.use_registered_extensions_only,
                self.default_media_type,
                tuple(sorted(self.media_types.items())),
            )
        )

    @property
    def supported_media_types(self) -> frozenset[str]:
        return frozenset(self.media_types.values())

    def lookup(self, value: str | None) -> str | None:
        """Map a parameter value to a media type, or ``None`` if unknown."""

        if not value:
            return None
        key = value.strip().lower()
        media_type = self.media_types.get(key)
        if media_type is not None:
            return media_type
        # besides the short names, a registered MIME type written out in full is accepted
        if not self.use_registered_extensions_only and key in self.supported_media_types:
            return key
        return None

    def _from_accept_header(self, accept: str | None) -> str | None:
        if not accept:
            return None
        for item in accept.split(","):
            candidate = item.split(";", 1)[0].strip().lower()
            if candidate in self.supported_media_types:
                return candidate
        return None

    def resolve(self, connection: HTTPConnection) -> str:
        """Return the media type to render for ``connection``."""

        media_type = self.lookup(connection.query_params.get(self.parameter_name))
        if media_type is None and not self.ignore_accept_header:
            media_type = self._from_accept_header(connection.headers.get("accept"))
        return media_type or self.default_media_type


def build_content_negotiation_policy() -> NegotiationPolicy:
    """Return the negotiation policy used by the API."""

    policy = NegotiationPolicy()
    logger.info(
        "Content negotiation registered: parameter=%s default=%s types=%s",
        policy.parameter_name,
        policy.default_media_type,
        sorted(policy.media_types),
    )
    return policy


__all__ = [
    "APPLICATION_JSON",
    "APPLICATION_XML",
    "APPLICATION_YAML",
    "DEFAULT_MEDIA_TYPES",
    "MEDIA_TYPE_PARAMETER",
    "NegotiationPolicy",
    "build_content_negotiation_policy",
]
