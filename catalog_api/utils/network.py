"""Network-related utility functions."""

from __future__ import annotations

import ipaddress
from typing import Final

from starlette.requests import HTTPConnection

_TRUSTED_PROXY_RANGES: Final[
    tuple[ipaddress.IPv4Network | ipaddress.IPv6Network, ...]
] = (
    ipaddress.ip_network("127.0.0.0/8"),
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
    ipaddress.ip_network("::1/128"),
    ipaddress.ip_network("fc00::/7"),
)


def _normalise_ip(value: str | None) -> str | None:
    if not value:
        return None
    try:
        return str(ipaddress.ip_address(value.strip()))
    except ValueError:
        return None


def _is_trusted_proxy(ip: str) -> bool:
    parsed = ipaddress.ip_address(ip)
    return any(parsed in network for network in _TRUSTED_PROXY_RANGES)


def get_client_ip(connection: HTTPConnection) -> str:
    """Return the originating client IP address for a request.

    ``X-Forwarded-For`` is only honoured when the direct peer is a private or
    loopback address, or not an IP at all (test clients report ``testclient``).
    """

    host_ip = None
    if connection.client and connection.client.host:
        host_ip = _normalise_ip(connection.client.host)
        if host_ip is not None and not _is_trusted_proxy(host_ip):
            return host_ip

    forwarded = connection.headers.get("X-Forwarded-For")
    if forwarded:
        first = _normalise_ip(forwarded.split(",")[0])
        if first:
            return first

    return host_ip or "unknown"
