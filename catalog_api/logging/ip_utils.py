"""Utilities for handling IP address logging policies."""

from __future__ import annotations

import ipaddress
import os
from typing import Optional

IP_MODES = {"full", "anonymized", "off"}


def anonymize_ip(ip: Optional[str], mode: Optional[str] = None) -> Optional[str]:
    """Return ``ip`` formatted according to ``mode`` (or ``LOG_IP_MODE``).

    ``anonymized`` truncates to the /24 (IPv4) or /64 (IPv6) network and
    ``off`` drops the address entirely.
    """

    mode_value = (mode if mode is not None else os.getenv("LOG_IP_MODE") or "full").lower()
    if mode_value not in IP_MODES:
        mode_value = "full"

    if mode_value == "off":
        return None

    if not ip or ip == "unknown":
        return "unknown"

    try:
        parsed = ipaddress.ip_address(ip)
    except ValueError:
        return "unknown"

    if mode_value == "anonymized":
        prefix = 24 if parsed.version == 4 else 64
        return ipaddress.ip_network(f"{parsed}/{prefix}", strict=False).with_prefixlen

    return str(parsed)
