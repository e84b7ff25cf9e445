"""
Service-endpoint resolution.

Turns a service-discovery reference (``scheme://host:port``) into a host, a
port and, when DNS can resolve the host, an address. Resolution never raises:
every failure is reported as a descriptive placeholder in ``address``.
"""

from __future__ import annotations

import logging
import socket
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

logger = logging.getLogger(__name__)

REFERENCE_UNAVAILABLE = "Service reference not available"
ADDRESS_NOT_FOUND = "Not found"
RESOLUTION_ERROR_PREFIX = "Error resolving IP: "

Lookup = Callable[[str], Sequence[str]]


@dataclass(frozen=True)
class ResolvedEndpoint:
    host: str
    port: str
    address: Optional[str] = None

    def as_dict(self) -> dict:
        return {"host": self.host, "port": self.port, "address": self.address}


def parse_service_reference(reference: Optional[str]) -> Optional[tuple[str, str]]:
    """
    Split ``scheme://host:port`` into ``(host, port)``.

    Returns None for an empty or malformed reference. Hosts may not contain
    colons, so bracketed IPv6 literals are rejected.
    """
    if not reference:
        return None
    remainder = reference.strip()
    if "://" in remainder:
        remainder = remainder.split("://", 1)[1]
    remainder = remainder.rstrip("/")
    if not remainder:
        return None

    host, sep, port = remainder.rpartition(":")
    if not sep or not host or ":" in host:
        return None
    if not port.isdigit():
        return None
    return host, port


def lookup_addresses(host: str) -> list[str]:
    """Forward lookup returning addresses in resolver order."""
    infos = socket.getaddrinfo(host, None, type=socket.SOCK_STREAM)
    return [info[4][0] for info in infos]


def resolve(reference: Optional[str], lookup: Lookup = lookup_addresses) -> ResolvedEndpoint:
    parsed = parse_service_reference(reference)
    if parsed is None:
        return ResolvedEndpoint(host="", port="", address=REFERENCE_UNAVAILABLE)

    host, port = parsed
    try:
        addresses = lookup(host)
    except (OSError, UnicodeError, ValueError) as exc:
        logger.warning("Failed to resolve %s: %s", host, exc)
        return ResolvedEndpoint(
            host=host, port=port, address=f"{RESOLUTION_ERROR_PREFIX}{exc}"
        )

    address = addresses[0] if addresses else ADDRESS_NOT_FOUND
    return ResolvedEndpoint(host=host, port=port, address=address)
