# wg_manager/core/ipam.py
"""
IP Address Management (IPAM)
Allocates client host addresses inside a server's /24 prefix
"""

import re
import logging
from typing import Iterable, Optional, Set

logger = logging.getLogger(__name__)

# Used when the server address has no parseable dotted prefix
FALLBACK_CLIENT_IP = "10.0.0.2/32"

# .1 belongs to the gateway/server, .255 is broadcast
FIRST_HOST_OCTET = 2
LAST_HOST_OCTET = 254

# Leading decimal digits; trailing junk ("5abc") is ignored
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _strip_prefix_length(address: str) -> str:
    """'10.0.0.2/32' -> '10.0.0.2'"""
    return address.split("/")[0]


def host_octet(address: str) -> Optional[int]:
    """
    Extract the last octet of a dotted IPv4 address (CIDR suffix ignored)

    Returns:
        The octet as int, or None when the address is not four dot-separated
        parts or the last part does not start with a number
    """
    parts = _strip_prefix_length(address).split(".")
    if len(parts) != 4:
        return None
    match = _LEADING_INT.match(parts[3])
    if match is None:
        return None
    return int(match.group(1))


def network_prefix(address: str) -> Optional[str]:
    """
    Derive the 'A.B.C' prefix from a server address like 'A.B.C.D/mask'

    Returns:
        The prefix, or None if the address does not split into four octets
    """
    parts = _strip_prefix_length(address).split(".")
    if len(parts) != 4:
        return None
    return ".".join(parts[:3])


def get_used_octets(server_address: str, client_addresses: Iterable[str]) -> Set[int]:
    """Host octets taken by the server itself and every existing client"""
    used = set()

    server_octet = host_octet(server_address)
    if server_octet is not None:
        used.add(server_octet)

    for address in client_addresses:
        octet = host_octet(address)
        if octet is not None:
            used.add(octet)

    return used


def allocate_client_ip(server_address: str, client_addresses: Iterable[str]) -> str:
    """
    Allocate the next free /32 for a client of the given server

    Scans host octets 2..254 in order and returns the first one not held by
    the server or a sibling client. Pure function of its inputs; callers must
    hold the document write lock so sibling additions cannot race.

    Args:
        server_address: Server address with CIDR (e.g., "10.0.0.1/24")
        client_addresses: allowed_ips of the server's existing clients

    Returns:
        Host route (e.g., "10.0.0.2/32")
    """
    client_addresses = list(client_addresses)

    prefix = network_prefix(server_address)
    if prefix is None:
        logger.warning(f"Cannot parse server address '{server_address}', using {FALLBACK_CLIENT_IP}")
        return FALLBACK_CLIENT_IP

    used = get_used_octets(server_address, client_addresses)

    for octet in range(FIRST_HOST_OCTET, LAST_HOST_OCTET + 1):
        if octet not in used:
            return f"{prefix}.{octet}/32"

    # Exhausted: this address may collide with an existing client
    fallback = f"{prefix}.{len(client_addresses) + 2}/32"
    logger.warning(f"Address pool {prefix}.0/24 exhausted, falling back to {fallback}")
    return fallback
