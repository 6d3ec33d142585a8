"""
Shareable address selection for the local node.

The node reports multiaddr-style listening addresses such as
``/ip4/10.0.0.5/udp/4001/quic-v1``. Peers need one they can actually dial,
with our peer id embedded so a single string is enough to connect.
"""

import ipaddress
from typing import Optional, Sequence

from ..core.errors import NoAddressError


def ipv4_host(address: str) -> Optional[str]:
    """Returns the IPv4 host of an ``/ip4/...`` address"""
    parts = address.split('/')
    if len(parts) < 3 or parts[0] != '' or parts[1] != 'ip4':
        return None
    return parts[2]


def is_shareable(address: str) -> bool:
    """IPv4 transport that a remote peer can dial"""
    host = ipv4_host(address)
    if host is None:
        return False
    try:
        ip = ipaddress.IPv4Address(host)
    except ValueError:
        return False
    return not (ip.is_loopback or ip.is_unspecified)


def has_peer_id(address: str) -> bool:
    return '/p2p/' in address


def with_peer_id(address: str, local_id: str) -> str:
    if has_peer_id(address):
        return address
    return f"{address.rstrip('/')}/p2p/{local_id}"


def choose(addresses: Sequence[str], local_id: str) -> str:
    """Picks the address to share and embeds the local peer id"""
    if not addresses:
        raise NoAddressError("No listening address available")

    best = next((a for a in addresses if is_shareable(a)), addresses[0])
    return with_peer_id(best, local_id)
