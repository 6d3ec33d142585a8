"""
Typed backend events.

The node pushes loosely shaped ``(kind, payload)`` pairs. ``parse_event``
turns them into one of the dataclasses below, or None when the kind is
unknown or the payload is missing required fields.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union


PEER_CONNECTED = "peer_connected"
MESSAGE_RECEIVED = "message_received"
HANDSHAKE_COMPLETED = "handshake_completed"
MESSAGE_DELIVERED = "message_delivered"


@dataclass(frozen=True)
class PeerConnected:
    peer_id: str
    display_name: Optional[str] = None


@dataclass(frozen=True)
class MessageReceived:
    sender: str
    content: str
    timestamp: int
    message_id: Optional[str] = None


@dataclass(frozen=True)
class HandshakeCompleted:
    peer_id: str


@dataclass(frozen=True)
class MessageDelivered:
    message_id: str


Event = Union[PeerConnected, MessageReceived, HandshakeCompleted, MessageDelivered]


def _text(payload: Dict[str, Any], *keys: str) -> Optional[str]:
    for key in keys:
        value = payload.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def parse_event(kind: str, payload: Any) -> Optional[Event]:
    """Normalizes a raw backend event; None means drop it"""
    if not isinstance(payload, dict):
        return None

    if kind == PEER_CONNECTED:
        peer_id = _text(payload, 'id', 'peer_id')
        if peer_id is None:
            return None
        return PeerConnected(peer_id=peer_id, display_name=_text(payload, 'displayName', 'display_name', 'name'))

    if kind == MESSAGE_RECEIVED:
        sender = _text(payload, 'sender')
        content = payload.get('content')
        timestamp = payload.get('timestamp')
        if sender is None or not isinstance(content, str):
            return None
        # bool is an int subclass
        if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
            return None
        if isinstance(timestamp, float) and not math.isfinite(timestamp):
            return None
        return MessageReceived(sender=sender, content=content, timestamp=int(timestamp),
                               message_id=_text(payload, 'id', 'message_id'))

    if kind == HANDSHAKE_COMPLETED:
        peer_id = _text(payload, 'peer_id', 'id')
        if peer_id is None:
            return None
        return HandshakeCompleted(peer_id=peer_id)

    if kind == MESSAGE_DELIVERED:
        message_id = _text(payload, 'message_id', 'id')
        if message_id is None:
            return None
        return MessageDelivered(message_id=message_id)

    return None
