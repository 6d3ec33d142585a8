from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class HandshakeState(str, Enum):
    """Handshake progression of a peer"""
    CONNECTED = "connected"
    QUANTUM_SAFE_CONFIRMED = "quantum_safe_confirmed"


class Sender(str, Enum):
    LOCAL = "local"
    REMOTE = "remote"


class MessageStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    DELIVERED = "delivered"
    FAILED = "failed"


@dataclass(frozen=True)
class Peer:
    """Remote peer known to the client"""
    id: str
    display_name: Optional[str] = None
    handshake_state: HandshakeState = HandshakeState.CONNECTED

    @property
    def label(self) -> str:
        if self.display_name:
            return self.display_name
        return f"{self.id[:8]}..."

    @property
    def quantum_safe(self) -> bool:
        return self.handshake_state is HandshakeState.QUANTUM_SAFE_CONFIRMED

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'display_name': self.display_name,
            'label': self.label,
            'handshake_state': self.handshake_state.value,
            'quantum_safe': self.quantum_safe
        }


@dataclass(frozen=True)
class Message:
    """One chat entry"""
    id: str
    peer_id: str
    sender: Sender
    content: str
    timestamp: int
    status: MessageStatus
    remote_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'peer_id': self.peer_id,
            'sender': self.sender.value,
            'content': self.content,
            'timestamp': self.timestamp,
            'status': self.status.value,
            'remote_id': self.remote_id
        }


@dataclass
class Session:
    """Conversation currently open"""
    active_peer_id: Optional[str] = None


@dataclass
class SelectResult:
    peer: Peer
    history: List[Message] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'peer': self.peer.to_dict(),
            'messages': [m.to_dict() for m in self.history]
        }
