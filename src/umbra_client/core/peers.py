import logging
from dataclasses import replace
from typing import Dict, List, Optional

from .models import HandshakeState, Peer

logger = logging.getLogger(__name__)


class PeerDirectory:
    """Known peers and their handshake state, in arrival order"""

    def __init__(self):
        self._peers: Dict[str, Peer] = {}

    def upsert(self, peer_id: str, display_name: Optional[str] = None) -> Peer:
        """Registers a peer or merges the non-null fields of a known one"""
        current = self._peers.get(peer_id)

        if current is None:
            peer = Peer(id=peer_id, display_name=display_name)
            self._peers[peer_id] = peer
            logger.info(f"🤝 New peer: {peer.label}")
            return peer

        if display_name is not None and display_name != current.display_name:
            current = replace(current, display_name=display_name)
            self._peers[peer_id] = current

        return current

    def confirm_quantum_safe(self, peer_id: str) -> bool:
        """Marks the handshake as confirmed; False if the peer is unknown"""
        current = self._peers.get(peer_id)
        if current is None:
            logger.warning(f"Handshake confirmation for unknown peer {peer_id}")
            return False

        if current.handshake_state is not HandshakeState.QUANTUM_SAFE_CONFIRMED:
            self._peers[peer_id] = replace(current, handshake_state=HandshakeState.QUANTUM_SAFE_CONFIRMED)
            logger.info(f"🔐 Quantum-safe channel with {current.label}")

        return True

    def get(self, peer_id: str) -> Optional[Peer]:
        return self._peers.get(peer_id)

    def list(self) -> List[Peer]:
        return list(self._peers.values())

    def __contains__(self, peer_id: str) -> bool:
        return peer_id in self._peers

    def __len__(self) -> int:
        return len(self._peers)
