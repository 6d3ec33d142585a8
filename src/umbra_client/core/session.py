import logging
from typing import List, Optional

from .errors import UnknownPeerError
from .ledger import MessageLedger
from .models import Message, Peer, SelectResult, Session
from .peers import PeerDirectory

logger = logging.getLogger(__name__)


class SessionSelector:
    """Tracks the conversation currently open"""

    def __init__(self, directory: PeerDirectory, ledger: MessageLedger, session: Optional[Session] = None):
        self.directory = directory
        self.ledger = ledger
        self.session = session or Session()

    @property
    def active_peer_id(self) -> Optional[str]:
        return self.session.active_peer_id

    def select(self, peer_id: str) -> SelectResult:
        """Opens the conversation with a known peer and returns its history"""
        peer = self.directory.get(peer_id)
        if peer is None:
            raise UnknownPeerError(peer_id)

        if self.session.active_peer_id != peer_id:
            self.session.active_peer_id = peer_id
            logger.info(f"💬 Active conversation: {peer.label}")

        return SelectResult(peer=peer, history=self.ledger.history_for(peer_id))

    def active_peer(self) -> Optional[Peer]:
        if self.session.active_peer_id is None:
            return None
        return self.directory.get(self.session.active_peer_id)

    def is_active(self, peer_id: str) -> bool:
        return self.session.active_peer_id is not None and self.session.active_peer_id == peer_id

    def visible_history(self) -> List[Message]:
        if self.session.active_peer_id is None:
            return []
        return self.ledger.history_for(self.session.active_peer_id)

    def clear(self):
        self.session.active_peer_id = None
