import asyncio
import logging
from typing import Any, List, Optional

from .errors import NoAddressError, NodeConnectionError, SendError, UnknownPeerError
from .ingest import EventIngest
from .ledger import MessageLedger
from .models import Message, Peer, SelectResult
from .peers import PeerDirectory
from .session import SessionSelector
from ..network.address import choose
from ..network.gateway import CommandGateway

logger = logging.getLogger(__name__)


class ChatClient:
    """Chat client state bound to one external node"""

    def __init__(self, gateway: CommandGateway, pending_confirmation_limit: int = 256,
                 ledger: Optional[MessageLedger] = None):
        self.gateway = gateway
        self.local_peer_id: Optional[str] = None

        self.directory = PeerDirectory()
        self.ledger = ledger or MessageLedger()
        self.selector = SessionSelector(self.directory, self.ledger)
        self.ingest = EventIngest(self.directory, self.ledger, self.selector,
                                  pending_limit=pending_confirmation_limit)

        self._ingest_task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._ingest_task is not None and not self._ingest_task.done()

    async def start(self) -> str:
        """Subscribes to node events, starts the node and the ingest loop"""
        await self.gateway.subscribe(self.ingest.submit)
        self.local_peer_id = await self.gateway.start_node()

        if not self.is_running:
            self._ingest_task = asyncio.create_task(self.ingest.run())

        logger.info(f"✅ Chat client ready as {self.local_peer_id}")
        return self.local_peer_id

    async def stop(self):
        if self._ingest_task:
            self._ingest_task.cancel()
            try:
                await self._ingest_task
            except asyncio.CancelledError:
                pass
            self._ingest_task = None

        await self.gateway.close()
        logger.info("🛑 Chat client stopped")

    async def connect(self, peer_input: str) -> Any:
        """Asks the node to dial a peer; the peer shows up via peer_connected"""
        peer_input = (peer_input or "").strip()
        if not peer_input:
            raise NodeConnectionError("Empty peer address")
        return await self.gateway.connect(peer_input)

    def select(self, peer_id: str) -> SelectResult:
        return self.selector.select(peer_id)

    async def send_message(self, content: str, peer_id: Optional[str] = None) -> Message:
        """Records a local message and publishes it to the peer's topic"""
        target = peer_id or self.selector.active_peer_id
        if target is None:
            raise UnknownPeerError("<no active conversation>")
        if target not in self.directory:
            raise UnknownPeerError(target)

        message = self.ledger.append_local(target, content)
        try:
            await self.gateway.send(target, content, correlation_id=message.id)
        except SendError as e:
            logger.warning(f"Error sending message {message.id}: {e.reason}")
            self.ledger.mark_send_result(message.id, False)
            raise

        return self.ledger.mark_send_result(message.id, True) or self.ledger.get(message.id)

    async def share_address(self) -> Optional[str]:
        """Shareable address of the local node, or None when there is none"""
        if self.local_peer_id is None:
            return None

        addresses = await self.gateway.listen_addresses()
        try:
            address = choose(addresses, self.local_peer_id)
        except NoAddressError:
            logger.warning("⚠️ Node has no listening address to share")
            return None

        logger.info(f"📡 Share this address: {address}")
        return address

    def peers(self) -> List[Peer]:
        return self.directory.list()

    def history_for(self, peer_id: str) -> List[Message]:
        return self.ledger.history_for(peer_id)

    def visible_messages(self) -> List[Message]:
        return self.selector.visible_history()
