import asyncio
import logging
from collections import OrderedDict
from typing import Any, Callable, Dict, List, Optional, Tuple

from .events import (
    Event, HandshakeCompleted, MessageDelivered, MessageReceived, PeerConnected, parse_event
)
from .ledger import MessageLedger
from .peers import PeerDirectory
from .session import SessionSelector

logger = logging.getLogger(__name__)

Listener = Callable[[Dict[str, Any]], None]


class EventIngest:
    """Applies backend events to the peer directory and the ledger.

    Events arrive through an asyncio queue (`submit` from the gateway,
    `run` drains it) and are applied one at a time, each either fully or not
    at all. Delivery is at-least-once and unordered across kinds: a
    handshake confirmation for a peer not yet registered is held in a small
    buffer and applied when that peer connects.
    """

    def __init__(self, directory: PeerDirectory, ledger: MessageLedger, selector: SessionSelector,
                 pending_limit: int = 256):
        self.directory = directory
        self.ledger = ledger
        self.selector = selector
        self.pending_limit = pending_limit
        self._pending_confirmations: "OrderedDict[str, None]" = OrderedDict()
        self._queue: "asyncio.Queue[Tuple[str, Any]]" = asyncio.Queue()
        self._listeners: List[Listener] = []

    # Channel

    def submit(self, kind: str, payload: Any):
        """Enqueues a raw backend event"""
        self._queue.put_nowait((kind, payload))

    async def run(self):
        """Applies queued events until cancelled"""
        while True:
            kind, payload = await self._queue.get()
            try:
                self.process(kind, payload)
            except Exception as e:
                logger.error(f"Error applying event {kind!r}: {e}")
            finally:
                self._queue.task_done()

    def process_pending(self) -> int:
        """Applies every event already queued, without waiting for more"""
        count = 0
        while not self._queue.empty():
            kind, payload = self._queue.get_nowait()
            try:
                self.process(kind, payload)
            except Exception as e:
                logger.error(f"Error applying event {kind!r}: {e}")
            finally:
                self._queue.task_done()
            count += 1
        return count

    async def join(self):
        """Waits until every queued event has been applied"""
        await self._queue.join()

    @property
    def queued(self) -> int:
        return self._queue.qsize()

    # Listeners

    def add_listener(self, listener: Listener):
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, notification: Dict[str, Any]):
        for listener in list(self._listeners):
            try:
                listener(notification)
            except Exception as e:
                logger.error(f"Error in event listener: {e}")

    # Application

    def process(self, kind: str, payload: Any) -> Optional[Dict[str, Any]]:
        event = parse_event(kind, payload)
        if event is None:
            logger.debug(f"Dropping event {kind!r}: {payload!r}")
            return None
        return self.apply(event)

    def apply(self, event: Event) -> Optional[Dict[str, Any]]:
        if isinstance(event, PeerConnected):
            notification = self._on_peer_connected(event)
        elif isinstance(event, MessageReceived):
            notification = self._on_message_received(event)
        elif isinstance(event, HandshakeCompleted):
            notification = self._on_handshake_completed(event)
        elif isinstance(event, MessageDelivered):
            notification = self._on_message_delivered(event)
        else:
            return None

        if notification is not None:
            self._notify(notification)
        return notification

    def _on_peer_connected(self, event: PeerConnected) -> Dict[str, Any]:
        peer = self.directory.upsert(event.peer_id, event.display_name)

        if event.peer_id in self._pending_confirmations:
            del self._pending_confirmations[event.peer_id]
            self.directory.confirm_quantum_safe(event.peer_id)
            peer = self.directory.get(event.peer_id)

        return {'event': 'peer_connected', 'peer': peer.to_dict()}

    def _on_message_received(self, event: MessageReceived) -> Dict[str, Any]:
        message = self.ledger.append_remote(event.sender, event.content, event.timestamp,
                                           remote_id=event.message_id)
        return {
            'event': 'message_received',
            'message': message.to_dict(),
            'visible': self.selector.is_active(event.sender)
        }

    def _on_handshake_completed(self, event: HandshakeCompleted) -> Optional[Dict[str, Any]]:
        if event.peer_id not in self.directory:
            self._buffer_confirmation(event.peer_id)
            return None

        self.directory.confirm_quantum_safe(event.peer_id)
        return {'event': 'handshake_completed', 'peer': self.directory.get(event.peer_id).to_dict()}

    def _on_message_delivered(self, event: MessageDelivered) -> Optional[Dict[str, Any]]:
        message = self.ledger.mark_delivered(event.message_id)
        if message is None:
            return None
        return {'event': 'message_delivered', 'message': message.to_dict()}

    def _buffer_confirmation(self, peer_id: str):
        self._pending_confirmations[peer_id] = None
        self._pending_confirmations.move_to_end(peer_id)
        while len(self._pending_confirmations) > self.pending_limit:
            dropped, _ = self._pending_confirmations.popitem(last=False)
            logger.warning(f"Pending handshake confirmation for {dropped} evicted")
        logger.debug(f"Handshake for {peer_id} arrived before the peer, buffered")

    @property
    def pending_confirmations(self) -> List[str]:
        return list(self._pending_confirmations)
