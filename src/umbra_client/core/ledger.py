import bisect
import logging
import time
import uuid
from dataclasses import replace
from typing import Callable, Dict, List, Optional

from .models import Message, MessageStatus, Sender

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


class MessageLedger:
    """Per-peer message history ordered by timestamp.

    Local messages are created PENDING and resolved through
    `mark_send_result` using the message id handed to the gateway as
    correlation id. Remote messages are DELIVERED on arrival and are inserted
    at their timestamp position, so late arrivals land before newer entries.
    """

    def __init__(self, clock: Callable[[], int] = now_ms):
        self._clock = clock
        self._logs: Dict[str, List[Message]] = {}
        self._owner: Dict[str, str] = {}
        self._last_local_ts = 0

    def append_local(self, peer_id: str, content: str) -> Message:
        """Records an outgoing message as PENDING"""
        timestamp = max(self._clock(), self._last_local_ts)
        self._last_local_ts = timestamp

        message = Message(
            id=uuid.uuid4().hex,
            peer_id=peer_id,
            sender=Sender.LOCAL,
            content=content,
            timestamp=timestamp,
            status=MessageStatus.PENDING
        )
        self._insert(message)
        return message

    def append_remote(self, peer_id: str, content: str, timestamp: int,
                      remote_id: Optional[str] = None) -> Message:
        """Records an incoming message.

        A redelivered copy is recognized only by the id the node assigned to
        it. Messages without one are always appended.
        """
        if remote_id is not None:
            for existing in self._logs.get(peer_id, []):
                if existing.sender is Sender.REMOTE and existing.remote_id == remote_id:
                    logger.debug(f"Duplicate message {remote_id} from {peer_id} ignored")
                    return existing

        message = Message(
            id=uuid.uuid4().hex,
            peer_id=peer_id,
            sender=Sender.REMOTE,
            content=content,
            timestamp=timestamp,
            status=MessageStatus.DELIVERED,
            remote_id=remote_id
        )
        self._insert(message)
        return message

    def mark_send_result(self, message_id: str, success: bool) -> Optional[Message]:
        """Resolves one pending local message to SENT or FAILED"""
        message = self.get(message_id)
        if message is None or message.sender is not Sender.LOCAL:
            logger.warning(f"Send result for unknown message {message_id}")
            return None

        if message.status is not MessageStatus.PENDING:
            logger.debug(f"Message {message_id} already resolved as {message.status.value}")
            return None

        status = MessageStatus.SENT if success else MessageStatus.FAILED
        return self._set_status(message, status)

    def mark_delivered(self, message_id: str) -> Optional[Message]:
        """Moves a SENT local message to DELIVERED"""
        message = self.get(message_id)
        if message is None or message.sender is not Sender.LOCAL:
            logger.debug(f"Delivery report for unknown message {message_id}")
            return None

        if message.status is not MessageStatus.SENT:
            return None

        return self._set_status(message, MessageStatus.DELIVERED)

    def get(self, message_id: str) -> Optional[Message]:
        peer_id = self._owner.get(message_id)
        if peer_id is None:
            return None
        for message in self._logs[peer_id]:
            if message.id == message_id:
                return message
        return None

    def history_for(self, peer_id: str) -> List[Message]:
        return list(self._logs.get(peer_id, []))

    def pending(self) -> List[Message]:
        return [
            m for log in self._logs.values() for m in log
            if m.sender is Sender.LOCAL and m.status is MessageStatus.PENDING
        ]

    def _insert(self, message: Message):
        log = self._logs.setdefault(message.peer_id, [])
        position = bisect.bisect_right([m.timestamp for m in log], message.timestamp)
        log.insert(position, message)
        self._owner[message.id] = message.peer_id

    def _set_status(self, message: Message, status: MessageStatus) -> Message:
        log = self._logs[message.peer_id]
        updated = replace(message, status=status)
        for index, existing in enumerate(log):
            if existing.id == message.id:
                log[index] = updated
                break
        return updated
