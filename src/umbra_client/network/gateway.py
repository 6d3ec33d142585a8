"""
Command gateway to the external P2P node.

`CommandGateway` is the contract the client consumes. `WebSocketGateway`
speaks it over the node's JSON control socket:

    request  {"id": "7", "cmd": "send_message", "args": {...}}
    reply    {"id": "7", "ok": true, "result": ...}
             {"id": "7", "ok": false, "error": "reason"}
    event    {"event": "peer_connected", "payload": {...}}
"""

import asyncio
import itertools
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Type

import websockets
from websockets.exceptions import ConnectionClosed

from ..core.errors import ChatClientError, NodeConnectionError, NodeStartError, SendError

logger = logging.getLogger(__name__)

EventSink = Callable[[str, Any], None]


class CommandGateway(ABC):
    """Outbound commands to the node plus the event subscription"""

    @abstractmethod
    async def start_node(self) -> str:
        """Starts the node and returns the local peer id"""

    @abstractmethod
    async def connect(self, peer_input: str) -> Any:
        """Dials a peer given its shared address"""

    @abstractmethod
    async def send(self, topic: str, content: str, correlation_id: Optional[str] = None) -> Any:
        """Publishes a message on a topic"""

    @abstractmethod
    async def listen_addresses(self) -> List[str]:
        """Addresses the node is listening on"""

    @abstractmethod
    async def subscribe(self, sink: EventSink):
        """Registers the receiver of backend events"""

    async def close(self):
        pass


class WebSocketGateway(CommandGateway):
    """CommandGateway over the node's WebSocket control channel"""

    def __init__(self, url: str):
        self.url = url
        self._ws = None
        self._reader: Optional[asyncio.Task] = None
        self._sink: Optional[EventSink] = None
        self._pending: Dict[str, asyncio.Future] = {}
        self._ids = itertools.count(1)

    @property
    def is_open(self) -> bool:
        return self._ws is not None

    async def start_node(self) -> str:
        result = await self._call("start_node", {}, NodeStartError)
        if not isinstance(result, str) or not result:
            raise NodeStartError("Node returned no peer id")
        logger.info(f"🚀 Node started: {result}")
        return result

    async def connect(self, peer_input: str) -> Any:
        logger.info(f"🔗 Connecting to {peer_input}")
        return await self._call("connect_peer", {'peerInput': peer_input}, NodeConnectionError)

    async def send(self, topic: str, content: str, correlation_id: Optional[str] = None) -> Any:
        args = {'topic': topic, 'content': content}
        if correlation_id is not None:
            args['correlation_id'] = correlation_id
        return await self._call("send_message", args, SendError)

    async def listen_addresses(self) -> List[str]:
        result = await self._call("get_listen_addrs", {}, ChatClientError)
        if not isinstance(result, list):
            return []
        return [str(a) for a in result]

    async def subscribe(self, sink: EventSink):
        self._sink = sink
        await self._open(ChatClientError)

    async def close(self):
        ws, self._ws = self._ws, None

        if self._reader:
            self._reader.cancel()
            try:
                await self._reader
            except asyncio.CancelledError:
                pass
            self._reader = None

        if ws is not None:
            try:
                await ws.close()
            except Exception as e:
                logger.error(f"Error closing node channel: {e}")

        self._fail_pending("gateway closed")

    async def _open(self, error_cls: Type[ChatClientError]):
        if self._ws is not None:
            return self._ws
        try:
            self._ws = await websockets.connect(self.url)
        except (OSError, websockets.exceptions.WebSocketException) as e:
            raise error_cls(f"Cannot reach node at {self.url}: {e}") from e

        logger.info(f"🌐 Node channel open: {self.url}")
        self._reader = asyncio.create_task(self._read_loop(self._ws))
        return self._ws

    async def _call(self, cmd: str, args: Dict[str, Any], error_cls: Type[ChatClientError]) -> Any:
        ws = await self._open(error_cls)

        request_id = str(next(self._ids))
        future = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future

        try:
            await ws.send(json.dumps({'id': request_id, 'cmd': cmd, 'args': args}))
            reply = await future
        except ConnectionClosed as e:
            raise error_cls(f"Node channel closed: {e}") from e
        finally:
            self._pending.pop(request_id, None)

        if not reply.get('ok'):
            raise error_cls(str(reply.get('error') or f"{cmd} failed"))
        return reply.get('result')

    async def _read_loop(self, ws):
        try:
            async for raw in ws:
                self._handle_frame(raw)
        except ConnectionClosed:
            logger.info("🔌 Node channel closed")
        finally:
            if self._ws is ws:
                self._ws = None
            self._fail_pending("node channel closed")

    def _handle_frame(self, raw):
        try:
            data = json.loads(raw)
        except (TypeError, ValueError):
            logger.debug(f"Ignoring non-JSON frame: {raw!r}")
            return

        if not isinstance(data, dict):
            return

        if 'event' in data:
            if self._sink is not None:
                self._sink(data['event'], data.get('payload'))
            return

        future = self._pending.get(str(data.get('id')))
        if future is not None and not future.done():
            future.set_result(data)

    def _fail_pending(self, reason: str):
        for future in self._pending.values():
            if not future.done():
                future.set_result({'ok': False, 'error': reason})
