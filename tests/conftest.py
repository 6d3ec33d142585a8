from typing import Any, List, Optional

import pytest

from umbra_client.core.errors import NodeConnectionError, NodeStartError, SendError
from umbra_client.network.gateway import CommandGateway


class FakeGateway(CommandGateway):
    """In-memory node: records commands and lets tests push events"""

    def __init__(self, peer_id: str = "12D3KooWLocalPeer", addresses: Optional[List[str]] = None):
        self.peer_id = peer_id
        self.addresses = list(addresses or [])
        self.sink = None
        self.sent: List[dict] = []
        self.dialed: List[str] = []
        self.fail_start = False
        self.fail_send: Optional[str] = None
        self.fail_connect: Optional[str] = None
        self.closed = False

    async def start_node(self) -> str:
        if self.fail_start:
            raise NodeStartError("boom")
        return self.peer_id

    async def connect(self, peer_input: str) -> Any:
        if self.fail_connect:
            raise NodeConnectionError(self.fail_connect)
        self.dialed.append(peer_input)
        return True

    async def send(self, topic: str, content: str, correlation_id: Optional[str] = None) -> Any:
        if self.fail_send:
            raise SendError(self.fail_send)
        self.sent.append({'topic': topic, 'content': content, 'correlation_id': correlation_id})
        return True

    async def listen_addresses(self) -> List[str]:
        return list(self.addresses)

    async def subscribe(self, sink):
        self.sink = sink

    async def close(self):
        self.closed = True

    def emit(self, kind: str, payload: Any):
        self.sink(kind, payload)


@pytest.fixture
def gateway():
    return FakeGateway(addresses=["/ip4/127.0.0.1/tcp/4001", "/ip4/10.0.0.5/tcp/4001"])
