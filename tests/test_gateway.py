"""Tests for the WebSocket command gateway against a local fake node."""

import asyncio
import json

import pytest
import websockets

from umbra_client.core.errors import ChatClientError, NodeConnectionError, SendError
from umbra_client.network.gateway import WebSocketGateway


async def fake_node(websocket):
    async for raw in websocket:
        request = json.loads(raw)
        cmd, args = request["cmd"], request["args"]

        if cmd == "start_node":
            await websocket.send(json.dumps({"event": "peer_connected", "payload": {"id": "P1"}}))
            reply = {"ok": True, "result": "LOCAL"}
        elif cmd == "get_listen_addrs":
            reply = {"ok": True, "result": ["/ip4/127.0.0.1/tcp/1", "/ip4/10.0.0.5/tcp/1"]}
        elif cmd == "send_message":
            if args["content"] == "fail":
                reply = {"ok": False, "error": "no route"}
            else:
                reply = {"ok": True, "result": args.get("correlation_id")}
        elif cmd == "connect_peer":
            reply = {"ok": False, "error": f"cannot dial {args['peerInput']}"}
        else:
            reply = {"ok": False, "error": "unknown command"}

        reply["id"] = request["id"]
        await websocket.send(json.dumps(reply))


def run_with_node(scenario):
    async def main():
        async with websockets.serve(fake_node, "127.0.0.1", 0) as server:
            port = server.sockets[0].getsockname()[1]
            gateway = WebSocketGateway(f"ws://127.0.0.1:{port}")
            try:
                await scenario(gateway)
            finally:
                await gateway.close()

    asyncio.run(main())


def test_commands_and_events():
    async def scenario(gateway: WebSocketGateway) -> None:
        events = []
        await gateway.subscribe(lambda kind, payload: events.append((kind, payload)))

        assert await gateway.start_node() == "LOCAL"
        assert events == [("peer_connected", {"id": "P1"})]
        assert await gateway.listen_addresses() == ["/ip4/127.0.0.1/tcp/1", "/ip4/10.0.0.5/tcp/1"]
        assert await gateway.send("P1", "hi", correlation_id="abc") == "abc"

    run_with_node(scenario)


def test_command_errors_are_typed():
    async def scenario(gateway: WebSocketGateway) -> None:
        with pytest.raises(SendError) as excinfo:
            await gateway.send("P1", "fail")
        assert excinfo.value.reason == "no route"

        with pytest.raises(NodeConnectionError) as excinfo:
            await gateway.connect("/ip4/1.2.3.4/tcp/1")
        assert "cannot dial" in excinfo.value.reason

    run_with_node(scenario)


def test_unreachable_node():
    async def scenario() -> None:
        gateway = WebSocketGateway("ws://127.0.0.1:1")

        with pytest.raises(SendError):
            await gateway.send("P1", "hi")
        with pytest.raises(ChatClientError):
            await gateway.subscribe(lambda kind, payload: None)
        assert not gateway.is_open

    asyncio.run(scenario())
