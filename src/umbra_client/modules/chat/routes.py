import asyncio
import logging
from typing import Any, Dict

from fastapi import APIRouter, HTTPException, WebSocket, WebSocketDisconnect

from ...core.client import ChatClient
from ...core.errors import NodeConnectionError, SendError, UnknownPeerError

logger = logging.getLogger(__name__)


def setup_chat_routes(client: ChatClient) -> APIRouter:
    """Configures the chat routes"""
    router = APIRouter(prefix="/api/chat", tags=["chat"])

    @router.get("/peers")
    async def get_peers() -> Dict:
        """Known peers in arrival order"""
        return {
            "peers": [p.to_dict() for p in client.peers()],
            "active_peer_id": client.selector.active_peer_id
        }

    @router.post("/connect")
    async def connect_peer(data: Dict[str, Any]) -> Dict:
        """Dials a peer by its shared address"""
        peer_input = data.get('peer_input') or data.get('peerInput')
        if not peer_input:
            raise HTTPException(status_code=400, detail="peer_input is required")

        try:
            await client.connect(peer_input)
        except NodeConnectionError as e:
            raise HTTPException(status_code=502, detail=e.reason)

        return {"success": True}

    @router.post("/select")
    async def select_peer(data: Dict[str, Any]) -> Dict:
        """Opens the conversation with a peer"""
        peer_id = data.get('peer_id')
        if not peer_id:
            raise HTTPException(status_code=400, detail="peer_id is required")

        try:
            result = client.select(peer_id)
        except UnknownPeerError as e:
            raise HTTPException(status_code=404, detail=str(e))

        return result.to_dict()

    @router.post("/send")
    async def send_message(data: Dict[str, Any]) -> Dict:
        """Sends a message to the given peer or to the active conversation"""
        content = data.get('content')
        if not content:
            raise HTTPException(status_code=400, detail="content is required")

        try:
            message = await client.send_message(content, peer_id=data.get('peer_id'))
        except UnknownPeerError as e:
            raise HTTPException(status_code=404, detail=str(e))
        except SendError as e:
            raise HTTPException(status_code=502, detail=e.reason)

        return {"success": True, "message": message.to_dict()}

    @router.get("/messages")
    async def get_active_messages() -> Dict:
        """Messages of the active conversation"""
        return {
            "peer_id": client.selector.active_peer_id,
            "messages": [m.to_dict() for m in client.visible_messages()]
        }

    @router.get("/messages/{peer_id}")
    async def get_messages(peer_id: str) -> Dict:
        """Messages exchanged with a peer"""
        return {"peer_id": peer_id, "messages": [m.to_dict() for m in client.history_for(peer_id)]}

    @router.websocket("/events")
    async def events(websocket: WebSocket):
        """Pushes applied backend events to the UI"""
        queue: asyncio.Queue = asyncio.Queue()
        client.ingest.add_listener(queue.put_nowait)

        try:
            await websocket.accept()
            while True:
                notification = await queue.get()
                await websocket.send_json(notification)
        except WebSocketDisconnect:
            logger.info("🔌 UI event stream closed")
        finally:
            client.ingest.remove_listener(queue.put_nowait)

    return router
