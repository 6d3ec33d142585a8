import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..core.client import ChatClient
from ..core.config import ClientConfig
from ..core.errors import NodeStartError
from ..modules.chat.routes import setup_chat_routes
from ..network.gateway import CommandGateway, WebSocketGateway

logger = logging.getLogger(__name__)


def create_app(config: Optional[ClientConfig] = None, gateway: Optional[CommandGateway] = None) -> FastAPI:
    """Creates and configures the FastAPI application"""
    config = config or ClientConfig()

    app = FastAPI(title="UMBRA client", description="Peer and message state for the UMBRA P2P chat")

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    client = ChatClient(
        gateway or WebSocketGateway(config.node_url),
        pending_confirmation_limit=config.pending_confirmation_limit
    )

    app.include_router(setup_chat_routes(client))

    @app.get("/api/status")
    async def get_status():
        """Client status"""
        active = client.selector.active_peer()
        return {
            "status": "online" if client.is_running else "offline",
            "peer_id": client.local_peer_id,
            "peers": len(client.directory),
            "active_peer": active.to_dict() if active else None,
            "pending_messages": len(client.ledger.pending())
        }

    @app.get("/api/address")
    async def get_address():
        """Address other peers can use to reach this node"""
        try:
            address = await client.share_address()
        except Exception as e:
            logger.error(f"Error fetching listen addresses: {e}")
            return JSONResponse(status_code=502, content={"error": str(e)})
        return {"peer_id": client.local_peer_id, "address": address}

    @app.on_event("startup")
    async def startup_event():
        """Startup events"""
        logger.info("🚀 Starting UMBRA client...")
        try:
            await client.start()
        except NodeStartError as e:
            logger.error(f"❌ Failed to start node: {e}")
            raise

    @app.on_event("shutdown")
    async def shutdown_event():
        """Shutdown events"""
        logger.info("🛑 Stopping UMBRA client...")
        await client.stop()

    app.state.client = client
    app.state.config = config

    return app
