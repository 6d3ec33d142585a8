import logging
from dataclasses import dataclass
from typing import List, Optional

logger = logging.getLogger(__name__)


@dataclass
class ClientConfig:
    """Runtime settings of the chat client"""
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    node_url: str = "ws://127.0.0.1:9944"
    pending_confirmation_limit: int = 256
    log_level: str = "INFO"

    @classmethod
    def from_argv(cls, argv: Optional[List[str]] = None) -> "ClientConfig":
        """Reads `[port] [node_url]` positional arguments"""
        config = cls()
        args = list(argv or [])

        if len(args) > 0:
            try:
                config.api_port = int(args[0])
            except ValueError:
                logger.warning(f"Invalid port: {args[0]}, using default port {config.api_port}")

        if len(args) > 1 and args[1]:
            config.node_url = args[1]

        return config
