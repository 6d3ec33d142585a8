#!/usr/bin/env python3
"""
UMBRA client - peer and message state for the P2P chat
Application entry point
"""

import uvicorn
import logging
import sys

from umbra_client.api.main import create_app
from umbra_client.core.config import ClientConfig

# Logging configuration
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def main():
    """Main application function"""
    config = ClientConfig.from_argv(sys.argv[1:])
    logging.getLogger().setLevel(config.log_level)

    logger.info(f"🚀 Starting UMBRA client on port {config.api_port} (node: {config.node_url})")

    app = create_app(config)

    uvicorn.run(app, host=config.api_host, port=config.api_port, log_level="info")


if __name__ == "__main__":
    main()
