#!/usr/bin/env python3
"""
Flask entry point for the Chat Session Service.

Configuration comes from environment variables (or a local .env file).
WSGI servers import ``app``; running the module directly starts the
development server.
"""
import logging

from chat_session import ChatSessionApp, load_config_from_env
from chat_session.api import create_app

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler()]
)
logger = logging.getLogger(__name__)

config = load_config_from_env()
app = create_app(ChatSessionApp(config))


if __name__ == "__main__":
    logger.info(f"Server running on port {config.port}")
    app.run(host="0.0.0.0", port=config.port, debug=False)
