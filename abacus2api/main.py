"""Main FastAPI application for the Abacus2Api proxy."""

import socket
from typing import Any, Mapping, Optional

from fastapi import FastAPI

from .api.routes import register_routes
from .config_loader import load_config, resolve_server_address, resolve_status_payload
from .core import AbacusClient, BackendSettings
from .core.registry import set_client
from .logging import setup_logging

# Initialize logging
logger = setup_logging()

# Load configuration
config = load_config()
settings = BackendSettings.from_config(config)
client = AbacusClient(settings)
logger.info(
    f"Backend client initialized for deployment {settings.deployment_id} "
    f"(idle timeout {settings.stream_idle_timeout}s)"
)

# Set the client in the registry for routes to access
set_client(client)

# Environment variables ABACUS2API_HOST / ABACUS2API_PORT take priority over config
SERVER_HOST, SERVER_PORT = resolve_server_address(config)


def create_app(app_config: Optional[Mapping[str, Any]] = None) -> FastAPI:
    """Build a FastAPI application with the proxy routes attached.

    Args:
        app_config: Configuration used for the status payload. Defaults to
            the configuration loaded at import time.

    Returns:
        A new FastAPI application instance.
    """
    application = FastAPI(title="Abacus2Api Proxy")
    application.state.status_payload = resolve_status_payload(
        config if app_config is None else app_config
    )
    register_routes(application)
    return application


app = create_app()
logger.info("FastAPI application created")


@app.on_event("startup")
async def startup_event():
    """Handle application startup."""
    logger.info("Abacus2Api proxy starting up...")
    logger.info("Configured bind address %s:%s", SERVER_HOST, SERVER_PORT)
    if SERVER_HOST == "0.0.0.0":
        hostname = socket.gethostname()
        logger.info("Reachable on local network at http://%s:%s", hostname, SERVER_PORT)
    logger.info(f"Conversation endpoint: {settings.create_conversation_url}")
    logger.info(f"Send-message endpoint: {settings.send_message_url}")
    logger.info("Abacus2Api proxy ready to handle requests")


__all__ = ["app", "client", "config", "create_app", "settings", "SERVER_HOST", "SERVER_PORT"]
