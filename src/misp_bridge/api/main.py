# MISP Bridge: FastAPI Application
#
# Serves the tool, resource and prompt endpoints for agents.

import logging

import uvicorn
from fastapi import FastAPI

from .. import __version__
from .tool_routes import router as tool_router

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    application = FastAPI(
        title="MISP Bridge",
        description="MISP threat intelligence exposed as agent tools",
        version=__version__,
    )
    application.include_router(tool_router)

    @application.get("/api/health")
    async def health_check():
        return {"status": "ok", "version": __version__}

    return application


app = create_app()


def start_api_server(host: str = "127.0.0.1", port: int = 8000, log_level: str = "info"):
    """
    Start the tool server.

    Args:
        host: Host to bind to (default: localhost only)
        port: Port to listen on
    """
    logger.info("Starting MISP Bridge on %s:%d", host, port)
    uvicorn.run(app, host=host, port=port, log_level=log_level.lower(), log_config=None)
