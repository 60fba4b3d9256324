"""CORS configuration for browser-based MCP clients."""
import logging

from fastapi.middleware.cors import CORSMiddleware

logger = logging.getLogger(__name__)


def add_cors_middleware(app):
    """Add permissive CORS (any origin, method and header) to the FastAPI application."""
    logger.info("[CORS] Allowing all origins, methods and headers")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
