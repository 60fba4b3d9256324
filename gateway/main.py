"""Main FastAPI application for the Harmon Digital OS MCP gateway."""
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine

from gateway import config
from gateway.db.config import build_engine
from gateway.db.init import init_db
from gateway.errors import AuthenticationError, ProtocolError
from gateway.mcp.prompts import get_all_prompts
from gateway.mcp.protocol import MCPDispatcher, rpc_error
from gateway.mcp.resources import get_all_resources
from gateway.mcp.server import get_tool_registry
from gateway.middleware.cors import add_cors_middleware
from gateway.services.entity_store import StoreBackend

logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
)
logger = logging.getLogger(__name__)


def create_app(engine: Optional[Engine] = None) -> FastAPI:
    """
    Build the gateway application.

    The store engine is created from DATABASE_URL unless one is given; tables
    are reflected and the catalogues built when the application starts.
    """
    app = FastAPI(
        title="Harmon Digital OS MCP Gateway",
        description="Model Context Protocol server exposing the business database to AI agents",
        version=config.SERVER_VERSION,
        # The gateway serves its own static OpenAPI document under the base path
        openapi_url=None,
        docs_url=None,
        redoc_url=None,
    )

    # Add CORS middleware
    add_cors_middleware(app)

    @app.on_event("startup")
    async def startup_event():
        """Connect to the store and build the tool, resource and prompt catalogues."""
        store_engine = engine if engine is not None else build_engine()

        if store_engine.dialect.name == "sqlite" and config.ENVIRONMENT == "development":
            try:
                init_db(store_engine)
            except Exception as e:
                logger.warning(f"[WARNING] Database initialization failed: {str(e)}")
                logger.warning("[WARNING] Server will continue but store operations may fail.")

        try:
            app.state.store_backend = StoreBackend.connect(store_engine)
        except Exception as e:
            logger.warning(f"[WARNING] Store connection failed: {str(e)}")
            logger.warning("[WARNING] Server will continue without store tables; tool calls will report errors.")
            app.state.store_backend = StoreBackend.empty(store_engine)

        if not config.JWT_SECRET:
            logger.warning("[WARNING] JWT_SECRET is not set: every Bearer token will be refused with 401. "
                           "Only X-API-Key authentication is available.")

        registry = get_tool_registry()
        app.state.dispatcher = MCPDispatcher(registry, get_all_resources(), get_all_prompts())
        logger.info(
            f"[SUCCESS] MCP gateway ready: {len(registry)} tools, "
            f"{len(app.state.dispatcher.resources)} resources, {len(app.state.dispatcher.prompts)} prompts"
        )

    @app.exception_handler(AuthenticationError)
    async def authentication_error_handler(request: Request, exc: AuthenticationError):
        return JSONResponse(
            status_code=exc.status_code,
            content=rpc_error(None, ProtocolError.SERVER_ERROR, exc.message),
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(status_code=500, content={"detail": str(exc)})

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "version": config.SERVER_VERSION}

    # Import and include routers
    from gateway.routers import mcp_router
    prefix = "" if config.MCP_BASE_PATH == "/" else config.MCP_BASE_PATH
    app.include_router(mcp_router, prefix=prefix)  # MCP endpoints: /mcp-server/mcp, /mcp-server/tools

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "gateway.main:app",
        host="0.0.0.0",
        port=8000,
        reload=config.ENVIRONMENT == "development",
    )
