"""MCP transport routes: JSON-RPC over POST, SSE over GET, plus the legacy invoke API."""
import asyncio
import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, AsyncIterator, Dict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, StreamingResponse

from gateway import config
from gateway.mcp.protocol import MCPDispatcher
from gateway.middleware.auth import AuthContext, authenticate

logger = logging.getLogger(__name__)

router = APIRouter(tags=["MCP"])  # No prefix since main.py adds MCP_BASE_PATH

OPENAPI_DOCUMENT = Path(__file__).resolve().parent.parent / "openapi" / "openapi.json"


def get_dispatcher(request: Request) -> MCPDispatcher:
    """Dependency for the dispatcher built at start-up."""
    return request.app.state.dispatcher


@lru_cache(maxsize=1)
def load_openapi_document() -> Dict[str, Any]:
    with OPENAPI_DOCUMENT.open(encoding="utf-8") as f:
        return json.load(f)


async def sse_events(request: Request, endpoint: str, interval: float) -> AsyncIterator[str]:
    """
    Announce the POST endpoint, then send a keep-alive comment every
    `interval` seconds until the client goes away.
    """
    logger.info("SSE stream opened")
    yield f"event: endpoint\ndata: {endpoint}\n\n"
    try:
        while True:
            await asyncio.sleep(interval)
            if await request.is_disconnected():
                logger.info("SSE client disconnected")
                break
            yield ": ping\n\n"
    except asyncio.CancelledError:
        logger.info("SSE stream cancelled")
        raise


@router.get("/")
async def server_info(request: Request):
    """Server identity, protocol version and catalogue sizes."""
    dispatcher = get_dispatcher(request)
    return {
        "name": config.SERVER_NAME,
        "version": config.SERVER_VERSION,
        "protocol": config.PROTOCOL_VERSION,
        "tools": len(dispatcher.registry),
        "resources": len(dispatcher.resources),
        "prompts": len(dispatcher.prompts),
        "endpoints": {
            "mcp": config.MCP_PUBLIC_ENDPOINT,
            "openapi": f"{config.MCP_BASE_PATH.rstrip('/')}/openapi.json",
        },
    }


@router.get("/openapi.json")
async def openapi_document():
    """Static OpenAPI description of the invoke API."""
    return load_openapi_document()


@router.post("/mcp")
async def mcp_endpoint(
    request: Request,
    auth: AuthContext = Depends(authenticate),
    dispatcher: MCPDispatcher = Depends(get_dispatcher),
):
    """JSON-RPC request/response cycle."""
    body = await request.body()
    return await dispatcher.handle_body(body, auth)


@router.get("/mcp")
async def mcp_stream(request: Request):
    """Server-push stream; advertisement and keep-alive only."""
    return StreamingResponse(
        sse_events(request, config.MCP_PUBLIC_ENDPOINT, config.SSE_KEEPALIVE_SECONDS),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )


@router.delete("/mcp")
async def mcp_session_end():
    """Nothing to tear down: the server keeps no sessions."""
    return {"ok": True}


@router.get("/tools")
async def list_tools(
    auth: AuthContext = Depends(authenticate),
    dispatcher: MCPDispatcher = Depends(get_dispatcher),
):
    """Tool names and descriptions."""
    tools = dispatcher.registry.list_tools()
    return {
        "tools": [{"name": t.name, "description": t.description} for t in tools],
        "count": len(tools),
    }


@router.post("/tools/{tool_name}")
async def invoke_tool(
    tool_name: str,
    request: Request,
    auth: AuthContext = Depends(authenticate),
    dispatcher: MCPDispatcher = Depends(get_dispatcher),
):
    """Invoke one tool with the JSON body as its arguments."""
    tool = dispatcher.registry.get_tool(tool_name)
    if tool is None:
        return JSONResponse(status_code=404, content={"ok": False, "error": f"Unknown tool: {tool_name}"})

    body = await request.body()
    try:
        arguments = json.loads(body) if body.strip() else {}
    except ValueError:
        return JSONResponse(status_code=400, content={"ok": False, "error": "Request body is not valid JSON"})
    if not isinstance(arguments, dict):
        return JSONResponse(status_code=400, content={"ok": False, "error": "Request body must be a JSON object"})

    try:
        result = await dispatcher.registry.run_tool(tool, arguments, auth.store, auth.mode)
    except Exception as e:
        logger.warning(f"Tool {tool_name} failed: {str(e)}")
        return {"ok": False, "error": str(e)}
    return {"ok": True, "result": result}
