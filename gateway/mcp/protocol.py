"""
MCP JSON-RPC Dispatcher

Routes one JSON-RPC request to its MCP method handler. Dispatch is
stateless: no handshake order is enforced and nothing is remembered between
requests.
"""

import json
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from starlette.concurrency import run_in_threadpool

from gateway import config
from gateway.errors import ProtocolError
from gateway.mcp.prompts import PromptDefinition, find_prompt
from gateway.mcp.resources import ResourceDefinition, find_resource
from gateway.mcp.server import ToolRegistry
from gateway.middleware.auth import AuthContext

logger = logging.getLogger(__name__)

JSONRPC_VERSION = "2.0"

MethodHandler = Callable[[Dict[str, Any], AuthContext], Awaitable[Dict[str, Any]]]


def rpc_result(request_id: Any, result: Any) -> Dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}


def rpc_error(request_id: Any, code: int, message: str, data: Optional[Any] = None) -> Dict[str, Any]:
    error: Dict[str, Any] = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "error": error}


class MCPDispatcher:
    """
    JSON-RPC method switch over the tool, resource and prompt catalogues.

    Every outcome is a response dict: protocol failures become JSON-RPC error
    objects, tool failures become tool results flagged with isError.
    """

    def __init__(self, registry: ToolRegistry, resources: List[ResourceDefinition],
                 prompts: List[PromptDefinition]):
        self.registry = registry
        self.resources = resources
        self.prompts = prompts
        self.methods: Dict[str, MethodHandler] = {
            "initialize": self.initialize,
            "notifications/initialized": self.acknowledge,
            "initialized": self.acknowledge,
            "ping": self.acknowledge,
            "tools/list": self.list_tools,
            "tools/call": self.call_tool,
            "resources/list": self.list_resources,
            "resources/read": self.read_resource,
            "prompts/list": self.list_prompts,
            "prompts/get": self.get_prompt,
        }

    async def handle_body(self, body: bytes, auth: AuthContext) -> Dict[str, Any]:
        """Parse a raw request body and dispatch it."""
        try:
            payload = json.loads(body)
        except ValueError:
            return rpc_error(None, ProtocolError.PARSE_ERROR, "Parse error")
        return await self.dispatch(payload, auth)

    async def dispatch(self, payload: Any, auth: AuthContext) -> Dict[str, Any]:
        if not isinstance(payload, dict):
            return rpc_error(None, ProtocolError.INVALID_REQUEST, "Invalid Request: expected a JSON object")

        request_id = payload.get("id")
        method = payload.get("method")
        if not isinstance(method, str):
            return rpc_error(request_id, ProtocolError.INVALID_REQUEST, "Invalid Request: missing method")

        handler = self.methods.get(method)
        if handler is None:
            return rpc_error(request_id, ProtocolError.METHOD_NOT_FOUND, f"Method not found: {method}")

        params = payload.get("params")
        if params is None:
            params = {}
        if not isinstance(params, dict):
            return rpc_error(request_id, ProtocolError.INVALID_PARAMS, "params must be an object")

        try:
            return rpc_result(request_id, await handler(params, auth))
        except ProtocolError as e:
            return rpc_error(request_id, e.code, e.message, e.data)
        except Exception as e:
            logger.exception(f"MCP method {method} failed")
            return rpc_error(request_id, ProtocolError.INTERNAL_ERROR, str(e))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self, params: Dict[str, Any], auth: AuthContext) -> Dict[str, Any]:
        client = params.get("clientInfo") or {}
        logger.info(f"MCP initialize from {client.get('name', 'unknown client')} ({auth.mode})")
        return {
            "protocolVersion": config.PROTOCOL_VERSION,
            "capabilities": {
                "tools": {"listChanged": False},
                "resources": {"subscribe": False, "listChanged": False},
                "prompts": {"listChanged": False},
            },
            "serverInfo": {"name": config.SERVER_NAME, "version": config.SERVER_VERSION},
        }

    async def acknowledge(self, params: Dict[str, Any], auth: AuthContext) -> Dict[str, Any]:
        return {}

    # ------------------------------------------------------------------
    # Tools
    # ------------------------------------------------------------------

    async def list_tools(self, params: Dict[str, Any], auth: AuthContext) -> Dict[str, Any]:
        # cursor is accepted but the full catalogue is always returned
        return {"tools": self.registry.get_tool_schemas()}

    async def call_tool(self, params: Dict[str, Any], auth: AuthContext) -> Dict[str, Any]:
        name = params.get("name")
        if not isinstance(name, str):
            raise ProtocolError(ProtocolError.INVALID_PARAMS, "tools/call requires a string 'name'")
        arguments = params.get("arguments")
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise ProtocolError(ProtocolError.INVALID_PARAMS, "tools/call 'arguments' must be an object")

        result = await self.registry.invoke_tool(name, arguments, auth.store, mode=auth.mode)
        return result.to_content()

    # ------------------------------------------------------------------
    # Resources
    # ------------------------------------------------------------------

    async def list_resources(self, params: Dict[str, Any], auth: AuthContext) -> Dict[str, Any]:
        return {"resources": [r.to_dict() for r in self.resources]}

    async def read_resource(self, params: Dict[str, Any], auth: AuthContext) -> Dict[str, Any]:
        uri = params.get("uri")
        resource = find_resource(self.resources, uri) if isinstance(uri, str) else None
        if resource is None:
            raise ProtocolError(ProtocolError.INVALID_PARAMS, f"Unknown resource: {uri}")

        text = await run_in_threadpool(resource.handler, auth.store)
        return {"contents": [{"uri": resource.uri, "mimeType": resource.mime_type, "text": text}]}

    # ------------------------------------------------------------------
    # Prompts
    # ------------------------------------------------------------------

    async def list_prompts(self, params: Dict[str, Any], auth: AuthContext) -> Dict[str, Any]:
        return {"prompts": [p.to_dict() for p in self.prompts]}

    async def get_prompt(self, params: Dict[str, Any], auth: AuthContext) -> Dict[str, Any]:
        name = params.get("name")
        prompt = find_prompt(self.prompts, name) if isinstance(name, str) else None
        if prompt is None:
            raise ProtocolError(ProtocolError.INVALID_PARAMS, f"Unknown prompt: {name}")

        arguments = params.get("arguments") or {}
        if not isinstance(arguments, dict):
            raise ProtocolError(ProtocolError.INVALID_PARAMS, "prompts/get 'arguments' must be an object")

        return {
            "description": prompt.description,
            "messages": [{"role": "user", "content": {"type": "text", "text": prompt.render(arguments)}}],
        }
