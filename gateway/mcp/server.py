"""
MCP Tool Registry

Holds every tool the gateway exposes. The catalogue is built once per
process (generic CRUD tools for each entity table plus the KPI, notification
and report tools) and is read-only afterwards.
"""

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Callable, Dict, Iterable, List, Optional

from jsonschema import ValidationError as JSONSchemaValidationError
from jsonschema import validate
from starlette.concurrency import run_in_threadpool

from gateway.errors import ToolRegistrationError
from gateway.mcp.base_tool import MCPToolError, ToolResult, log_tool_invocation
from gateway.services.entity_store import EntityStore

logger = logging.getLogger(__name__)

ToolHandler = Callable[[Dict[str, Any], EntityStore], Any]


@dataclass(frozen=True)
class ToolDefinition:
    """MCP Tool definition"""
    name: str
    description: str
    input_schema: Dict[str, Any] = field(hash=False)
    handler: ToolHandler = field(hash=False, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "description": self.description, "inputSchema": self.input_schema}


class ToolRegistry:
    """
    Registry of invokable tools.

    Names are unique across the whole catalogue; registering a duplicate is
    a start-up defect and raises immediately.
    """

    def __init__(self):
        self.tools: Dict[str, ToolDefinition] = {}

    def register_tool(self, tool: ToolDefinition) -> None:
        """Register a tool with the registry"""
        if tool.name in self.tools:
            raise ToolRegistrationError(f"Tool {tool.name} is already registered")
        self.tools[tool.name] = tool
        logger.debug(f"Registered MCP tool: {tool.name}")

    def register_tools(self, tools: Iterable[ToolDefinition]) -> None:
        for tool in tools:
            self.register_tool(tool)

    def get_tool(self, name: str) -> Optional[ToolDefinition]:
        return self.tools.get(name)

    def list_tools(self) -> List[ToolDefinition]:
        return list(self.tools.values())

    def get_tool_schemas(self) -> List[Dict[str, Any]]:
        """name/description/inputSchema for every registered tool"""
        return [tool.to_dict() for tool in self.tools.values()]

    def __len__(self) -> int:
        return len(self.tools)

    def __contains__(self, name: object) -> bool:
        return name in self.tools

    async def run_tool(self, tool: ToolDefinition, arguments: Dict[str, Any], store: EntityStore,
                       mode: Optional[str] = None) -> Any:
        """
        Validate arguments against the tool's input schema and run its handler
        in the thread pool.

        Raises:
            MCPToolError: If the arguments do not match the input schema
            Exception: Whatever the handler raises
        """
        log_tool_invocation(tool.name, mode, arguments)

        try:
            validate(instance=arguments, schema=tool.input_schema)
        except JSONSchemaValidationError as e:
            raise MCPToolError(code="VALIDATION_ERROR", message=f"Invalid arguments: {e.message}") from e

        result = await run_in_threadpool(tool.handler, arguments, store)
        logger.info(f"Tool {tool.name} executed successfully")
        return result

    async def invoke_tool(self, name: str, arguments: Dict[str, Any], store: EntityStore,
                          mode: Optional[str] = None) -> ToolResult:
        """
        Run a tool by name for tools/call.

        Every failure, including an unknown tool name, comes back as an
        error ToolResult rather than an exception.
        """
        tool = self.get_tool(name)
        if tool is None:
            return ToolResult(text=f"Unknown tool: {name}", is_error=True)

        try:
            result = await self.run_tool(tool, arguments, store, mode)
        except Exception as e:
            logger.warning(f"Tool {name} failed: {str(e)}")
            return ToolResult.error(str(e))
        return ToolResult.ok(result)


def build_registry() -> ToolRegistry:
    """Assemble the full tool catalogue."""
    from gateway.mcp.tools.crud import register_crud_tools
    from gateway.mcp.tools.kpi import register_kpi_tools
    from gateway.mcp.tools.notifications import register_notification_tools
    from gateway.mcp.tools.reports import register_report_tools

    registry = ToolRegistry()
    register_crud_tools(registry)
    register_kpi_tools(registry)
    register_notification_tools(registry)
    register_report_tools(registry)
    logger.info(f"MCP tool registry built with {len(registry)} tools")
    return registry


@lru_cache(maxsize=None)
def get_tool_registry() -> ToolRegistry:
    """Process-wide registry, built on first use"""
    return build_registry()
