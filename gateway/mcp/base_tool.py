"""
MCP Base Tool Interface

Shared pieces for every tool:
- Tool-level error type
- The tool result, kept separate from the JSON-RPC envelope
- Argument helpers and audit logging
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from fastapi.encoders import jsonable_encoder

logger = logging.getLogger(__name__)

SENSITIVE_KEYS = ("password", "token", "secret", "key_hash", "api_key")


class MCPToolError(Exception):
    """Business-level failure raised by a tool handler"""
    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


@dataclass(frozen=True)
class ToolResult:
    """
    Outcome of a tools/call.

    Both variants travel inside a successful JSON-RPC response; callers tell
    them apart through the isError flag, never through a JSON-RPC error.
    """
    text: str
    is_error: bool = False

    @classmethod
    def ok(cls, payload: Any) -> "ToolResult":
        return cls(text=json.dumps(jsonable_encoder(payload), indent=2))

    @classmethod
    def error(cls, message: str) -> "ToolResult":
        return cls(text=f"Error: {message}", is_error=True)

    def to_content(self) -> Dict[str, Any]:
        content: Dict[str, Any] = {"content": [{"type": "text", "text": self.text}]}
        if self.is_error:
            content["isError"] = True
        return content


def require_user_id(arguments: Dict[str, Any], default: Optional[str]) -> str:
    """
    Resolve the user a tool acts for: explicit argument first, then the
    authenticated caller.

    Raises:
        MCPToolError: If neither is available
    """
    user_id = arguments.get("user_id") or default
    if not user_id:
        raise MCPToolError(
            code="VALIDATION_ERROR",
            message="user_id is required when the caller is not a signed-in user",
            details={"field": "user_id"},
        )
    return str(user_id)


def safe_arguments(arguments: Dict[str, Any]) -> Dict[str, Any]:
    """Arguments with sensitive values redacted, for logging."""
    return {k: ("***" if k in SENSITIVE_KEYS else v) for k, v in arguments.items()}


def log_tool_invocation(tool_name: str, mode: Optional[str], arguments: Dict[str, Any]) -> None:
    logger.info(f"MCP Tool Invocation: {tool_name} | Auth: {mode} | Params: {safe_arguments(arguments)}")
