"""Routers package for the MCP gateway."""

from .mcp import router as mcp_router

__all__ = ["mcp_router"]
