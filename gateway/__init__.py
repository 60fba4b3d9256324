"""Harmon Digital OS MCP gateway."""
