"""
MCP (Model Context Protocol) Server Package

Tool registry, resources, prompts and the JSON-RPC dispatcher through which
agents reach the business database.
"""
