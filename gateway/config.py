"""Gateway configuration loaded from the environment."""
import os
from dotenv import load_dotenv

load_dotenv()

ENVIRONMENT = os.environ.get("ENVIRONMENT", "development")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

# Store connection. SQLite is only meant for local development and tests.
DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///./gateway_dev.db")

# Authentication
MCP_API_KEY = os.environ.get("MCP_API_KEY")  # static fallback key, optional
JWT_SECRET = os.environ.get("JWT_SECRET")

# HTTP transport
MCP_BASE_PATH = "/" + os.environ.get("MCP_BASE_PATH", "/mcp-server").strip("/")
MCP_PUBLIC_ENDPOINT = os.environ.get("MCP_PUBLIC_ENDPOINT", f"{MCP_BASE_PATH}/mcp")
SSE_KEEPALIVE_SECONDS = float(os.environ.get("SSE_KEEPALIVE_SECONDS", "30"))

# Server identity announced on initialize
SERVER_NAME = "harmon-digital-os"
SERVER_VERSION = "1.0.0"
PROTOCOL_VERSION = "2024-11-05"
