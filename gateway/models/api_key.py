"""MCP API key model for SQLModel."""
from datetime import datetime
from typing import Optional

from sqlalchemy import Column, DateTime
from sqlmodel import SQLModel, Field

from gateway.models.base import created_at_field, flag_field


class McpApiKey(SQLModel, table=True):
    """Service credential; only the SHA-256 digest of the key is stored."""
    __tablename__ = "mcp_api_keys"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=100)
    key_hash: str = Field(max_length=64, unique=True, index=True)
    key_prefix: Optional[str] = Field(default=None, max_length=12)
    created_by: Optional[str] = Field(default=None, max_length=100)
    revoked: bool = flag_field()
    last_used_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime, nullable=True))
    created_at: Optional[datetime] = created_at_field()
