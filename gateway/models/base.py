"""Column helpers shared by the development schema models."""
from typing import Any

from sqlalchemy import Boolean, Column, DateTime, false, func
from sqlmodel import Field


def created_at_field() -> Any:
    """Timestamp filled in by the database on insert."""
    return Field(
        default=None,
        sa_column=Column(DateTime, server_default=func.now(), nullable=False),
    )


def updated_at_field() -> Any:
    return Field(
        default=None,
        sa_column=Column(DateTime, server_default=func.now(), nullable=False),
    )


def defaulted_field(default: Any, **kwargs) -> Any:
    """Field whose default the database applies too, for inserts that bypass the model."""
    return Field(default=default, sa_column_kwargs={"server_default": str(default)}, **kwargs)


def flag_field() -> Any:
    """Boolean defaulting to false on the database side."""
    return Field(
        default=False,
        sa_column=Column(Boolean, server_default=false(), nullable=False),
    )


__all__ = ["created_at_field", "updated_at_field", "defaulted_field", "flag_field"]
