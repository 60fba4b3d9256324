"""Notification model for SQLModel."""
from datetime import datetime
from typing import Optional

from sqlmodel import SQLModel, Field

from gateway.models.base import created_at_field, defaulted_field, flag_field


class Notification(SQLModel, table=True):
    """In-app notification; e-mail delivery is triggered by the store."""
    __tablename__ = "notifications"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(max_length=100, index=True)
    type: str = defaulted_field("info", max_length=50)  # info, task_assigned, invoice_overdue, ...
    title: str = Field(max_length=200)
    message: Optional[str] = Field(default=None)
    link: Optional[str] = Field(default=None)
    read: bool = flag_field()
    created_at: Optional[datetime] = created_at_field()
