"""Social media post model for SQLModel."""
from datetime import date, datetime
from typing import Optional

from sqlmodel import SQLModel, Field

from gateway.models.base import created_at_field, defaulted_field, updated_at_field


class SocialPost(SQLModel, table=True):
    __tablename__ = "social_posts"

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(max_length=200)
    platform: str = defaulted_field("linkedin", max_length=30)  # linkedin, instagram, x
    status: str = defaulted_field("draft", max_length=20)  # draft, scheduled, published
    scheduled_date: Optional[date] = Field(default=None)
    assigned_to: Optional[int] = Field(default=None, foreign_key="team_members.id")
    created_at: Optional[datetime] = created_at_field()
    updated_at: Optional[datetime] = updated_at_field()
