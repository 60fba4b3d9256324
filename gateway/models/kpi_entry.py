"""KPI entry model for SQLModel."""
from datetime import date, datetime
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field

from gateway.models.base import created_at_field, defaulted_field, updated_at_field


class KpiEntry(SQLModel, table=True):
    """Recorded actual/target value of one KPI for one period (week start)."""
    __tablename__ = "kpi_entries"
    __table_args__ = (UniqueConstraint("slug", "month", "team_member_id"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    slug: str = Field(max_length=50, index=True)
    month: date  # period start; weekly periods use the Monday
    actual_value: float = defaulted_field(0)
    target_value: Optional[float] = Field(default=None)
    bonus_amount: Optional[float] = Field(default=None)
    notes: Optional[str] = Field(default=None)
    team_member_id: Optional[int] = Field(default=None, foreign_key="team_members.id")
    created_at: Optional[datetime] = created_at_field()
    updated_at: Optional[datetime] = updated_at_field()
