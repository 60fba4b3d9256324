"""Team, projects, tasks and time tracking tables."""
import datetime as dt
from datetime import date, datetime
from typing import Optional

from sqlmodel import SQLModel, Field

from gateway.models.base import created_at_field, defaulted_field, flag_field, updated_at_field


class TeamMember(SQLModel, table=True):
    __tablename__ = "team_members"

    id: Optional[int] = Field(default=None, primary_key=True)
    full_name: str = Field(max_length=200)
    email: Optional[str] = Field(default=None, max_length=200)
    role: Optional[str] = Field(default=None, max_length=100)
    hourly_rate: Optional[float] = Field(default=None)
    weekly_capacity: Optional[float] = defaulted_field(40)
    status: str = defaulted_field("active", max_length=20)
    user_id: Optional[str] = Field(default=None, max_length=100)  # auth user owning this profile
    created_at: Optional[datetime] = created_at_field()
    updated_at: Optional[datetime] = updated_at_field()


class Project(SQLModel, table=True):
    __tablename__ = "projects"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=200)
    account_id: Optional[int] = Field(default=None, foreign_key="accounts.id")
    status: str = defaulted_field("active", max_length=20)  # active, on_hold, completed, cancelled
    budget_hours: Optional[float] = Field(default=None)
    budget_amount: Optional[float] = Field(default=None)
    start_date: Optional[date] = Field(default=None)
    end_date: Optional[date] = Field(default=None)
    created_at: Optional[datetime] = created_at_field()
    updated_at: Optional[datetime] = updated_at_field()


class Task(SQLModel, table=True):
    __tablename__ = "tasks"

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(max_length=200, min_length=1)
    description: Optional[str] = Field(default=None)
    project_id: Optional[int] = Field(default=None, foreign_key="projects.id")
    assigned_to: Optional[int] = Field(default=None, foreign_key="team_members.id")
    status: str = defaulted_field("todo", max_length=20)  # todo, in_progress, completed
    priority: str = defaulted_field("medium", max_length=20)  # high, medium, low
    due_date: Optional[date] = Field(default=None)
    created_at: Optional[datetime] = created_at_field()
    updated_at: Optional[datetime] = updated_at_field()


class TimeEntry(SQLModel, table=True):
    __tablename__ = "time_entries"

    id: Optional[int] = Field(default=None, primary_key=True)
    team_member_id: Optional[int] = Field(default=None, foreign_key="team_members.id")
    project_id: Optional[int] = Field(default=None, foreign_key="projects.id")
    task_id: Optional[int] = Field(default=None, foreign_key="tasks.id")
    date: dt.date
    hours: float = defaulted_field(0)
    billable: bool = flag_field()
    description: Optional[str] = Field(default=None)
    created_at: Optional[datetime] = created_at_field()
    updated_at: Optional[datetime] = updated_at_field()
