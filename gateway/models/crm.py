"""Accounts, contacts and sales pipeline tables."""
from datetime import datetime
from typing import Optional

from sqlmodel import SQLModel, Field

from gateway.models.base import created_at_field, defaulted_field, updated_at_field


class Account(SQLModel, table=True):
    """Client organisation."""
    __tablename__ = "accounts"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=200)
    industry: Optional[str] = Field(default=None, max_length=100)
    status: str = defaulted_field("active", max_length=20)  # active, inactive, prospect
    website: Optional[str] = Field(default=None)
    created_at: Optional[datetime] = created_at_field()
    updated_at: Optional[datetime] = updated_at_field()


class Contact(SQLModel, table=True):
    """Person attached to an account."""
    __tablename__ = "contacts"

    id: Optional[int] = Field(default=None, primary_key=True)
    account_id: Optional[int] = Field(default=None, foreign_key="accounts.id")
    first_name: str = Field(max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    email: Optional[str] = Field(default=None, max_length=200)
    phone: Optional[str] = Field(default=None, max_length=50)
    created_at: Optional[datetime] = created_at_field()
    updated_at: Optional[datetime] = updated_at_field()


class Lead(SQLModel, table=True):
    """Sales opportunity moving through the pipeline."""
    __tablename__ = "leads"

    id: Optional[int] = Field(default=None, primary_key=True)
    company_name: str = Field(max_length=200)
    contact_name: Optional[str] = Field(default=None, max_length=200)
    status: str = defaulted_field("new", max_length=20)  # new, contacted, qualified, proposal, won, lost
    source: Optional[str] = Field(default=None, max_length=50)
    estimated_value: Optional[float] = Field(default=None)
    assigned_to: Optional[int] = Field(default=None, foreign_key="team_members.id")
    created_at: Optional[datetime] = created_at_field()
    updated_at: Optional[datetime] = updated_at_field()


class BrokerActivity(SQLModel, table=True):
    """Outreach touchpoint with a referral broker."""
    __tablename__ = "broker_activities"

    id: Optional[int] = Field(default=None, primary_key=True)
    broker_id: Optional[int] = Field(default=None)
    team_member_id: Optional[int] = Field(default=None, foreign_key="team_members.id")
    activity_type: str = defaulted_field("call", max_length=50)
    notes: Optional[str] = Field(default=None)
    created_at: Optional[datetime] = created_at_field()
    updated_at: Optional[datetime] = updated_at_field()
