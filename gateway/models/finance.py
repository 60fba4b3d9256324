"""Invoices and expenses."""
import datetime as dt
from datetime import date, datetime
from typing import Optional

from sqlmodel import SQLModel, Field

from gateway.models.base import created_at_field, defaulted_field, updated_at_field


class Invoice(SQLModel, table=True):
    __tablename__ = "invoices"

    id: Optional[int] = Field(default=None, primary_key=True)
    invoice_number: str = Field(max_length=50, unique=True)
    account_id: Optional[int] = Field(default=None, foreign_key="accounts.id")
    project_id: Optional[int] = Field(default=None, foreign_key="projects.id")
    status: str = defaulted_field("draft", max_length=20)  # draft, sent, paid, overdue, void
    total: float = defaulted_field(0)
    issue_date: Optional[date] = Field(default=None)
    due_date: Optional[date] = Field(default=None)
    paid_date: Optional[date] = Field(default=None)
    created_at: Optional[datetime] = created_at_field()
    updated_at: Optional[datetime] = updated_at_field()


class Expense(SQLModel, table=True):
    __tablename__ = "expenses"

    id: Optional[int] = Field(default=None, primary_key=True)
    description: str = Field(max_length=500)
    category: Optional[str] = Field(default=None, max_length=50)
    amount: float = defaulted_field(0)
    date: dt.date
    created_at: Optional[datetime] = created_at_field()
    updated_at: Optional[datetime] = updated_at_field()
