"""Development schema for the tables the gateway's own logic relies on."""

from gateway.models.crm import Account, BrokerActivity, Contact, Lead
from gateway.models.work import Project, Task, TeamMember, TimeEntry
from gateway.models.finance import Expense, Invoice
from gateway.models.social_post import SocialPost
from gateway.models.kpi_entry import KpiEntry
from gateway.models.notification import Notification
from gateway.models.api_key import McpApiKey

__all__ = [
    "Account",
    "BrokerActivity",
    "Contact",
    "Expense",
    "Invoice",
    "KpiEntry",
    "Lead",
    "McpApiKey",
    "Notification",
    "Project",
    "SocialPost",
    "Task",
    "TeamMember",
    "TimeEntry",
]
