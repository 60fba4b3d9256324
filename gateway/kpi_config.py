"""
KPI catalogue.

The one authoritative list of KPI definitions. The calculation engine, the
KPI tools and the `config://kpi-definitions` resource all read from here.
"""

import dataclasses
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple, Union

KPI_CATEGORIES: List[Dict[str, str]] = [
    {"value": "all", "label": "All"},
    {"value": "revenue", "label": "Revenue"},
    {"value": "leads", "label": "Leads"},
    {"value": "social", "label": "Social"},
    {"value": "operations", "label": "Operations"},
]


@dataclass(frozen=True)
class KpiSource:
    """Where an auto KPI comes from: one table, a static filter and an aggregate."""
    table: str
    aggregate: str  # count, sum
    filter: Dict[str, Any] = dataclasses.field(default_factory=dict)
    field: Optional[str] = None  # required when aggregate == "sum"
    date_field: Optional[str] = None  # enables week windowing

    def to_dict(self) -> Dict[str, Any]:
        source = {"table": self.table, "filter": dict(self.filter), "aggregate": self.aggregate}
        if self.field:
            source["field"] = self.field
        source["dateField"] = self.date_field
        return source


@dataclass(frozen=True)
class KpiDefinition:
    slug: str
    name: str
    category: str
    unit: str  # currency, number, hours, percentage
    calc_type: str  # auto, manual
    per_member: bool = False
    member_field: Optional[str] = None
    source: Optional[KpiSource] = None

    @property
    def is_auto(self) -> bool:
        return self.calc_type == "auto" and self.source is not None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "slug": self.slug,
            "name": self.name,
            "category": self.category,
            "unit": self.unit,
            "calcType": self.calc_type,
            "perMember": self.per_member,
        }
        if self.member_field:
            data["memberField"] = self.member_field
        if self.source:
            data["source"] = self.source.to_dict()
        return data


KPI_DEFINITIONS: Tuple[KpiDefinition, ...] = (
    # Revenue
    KpiDefinition(
        slug="revenue_paid",
        name="Revenue (Paid)",
        category="revenue",
        unit="currency",
        calc_type="auto",
        source=KpiSource(table="invoices", filter={"status": "paid"}, aggregate="sum", field="total", date_field="issue_date"),
    ),
    KpiDefinition(
        slug="revenue_invoiced",
        name="Revenue (Invoiced)",
        category="revenue",
        unit="currency",
        calc_type="auto",
        source=KpiSource(table="invoices", aggregate="sum", field="total", date_field="issue_date"),
    ),
    # Leads
    KpiDefinition(
        slug="new_leads",
        name="New Leads",
        category="leads",
        unit="number",
        calc_type="auto",
        per_member=True,
        member_field="assigned_to",
        source=KpiSource(table="leads", aggregate="count", date_field="created_at"),
    ),
    KpiDefinition(
        slug="won_deals",
        name="Won Deals",
        category="leads",
        unit="number",
        calc_type="auto",
        per_member=True,
        member_field="assigned_to",
        source=KpiSource(table="leads", filter={"status": "won"}, aggregate="count", date_field="updated_at"),
    ),
    KpiDefinition(
        slug="brokers_contacted",
        name="Broker Outreach",
        category="leads",
        unit="number",
        calc_type="auto",
        per_member=True,
        member_field="team_member_id",
        source=KpiSource(table="broker_activities", aggregate="count", date_field="created_at"),
    ),
    # Social
    KpiDefinition(
        slug="social_posts",
        name="Social Posts",
        category="social",
        unit="number",
        calc_type="auto",
        per_member=True,
        member_field="assigned_to",
        source=KpiSource(table="social_posts", filter={"status": "published"}, aggregate="count", date_field="scheduled_date"),
    ),
    KpiDefinition(slug="ig_followers", name="Instagram Followers", category="social", unit="number", calc_type="manual"),
    KpiDefinition(slug="li_followers", name="LinkedIn Followers", category="social", unit="number", calc_type="manual"),
    # Operations
    KpiDefinition(
        slug="hours_worked",
        name="Hours Worked",
        category="operations",
        unit="hours",
        calc_type="auto",
        per_member=True,
        member_field="team_member_id",
        source=KpiSource(table="time_entries", aggregate="sum", field="hours", date_field="date"),
    ),
    KpiDefinition(
        slug="billable_hours",
        name="Billable Hours",
        category="operations",
        unit="hours",
        calc_type="auto",
        per_member=True,
        member_field="team_member_id",
        source=KpiSource(table="time_entries", filter={"billable": True}, aggregate="sum", field="hours", date_field="date"),
    ),
    KpiDefinition(
        slug="tasks_completed",
        name="Tasks Completed",
        category="operations",
        unit="number",
        calc_type="auto",
        per_member=True,
        member_field="assigned_to",
        source=KpiSource(table="tasks", filter={"status": "completed"}, aggregate="count", date_field="updated_at"),
    ),
    KpiDefinition(
        slug="active_projects",
        name="Active Projects",
        category="operations",
        unit="number",
        calc_type="auto",
        source=KpiSource(table="projects", filter={"status": "active"}, aggregate="count"),
    ),
)

_BY_SLUG: Dict[str, KpiDefinition] = {kpi.slug: kpi for kpi in KPI_DEFINITIONS}


def get_kpi_def(slug: str) -> Optional[KpiDefinition]:
    return _BY_SLUG.get(slug)


def kpis_by_category(category: str = "all") -> List[KpiDefinition]:
    if category == "all":
        return list(KPI_DEFINITIONS)
    return [kpi for kpi in KPI_DEFINITIONS if kpi.category == category]


def per_member_kpis() -> List[KpiDefinition]:
    return [kpi for kpi in KPI_DEFINITIONS if kpi.per_member]


def _as_date(value: Union[str, date]) -> date:
    if isinstance(value, str):
        return date.fromisoformat(value[:10])
    if isinstance(value, datetime):
        return value.date()
    return value


def week_window(period_start: Union[str, date]) -> Tuple[date, date]:
    """[period_start, period_start + 7 days) window; the start is used as given."""
    start = _as_date(period_start)
    return start, start + timedelta(days=7)
