"""
Report Service

Cross-entity summaries built from plain table reads: revenue, sales
pipeline, team utilization and project hours against budget.
"""

import logging
from collections import defaultdict
from datetime import date
from typing import Any, Dict, List, Optional

from gateway.services.entity_store import EntityStore

logger = logging.getLogger(__name__)

OUTSTANDING_INVOICE_STATUSES = ("sent", "overdue")
CLOSED_LEAD_STATUSES = ("won", "lost")
DEFAULT_WEEKLY_CAPACITY = 40


def _number(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def _parse_date(value: Any) -> date:
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _percent(part: float, whole: float) -> Optional[float]:
    if not whole:
        return None
    return round(part / whole * 100, 1)


class ReportService:
    """Read-only reports over one scoped store."""

    def __init__(self, store: EntityStore):
        self.store = store

    def revenue_summary(self, start_date: Any, end_date: Any) -> Dict[str, Any]:
        start, end = _parse_date(start_date), _parse_date(end_date)
        if end < start:
            raise ValueError("end_date must not be before start_date")

        invoices = self.store.table("invoices").select(
            ranges=[("issue_date", "gte", start), ("issue_date", "lte", end)]
        )
        by_status: Dict[str, Dict[str, float]] = defaultdict(lambda: {"count": 0, "total": 0.0})
        for invoice in invoices:
            bucket = by_status[invoice.get("status") or "unknown"]
            bucket["count"] += 1
            bucket["total"] += _number(invoice.get("total"))

        expenses = self.store.table("expenses").select(
            ranges=[("date", "gte", start), ("date", "lte", end)]
        )
        expenses_by_category: Dict[str, float] = defaultdict(float)
        for expense in expenses:
            expenses_by_category[expense.get("category") or "uncategorized"] += _number(expense.get("amount"))

        invoiced_total = sum(bucket["total"] for status, bucket in by_status.items() if status != "void")
        paid_total = by_status["paid"]["total"] if "paid" in by_status else 0.0
        outstanding_total = sum(
            by_status[status]["total"] for status in OUTSTANDING_INVOICE_STATUSES if status in by_status
        )
        expenses_total = sum(expenses_by_category.values())

        return {
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
            "invoice_count": len(invoices),
            "invoiced_total": round(invoiced_total, 2),
            "paid_total": round(paid_total, 2),
            "outstanding_total": round(outstanding_total, 2),
            "by_status": dict(by_status),
            "expenses_total": round(expenses_total, 2),
            "expenses_by_category": dict(expenses_by_category),
            "net_cash": round(paid_total - expenses_total, 2),
        }

    def pipeline_summary(self, assigned_to: Optional[Any] = None) -> Dict[str, Any]:
        where = {"assigned_to": assigned_to} if assigned_to else {}
        leads = self.store.table("leads").select(where)

        by_status: Dict[str, Dict[str, float]] = defaultdict(lambda: {"count": 0, "value": 0.0})
        for lead in leads:
            bucket = by_status[lead.get("status") or "unknown"]
            bucket["count"] += 1
            bucket["value"] += _number(lead.get("estimated_value"))

        won = by_status["won"]["count"] if "won" in by_status else 0
        lost = by_status["lost"]["count"] if "lost" in by_status else 0
        open_buckets = [b for status, b in by_status.items() if status not in CLOSED_LEAD_STATUSES]

        return {
            "assigned_to": assigned_to,
            "lead_count": len(leads),
            "by_status": dict(by_status),
            "open_count": sum(b["count"] for b in open_buckets),
            "open_value": round(sum(b["value"] for b in open_buckets), 2),
            "won_count": won,
            "lost_count": lost,
            "win_rate": _percent(won, won + lost),
        }

    def team_utilization(self, start_date: Any, end_date: Any) -> Dict[str, Any]:
        start, end = _parse_date(start_date), _parse_date(end_date)
        if end < start:
            raise ValueError("end_date must not be before start_date")
        weeks = ((end - start).days + 1) / 7

        entries = self.store.table("time_entries").select(
            ranges=[("date", "gte", start), ("date", "lte", end)]
        )
        members = {m["id"]: m for m in self.store.table("team_members").select({"status": "active"})}

        hours: Dict[Any, Dict[str, float]] = defaultdict(lambda: {"total": 0.0, "billable": 0.0})
        for entry in entries:
            totals = hours[entry.get("team_member_id")]
            totals["total"] += _number(entry.get("hours"))
            if entry.get("billable"):
                totals["billable"] += _number(entry.get("hours"))

        rows: List[Dict[str, Any]] = []
        for member_id in list(members) + [m for m in hours if m not in members]:
            member = members.get(member_id, {})
            totals = hours.get(member_id, {"total": 0.0, "billable": 0.0})
            capacity = _number(member.get("weekly_capacity") or DEFAULT_WEEKLY_CAPACITY) * weeks
            rows.append({
                "team_member_id": member_id,
                "name": member.get("full_name") or "Unknown",
                "total_hours": round(totals["total"], 2),
                "billable_hours": round(totals["billable"], 2),
                "billable_ratio": _percent(totals["billable"], totals["total"]),
                "capacity_hours": round(capacity, 2),
                "capacity_utilization": _percent(totals["total"], capacity),
            })

        total_hours = sum(r["total_hours"] for r in rows)
        billable_hours = sum(r["billable_hours"] for r in rows)
        return {
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
            "total_hours": round(total_hours, 2),
            "billable_hours": round(billable_hours, 2),
            "billable_ratio": _percent(billable_hours, total_hours),
            "members": rows,
        }

    def project_hours(self, project_id: Optional[Any] = None, status: Optional[str] = None) -> Dict[str, Any]:
        where = {k: v for k, v in {"id": project_id, "status": status}.items() if v is not None}
        projects = self.store.table("projects").select(where, order_by="name")
        entry_where = {"project_id": project_id} if project_id is not None else {}
        entries = self.store.table("time_entries").select(entry_where)

        logged: Dict[Any, Dict[str, float]] = defaultdict(lambda: {"total": 0.0, "billable": 0.0})
        for entry in entries:
            totals = logged[entry.get("project_id")]
            totals["total"] += _number(entry.get("hours"))
            if entry.get("billable"):
                totals["billable"] += _number(entry.get("hours"))

        rows = []
        for project in projects:
            totals = logged.get(project["id"], {"total": 0.0, "billable": 0.0})
            hours_logged = round(totals["total"], 2)
            budget = project.get("budget_hours")
            budget = _number(budget) if budget is not None else None
            rows.append({
                "project_id": project["id"],
                "name": project.get("name"),
                "status": project.get("status"),
                "budget_hours": budget,
                "hours_logged": hours_logged,
                "billable_hours": round(totals["billable"], 2),
                "hours_remaining": round(budget - hours_logged, 2) if budget is not None else None,
                "percent_used": _percent(hours_logged, budget) if budget else None,
                "over_budget": bool(budget is not None and hours_logged > budget),
            })

        return {
            "project_count": len(rows),
            "over_budget_count": sum(1 for r in rows if r["over_budget"]),
            "projects": rows,
        }
