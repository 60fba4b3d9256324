"""Tests for the cross-entity reports"""
import pytest

from gateway.services.report_service import ReportService


@pytest.fixture
def reports(store):
    return ReportService(store)


class TestRevenueSummary:
    """Invoices and expenses within a date range"""

    @pytest.fixture(autouse=True)
    def ledger(self, store):
        invoices = store.table("invoices")
        for number, status, total in [
            ("1", "paid", 1000), ("2", "sent", 300), ("3", "overdue", 200), ("4", "void", 50), ("5", "draft", 100),
        ]:
            invoices.create({"invoice_number": number, "status": status, "total": total, "issue_date": "2024-01-10"})
        invoices.create({"invoice_number": "6", "status": "paid", "total": 999, "issue_date": "2024-02-10"})
        store.table("expenses").create({"description": "Hosting", "category": "software", "amount": 150, "date": "2024-01-15"})

    def test_totals(self, reports):
        summary = reports.revenue_summary("2024-01-01", "2024-01-31")
        assert summary["invoice_count"] == 5
        assert summary["invoiced_total"] == 1600
        assert summary["paid_total"] == 1000
        assert summary["outstanding_total"] == 500
        assert summary["expenses_total"] == 150
        assert summary["expenses_by_category"] == {"software": 150}
        assert summary["net_cash"] == 850
        assert summary["by_status"]["void"] == {"count": 1, "total": 50}

    def test_reversed_range(self, reports):
        with pytest.raises(ValueError):
            reports.revenue_summary("2024-02-01", "2024-01-01")


class TestPipelineSummary:
    """Lead pipeline by status"""

    def test_win_rate_and_open_value(self, reports, store, team_member):
        leads = store.table("leads")
        leads.create({"company_name": "A", "status": "new", "estimated_value": 1000, "assigned_to": team_member["id"]})
        leads.create({"company_name": "B", "status": "qualified", "estimated_value": 2000})
        leads.create({"company_name": "C", "status": "won", "estimated_value": 5000, "assigned_to": team_member["id"]})
        leads.create({"company_name": "D", "status": "lost", "estimated_value": 100})

        summary = reports.pipeline_summary()
        assert summary["lead_count"] == 4
        assert summary["open_count"] == 2
        assert summary["open_value"] == 3000
        assert summary["won_count"] == 1
        assert summary["lost_count"] == 1
        assert summary["win_rate"] == 50.0

        mine = reports.pipeline_summary(team_member["id"])
        assert mine["lead_count"] == 2
        assert mine["win_rate"] == 100.0

    def test_blank_status_grouped_as_unknown(self, reports, store):
        store.table("leads").create({"company_name": "E", "status": "", "estimated_value": 300})
        summary = reports.pipeline_summary()
        assert summary["by_status"] == {"unknown": {"count": 1, "value": 300.0}}

    def test_empty_pipeline(self, reports):
        summary = reports.pipeline_summary()
        assert summary["lead_count"] == 0
        assert summary["win_rate"] is None


class TestTeamUtilization:
    """Hours per active member against weekly capacity"""

    def test_capacity_and_billable_ratio(self, reports, store, team_member):
        store.table("team_members").create({"full_name": "Former", "status": "inactive"})
        entries = store.table("time_entries")
        entries.create({"date": "2024-01-01", "hours": 20, "billable": True, "team_member_id": team_member["id"]})
        entries.create({"date": "2024-01-05", "hours": 10, "team_member_id": team_member["id"]})

        report = reports.team_utilization("2024-01-01", "2024-01-07")
        assert report["total_hours"] == 30
        assert [m["name"] for m in report["members"]] == ["Dana Reyes"]
        member = report["members"][0]
        assert member["capacity_hours"] == 40
        assert member["capacity_utilization"] == 75.0
        assert member["billable_ratio"] == 66.7

    def test_default_weekly_capacity(self, reports, store):
        member = store.table("team_members").create({"full_name": "Sam Ortiz", "status": "active", "weekly_capacity": None})
        store.table("time_entries").create({"date": "2024-01-02", "hours": 10, "team_member_id": member["id"]})
        # unassigned hours have no member row
        store.table("time_entries").create({"date": "2024-01-03", "hours": 4})

        report = reports.team_utilization("2024-01-01", "2024-01-14")
        rows = {r["team_member_id"]: r for r in report["members"]}
        assert rows[member["id"]]["capacity_hours"] == 80
        assert rows[member["id"]]["capacity_utilization"] == 12.5
        assert rows[None]["name"] == "Unknown"
        assert rows[None]["capacity_hours"] == 80


class TestProjectHours:
    """Hours logged against budget"""

    def test_over_budget(self, reports, store):
        project = store.table("projects").create({"name": "Rebrand", "budget_hours": 10})
        other = store.table("projects").create({"name": "Audit", "budget_hours": 20})
        entries = store.table("time_entries")
        entries.create({"date": "2024-01-02", "hours": 8, "billable": True, "project_id": project["id"]})
        entries.create({"date": "2024-01-03", "hours": 4, "project_id": project["id"]})
        entries.create({"date": "2024-01-03", "hours": 5, "project_id": other["id"]})

        report = reports.project_hours()
        assert report["project_count"] == 2
        assert report["over_budget_count"] == 1
        rows = {r["name"]: r for r in report["projects"]}
        assert rows["Rebrand"]["hours_logged"] == 12
        assert rows["Rebrand"]["billable_hours"] == 8
        assert rows["Rebrand"]["hours_remaining"] == -2
        assert rows["Rebrand"]["over_budget"] is True
        assert rows["Audit"]["percent_used"] == 25.0

    def test_single_project(self, reports, store):
        project = store.table("projects").create({"name": "Solo"})
        report = reports.project_hours(project_id=project["id"])
        assert report["project_count"] == 1
        assert report["projects"][0]["budget_hours"] is None
        assert report["projects"][0]["percent_used"] is None
