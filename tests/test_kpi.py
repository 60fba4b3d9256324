"""Tests for the KPI catalogue, calculation engine and KPI tools"""
import asyncio
import json
from datetime import date

import pytest

from gateway.kpi_config import KPI_DEFINITIONS, get_kpi_def, kpis_by_category, per_member_kpis, week_window
from gateway.mcp.server import build_registry
from gateway.services.kpi_service import KpiService


@pytest.fixture
def kpis(store):
    return KpiService(store)


@pytest.fixture
def week_of_hours(store, team_member):
    entries = store.table("time_entries")
    entries.create({"date": "2024-01-01", "hours": 3, "billable": True, "team_member_id": team_member["id"]})
    entries.create({"date": "2024-01-07", "hours": 2.5, "team_member_id": team_member["id"]})
    entries.create({"date": "2024-01-03", "hours": 4, "billable": True})
    # outside the week
    entries.create({"date": "2024-01-08", "hours": 8})
    entries.create({"date": "2023-12-31", "hours": 1})
    return team_member


class TestCatalogue:
    """KPI definitions and week helpers"""

    def test_twelve_unique_slugs(self):
        slugs = [kpi.slug for kpi in KPI_DEFINITIONS]
        assert len(slugs) == 12
        assert len(set(slugs)) == 12

    def test_auto_kpis_have_sources(self):
        for kpi in KPI_DEFINITIONS:
            assert kpi.is_auto == (kpi.calc_type == "auto")
            if kpi.source and kpi.source.aggregate == "sum":
                assert kpi.source.field

    def test_lookup_and_categories(self):
        assert get_kpi_def("hours_worked").unit == "hours"
        assert get_kpi_def("nope") is None
        assert {k.slug for k in kpis_by_category("revenue")} == {"revenue_paid", "revenue_invoiced"}
        assert len(kpis_by_category("all")) == 12
        assert all(k.per_member for k in per_member_kpis())

    def test_week_window_starts_as_given(self):
        assert week_window("2024-01-01") == (date(2024, 1, 1), date(2024, 1, 8))
        assert week_window(date(2024, 1, 3)) == (date(2024, 1, 3), date(2024, 1, 10))

    def test_to_dict_is_camel_case(self):
        data = get_kpi_def("hours_worked").to_dict()
        assert data["calcType"] == "auto"
        assert data["perMember"] is True
        assert data["memberField"] == "team_member_id"
        assert data["source"]["dateField"] == "date"
        manual = get_kpi_def("ig_followers").to_dict()
        assert "source" not in manual
        assert "memberField" not in manual


class TestCalculation:
    """Aggregates over the seven days from period_start"""

    def test_hours_worked_week(self, kpis, week_of_hours):
        """Sums time_entries.hours with date in [2024-01-01, 2024-01-08)"""
        assert kpis.calculate_by_slug("hours_worked", "2024-01-01") == 9.5

    def test_hours_worked_for_member(self, kpis, week_of_hours):
        assert kpis.calculate_by_slug("hours_worked", "2024-01-01", week_of_hours["id"]) == 5.5

    def test_mid_week_start_is_not_realigned(self, kpis, week_of_hours):
        """2024-01-03 covers Jan 3 to Jan 9: 4 + 2.5 + 8"""
        assert kpis.calculate_by_slug("hours_worked", "2024-01-03") == 14.5

    def test_billable_hours(self, kpis, week_of_hours):
        assert kpis.calculate_by_slug("billable_hours", "2024-01-01") == 7

    def test_revenue_paid(self, kpis, store):
        invoices = store.table("invoices")
        invoices.create({"invoice_number": "A", "status": "paid", "total": 1000, "issue_date": "2024-01-03"})
        invoices.create({"invoice_number": "B", "status": "paid", "total": 250, "issue_date": "2024-01-07"})
        invoices.create({"invoice_number": "C", "status": "sent", "total": 400, "issue_date": "2024-01-04"})
        invoices.create({"invoice_number": "D", "status": "paid", "total": 900, "issue_date": "2024-01-09"})
        assert kpis.calculate_by_slug("revenue_paid", "2024-01-01") == 1250
        assert kpis.calculate_by_slug("revenue_invoiced", "2024-01-01") == 1650

    def test_count_without_date_field(self, kpis, store):
        projects = store.table("projects")
        projects.create({"name": "One", "status": "active"})
        projects.create({"name": "Two", "status": "completed"})
        assert kpis.calculate_by_slug("active_projects", "2024-01-01") == 1

    def test_manual_kpi_is_none(self, kpis):
        assert kpis.calculate_by_slug("ig_followers", "2024-01-01") is None

    def test_unknown_slug(self, kpis):
        with pytest.raises(ValueError):
            kpis.calculate_by_slug("nope", "2024-01-01")

    def test_calculate_all_company(self, kpis, week_of_hours):
        results = kpis.calculate_all("2024-01-01")
        assert set(results) == {k.slug for k in KPI_DEFINITIONS if k.is_auto}
        assert results["hours_worked"] == {"name": "Hours Worked", "value": 9.5, "unit": "hours"}

    def test_calculate_all_member_only_per_member(self, kpis, week_of_hours):
        results = kpis.calculate_all("2024-01-01", week_of_hours["id"])
        assert "revenue_paid" not in results
        assert "active_projects" not in results
        assert results["hours_worked"]["value"] == 5.5


class TestEntries:
    """save_entries and report"""

    def test_insert_defaults_actual_value(self, kpis):
        saved = kpis.save_entries([{"slug": "new_leads", "month": "2024-01-01"}])
        assert saved[0]["actual_value"] == 0
        assert saved[0]["team_member_id"] is None

    def test_update_matching_entry(self, kpis, store):
        first = kpis.save_entries([{"slug": "ig_followers", "month": "2024-01-01", "actual_value": 120}])[0]
        second = kpis.save_entries([
            {"slug": "ig_followers", "month": "2024-01-01", "actual_value": 150, "notes": "campaign"}
        ])[0]
        assert second["id"] == first["id"]
        assert second["actual_value"] == 150
        assert second["notes"] == "campaign"
        assert store.table("kpi_entries").list()["total"] == 1

    def test_member_entry_is_separate(self, kpis, team_member, store):
        kpis.save_entries([{"slug": "hours_worked", "month": "2024-01-01", "actual_value": 30}])
        kpis.save_entries([{
            "slug": "hours_worked", "month": "2024-01-01", "actual_value": 12,
            "team_member_id": team_member["id"],
        }])
        assert store.table("kpi_entries").list()["total"] == 2

    def test_report_groups_by_slug(self, kpis):
        kpis.save_entries([
            {"slug": "ig_followers", "month": "2024-01-01", "actual_value": 100},
            {"slug": "ig_followers", "month": "2024-01-08", "actual_value": 110},
            {"slug": "li_followers", "month": "2024-01-08", "actual_value": 50},
            {"slug": "li_followers", "month": "2024-02-05", "actual_value": 60},
        ])
        report = kpis.report("2024-01-01", "2024-01-31")
        assert report["entry_count"] == 3
        groups = {g["slug"]: g for g in report["kpis"]}
        assert [e["actual_value"] for e in groups["ig_followers"]["entries"]] == [100, 110]
        assert groups["li_followers"]["name"] == "LinkedIn Followers"


class TestKpiTools:
    """KPI tools through the registry"""

    @pytest.fixture(scope="class")
    def registry(self):
        return build_registry()

    def call(self, registry, store, name, arguments):
        result = asyncio.run(registry.invoke_tool(name, arguments, store))
        return result, json.loads(result.text) if not result.is_error else None

    def test_calculate_kpi(self, registry, store, week_of_hours):
        result, payload = self.call(registry, store, "calculate_kpi",
                                    {"slug": "hours_worked", "period_start": "2024-01-01"})
        assert not result.is_error
        assert payload["value"] == 9.5
        assert payload["period_start"] == "2024-01-01"
        assert payload["period_end"] == "2024-01-08"

    def test_calculate_kpi_keeps_period_start(self, registry, store, week_of_hours):
        _, payload = self.call(registry, store, "calculate_kpi",
                               {"slug": "hours_worked", "period_start": "2024-01-03"})
        assert payload["period_start"] == "2024-01-03"
        assert payload["period_end"] == "2024-01-10"
        assert payload["value"] == 14.5

    def test_calculate_kpi_unknown_slug(self, registry, store):
        result, _ = self.call(registry, store, "calculate_kpi", {"slug": "nope", "period_start": "2024-01-01"})
        assert result.is_error

    def test_save_kpi_entries_rejects_unknown_slug(self, registry, store):
        result, _ = self.call(registry, store, "save_kpi_entries",
                              {"entries": [{"slug": "nope", "month": "2024-01-01"}]})
        assert result.is_error
        assert "nope" in result.text

    def test_list_kpi_definitions_by_category(self, registry, store):
        _, payload = self.call(registry, store, "list_kpi_definitions", {"category": "social"})
        assert {d["slug"] for d in payload["definitions"]} == {"social_posts", "ig_followers", "li_followers"}
