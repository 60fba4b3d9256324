"""
KPI Calculation Service

Computes auto-derived KPI values from raw table aggregates over a
seven-day window, and records KPI entries (actuals, targets, bonuses).
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional, Union

from gateway.kpi_config import KPI_DEFINITIONS, KpiDefinition, get_kpi_def, week_window
from gateway.services.entity_store import EntityStore

logger = logging.getLogger(__name__)

ENTRY_TABLE = "kpi_entries"
_OPTIONAL_ENTRY_FIELDS = ("target_value", "bonus_amount", "notes")


class KpiService:
    """KPI calculations and entry bookkeeping against one scoped store."""

    def __init__(self, store: EntityStore):
        self.store = store

    def calculate(self, kpi: KpiDefinition, period_start: Union[str, date],
                  team_member_id: Optional[Any] = None) -> Optional[float]:
        """
        Aggregate value of one auto KPI for the seven days starting at period_start.

        Returns None for manual KPIs. The member filter only applies to
        per-member KPIs that name a member column.
        """
        if not kpi.is_auto:
            return None

        source = kpi.source
        where: Dict[str, Any] = {k: v for k, v in source.filter.items() if v is not None}
        if team_member_id and kpi.per_member and kpi.member_field:
            where[kpi.member_field] = team_member_id

        ranges = []
        if source.date_field:
            start, end = week_window(period_start)
            ranges = [(source.date_field, "gte", start), (source.date_field, "lt", end)]

        table = self.store.table(source.table)
        if source.aggregate == "sum" and source.field:
            return table.aggregate("sum", source.field, where=where, ranges=ranges)
        return table.aggregate("count", where=where, ranges=ranges)

    def calculate_by_slug(self, slug: str, period_start: Union[str, date],
                          team_member_id: Optional[Any] = None) -> Optional[float]:
        kpi = get_kpi_def(slug)
        if kpi is None:
            raise ValueError(f"Unknown KPI slug: {slug}")
        return self.calculate(kpi, period_start, team_member_id)

    def calculate_all(self, period_start: Union[str, date],
                      team_member_id: Optional[Any] = None) -> Dict[str, Dict[str, Any]]:
        """Every auto KPI for the period; a failing KPI is reported with a null value and its error."""
        kpis = [kpi for kpi in KPI_DEFINITIONS if kpi.is_auto]
        if team_member_id:
            kpis = [kpi for kpi in kpis if kpi.per_member]

        results: Dict[str, Dict[str, Any]] = {}
        for kpi in kpis:
            try:
                value = self.calculate(kpi, period_start, team_member_id)
                results[kpi.slug] = {"name": kpi.name, "value": value, "unit": kpi.unit}
            except Exception as e:
                logger.error(f"Error calculating KPI {kpi.slug}: {str(e)}")
                results[kpi.slug] = {"name": kpi.name, "value": None, "error": str(e)}
        return results

    def save_entries(self, entries: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """
        Upsert KPI entries keyed by (slug, month, team_member_id).

        An existing row is updated in place; otherwise a new row is inserted
        with actual_value defaulting to 0.
        """
        table = self.store.table(ENTRY_TABLE)
        results = []

        for entry in entries:
            if not entry.get("slug") or not entry.get("month"):
                raise ValueError("Each KPI entry needs a slug and a month")

            team_member_id = entry.get("team_member_id") or None
            match = {"slug": entry["slug"], "month": entry["month"], "team_member_id": team_member_id}
            existing = table.select(match, limit=1)

            if existing:
                updates = {"actual_value": entry.get("actual_value")} if "actual_value" in entry else {}
                updates.update({k: entry[k] for k in _OPTIONAL_ENTRY_FIELDS if k in entry})
                if updates:
                    results.append(table.update(existing[0]["id"], updates))
                else:
                    results.append(existing[0])
            else:
                record = {
                    "slug": entry["slug"],
                    "month": entry["month"],
                    "actual_value": entry.get("actual_value") if entry.get("actual_value") is not None else 0,
                    "team_member_id": team_member_id,
                }
                record.update({k: entry.get(k) for k in _OPTIONAL_ENTRY_FIELDS})
                results.append(table.create(record))

        logger.info(f"Saved {len(results)} KPI entries")
        return results

    def fetch_entries(self, start_period: Union[str, date], end_period: Union[str, date],
                      team_member_id: Optional[Any] = None) -> List[Dict[str, Any]]:
        """Entries between two periods (inclusive), member-level or company-level."""
        return self.store.table(ENTRY_TABLE).select(
            {"team_member_id": team_member_id or None},
            ranges=[("month", "gte", start_period), ("month", "lte", end_period)],
            order_by="month",
        )

    def report(self, start_period: Union[str, date], end_period: Union[str, date],
               team_member_id: Optional[Any] = None) -> Dict[str, Any]:
        """Entries annotated with their KPI name and unit, grouped by slug."""
        entries = self.fetch_entries(start_period, end_period, team_member_id)
        by_slug: Dict[str, Dict[str, Any]] = {}
        for entry in entries:
            kpi = get_kpi_def(entry["slug"])
            group = by_slug.setdefault(entry["slug"], {
                "slug": entry["slug"],
                "name": kpi.name if kpi else entry["slug"],
                "unit": kpi.unit if kpi else None,
                "entries": [],
            })
            group["entries"].append(entry)

        return {
            "start_period": str(start_period),
            "end_period": str(end_period),
            "team_member_id": team_member_id,
            "entry_count": len(entries),
            "kpis": list(by_slug.values()),
        }
