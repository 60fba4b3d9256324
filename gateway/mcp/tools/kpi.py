"""
KPI Tools

Calculate auto KPIs for a week, record KPI entries, fetch KPI reports and
list the KPI catalogue.
"""

from typing import Any, Dict

from gateway.kpi_config import KPI_CATEGORIES, KPI_DEFINITIONS, get_kpi_def, kpis_by_category, week_window
from gateway.mcp.base_tool import MCPToolError
from gateway.mcp.server import ToolDefinition, ToolRegistry
from gateway.services.entity_store import EntityStore
from gateway.services.kpi_service import KpiService

MEMBER_ID_SCHEMA = {
    "type": ["string", "integer"],
    "description": "Team member id; restricts per-member KPIs to that member",
}
PERIOD_SCHEMA = {
    "type": "string",
    "description": "First day of the seven-day period (YYYY-MM-DD)",
}


def calculate_kpi(arguments: Dict[str, Any], store: EntityStore) -> Dict[str, Any]:
    kpi = get_kpi_def(arguments["slug"])
    if kpi is None:
        raise MCPToolError(code="NOT_FOUND", message=f"Unknown KPI slug: {arguments['slug']}")

    start, end = week_window(arguments["period_start"])
    team_member_id = arguments.get("team_member_id")
    value = KpiService(store).calculate(kpi, start, team_member_id)
    return {
        "slug": kpi.slug,
        "name": kpi.name,
        "unit": kpi.unit,
        "calcType": kpi.calc_type,
        "period_start": start.isoformat(),
        "period_end": end.isoformat(),
        "team_member_id": team_member_id,
        "value": value,
    }


def calculate_all_kpis(arguments: Dict[str, Any], store: EntityStore) -> Dict[str, Any]:
    start, end = week_window(arguments["period_start"])
    team_member_id = arguments.get("team_member_id")
    return {
        "period_start": start.isoformat(),
        "period_end": end.isoformat(),
        "team_member_id": team_member_id,
        "results": KpiService(store).calculate_all(start, team_member_id),
    }


def save_kpi_entries(arguments: Dict[str, Any], store: EntityStore) -> Dict[str, Any]:
    unknown = sorted({e["slug"] for e in arguments["entries"] if get_kpi_def(e["slug"]) is None})
    if unknown:
        raise MCPToolError(code="VALIDATION_ERROR", message=f"Unknown KPI slug(s): {', '.join(unknown)}")
    saved = KpiService(store).save_entries(arguments["entries"])
    return {"saved": len(saved), "entries": saved}


def get_kpi_report(arguments: Dict[str, Any], store: EntityStore) -> Dict[str, Any]:
    return KpiService(store).report(
        arguments["start_period"],
        arguments["end_period"],
        arguments.get("team_member_id"),
    )


def list_kpi_definitions(arguments: Dict[str, Any], store: EntityStore) -> Dict[str, Any]:
    category = arguments.get("category") or "all"
    return {
        "categories": KPI_CATEGORIES,
        "definitions": [kpi.to_dict() for kpi in kpis_by_category(category)],
    }


def register_kpi_tools(registry: ToolRegistry) -> None:
    slugs = [kpi.slug for kpi in KPI_DEFINITIONS]
    registry.register_tools([
        ToolDefinition(
            name="calculate_kpi",
            description=(
                "Calculate one auto KPI for the seven days starting at period_start from the live data. "
                "Manual KPIs return a null value."
            ),
            input_schema={
                "type": "object",
                "properties": {
                    "slug": {"type": "string", "enum": slugs, "description": "KPI slug"},
                    "period_start": PERIOD_SCHEMA,
                    "team_member_id": MEMBER_ID_SCHEMA,
                },
                "required": ["slug", "period_start"],
            },
            handler=calculate_kpi,
        ),
        ToolDefinition(
            name="calculate_all_kpis",
            description=(
                "Calculate every auto KPI for a week. With team_member_id only per-member KPIs "
                "are included. KPIs that fail to calculate are returned as null."
            ),
            input_schema={
                "type": "object",
                "properties": {"period_start": PERIOD_SCHEMA, "team_member_id": MEMBER_ID_SCHEMA},
                "required": ["period_start"],
            },
            handler=calculate_all_kpis,
        ),
        ToolDefinition(
            name="save_kpi_entries",
            description=(
                "Create or update KPI entries. An entry matching slug, month (period start) and "
                "team_member_id is updated; otherwise a new entry is created."
            ),
            input_schema={
                "type": "object",
                "properties": {
                    "entries": {
                        "type": "array",
                        "minItems": 1,
                        "items": {
                            "type": "object",
                            "properties": {
                                "slug": {"type": "string"},
                                "month": {"type": "string", "description": "Period start date (YYYY-MM-DD)"},
                                "actual_value": {"type": ["number", "null"]},
                                "target_value": {"type": ["number", "null"]},
                                "bonus_amount": {"type": ["number", "null"]},
                                "notes": {"type": ["string", "null"]},
                                "team_member_id": {"type": ["string", "integer", "null"]},
                            },
                            "required": ["slug", "month"],
                        },
                    },
                },
                "required": ["entries"],
            },
            handler=save_kpi_entries,
        ),
        ToolDefinition(
            name="get_kpi_report",
            description=(
                "Fetch recorded KPI entries between two periods (inclusive), grouped by KPI. "
                "Without team_member_id, company-level entries are returned."
            ),
            input_schema={
                "type": "object",
                "properties": {
                    "start_period": {"type": "string", "description": "First period (YYYY-MM-DD)"},
                    "end_period": {"type": "string", "description": "Last period (YYYY-MM-DD)"},
                    "team_member_id": MEMBER_ID_SCHEMA,
                },
                "required": ["start_period", "end_period"],
            },
            handler=get_kpi_report,
        ),
        ToolDefinition(
            name="list_kpi_definitions",
            description="List the KPI catalogue: slugs, units, categories and how auto KPIs are calculated.",
            input_schema={
                "type": "object",
                "properties": {
                    "category": {
                        "type": "string",
                        "enum": [c["value"] for c in KPI_CATEGORIES],
                        "default": "all",
                    },
                },
                "required": [],
            },
            handler=list_kpi_definitions,
        ),
    ])
