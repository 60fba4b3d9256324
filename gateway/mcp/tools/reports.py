"""Cross-entity report tools."""

from typing import Any, Dict

from gateway.mcp.server import ToolDefinition, ToolRegistry
from gateway.services.entity_store import EntityStore
from gateway.services.report_service import ReportService

DATE_RANGE_SCHEMA = {
    "type": "object",
    "properties": {
        "start_date": {"type": "string", "description": "First day (YYYY-MM-DD)"},
        "end_date": {"type": "string", "description": "Last day, inclusive (YYYY-MM-DD)"},
    },
    "required": ["start_date", "end_date"],
}


def revenue_summary(arguments: Dict[str, Any], store: EntityStore) -> Dict[str, Any]:
    return ReportService(store).revenue_summary(arguments["start_date"], arguments["end_date"])


def pipeline_summary(arguments: Dict[str, Any], store: EntityStore) -> Dict[str, Any]:
    return ReportService(store).pipeline_summary(arguments.get("assigned_to"))


def team_utilization(arguments: Dict[str, Any], store: EntityStore) -> Dict[str, Any]:
    return ReportService(store).team_utilization(arguments["start_date"], arguments["end_date"])


def project_hours_summary(arguments: Dict[str, Any], store: EntityStore) -> Dict[str, Any]:
    return ReportService(store).project_hours(arguments.get("project_id"), arguments.get("status"))


def register_report_tools(registry: ToolRegistry) -> None:
    registry.register_tools([
        ToolDefinition(
            name="revenue_summary",
            description=(
                "Invoiced, paid and outstanding totals for invoices issued in a date range, "
                "with expenses by category and net cash."
            ),
            input_schema=DATE_RANGE_SCHEMA,
            handler=revenue_summary,
        ),
        ToolDefinition(
            name="pipeline_summary",
            description="Lead counts and estimated value by status, open pipeline value and win rate.",
            input_schema={
                "type": "object",
                "properties": {
                    "assigned_to": {
                        "type": ["string", "integer"],
                        "description": "Only leads assigned to this team member",
                    },
                },
                "required": [],
            },
            handler=pipeline_summary,
        ),
        ToolDefinition(
            name="team_utilization",
            description=(
                "Hours logged per active team member in a date range: total, billable, "
                "billable ratio and utilization of weekly capacity."
            ),
            input_schema=DATE_RANGE_SCHEMA,
            handler=team_utilization,
        ),
        ToolDefinition(
            name="project_hours_summary",
            description="Hours logged against budgeted hours per project, flagging projects over budget.",
            input_schema={
                "type": "object",
                "properties": {
                    "project_id": {"type": ["string", "integer"]},
                    "status": {"type": "string", "description": "Only projects with this status"},
                },
                "required": [],
            },
            handler=project_hours_summary,
        ),
    ])
