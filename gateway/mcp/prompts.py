"""
MCP Prompts

Parameterised instruction scripts that walk an agent through a sequence of
tool calls. Rendering is plain string interpolation; arguments are not
validated beyond their declaration.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional


@dataclass(frozen=True)
class PromptArgument:
    name: str
    description: str
    required: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "description": self.description, "required": self.required}


@dataclass(frozen=True)
class PromptDefinition:
    """MCP Prompt definition"""
    name: str
    description: str
    arguments: List[PromptArgument] = field(hash=False)
    template: Callable[[Dict[str, str]], str] = field(hash=False, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "arguments": [a.to_dict() for a in self.arguments],
        }

    def render(self, arguments: Optional[Dict[str, Any]] = None) -> str:
        return self.template({k: str(v) for k, v in (arguments or {}).items() if v is not None})


def _arg(args: Dict[str, str], name: str) -> str:
    """Value of an argument, or a placeholder the agent is asked to fill in."""
    return args.get(name) or f"<{name}>"


def weekly_standup(args: Dict[str, str]) -> str:
    member = _arg(args, "team_member_id")
    week = _arg(args, "week_start")
    return f"""Generate a weekly standup report for team member {member} for the week starting {week}. Use these tools:
1. Call filter_tasks with filters {{"assigned_to": "{member}", "status": "completed"}} to get completed tasks
2. Call filter_time_entries with filters {{"team_member_id": "{member}"}} and keep the entries dated within the week
3. Call filter_tasks with filters {{"assigned_to": "{member}", "status": "in_progress"}} to get upcoming work
4. Call calculate_all_kpis with period_start="{week}" and team_member_id="{member}"

Format as a standup with sections: Completed, Hours Summary, In Progress / Upcoming, KPI Highlights."""


def client_briefing(args: Dict[str, str]) -> str:
    account = _arg(args, "account_id")
    return f"""Generate a client briefing for account {account}. Use these tools:
1. Call get_accounts with id="{account}" to get account details
2. Call filter_projects with filters {{"account_id": "{account}"}} to get all projects
3. Call filter_tasks with filters {{"project_id": <id>}} for each active project to get task status
4. Call filter_invoices with filters {{"account_id": "{account}"}} to see billing history
5. Call project_hours_summary with project_id=<id> for each active project

Format as a briefing with sections: Account Overview, Active Projects, Task Status, Billing Summary, Notes/Next Steps."""


def kpi_review(args: Dict[str, str]) -> str:
    start = _arg(args, "start_period")
    end = _arg(args, "end_period")
    member_clause = f' and team_member_id="{args["team_member_id"]}"' if args.get("team_member_id") else ""
    return f"""Generate a KPI performance review for {start} to {end}. Use these tools:
1. Call get_kpi_report with start_period="{start}" and end_period="{end}"{member_clause}
2. Call list_kpi_definitions to understand what each KPI measures
3. Call revenue_summary with start_date="{start}" and end_date="{end}"
4. Call team_utilization with start_date="{start}" and end_date="{end}"

Format as a performance review with sections: KPI Dashboard (table of metrics with values), Revenue Highlights, Utilization, Trends & Insights."""


def pipeline_review(args: Dict[str, str]) -> str:
    if args.get("assigned_to"):
        scope = f"the leads assigned to team member {args['assigned_to']}"
        summary_call = f'Call pipeline_summary with assigned_to="{args["assigned_to"]}"'
        lead_filters = f'{{"assigned_to": "{args["assigned_to"]}", "status": "new"}}'
    else:
        scope = "the whole sales pipeline"
        summary_call = "Call pipeline_summary"
        lead_filters = '{"status": "new"}'
    return f"""Review {scope}. Use these tools:
1. {summary_call} for counts, open value and win rate
2. Call filter_leads with filters {lead_filters} to find leads that still need a first contact
3. Call list_broker_activities with order_by="-created_at" and limit=20 to see recent outreach

Format as a pipeline review with sections: Pipeline Snapshot, Leads Needing Attention, Recent Outreach, Recommended Next Actions."""


def project_health_check(args: Dict[str, str]) -> str:
    project = _arg(args, "project_id")
    return f"""Run a health check on project {project}. Use these tools:
1. Call get_projects with id="{project}" to get the project details and budget
2. Call project_hours_summary with project_id="{project}" to compare hours logged against budget
3. Call filter_tasks with filters {{"project_id": "{project}"}} and flag overdue or blocked tasks
4. Call filter_invoices with filters {{"project_id": "{project}"}} to check billing status

Format as a health check with sections: Status, Budget vs Actual, Task Risks, Billing, Recommendations."""


def get_all_prompts() -> List[PromptDefinition]:
    return [
        PromptDefinition(
            name="weekly_standup",
            description=(
                "Generate a weekly standup report for a team member: tasks completed, "
                "hours logged, upcoming work and KPI highlights"
            ),
            arguments=[
                PromptArgument("team_member_id", "Team member id", required=True),
                PromptArgument("week_start", "Monday date (YYYY-MM-DD)", required=True),
            ],
            template=weekly_standup,
        ),
        PromptDefinition(
            name="client_briefing",
            description="Generate a client briefing: projects, tasks, invoices and hours for an account",
            arguments=[PromptArgument("account_id", "Account id", required=True)],
            template=client_briefing,
        ),
        PromptDefinition(
            name="kpi_review",
            description="Generate a KPI performance review for a period",
            arguments=[
                PromptArgument("start_period", "Start date (YYYY-MM-DD)", required=True),
                PromptArgument("end_period", "End date (YYYY-MM-DD)", required=True),
                PromptArgument("team_member_id", "Optional team member id"),
            ],
            template=kpi_review,
        ),
        PromptDefinition(
            name="pipeline_review",
            description="Review the sales pipeline, optionally for one team member",
            arguments=[PromptArgument("assigned_to", "Optional team member id")],
            template=pipeline_review,
        ),
        PromptDefinition(
            name="project_health_check",
            description="Check a project's budget, task risks and billing",
            arguments=[PromptArgument("project_id", "Project id", required=True)],
            template=project_health_check,
        ),
    ]


def find_prompt(prompts: List[PromptDefinition], name: str) -> Optional[PromptDefinition]:
    return next((p for p in prompts if p.name == name), None)
