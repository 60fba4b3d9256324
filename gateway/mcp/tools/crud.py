"""
Generic CRUD Tools

Six tools per entity table (list, get, filter, create, update, delete),
generated from the ENTITY_TABLES list. Schemas are deliberately generic:
column-level checks are left to the store's own constraints.
"""

from functools import partial
from typing import Any, Dict, List

from gateway.mcp.server import ToolDefinition, ToolRegistry
from gateway.services.entity_store import DEFAULT_LIMIT, DEFAULT_ORDER, ENTITY_TABLES, EntityStore

CRUD_ACTIONS = ("list", "get", "filter", "create", "update", "delete")

ID_SCHEMA = {"type": ["string", "integer"], "description": "Record id"}
ORDER_BY_SCHEMA = {
    "type": "string",
    "description": "Column to sort by; prefix with '-' for descending",
    "default": DEFAULT_ORDER,
}
LIMIT_SCHEMA = {
    "type": "integer",
    "minimum": 1,
    "maximum": 1000,
    "description": "Maximum number of records",
    "default": DEFAULT_LIMIT,
}


def list_records(table: str, arguments: Dict[str, Any], store: EntityStore) -> Dict[str, Any]:
    return store.table(table).list(
        order_by=arguments.get("order_by") or DEFAULT_ORDER,
        limit=arguments.get("limit", DEFAULT_LIMIT),
        offset=arguments.get("offset", 0),
    )


def get_record(table: str, arguments: Dict[str, Any], store: EntityStore) -> Dict[str, Any]:
    return store.table(table).get(arguments["id"])


def filter_records(table: str, arguments: Dict[str, Any], store: EntityStore) -> List[Dict[str, Any]]:
    return store.table(table).filter(
        arguments["filters"],
        order_by=arguments.get("order_by") or DEFAULT_ORDER,
        limit=arguments.get("limit", DEFAULT_LIMIT),
    )


def create_record(table: str, arguments: Dict[str, Any], store: EntityStore) -> Dict[str, Any]:
    return store.table(table).create(arguments["record"])


def update_record(table: str, arguments: Dict[str, Any], store: EntityStore) -> Dict[str, Any]:
    return store.table(table).update(arguments["id"], arguments["updates"])


def delete_record(table: str, arguments: Dict[str, Any], store: EntityStore) -> Dict[str, Any]:
    return store.table(table).delete(arguments["id"])


def crud_tools_for(table: str, label: str) -> List[ToolDefinition]:
    """The six CRUD tool definitions for one table."""
    return [
        ToolDefinition(
            name=f"list_{table}",
            description=(
                f"List {label} records (table: {table}). Sorted newest first by default; "
                "supports order_by, limit and offset. Returns the records and the total count."
            ),
            input_schema={
                "type": "object",
                "properties": {
                    "order_by": ORDER_BY_SCHEMA,
                    "limit": LIMIT_SCHEMA,
                    "offset": {"type": "integer", "minimum": 0, "description": "Records to skip", "default": 0},
                },
                "required": [],
            },
            handler=partial(list_records, table),
        ),
        ToolDefinition(
            name=f"get_{table}",
            description=f"Get a single {label} record by id.",
            input_schema={
                "type": "object",
                "properties": {"id": ID_SCHEMA},
                "required": ["id"],
            },
            handler=partial(get_record, table),
        ),
        ToolDefinition(
            name=f"filter_{table}",
            description=(
                f"Find {label} records where every column in `filters` equals the given value. "
                "Null filter values are ignored."
            ),
            input_schema={
                "type": "object",
                "properties": {
                    "filters": {"type": "object", "description": "Column/value pairs to match exactly"},
                    "order_by": ORDER_BY_SCHEMA,
                    "limit": LIMIT_SCHEMA,
                },
                "required": ["filters"],
            },
            handler=partial(filter_records, table),
        ),
        ToolDefinition(
            name=f"create_{table}",
            description=f"Create a new {label} record. Put the column values in `record`.",
            input_schema={
                "type": "object",
                "properties": {
                    "record": {"type": "object", "description": f"Column values for the new {label}"},
                },
                "required": ["record"],
            },
            handler=partial(create_record, table),
        ),
        ToolDefinition(
            name=f"update_{table}",
            description=f"Update fields of an existing {label} record by id.",
            input_schema={
                "type": "object",
                "properties": {
                    "id": ID_SCHEMA,
                    "updates": {"type": "object", "description": "Columns to change and their new values"},
                },
                "required": ["id", "updates"],
            },
            handler=partial(update_record, table),
        ),
        ToolDefinition(
            name=f"delete_{table}",
            description=f"Delete a {label} record by id.",
            input_schema={
                "type": "object",
                "properties": {"id": ID_SCHEMA},
                "required": ["id"],
            },
            handler=partial(delete_record, table),
        ),
    ]


def register_crud_tools(registry: ToolRegistry) -> None:
    """Register the CRUD tool set of every entity table"""
    for table, label in ENTITY_TABLES:
        registry.register_tools(crud_tools_for(table, label))
