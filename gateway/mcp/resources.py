"""
MCP Resources

Read-only documents an agent can fetch by URI: the live table/column
catalogue and the KPI definition catalogue.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from gateway.errors import StoreError
from gateway.kpi_config import KPI_DEFINITIONS
from gateway.services.entity_store import ENTITY_TABLE_NAMES, EntityStore

logger = logging.getLogger(__name__)

ResourceHandler = Callable[[EntityStore], str]


@dataclass(frozen=True)
class ResourceDefinition:
    """MCP Resource definition"""
    uri: str
    name: str
    description: str
    mime_type: str
    handler: ResourceHandler = field(hash=False, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "uri": self.uri,
            "name": self.name,
            "description": self.description,
            "mimeType": self.mime_type,
        }


def read_table_schema(store: EntityStore) -> str:
    """
    Column catalogue grouped by table.

    Falls back to the bare table names when the store cannot be introspected;
    this resource never fails.
    """
    try:
        return json.dumps({"tables": store.describe_tables()})
    except StoreError as e:
        logger.warning(f"Schema introspection unavailable: {str(e)}")
        return json.dumps({
            "tables": list(ENTITY_TABLE_NAMES),
            "note": "Column detail unavailable: the store could not be introspected",
        })


def read_kpi_definitions(store: EntityStore) -> str:
    return json.dumps([kpi.to_dict() for kpi in KPI_DEFINITIONS])


def get_all_resources() -> List[ResourceDefinition]:
    return [
        ResourceDefinition(
            uri="schema://tables",
            name="Database Tables",
            description="All entity tables with their columns, types and nullability",
            mime_type="application/json",
            handler=read_table_schema,
        ),
        ResourceDefinition(
            uri="config://kpi-definitions",
            name="KPI Definitions",
            description="All KPI slugs, categories, units and calculation sources",
            mime_type="application/json",
            handler=read_kpi_definitions,
        ),
    ]


def find_resource(resources: List[ResourceDefinition], uri: str) -> Optional[ResourceDefinition]:
    """Exact URI match"""
    return next((r for r in resources if r.uri == uri), None)
