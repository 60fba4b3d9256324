"""
Notification Tools

Send in-app notifications and acknowledge them. user_id defaults to the
signed-in caller when the request was authenticated with a bearer token.
"""

from typing import Any, Dict

from gateway.mcp.base_tool import require_user_id
from gateway.mcp.server import ToolDefinition, ToolRegistry
from gateway.services.entity_store import EntityStore
from gateway.services.notification_service import NotificationService

NOTIFICATION_TYPES = ["info", "success", "warning", "error", "task", "reminder"]

USER_ID_SCHEMA = {
    "type": "string",
    "description": "Recipient user id; defaults to the signed-in caller",
}


def send_notification(arguments: Dict[str, Any], store: EntityStore) -> Dict[str, Any]:
    return NotificationService(store).send_notification(
        user_id=require_user_id(arguments, store.user_id),
        title=arguments["title"],
        message=arguments.get("message"),
        type=arguments.get("type") or "info",
        link=arguments.get("link"),
    )


def list_unread_notifications(arguments: Dict[str, Any], store: EntityStore) -> Dict[str, Any]:
    user_id = require_user_id(arguments, store.user_id)
    notifications = NotificationService(store).list_unread(user_id, limit=arguments.get("limit", 50))
    return {"user_id": user_id, "count": len(notifications), "notifications": notifications}


def mark_notification_read(arguments: Dict[str, Any], store: EntityStore) -> Dict[str, Any]:
    return NotificationService(store).mark_read(arguments["id"])


def mark_all_notifications_read(arguments: Dict[str, Any], store: EntityStore) -> Dict[str, Any]:
    return NotificationService(store).mark_all_read(require_user_id(arguments, store.user_id))


def register_notification_tools(registry: ToolRegistry) -> None:
    registry.register_tools([
        ToolDefinition(
            name="send_notification",
            description="Send an in-app notification to a user. It starts unread.",
            input_schema={
                "type": "object",
                "properties": {
                    "user_id": USER_ID_SCHEMA,
                    "title": {"type": "string", "minLength": 1},
                    "message": {"type": "string"},
                    "type": {"type": "string", "enum": NOTIFICATION_TYPES, "default": "info"},
                    "link": {"type": "string", "description": "In-app path to open"},
                },
                "required": ["title"],
            },
            handler=send_notification,
        ),
        ToolDefinition(
            name="list_unread_notifications",
            description="List a user's unread notifications, newest first.",
            input_schema={
                "type": "object",
                "properties": {
                    "user_id": USER_ID_SCHEMA,
                    "limit": {"type": "integer", "minimum": 1, "maximum": 1000, "default": 50},
                },
                "required": [],
            },
            handler=list_unread_notifications,
        ),
        ToolDefinition(
            name="mark_notification_read",
            description="Mark one notification as read.",
            input_schema={
                "type": "object",
                "properties": {"id": {"type": ["string", "integer"], "description": "Notification id"}},
                "required": ["id"],
            },
            handler=mark_notification_read,
        ),
        ToolDefinition(
            name="mark_all_notifications_read",
            description="Mark every unread notification of a user as read.",
            input_schema={
                "type": "object",
                "properties": {"user_id": USER_ID_SCHEMA},
                "required": [],
            },
            handler=mark_all_notifications_read,
        ),
    ])
