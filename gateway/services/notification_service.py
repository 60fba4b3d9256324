"""
Notification Service

Writes in-app notifications to the store. E-mail delivery is triggered on the
store side when a row is inserted, so sending is just an insert here.
"""

import logging
from typing import Any, Dict, List, Optional

from gateway.services.entity_store import EntityStore

logger = logging.getLogger(__name__)

NOTIFICATION_TABLE = "notifications"


class NotificationService:
    """Service to send and acknowledge user notifications."""

    def __init__(self, store: EntityStore):
        self.store = store
        self.table = store.table(NOTIFICATION_TABLE)

    def send_notification(self, user_id: str, title: str, message: Optional[str] = None,
                          type: str = "info", link: Optional[str] = None) -> Dict[str, Any]:
        """Insert an unread notification for the user."""
        notification = self.table.create({
            "user_id": user_id,
            "type": type,
            "title": title,
            "message": message,
            "link": link,
            "read": False,
        })
        logger.info(f"NOTIFICATION for user {user_id}: {type} '{title}'")
        return notification

    def list_unread(self, user_id: str, limit: int = 50) -> List[Dict[str, Any]]:
        return self.table.filter({"user_id": user_id, "read": False}, limit=limit)

    def mark_read(self, notification_id: Any) -> Dict[str, Any]:
        return self.table.update(notification_id, {"read": True})

    def mark_all_read(self, user_id: str) -> Dict[str, Any]:
        updated = self.table.update_where({"user_id": user_id, "read": False}, {"read": True})
        logger.info(f"Marked {len(updated)} notifications read for user {user_id}")
        return {"success": True, "updated": len(updated)}
