"""Tests for the notification service and tools"""
import asyncio
import json

import pytest

from gateway.errors import NotFoundError
from gateway.mcp.server import build_registry
from gateway.services.entity_store import EntityStore, StoreScope
from gateway.services.notification_service import NotificationService


@pytest.fixture
def notifications(store):
    return NotificationService(store)


class TestNotificationService:
    """send, list unread, mark read"""

    def test_send_creates_unread(self, notifications):
        sent = notifications.send_notification("user-1", "Invoice overdue", message="INV-7", link="/invoices/7")
        assert sent["read"] is False
        assert sent["type"] == "info"
        assert sent["link"] == "/invoices/7"

    def test_list_unread_only_for_user(self, notifications):
        notifications.send_notification("user-1", "One")
        notifications.send_notification("user-1", "Two")
        notifications.send_notification("user-2", "Other")
        assert {n["title"] for n in notifications.list_unread("user-1")} == {"One", "Two"}

    def test_mark_read(self, notifications):
        sent = notifications.send_notification("user-1", "One")
        assert notifications.mark_read(sent["id"])["read"] is True
        assert notifications.list_unread("user-1") == []

    def test_mark_read_missing(self, notifications):
        with pytest.raises(NotFoundError):
            notifications.mark_read(404)

    def test_mark_all_read(self, notifications):
        for title in ("One", "Two", "Three"):
            notifications.send_notification("user-1", title)
        assert notifications.mark_all_read("user-1") == {"success": True, "updated": 3}
        assert notifications.mark_all_read("user-1") == {"success": True, "updated": 0}


class TestNotificationTools:
    """user_id resolution in the notification tools"""

    @pytest.fixture(scope="class")
    def registry(self):
        return build_registry()

    def test_user_id_required_for_service_caller(self, registry, store):
        result = asyncio.run(registry.invoke_tool("send_notification", {"title": "Hi"}, store))
        assert result.is_error
        assert "user_id is required" in result.text

    def test_user_id_defaults_to_token_subject(self, registry, backend):
        scoped = EntityStore(backend, StoreScope(claims={"sub": "user-9"}))
        result = asyncio.run(registry.invoke_tool("send_notification", {"title": "Hi", "type": "task"}, scoped))
        assert not result.is_error
        assert json.loads(result.text)["user_id"] == "user-9"

        listed = asyncio.run(registry.invoke_tool("list_unread_notifications", {}, scoped))
        assert json.loads(listed.text)["count"] == 1

    def test_invalid_type_rejected(self, registry, store):
        result = asyncio.run(registry.invoke_tool(
            "send_notification", {"title": "Hi", "user_id": "u", "type": "shout"}, store
        ))
        assert result.is_error
        assert "Invalid arguments" in result.text
