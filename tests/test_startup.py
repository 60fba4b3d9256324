"""Tests for application start-up against an unhealthy or partly configured environment"""
import logging

from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from gateway import config
from gateway.main import create_app
from gateway.services.entity_store import StoreBackend

from conftest import BASE_PATH, MCP_URL

STATIC_KEY = "static-startup-key"


def unreachable(engine, *args, **kwargs):
    raise OperationalError("SELECT 1", {}, Exception("connection refused"))


class TestUnreachableStore:
    """The server starts and reports store errors per call"""

    def test_server_keeps_running(self, engine, monkeypatch, caplog):
        monkeypatch.setattr(StoreBackend, "connect", unreachable)
        monkeypatch.setattr(config, "MCP_API_KEY", STATIC_KEY)

        with caplog.at_level(logging.WARNING):
            with TestClient(create_app(engine)) as client:
                assert client.get(f"{BASE_PATH}/").status_code == 200

                response = client.post(MCP_URL, headers={"x-api-key": STATIC_KEY}, json={
                    "jsonrpc": "2.0", "id": 1, "method": "tools/call",
                    "params": {"name": "list_accounts", "arguments": {}},
                })
                result = response.json()["result"]
                assert result["isError"] is True
                assert "not available" in result["content"][0]["text"]

        assert "Store connection failed" in caplog.text


class TestJwtSecretWarning:
    """Missing JWT_SECRET is announced at start-up"""

    def test_warns_when_unset(self, engine, monkeypatch, caplog):
        monkeypatch.setattr(config, "JWT_SECRET", None)
        with caplog.at_level(logging.WARNING):
            with TestClient(create_app(engine)):
                pass
        assert "JWT_SECRET is not set" in caplog.text

    def test_silent_when_set(self, engine, monkeypatch, caplog):
        monkeypatch.setattr(config, "JWT_SECRET", "configured")
        with caplog.at_level(logging.WARNING):
            with TestClient(create_app(engine)):
                pass
        assert "JWT_SECRET is not set" not in caplog.text
