"""Tests for API key and bearer token authentication"""
import time

import pytest
from jose import jwt

from gateway import config
from gateway.middleware.auth import MISSING_CREDENTIALS, generate_api_key, hash_api_key

from conftest import BASE_PATH, MCP_URL

JWT_SECRET = "test-jwt-secret"
PING = {"jsonrpc": "2.0", "id": 1, "method": "ping"}


def make_token(**claims):
    claims.setdefault("sub", "user-1")
    claims.setdefault("role", "authenticated")
    return jwt.encode(claims, JWT_SECRET, algorithm="HS256")


def assert_unauthorized(response):
    assert response.status_code == 401
    body = response.json()
    assert body["id"] is None
    assert body["error"]["code"] == -32000
    assert response.headers["www-authenticate"] == "Bearer"
    return body["error"]["message"]


class TestKeyHelpers:
    """hash_api_key and generate_api_key"""

    def test_hash_is_sha256_hex(self):
        assert hash_api_key("abc") == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"

    def test_generated_key_format(self):
        key = generate_api_key()
        assert key.startswith("mcp_")
        assert len(key) == 52
        assert generate_api_key() != key


class TestApiKey:
    """x-api-key header"""

    def test_valid_key(self, client, auth_headers):
        response = client.post(MCP_URL, json=PING, headers=auth_headers)
        assert response.status_code == 200
        assert response.json() == {"jsonrpc": "2.0", "id": 1, "result": {}}

    def test_last_used_at_recorded(self, client, auth_headers, store):
        assert store.table("mcp_api_keys").list()["data"][0]["last_used_at"] is None
        client.post(MCP_URL, json=PING, headers=auth_headers)
        assert store.table("mcp_api_keys").list()["data"][0]["last_used_at"] is not None

    def test_unknown_key(self, client):
        response = client.post(MCP_URL, json=PING, headers={"x-api-key": "mcp_wrong"})
        assert assert_unauthorized(response) == "Invalid API key"

    def test_revoked_key(self, client, store):
        store.table("mcp_api_keys").create({"name": "old", "key_hash": hash_api_key("mcp_revoked"), "revoked": True})
        response = client.post(MCP_URL, json=PING, headers={"x-api-key": "mcp_revoked"})
        assert_unauthorized(response)

    def test_static_key_fallback(self, client, monkeypatch):
        monkeypatch.setattr(config, "MCP_API_KEY", "static-secret")
        response = client.post(MCP_URL, json=PING, headers={"x-api-key": "static-secret"})
        assert response.status_code == 200

    def test_api_key_takes_precedence(self, client, monkeypatch):
        """A bad API key is rejected even when a valid bearer token is present"""
        monkeypatch.setattr(config, "JWT_SECRET", JWT_SECRET)
        response = client.post(MCP_URL, json=PING, headers={
            "x-api-key": "mcp_wrong",
            "authorization": f"Bearer {make_token()}",
        })
        assert_unauthorized(response)


class TestBearer:
    """Authorization: Bearer <jwt>"""

    @pytest.fixture(autouse=True)
    def secret(self, monkeypatch):
        monkeypatch.setattr(config, "JWT_SECRET", JWT_SECRET)

    def test_valid_token(self, client):
        response = client.post(MCP_URL, json=PING, headers={"authorization": f"Bearer {make_token()}"})
        assert response.status_code == 200

    def test_token_subject_scopes_tools(self, client):
        call = {
            "jsonrpc": "2.0", "id": 2, "method": "tools/call",
            "params": {"name": "send_notification", "arguments": {"title": "Hello"}},
        }
        response = client.post(MCP_URL, json=call, headers={"authorization": f"Bearer {make_token(sub='user-42')}"})
        result = response.json()["result"]
        assert "isError" not in result
        assert '"user_id": "user-42"' in result["content"][0]["text"]

    def test_expired_token(self, client):
        token = make_token(exp=int(time.time()) - 60)
        response = client.post(MCP_URL, json=PING, headers={"authorization": f"Bearer {token}"})
        assert assert_unauthorized(response) == "Token has expired"

    def test_wrong_signature(self, client):
        token = jwt.encode({"sub": "user-1"}, "another-secret", algorithm="HS256")
        response = client.post(MCP_URL, json=PING, headers={"authorization": f"Bearer {token}"})
        assert assert_unauthorized(response).startswith("Invalid token")

    def test_malformed_header(self, client):
        response = client.post(MCP_URL, json=PING, headers={"authorization": "Token abc"})
        assert assert_unauthorized(response) == MISSING_CREDENTIALS

    def test_secret_not_configured(self, client, monkeypatch):
        monkeypatch.setattr(config, "JWT_SECRET", None)
        response = client.post(MCP_URL, json=PING, headers={"authorization": f"Bearer {make_token()}"})
        assert "JWT_SECRET" in assert_unauthorized(response)


class TestProtectedRoutes:
    """Every authenticated route refuses anonymous callers"""

    def test_missing_credentials_names_both_schemes(self, client):
        message = assert_unauthorized(client.post(MCP_URL, json=PING))
        assert "Bearer" in message
        assert "X-API-Key" in message

    def test_tools_listing(self, client):
        assert_unauthorized(client.get(f"{BASE_PATH}/tools"))

    def test_tool_invoke(self, client):
        assert_unauthorized(client.post(f"{BASE_PATH}/tools/list_accounts", json={}))

    def test_public_routes(self, client):
        assert client.get(f"{BASE_PATH}/").status_code == 200
        assert client.delete(MCP_URL).status_code == 200
