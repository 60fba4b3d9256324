"""Shared fixtures: an in-memory store with the development schema and a test client."""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from gateway import config
from gateway.db.config import build_engine
from gateway.db.init import init_db
from gateway.main import create_app
from gateway.middleware.auth import hash_api_key
from gateway.services.entity_store import EntityStore, StoreBackend

TEST_API_KEY = "mcp_" + "0123456789abcdef" * 3
BASE_PATH = config.MCP_BASE_PATH.rstrip("/")
MCP_URL = f"{BASE_PATH}/mcp"


@pytest.fixture
def engine():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def backend(engine):
    return StoreBackend.connect(engine)


@pytest.fixture
def store(backend):
    """Service-level store handle (no row-level scope)."""
    return EntityStore(backend)


@pytest.fixture
def api_key(store):
    store.table("mcp_api_keys").create({
        "name": "test key",
        "key_hash": hash_api_key(TEST_API_KEY),
        "key_prefix": TEST_API_KEY[:8],
    })
    return TEST_API_KEY


@pytest.fixture
def client(engine, api_key):
    app = create_app(engine)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers(api_key):
    return {"x-api-key": api_key}


@pytest.fixture
def rpc(client, auth_headers):
    """POST one JSON-RPC request and return the decoded response body."""
    def call(method, params=None, request_id=1):
        payload = {"jsonrpc": "2.0", "id": request_id, "method": method}
        if params is not None:
            payload["params"] = params
        response = client.post(MCP_URL, json=payload, headers=auth_headers)
        assert response.status_code == 200
        return response.json()
    return call


@pytest.fixture
def team_member(store):
    return store.table("team_members").create({
        "full_name": "Dana Reyes",
        "email": "dana@example.com",
        "weekly_capacity": 40,
        "status": "active",
    })
