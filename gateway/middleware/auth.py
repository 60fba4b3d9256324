"""API key and JWT authentication for the MCP routes."""
import hashlib
import hmac
import logging
import secrets
from dataclasses import dataclass
from typing import Any, Optional

from fastapi import BackgroundTasks, Request
from jose import JWTError, jwt
from starlette.concurrency import run_in_threadpool

from gateway import config
from gateway.errors import AuthenticationError, StoreError
from gateway.services.entity_store import EntityStore, StoreBackend, StoreScope, utcnow

logger = logging.getLogger(__name__)

API_KEY_TABLE = "mcp_api_keys"
API_KEY_PREFIX = "mcp_"
JWT_ALGORITHMS = ["HS256"]

MISSING_CREDENTIALS = "Missing authentication. Provide Authorization: Bearer <jwt> or X-API-Key: <key>"


@dataclass
class AuthContext:
    """Caller identity resolved for one request."""
    store: EntityStore
    mode: str  # "apikey" or "jwt"
    user_id: Optional[str] = None
    api_key_id: Optional[Any] = None


def hash_api_key(key: str) -> str:
    """SHA-256 hex digest, the form keys are stored in."""
    return hashlib.sha256(key.encode("utf-8")).hexdigest()


def generate_api_key() -> str:
    """New random key: 'mcp_' followed by 48 hex characters."""
    return API_KEY_PREFIX + secrets.token_hex(24)


def find_api_key(backend: StoreBackend, key: str) -> Optional[Any]:
    """Id of the non-revoked key record matching `key`, if any."""
    keys = EntityStore(backend).table(API_KEY_TABLE)
    rows = keys.select({"key_hash": hash_api_key(key), "revoked": False}, limit=1)
    return rows[0]["id"] if rows else None


def touch_api_key(backend: StoreBackend, key_id: Any) -> None:
    """Record when a key was last used. Best effort: failures are only logged."""
    try:
        EntityStore(backend).table(API_KEY_TABLE).update(key_id, {"last_used_at": utcnow()})
    except StoreError as e:
        logger.debug(f"Could not update last_used_at for API key {key_id}: {str(e)}")


async def authenticate_api_key(backend: StoreBackend, key: str,
                               background_tasks: BackgroundTasks) -> AuthContext:
    try:
        key_id = await run_in_threadpool(find_api_key, backend, key)
    except StoreError as e:
        logger.warning(f"API key lookup failed: {str(e)}")
        key_id = None

    if key_id is not None:
        background_tasks.add_task(touch_api_key, backend, key_id)
        return AuthContext(store=EntityStore(backend), mode="apikey", api_key_id=key_id)

    # Statically configured key, kept for older clients
    static_key = config.MCP_API_KEY
    if static_key and hmac.compare_digest(key.encode("utf-8"), static_key.encode("utf-8")):
        return AuthContext(store=EntityStore(backend), mode="apikey")

    logger.warning("Rejected request with an invalid API key")
    raise AuthenticationError("Invalid API key")


def authenticate_bearer(backend: StoreBackend, token: str) -> AuthContext:
    """
    Verify a bearer JWT and scope the store handle to its claims.

    The claims are forwarded to the store so its row-level policies decide
    what the caller can read and write.

    Raises:
        AuthenticationError: If the token is expired, malformed or cannot be verified
    """
    secret = config.JWT_SECRET
    if not secret:
        raise AuthenticationError("Bearer tokens are not accepted: JWT_SECRET is not configured")

    try:
        claims = jwt.decode(token, secret, algorithms=JWT_ALGORITHMS, options={"verify_aud": False})
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token has expired")
    except JWTError as e:
        raise AuthenticationError(f"Invalid token: {str(e)}")

    scope = StoreScope(claims=claims, role=claims.get("role") or "authenticated")
    return AuthContext(store=EntityStore(backend, scope), mode="jwt", user_id=scope.user_id)


async def authenticate(request: Request, background_tasks: BackgroundTasks) -> AuthContext:
    """
    Resolve the caller of a request into a scoped store handle.

    An x-api-key header takes precedence over an Authorization header.

    Raises:
        AuthenticationError: If no accepted credential is present or valid
    """
    backend: StoreBackend = request.app.state.store_backend

    api_key = request.headers.get("x-api-key")
    if api_key:
        return await authenticate_api_key(backend, api_key, background_tasks)

    auth_header = request.headers.get("authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        logger.warning(f"Unauthenticated request to {request.url.path}")
        raise AuthenticationError(MISSING_CREDENTIALS)

    return authenticate_bearer(backend, auth_header[7:].strip())
