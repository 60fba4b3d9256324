"""
Gateway error types.

Authentication failures stop a request before dispatch, protocol errors
become JSON-RPC error objects, and store errors surface through whichever
layer called the store (tool result or protocol error).
"""

from typing import Any, Optional


class GatewayError(Exception):
    """Base exception for gateway errors"""


class AuthenticationError(GatewayError):
    """Missing or invalid credential (HTTP 401)"""

    def __init__(self, message: str, status_code: int = 401):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class ProtocolError(GatewayError):
    """JSON-RPC level failure, reported as an error object with HTTP 200"""

    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603
    SERVER_ERROR = -32000

    def __init__(self, code: int, message: str, data: Optional[Any] = None):
        self.code = code
        self.message = message
        self.data = data
        super().__init__(message)


class ToolRegistrationError(GatewayError):
    """Raised at start-up when two tools share a name"""


class StoreError(GatewayError):
    """Failure reported by the external entity store"""


class NotFoundError(StoreError):
    """No record matched the requested id"""

    def __init__(self, table: str, record_id: Any):
        self.table = table
        self.record_id = record_id
        super().__init__(f"Record {record_id} not found in {table}")


class StoreValidationError(StoreError):
    """Constraint violation, unknown column or a value the column cannot hold"""
