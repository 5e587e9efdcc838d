"""Error taxonomy for the gateway pipeline."""

import json
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    METHOD_NOT_ALLOWED = "method_not_allowed"
    UNAUTHORIZED = "unauthorized"
    RATE_LIMITED = "rate_limited"
    INVALID_PAYLOAD = "invalid_payload"
    MISSING_FIELD = "missing_field"
    MISCONFIGURED = "misconfigured"
    UPSTREAM_ERROR = "upstream_error"
    UPSTREAM_LOGIC_ERROR = "upstream_logic_error"
    UPSTREAM_UNEXPECTED_RESPONSE = "upstream_unexpected_response"


class ProxyError(Exception):
    """Terminal outcome of a request. ``str(exc)`` is the client-facing message."""

    kind: ErrorKind

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class MethodNotAllowed(ProxyError):
    kind = ErrorKind.METHOD_NOT_ALLOWED

    def __init__(self, method: str) -> None:
        super().__init__("Method not allowed")
        self.method = method


class Unauthorized(ProxyError):
    kind = ErrorKind.UNAUTHORIZED

    def __init__(self) -> None:
        super().__init__("Unauthorized")


class RateLimited(ProxyError):
    kind = ErrorKind.RATE_LIMITED

    def __init__(self, retry_after: float | None = None, message: str = "Rate limit exceeded") -> None:
        super().__init__(message)
        self.retry_after = retry_after


class InvalidPayload(ProxyError):
    kind = ErrorKind.INVALID_PAYLOAD


class MissingField(ProxyError):
    kind = ErrorKind.MISSING_FIELD

    def __init__(self, field: str) -> None:
        super().__init__("Missing title or description")
        self.field = field


class Misconfigured(ProxyError):
    kind = ErrorKind.MISCONFIGURED

    def __init__(self, missing: list[str]) -> None:
        super().__init__("Proxy not configured")
        self.missing = missing


class UpstreamError(ProxyError):
    """Linear unreachable or answered with a non-success status."""

    kind = ErrorKind.UPSTREAM_ERROR

    def __init__(self, status: int | None, body: str) -> None:
        if status is None:
            message = f"Linear API request failed: {body}"
        else:
            message = f"Linear API returned {status}: {body}"
        super().__init__(message)
        self.status = status
        self.body = body


class UpstreamLogicError(ProxyError):
    """Linear answered but reported a failure inside the GraphQL payload."""

    kind = ErrorKind.UPSTREAM_LOGIC_ERROR

    def __init__(self, details: Any) -> None:
        super().__init__(f"Linear GraphQL errors: {json.dumps(details)}")
        self.details = details


class UpstreamUnexpectedResponse(ProxyError):
    kind = ErrorKind.UPSTREAM_UNEXPECTED_RESPONSE

    def __init__(self, raw: str) -> None:
        super().__init__(f"Unexpected Linear response: {raw}")
        self.raw = raw


class ReportError(RuntimeError):
    """Raised by the reporting client when the gateway rejects a report."""

    def __init__(self, status: int, body: str) -> None:
        super().__init__(f"Proxy returned error {status}: {body}")
        self.status = status
        self.body = body
