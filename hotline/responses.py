"""Maps pipeline outcomes to HTTP responses."""

import math
from collections.abc import Iterable

from fastapi import status
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from hotline.errors import ErrorKind, ProxyError, RateLimited
from hotline.models import IssueResult

REDACTED = "[REDACTED]"

STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.METHOD_NOT_ALLOWED: status.HTTP_405_METHOD_NOT_ALLOWED,
    ErrorKind.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
    ErrorKind.INVALID_PAYLOAD: status.HTTP_400_BAD_REQUEST,
    ErrorKind.MISSING_FIELD: status.HTTP_400_BAD_REQUEST,
    ErrorKind.MISCONFIGURED: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.UPSTREAM_ERROR: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.UPSTREAM_LOGIC_ERROR: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.UPSTREAM_UNEXPECTED_RESPONSE: status.HTTP_502_BAD_GATEWAY,
}


def redact(text: str, secrets: Iterable[str]) -> str:
    for secret in secrets:
        if secret:
            text = text.replace(secret, REDACTED)
    return text


def success_response(result: IssueResult) -> Response:
    return JSONResponse({"url": result.url}, status_code=status.HTTP_200_OK)


def error_response(error: ProxyError, secrets: Iterable[str] = ()) -> Response:
    headers: dict[str, str] = {}
    if error.kind is ErrorKind.METHOD_NOT_ALLOWED:
        headers["Allow"] = "POST"
    if isinstance(error, RateLimited) and error.retry_after is not None:
        headers["Retry-After"] = str(max(1, math.ceil(error.retry_after)))
    return PlainTextResponse(
        redact(error.message, secrets),
        status_code=STATUS_BY_KIND[error.kind],
        headers=headers,
    )
