"""Per-request pipeline: method, auth, rate limit, validation, upstream call."""

import logging

from fastapi import Request, Response

from hotline.auth import authenticate
from hotline.errors import Misconfigured, MethodNotAllowed, ProxyError, RateLimited
from hotline.limiters.base import RateLimiter
from hotline.models import IssueResult
from hotline.providers.base import IssueGateway
from hotline.responses import error_response, success_response
from hotline.settings import ProxySettings
from hotline.validation import parse_issue_request

logger = logging.getLogger(__name__)


def client_identity(request: Request, trusted_header: str | None) -> str | None:
    """Return the caller's address as seen by the trusted edge.

    With ``trusted_header`` set, only that header is consulted; for a
    comma-separated list the right-most entry is the one the edge appended.
    Otherwise the socket peer address is used.
    """
    if trusted_header:
        value = request.headers.get(trusted_header, "")
        parts = [p.strip() for p in value.split(",") if p.strip()]
        return parts[-1] if parts else None
    return request.client.host if request.client else None


class RequestHandler:
    def __init__(
        self,
        settings: ProxySettings,
        limiter: RateLimiter,
        gateway: IssueGateway | None,
    ) -> None:
        self._settings = settings
        self._limiter = limiter
        self._gateway = gateway
        self._secrets = settings.secrets()

    async def handle(self, request: Request) -> Response:
        try:
            result = await self.process(request)
        except ProxyError as exc:
            logger.info("Rejected %s %s: %s", request.method, request.url.path, exc.kind.value)
            return error_response(exc, self._secrets)
        return success_response(result)

    async def process(self, request: Request) -> IssueResult:
        if request.method != "POST":
            raise MethodNotAllowed(request.method)

        authenticate(self._settings.auth_token, request.headers.get("authorization"))
        await self._check_rate_limit(request)

        issue = parse_issue_request(await request.body())

        if self._gateway is None:
            missing = self._settings.missing_linear_fields()
            logger.error("Proxy not configured, missing: %s", ", ".join(missing))
            raise Misconfigured(missing)

        return await self._gateway.create_issue(issue)

    async def _check_rate_limit(self, request: Request) -> None:
        identity = client_identity(request, self._settings.client_ip_header)
        if identity is None:
            if self._settings.reject_unidentified:
                logger.warning("Rejecting request with no client identity")
                raise RateLimited(message="Client identity unavailable")
            logger.warning("Client identity unavailable, skipping rate limit")
            return

        admission = await self._limiter.admit(identity)
        if not admission.allowed:
            logger.warning("Rate limit exceeded for %s", identity)
            raise RateLimited(admission.retry_after)
