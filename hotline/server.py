"""FastAPI application factory for the gateway."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from redis.asyncio import Redis

from hotline.errors import MethodNotAllowed
from hotline.handler import RequestHandler
from hotline.limiters.base import RateLimiter, UnlimitedLimiter
from hotline.limiters.fixed import FixedWindowLimiter
from hotline.limiters.sliding import SlidingWindowLimiter
from hotline.providers.base import IssueGateway
from hotline.providers.linear import LinearGateway
from hotline.responses import error_response
from hotline.settings import ProxySettings

logger = logging.getLogger(__name__)

# Common verbs go through the handler; anything else (TRACE, CONNECT, custom
# verbs) is answered by the 405 exception handler with the same response.
ROUTED_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


# ---------------------------------------------------------------------------
# Strategy factories
# ---------------------------------------------------------------------------


def build_limiter(settings: ProxySettings) -> RateLimiter:
    match settings.rate_limit_strategy:
        case "sliding":
            return SlidingWindowLimiter(settings.rate_limit_max, settings.rate_limit_window)
        case "fixed":
            if settings.redis_url is None:
                return UnlimitedLimiter()
            redis = Redis.from_url(settings.redis_url.get_secret_value(), decode_responses=True)
            return FixedWindowLimiter(redis, settings.rate_limit_max, settings.rate_limit_window)
        case _:
            raise ValueError(f"Unknown rate limit strategy '{settings.rate_limit_strategy}'")


def build_gateway(settings: ProxySettings) -> IssueGateway | None:
    missing = settings.missing_linear_fields()
    if missing:
        logger.warning("Linear is not configured (missing %s); requests will get 500", ", ".join(missing))
        return None
    return LinearGateway.from_settings(settings)


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------


def create_app(
    settings: ProxySettings,
    limiter: RateLimiter | None = None,
    gateway: IssueGateway | None = None,
) -> FastAPI:
    """Create the gateway app.

    ``limiter`` and ``gateway`` default to the ones described by ``settings``.
    Whatever the app ends up with is closed on shutdown.
    """
    if limiter is None:
        limiter = build_limiter(settings)
    if gateway is None:
        gateway = build_gateway(settings)
    handler = RequestHandler(settings, limiter, gateway)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "hotline gateway starting: strategy=%s max=%d window=%ss auth=%s",
            settings.rate_limit_strategy,
            settings.rate_limit_max,
            settings.rate_limit_window,
            "on" if settings.auth_token else "off",
        )
        yield
        await limiter.aclose()
        if gateway is not None:
            await gateway.aclose()
        logger.info("hotline gateway stopped")

    app = FastAPI(title="hotline", docs_url=None, redoc_url=None, openapi_url=None, lifespan=lifespan)
    app.state.handler = handler

    async def report(request: Request) -> Response:
        return await request.app.state.handler.handle(request)

    app.add_api_route("/", report, methods=ROUTED_METHODS, include_in_schema=False)

    async def method_not_allowed(request: Request, exc: Exception) -> Response:
        return error_response(MethodNotAllowed(request.method))

    app.add_exception_handler(405, method_not_allowed)
    return app
