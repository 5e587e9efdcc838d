"""Reporting clients: through the gateway, or straight to Linear with a local key."""

import asyncio
import logging

import httpx

from hotline.errors import ReportError
from hotline.models import IssueRequest
from hotline.providers.linear import ENDPOINT, LinearGateway

logger = logging.getLogger(__name__)


def format_description(description: str | None, system_info: list[tuple[str, str]] | None = None) -> str:
    """Append a markdown "System Info" table to the description."""
    body = ""
    if description:
        body += description + "\n\n"
    if system_info:
        body += "## System Info\n\n"
        body += "| Field | Value |\n|-------|-------|\n"
        for key, value in system_info:
            body += f"| {key} | {value} |\n"
    return body.rstrip()


class ProxyClient:
    """Posts bug reports to a hotline gateway."""

    def __init__(self, url: str, token: str | None = None) -> None:
        self._url = url
        self._token = token

    def create_issue(
        self,
        title: str,
        description: str | None = None,
        system_info: list[tuple[str, str]] | None = None,
    ) -> str:
        """Create a bug report issue via the gateway. Returns the issue URL."""
        headers = {"Content-Type": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"

        response = httpx.post(
            self._url,
            json={"title": title, "description": format_description(description, system_info)},
            headers=headers,
            timeout=30,
        )
        if not response.is_success:
            raise ReportError(response.status_code, response.text)

        try:
            url = response.json().get("url")
        except (ValueError, AttributeError) as exc:
            raise RuntimeError(f"Failed to parse response: {response.text}") from exc
        if not isinstance(url, str):
            raise RuntimeError("proxy response missing url")

        logger.info("Created Linear issue via proxy: %s", url)
        return url


class DirectClient:
    """Calls Linear directly. Only for binaries that may hold the API key."""

    def __init__(self, api_key: str, team_id: str, project_id: str, endpoint: str = ENDPOINT) -> None:
        self._api_key = api_key
        self._team_id = team_id
        self._project_id = project_id
        self._endpoint = endpoint

    async def _create(self, request: IssueRequest) -> str:
        gateway = LinearGateway(self._api_key, self._team_id, self._project_id, endpoint=self._endpoint, timeout=30)
        try:
            result = await gateway.create_issue(request)
        finally:
            await gateway.aclose()
        return result.url

    def create_issue(
        self,
        title: str,
        description: str | None = None,
        system_info: list[tuple[str, str]] | None = None,
    ) -> str:
        """Create a bug report issue on Linear. Returns the issue URL."""
        request = IssueRequest(title=title, description=format_description(description, system_info))
        return asyncio.run(self._create(request))
