"""Linear GraphQL API gateway."""

import json
import logging

import httpx

from hotline.errors import UpstreamError, UpstreamLogicError, UpstreamUnexpectedResponse
from hotline.models import IssueRequest, IssueResult
from hotline.providers.base import IssueGateway
from hotline.settings import LINEAR_ENDPOINT, ProxySettings

logger = logging.getLogger(__name__)

ENDPOINT = LINEAR_ENDPOINT

_CREATE_ISSUE = """
mutation IssueCreate($input: IssueCreateInput!) {
  issueCreate(input: $input) {
    success
    issue {
      id
      identifier
      url
    }
  }
}
"""


class LinearGateway(IssueGateway):
    """Creates issues under one fixed team/project.

    Team, project and API key come from settings only; one attempt per call.
    """

    def __init__(
        self,
        api_key: str,
        team_id: str,
        project_id: str,
        client: httpx.AsyncClient | None = None,
        endpoint: str = ENDPOINT,
        timeout: float | None = None,
    ) -> None:
        self._api_key = api_key
        self._team_id = team_id
        self._project_id = project_id
        self._endpoint = endpoint
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: ProxySettings, client: httpx.AsyncClient | None = None) -> "LinearGateway":
        missing = settings.missing_linear_fields()
        if missing:
            raise RuntimeError(f"Linear gateway needs {', '.join(missing)}")
        return cls(
            api_key=settings.linear_api_key.get_secret_value(),  # type: ignore[union-attr]
            team_id=settings.linear_team_id,  # type: ignore[arg-type]
            project_id=settings.linear_project_id,  # type: ignore[arg-type]
            client=client,
            endpoint=settings.linear_endpoint,
            timeout=settings.upstream_timeout,
        )

    async def _gql(self, query: str, variables: dict) -> dict:
        try:
            response = await self._client.post(
                self._endpoint,
                json={"query": query, "variables": variables},
                headers={
                    "Authorization": self._api_key,
                    "Content-Type": "application/json",
                },
            )
        except httpx.HTTPError as exc:
            logger.warning("Linear request failed: %s", type(exc).__name__)
            raise UpstreamError(None, str(exc) or type(exc).__name__) from exc

        if not response.is_success:
            logger.warning("Linear API returned %d", response.status_code)
            raise UpstreamError(response.status_code, response.text)

        try:
            data = response.json()
        except ValueError as exc:
            raise UpstreamUnexpectedResponse(response.text) from exc
        if not isinstance(data, dict):
            raise UpstreamUnexpectedResponse(response.text)
        if "errors" in data:
            raise UpstreamLogicError(data["errors"])
        logger.debug("Linear API response: %s", data)
        return data

    async def create_issue(self, request: IssueRequest) -> IssueResult:
        data = await self._gql(
            _CREATE_ISSUE,
            {
                "input": {
                    "teamId": self._team_id,
                    "projectId": self._project_id,
                    "title": request.title,
                    "description": request.description,
                }
            },
        )
        payload = data.get("data")
        result = payload.get("issueCreate") if isinstance(payload, dict) else None
        if isinstance(result, dict) and result.get("success") is False:
            raise UpstreamLogicError(result)
        issue = result.get("issue") if isinstance(result, dict) else None
        url = issue.get("url") if isinstance(issue, dict) else None
        if not isinstance(url, str) or not url:
            raise UpstreamUnexpectedResponse(json.dumps(data))

        identifier = issue.get("identifier")  # type: ignore[union-attr]
        logger.info("Created Linear issue %s: %s", identifier or "unknown", url)
        return IssueResult(url=url, identifier=identifier if isinstance(identifier, str) else None)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
