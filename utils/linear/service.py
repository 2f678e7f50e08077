"""Linear service for team lookup and issue creation over GraphQL."""

from typing import Any, Optional

import httpx
from pydantic import BaseModel

from utils.errors import TrackerError
from utils.io.logger import logger

LINEAR_API_URL = "https://api.linear.app/graphql"

TEAMS_QUERY = """
query {
  teams {
    nodes {
      id
      name
      key
    }
  }
}
"""

ISSUE_CREATE_MUTATION = """
mutation IssueCreate($teamId: String!, $title: String!, $description: String!) {
  issueCreate(input: {teamId: $teamId, title: $title, description: $description}) {
    success
    issue {
      id
      identifier
      title
      url
    }
  }
}
"""


class LinearTeam(BaseModel):
    id: str
    name: str
    key: str


class LinearIssue(BaseModel):
    id: str
    identifier: str
    title: str
    url: str


class LinearService:
    """Thin client for the Linear GraphQL API."""

    def __init__(
        self,
        api_key: str,
        api_url: str = LINEAR_API_URL,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.api_key = api_key
        self.api_url = api_url
        self.timeout = timeout
        self._transport = transport

    def _request(self, query: str, variables: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        """Post a GraphQL document and return its `data` payload."""
        payload: dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables

        with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
            response = client.post(
                self.api_url,
                json=payload,
                headers={"Authorization": self.api_key, "Content-Type": "application/json"},
            )
            response.raise_for_status()
            body = response.json()

        errors = body.get("errors")
        if errors:
            messages = "; ".join(str(err.get("message", err)) for err in errors)
            raise TrackerError(messages)

        return body.get("data") or {}

    def get_teams(self) -> list[LinearTeam]:
        """List the teams visible to this API key."""
        try:
            data = self._request(TEAMS_QUERY)
            return [LinearTeam(**node) for node in data["teams"]["nodes"]]
        except (httpx.HTTPError, TrackerError, KeyError, TypeError, ValueError) as e:
            raise TrackerError(f"Failed to fetch teams: {e}") from e

    def create_issue(self, team_id: str, title: str, description: str) -> LinearIssue:
        """
        Create a new Linear issue.

        Args:
            team_id: Linear team ID
            title: Issue title
            description: Issue body (markdown)

        Returns:
            The created issue with identifier and URL
        """
        try:
            data = self._request(
                ISSUE_CREATE_MUTATION,
                {"teamId": team_id, "title": title, "description": description},
            )
            result = data.get("issueCreate") or {}
            if not result.get("success") or not result.get("issue"):
                raise TrackerError("API returned unsuccessful response")
            issue = LinearIssue(**result["issue"])
        except (httpx.HTTPError, TrackerError, KeyError, TypeError, ValueError) as e:
            logger.error("Failed to create Linear issue", detail=str(e))
            raise TrackerError(f"Failed to create Linear issue: {e}") from e

        logger.debug(f"Created Linear issue {issue.identifier}: {issue.url}")
        return issue

    def validate_api_key(self) -> bool:
        """Check the API key by fetching teams."""
        try:
            self.get_teams()
            return True
        except TrackerError:
            return False
