"""Jira issue tracker client.

A thin synchronous client over the Jira Cloud REST API v3: it discovers
the issue types configured for a project, creates issues and attaches
issue properties. Every failure surfaces as :class:`IssueTrackerError`.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Optional, Protocol

import httpx

from .errors import IssueTrackerError

logger = logging.getLogger("goalplan.tracker")

DEFAULT_TIMEOUT = 30.0

ISSUE_TYPE_PREFERENCES = MappingProxyType({
    "epic": ("Epic",),
    "story": ("Story", "Task", "User Story"),
    "subtask": ("Subtask", "Sub-task"),
})
ISSUE_TYPE_DEFAULTS = MappingProxyType({
    "epic": "Epic",
    "story": "Task",
    "subtask": "Subtask",
})


def resolve_issue_type_names(available: Iterable[str]) -> Dict[str, str]:
    """Pick the issue type name to use for each node kind.

    Preferences are matched case-insensitively against the names the
    project offers; the defaults apply when nothing matches.
    """
    by_lower = {name.lower(): name for name in available}
    resolved: Dict[str, str] = {}
    for kind, preferences in ISSUE_TYPE_PREFERENCES.items():
        match = next((by_lower[p.lower()] for p in preferences if p.lower() in by_lower), None)
        resolved[kind] = match or ISSUE_TYPE_DEFAULTS[kind]
    return resolved


class IssueTrackerClient(Protocol):
    """Operations the plan publisher needs from an issue tracker."""

    def resolve_issue_types(self, project_key: str) -> Dict[str, str]:
        ...

    def create_issue(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        ...

    def set_issue_property(self, issue_key: str, property_key: str, value: Any) -> None:
        ...


class JiraClient:
    """Jira Cloud REST client authenticated with an account email and API token."""

    def __init__(
        self,
        base_url: str,
        email: Optional[str] = None,
        api_token: Optional[str] = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        if not base_url:
            raise ValueError("Jira base URL is required")
        auth = (email, api_token) if email and api_token else None
        self.base_url = base_url.rstrip("/")
        self._client = httpx.Client(
            base_url=self.base_url,
            auth=auth,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json", "Content-Type": "application/json"},
        )

    def __enter__(self) -> "JiraClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def _request(self, operation: str, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise IssueTrackerError(operation, str(e)) from e

        if response.is_error:
            detail = _error_detail(response)
            raise IssueTrackerError(
                operation,
                detail or response.reason_phrase,
                status_code=response.status_code,
                detail=detail,
            )
        return response

    def get_issue_type_names(self, project_key: str) -> List[str]:
        """Return the issue type names configured for a project."""
        operation = f"fetch issue types for {project_key}"
        response = self._request(
            operation, "GET", f"/rest/api/3/issue/createmeta/{project_key}/issuetypes"
        )
        payload = _json_body(operation, response)
        types = payload.get("issueTypes") or payload.get("values") or []
        return [item["name"] for item in types if item.get("name")]

    def resolve_issue_types(self, project_key: str) -> Dict[str, str]:
        names = self.get_issue_type_names(project_key)
        resolved = resolve_issue_type_names(names)
        logger.info(f"Resolved issue types for {project_key}: {resolved}")
        return resolved

    def create_issue(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Create an issue and return its ``id`` and ``key``."""
        operation = f"create issue '{fields.get('summary', '')}'"
        response = self._request(operation, "POST", "/rest/api/3/issue", json={"fields": fields})
        created = _json_body(operation, response)
        return {"id": created.get("id"), "key": created.get("key")}

    def set_issue_property(self, issue_key: str, property_key: str, value: Any) -> None:
        self._request(
            f"set property {property_key} on {issue_key}",
            "PUT",
            f"/rest/api/3/issue/{issue_key}/properties/{property_key}",
            json=value,
        )


def _json_body(operation: str, response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError as e:
        raise IssueTrackerError(operation, f"response body is not valid JSON: {e}") from e


def _error_detail(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text.strip()
    if not isinstance(payload, dict):
        return str(payload)
    messages = list(payload.get("errorMessages") or [])
    messages.extend(f"{field}: {message}" for field, message in (payload.get("errors") or {}).items())
    return "; ".join(messages)
