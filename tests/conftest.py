"""Shared fixtures: an in-process issue tracker double and history store."""

from typing import Any, Dict, List, Optional

import pytest

from goalplan.config import Settings
from goalplan.errors import IssueTrackerError
from goalplan.history import InMemoryHistoryStore
from goalplan.tracker import resolve_issue_type_names


class FakeTrackerClient:
    """Records every request and hands out sequential issue keys.

    ``fail_on`` makes the create request for that summary fail;
    ``fail_metadata`` makes issue type discovery fail;
    ``fail_property`` makes every issue property write fail.
    """

    def __init__(
        self,
        project_key: str = "PRJ",
        issue_types: Optional[List[str]] = None,
        fail_on: Optional[str] = None,
        fail_metadata: bool = False,
        fail_property: bool = False,
    ):
        self.project_key = project_key
        self.issue_types = issue_types or ["Epic", "Story", "Subtask"]
        self.fail_on = fail_on
        self.fail_metadata = fail_metadata
        self.fail_property = fail_property
        self.created: List[Dict[str, Any]] = []
        self.properties: Dict[str, Dict[str, Any]] = {}
        self.metadata_calls = 0

    def resolve_issue_types(self, project_key: str) -> Dict[str, str]:
        self.metadata_calls += 1
        if self.fail_metadata:
            raise IssueTrackerError(f"fetch issue types for {project_key}", "Not Found", status_code=404)
        return resolve_issue_type_names(self.issue_types)

    def create_issue(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        if self.fail_on and fields["summary"] == self.fail_on:
            raise IssueTrackerError(
                f"create issue '{fields['summary']}'", "Field 'summary' is invalid", status_code=400
            )
        self.created.append(fields)
        number = len(self.created)
        return {"id": str(10000 + number), "key": f"{self.project_key}-{number}"}

    def set_issue_property(self, issue_key: str, property_key: str, value: Any) -> None:
        if self.fail_property:
            raise IssueTrackerError(
                f"set property {property_key} on {issue_key}", "Service Unavailable", status_code=503
            )
        self.properties[f"{issue_key}/{property_key}"] = value

    @property
    def request_count(self) -> int:
        return self.metadata_calls + len(self.created) + len(self.properties)

    def created_of_type(self, issue_type: str) -> List[Dict[str, Any]]:
        return [fields for fields in self.created if fields["issuetype"]["name"] == issue_type]


@pytest.fixture
def fake_client():
    return FakeTrackerClient()


@pytest.fixture
def history_store():
    return InMemoryHistoryStore()


@pytest.fixture
def tracker_settings():
    return Settings(
        jira_base_url="https://example.atlassian.net",
        jira_email="bot@example.com",
        jira_api_token="token",
    )


@pytest.fixture
def make_client():
    """Factory for tracker doubles configured per test."""
    return FakeTrackerClient
