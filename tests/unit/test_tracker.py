"""Unit tests for the Jira client, using httpx mock transports."""

import json

import httpx
import pytest

from goalplan.errors import IssueTrackerError
from goalplan.tracker import JiraClient, resolve_issue_type_names


def _client(handler) -> JiraClient:
    return JiraClient(
        "https://example.atlassian.net/",
        "bot@example.com",
        "token",
        transport=httpx.MockTransport(handler),
    )


class TestResolveIssueTypeNames:
    """Test cases for issue type resolution."""

    def test_preferred_names(self):
        assert resolve_issue_type_names(["Epic", "Story", "Subtask", "Bug"]) == {
            "epic": "Epic",
            "story": "Story",
            "subtask": "Subtask",
        }

    def test_alternatives(self):
        assert resolve_issue_type_names(["User Story", "Task", "Sub-task", "Epic"]) == {
            "epic": "Epic",
            "story": "Task",
            "subtask": "Sub-task",
        }

    def test_user_story_when_nothing_better(self):
        assert resolve_issue_type_names(["User Story"])["story"] == "User Story"

    def test_case_insensitive_match_keeps_project_spelling(self):
        assert resolve_issue_type_names(["story"])["story"] == "story"

    def test_defaults(self):
        assert resolve_issue_type_names(["Bug"]) == {
            "epic": "Epic",
            "story": "Task",
            "subtask": "Subtask",
        }


class TestJiraClient:
    """Test cases for JiraClient requests."""

    def test_requires_base_url(self):
        with pytest.raises(ValueError):
            JiraClient("")

    def test_get_issue_type_names(self):
        def handler(request):
            assert request.method == "GET"
            assert request.url.path == "/rest/api/3/issue/createmeta/PRJ/issuetypes"
            assert request.headers["Authorization"].startswith("Basic ")
            return httpx.Response(200, json={"issueTypes": [{"name": "Epic"}, {"name": "Task"}]})

        with _client(handler) as client:
            assert client.get_issue_type_names("PRJ") == ["Epic", "Task"]
            assert client.resolve_issue_types("PRJ")["story"] == "Task"

    def test_create_issue(self):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json={"id": "10001", "key": "PRJ-1", "self": "..."})

        with _client(handler) as client:
            created = client.create_issue({"summary": "Epic", "project": {"key": "PRJ"}})

        assert created == {"id": "10001", "key": "PRJ-1"}
        assert seen["method"] == "POST"
        assert seen["path"] == "/rest/api/3/issue"
        assert seen["body"] == {"fields": {"summary": "Epic", "project": {"key": "PRJ"}}}

    def test_set_issue_property(self):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200)

        with _client(handler) as client:
            client.set_issue_property("PRJ-1", "plan-provenance", {"totalEpics": 1})

        assert seen == {
            "method": "PUT",
            "path": "/rest/api/3/issue/PRJ-1/properties/plan-provenance",
            "body": {"totalEpics": 1},
        }

    def test_error_response_raises_with_detail(self):
        def handler(request):
            return httpx.Response(
                400,
                json={"errorMessages": ["Bad request"], "errors": {"summary": "Summary is required"}},
            )

        with _client(handler) as client:
            with pytest.raises(IssueTrackerError) as exc_info:
                client.create_issue({"summary": ""})

        error = exc_info.value
        assert error.status_code == 400
        assert "Bad request" in str(error)
        assert "summary: Summary is required" in error.detail

    def test_non_json_error_body(self):
        def handler(request):
            return httpx.Response(503, text="Service Unavailable")

        with _client(handler) as client:
            with pytest.raises(IssueTrackerError, match="HTTP 503"):
                client.get_issue_type_names("PRJ")

    def test_non_json_success_body_on_create(self):
        def handler(request):
            return httpx.Response(201, text="<html>Created</html>")

        with _client(handler) as client:
            with pytest.raises(IssueTrackerError, match="not valid JSON") as exc_info:
                client.create_issue({"summary": "Epic"})

        assert exc_info.value.operation == "create issue 'Epic'"

    def test_non_json_success_body_on_issue_types(self):
        def handler(request):
            return httpx.Response(200, text="")

        with _client(handler) as client:
            with pytest.raises(IssueTrackerError, match="fetch issue types for PRJ"):
                client.get_issue_type_names("PRJ")

    def test_transport_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with _client(handler) as client:
            with pytest.raises(IssueTrackerError, match="connection refused") as exc_info:
                client.create_issue({"summary": "Epic"})

        assert exc_info.value.status_code is None
