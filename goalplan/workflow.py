"""Workflow management for goal-plan generation.

This module wires the compiler, the issue tracker client and the history
store together and exposes the operations used by the chat-agent action,
the webtrigger and the MCP tools. Every operation returns a reply
dictionary; failures are logged with context and reported in the reply.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from .analyzer import analyze_goal
from .catalog import describe_catalog
from .config import Settings
from .errors import PlanValidationError
from .history import HistoryStore, JsonHistoryStore
from .models import PlanContext, PublishResult
from .plan_logging import log_error_with_context, log_operation
from .planner import parse_goal_into_plan
from .publisher import PlanPublisher
from .tracker import IssueTrackerClient, JiraClient

logger = logging.getLogger("goalplan.workflow")

MISSING_FIELDS_MESSAGE = (
    "Missing required fields. Please provide both a project key and a goal description."
)


class PlanWorkflow:
    """Entry point for analysing goals and creating plans."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[IssueTrackerClient] = None,
        store: Optional[HistoryStore] = None,
    ):
        self.settings = settings or Settings.from_env()
        self._client = client
        self.store = store or JsonHistoryStore(self.settings.history_path)

    @property
    def client(self) -> IssueTrackerClient:
        """Issue tracker client, built from settings on first use."""
        if self._client is None:
            if not self.settings.tracker_configured:
                raise PlanValidationError(
                    "Issue tracker is not configured. Set JIRA_BASE_URL, JIRA_EMAIL and JIRA_API_TOKEN."
                )
            self._client = JiraClient(
                self.settings.jira_base_url,
                self.settings.jira_email,
                self.settings.jira_api_token,
                timeout=self.settings.http_timeout,
            )
        return self._client

    # ------------------------------------------------------------------
    # Compilation
    # ------------------------------------------------------------------

    def analyze_goal(self, goal: str) -> Dict[str, Any]:
        """Classify a goal without generating a plan."""
        analysis = analyze_goal(goal)
        return {
            "analysis": analysis.to_dict(),
            "next_suggested_step": "preview_plan",
            "message": (
                f"Detected {len(analysis.work_areas)} work areas "
                f"({', '.join(analysis.area_types)}) with {analysis.complexity} complexity."
            ),
        }

    def preview_plan(self, goal: str, context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Compile a plan without creating anything in the tracker."""
        if not goal or not goal.strip():
            return {
                "error": "A goal description is required",
                "suggestion": "Describe what you want to build in one or two sentences",
                "next_suggested_step": "preview_plan",
            }
        plan = parse_goal_into_plan(goal, PlanContext.from_dict(context))
        counts = plan.counts()
        return {
            "plan": plan.to_dict(),
            "counts": counts,
            "next_suggested_step": "create_jira_plan",
            "message": (
                f"Plan preview: {counts['epics']} epics, {counts['stories']} stories "
                f"and {counts['subtasks']} subtasks."
            ),
        }

    # ------------------------------------------------------------------
    # Plan creation
    # ------------------------------------------------------------------

    def publish(self, project_key: str, goal: str, context: Optional[Dict[str, Any]] = None) -> PublishResult:
        """Compile and create a plan, raising on failure."""
        if not project_key or not goal:
            raise PlanValidationError(MISSING_FIELDS_MESSAGE)
        plan_context = PlanContext.from_dict(context)
        with log_operation("create_plan", project_key=project_key):
            plan = parse_goal_into_plan(goal, plan_context)
            publisher = PlanPublisher(self.client, self.store)
            return publisher.publish(project_key, plan, plan_context)

    def create_plan(self, project_key: str, goal: str, context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Chat-agent action: create a complete plan and summarise it."""
        logger.info(f"Creating plan for project: {project_key}")
        try:
            result = self.publish(project_key, goal, context)
        except PlanValidationError as e:
            return {"success": False, "message": str(e)}
        except Exception as e:
            log_error_with_context(e, {"operation": "create_plan", "project_key": project_key})
            return {
                "success": False,
                "message": f"Failed to create plan: {e}",
                "error": str(e),
            }

        if result.is_noop:
            return {
                "success": True,
                "no_op": True,
                "message": (
                    f"No new issues created in project {project_key}: every epic, story and "
                    f"subtask of this plan already exists ({result.skipped_count} skipped)."
                ),
                "summary": _result_summary(result),
            }

        return {
            "success": True,
            "no_op": False,
            "message": (
                f"Successfully created {len(result.epics)} epics, {len(result.stories)} stories, "
                f"and {len(result.subtasks)} subtasks in project {project_key}!"
            ),
            "summary": _result_summary(result),
        }

    def handle_webtrigger(self, request: Dict[str, Any]) -> Dict[str, Any]:
        """Webtrigger handler: ``{projectKey, goal, context}`` in, HTTP-style reply out."""
        payload = request.get("body") or {}
        if isinstance(payload, str):
            try:
                payload = json.loads(payload)
            except json.JSONDecodeError:
                return _http_reply(400, {"error": "Request body must be valid JSON"})
        if not isinstance(payload, dict):
            return _http_reply(400, {"error": "Request body must be a JSON object"})

        project_key = payload.get("projectKey")
        goal = payload.get("goal")
        if not project_key or not goal:
            return _http_reply(400, {"error": "Missing required fields: projectKey and goal are required"})

        try:
            result = self.publish(project_key, goal, payload.get("context"))
        except PlanValidationError as e:
            return _http_reply(400, {"error": str(e)})
        except Exception as e:
            log_error_with_context(e, {"operation": "webtrigger", "project_key": project_key})
            return _http_reply(500, {"error": "Failed to generate plan", "details": str(e)})

        return _http_reply(200, {
            "success": True,
            "no_op": result.is_noop,
            "message": "No new issues created" if result.is_noop else "Plan created successfully",
            "plan": result.to_dict(),
        })

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def get_history(self) -> Dict[str, Any]:
        try:
            history = self.store.load()
        except ValueError as e:
            log_error_with_context(e, {"operation": "get_history"})
            return {
                "error": f"Failed to read plan history: {e}",
                "suggestion": "Reset the history with reset_plan_history",
                "next_suggested_step": "reset_plan_history",
            }
        return {
            "history": history.to_dict(),
            "counts": {
                "epics": len(history.created_epics),
                "stories": len(history.created_stories),
                "subtasks": len(history.created_subtasks),
            },
            "message": f"History holds {history.total()} created issues",
        }

    def reset_history(self) -> Dict[str, Any]:
        """Forget every previously created issue."""
        history = self.store.reset()
        return {
            "history_id": history.history_id,
            "next_suggested_step": "create_jira_plan",
            "message": "Plan history cleared; previously created summaries will no longer be skipped.",
        }

    def get_catalog(self) -> Dict[str, Any]:
        return describe_catalog()


def _result_summary(result: PublishResult) -> Dict[str, Any]:
    return {
        "projectKey": result.project_key,
        "epicCount": len(result.epics),
        "storyCount": len(result.stories),
        "subtaskCount": len(result.subtasks),
        "skipped": dict(result.skipped),
        "epics": [{"key": epic.key, "summary": epic.summary} for epic in result.epics],
        "firstEpicKey": result.epics[0].key if result.epics else None,
    }


def _http_reply(status_code: int, body: Dict[str, Any]) -> Dict[str, Any]:
    return {"statusCode": status_code, "body": json.dumps(body)}
