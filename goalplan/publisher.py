"""Publish a compiled plan as issues in an issue tracker.

Issues are created one at a time, depth-first: an epic, then each of its
stories, then each story's subtasks. Children need their parent's key, so
the traversal threads the freshly created (or previously recorded) key
down the tree. The first failing request aborts the run; issues that were
already created are left in place and still recorded in the history.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Optional

from .errors import IssueTrackerError, PlanCreationError, PlanValidationError
from .history import HistoryStore, find_duplicate
from .models import (
    CreatedIssue,
    Epic,
    Plan,
    PlanContext,
    PlanHistory,
    PlanNode,
    PublishResult,
    Story,
)
from .plan_logging import (
    log_duplicate_skipped,
    log_issue_created,
    log_operation,
    log_performance,
)
from .tracker import IssueTrackerClient

logger = logging.getLogger("goalplan.publisher")

PROVENANCE_PROPERTY = "plan-provenance"
GENERATOR_NAME = "Goal Plan Generator"


def tracker_labels(node: PlanNode) -> list:
    """Node labels plus the synthetic difficulty and time labels."""
    labels = list(node.labels)
    if node.difficulty:
        labels.append(f"Difficulty:{node.difficulty}")
    if node.estimated_time:
        compact_time = re.sub(r"\s+", "", node.estimated_time)
        labels.append(f"Time:{compact_time}")
    return labels


def build_issue_fields(
    project_key: str,
    node: PlanNode,
    issue_type: str,
    context: PlanContext,
    parent_key: Optional[str] = None,
) -> Dict[str, Any]:
    """Build the ``fields`` payload of a create-issue request for a node."""
    fields: Dict[str, Any] = {
        "project": {"key": project_key},
        "summary": node.summary,
        "issuetype": {"name": issue_type},
        "labels": tracker_labels(node),
    }
    if node.document is not None:
        fields["description"] = node.document
    if parent_key:
        fields["parent"] = {"key": parent_key}
    if context.components:
        fields["components"] = [{"name": name} for name in context.components]
    if context.assignee and node.kind != "epic":
        fields["assignee"] = {"accountId": context.assignee}
    return fields


class PlanPublisher:
    """Create a plan's epics, stories and subtasks with duplicate suppression."""

    def __init__(self, client: IssueTrackerClient, store: HistoryStore):
        self.client = client
        self.store = store

    @log_performance("publish_plan")
    def publish(
        self,
        project_key: str,
        plan: Plan,
        context: Optional[PlanContext] = None,
    ) -> PublishResult:
        if not project_key or not project_key.strip():
            raise PlanValidationError("A project key is required to create a plan")
        if not plan.goal or not plan.goal.strip():
            raise PlanValidationError("A goal is required to create a plan")
        context = context or PlanContext()

        with log_operation("publish_plan", project_key=project_key, epics=len(plan.epics)):
            try:
                issue_types = self.client.resolve_issue_types(project_key)
            except IssueTrackerError as e:
                raise PlanCreationError("issue type metadata", project_key, e) from e

            history = self.store.load()
            result = PublishResult(project_key=project_key)

            # Issues created before a failure stay in the tracker, so their
            # history entries are kept too.
            try:
                for epic in plan.epics:
                    self._publish_epic(epic, project_key, issue_types, context, history, result)

                if result.epics:
                    self._attach_provenance(result, plan, context)
            finally:
                self.store.save(history)

        if result.is_noop:
            logger.info(f"Every node of the plan already exists in {project_key}; nothing created")
        else:
            logger.info(
                f"Created {len(result.epics)} epics, {len(result.stories)} stories and "
                f"{len(result.subtasks)} subtasks in {project_key}"
            )
        return result

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def _publish_epic(self, epic: Epic, project_key, issue_types, context, history, result) -> None:
        epic_key = self._create_or_reuse(epic, project_key, issue_types, context, history, result)
        if epic_key is None:
            return
        for story in epic.stories:
            self._publish_story(story, epic_key, project_key, issue_types, context, history, result)

    def _publish_story(self, story: Story, epic_key, project_key, issue_types, context, history, result) -> None:
        story_key = self._create_or_reuse(
            story, project_key, issue_types, context, history, result, parent_key=epic_key
        )
        if story_key is None:
            return
        for subtask in story.subtasks:
            self._create_or_reuse(
                subtask, project_key, issue_types, context, history, result, parent_key=story_key
            )

    def _create_or_reuse(
        self,
        node: PlanNode,
        project_key: str,
        issue_types: Dict[str, str],
        context: PlanContext,
        history: PlanHistory,
        result: PublishResult,
        parent_key: Optional[str] = None,
    ) -> Optional[str]:
        """Create the node unless its summary is already recorded.

        Returns the key children should hang under: the new key, or the
        recorded key of the duplicate (``None`` if it was never recorded).
        """
        existing = find_duplicate(node.summary, history.entries_for(node.kind))
        if existing is not None:
            result.skipped[node.kind] += 1
            log_duplicate_skipped(node.kind, node.summary, existing.key)
            return existing.key

        fields = build_issue_fields(
            project_key, node, issue_types[node.kind], context, parent_key=parent_key
        )
        try:
            created = self.client.create_issue(fields)
        except IssueTrackerError as e:
            raise PlanCreationError(node.kind, node.summary, e, result.created_count) from e

        issue = CreatedIssue(
            summary=node.summary,
            key=created.get("key"),
            id=created.get("id"),
            parent_key=parent_key,
        )
        history.record(node.kind, issue)
        result.created_for(node.kind).append(issue)
        log_issue_created(node.kind, issue.key, node.summary, parent_key)
        return issue.key

    def _attach_provenance(self, result: PublishResult, plan: Plan, context: PlanContext) -> None:
        first_epic = result.epics[0]
        provenance = {
            "generatedBy": GENERATOR_NAME,
            "timestamp": result.timestamp,
            "originalGoal": plan.goal,
            "context": context.to_dict(),
            "totalEpics": len(result.epics),
            "totalStories": len(result.stories),
            "totalSubtasks": len(result.subtasks),
        }
        try:
            self.client.set_issue_property(first_epic.key, PROVENANCE_PROPERTY, provenance)
        except IssueTrackerError as e:
            raise PlanCreationError("provenance record", first_epic.summary, e, result.created_count) from e
        logger.info(f"Attached plan provenance to {first_epic.key}")
