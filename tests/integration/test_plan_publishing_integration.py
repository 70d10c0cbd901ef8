"""Integration tests for compiling a goal and publishing it to a tracker.

These tests run the whole pipeline against an in-process tracker double
and check the requests it receives, the duplicate history and the
failure behavior.
"""

import pytest

from goalplan.adf import adf_to_text
from goalplan.errors import PlanCreationError, PlanValidationError
from goalplan.history import InMemoryHistoryStore
from goalplan.models import CreatedIssue, PlanContext, PlanHistory
from goalplan.planner import parse_goal_into_plan
from goalplan.publisher import PROVENANCE_PROPERTY, PlanPublisher, build_issue_fields, tracker_labels

GOAL = "Build me a payment system"
EPIC_SUMMARY = "Implementation: Build me a payment system"


class TestPublishPlan:
    """End-to-end creation of a fresh plan."""

    def test_creates_every_node_with_parent_links(self, fake_client, history_store):
        plan = parse_goal_into_plan(GOAL)

        result = PlanPublisher(fake_client, history_store).publish("PRJ", plan)

        assert (len(result.epics), len(result.stories), len(result.subtasks)) == (1, 3, 9)
        assert len(fake_client.created) == 13

        epics = fake_client.created_of_type("Epic")
        stories = fake_client.created_of_type("Story")
        subtasks = fake_client.created_of_type("Subtask")
        assert len(epics) == 1 and "parent" not in epics[0]
        assert all(story["parent"] == {"key": "PRJ-1"} for story in stories)
        story_keys = {issue.key for issue in result.stories}
        assert all(subtask["parent"]["key"] in story_keys for subtask in subtasks)

    def test_request_order_is_depth_first(self, fake_client, history_store):
        plan = parse_goal_into_plan(GOAL)

        PlanPublisher(fake_client, history_store).publish("PRJ", plan)

        types = [fields["issuetype"]["name"] for fields in fake_client.created]
        assert types[:5] == ["Epic", "Story", "Subtask", "Subtask", "Subtask"]

    def test_labels_and_description(self, fake_client, history_store):
        plan = parse_goal_into_plan(GOAL)

        PlanPublisher(fake_client, history_store).publish("PRJ", plan)

        story = fake_client.created_of_type("Story")[0]
        assert story["labels"][0] == "implementation"
        assert any(label.startswith("Difficulty:") for label in story["labels"])
        time_labels = [label for label in story["labels"] if label.startswith("Time:")]
        assert len(time_labels) == 1 and " " not in time_labels[0]
        text = adf_to_text(story["description"])
        assert "Acceptance Criteria:" in text
        assert "// Difficulty:" in text

    def test_provenance_on_first_epic(self, fake_client, history_store):
        plan = parse_goal_into_plan(GOAL)

        PlanPublisher(fake_client, history_store).publish("PRJ", plan, PlanContext(labels=["q3"]))

        provenance = fake_client.properties[f"PRJ-1/{PROVENANCE_PROPERTY}"]
        assert provenance["generatedBy"] == "Goal Plan Generator"
        assert provenance["originalGoal"] == GOAL
        assert provenance["context"]["labels"] == ["q3"]
        assert (provenance["totalEpics"], provenance["totalStories"], provenance["totalSubtasks"]) == (1, 3, 9)

    def test_history_records_every_issue(self, fake_client, history_store):
        plan = parse_goal_into_plan(GOAL)

        PlanPublisher(fake_client, history_store).publish("PRJ", plan)

        history = history_store.load()
        assert history.total() == 13
        assert history.created_epics[0].key == "PRJ-1"
        assert history.created_stories[0].parent_key == "PRJ-1"

    def test_project_issue_type_names_are_used(self, make_client, history_store):
        client = make_client(issue_types=["Epic", "Task", "Sub-task"])
        plan = parse_goal_into_plan(GOAL)

        PlanPublisher(client, history_store).publish("PRJ", plan)

        assert len(client.created_of_type("Task")) == 3
        assert len(client.created_of_type("Sub-task")) == 9


class TestDuplicateSuppression:
    """Re-running a goal against the same history."""

    def test_second_run_creates_nothing(self, fake_client, history_store):
        publisher = PlanPublisher(fake_client, history_store)
        publisher.publish("PRJ", parse_goal_into_plan(GOAL))

        result = publisher.publish("PRJ", parse_goal_into_plan(GOAL))

        assert result.is_noop
        assert result.skipped == {"epic": 1, "story": 3, "subtask": 9}
        assert len(fake_client.created) == 13
        assert len(fake_client.properties) == 1

    def test_recorded_epic_key_is_reused_as_parent(self, fake_client):
        history = PlanHistory()
        history.record("epic", CreatedIssue(summary=EPIC_SUMMARY.upper(), key="OLD-7"))
        store = InMemoryHistoryStore(history)

        result = PlanPublisher(fake_client, store).publish("PRJ", parse_goal_into_plan(GOAL))

        assert result.skipped["epic"] == 1
        assert len(result.epics) == 0
        assert all(story["parent"] == {"key": "OLD-7"} for story in fake_client.created_of_type("Story"))
        assert fake_client.properties == {}

    def test_duplicate_without_key_skips_subtree(self, fake_client):
        history = PlanHistory()
        history.record("epic", CreatedIssue(summary=EPIC_SUMMARY))
        store = InMemoryHistoryStore(history)

        result = PlanPublisher(fake_client, store).publish("PRJ", parse_goal_into_plan(GOAL))

        assert result.is_noop
        assert fake_client.created == []


class TestPublishFailures:
    """Validation and tracker failures."""

    def test_missing_project_key_makes_no_calls(self, fake_client, history_store):
        with pytest.raises(PlanValidationError):
            PlanPublisher(fake_client, history_store).publish(" ", parse_goal_into_plan(GOAL))

        assert fake_client.request_count == 0

    def test_empty_goal_makes_no_calls(self, fake_client, history_store):
        with pytest.raises(PlanValidationError):
            PlanPublisher(fake_client, history_store).publish("PRJ", parse_goal_into_plan(""))

        assert fake_client.request_count == 0

    def test_metadata_failure(self, make_client, history_store):
        client = make_client(fail_metadata=True)

        with pytest.raises(PlanCreationError, match="issue type metadata"):
            PlanPublisher(client, history_store).publish("PRJ", parse_goal_into_plan(GOAL))

        assert client.created == []

    def test_failure_aborts_and_records_created_issues(self, make_client, history_store):
        client = make_client(fail_on="Set up project: project structure and tooling")

        with pytest.raises(PlanCreationError) as exc_info:
            PlanPublisher(client, history_store).publish("PRJ", parse_goal_into_plan(GOAL))

        error = exc_info.value
        assert error.node_kind == "story"
        # epic, first story and its three subtasks
        assert error.created_count == 5
        assert len(client.created) == 5
        history = history_store.load()
        assert history.total() == 5
        assert history.created_epics[0].key == "PRJ-1"

    def test_retry_after_failure_creates_only_missing_nodes(self, make_client, history_store):
        failing = make_client(fail_on="Set up project: project structure and tooling")
        with pytest.raises(PlanCreationError):
            PlanPublisher(failing, history_store).publish("PRJ", parse_goal_into_plan(GOAL))

        retry_client = make_client()
        result = PlanPublisher(retry_client, history_store).publish("PRJ", parse_goal_into_plan(GOAL))

        assert result.skipped == {"epic": 1, "story": 1, "subtask": 3}
        assert (len(result.epics), len(result.stories), len(result.subtasks)) == (0, 2, 6)
        assert len(retry_client.created) == 8
        assert all(story["parent"] == {"key": "PRJ-1"} for story in retry_client.created_of_type("Story"))
        assert history_store.load().total() == 13

    def test_retry_after_provenance_failure_creates_nothing(self, make_client, history_store):
        failing = make_client(fail_property=True)
        with pytest.raises(PlanCreationError, match="provenance record"):
            PlanPublisher(failing, history_store).publish("PRJ", parse_goal_into_plan(GOAL))

        assert len(failing.created) == 13
        assert history_store.load().total() == 13

        retry_client = make_client()
        result = PlanPublisher(retry_client, history_store).publish("PRJ", parse_goal_into_plan(GOAL))

        assert result.is_noop
        assert retry_client.created == []


class TestIssueFields:
    """Field placement of caller context."""

    def test_components_everywhere_assignee_not_on_epics(self):
        plan = parse_goal_into_plan(GOAL)
        context = PlanContext(components=["Payments"], assignee="acc-1")
        epic = plan.epics[0]
        story = epic.stories[0]

        epic_fields = build_issue_fields("PRJ", epic, "Epic", context)
        story_fields = build_issue_fields("PRJ", story, "Story", context, parent_key="PRJ-1")

        assert epic_fields["components"] == [{"name": "Payments"}]
        assert "assignee" not in epic_fields
        assert story_fields["assignee"] == {"accountId": "acc-1"}
        assert story_fields["parent"] == {"key": "PRJ-1"}
        assert story_fields["project"] == {"key": "PRJ"}

    def test_tracker_labels_strip_whitespace_from_time(self):
        subtask = parse_goal_into_plan(GOAL).epics[0].stories[0].subtasks[0]

        labels = tracker_labels(subtask)

        assert labels[-2] == f"Difficulty:{subtask.difficulty}"
        assert labels[-1] == "Time:" + subtask.estimated_time.replace(" ", "")
