"""Data models for goal-plan generation.

This module contains the core data structures used throughout the planner,
representing goal analyses, plan nodes (epics, stories, subtasks), caller
context, duplicate-suppression history and publishing results.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, ClassVar, Dict, Iterator, List, Optional

AREA_TYPES = (
    "frontend",
    "backend",
    "auth",
    "testing",
    "deployment",
    "data",
    "mobile",
    "documentation",
    "implementation",
)
FALLBACK_AREA = "implementation"

COMPLEXITY_LEVELS = ("low", "medium", "high")
DIFFICULTY_LEVELS = ("Easy", "Medium", "Hard")


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


# ---------------------------------------------------------------------------
# Goal analysis
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class WorkArea:
    """A category of project work detected in a goal."""

    type: str
    keywords: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {"type": self.type, "keywords": list(self.keywords)}

    @property
    def is_fallback(self) -> bool:
        return self.type == FALLBACK_AREA


@dataclass(slots=True)
class GoalAnalysis:
    """Classification of a goal into work areas and a complexity tier."""

    goal: str
    work_areas: List[WorkArea]
    complexity: str  # 'low', 'medium', 'high'
    word_count: int
    sentence_count: int

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "goal": self.goal,
            "work_areas": [area.to_dict() for area in self.work_areas],
            "complexity": self.complexity,
            "word_count": self.word_count,
            "sentence_count": self.sentence_count,
        }

    @property
    def area_types(self) -> List[str]:
        return [area.type for area in self.work_areas]


@dataclass(frozen=True, slots=True)
class Phase:
    """Catalog entry: one canonical unit of story-level work within an area."""

    action: str
    focus: str


# ---------------------------------------------------------------------------
# Plan nodes
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class PlanNode:
    """Fields shared by epics, stories and subtasks.

    ``difficulty`` and ``estimated_time`` stay ``None`` until the estimator
    runs and are assigned exactly once through :meth:`assign_estimate`.
    ``document`` holds the rendered rich-text description.
    """

    kind: ClassVar[str] = "node"

    summary: str
    description: str = ""
    labels: List[str] = field(default_factory=list)
    difficulty: Optional[str] = None
    estimated_time: Optional[str] = None
    document: Optional[Dict[str, Any]] = None

    @property
    def children(self) -> List["PlanNode"]:
        return []

    @property
    def is_estimated(self) -> bool:
        return self.difficulty is not None and self.estimated_time is not None

    def assign_estimate(self, difficulty: str, estimated_time: str) -> None:
        """Record the estimator's verdict; a node is only ever estimated once."""
        if self.is_estimated:
            raise ValueError(f"{self.kind} '{self.summary}' has already been estimated")
        if difficulty not in DIFFICULTY_LEVELS:
            raise ValueError(f"Invalid difficulty: {difficulty}")
        self.difficulty = difficulty
        self.estimated_time = estimated_time

    def _base_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "summary": self.summary,
            "description": self.description,
            "labels": list(self.labels),
            "difficulty": self.difficulty,
            "estimated_time": self.estimated_time,
        }


@dataclass(slots=True)
class Subtask(PlanNode):
    kind: ClassVar[str] = "subtask"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return self._base_dict()


@dataclass(slots=True)
class Story(PlanNode):
    """A story with GIVEN/WHEN/THEN acceptance criteria and its subtasks."""

    kind: ClassVar[str] = "story"

    acceptance_criteria: str = ""
    subtasks: List[Subtask] = field(default_factory=list)

    @property
    def children(self) -> List[PlanNode]:
        return list(self.subtasks)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        data = self._base_dict()
        data["acceptance_criteria"] = self.acceptance_criteria
        data["subtasks"] = [subtask.to_dict() for subtask in self.subtasks]
        return data


@dataclass(slots=True)
class Epic(PlanNode):
    """An epic generated for a single work area."""

    kind: ClassVar[str] = "epic"

    name: str = ""
    area: str = FALLBACK_AREA
    stories: List[Story] = field(default_factory=list)

    @property
    def children(self) -> List[PlanNode]:
        return list(self.stories)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        data = self._base_dict()
        data["name"] = self.name
        data["area"] = self.area
        data["stories"] = [story.to_dict() for story in self.stories]
        return data


@dataclass(slots=True)
class Plan:
    """The compiler's output: every epic generated for one goal."""

    goal: str
    analysis: GoalAnalysis
    epics: List[Epic] = field(default_factory=list)

    @property
    def story_count(self) -> int:
        return sum(len(epic.stories) for epic in self.epics)

    @property
    def subtask_count(self) -> int:
        return sum(len(story.subtasks) for epic in self.epics for story in epic.stories)

    def iter_nodes(self) -> Iterator[PlanNode]:
        """Yield every node depth-first, parents before children."""
        for epic in self.epics:
            yield epic
            for story in epic.stories:
                yield story
                yield from story.subtasks

    def counts(self) -> Dict[str, int]:
        return {
            "epics": len(self.epics),
            "stories": self.story_count,
            "subtasks": self.subtask_count,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "goal": self.goal,
            "analysis": self.analysis.to_dict(),
            "counts": self.counts(),
            "epics": [epic.to_dict() for epic in self.epics],
        }


# ---------------------------------------------------------------------------
# Caller context
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class PlanContext:
    """Optional caller options; unknown keys are kept but otherwise ignored."""

    labels: List[str] = field(default_factory=list)
    components: List[str] = field(default_factory=list)
    assignee: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "PlanContext":
        """Create from a raw request payload."""
        if not data:
            return cls()
        known = {"labels", "components", "assignee"}
        return cls(
            labels=[str(label) for label in data.get("labels") or []],
            components=[str(name) for name in data.get("components") or []],
            assignee=data.get("assignee") or None,
            extra={key: value for key, value in data.items() if key not in known},
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        data: Dict[str, Any] = dict(self.extra)
        data["labels"] = list(self.labels)
        data["components"] = list(self.components)
        if self.assignee:
            data["assignee"] = self.assignee
        return data


# ---------------------------------------------------------------------------
# Duplicate history and publishing results
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class CreatedIssue:
    """An issue created in the tracker, as remembered by the history store."""

    summary: str
    key: Optional[str] = None
    id: Optional[str] = None
    parent_key: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "summary": self.summary,
            "key": self.key,
            "id": self.id,
            "parent_key": self.parent_key,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CreatedIssue":
        """Create from dictionary representation."""
        return cls(
            summary=data["summary"],
            key=data.get("key"),
            id=data.get("id"),
            parent_key=data.get("parent_key"),
        )


@dataclass(slots=True)
class PlanHistory:
    """Persisted record of previously created issues."""

    history_id: Optional[str] = None
    created_epics: List[CreatedIssue] = field(default_factory=list)
    created_stories: List[CreatedIssue] = field(default_factory=list)
    created_subtasks: List[CreatedIssue] = field(default_factory=list)
    updated_at: Optional[str] = None

    def entries_for(self, kind: str) -> List[CreatedIssue]:
        """Return the mutable entry list for a node kind."""
        if kind == "epic":
            return self.created_epics
        if kind == "story":
            return self.created_stories
        if kind == "subtask":
            return self.created_subtasks
        raise ValueError(f"Unknown node kind: {kind}")

    def record(self, kind: str, issue: CreatedIssue) -> None:
        self.entries_for(kind).append(issue)

    def total(self) -> int:
        return len(self.created_epics) + len(self.created_stories) + len(self.created_subtasks)

    def touch(self) -> None:
        self.updated_at = _utc_timestamp()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "history_id": self.history_id,
            "created_epics": [issue.to_dict() for issue in self.created_epics],
            "created_stories": [issue.to_dict() for issue in self.created_stories],
            "created_subtasks": [issue.to_dict() for issue in self.created_subtasks],
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlanHistory":
        """Create from dictionary representation."""
        return cls(
            history_id=data.get("history_id"),
            created_epics=[CreatedIssue.from_dict(item) for item in data.get("created_epics", [])],
            created_stories=[CreatedIssue.from_dict(item) for item in data.get("created_stories", [])],
            created_subtasks=[CreatedIssue.from_dict(item) for item in data.get("created_subtasks", [])],
            updated_at=data.get("updated_at"),
        )


@dataclass(slots=True)
class PublishResult:
    """Outcome of creating a plan in the issue tracker."""

    project_key: str
    epics: List[CreatedIssue] = field(default_factory=list)
    stories: List[CreatedIssue] = field(default_factory=list)
    subtasks: List[CreatedIssue] = field(default_factory=list)
    skipped: Dict[str, int] = field(
        default_factory=lambda: {"epic": 0, "story": 0, "subtask": 0}
    )
    timestamp: str = field(default_factory=_utc_timestamp)

    def created_for(self, kind: str) -> List[CreatedIssue]:
        if kind == "epic":
            return self.epics
        if kind == "story":
            return self.stories
        return self.subtasks

    @property
    def created_count(self) -> int:
        return len(self.epics) + len(self.stories) + len(self.subtasks)

    @property
    def skipped_count(self) -> int:
        return sum(self.skipped.values())

    @property
    def is_noop(self) -> bool:
        """True when every candidate node was filtered as a duplicate."""
        return self.created_count == 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "project_key": self.project_key,
            "epics": [issue.to_dict() for issue in self.epics],
            "stories": [issue.to_dict() for issue in self.stories],
            "subtasks": [issue.to_dict() for issue in self.subtasks],
            "skipped": dict(self.skipped),
            "timestamp": self.timestamp,
            "no_op": self.is_noop,
        }
