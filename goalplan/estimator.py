"""Difficulty scoring and effort estimation for plan nodes.

Both calculations read only the node's own text and its child count, so
the estimator must run after a node's subtree is final. ``estimate_plan``
walks the tree children-first to guarantee that.
"""

from __future__ import annotations

import math
import re
from types import MappingProxyType
from typing import Iterable, Tuple

from .models import Epic, Plan, PlanNode, Story

COMPLEXITY_INDICATORS: Tuple[str, ...] = (
    "integration",
    "migration",
    "refactor",
    "architecture",
    "security",
    "authentication",
    "deployment",
    "database",
)

# name -> (increment, terms). Terms starting with "\b" are regular expressions.
TIME_FACTORS = MappingProxyType({
    "migration": (0.5, ("migration", "migrate")),
    "refactor": (0.5, ("refactor",)),
    "architecture": (0.5, ("architecture",)),
    "integration": (0.4, ("integration", "integrate")),
    "database": (0.4, ("database", "schema")),
    "security": (0.4, ("security", "authentication", "encryption")),
    "deployment": (0.3, ("deploy",)),
    "testing": (0.3, ("test",)),
    "performance": (0.3, ("performance", "optimiz", "optimis")),
    "third_party": (0.3, ("third-party", "third party", "external", "payment")),
    "realtime": (0.3, ("real-time", "realtime", "websocket")),
    "api": (0.2, (r"\bapis?\b", "endpoint")),
    "ui": (0.2, (r"\bui\b", "interface", "screen")),
    "research": (0.15, ("research", "investigat", "spike")),
    "documentation": (0.1, ("document", r"\bdocs?\b")),
    "bugfix": (-0.2, (r"\bfix", r"\bbugs?\b")),
})
CHILD_INCREMENT = 0.1

BASE_HOURS = MappingProxyType({
    "epic": MappingProxyType({"Easy": 80.0, "Medium": 200.0, "Hard": 400.0}),
    "story": MappingProxyType({"Easy": 3.0, "Medium": 12.0, "Hard": 28.0}),
    "subtask": MappingProxyType({"Easy": 0.75, "Medium": 3.0, "Hard": 6.0}),
})

HOURS_PER_DAY = 8
DAYS_PER_WEEK = 5
HOURS_PER_WEEK = 40

EPIC_WEEK_BANDS: Tuple[Tuple[int, str], ...] = (
    (1, "1 week"),
    (2, "1-2 weeks"),
    (3, "2-3 weeks"),
    (4, "3-4 weeks"),
    (6, "4-6 weeks"),
    (8, "6-8 weeks"),
    (12, "8-12 weeks"),
)


def _has_term(text: str, term: str) -> bool:
    if term.startswith("\\b"):
        return re.search(term, text) is not None
    return term in text


def _node_text(summary: str, description: str) -> str:
    return f"{summary or ''} {description or ''}".lower()


def count_indicator_hits(summary: str, description: str) -> int:
    text = _node_text(summary, description)
    return sum(1 for term in COMPLEXITY_INDICATORS if term in text)


def calculate_difficulty(summary: str, description: str, child_count: int) -> str:
    """Rate a node Easy, Medium or Hard from its child count and indicator terms."""
    hits = count_indicator_hits(summary, description)
    if child_count >= 4 or hits >= 3:
        return "Hard"
    if child_count >= 2 or hits >= 1:
        return "Medium"
    return "Easy"


def detect_time_factors(summary: str, description: str) -> Tuple[str, ...]:
    """Return the names of the time factors present in the node text."""
    text = _node_text(summary, description)
    return tuple(
        name
        for name, (_, terms) in TIME_FACTORS.items()
        if any(_has_term(text, term) for term in terms)
    )


def calculate_multiplier(difficulty: str, summary: str, description: str, child_count: int) -> float:
    multiplier = 1.0
    for name in detect_time_factors(summary, description):
        if name == "bugfix" and difficulty != "Easy":
            continue
        multiplier += TIME_FACTORS[name][0]
    multiplier += CHILD_INCREMENT * child_count
    return multiplier


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def format_epic_time(hours: float) -> str:
    weeks = max(1, math.ceil(hours / HOURS_PER_WEEK))
    for limit, label in EPIC_WEEK_BANDS:
        if weeks <= limit:
            return label
    return f"{weeks} weeks"


def format_story_time(hours: float) -> str:
    if hours < 1:
        return _plural(max(1, round(hours * 60)), "minute")
    if hours <= HOURS_PER_DAY:
        return _plural(round(hours), "hour")
    days = math.ceil(hours / HOURS_PER_DAY)
    if days <= DAYS_PER_WEEK:
        return _plural(days, "day")
    return _plural(math.ceil(days / DAYS_PER_WEEK), "week")


def format_subtask_time(hours: float) -> str:
    if hours < 1:
        minutes = max(15, round(hours * 60 / 15) * 15)
        if minutes >= 60:
            return "1 hour"
        return f"{minutes} minutes"
    if hours < 2:
        rounded = round(hours * 2) / 2
        if rounded == 1:
            return "1 hour"
        return f"{rounded:g} hours"
    if hours <= HOURS_PER_DAY:
        return _plural(round(hours), "hour")
    return "more than 1 day"


_FORMATTERS = MappingProxyType({
    "epic": format_epic_time,
    "story": format_story_time,
    "subtask": format_subtask_time,
})


def calculate_hours(difficulty: str, node_kind: str, summary: str, description: str, child_count: int) -> float:
    base = BASE_HOURS.get(node_kind, BASE_HOURS["subtask"])[difficulty]
    return base * calculate_multiplier(difficulty, summary, description, child_count)


def calculate_estimated_time(
    difficulty: str,
    node_kind: str,
    summary: str,
    description: str,
    child_count: int,
) -> str:
    """Estimate effort for a node as a human-readable string."""
    hours = calculate_hours(difficulty, node_kind, summary, description, child_count)
    formatter = _FORMATTERS.get(node_kind, format_subtask_time)
    return formatter(hours)


def estimate_node(node: PlanNode) -> None:
    child_count = len(node.children)
    difficulty = calculate_difficulty(node.summary, node.description, child_count)
    estimated_time = calculate_estimated_time(
        difficulty, node.kind, node.summary, node.description, child_count
    )
    node.assign_estimate(difficulty, estimated_time)


def _estimate_story(story: Story) -> None:
    for subtask in story.subtasks:
        estimate_node(subtask)
    estimate_node(story)


def _estimate_epic(epic: Epic) -> None:
    for story in epic.stories:
        _estimate_story(story)
    estimate_node(epic)


def estimate_epics(epics: Iterable[Epic]) -> None:
    for epic in epics:
        _estimate_epic(epic)


def estimate_plan(plan: Plan) -> Plan:
    """Annotate every node of the plan with difficulty and estimated time."""
    estimate_epics(plan.epics)
    return plan
