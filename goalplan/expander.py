"""Expand classified work areas into epics, stories and subtasks."""

from __future__ import annotations

from types import MappingProxyType
from typing import List, Optional

from .catalog import SUBTASK_ACTIONS, display_name, get_phases, work_description
from .models import Epic, GoalAnalysis, Phase, PlanContext, Story, Subtask, WorkArea

STORY_COUNTS = MappingProxyType({"low": 3, "medium": 3, "high": 6})
SUBTASK_COUNTS = MappingProxyType({"low": 3, "medium": 3, "high": 5})

EPIC_SUMMARY_GOAL_LENGTH = 60


def truncate_text(text: str, max_length: int) -> str:
    """Truncate text to ``max_length`` characters, ending with an ellipsis."""
    if len(text) <= max_length:
        return text
    return text[: max_length - 3] + "..."


def generate_acceptance_criteria(given: str, when: str, then: str) -> str:
    """Generate acceptance criteria in GIVEN/WHEN/THEN format."""
    return f"GIVEN {given}\nWHEN {when}\nTHEN {then}"


def _labels_for(area: WorkArea, context: PlanContext) -> List[str]:
    # Caller labels follow the area label in the given order; a repeat of a
    # label already present is dropped, as the tracker stores labels as a set.
    labels = [area.type]
    for label in context.labels:
        if label not in labels:
            labels.append(label)
    return labels


def _epic_description(area: WorkArea, goal: str) -> str:
    keywords = ", ".join(area.keywords) if area.keywords else "general implementation"
    lines = [
        f"{display_name(area.type)} work for this project.",
        work_description(area.type),
        "",
        "*Goal:*",
        goal,
        "",
        "*Detected keywords:*",
        keywords,
    ]
    return "\n".join(lines)


def generate_subtasks(phase: Phase, complexity: str, labels: List[str]) -> List[Subtask]:
    count = min(SUBTASK_COUNTS[complexity], len(SUBTASK_ACTIONS))
    return [
        Subtask(
            summary=f"{verb} {phase.focus}",
            description=f"{verb} {phase.focus} as part of {phase.action.lower()}.",
            labels=list(labels),
        )
        for verb in SUBTASK_ACTIONS[:count]
    ]


def generate_story(phase: Phase, complexity: str, labels: List[str]) -> Story:
    """Build one story (and its subtasks) from a catalog phase."""
    return Story(
        summary=f"{phase.action}: {phase.focus}",
        description=f"{phase.action} for the project, focusing on {phase.focus}.",
        labels=list(labels),
        acceptance_criteria=generate_acceptance_criteria(
            f"{phase.action} is complete",
            "all requirements are met",
            "code is reviewed and tested",
        ),
        subtasks=generate_subtasks(phase, complexity, labels),
    )


def generate_epic_for_work_area(
    area: WorkArea,
    goal: str,
    analysis: GoalAnalysis,
    context: Optional[PlanContext] = None,
) -> Epic:
    """Create the epic, stories and subtasks for one work area.

    The number of stories and of subtasks per story is fixed by the
    analysis complexity tier. Phases are taken from the front of the
    area's catalog entry.
    """
    context = context or PlanContext()
    labels = _labels_for(area, context)
    phases = get_phases(area.type)[: STORY_COUNTS[analysis.complexity]]
    name = display_name(area.type)

    return Epic(
        summary=f"{name}: {truncate_text(goal, EPIC_SUMMARY_GOAL_LENGTH)}",
        description=_epic_description(area, goal),
        labels=labels,
        name=name,
        area=area.type,
        stories=[generate_story(phase, analysis.complexity, labels) for phase in phases],
    )
