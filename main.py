"""MCP server exposing goal-to-plan tools."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from mcp.server.fastmcp import FastMCP

from goalplan.config import Settings
from goalplan.plan_logging import setup_logging
from goalplan.workflow import PlanWorkflow

mcp = FastMCP("goal-plan")

_WORKFLOWS: Dict[str, PlanWorkflow] = {}


def _resolve_root(root: Optional[str]) -> Optional[Path]:
    if not root:
        return None
    resolved = Path(root).expanduser().resolve()
    if not resolved.exists():
        raise ValueError(f"Provided root '{root}' does not exist.")
    return resolved


def _workflow(root: Optional[str] = None) -> PlanWorkflow:
    """Return the workflow for a project root, reusing one per root."""
    resolved = _resolve_root(root)
    cache_key = str(resolved) if resolved else ""
    if cache_key not in _WORKFLOWS:
        settings = Settings.from_env()
        if resolved:
            settings.project_root = resolved
        _WORKFLOWS[cache_key] = PlanWorkflow(settings)
    return _WORKFLOWS[cache_key]


def _context(
    labels: Optional[List[str]],
    components: Optional[List[str]],
    assignee: Optional[str],
) -> Dict[str, Any]:
    context: Dict[str, Any] = {}
    if labels:
        context["labels"] = labels
    if components:
        context["components"] = components
    if assignee:
        context["assignee"] = assignee
    return context


@mcp.tool()
def analyze_goal(goal: str) -> Dict[str, Any]:
    """Classify a goal into work areas and a complexity tier without building a plan."""

    return _workflow().analyze_goal(goal)


@mcp.tool()
def preview_plan(
    goal: str,
    labels: Optional[List[str]] = None,
    components: Optional[List[str]] = None,
    assignee: Optional[str] = None,
) -> Dict[str, Any]:
    """Generate the epics, stories and subtasks for a goal without creating any issues.
    Use this to show the user what create_jira_plan would create."""

    return _workflow().preview_plan(goal, _context(labels, components, assignee))


@mcp.tool()
def create_jira_plan(
    project_key: str,
    goal: str,
    labels: Optional[List[str]] = None,
    components: Optional[List[str]] = None,
    assignee: Optional[str] = None,
    root: Optional[str] = None,
) -> Dict[str, Any]:
    """Create a complete Jira plan (epics, stories and subtasks) from a goal.
    Issues whose summary was already created by an earlier run are skipped.
    Requires JIRA_BASE_URL, JIRA_EMAIL and JIRA_API_TOKEN in the environment."""

    return _workflow(root).create_plan(project_key, goal, _context(labels, components, assignee))


@mcp.tool()
def plan_history(root: Optional[str] = None) -> Dict[str, Any]:
    """List the issues previously created, used to skip duplicates."""

    return _workflow(root).get_history()


@mcp.tool()
def reset_plan_history(root: Optional[str] = None) -> Dict[str, Any]:
    """Forget previously created issues so the next plan creates everything again."""

    return _workflow(root).reset_history()


@mcp.tool()
def get_phase_catalog() -> Dict[str, Any]:
    """Return the work areas, their phases and the subtask actions used to build plans."""

    return _workflow().get_catalog()


@mcp.resource("goal-plan://catalog")
def resource_catalog() -> str:
    """Resource view of the phase catalog."""

    catalog = _workflow().get_catalog()
    lines = ["Goal Plan Phase Catalog"]
    for area in catalog["areas"]:
        lines.append("")
        lines.append(f"- {area['name']} ({area['type']}): {area['description']}")
        for phase in area["phases"]:
            lines.append(f"  - {phase['action']}: {phase['focus']}")
    lines.append("")
    lines.append(f"Subtask actions: {', '.join(catalog['subtask_actions'])}")
    return "\n".join(lines)


if __name__ == "__main__":
    _settings = Settings.from_env()
    setup_logging(_settings.log_level, _settings.log_file)
    for _issue in _settings.validate():
        logging.getLogger("goalplan.server").warning(f"Configuration issue: {_issue}")
    mcp.run(transport="stdio")
