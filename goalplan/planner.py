"""Goal-to-plan compiler.

Runs the analysis, expansion, estimation and rendering stages in order.
The pipeline is pure: it performs no I/O apart from logging and never
raises for any goal string, including an empty one.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Union

from .adf import text_to_adf
from .analyzer import analyze_goal
from .estimator import estimate_plan
from .expander import generate_epic_for_work_area
from .models import Plan, PlanContext, PlanNode, Story
from .plan_logging import log_performance, log_plan_compiled

logger = logging.getLogger("goalplan.planner")


def compose_node_text(node: PlanNode) -> str:
    """Build the final annotated description for a node.

    Stories get their acceptance criteria under a bold heading; every node
    ends with its estimate as code-styled lines.
    """
    lines: List[str] = [node.description] if node.description else []
    if isinstance(node, Story) and node.acceptance_criteria:
        lines.extend(["", "*Acceptance Criteria:*"])
        lines.extend(node.acceptance_criteria.split("\n"))
    if node.is_estimated:
        lines.extend([
            "",
            "*Estimate:*",
            f"// Difficulty: {node.difficulty}",
            f"// Estimated time: {node.estimated_time}",
        ])
    return "\n".join(lines)


def render_plan(plan: Plan) -> Plan:
    """Render every node's annotated description into a rich-text document."""
    for node in plan.iter_nodes():
        node.document = text_to_adf(compose_node_text(node))
    return plan


@log_performance("parse_goal_into_plan")
def parse_goal_into_plan(
    goal: str,
    context: Optional[Union[PlanContext, Dict[str, Any]]] = None,
) -> Plan:
    """Compile a goal into a fully estimated and rendered plan."""
    if not isinstance(context, PlanContext):
        context = PlanContext.from_dict(context)

    analysis = analyze_goal(goal)
    logger.debug(
        f"Goal classified as {analysis.complexity} with areas {analysis.area_types}"
    )

    plan = Plan(goal=analysis.goal, analysis=analysis)
    for area in analysis.work_areas:
        plan.epics.append(generate_epic_for_work_area(area, analysis.goal, analysis, context))

    estimate_plan(plan)
    render_plan(plan)

    log_plan_compiled(
        analysis.goal,
        analysis.complexity,
        len(plan.epics),
        plan.story_count,
        plan.subtask_count,
    )
    return plan
