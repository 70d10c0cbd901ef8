"""Goal Plan Generator - turn a short goal into epics, stories and subtasks."""

from .adf import text_to_adf
from .analyzer import analyze_goal, extract_keywords
from .estimator import calculate_difficulty, calculate_estimated_time
from .expander import generate_epic_for_work_area
from .models import Epic, GoalAnalysis, Plan, PlanContext, Story, Subtask, WorkArea
from .planner import parse_goal_into_plan
from .workflow import PlanWorkflow

__all__ = [
    "PlanWorkflow",
    "parse_goal_into_plan",
    "analyze_goal",
    "extract_keywords",
    "generate_epic_for_work_area",
    "calculate_difficulty",
    "calculate_estimated_time",
    "text_to_adf",
    "Plan",
    "Epic",
    "Story",
    "Subtask",
    "WorkArea",
    "GoalAnalysis",
    "PlanContext",
]
