"""Exception types raised outside the pure plan compiler."""

from __future__ import annotations

from typing import Optional


class GoalPlanError(Exception):
    """Base class for goal-plan errors."""


class PlanValidationError(GoalPlanError, ValueError):
    """Required input is missing; raised before any external call."""


class IssueTrackerError(GoalPlanError, RuntimeError):
    """An issue tracker request did not succeed."""

    def __init__(
        self,
        operation: str,
        message: str,
        *,
        status_code: Optional[int] = None,
        detail: Optional[str] = None,
    ):
        self.operation = operation
        self.status_code = status_code
        self.detail = detail
        text = f"{operation} failed: {message}"
        if status_code is not None:
            text = f"{operation} failed with HTTP {status_code}: {message}"
        super().__init__(text)


class PlanCreationError(GoalPlanError, RuntimeError):
    """Plan creation was aborted part way through."""

    def __init__(self, node_kind: str, summary: str, cause: Exception, created_count: int = 0):
        self.node_kind = node_kind
        self.summary = summary
        self.cause = cause
        self.created_count = created_count
        super().__init__(
            f"Failed to create {node_kind} '{summary}' after {created_count} issues were created: {cause}"
        )
