"""Duplicate suppression across plan-creation runs.

The history is read once at the start of a run, extended in memory as
issues are created, and written back once at the end of the run, including
a run that aborts part way. Nothing here locks: two runs racing on the same
store can both miss each other's entries and create the same summary twice.
Callers that need exactly-once creation must serialize access to the store
themselves.
"""

from __future__ import annotations

import json
import logging
import uuid
from pathlib import Path
from typing import Iterable, Optional, Protocol

from .models import CreatedIssue, PlanHistory
from .plan_logging import log_history_reset

logger = logging.getLogger("goalplan.history")


def normalize_summary(summary: str) -> str:
    """Collapse whitespace and lowercase a summary for comparison."""
    return " ".join((summary or "").split()).lower()


def find_duplicate(summary: str, entries: Iterable[CreatedIssue]) -> Optional[CreatedIssue]:
    """Return the recorded entry whose summary matches, if any."""
    wanted = normalize_summary(summary)
    for entry in entries:
        if normalize_summary(entry.summary) == wanted:
            return entry
    return None


def is_duplicate(summary: str, entries: Iterable[CreatedIssue]) -> bool:
    return find_duplicate(summary, entries) is not None


def new_history() -> PlanHistory:
    history = PlanHistory(history_id=uuid.uuid4().hex)
    history.touch()
    return history


class HistoryStore(Protocol):
    """Narrow persistence interface for the duplicate history."""

    def load(self) -> PlanHistory:
        ...

    def save(self, history: PlanHistory) -> None:
        ...

    def reset(self) -> PlanHistory:
        ...


class InMemoryHistoryStore:
    """History store kept in process memory."""

    def __init__(self, history: Optional[PlanHistory] = None):
        self._data = history.to_dict() if history else None

    def load(self) -> PlanHistory:
        if self._data is None:
            return PlanHistory()
        return PlanHistory.from_dict(self._data)

    def save(self, history: PlanHistory) -> None:
        history.touch()
        self._data = history.to_dict()

    def reset(self) -> PlanHistory:
        history = new_history()
        self._data = history.to_dict()
        log_history_reset(history.history_id)
        return history


class JsonHistoryStore:
    """History store persisted as a single JSON document."""

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def load(self) -> PlanHistory:
        """Load the history, treating a missing file as empty."""
        if not self.path.exists():
            return PlanHistory()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ValueError(f"History file {self.path} is not valid JSON: {e}") from e
        return PlanHistory.from_dict(data)

    def save(self, history: PlanHistory) -> None:
        history.touch()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(history.to_dict(), indent=2), encoding="utf-8")
        logger.debug(f"Saved plan history with {history.total()} entries to {self.path}")

    def reset(self) -> PlanHistory:
        """Clear the history and stamp it with a fresh identifier."""
        history = new_history()
        self.save(history)
        log_history_reset(history.history_id)
        return history
