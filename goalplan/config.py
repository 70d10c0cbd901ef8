"""Runtime configuration read from the environment."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Mapping, Optional

DEFAULT_STORAGE_DIR = ".goal-plan"
DEFAULT_HISTORY_FILE = "history.json"
DEFAULT_HTTP_TIMEOUT = 30.0


@dataclass(slots=True)
class Settings:
    """Issue tracker credentials, storage locations and logging options."""

    jira_base_url: Optional[str] = None
    jira_email: Optional[str] = None
    jira_api_token: Optional[str] = None
    project_root: Optional[Path] = None
    storage_dir: str = DEFAULT_STORAGE_DIR
    history_file: Optional[Path] = None
    log_level: str = "INFO"
    log_file: Optional[Path] = None
    http_timeout: float = DEFAULT_HTTP_TIMEOUT

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from ``GOALPLAN_*`` and ``JIRA_*`` variables."""
        env = os.environ if environ is None else environ

        def path_or_none(name: str) -> Optional[Path]:
            value = env.get(name)
            return Path(value).expanduser() if value else None

        timeout_raw = env.get("GOALPLAN_HTTP_TIMEOUT")
        try:
            timeout = float(timeout_raw) if timeout_raw else DEFAULT_HTTP_TIMEOUT
        except ValueError:
            raise ValueError(f"GOALPLAN_HTTP_TIMEOUT must be a number, got '{timeout_raw}'")

        return cls(
            jira_base_url=env.get("JIRA_BASE_URL") or None,
            jira_email=env.get("JIRA_EMAIL") or None,
            jira_api_token=env.get("JIRA_API_TOKEN") or None,
            project_root=path_or_none("GOALPLAN_PROJECT_ROOT"),
            storage_dir=env.get("GOALPLAN_STORAGE_DIR") or DEFAULT_STORAGE_DIR,
            history_file=path_or_none("GOALPLAN_HISTORY_FILE"),
            log_level=(env.get("GOALPLAN_LOG_LEVEL") or "INFO").upper(),
            log_file=path_or_none("GOALPLAN_LOG_FILE"),
            http_timeout=timeout,
        )

    @property
    def tracker_configured(self) -> bool:
        return bool(self.jira_base_url and self.jira_email and self.jira_api_token)

    @property
    def root(self) -> Path:
        return (self.project_root or Path.cwd()).resolve()

    @property
    def history_path(self) -> Path:
        """Location of the duplicate-suppression history file."""
        if self.history_file:
            return self.history_file
        return self.root / self.storage_dir / "state" / DEFAULT_HISTORY_FILE

    def validate(self) -> List[str]:
        """Validate the settings and return any issues."""
        issues = []

        if self.jira_base_url and not self.jira_base_url.startswith(("http://", "https://")):
            issues.append("JIRA_BASE_URL must start with http:// or https://")
        if self.jira_base_url and not (self.jira_email and self.jira_api_token):
            issues.append("JIRA_EMAIL and JIRA_API_TOKEN are required when JIRA_BASE_URL is set")
        if self.http_timeout <= 0:
            issues.append("GOALPLAN_HTTP_TIMEOUT must be positive")
        if not isinstance(logging.getLevelName(self.log_level), int):
            issues.append(f"Unknown log level: {self.log_level}")
        if self.project_root and not self.project_root.exists():
            issues.append(f"GOALPLAN_PROJECT_ROOT '{self.project_root}' does not exist")

        return issues
