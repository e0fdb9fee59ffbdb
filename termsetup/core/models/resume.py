"""
ResumeToken — the remaining work carried across a shell handoff.

Written by the run that installs zsh, consumed exactly once by the
run relaunched under zsh.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, Field

from termsetup.core.models.outcome import BackupRecord, StepOutcome


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class ResumeToken(BaseModel):
    """Serialized remaining step queue plus the context needed to continue."""

    schema_version: int = 1

    run_id: str
    remaining: list[str] = Field(default_factory=list)
    completed: list[StepOutcome] = Field(default_factory=list)
    backups: list[BackupRecord] = Field(default_factory=list)

    backup_dir: str
    log_file: str
    settings_file: str | None = None

    confirm_mode: Literal["ask", "yes", "defaults"] = "ask"
    on_missing_dependency: Literal["skip", "abort"] = "skip"

    # Console verbosity of the original invocation, re-applied on relaunch
    log_level: str | None = None
    quiet: bool = False

    created_at: str = Field(default_factory=_now_iso)
    consumed_at: str | None = None
