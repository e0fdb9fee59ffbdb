"""
Step outcomes and backup records — what a run produces.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class StepState(StrEnum):
    """Terminal state of one installation step."""

    INSTALLED = "installed"
    ALREADY_PRESENT = "already_present"
    SKIPPED = "skipped"
    FAILED = "failed"
    ROLLED_BACK = "rolled_back"
    DEPENDENCY_MISSING = "dependency_missing"


class StepOutcome(BaseModel):
    """Result of running one step through the runner."""

    step: str
    state: StepState
    message: str = ""
    finished_at: str = Field(default_factory=_now_iso)

    @property
    def failed(self) -> bool:
        return self.state in (StepState.FAILED, StepState.ROLLED_BACK)


class BackupRecord(BaseModel):
    """A first-write-wins copy of a file taken before it was mutated."""

    original: str
    backup: str
    timestamp: str = Field(default_factory=_now_iso)
