"""
CommandResult — the outcome of one external command.

Command runners return these instead of raising. A non-zero exit,
a timeout or a missing binary all come back as ``status="failed"``;
the calling step decides which domain error that becomes.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


class CommandResult(BaseModel):
    """Captured result of running a command."""

    command: list[str] = Field(default_factory=list)
    status: Literal["ok", "failed"] = "ok"
    returncode: int | None = None
    stdout: str = ""
    stderr: str = ""
    error: str | None = None
    elapsed_ms: int = 0

    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """Whether the command succeeded."""
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        """Whether the command failed."""
        return self.status == "failed"

    @classmethod
    def success(cls, command: list[str], stdout: str = "", **kwargs: Any) -> CommandResult:
        """Create a success result."""
        kwargs.setdefault("returncode", 0)
        return cls(command=command, status="ok", stdout=stdout, **kwargs)

    @classmethod
    def failure(cls, command: list[str], error: str, **kwargs: Any) -> CommandResult:
        """Create a failure result."""
        return cls(command=command, status="failed", error=error, **kwargs)

    def describe(self) -> str:
        """One-line description of a failure, for log messages."""
        detail = self.stderr.strip().splitlines()[-1] if self.stderr.strip() else ""
        base = self.error or f"exit {self.returncode}"
        return f"{base}: {detail}" if detail else base
