"""
Command runner base — the contract between steps and external tools.

Steps never call ``subprocess`` directly; they go through a
``CommandRunner``. The real runner spawns processes, the mock runner
records calls and replays scripted results, so every step can be
exercised without touching the host.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from termsetup.core.models.command import CommandResult


class CommandRunner(ABC):
    """Abstract base class for command runners.

    Runners NEVER raise for a failing command: non-zero exits,
    timeouts and missing binaries are reported in the CommandResult.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Runner identifier (e.g. 'shell', 'mock')."""

    @abstractmethod
    def run(
        self,
        cmd: list[str],
        *,
        timeout: int,
        sudo: bool = False,
        interactive: bool = False,
        env: dict[str, str] | None = None,
        cwd: str | None = None,
    ) -> CommandResult:
        """Run ``cmd`` and return its result.

        Args:
            cmd: Argument vector.
            timeout: Seconds before the command is killed.
            sudo: Run with elevated privileges (cached credentials only).
            interactive: Attach the terminal instead of capturing output
                (password prompts, ``sudo -v``, ``chsh``).
            env: Full environment for the child; None inherits ours.
            cwd: Working directory.
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
