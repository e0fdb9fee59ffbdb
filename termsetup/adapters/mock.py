"""
Mock command runner — test double for every external command.

Returns success for everything by default. Commands can be scripted
by argv prefix to fail or to produce output, and can carry a side
effect (e.g. dropping a fake ``zsh`` binary on PATH) to simulate what
the real tool would have done.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from termsetup.adapters.base import CommandRunner
from termsetup.core.models.command import CommandResult

Effect = Callable[[list[str]], None]


@dataclass
class MockCall:
    """One recorded invocation."""

    cmd: list[str]
    sudo: bool = False
    interactive: bool = False
    timeout: int = 0
    env: dict[str, str] | None = None
    cwd: str | None = None


@dataclass
class _Rule:
    prefix: tuple[str, ...]
    ok: bool = True
    stdout: str = ""
    stderr: str = ""
    error: str = "Mock failure"
    effect: Effect | None = None
    calls: int = field(default=0)


class MockCommandRunner(CommandRunner):
    """Universal mock runner for testing."""

    def __init__(self, runner_name: str = "mock"):
        self._name = runner_name
        self._rules: list[_Rule] = []
        self._calls: list[MockCall] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def calls(self) -> list[MockCall]:
        """Every call this mock has received, in order."""
        return self._calls

    @property
    def commands(self) -> list[list[str]]:
        return [c.cmd for c in self._calls]

    @property
    def call_count(self) -> int:
        return len(self._calls)

    def on(
        self,
        prefix: Sequence[str],
        *,
        stdout: str = "",
        effect: Effect | None = None,
    ) -> None:
        """Script a successful response for commands starting with ``prefix``."""
        self._rules.append(_Rule(prefix=tuple(prefix), stdout=stdout, effect=effect))

    def fail(
        self,
        prefix: Sequence[str],
        error: str = "Mock failure",
        stderr: str = "",
        effect: Effect | None = None,
    ) -> None:
        """Script a failure for commands starting with ``prefix``.

        ``effect`` still runs, for tools that fail half-way through.
        """
        self._rules.append(
            _Rule(prefix=tuple(prefix), ok=False, error=error, stderr=stderr, effect=effect)
        )

    def ran(self, *prefix: str) -> bool:
        """Whether any recorded command starts with ``prefix``."""
        return any(tuple(c.cmd[: len(prefix)]) == prefix for c in self._calls)

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
        self._calls.append(
            MockCall(
                cmd=list(cmd),
                sudo=sudo,
                interactive=interactive,
                timeout=timeout,
                env=env,
                cwd=cwd,
            )
        )

        rule = self._match(cmd)
        if rule is None:
            return CommandResult.success(list(cmd), stdout="")

        rule.calls += 1
        if rule.effect is not None:
            rule.effect(list(cmd))
        if rule.ok:
            return CommandResult.success(list(cmd), stdout=rule.stdout)
        return CommandResult.failure(
            list(cmd), rule.error, returncode=1, stderr=rule.stderr,
        )

    def _match(self, cmd: list[str]) -> _Rule | None:
        """Longest matching prefix wins; later rules win ties."""
        best: _Rule | None = None
        for rule in self._rules:
            if tuple(cmd[: len(rule.prefix)]) != rule.prefix:
                continue
            if best is None or len(rule.prefix) >= len(best.prefix):
                best = rule
        return best

    def reset(self) -> None:
        """Clear the call log and scripted responses."""
        self._calls.clear()
        self._rules.clear()
