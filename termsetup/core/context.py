"""
Run context — the single source of truth for one setup run.

Everything a step needs travels in one explicit value: the detected
platform, the settings, the collaborators (command runner, gate,
downloader), the run log, the backup facility and the environment the
child processes see. Nothing is read from module-level globals, so a
test can build a context around a temporary home directory and fake
collaborators and run any step in isolation.
"""

from __future__ import annotations

import os
import shutil
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from termsetup.adapters.base import CommandRunner
from termsetup.core.models.command import CommandResult
from termsetup.core.models.platform import OSFamily, PackageManagerProfile
from termsetup.core.models.settings import Settings, TimeoutSettings
from termsetup.core.observability.run_log import RunLog
from termsetup.core.services.bootstrap.execution.backup import BackupFacility, StepJournal
from termsetup.ui.cli.gate import ConfirmationGate

# (url, destination, timeouts) -> bytes written
Fetcher = Callable[[str, Path, TimeoutSettings], int]


@dataclass
class RunContext:
    """State and collaborators shared by every component of a run."""

    os_family: OSFamily
    package_manager: PackageManagerProfile
    settings: Settings
    runner: CommandRunner
    gate: ConfirmationGate
    log: RunLog
    backups: BackupFacility
    fetch: Fetcher
    home: Path
    log_file: Path
    run_id: str
    env: dict[str, str] = field(default_factory=lambda: dict(os.environ))
    settings_file: Path | None = None
    resumed: bool = False
    log_level: str | None = None
    quiet: bool = False

    # Set by the runner while a step executes
    journal: StepJournal | None = None

    # Once-per-run facts (index refreshed, credentials cached …)
    facts: dict[str, bool] = field(default_factory=dict)

    # ── Paths ────────────────────────────────────────────────────

    def expand(self, raw: str) -> Path:
        """Expand ``~`` against this run's home directory."""
        if raw == "~":
            return self.home
        if raw.startswith("~/"):
            return self.home / raw[2:]
        return Path(raw)

    @property
    def zshrc(self) -> Path:
        return self.expand(self.settings.zshrc)

    @property
    def framework_dir(self) -> Path:
        return self.expand(self.settings.framework_dir)

    @property
    def custom_dir(self) -> Path:
        """``$ZSH_CUSTOM``, or ``<framework>/custom`` when unset."""
        override = self.env.get("ZSH_CUSTOM")
        if override:
            return self.expand(override)
        return self.framework_dir / "custom"

    # ── Environment ──────────────────────────────────────────────

    def which(self, name: str) -> str | None:
        """Resolve ``name`` on this run's PATH."""
        return shutil.which(name, path=self.env.get("PATH", os.defpath))

    def prepend_path(self, directory: Path) -> None:
        """Put ``directory`` in front of PATH for later commands."""
        current = self.env.get("PATH", "")
        entries = [e for e in current.split(os.pathsep) if e]
        if str(directory) in entries:
            return
        self.env["PATH"] = os.pathsep.join([str(directory), *entries])

    @property
    def current_shell(self) -> str:
        """Basename of ``$SHELL`` (the controlling login shell)."""
        return os.path.basename(self.env.get("SHELL", ""))

    # ── Commands ─────────────────────────────────────────────────

    def run(
        self,
        cmd: list[str],
        *,
        timeout: int | None = None,
        sudo: bool = False,
        interactive: bool = False,
        cwd: Path | None = None,
        extra_env: dict[str, str] | None = None,
    ) -> CommandResult:
        """Run a command with this run's environment and timeout policy."""
        env = {**self.env, **extra_env} if extra_env else self.env
        return self.runner.run(
            cmd,
            timeout=timeout or self.settings.timeouts.command,
            sudo=sudo,
            interactive=interactive,
            env=env,
            cwd=str(cwd) if cwd else None,
        )
