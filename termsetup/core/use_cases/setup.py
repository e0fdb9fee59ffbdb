"""
Setup use case — one terminal setup run, start to finish.

This is the top-level orchestrator: it loads settings (or a resume
token), probes the environment, asks for the go-ahead, runs the step
queue and prints the summary. The CLI only parses flags and maps the
result to an exit code.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Literal

from termsetup.adapters.base import CommandRunner
from termsetup.core.config.loader import find_settings_file, load_settings
from termsetup.core.context import Fetcher, RunContext
from termsetup.core.errors import RunAborted, SetupError
from termsetup.core.models.outcome import BackupRecord
from termsetup.core.models.resume import ResumeToken
from termsetup.core.models.settings import Settings
from termsetup.core.observability.run_log import RunLog
from termsetup.core.persistence.resume_token import consume_token
from termsetup.core.services.bootstrap.detection.environment import detect
from termsetup.core.services.bootstrap.execution.backup import BackupFacility
from termsetup.core.services.bootstrap.execution.download import fetch_url
from termsetup.core.services.bootstrap.orchestration.handoff import exec_under_zsh
from termsetup.core.services.bootstrap.orchestration.runner import (
    Relauncher,
    RunReport,
    StepRunner,
)
from termsetup.core.services.bootstrap.orchestration.steps import build_default_steps
from termsetup.core.services.bootstrap.orchestration.summary import (
    SummaryReport,
    build_summary,
    print_summary,
)
from termsetup.ui.cli.gate import ConfirmationGate, ConfirmMode

logger = logging.getLogger(__name__)

RUN_ID_FORMAT = "%Y%m%d_%H%M%S"


@dataclass
class SetupOptions:
    """What the user asked for on the command line."""

    confirm_mode: ConfirmMode = "ask"
    on_missing_dependency: Literal["skip", "abort"] | None = None
    config_path: Path | None = None
    resume_path: Path | None = None
    home: Path | None = None
    log_level: str | None = None
    quiet: bool = False


@dataclass
class SetupResult:
    """Result of a setup run."""

    report: RunReport | None = None
    summary: SummaryReport | None = None
    exit_code: int = 0
    error: str | None = None

    def to_dict(self) -> dict:
        result: dict = {"exit_code": self.exit_code}
        if self.error:
            result["error"] = self.error
        if self.report:
            result["report"] = self.report.to_dict()
        if self.summary:
            result["summary"] = self.summary.to_dict()
        return result


def generate_run_id(now: datetime | None = None) -> str:
    """Run id, also the name of the run's backup directory."""
    return (now or datetime.now()).strftime(RUN_ID_FORMAT)


def expand_home(raw: str, home: Path) -> Path:
    if raw == "~":
        return home
    if raw.startswith("~/"):
        return home / raw[2:]
    return Path(raw)


def latest_backup_dir(root: Path) -> Path | None:
    """Most recent run directory under ``root``, if any."""
    if not root.is_dir():
        return None
    runs = sorted(p for p in root.iterdir() if p.is_dir())
    return runs[-1] if runs else None


def _with_policy(settings: Settings, policy: str | None) -> Settings:
    if policy is None or policy == settings.on_missing_dependency:
        return settings
    return settings.model_copy(update={"on_missing_dependency": policy})


def build_context(
    settings: Settings,
    *,
    run_id: str,
    backup_dir: Path,
    log_file: Path,
    home: Path,
    gate: ConfirmationGate,
    runner: CommandRunner,
    fetch: Fetcher,
    settings_file: Path | None = None,
    backup_records: list[BackupRecord] | None = None,
    resumed: bool = False,
    log_level: str | None = None,
    quiet: bool = False,
    system: str | None = None,
    which: Callable[[str], str | None] = shutil.which,
) -> RunContext:
    """Probe the environment and assemble the run context.

    Raises:
        UnsupportedPlatform, UnsupportedPackageManager: From the probe.
    """
    os_family, profile = detect(system=system, which=which)
    return RunContext(
        os_family=os_family,
        package_manager=profile,
        settings=settings,
        runner=runner,
        gate=gate,
        log=RunLog(),
        backups=BackupFacility(backup_dir, backup_records),
        fetch=fetch,
        home=home,
        log_file=log_file,
        run_id=run_id,
        settings_file=settings_file,
        resumed=resumed,
        log_level=log_level,
        quiet=quiet,
    )


def run_setup(
    options: SetupOptions,
    *,
    runner: CommandRunner | None = None,
    fetch: Fetcher | None = None,
    gate: ConfirmationGate | None = None,
    relauncher: Relauncher | None = None,
    configure_logging: Callable[[Path], None] | None = None,
    system: str | None = None,
    which: Callable[[str], str | None] = shutil.which,
) -> SetupResult:
    """Run the terminal setup.

    Args:
        options: Parsed command-line options.
        runner: Command runner (default: real shell runner).
        fetch: Downloader (default: ``fetch_url``).
        gate: Confirmation gate (default: built from ``confirm_mode``).
        relauncher: Shell handoff (default: exec under zsh).
        configure_logging: Called with the log file path once known.
        system: Override for ``platform.system()`` (tests).
        which: PATH lookup used by the environment probe.

    Returns:
        SetupResult with the step report and summary.
    """
    result = SetupResult()
    home = options.home or Path.home()

    # ── Settings / resume token ──────────────────────────────────
    token: ResumeToken | None = None
    try:
        if options.resume_path is not None:
            token = consume_token(options.resume_path)
            settings_file = Path(token.settings_file) if token.settings_file else None
        else:
            settings_file = find_settings_file(options.config_path)
        settings = load_settings(settings_file)
    except SetupError as e:
        RunLog().error(f"ERROR: {e}")
        result.error = str(e)
        result.exit_code = 1
        return result

    if token is not None:
        settings = _with_policy(settings, token.on_missing_dependency)
        run_id = token.run_id
        backup_dir = Path(token.backup_dir)
        log_file = Path(token.log_file)
        confirm_mode: ConfirmMode = token.confirm_mode
        log_level = options.log_level or token.log_level
        quiet = options.quiet or token.quiet
    else:
        settings = _with_policy(settings, options.on_missing_dependency)
        run_id = generate_run_id()
        backup_dir = expand_home(settings.backup_root, home) / run_id
        log_file = expand_home(settings.log_file, home)
        confirm_mode = options.confirm_mode
        log_level = options.log_level
        quiet = options.quiet

    if configure_logging is not None:
        configure_logging(log_file)
    log = RunLog()
    gate = gate or ConfirmationGate(confirm_mode)

    log.section("Terminal Setup Script")
    if token is None:
        log.info("This script will help you set up a standardized terminal environment")
    else:
        log.info(f"Resuming run {run_id} under zsh ({len(token.remaining)} steps remaining)")

    # ── Environment probe ────────────────────────────────────────
    log.info("Detecting operating system...")
    try:
        ctx = build_context(
            settings,
            run_id=run_id,
            backup_dir=backup_dir,
            log_file=log_file,
            home=home,
            gate=gate,
            runner=runner or _default_runner(),
            fetch=fetch or fetch_url,
            settings_file=settings_file,
            backup_records=token.backups if token else None,
            resumed=token is not None,
            log_level=log_level,
            quiet=quiet,
            system=system,
            which=which,
        )
    except SetupError as e:
        log.error(f"ERROR: {e}")
        result.error = str(e)
        result.exit_code = 1
        return result
    log.success(f"Detected {ctx.os_family} with {ctx.package_manager.name} package manager")

    # ── Go-ahead ─────────────────────────────────────────────────
    if token is None:
        if not gate.confirm("Proceed with terminal setup?", True):
            log.warning("Setup cancelled by user")
            result.error = "cancelled"
            result.exit_code = 1
            return result
        if not backup_dir.is_dir():
            backup_dir.mkdir(parents=True, exist_ok=True)
            log.success(f"Created backup directory: {backup_dir}")

    # ── Steps ────────────────────────────────────────────────────
    catalogue = build_default_steps([p.name for p in settings.plugins])
    if token is None:
        queue = catalogue
    else:
        known = {s.name for s in catalogue}
        for name in token.remaining:
            if name not in known:
                logger.warning("Resume token names unknown step %r, ignoring", name)
        queue = [s for s in catalogue if s.name in token.remaining]

    step_runner = StepRunner(
        ctx, queue, catalogue=catalogue, relauncher=relauncher or exec_under_zsh,
    )
    try:
        result.report = step_runner.run(completed=token.completed if token else None)
    except RunAborted as e:
        log.error(f"ERROR: {e}")
        result.error = str(e)
        result.exit_code = e.exit_code
        return result

    if result.report.handed_off:
        return result

    # ── Summary ──────────────────────────────────────────────────
    result.summary = build_summary(ctx, backup_dir=backup_dir)
    print_summary(ctx, result.summary)
    log.success("Terminal setup completed!")
    return result


def show_summary(
    options: SetupOptions,
    *,
    runner: CommandRunner | None = None,
    echo: bool = True,
    system: str | None = None,
    which: Callable[[str], str | None] = shutil.which,
) -> SetupResult:
    """Probe and print the summary without changing anything."""
    result = SetupResult()
    home = options.home or Path.home()

    try:
        settings_file = find_settings_file(options.config_path)
        settings = load_settings(settings_file)
        backup_root = expand_home(settings.backup_root, home)
        ctx = build_context(
            settings,
            run_id=generate_run_id(),
            backup_dir=backup_root,
            log_file=expand_home(settings.log_file, home),
            home=home,
            gate=ConfirmationGate("defaults"),
            runner=runner or _default_runner(),
            fetch=fetch_url,
            settings_file=settings_file,
            system=system,
            which=which,
        )
    except SetupError as e:
        RunLog().error(f"ERROR: {e}")
        result.error = str(e)
        result.exit_code = 1
        return result

    result.summary = build_summary(ctx, backup_dir=latest_backup_dir(backup_root))
    if echo:
        print_summary(ctx, result.summary)
    return result


def _default_runner() -> CommandRunner:
    from termsetup.adapters.shell.command import ShellCommandRunner

    return ShellCommandRunner()
