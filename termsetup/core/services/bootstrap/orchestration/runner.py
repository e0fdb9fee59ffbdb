"""
L5 Orchestration — Step runner.

Interprets step descriptors one after another. Per step:

    dependency gate → applicability → precondition → confirm
        → privileges → perform → verify → (rollback offer) → outcome

Failures are step-local: they become a ``Failed``/``RolledBack``
outcome and the run moves on. The only ways out of the loop early are
a mandatory step failing (or being declined), the ``abort`` policy
for a missing dependency, and the shell handoff.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from termsetup.core.errors import (
    DependencyMissing,
    PrivilegeDenied,
    RunAborted,
    SetupError,
    VerificationFailed,
)
from termsetup.core.models.outcome import StepOutcome, StepState
from termsetup.core.models.resume import ResumeToken
from termsetup.core.persistence.resume_token import default_token_path, save_token
from termsetup.core.services.bootstrap.execution.backup import StepJournal
from termsetup.core.services.bootstrap.execution.privileges import ensure_privileges
from termsetup.core.services.bootstrap.orchestration.steps import InstallationStep

if TYPE_CHECKING:
    from termsetup.core.context import RunContext

logger = logging.getLogger(__name__)

# (ctx, token path) → normally never returns
Relauncher = Callable[["RunContext", Path], None]


@dataclass
class RunReport:
    """Outcomes of one runner pass, in execution order."""

    run_id: str = ""
    outcomes: list[StepOutcome] = field(default_factory=list)
    handed_off: bool = False
    token_path: Path | None = None

    def outcome(self, step: str) -> StepOutcome | None:
        for o in self.outcomes:
            if o.step == step:
                return o
        return None

    def state(self, step: str) -> StepState | None:
        o = self.outcome(step)
        return o.state if o else None

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if o.failed)

    def to_dict(self) -> dict:
        result: dict = {
            "run_id": self.run_id,
            "outcomes": [o.model_dump() for o in self.outcomes],
            "handed_off": self.handed_off,
        }
        if self.token_path:
            result["token_path"] = str(self.token_path)
        return result


class StepRunner:
    """Runs a queue of steps against one run context."""

    def __init__(
        self,
        ctx: RunContext,
        steps: list[InstallationStep],
        *,
        catalogue: list[InstallationStep] | None = None,
        relauncher: Relauncher | None = None,
    ):
        self._ctx = ctx
        self._steps = steps
        # Dependency lookups must see every step, not just the queue
        self._catalogue = {s.name: s for s in (catalogue or steps)}
        self._relauncher = relauncher

    def run(self, completed: list[StepOutcome] | None = None) -> RunReport:
        """Execute the queue.

        Args:
            completed: Outcomes carried over from a run that handed off.

        Raises:
            RunAborted: A mandatory step failed or a dependency was
                missing under the ``abort`` policy.
        """
        report = RunReport(run_id=self._ctx.run_id, outcomes=list(completed or []))

        for index, step in enumerate(self._steps):
            outcome = self.run_step(step)
            report.outcomes.append(outcome)

            if step.handoff_after and outcome.state in (StepState.INSTALLED, StepState.ALREADY_PRESENT):
                remaining = self._steps[index + 1:]
                token_path = self._offer_handoff(remaining, report.outcomes)
                if token_path is not None:
                    report.handed_off = True
                    report.token_path = token_path
                    return report

        return report

    # ── One step ─────────────────────────────────────────────────

    def run_step(self, step: InstallationStep) -> StepOutcome:
        ctx = self._ctx
        log = ctx.log

        if step.requires:
            dependency = self._catalogue.get(step.requires)
            if dependency is not None and not dependency.precondition(ctx):
                msg = f"{dependency.label} not found. Skipping {step.label} installation."
                if ctx.settings.on_missing_dependency == "abort":
                    log.error(msg)
                    raise RunAborted(
                        f"{step.label} requires {dependency.label}"
                    ) from DependencyMissing(msg)
                log.warning(msg)
                return self._record(step, StepState.DEPENDENCY_MISSING, msg)

        if not step.applies(ctx):
            return self._record(step, StepState.SKIPPED, step.not_applicable(ctx))

        log.info(f"Checking {step.label} installation...")
        if step.precondition(ctx):
            log.success(f"{step.label} is already installed")
            return self._record(step, StepState.ALREADY_PRESENT)

        if not ctx.gate.confirm(step.prompt, step.default):
            msg = f"Skipping {step.label} installation - user declined"
            if step.mandatory:
                log.error(msg)
                raise RunAborted(f"{step.label} is required")
            log.warning(msg)
            return self._record(step, StepState.SKIPPED, msg)

        if step.privileges_required(ctx):
            try:
                ensure_privileges(ctx)
            except PrivilegeDenied as e:
                if step.mandatory:
                    log.error(f"{e}. Cannot install {step.label}.")
                    raise RunAborted(str(e)) from e
                log.warning(f"Skipping {step.label}: {e}")
                return self._record(step, StepState.SKIPPED, str(e))

        journal = StepJournal(step.name, ctx.backups.backup_dir / "steps" / step.name)
        ctx.journal = journal
        try:
            log.info(f"Installing {step.label}...")
            try:
                message = step.perform(ctx)
            except SetupError as e:
                logger.debug("%s failed", step.name, exc_info=True)
                return self._fail(step, journal, e)

            if not step.verify(ctx):
                return self._fail(
                    step, journal,
                    VerificationFailed(f"{step.label} could not be verified after installation"),
                )
        finally:
            ctx.journal = None

        log.success(message)
        return self._record(step, StepState.INSTALLED, message)

    def _fail(self, step: InstallationStep, journal: StepJournal, error: SetupError) -> StepOutcome:
        ctx = self._ctx
        msg = f"{step.label} failed: {error}"
        ctx.log.error(msg)
        if step.mandatory:
            raise RunAborted(msg) from error

        if step.supports_rollback and journal.touched:
            if ctx.gate.confirm(f"Roll back the changes made while installing {step.label}?", True):
                for problem in journal.rollback():
                    ctx.log.warning(f"Rollback: could not {problem}")
                ctx.log.info(f"Rolled back {step.label}")
                return self._record(step, StepState.ROLLED_BACK, str(error))

        return self._record(step, StepState.FAILED, str(error))

    def _record(self, step: InstallationStep, state: StepState, message: str = "") -> StepOutcome:
        logger.debug("step %s → %s %s", step.name, state, message)
        return StepOutcome(step=step.name, state=state, message=message)

    # ── Handoff ──────────────────────────────────────────────────

    def _offer_handoff(
        self,
        remaining: list[InstallationStep],
        outcomes: list[StepOutcome],
    ) -> Path | None:
        """Offer to continue under zsh. Returns the token path if handed off."""
        ctx = self._ctx
        if ctx.resumed or not remaining or self._relauncher is None:
            return None
        if ctx.current_shell == "zsh":
            return None
        if not ctx.gate.confirm("Continue the remaining setup in a zsh session?", True):
            return None

        token = ResumeToken(
            run_id=ctx.run_id,
            remaining=[s.name for s in remaining],
            completed=list(outcomes),
            backups=ctx.backups.records,
            backup_dir=str(ctx.backups.backup_dir),
            log_file=str(ctx.log_file),
            settings_file=str(ctx.settings_file) if ctx.settings_file else None,
            confirm_mode=ctx.gate.mode,
            on_missing_dependency=ctx.settings.on_missing_dependency,
            log_level=ctx.log_level,
            quiet=ctx.quiet,
        )
        path = default_token_path(ctx.backups.backup_dir)
        save_token(token, path)
        ctx.log.info("Handing off to zsh to finish the remaining steps...")
        logger.info("Resume token written to %s (%d steps)", path, len(token.remaining))

        try:
            self._relauncher(ctx, path)
        except SetupError as e:
            ctx.log.warning(f"{e}. Continuing in the current shell.")
            path.unlink(missing_ok=True)
            return None
        return path
