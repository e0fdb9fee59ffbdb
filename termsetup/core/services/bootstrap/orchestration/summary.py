"""
L5 Orchestration — Summary report.

Re-probes every feature instead of trusting the outcomes recorded
during the run: a step declined this time can still report its
feature as installed when an earlier run put it there.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from termsetup.core.services.bootstrap.detection import features
from termsetup.core.services.bootstrap.detection.features import FEATURES, Feature

if TYPE_CHECKING:
    from termsetup.core.context import RunContext

logger = logging.getLogger(__name__)


@dataclass
class SummaryReport:
    """What is present right now, and what to do next."""

    installed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    backup_dir: Path | None = None
    log_file: Path | None = None
    next_steps: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "installed": self.installed,
            "skipped": self.skipped,
            "backup_dir": str(self.backup_dir) if self.backup_dir else None,
            "log_file": str(self.log_file) if self.log_file else None,
            "next_steps": self.next_steps,
        }


def build_summary(
    ctx: RunContext,
    catalogue: tuple[Feature, ...] = FEATURES,
    backup_dir: Path | None = None,
) -> SummaryReport:
    report = SummaryReport(backup_dir=backup_dir, log_file=ctx.log_file)

    for feature in catalogue:
        present = feature.probe(ctx)
        logger.debug("summary: %s present=%s", feature.label, present)
        (report.installed if present else report.skipped).append(feature.label)

    if features.framework_installed(ctx):
        report.next_steps.append("Restart your terminal or run: source ~/.zshrc")
        if features.prompt_theme_installed(ctx):
            report.next_steps.append("Run 'p10k configure' to configure Powerlevel10k")
        if ctx.which("colorls"):
            report.next_steps.append("Try 'ls' to see colorls in action")

    return report


def print_summary(ctx: RunContext, report: SummaryReport) -> None:
    log = ctx.log
    log.section("Installation Summary")

    if report.installed:
        log.success("Installed components:")
        for label in report.installed:
            log.plain(f"  ✓ {label}")

    if report.skipped:
        log.warning("Skipped components:")
        for label in report.skipped:
            log.plain(f"  - {label}")

    log.plain()
    if report.backup_dir:
        log.info(f"Configuration files backed up to: {report.backup_dir}")
    log.info(f"Installation log saved to: {report.log_file}")
    log.plain()

    if report.next_steps:
        log.info("Next steps:")
        for n, line in enumerate(report.next_steps, 1):
            log.plain(f"{n}. {line}")
