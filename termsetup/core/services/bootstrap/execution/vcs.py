"""
L4 Execution — Git clones.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from termsetup.core.errors import ExternalToolFailure

if TYPE_CHECKING:
    from termsetup.core.context import RunContext

logger = logging.getLogger(__name__)


def clone_repo(ctx: RunContext, url: str, dest: Path, *, depth: int | None = None) -> None:
    """Clone ``url`` into ``dest`` and register ``dest`` with the step journal.

    Raises:
        ExternalToolFailure: git is missing or the clone failed.
    """
    if ctx.which("git") is None:
        raise ExternalToolFailure("git is required but was not found on PATH")

    if ctx.journal is not None:
        ctx.journal.record_created(dest)
    dest.parent.mkdir(parents=True, exist_ok=True)

    cmd = ["git", "clone"]
    if depth is not None:
        cmd += [f"--depth={depth}"]
    cmd += [url, str(dest)]

    logger.info("Cloning %s → %s", url, dest)
    result = ctx.run(cmd, timeout=ctx.settings.timeouts.install)
    if result.failed:
        raise ExternalToolFailure(
            f"git clone {url} failed: {result.describe()}",
            stderr=result.stderr,
            returncode=result.returncode,
        )
