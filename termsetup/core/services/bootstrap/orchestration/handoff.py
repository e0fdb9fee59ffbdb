"""
L5 Orchestration — Shell handoff.

Replaces the current process with ``zsh -c '<python> -m termsetup.main
[log flags] run --resume <token>'`` so the remaining steps run under the
freshly installed shell. The token is written before this is called and
carries the console verbosity; the new process reads and consumes it.
"""

from __future__ import annotations

import logging
import os
import shlex
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from termsetup.core.errors import ExternalToolFailure
from termsetup.core.persistence.resume_token import load_token

if TYPE_CHECKING:
    from termsetup.core.context import RunContext

logger = logging.getLogger(__name__)


def log_flags(log_level: str | None, quiet: bool = False) -> list[str]:
    """Global CLI flags that reproduce a console verbosity."""
    flags: list[str] = []
    level = (log_level or "").upper()
    if level == "DEBUG":
        flags.append("--debug")
    elif level == "INFO":
        flags.append("--verbose")
    if quiet:
        flags.append("--quiet")
    return flags


def resume_command(
    token_path: Path,
    python: str | None = None,
    *,
    log_level: str | None = None,
    quiet: bool = False,
) -> list[str]:
    """The argv that resumes a run from ``token_path``."""
    return [
        python or sys.executable, "-m", "termsetup.main",
        *log_flags(log_level, quiet),
        "run", "--resume", str(token_path),
    ]


def exec_under_zsh(ctx: RunContext, token_path: Path) -> None:
    """Re-execute the run under zsh. Does not return on success.

    Raises:
        ExternalToolFailure: zsh cannot be found or exec failed.
        ResumeError: The token cannot be read back.
    """
    zsh = ctx.which("zsh")
    if zsh is None:
        raise ExternalToolFailure("zsh is not on PATH; cannot hand off")

    token = load_token(token_path)
    command = shlex.join(
        resume_command(token_path, log_level=token.log_level, quiet=token.quiet)
    )
    env = {**ctx.env, "SHELL": zsh}
    logger.info("exec %s -c %s", zsh, command)

    sys.stdout.flush()
    sys.stderr.flush()
    for handler in logging.getLogger().handlers:
        handler.flush()

    try:
        os.execve(zsh, [zsh, "-c", command], env)
    except OSError as e:
        raise ExternalToolFailure(f"Could not start zsh: {e}") from e
