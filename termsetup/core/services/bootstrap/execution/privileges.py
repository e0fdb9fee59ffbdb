"""
L4 Execution — Privilege acquisition.

Elevation is requested lazily, right before the first action that
needs it, and the answer is cached for the rest of the run.
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING

from termsetup.core.errors import PrivilegeDenied

if TYPE_CHECKING:
    from termsetup.core.context import RunContext

logger = logging.getLogger(__name__)

_GRANTED = "privileges_granted"


def is_root() -> bool:
    return os.geteuid() == 0


def ensure_privileges(ctx: RunContext) -> None:
    """Make sure ``sudo`` will work for the following commands.

    Tries cached credentials first (``sudo -n true``). When those are
    absent and the run is interactive, lets ``sudo -v`` prompt for a
    password on the terminal.

    Raises:
        PrivilegeDenied: No cached credentials and no way to ask, or
            the user failed/declined the password prompt.
    """
    if ctx.facts.get(_GRANTED) or is_root():
        return

    probe = ctx.runner.run(["sudo", "-n", "true"], timeout=ctx.settings.timeouts.command)
    if probe.ok:
        ctx.facts[_GRANTED] = True
        return

    if not ctx.gate.interactive:
        raise PrivilegeDenied(
            "Administrator privileges are required but no cached sudo "
            "credentials are available in non-interactive mode"
        )

    ctx.log.info("Administrator privileges are required; you may be asked for your password")
    result = ctx.runner.run(
        ["sudo", "-v"], timeout=ctx.settings.timeouts.command, interactive=True,
    )
    if result.failed:
        raise PrivilegeDenied("Could not obtain administrator privileges")

    logger.debug("sudo credentials validated")
    ctx.facts[_GRANTED] = True
