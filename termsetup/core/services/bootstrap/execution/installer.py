"""
L4 Execution — System package installation.

Wraps the detected package manager. The index refresh (where the
manager has one) runs at most once per run; the install itself uses
the long install timeout and elevation when the manager needs it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from termsetup.core.errors import ExternalToolFailure
from termsetup.core.services.bootstrap.data.package_managers import QUERY_COMMANDS
from termsetup.core.services.bootstrap.execution.privileges import ensure_privileges

if TYPE_CHECKING:
    from termsetup.core.context import RunContext

logger = logging.getLogger(__name__)

_REFRESHED = "package_index_refreshed"


class PackageInstaller:
    """Installs named packages with the run's package manager."""

    def __init__(self, ctx: RunContext):
        self._ctx = ctx
        self._profile = ctx.package_manager

    def refresh(self) -> None:
        """Refresh the package index once per run. Failure is only a warning."""
        if self._profile.refresh_command is None or self._ctx.facts.get(_REFRESHED):
            return
        result = self._ctx.run(
            list(self._profile.refresh_command),
            timeout=self._ctx.settings.timeouts.install,
            sudo=self._profile.needs_elevation,
        )
        self._ctx.facts[_REFRESHED] = True
        if result.failed:
            self._ctx.log.warning(
                f"Could not refresh the {self._profile.name} package index; continuing"
            )

    def install(self, package: str) -> None:
        """Install ``package``.

        Raises:
            PrivilegeDenied: Elevation needed but unavailable.
            ExternalToolFailure: The package manager exited non-zero.
        """
        if self._profile.needs_elevation:
            ensure_privileges(self._ctx)

        self.refresh()
        cmd = self._profile.render_install(package)
        logger.info("Installing %s: %s", package, " ".join(cmd))
        result = self._ctx.run(
            cmd,
            timeout=self._ctx.settings.timeouts.install,
            sudo=self._profile.needs_elevation,
        )
        if result.failed:
            raise ExternalToolFailure(
                f"{self._profile.name} could not install {package}: {result.describe()}",
                stderr=result.stderr,
                returncode=result.returncode,
            )

    def is_installed(self, package: str) -> bool:
        """Ask the manager's own database whether ``package`` is installed.

        apt reports removed-but-configured packages with exit 0, so its
        status string is checked instead of the return code.
        """
        template = QUERY_COMMANDS.get(self._profile.name)
        if template is None:
            return False
        cmd = [part.replace("{package}", package) for part in template]
        result = self._ctx.run(cmd)
        if result.failed:
            return False
        if self._profile.name == "apt":
            return "install ok installed" in result.stdout
        return True
