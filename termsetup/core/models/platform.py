"""
Platform models — OS family and package manager profile.

Both are selected once by the environment probe and never change
for the lifetime of the process.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class OSFamily(StrEnum):
    """Supported operating system families."""

    MACOS = "macos"
    LINUX = "linux"


class PackageManagerProfile(BaseModel):
    """How to install a package with one particular package manager.

    ``install_command`` is a template; ``{package}`` is replaced with
    the package name at install time.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    install_command: tuple[str, ...]
    needs_elevation: bool = True
    refresh_command: tuple[str, ...] | None = None

    def render_install(self, package: str) -> list[str]:
        """Build the argv that installs ``package``."""
        return [part.replace("{package}", package) for part in self.install_command]
