"""
L3 Detection — Environment probe.

Detects the OS family and the package manager once at startup.
Read-only: looks at ``platform.system()`` and PATH, nothing else.
"""

from __future__ import annotations

import logging
import os
import platform
import pwd
import shutil
from collections.abc import Callable

from termsetup.core.errors import UnsupportedPackageManager, UnsupportedPlatform
from termsetup.core.models.platform import OSFamily, PackageManagerProfile
from termsetup.core.services.bootstrap.data.package_managers import (
    LINUX_PROBE_ORDER,
    MACOS_MANAGER,
    MANAGER_BINARIES,
    PACKAGE_MANAGERS,
)

logger = logging.getLogger(__name__)

Which = Callable[[str], str | None]


def detect_os_family(system: str | None = None) -> OSFamily:
    """Map ``platform.system()`` to a supported OS family.

    Raises:
        UnsupportedPlatform: For anything but Darwin and Linux.
    """
    system = system if system is not None else platform.system()
    if system == "Darwin":
        return OSFamily.MACOS
    if system == "Linux":
        return OSFamily.LINUX
    raise UnsupportedPlatform(f"Unsupported operating system: {system or 'unknown'}")


def detect_package_manager(os_family: OSFamily, which: Which = shutil.which) -> PackageManagerProfile:
    """Pick the package manager for ``os_family``.

    macOS requires Homebrew; there is no fallback. Linux takes the
    first manager of ``LINUX_PROBE_ORDER`` found on PATH.

    Raises:
        UnsupportedPackageManager: If no usable manager is present.
    """
    if os_family == OSFamily.MACOS:
        if which(MANAGER_BINARIES[MACOS_MANAGER]):
            return PACKAGE_MANAGERS[MACOS_MANAGER]
        raise UnsupportedPackageManager(
            "Homebrew is required on macOS. Please install it first: https://brew.sh"
        )

    for name in LINUX_PROBE_ORDER:
        if which(MANAGER_BINARIES[name]):
            return PACKAGE_MANAGERS[name]
    raise UnsupportedPackageManager(
        "Unsupported package manager. Please install zsh manually."
    )


def detect(
    *,
    system: str | None = None,
    which: Which = shutil.which,
) -> tuple[OSFamily, PackageManagerProfile]:
    """Detect ``(os_family, package_manager)`` for this host.

    Raises:
        UnsupportedPlatform: Unknown OS.
        UnsupportedPackageManager: No supported manager on PATH.
    """
    os_family = detect_os_family(system)
    profile = detect_package_manager(os_family, which)
    logger.debug("Detected %s with %s", os_family, profile.name)
    return os_family, profile


def login_shell() -> str:
    """The current user's login shell from the password database."""
    try:
        return pwd.getpwuid(os.getuid()).pw_shell
    except KeyError:
        return os.environ.get("SHELL", "")
