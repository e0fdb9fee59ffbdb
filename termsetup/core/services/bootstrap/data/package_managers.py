"""
L0 Data — Package manager profiles.

One profile per supported manager. ``LINUX_PROBE_ORDER`` is the order
in which managers are looked for on Linux; the first one present wins.
macOS only ever uses Homebrew.
"""

from __future__ import annotations

from termsetup.core.models.platform import PackageManagerProfile

PACKAGE_MANAGERS: dict[str, PackageManagerProfile] = {
    "brew": PackageManagerProfile(
        name="brew",
        install_command=("brew", "install", "{package}"),
        needs_elevation=False,
    ),
    "apt": PackageManagerProfile(
        name="apt",
        install_command=("apt-get", "install", "-y", "{package}"),
        needs_elevation=True,
        refresh_command=("apt-get", "update"),
    ),
    "yum": PackageManagerProfile(
        name="yum",
        install_command=("yum", "install", "-y", "{package}"),
        needs_elevation=True,
    ),
    "dnf": PackageManagerProfile(
        name="dnf",
        install_command=("dnf", "install", "-y", "{package}"),
        needs_elevation=True,
    ),
    "pacman": PackageManagerProfile(
        name="pacman",
        install_command=("pacman", "-S", "--noconfirm", "{package}"),
        needs_elevation=True,
    ),
}

# Manager name → binary probed on PATH
MANAGER_BINARIES: dict[str, str] = {
    "brew": "brew",
    "apt": "apt-get",
    "yum": "yum",
    "dnf": "dnf",
    "pacman": "pacman",
}

LINUX_PROBE_ORDER: tuple[str, ...] = ("apt", "yum", "dnf", "pacman")
MACOS_MANAGER = "brew"

# Manager name → argv that exits 0 when ``{package}`` is installed
QUERY_COMMANDS: dict[str, tuple[str, ...]] = {
    "brew": ("brew", "ls", "--versions", "{package}"),
    "apt": ("dpkg-query", "-W", "-f=${Status}", "{package}"),
    "yum": ("rpm", "-q", "{package}"),
    "dnf": ("rpm", "-q", "{package}"),
    "pacman": ("pacman", "-Q", "{package}"),
}
