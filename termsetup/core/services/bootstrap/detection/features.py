"""
L3 Detection — Feature probes.

Each probe answers "is this feature present right now?" by looking at
the filesystem, PATH or the tool itself. Steps use them as
preconditions and verifications; the summary report uses them to
re-derive state independently of what the run did.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from termsetup.core.models.platform import OSFamily
from termsetup.core.services.bootstrap.data.constants import (
    COLORLS_GEM,
    FONT_DIRS,
    SHELLS_FILE,
    TERMINAL_THEME_FILE,
)
from termsetup.core.services.bootstrap.domain import config_text

if TYPE_CHECKING:
    from termsetup.core.context import RunContext

logger = logging.getLogger(__name__)


def zsh_path(ctx: RunContext) -> str | None:
    return ctx.which("zsh")


def zsh_installed(ctx: RunContext) -> bool:
    return zsh_path(ctx) is not None


def zsh_in_shells_file(zsh: str, shells_file: str = SHELLS_FILE) -> bool:
    """Whether ``zsh`` is listed in the system's login shell allow-list."""
    try:
        with open(shells_file, encoding="utf-8") as f:
            return any(line.strip() == zsh for line in f)
    except OSError:
        return False


def framework_installed(ctx: RunContext) -> bool:
    return ctx.framework_dir.is_dir()


def prompt_theme_dir(ctx: RunContext) -> Path:
    return ctx.custom_dir / "themes" / ctx.settings.prompt_theme.name


def prompt_theme_installed(ctx: RunContext) -> bool:
    return prompt_theme_dir(ctx).is_dir()


def prompt_theme_active(ctx: RunContext) -> bool:
    if not ctx.zshrc.is_file():
        return False
    value = config_text.get_assignment(ctx.zshrc.read_text(encoding="utf-8"), "ZSH_THEME")
    return value == ctx.settings.prompt_theme.theme_value


def plugin_dir(ctx: RunContext, name: str) -> Path:
    return ctx.custom_dir / "plugins" / name


def plugins_installed(ctx: RunContext) -> bool:
    return all(plugin_dir(ctx, p.name).is_dir() for p in ctx.settings.plugins)


def plugins_enabled(ctx: RunContext) -> bool:
    if not ctx.zshrc.is_file():
        return False
    listed = config_text.plugin_list(ctx.zshrc.read_text(encoding="utf-8")) or []
    return all(p.name in listed for p in ctx.settings.plugins)


def font_dir(ctx: RunContext) -> Path:
    return ctx.expand(FONT_DIRS[ctx.os_family])


def font_installed(ctx: RunContext) -> bool:
    directory = font_dir(ctx)
    if not directory.is_dir():
        return False
    return any(directory.glob(ctx.settings.font.installed_glob))


def terminal_theme_downloaded(ctx: RunContext) -> bool:
    return ctx.os_family == OSFamily.MACOS and ctx.expand(TERMINAL_THEME_FILE).is_file()


def ruby_available(ctx: RunContext) -> bool:
    return ctx.which("ruby") is not None


def colorls_installed(ctx: RunContext) -> bool:
    if ctx.which("colorls"):
        return True
    if not ctx.which("gem"):
        return False
    result = ctx.run(["gem", "list", "-i", COLORLS_GEM])
    return result.ok and result.stdout.strip() == "true"


def colorls_aliases_present(ctx: RunContext) -> bool:
    aliases = ctx.settings.colorls_aliases
    if not aliases or not ctx.zshrc.is_file():
        return False
    return config_text.has_line(ctx.zshrc.read_text(encoding="utf-8"), aliases[0])


# ── Summary catalogue ─────────────────────────────────────────────


@dataclass(frozen=True)
class Feature:
    """A user-visible feature and how to tell whether it is present."""

    label: str
    probe: Callable[[RunContext], bool]


FEATURES: tuple[Feature, ...] = (
    Feature("Zsh", zsh_installed),
    Feature("Oh My Zsh", framework_installed),
    Feature("Powerlevel10k", prompt_theme_installed),
    Feature("Zsh Plugins", plugins_installed),
    Feature("Hack Nerd Font", font_installed),
    Feature("Ruby", ruby_available),
    Feature("Colorls", colorls_installed),
)
