"""
L5 Orchestration — Installation step descriptors.

Each step is a declarative description of one unit of work:

    requires      → name of the step whose feature must already exist
    precondition  → is the feature already present? (skip if so)
    prompt        → what to ask, with ``default`` as the empty answer
    perform       → the action; raises a ``SetupError`` on failure
    verify        → independent post-condition re-check

Steps hold no run state. ``StepRunner`` interprets them in order and
owns confirmation, privileges, journaling and rollback; a step only
says *what* to do.
"""

from __future__ import annotations

import logging
import os
import shlex
import shutil
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, ClassVar

from termsetup.core.errors import ExternalToolFailure, SetupError
from termsetup.core.models.command import CommandResult
from termsetup.core.models.platform import OSFamily
from termsetup.core.services.bootstrap.data.constants import (
    COLORLS_COMMENT,
    COLORLS_GEM,
    FRAMEWORK_INSTALLER_ENV,
    RBENV_CONFIG_LINES,
    RBENV_DIR,
    SHELLS_FILE,
    TERMINAL_THEME_FILE,
    TERMINAL_THEME_INSTRUCTIONS,
)
from termsetup.core.services.bootstrap.detection import environment, features
from termsetup.core.services.bootstrap.domain.versions import select_latest_stable
from termsetup.core.services.bootstrap.execution.config_patch import ConfigPatcher
from termsetup.core.services.bootstrap.execution.download import (
    extract_artifacts,
    validate_archive,
)
from termsetup.core.services.bootstrap.execution.installer import PackageInstaller
from termsetup.core.services.bootstrap.execution.vcs import clone_repo

if TYPE_CHECKING:
    from termsetup.core.context import RunContext

logger = logging.getLogger(__name__)


def _track(ctx: RunContext, path: Path) -> None:
    """Register a path the current step is about to create."""
    if ctx.journal is not None:
        ctx.journal.record_created(path)


def _require_tool(ctx: RunContext, name: str) -> str:
    path = ctx.which(name)
    if path is None:
        raise ExternalToolFailure(f"{name} is required but was not found on PATH")
    return path


def _check(result: CommandResult, message: str) -> None:
    if result.failed:
        raise ExternalToolFailure(
            f"{message}: {result.describe()}",
            stderr=result.stderr,
            returncode=result.returncode,
        )


class InstallationStep:
    """Base descriptor. Subclasses override the class attributes and hooks."""

    name: ClassVar[str] = ""
    label: ClassVar[str] = ""
    # Instance-level so a step can build its prompt from settings
    prompt: str = ""
    default: ClassVar[bool | None] = None

    mandatory: ClassVar[bool] = False
    needs_privileges: ClassVar[bool] = False
    requires: ClassVar[str | None] = None
    handoff_after: ClassVar[bool] = False
    supports_rollback: ClassVar[bool] = True

    def applies(self, ctx: RunContext) -> bool:
        """Whether the step can run on this host at all."""
        return True

    def not_applicable(self, ctx: RunContext) -> str:
        """Tell the user what to do instead. Returns the outcome message."""
        return f"{self.label} is not available on {ctx.os_family}"

    def privileges_required(self, ctx: RunContext) -> bool:
        return self.needs_privileges

    def precondition(self, ctx: RunContext) -> bool:
        raise NotImplementedError

    def perform(self, ctx: RunContext) -> str:
        """Do the work. Returns the success message."""
        raise NotImplementedError

    def verify(self, ctx: RunContext) -> bool:
        return self.precondition(ctx)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"


# ── Shell ──────────────────────────────────────────────────────────


class ZshStep(InstallationStep):
    name = "zsh"
    label = "Zsh"
    prompt = "Would you like to install Zsh?"
    default = True
    mandatory = True
    supports_rollback = False

    def privileges_required(self, ctx: RunContext) -> bool:
        return ctx.package_manager.needs_elevation

    def precondition(self, ctx: RunContext) -> bool:
        return features.zsh_installed(ctx)

    def verify(self, ctx: RunContext) -> bool:
        if not features.zsh_installed(ctx):
            return False
        if not PackageInstaller(ctx).is_installed("zsh"):
            ctx.log.warning(f"{ctx.package_manager.name} does not list zsh as installed")
            return False
        return True

    def perform(self, ctx: RunContext) -> str:
        PackageInstaller(ctx).install("zsh")
        return "Installed zsh"


class DefaultShellStep(InstallationStep):
    """Make zsh the login shell; offers the handoff afterwards."""

    name = "default-shell"
    label = "Default shell"
    prompt = "Would you like to set Zsh as your default shell?"
    default = True
    handoff_after = True
    supports_rollback = False

    def __init__(self, shells_file: str = SHELLS_FILE):
        self.shells_file = shells_file

    def applies(self, ctx: RunContext) -> bool:
        return features.zsh_installed(ctx)

    def not_applicable(self, ctx: RunContext) -> str:
        ctx.log.warning("Zsh not found. Skipping default shell change.")
        return "zsh is not installed"

    def privileges_required(self, ctx: RunContext) -> bool:
        zsh = features.zsh_path(ctx)
        return zsh is not None and not features.zsh_in_shells_file(zsh, self.shells_file)

    def precondition(self, ctx: RunContext) -> bool:
        return os.path.basename(environment.login_shell()) == "zsh"

    def perform(self, ctx: RunContext) -> str:
        zsh = _require_tool(ctx, "zsh")

        if not features.zsh_in_shells_file(zsh, self.shells_file):
            ctx.log.info(f"Adding Zsh to {self.shells_file} (requires sudo)")
            ctx.backups.backup_once(Path(self.shells_file))
            line = shlex.quote(zsh)
            target = shlex.quote(self.shells_file)
            result = ctx.run(["sh", "-c", f"echo {line} >> {target}"], sudo=True)
            _check(result, f"Could not add {zsh} to {self.shells_file}")
            ctx.log.success(f"Added Zsh to {self.shells_file}")

        result = ctx.run(["chsh", "-s", zsh], interactive=ctx.gate.interactive)
        _check(result, f"chsh failed. You can run 'chsh -s {zsh}' manually later")
        return "Set Zsh as default shell"


class TerminalThemeStep(InstallationStep):
    """Gruvbox Dark profile for Terminal.app."""

    name = "terminal-theme"
    label = "Gruvbox Dark theme"
    prompt = "Would you like to install the Gruvbox Dark theme for Terminal.app?"
    default = False

    def applies(self, ctx: RunContext) -> bool:
        return ctx.os_family == OSFamily.MACOS

    def not_applicable(self, ctx: RunContext) -> str:
        for line in TERMINAL_THEME_INSTRUCTIONS:
            ctx.log.plain(line)
        return "Terminal theme must be imported manually on Linux"

    def precondition(self, ctx: RunContext) -> bool:
        return features.terminal_theme_downloaded(ctx)

    def perform(self, ctx: RunContext) -> str:
        dest = ctx.expand(TERMINAL_THEME_FILE)
        _track(ctx, dest)
        ctx.fetch(ctx.settings.terminal_theme_url, dest, ctx.settings.timeouts)

        if ctx.run(["open", str(dest)]).failed:
            ctx.log.warning(f"Could not open {dest}; import it from Terminal preferences")
        else:
            ctx.log.info("The theme file has been opened in Terminal.app")
        return "Downloaded Gruvbox theme. Please import it in Terminal preferences."


# ── Framework, font, theme, plugins ────────────────────────────────


class FrameworkStep(InstallationStep):
    """Oh My Zsh, via its own installer in unattended mode."""

    name = "framework"
    label = "Oh My Zsh"
    prompt = "Would you like to install Oh My Zsh?"
    default = True

    def precondition(self, ctx: RunContext) -> bool:
        return features.framework_installed(ctx)

    def verify(self, ctx: RunContext) -> bool:
        return features.framework_installed(ctx) and ctx.zshrc.is_file()

    def perform(self, ctx: RunContext) -> str:
        ctx.backups.backup_once(ctx.zshrc)
        if ctx.journal is not None:
            ctx.journal.snapshot(ctx.zshrc)
        _track(ctx, ctx.framework_dir)

        fd, tmp = tempfile.mkstemp(prefix="omz-install-", suffix=".sh")
        os.close(fd)
        script = Path(tmp)
        try:
            ctx.fetch(ctx.settings.framework_installer_url, script, ctx.settings.timeouts)
            result = ctx.run(
                ["sh", str(script), "--unattended"],
                timeout=ctx.settings.timeouts.install,
                extra_env={**FRAMEWORK_INSTALLER_ENV, "ZSH": str(ctx.framework_dir)},
            )
            _check(result, "Oh My Zsh installer failed")
        finally:
            script.unlink(missing_ok=True)
        return "Oh My Zsh installed successfully"


class FontStep(InstallationStep):
    name = "font"
    label = "Hack Nerd Font"
    prompt = "Would you like to install Hack Nerd Font?"
    default = False

    def precondition(self, ctx: RunContext) -> bool:
        return features.font_installed(ctx)

    def perform(self, ctx: RunContext) -> str:
        font = ctx.settings.font
        dest_dir = features.font_dir(ctx)

        with tempfile.TemporaryDirectory(prefix="termsetup-font-") as tmp:
            archive = Path(tmp) / "font.zip"
            ctx.fetch(font.url, archive, ctx.settings.timeouts)
            validate_archive(archive, font.min_bytes)
            artifacts = extract_artifacts(archive, Path(tmp) / "extracted", font.artifact_glob)

            _track(ctx, dest_dir)
            dest_dir.mkdir(parents=True, exist_ok=True)
            copied: list[Path] = []
            try:
                for src in artifacts:
                    target = dest_dir / src.name
                    _track(ctx, target)
                    shutil.copy2(src, target)
                    copied.append(target)
            except OSError as e:
                for path in copied:
                    path.unlink(missing_ok=True)
                raise SetupError(f"Failed to copy font files: {e}") from e

        if ctx.os_family == OSFamily.LINUX:
            fc_cache = ctx.which("fc-cache")
            if fc_cache is None or ctx.run([fc_cache, "-f", str(dest_dir)]).failed:
                ctx.log.warning("Could not refresh the font cache; log out and back in if the font is missing")

        return f"Installed {font.name} ({len(copied)} files)"


class PromptThemeStep(InstallationStep):
    name = "prompt-theme"
    label = "Powerlevel10k"
    prompt = "Would you like to install Powerlevel10k theme?"
    default = False
    requires = "framework"

    def precondition(self, ctx: RunContext) -> bool:
        return features.prompt_theme_installed(ctx) and features.prompt_theme_active(ctx)

    def perform(self, ctx: RunContext) -> str:
        theme = ctx.settings.prompt_theme
        target = features.prompt_theme_dir(ctx)
        if not target.is_dir():
            clone_repo(ctx, theme.url, target, depth=1)

        ConfigPatcher(ctx).set_theme(ctx.zshrc, theme.theme_value)
        ctx.log.info("You can run 'p10k configure' after restarting your terminal to configure Powerlevel10k")
        return "Installed Powerlevel10k theme"


class PluginsStep(InstallationStep):
    name = "plugins"
    label = "Zsh plugins"
    default = False
    requires = "framework"

    def __init__(self, plugin_names: list[str] | None = None):
        names = plugin_names or ["zsh-syntax-highlighting", "zsh-autosuggestions"]
        self.prompt = f"Would you like to install {' and '.join(names)} plugins?"

    def precondition(self, ctx: RunContext) -> bool:
        return features.plugins_installed(ctx) and features.plugins_enabled(ctx)

    def perform(self, ctx: RunContext) -> str:
        plugins = ctx.settings.plugins
        for plugin in plugins:
            target = features.plugin_dir(ctx, plugin.name)
            if not target.is_dir():
                clone_repo(ctx, plugin.url, target)

        ConfigPatcher(ctx).ensure_plugins(ctx.zshrc, [p.name for p in plugins])
        return "Installed Zsh plugins"


# ── Ruby tooling ───────────────────────────────────────────────────


class RubyStep(InstallationStep):
    """rbenv plus the latest stable Ruby."""

    name = "ruby"
    label = "Ruby"
    prompt = "Ruby is not installed. Would you like to install rbenv and Ruby?"
    default = False

    def precondition(self, ctx: RunContext) -> bool:
        return features.ruby_available(ctx)

    def privileges_required(self, ctx: RunContext) -> bool:
        return ctx.os_family == OSFamily.MACOS and ctx.package_manager.needs_elevation

    def perform(self, ctx: RunContext) -> str:
        rbenv_root = ctx.expand(RBENV_DIR)

        if ctx.os_family == OSFamily.MACOS:
            if ctx.which("rbenv") is None:
                PackageInstaller(ctx).install("rbenv")
        elif not rbenv_root.is_dir():
            clone_repo(ctx, ctx.settings.rbenv_url, rbenv_root)
            clone_repo(ctx, ctx.settings.ruby_build_url, rbenv_root / "plugins" / "ruby-build")

        ConfigPatcher(ctx).append_block_if_absent(
            ctx.zshrc, RBENV_CONFIG_LINES, comment="# rbenv",
        )
        if ctx.os_family == OSFamily.LINUX:
            ctx.prepend_path(rbenv_root / "bin")
        ctx.prepend_path(rbenv_root / "shims")

        rbenv = _require_tool(ctx, "rbenv")
        listing = ctx.run([rbenv, "install", "-l"])
        _check(listing, "Could not list Ruby versions")
        version = select_latest_stable(listing.stdout)
        if version is None:
            raise ExternalToolFailure("Could not determine latest Ruby version")

        ctx.log.info(f"Installing Ruby {version} (this may take a while)...")
        _check(
            ctx.run([rbenv, "install", "-s", version], timeout=ctx.settings.timeouts.build),
            f"rbenv install {version} failed",
        )
        _check(ctx.run([rbenv, "global", version]), f"rbenv global {version} failed")
        return f"Installed Ruby {version}"


class ColorlsStep(InstallationStep):
    name = "colorls"
    label = "Colorls"
    prompt = "Would you like to install colorls gem and set up ls alias?"
    default = False
    requires = "ruby"

    def precondition(self, ctx: RunContext) -> bool:
        return features.colorls_installed(ctx) and features.colorls_aliases_present(ctx)

    def perform(self, ctx: RunContext) -> str:
        if not features.colorls_installed(ctx):
            gem = _require_tool(ctx, "gem")
            _check(
                ctx.run([gem, "install", COLORLS_GEM], timeout=ctx.settings.timeouts.install),
                "Failed to install colorls gem",
            )
            ctx.log.success("Installed colorls gem")

        aliases = ctx.settings.colorls_aliases
        if aliases:
            ConfigPatcher(ctx).append_block_if_absent(
                ctx.zshrc, aliases, guard=aliases[0], comment=COLORLS_COMMENT,
            )
        return "Added colorls aliases to .zshrc"


def build_default_steps(plugin_names: list[str] | None = None) -> list[InstallationStep]:
    """The full step catalogue in execution order."""
    return [
        ZshStep(),
        DefaultShellStep(),
        TerminalThemeStep(),
        FrameworkStep(),
        FontStep(),
        PromptThemeStep(),
        PluginsStep(plugin_names),
        RubyStep(),
        ColorlsStep(),
    ]
