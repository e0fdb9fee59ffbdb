"""
Settings model — everything a run can be configured with.

Every field has a working default, so an empty (or absent) settings
file yields the stock setup. Paths may use ``~``; callers expand them.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class TimeoutSettings(BaseModel):
    """Uniform timeout policy, in seconds."""

    model_config = ConfigDict(extra="forbid")

    command: int = 120              # probes, git clone, chsh, gem …
    install: int = 1800             # package manager installs
    build: int = 3600               # compiling a Ruby
    download_connect: int = 15
    download_total: int = 300


class FontSettings(BaseModel):
    """Nerd font archive to download and install."""

    model_config = ConfigDict(extra="forbid")

    name: str = "Hack Nerd Font"
    url: str = "https://github.com/ryanoasis/nerd-fonts/releases/download/v3.1.1/Hack.zip"
    min_bytes: int = 512 * 1024
    artifact_glob: str = "*.ttf"
    installed_glob: str = "Hack*Nerd*.ttf"


class RepoSettings(BaseModel):
    """A git repository cloned into the framework's custom directory."""

    model_config = ConfigDict(extra="forbid")

    name: str
    url: str


class PromptThemeSettings(RepoSettings):
    """Prompt theme repository plus the ``ZSH_THEME`` value it needs."""

    theme_value: str = "powerlevel10k/powerlevel10k"


def _default_plugins() -> list[RepoSettings]:
    return [
        RepoSettings(
            name="zsh-syntax-highlighting",
            url="https://github.com/zsh-users/zsh-syntax-highlighting.git",
        ),
        RepoSettings(
            name="zsh-autosuggestions",
            url="https://github.com/zsh-users/zsh-autosuggestions",
        ),
    ]


def _default_aliases() -> list[str]:
    return [
        "alias ls='colorls'",
        "alias ll='colorls -l'",
        "alias la='colorls -la'",
    ]


class Settings(BaseModel):
    """Root settings — loaded from YAML by ``core.config.loader``."""

    model_config = ConfigDict(extra="forbid")

    # ── Files ────────────────────────────────────────────────────
    log_file: str = "~/terminal-setup.log"
    backup_root: str = "~/.terminal-setup-backups"
    zshrc: str = "~/.zshrc"
    framework_dir: str = "~/.oh-my-zsh"

    # ── Remote sources ───────────────────────────────────────────
    framework_installer_url: str = (
        "https://raw.githubusercontent.com/ohmyzsh/ohmyzsh/master/tools/install.sh"
    )
    terminal_theme_url: str = (
        "https://raw.githubusercontent.com/mbadolato/iTerm2-Color-Schemes/"
        "master/terminal/Gruvbox%20Dark.terminal"
    )
    font: FontSettings = Field(default_factory=FontSettings)
    prompt_theme: PromptThemeSettings = Field(
        default_factory=lambda: PromptThemeSettings(
            name="powerlevel10k",
            url="https://github.com/romkatv/powerlevel10k.git",
        )
    )
    plugins: list[RepoSettings] = Field(default_factory=_default_plugins)
    rbenv_url: str = "https://github.com/rbenv/rbenv.git"
    ruby_build_url: str = "https://github.com/rbenv/ruby-build.git"

    # ── Tooling ──────────────────────────────────────────────────
    colorls_aliases: list[str] = Field(default_factory=_default_aliases)

    # ── Policy ───────────────────────────────────────────────────
    timeouts: TimeoutSettings = Field(default_factory=TimeoutSettings)
    on_missing_dependency: Literal["skip", "abort"] = "skip"
