"""
L0 Data — Module-level constants.

Pure data. No logic. No imports beyond the models.
"""

from __future__ import annotations

from termsetup.core.models.platform import OSFamily

# Font install directory per OS family (relative to $HOME)
FONT_DIRS: dict[OSFamily, str] = {
    OSFamily.MACOS: "~/Library/Fonts",
    OSFamily.LINUX: "~/.local/share/fonts",
}

# Where the macOS Terminal.app colour profile is downloaded to
TERMINAL_THEME_FILE = "~/Downloads/Gruvbox-Dark.terminal"

# System allow-list of login shells
SHELLS_FILE = "/etc/shells"

# rbenv locations for the source install (Linux)
RBENV_DIR = "~/.rbenv"
RBENV_CONFIG_LINES: tuple[str, ...] = (
    'export PATH="$HOME/.rbenv/bin:$PATH"',
    'eval "$(rbenv init - zsh)"',
)

# The framework loads plugins/themes from this line; list lines must precede it
FRAMEWORK_SOURCE_LINE = "source $ZSH/oh-my-zsh.sh"

# Environment for the framework's unattended installer
FRAMEWORK_INSTALLER_ENV: dict[str, str] = {
    "RUNZSH": "no",
    "CHSH": "no",
}

COLORLS_GEM = "colorls"
COLORLS_COMMENT = "# Colorls aliases"

# Instructions shown where the terminal theme cannot be installed automatically
TERMINAL_THEME_INSTRUCTIONS: tuple[str, ...] = (
    "To enable the Gruvbox Dark theme:",
    "1. Open your terminal preferences.",
    "2. Choose the Gruvbox Dark color scheme.",
    "3. Apply the theme and restart the terminal if needed.",
)
