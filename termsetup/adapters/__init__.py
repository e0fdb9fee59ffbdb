"""Adapters — bindings to external commands.

Public re-exports for convenient access.
"""

from termsetup.adapters.base import CommandRunner
from termsetup.adapters.mock import MockCommandRunner
from termsetup.adapters.shell.command import ShellCommandRunner

__all__ = [
    "CommandRunner",
    "MockCommandRunner",
    "ShellCommandRunner",
]
