"""
L4 Execution — Shell configuration patcher.

Applies the pure transforms of ``domain.config_text`` to a file on
disk. Every write goes through the same sequence:

    read → transform → (unchanged? stop) → run backup → step snapshot
         → atomic write (temp file + rename)

so the file is backed up before its first mutation in a run, a step
can be rolled back to the content it started from, and an interrupted
write never leaves a truncated file.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

from termsetup.core.persistence.atomic import atomic_write_text
from termsetup.core.services.bootstrap.data.constants import FRAMEWORK_SOURCE_LINE
from termsetup.core.services.bootstrap.domain import config_text

if TYPE_CHECKING:
    from termsetup.core.context import RunContext

logger = logging.getLogger(__name__)


class ConfigPatcher:
    """Idempotent edits to a shell configuration file."""

    def __init__(self, ctx: RunContext):
        self._ctx = ctx

    def _apply(self, path: Path, transform: Callable[[str], str]) -> bool:
        """Rewrite ``path`` with ``transform``. Returns True if it changed."""
        current = path.read_text(encoding="utf-8") if path.exists() else ""
        updated = transform(current)
        if updated == current:
            logger.debug("%s already up to date", path)
            return False

        self._ctx.backups.backup_once(path)
        if self._ctx.journal is not None:
            self._ctx.journal.snapshot(path)

        atomic_write_text(path, updated)
        return True

    def append_line_if_absent(self, path: Path, line: str) -> bool:
        return self._apply(path, lambda text: config_text.append_line(text, line))

    def append_block_if_absent(
        self,
        path: Path,
        lines: list[str] | tuple[str, ...],
        *,
        guard: str | None = None,
        comment: str | None = None,
    ) -> bool:
        guard = guard if guard is not None else lines[0]
        return self._apply(
            path,
            lambda text: config_text.append_block(text, lines, guard=guard, comment=comment),
        )

    def replace_pattern(self, path: Path, pattern: str, replacement: str) -> bool:
        return self._apply(
            path,
            lambda text: config_text.replace_pattern(text, pattern, replacement),
        )

    def set_theme(self, path: Path, theme: str) -> bool:
        return self._apply(
            path,
            lambda text: config_text.set_assignment(
                text, "ZSH_THEME", theme, anchor=FRAMEWORK_SOURCE_LINE,
            ),
        )

    def ensure_plugins(self, path: Path, names: list[str]) -> bool:
        def _add_all(text: str) -> str:
            for name in names:
                text = config_text.add_plugin(text, name, anchor=FRAMEWORK_SOURCE_LINE)
            return text

        return self._apply(path, _add_all)
