"""
Run log — severity-coded progress messages.

Thin facade over the ``termsetup.run`` logger so that call sites read
``log.success("Installed zsh")`` instead of passing ``extra`` dicts.
Where the lines end up (terminal, log file) is decided by
``setup_logging``.
"""

from __future__ import annotations

import logging
from typing import Any

from termsetup.core.observability.logging_config import RUN_LOGGER


class RunLog:
    """Progress log for one run."""

    def __init__(self, logger: logging.Logger | None = None):
        self._logger = logger or logging.getLogger(RUN_LOGGER)

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def success(self, msg: str, *args: Any) -> None:
        self._logger.info(msg, *args, extra={"severity": "success"})

    def info(self, msg: str, *args: Any) -> None:
        self._logger.info(msg, *args, extra={"severity": "info"})

    def warning(self, msg: str, *args: Any) -> None:
        self._logger.warning(msg, *args, extra={"severity": "warning"})

    def error(self, msg: str, *args: Any) -> None:
        self._logger.error(msg, *args, extra={"severity": "error"})

    def plain(self, msg: str = "", *args: Any) -> None:
        """An unprefixed line (report bodies, instructions)."""
        self._logger.info(msg, *args, extra={"severity": "plain"})

    def section(self, title: str) -> None:
        self.plain("")
        self.info("=== %s ===", title)
        self.plain("")
