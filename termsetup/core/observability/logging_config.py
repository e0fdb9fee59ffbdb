"""
Logging configuration — central setup for the CLI entrypoint.

Called once at startup by main.py. Two logger trees are configured:

- The root logger, inherited by every ``logging.getLogger(__name__)``:
  diagnostics on stderr (WARNING by default) and, when a log file is
  given, full detail in that file.
- The run logger (``termsetup.run``): the user-facing progress log.
  Every record is echoed to the terminal with a severity prefix and
  appended to the same log file. It does not propagate, so progress
  lines are never printed twice.

Levels are resolved in precedence order:
    CLI flag  >  TERMSETUP_LOG_LEVEL env var  >  WARNING (default)
"""

from __future__ import annotations

import logging
import sys

import click

RUN_LOGGER = "termsetup.run"

# ── Format strings ──────────────────────────────────────────────

# WARNING level: minimal, no noise
_FMT_MINIMAL = "%(message)s"

# INFO level: timestamped with module context
_FMT_VERBOSE = "%(asctime)s [%(name)s] %(message)s"
_DATEFMT_VERBOSE = "%H:%M:%S"

# DEBUG level: full diagnostic with file:line
_FMT_DEBUG = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s"
_DATEFMT_DEBUG = "%H:%M:%S"

# File output: always full detail
_FMT_FILE = "%(asctime)s %(levelname)-5s %(name)s — %(message)s"
_DATEFMT_FILE = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are noisy at INFO/DEBUG
_NOISY_LOGGERS = ("urllib3", "charset_normalizer")

# severity → (prefix, colour)
SEVERITY_STYLES: dict[str, tuple[str, str | None]] = {
    "success": ("✓", "green"),
    "warning": ("⚠", "yellow"),
    "info": ("ℹ", "blue"),
    "error": ("✗", "red"),
    "plain": ("", None),
}


class ClickEchoHandler(logging.Handler):
    """Echo run-log records to the terminal through click.

    The severity comes from ``record.severity`` when the caller set one
    (``extra={"severity": "success"}``), otherwise from the level.
    """

    def emit(self, record: logging.LogRecord) -> None:
        try:
            severity = getattr(record, "severity", None) or _severity_for(record.levelno)
            prefix, colour = SEVERITY_STYLES.get(severity, ("", None))
            message = self.format(record)
            text = f"{prefix} {message}" if prefix else message
            click.secho(text, fg=colour, err=record.levelno >= logging.ERROR)
        except Exception:
            self.handleError(record)


def _severity_for(levelno: int) -> str:
    if levelno >= logging.ERROR:
        return "error"
    if levelno >= logging.WARNING:
        return "warning"
    return "info"


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
    quiet_third_party: bool = True,
    run_echo_level: str = "INFO",
) -> None:
    """Configure Python logging for the entire process.

    Args:
        level: Console diagnostics level (DEBUG, INFO, WARNING, ERROR).
        log_file: Optional path to the append-only run log.
        log_file_level: Optional separate level for the log file.
            Defaults to DEBUG so external command output is kept.
        quiet_third_party: If True, keep noisy third-party loggers at
            WARNING unless we're at DEBUG level.
        run_echo_level: Minimum level of progress lines echoed to the
            terminal (ERROR with ``--quiet``).
    """
    numeric_level = _parse_level(level)

    # ── Console handler (stderr) ────────────────────────────────
    if numeric_level <= logging.DEBUG:
        fmt, datefmt = _FMT_DEBUG, _DATEFMT_DEBUG
    elif numeric_level <= logging.INFO:
        fmt, datefmt = _FMT_VERBOSE, _DATEFMT_VERBOSE
    else:
        fmt, datefmt = _FMT_MINIMAL, None

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(numeric_level)
    console.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    # ── Root logger ─────────────────────────────────────────────
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)

    effective_level = numeric_level

    # ── File handler (optional, append-only) ────────────────────
    fh: logging.FileHandler | None = None
    if log_file:
        file_level = _parse_level(log_file_level or "DEBUG")
        effective_level = min(effective_level, file_level)

        fh = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(logging.Formatter(_FMT_FILE, datefmt=_DATEFMT_FILE))
        root.addHandler(fh)

    root.setLevel(effective_level)

    # ── Run logger ──────────────────────────────────────────────
    run = logging.getLogger(RUN_LOGGER)
    run.handlers.clear()
    run.propagate = False
    run.setLevel(logging.INFO)

    echo = ClickEchoHandler()
    echo.setLevel(_parse_level(run_echo_level))
    echo.setFormatter(logging.Formatter(_FMT_MINIMAL))
    run.addHandler(echo)
    if fh is not None:
        run.addHandler(fh)

    # ── Third-party noise control ───────────────────────────────
    if quiet_third_party and numeric_level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    # Don't propagate exceptions from logging itself
    logging.raiseExceptions = False


def _parse_level(level: str | None) -> int:
    """Convert a level name string to its numeric constant."""
    if not level:
        return logging.WARNING
    numeric = getattr(logging, level.upper(), None)
    if not isinstance(numeric, int):
        return logging.WARNING
    return numeric
