"""
Shell command runner — the single place where processes are spawned.

All privilege handling, timeouts and output capture for external
tools are centralised here. Captured output is written to the log
file at DEBUG level and never echoed to the terminal.
"""

from __future__ import annotations

import logging
import os
import subprocess
import time

from termsetup.adapters.base import CommandRunner
from termsetup.core.models.command import CommandResult

logger = logging.getLogger(__name__)

# Keep the tail of long tool output (package managers, ruby-build)
_OUTPUT_TAIL = 4000


class ShellCommandRunner(CommandRunner):
    """Run commands with ``subprocess.run``.

    Privileged commands are prefixed with ``sudo -n`` so they only ever
    use credentials cached by the privilege check; they fail instead of
    blocking on a hidden password prompt.
    """

    @property
    def name(self) -> str:
        return "shell"

    def run(
        self,
        cmd: list[str],
        *,
        timeout: int,
        sudo: bool = False,
        interactive: bool = False,
        env: dict[str, str] | None = None,
        cwd: str | None = None,
    ) -> CommandResult:
        argv = list(cmd)
        if sudo and os.geteuid() != 0:
            argv = ["sudo", "-n"] + argv if not interactive else ["sudo"] + argv

        logger.debug("Executing: %s (timeout=%ss)", " ".join(argv), timeout)
        start = time.monotonic()

        try:
            if interactive:
                proc = subprocess.run(argv, env=env, cwd=cwd, timeout=timeout)
                stdout = stderr = ""
            else:
                proc = subprocess.run(
                    argv,
                    env=env,
                    cwd=cwd,
                    capture_output=True,
                    text=True,
                    timeout=timeout,
                    stdin=subprocess.DEVNULL,
                )
                stdout = (proc.stdout or "")[-_OUTPUT_TAIL:]
                stderr = (proc.stderr or "")[-_OUTPUT_TAIL:]
        except subprocess.TimeoutExpired:
            logger.warning("Command timed out after %ss: %s", timeout, " ".join(argv))
            return CommandResult.failure(argv, f"Command timed out after {timeout}s")
        except FileNotFoundError:
            return CommandResult.failure(argv, f"Command not found: {argv[0]}")
        except OSError as e:
            logger.exception("Subprocess error: %s", argv)
            return CommandResult.failure(argv, f"Command execution error: {e}")

        elapsed_ms = int((time.monotonic() - start) * 1000)
        if stdout:
            logger.debug("stdout [%s]:\n%s", argv[0], stdout.rstrip())
        if stderr:
            logger.debug("stderr [%s]:\n%s", argv[0], stderr.rstrip())

        if proc.returncode == 0:
            return CommandResult.success(
                argv, stdout=stdout, stderr=stderr, elapsed_ms=elapsed_ms,
            )
        return CommandResult.failure(
            argv,
            f"Command failed (exit {proc.returncode})",
            returncode=proc.returncode,
            stdout=stdout,
            stderr=stderr,
            elapsed_ms=elapsed_ms,
        )
