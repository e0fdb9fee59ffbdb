"""
Error taxonomy for the setup run.

Every failure a step can hit maps to one of these classes. The step
runner decides what each one means for the run (skip, fail, abort);
the classes themselves carry no policy.
"""

from __future__ import annotations


class SetupError(Exception):
    """Base class for every setup failure."""


# ── Probe (always fatal) ───────────────────────────────────────────


class UnsupportedPlatform(SetupError):
    """The host OS is neither macOS nor Linux."""


class UnsupportedPackageManager(SetupError):
    """No supported package manager binary is on PATH."""


# ── Step-scoped ────────────────────────────────────────────────────


class PrivilegeDenied(SetupError):
    """Elevated privileges were declined or could not be obtained."""


class DownloadFailed(SetupError):
    """A network download failed or timed out."""


class CorruptArchive(SetupError):
    """A downloaded archive is too small or not of the expected type."""


class ExtractionEmpty(SetupError):
    """An archive extracted without yielding any expected artifact."""


class ExternalToolFailure(SetupError):
    """An external command (package manager, git, gem …) exited non-zero."""

    def __init__(self, message: str, *, stderr: str = "", returncode: int | None = None):
        super().__init__(message)
        self.stderr = stderr
        self.returncode = returncode


class VerificationFailed(SetupError):
    """A step's post-condition did not hold after its action ran."""


class DependencyMissing(SetupError):
    """A step's prerequisite feature is not installed."""


# ── Run-level ──────────────────────────────────────────────────────


class RunAborted(SetupError):
    """The whole run must stop. Carries the process exit code."""

    def __init__(self, message: str, exit_code: int = 1):
        super().__init__(message)
        self.exit_code = exit_code


class ConfigError(SetupError):
    """The settings file is unreadable or invalid."""


class ResumeError(SetupError):
    """A resume token is missing, corrupt or already consumed."""
