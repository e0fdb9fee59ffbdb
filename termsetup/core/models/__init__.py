"""
Domain models — Pydantic types for a setup run.

All models are re-exported here for convenient access:

    from termsetup.core.models import Settings, StepOutcome, StepState
"""

from termsetup.core.models.command import CommandResult
from termsetup.core.models.outcome import BackupRecord, StepOutcome, StepState
from termsetup.core.models.platform import OSFamily, PackageManagerProfile
from termsetup.core.models.resume import ResumeToken
from termsetup.core.models.settings import (
    FontSettings,
    PromptThemeSettings,
    RepoSettings,
    Settings,
    TimeoutSettings,
)

__all__ = [
    "BackupRecord",
    "CommandResult",
    "FontSettings",
    "OSFamily",
    "PackageManagerProfile",
    "PromptThemeSettings",
    "RepoSettings",
    "ResumeToken",
    "Settings",
    "StepOutcome",
    "StepState",
    "TimeoutSettings",
]
