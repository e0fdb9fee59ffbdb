"""
Resume token persistence — hand the remaining run to a new process.

The token is written (atomically) into the run's backup directory just
before the handoff and consumed by the relaunched process. Consuming
marks the token rather than deleting it, so a second relaunch with the
same token is refused and the file stays behind for inspection.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path

from pydantic import ValidationError

from termsetup.core.errors import ResumeError
from termsetup.core.models.resume import ResumeToken
from termsetup.core.persistence.atomic import atomic_write_text

logger = logging.getLogger(__name__)

RESUME_FILE = "resume.json"


def default_token_path(backup_dir: Path) -> Path:
    """Where a run stores its resume token."""
    return backup_dir / RESUME_FILE


def save_token(token: ResumeToken, path: Path) -> Path:
    """Write the token as JSON (atomic)."""
    data = token.model_dump(mode="json")
    content = json.dumps(data, indent=2, ensure_ascii=False) + "\n"
    atomic_write_text(path, content)
    logger.info("Resume token saved: %s (%d steps remaining)", path, len(token.remaining))
    return path


def load_token(path: Path) -> ResumeToken:
    """Read a token without consuming it.

    Raises:
        ResumeError: If the file is missing or not a valid token.
    """
    if not path.is_file():
        raise ResumeError(f"Resume token not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return ResumeToken.model_validate(data)
    except (json.JSONDecodeError, ValidationError, OSError) as e:
        raise ResumeError(f"Corrupt resume token {path}: {e}") from e


def consume_token(path: Path) -> ResumeToken:
    """Load a token and mark it consumed so it can only be used once.

    Raises:
        ResumeError: If the token is missing, corrupt or already consumed.
    """
    token = load_token(path)
    if token.consumed_at:
        raise ResumeError(f"Resume token {path} was already used at {token.consumed_at}")

    token.consumed_at = datetime.now(UTC).isoformat()
    save_token(token, path)
    logger.info("Resume token consumed: %s", path)
    return token
