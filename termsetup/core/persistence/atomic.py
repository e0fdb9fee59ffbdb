"""
Atomic file writes — temp file in the same directory, then rename.

A write interrupted half-way leaves the original file untouched
instead of a truncated one.
"""

from __future__ import annotations

import logging
import os
import stat
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)


def atomic_write_text(path: Path, content: str) -> None:
    """Replace ``path`` with ``content`` atomically.

    The existing file's permission bits are carried over to the new
    file. Parent directories are created as needed.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    mode = None
    if path.exists():
        mode = stat.S_IMODE(path.stat().st_mode)

    fd, tmp_name = tempfile.mkstemp(
        dir=path.parent,
        prefix=f".{path.name}_",
        suffix=".tmp",
    )
    tmp = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        if mode is not None:
            tmp.chmod(mode)
        os.replace(tmp, path)
        logger.debug("Wrote %s (%d bytes)", path, len(content))
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise
