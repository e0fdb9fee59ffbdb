"""
L1 Domain — Latest stable version selection (pure).
"""

from __future__ import annotations

import re
from collections.abc import Iterable

# Strict N.N.N: rejects pre-releases (3.2.0-rc1), dev builds and
# alternative implementations (jruby-9.4.5.0, truffleruby-23.1.1).
STABLE_VERSION_RE = re.compile(r"^\d+\.\d+\.\d+$")


def stable_versions(lines: Iterable[str]) -> list[str]:
    """Lines (stripped) that are strict ``N.N.N`` versions, in input order."""
    return [ln.strip() for ln in lines if STABLE_VERSION_RE.match(ln.strip())]


def version_key(version: str) -> tuple[int, ...]:
    return tuple(int(part) for part in version.split("."))


def select_latest_stable(output: str | Iterable[str]) -> str | None:
    """Pick the highest strict ``N.N.N`` version from a version listing.

    Components compare numerically, so ``3.10.0`` beats ``3.9.9``.

    Args:
        output: Raw listing (e.g. ``rbenv install -l``) or its lines.

    Returns:
        The highest stable version, or None if the listing has none.
    """
    lines = output.splitlines() if isinstance(output, str) else output
    candidates = stable_versions(lines)
    if not candidates:
        return None
    return max(candidates, key=version_key)
