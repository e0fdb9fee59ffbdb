"""
L1 Domain — Shell configuration text transforms (pure).

Every function takes the file content and returns the new content;
none of them touch the filesystem. Each is idempotent: applying it to
its own output returns that output unchanged. The only syntax
understood is whole lines, a ``NAME=value`` assignment and the
parenthesised ``plugins=(...)`` list.
"""

from __future__ import annotations

import re

_PLUGINS_RE = re.compile(r"^(?P<indent>[ \t]*)plugins=\((?P<body>[^)]*)\)", re.MULTILINE)


def has_line(text: str, line: str) -> bool:
    """Whether ``line`` occurs as a complete line of ``text``."""
    return line in text.splitlines()


def _with_trailing_newline(text: str) -> str:
    if text and not text.endswith("\n"):
        return text + "\n"
    return text


def append_line(text: str, line: str) -> str:
    """Append ``line`` unless an identical full line already exists."""
    if has_line(text, line):
        return text
    return _with_trailing_newline(text) + line + "\n"


def append_block(
    text: str,
    lines: list[str] | tuple[str, ...],
    *,
    guard: str,
    comment: str | None = None,
) -> str:
    """Append a group of lines once, keyed on the presence of ``guard``.

    If ``guard`` is already a line of ``text`` nothing is written, even
    if other lines of the block are missing.
    """
    if has_line(text, guard):
        return text
    out = _with_trailing_newline(text)
    if out:
        out += "\n"
    if comment:
        out += comment + "\n"
    for line in lines:
        out += line + "\n"
    return out


def replace_pattern(text: str, pattern: str, replacement: str) -> str:
    """Substitute every line-anchored match of ``pattern`` in one pass."""
    return re.sub(pattern, replacement, text, flags=re.MULTILINE)


def insert_before(text: str, anchor: str, line: str) -> str:
    """Insert ``line`` above the first line equal to ``anchor``.

    Falls back to appending when there is no anchor line.
    """
    lines = text.splitlines()
    stripped = [ln.strip() for ln in lines]
    if anchor in stripped:
        idx = stripped.index(anchor)
        lines.insert(idx, line)
        return "\n".join(lines) + "\n"
    return append_line(text, line)


# ── Assignments (ZSH_THEME="...") ───────────────────────────────────


def get_assignment(text: str, name: str) -> str | None:
    """Value of the first ``NAME=value`` line, quotes stripped."""
    match = re.search(rf"^{re.escape(name)}=(.*)$", text, flags=re.MULTILINE)
    if match is None:
        return None
    return match.group(1).strip().strip("\"'")


def set_assignment(text: str, name: str, value: str, *, anchor: str | None = None) -> str:
    """Make ``NAME="value"`` the value of every ``NAME=`` line.

    When no such line exists, one is inserted before ``anchor`` (or
    appended).
    """
    assignment = f'{name}="{value}"'
    pattern = rf"^{re.escape(name)}=.*$"
    if re.search(pattern, text, flags=re.MULTILINE):
        return replace_pattern(text, pattern, assignment.replace("\\", "\\\\"))
    if anchor:
        return insert_before(text, anchor, assignment)
    return append_line(text, assignment)


# ── plugins=(...) list ─────────────────────────────────────────────


def plugin_list(text: str) -> list[str] | None:
    """Tokens of the first active ``plugins=(...)`` line, or None."""
    match = _PLUGINS_RE.search(text)
    if match is None:
        return None
    return match.group("body").split()


def add_plugin(text: str, plugin: str, *, anchor: str | None = None) -> str:
    """Add ``plugin`` to the end of the ``plugins=(...)`` list.

    ``plugins=(git)`` becomes ``plugins=(git foo)``. Tokens are joined
    by single spaces and a plugin already listed is never repeated.
    Without a list line, ``plugins=(<plugin>)`` is inserted before
    ``anchor`` (or appended).
    """
    match = _PLUGINS_RE.search(text)
    if match is None:
        line = f"plugins=({plugin})"
        if anchor:
            return insert_before(text, anchor, line)
        return append_line(text, line)

    tokens = match.group("body").split()
    if plugin in tokens:
        return text
    tokens.append(plugin)
    new = f"{match.group('indent')}plugins=({' '.join(tokens)})"
    return text[: match.start()] + new + text[match.end():]
