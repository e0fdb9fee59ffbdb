"""
L4 Execution — Downloads and archive handling.

``fetch_url`` is the default downloader of the run context. Archives
are validated *before* anything is extracted: a short or non-zip file
is rejected outright, and extraction only ever writes the expected
artifacts (by basename, so a member path cannot escape the target).
"""

from __future__ import annotations

import fnmatch
import logging
import time
import urllib.error
import urllib.request
import zipfile
from pathlib import Path

from termsetup import __version__
from termsetup.core.errors import CorruptArchive, DownloadFailed, ExtractionEmpty
from termsetup.core.models.settings import TimeoutSettings

logger = logging.getLogger(__name__)

_CHUNK = 64 * 1024


def _fmt_size(n: int) -> str:
    for unit in ("B", "KB", "MB", "GB"):
        if n < 1024:
            return f"{n:.0f} {unit}" if unit == "B" else f"{n:.1f} {unit}"
        n /= 1024  # type: ignore[assignment]
    return f"{n:.1f} TB"


def fetch_url(url: str, dest: Path, timeouts: TimeoutSettings) -> int:
    """Download ``url`` to ``dest``.

    ``timeouts.download_connect`` bounds connecting and each read;
    ``timeouts.download_total`` bounds the whole transfer. A partial
    file is removed on any failure.

    Returns:
        Number of bytes written.

    Raises:
        DownloadFailed: On HTTP/network errors or when a timeout expires.
    """
    dest.parent.mkdir(parents=True, exist_ok=True)
    deadline = time.monotonic() + timeouts.download_total
    req = urllib.request.Request(
        url, headers={"User-Agent": f"terminal-setup/{__version__}"},
    )

    written = 0
    try:
        with urllib.request.urlopen(req, timeout=timeouts.download_connect) as resp, \
                open(dest, "wb") as f:
            while True:
                if time.monotonic() > deadline:
                    raise DownloadFailed(
                        f"Download of {url} exceeded {timeouts.download_total}s"
                    )
                chunk = resp.read(_CHUNK)
                if not chunk:
                    break
                f.write(chunk)
                written += len(chunk)
    except DownloadFailed:
        dest.unlink(missing_ok=True)
        raise
    except (urllib.error.URLError, OSError, ValueError) as e:
        dest.unlink(missing_ok=True)
        raise DownloadFailed(f"Download of {url} failed: {e}") from e

    logger.info("Downloaded %s (%s) → %s", url, _fmt_size(written), dest)
    return written


def validate_archive(path: Path, min_bytes: int) -> None:
    """Reject an archive that is too small or not a zip file.

    Raises:
        CorruptArchive: If either check fails.
    """
    size = path.stat().st_size if path.exists() else 0
    if size < min_bytes:
        raise CorruptArchive(
            f"{path.name} is {_fmt_size(size)}, expected at least {_fmt_size(min_bytes)}"
        )
    if not zipfile.is_zipfile(path):
        raise CorruptArchive(f"{path.name} is not a zip archive")


def extract_artifacts(archive: Path, dest_dir: Path, pattern: str) -> list[Path]:
    """Extract the members whose basename matches ``pattern``.

    Returns:
        Paths of the extracted files, sorted.

    Raises:
        CorruptArchive: If the archive cannot be read.
        ExtractionEmpty: If no member matches.
    """
    dest_dir.mkdir(parents=True, exist_ok=True)
    extracted: list[Path] = []
    try:
        with zipfile.ZipFile(archive) as zf:
            for info in zf.infolist():
                if info.is_dir():
                    continue
                name = Path(info.filename).name
                if not name or not fnmatch.fnmatch(name, pattern):
                    continue
                target = dest_dir / name
                with zf.open(info) as src, open(target, "wb") as out:
                    while chunk := src.read(_CHUNK):
                        out.write(chunk)
                extracted.append(target)
    except zipfile.BadZipFile as e:
        raise CorruptArchive(f"Cannot read {archive.name}: {e}") from e

    if not extracted:
        raise ExtractionEmpty(f"{archive.name} contains no {pattern} files")
    return sorted(extracted)
