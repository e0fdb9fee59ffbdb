"""
L4 Execution — Run backups and step journals.

Two layers of protection for every file a run mutates:

- ``BackupFacility`` keeps one copy per file per run, taken before the
  first mutation (``<backup dir>/<basename>.backup``). First write wins:
  later mutations in the same run never refresh it, so it always holds
  the pre-run content.
- ``StepJournal`` records what a single step touched: a snapshot of
  each file as it was when the step first touched it, and every path
  the step created. Rolling back a step replays only its own journal.
"""

from __future__ import annotations

import filecmp
import logging
import shutil
from pathlib import Path

from termsetup.core.models.outcome import BackupRecord

logger = logging.getLogger(__name__)

BACKUP_SUFFIX = ".backup"


class BackupFacility:
    """Per-run, first-write-wins file backups."""

    def __init__(self, backup_dir: Path, records: list[BackupRecord] | None = None):
        self._dir = backup_dir
        self._records: dict[str, BackupRecord] = {}
        for record in records or []:
            self._records[record.original] = record

    @property
    def backup_dir(self) -> Path:
        return self._dir

    @property
    def records(self) -> list[BackupRecord]:
        return list(self._records.values())

    def record_for(self, path: Path) -> BackupRecord | None:
        return self._records.get(_key(path))

    def backup_once(self, path: Path) -> BackupRecord | None:
        """Copy ``path`` into the backup directory unless already done this run.

        Returns:
            The (possibly pre-existing) record, or None when ``path``
            does not exist and there is nothing to back up.
        """
        key = _key(path)
        existing = self._records.get(key)
        if existing is not None:
            return existing

        if not path.exists():
            logger.debug("backup: %s does not exist, nothing to back up", path)
            return None

        self._dir.mkdir(parents=True, exist_ok=True)
        dest = self._free_slot(path.name)
        shutil.copy2(path, dest)

        record = BackupRecord(original=key, backup=str(dest))
        self._records[key] = record
        logger.info("Backed up %s → %s", path, dest)
        return record

    def _free_slot(self, basename: str) -> Path:
        """Pick ``<basename>.backup``, numbering it if another file owns that name."""
        owned = {r.backup for r in self._records.values()}
        dest = self._dir / f"{basename}{BACKUP_SUFFIX}"
        n = 1
        while str(dest) in owned or dest.exists():
            dest = self._dir / f"{basename}.{n}{BACKUP_SUFFIX}"
            n += 1
        return dest


class StepJournal:
    """Everything one step changed, so that exactly that can be undone."""

    def __init__(self, step: str, snapshot_dir: Path):
        self.step = step
        self._dir = snapshot_dir
        self._snapshots: dict[str, Path | None] = {}
        self._created: list[Path] = []

    @property
    def touched(self) -> bool:
        """Whether the step actually changed anything durable.

        Registering a path is not a change: only created paths that now
        exist and snapshotted files whose content differs count.
        """
        for original, snap in self._snapshots.items():
            if _changed(Path(original), snap):
                return True
        return any(p.exists() or p.is_symlink() for p in self._created)

    @property
    def created(self) -> list[Path]:
        return list(self._created)

    def snapshot(self, path: Path) -> None:
        """Remember ``path``'s content as of the step's first touch."""
        key = _key(path)
        if key in self._snapshots:
            return
        if not path.exists():
            self._snapshots[key] = None
            return
        self._dir.mkdir(parents=True, exist_ok=True)
        dest = self._dir / f"{path.name}{BACKUP_SUFFIX}"
        shutil.copy2(path, dest)
        self._snapshots[key] = dest

    def record_created(self, path: Path) -> None:
        """Register a path the step is about to create.

        Paths that already exist are not the step's to remove.
        """
        if path.exists() or path in self._created:
            return
        self._created.append(path)

    def rollback(self) -> list[str]:
        """Restore snapshots and remove created paths.

        Best effort: every item is attempted; failures are collected
        and returned instead of stopping the rollback.
        """
        errors: list[str] = []

        for original, snap in self._snapshots.items():
            target = Path(original)
            try:
                if snap is None:
                    target.unlink(missing_ok=True)
                    logger.info("Rollback %s: removed %s", self.step, target)
                else:
                    shutil.copy2(snap, target)
                    logger.info("Rollback %s: restored %s", self.step, target)
            except OSError as e:
                errors.append(f"restore {target}: {e}")

        for path in reversed(self._created):
            try:
                if path.is_dir() and not path.is_symlink():
                    shutil.rmtree(path)
                elif path.exists() or path.is_symlink():
                    path.unlink()
                else:
                    continue
                logger.info("Rollback %s: removed %s", self.step, path)
            except OSError as e:
                errors.append(f"remove {path}: {e}")

        return errors


def _key(path: Path) -> str:
    return str(path.expanduser().absolute())


def _changed(target: Path, snap: Path | None) -> bool:
    if snap is None:
        return target.exists()
    if not target.exists():
        return True
    return not filecmp.cmp(snap, target, shallow=False)
