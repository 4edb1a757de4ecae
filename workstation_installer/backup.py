from __future__ import annotations

import logging
import os
import shutil
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Set

from .errors import BackupFailed

logger = logging.getLogger(__name__)

BACKUP_PREFIX = ".workstation-installer-backups-"


@dataclass(frozen=True)
class Backup:
    source_path: str
    backup_path: str
    created_at: float


def new_backup_root(parent: str, *, now: Optional[datetime] = None, prefix: str = BACKUP_PREFIX) -> str:
    """Pick a fresh, timestamped backup root under parent.

    Earlier roots are never reused: two runs in the same second get a numeric suffix.
    """

    stamp = (now or datetime.now()).strftime("%Y%m%d-%H%M%S")
    candidate = Path(parent) / f"{prefix}{stamp}"
    n = 1
    while candidate.exists():
        candidate = Path(parent) / f"{prefix}{stamp}.{n}"
        n += 1
    return str(candidate)


def mirrored_path(root: str, source: str) -> Path:
    """/etc/hosts under root R -> R/etc/hosts."""
    return Path(root) / os.path.abspath(source).lstrip("/")


def _already_mirrored(source: str, dest: Path):
    """copytree ignore hook that skips files an earlier snapshot already holds."""

    def ignore(directory: str, names: List[str]) -> Set[str]:
        target = dest / os.path.relpath(directory, source)
        held = set()
        for n in names:
            p = target / n
            if p.is_symlink() or (p.exists() and not p.is_dir()):
                held.add(n)
        return held

    return ignore


class BackupGuard:
    """Snapshots files and directories before they are mutated.

    One backup root per run, mirroring absolute paths. The root is created on
    the first snapshot and is never deleted by the installer.
    """

    def __init__(self, backup_root: str) -> None:
        self.backup_root = backup_root
        self._backups: Dict[str, Backup] = {}

    @property
    def backups(self) -> List[Backup]:
        return list(self._backups.values())

    def snapshot(self, path: str) -> Optional[Backup]:
        """Copy path into the backup root, preserving mode, times and symlinks.

        Returns None when path does not exist (nothing to preserve). A second
        snapshot of the same path in this run returns the first Backup and
        leaves the pre-run copy untouched. Raises BackupFailed on any I/O error.
        """

        source = os.path.abspath(path)
        if source in self._backups:
            logger.debug("Already backed up %s this run", source)
            return self._backups[source]

        if not os.path.lexists(source):
            logger.debug("Nothing to back up at %s", source)
            return None

        dest = mirrored_path(self.backup_root, source)
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            os.chmod(self.backup_root, 0o700)
            if os.path.isdir(source) and not os.path.islink(source):
                shutil.copytree(
                    source,
                    dest,
                    symlinks=True,
                    copy_function=shutil.copy2,
                    ignore=_already_mirrored(source, dest),
                    dirs_exist_ok=True,
                )
            else:
                shutil.copy2(source, dest, follow_symlinks=False)
        except OSError as e:
            raise BackupFailed(source, f"cannot back up to {dest}: {e}") from e

        backup = Backup(source_path=source, backup_path=str(dest), created_at=time.time())
        self._backups[source] = backup
        logger.info("Backed up %s -> %s", source, dest)
        return backup
