from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, Optional

from .backup import BACKUP_PREFIX, BackupGuard, new_backup_root
from .errors import BackupFailed

logger = logging.getLogger(__name__)

PRE_RESTORE_PREFIX = BACKUP_PREFIX + "pre-restore-"


@dataclass(frozen=True)
class BackupRoot:
    path: str
    files: int
    size_bytes: int


@dataclass
class RestoreResult:
    pre_restore_root: str
    restored: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


def _iter_files(root: Path) -> Iterator[Path]:
    for dirpath, dirnames, filenames in os.walk(root):
        base = Path(dirpath)
        for name in sorted(filenames):
            yield base / name
        # Symlinked directories are restored as links, not walked.
        for name in sorted(dirnames):
            if (base / name).is_symlink():
                yield base / name


def list_backups(parent: str, prefix: str = BACKUP_PREFIX) -> List[BackupRoot]:
    roots: List[BackupRoot] = []
    p = Path(parent)
    if not p.is_dir():
        return roots

    for entry in sorted(p.glob(f"{prefix}*")):
        if not entry.is_dir():
            continue
        files = list(_iter_files(entry))
        size = sum(f.lstat().st_size for f in files)
        roots.append(BackupRoot(path=str(entry), files=len(files), size_bytes=size))
    return roots


def restore_backup(
    backup_dir: str,
    *,
    target_root: str = "/",
    backup_parent: Optional[str] = None,
) -> RestoreResult:
    """Copy every file of a backup root back to its original location.

    The current version of each file is snapshotted into a fresh pre-restore
    root first; a file whose snapshot fails is not restored. The backup being
    restored is never modified.
    """

    src_root = Path(backup_dir)
    if not src_root.is_dir():
        raise FileNotFoundError(backup_dir)

    guard = BackupGuard(new_backup_root(backup_parent or str(src_root.parent), prefix=PRE_RESTORE_PREFIX))
    result = RestoreResult(pre_restore_root=guard.backup_root)

    for src in _iter_files(src_root):
        rel = src.relative_to(src_root)
        target = Path(target_root) / rel
        try:
            guard.snapshot(str(target))
            target.parent.mkdir(parents=True, exist_ok=True)
            if target.is_symlink() or (target.exists() and not target.is_dir()):
                target.unlink()
            shutil.copy2(src, target, follow_symlinks=False)
        except (BackupFailed, OSError) as e:
            logger.error("Restore failed for %s: %s", target, e)
            result.failed.append(str(target))
            continue
        logger.info("Restored %s", target)
        result.restored.append(str(target))

    logger.info(
        "Restore finished: %d restored, %d failed (previous versions in %s)",
        len(result.restored),
        len(result.failed),
        result.pre_restore_root,
    )
    return result
