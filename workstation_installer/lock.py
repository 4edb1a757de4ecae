from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .errors import FatalPrecondition

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LockToken:
    pid: int
    path: str


def read_lock_pid(path: str) -> Optional[int]:
    try:
        txt = Path(path).read_text(encoding="utf-8").strip()
    except OSError:
        return None
    return int(txt) if txt.isdigit() else None


def acquire_lock(path: str, *, pid: Optional[int] = None) -> LockToken:
    """Create the lock file exclusively and write our PID into it.

    Raises FatalPrecondition when the file already exists. The existing file is
    left untouched: removing a stale lock is an operator decision.
    """

    pid = os.getpid() if pid is None else pid
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    try:
        fd = os.open(path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
    except FileExistsError:
        holder = read_lock_pid(path)
        raise FatalPrecondition(
            f"Another installer run is in progress (PID: {holder if holder is not None else 'unknown'})",
            hint=f"if that process is gone, remove the stale lock: rm {path}",
        )
    with os.fdopen(fd, "w") as f:
        f.write(f"{pid}\n")

    logger.debug("Lock acquired: %s (pid=%d)", path, pid)
    return LockToken(pid=pid, path=path)


def release_lock(token: LockToken) -> None:
    """Remove the lock file if it still carries our PID."""

    holder = read_lock_pid(token.path)
    if holder != token.pid:
        logger.warning("Lock %s no longer held by pid %d (found %s), leaving it", token.path, token.pid, holder)
        return
    try:
        os.unlink(token.path)
    except FileNotFoundError:
        pass
    logger.debug("Lock released: %s", token.path)
