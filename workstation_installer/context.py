from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

from .backup import BackupGuard
from .ledger import ProgressLedger
from .lock import LockToken, acquire_lock, release_lock

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunContext:
    lock: LockToken
    ledger: ProgressLedger
    backups: BackupGuard
    log_path: str


@contextmanager
def open_run_context(
    *,
    lock_file: str,
    progress_file: str,
    backup_root: str,
    log_path: str = "",
) -> Iterator[RunContext]:
    """Hold the run lock for the duration of the block.

    On exit (normal or not) the progress file and the lock are removed. If the
    lock cannot be taken, FatalPrecondition propagates before anything is
    created, so another run's lock and progress files are left as they are.
    """

    token = acquire_lock(lock_file)
    ledger = ProgressLedger(progress_file)
    ctx = RunContext(lock=token, ledger=ledger, backups=BackupGuard(backup_root), log_path=log_path)
    try:
        yield ctx
    except BaseException:
        logger.error("Run aborted during step: %s", ledger.read() or "(none)")
        logger.error("Log file: %s", log_path or "(console only)")
        logger.error("Backups: %s", backup_root)
        raise
    finally:
        ledger.clear()
        release_lock(token)
