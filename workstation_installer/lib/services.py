from __future__ import annotations

import logging

from .command import run_cmd

logger = logging.getLogger(__name__)


def is_enabled(unit: str, *, timeout_s: float | None = None) -> bool:
    r = run_cmd(["systemctl", "is-enabled", "--quiet", unit], check=False, timeout_s=timeout_s)
    return r.returncode == 0


def is_active(unit: str, *, timeout_s: float | None = None) -> bool:
    r = run_cmd(["systemctl", "is-active", "--quiet", unit], check=False, timeout_s=timeout_s)
    return r.returncode == 0


def enable_now(unit: str, *, timeout_s: float | None = None, dry_run: bool = False) -> None:
    run_cmd(["systemctl", "enable", "--now", unit], timeout_s=timeout_s, dry_run=dry_run)
    logger.info("Service %s enabled and started", unit)
