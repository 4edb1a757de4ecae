from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List

from ..lib import users
from ..lib.command import run_cmd
from ..resources import file_marker, user
from ..step_runner import Step
from .base import Catalog

logger = logging.getLogger(__name__)

SUDOERS_DIR = "/etc/sudoers.d"


def sudoers_line(username: str) -> str:
    return f"{username} ALL=(ALL) NOPASSWD:ALL"


def install_sudoers(username: str, *, sudoers_dir: str = SUDOERS_DIR, timeout_s: float | None = None) -> None:
    """Write the drop-in through a temp file; an invalid file never lands in place."""

    dest = Path(sudoers_dir) / username
    tmp = dest.with_name(f".{username}.tmp")
    tmp.write_text(sudoers_line(username) + "\n", encoding="utf-8")
    tmp.chmod(0o440)
    try:
        run_cmd(["visudo", "-c", "-f", str(tmp)], timeout_s=timeout_s)
    except RuntimeError:
        tmp.unlink()
        raise
    os.replace(tmp, dest)
    logger.info("Passwordless sudo configured for %s", username)


def user_steps(cat: Catalog) -> List[Step]:
    name = cat.user
    cfg = cat.config

    def create() -> None:
        # A previous attempt may have created the account before chpasswd failed.
        if not users.user_exists(name):
            users.create_user(name, shell=cfg.user_shell, groups=["sudo"])
        users.set_password(name, cfg.password)
        logger.info("User %s ready", name)

    return [
        cat.step(
            name="user:account",
            resource=user(name),
            action=create,
            requires=("useradd", "chpasswd"),
            halt_on_failure=True,
        ),
        cat.step(
            name="user:sudoers",
            resource=file_marker(f"sudoers-{name}", f"{SUDOERS_DIR}/{name}", sudoers_line(name)),
            action=lambda: install_sudoers(name, timeout_s=cat.timeout_s),
            backup_paths=(f"{SUDOERS_DIR}/{name}",),
            requires=("visudo",),
        ),
    ]
