from __future__ import annotations

import grp
import logging
import pwd
from typing import Sequence

from .command import run_cmd

logger = logging.getLogger(__name__)


def user_exists(name: str) -> bool:
    try:
        pwd.getpwnam(name)
    except KeyError:
        return False
    return True


def in_group(name: str, group: str) -> bool:
    """True when the user is a listed member of group, or has it as primary group."""
    try:
        g = grp.getgrnam(group)
    except KeyError:
        return False
    if name in g.gr_mem:
        return True
    try:
        return pwd.getpwnam(name).pw_gid == g.gr_gid
    except KeyError:
        return False


def create_user(
    name: str,
    *,
    shell: str = "/bin/bash",
    groups: Sequence[str] = (),
    dry_run: bool = False,
) -> None:
    argv = ["useradd", "-m", "-s", shell]
    if groups:
        argv += ["-G", ",".join(groups)]
    run_cmd([*argv, name], dry_run=dry_run)


def set_password(name: str, password: str, *, dry_run: bool = False) -> None:
    # Fed on stdin so the password never shows up in argv or the log.
    run_cmd(["chpasswd"], input_text=f"{name}:{password}\n", dry_run=dry_run)


def add_to_group(name: str, group: str, *, dry_run: bool = False) -> None:
    run_cmd(["usermod", "-aG", group, name], dry_run=dry_run)
    logger.info("Added %s to group %s", name, group)


def chown_to(name: str, path: str, *, recursive: bool = False, dry_run: bool = False) -> None:
    argv = ["chown"]
    if recursive:
        argv.append("-R")
    run_cmd([*argv, f"{name}:{name}", path], dry_run=dry_run)
