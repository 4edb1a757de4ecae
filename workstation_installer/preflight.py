"""Run-wide checks performed once before any step.

Failures raise FatalPrecondition; soft findings are returned as warnings.
"""

from __future__ import annotations

import logging
import os
import re
from typing import Callable, List, Optional, Sequence

from .config import WorkstationConfig
from .errors import FatalPrecondition
from .lib import hostinfo
from .step_runner import Step

logger = logging.getLogger(__name__)

USERNAME_RE = re.compile(r"^[a-z][a-z0-9_-]*$")
HOSTNAME_RE = re.compile(r"^[a-z0-9]([a-z0-9-]{0,61}[a-z0-9])?$")
RESERVED_USERNAMES = frozenset({"root", "admin", "administrator", "system", "daemon"})
SUPPORTED_DEBIAN = (12, 13)
MIN_PASSWORD_LEN = 8


def check_root(euid: Optional[int] = None) -> None:
    euid = os.geteuid() if euid is None else euid
    if euid != 0:
        raise FatalPrecondition("must be run as root", hint="re-run with sudo")


def validate_username(name: str) -> None:
    if not name:
        raise FatalPrecondition("username is empty")
    if len(name) > 32:
        raise FatalPrecondition(f"username too long (max 32): {name}")
    if not USERNAME_RE.match(name):
        raise FatalPrecondition(
            f"invalid username: {name}",
            hint="start with a lowercase letter; use only a-z, 0-9, '_' and '-'",
        )
    if name in RESERVED_USERNAMES:
        raise FatalPrecondition(f"username is reserved: {name}")


def validate_password(password: str) -> List[str]:
    """Length is mandatory; complexity only warns."""

    if len(password) < MIN_PASSWORD_LEN:
        raise FatalPrecondition(f"password must be at least {MIN_PASSWORD_LEN} characters")

    warnings: List[str] = []
    if not re.search(r"[A-Z]", password):
        warnings.append("password has no uppercase letter")
    if not re.search(r"[a-z]", password):
        warnings.append("password has no lowercase letter")
    if not re.search(r"[0-9]", password):
        warnings.append("password has no digit")
    return warnings


def validate_hostname(hostname: str) -> None:
    if not HOSTNAME_RE.match(hostname):
        raise FatalPrecondition(
            f"invalid hostname: {hostname}",
            hint="1-63 chars of a-z, 0-9 and '-', not starting or ending with '-'",
        )


def check_debian(root: str = "/") -> List[str]:
    version = hostinfo.debian_version(root)
    if version is None:
        raise FatalPrecondition("this host is not Debian (/etc/debian_version missing)")

    major = hostinfo.debian_major(root)
    if major not in SUPPORTED_DEBIAN:
        return [f"Debian {version} is untested (supported: {', '.join(map(str, SUPPORTED_DEBIAN))})"]
    return []


def check_disk_space(min_gb: float, free_gb: Callable[[], float] = hostinfo.disk_free_gb) -> None:
    available = free_gb()
    if available < min_gb:
        raise FatalPrecondition(f"not enough free disk space: {available:.1f}GB available, {min_gb:g}GB required")


def check_memory(min_mb: int, ram: Callable[[], Optional[int]] = hostinfo.ram_mb) -> List[str]:
    total = ram()
    if total is None:
        return ["could not determine installed RAM"]
    if total < min_mb:
        return [f"low memory: {total}MB (recommended {min_mb}MB); the desktop may be slow"]
    return []


def check_step_names(steps: Sequence[Step], *, start_at: Optional[str] = None, stop_after: Optional[str] = None) -> None:
    names = {s.name for s in steps}
    for flag, wanted in (("--start-at", start_at), ("--stop-after", stop_after)):
        if wanted is not None and wanted not in names:
            raise FatalPrecondition(f"unknown step for {flag}: {wanted}", hint="step names look like docker:repository")


def check_internet(online: Callable[[], bool] = hostinfo.is_online) -> None:
    if not online():
        raise FatalPrecondition("no internet connection", hint="check DNS and the default route")


def run_preflight(
    config: WorkstationConfig,
    *,
    root: str = "/",
    free_gb: Callable[[], float] = hostinfo.disk_free_gb,
    ram: Callable[[], Optional[int]] = hostinfo.ram_mb,
    online: Callable[[], bool] = hostinfo.is_online,
) -> List[str]:
    """Validate inputs and the host. Returns warnings; raises FatalPrecondition."""

    warnings: List[str] = []
    if config.component_enabled("user"):
        validate_username(config.username)
        warnings += validate_password(config.password)
    if config.hostname and config.component_enabled("hostname"):
        validate_hostname(config.hostname)

    warnings += check_debian(root)
    check_disk_space(config.min_disk_gb, free_gb)
    warnings += check_memory(config.min_ram_mb, ram)
    if config.require_network:
        check_internet(online)

    for w in warnings:
        logger.warning("Preflight: %s", w)
    logger.info("Preflight checks passed")
    return warnings
