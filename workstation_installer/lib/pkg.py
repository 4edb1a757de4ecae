from __future__ import annotations

import logging
from typing import Optional, Sequence

from .command import run_cmd

logger = logging.getLogger(__name__)

INSTALLED_STATUS = "install ok installed"

_APT_ENV = {"DEBIAN_FRONTEND": "noninteractive"}


def dpkg_status(package: str, *, timeout_s: float | None = None) -> Optional[str]:
    """Return the dpkg status string of a package, or None when dpkg does not know it."""
    r = run_cmd(["dpkg-query", "-W", "-f=${Status}", package], check=False, timeout_s=timeout_s)
    if r.returncode != 0:
        return None
    return r.stdout.strip()


def is_installed(package: str, *, timeout_s: float | None = None) -> bool:
    # "deinstall ok config-files" and half-installed states do not count.
    return dpkg_status(package, timeout_s=timeout_s) == INSTALLED_STATUS


def apt_update(*, timeout_s: float | None = None, dry_run: bool = False) -> None:
    run_cmd(["apt-get", "update"], env=_APT_ENV, timeout_s=timeout_s, dry_run=dry_run)


def apt_install(
    packages: Sequence[str],
    *,
    with_recommends: bool = True,
    timeout_s: float | None = None,
    dry_run: bool = False,
) -> None:
    if not packages:
        return
    argv = [
        "apt-get",
        "install",
        "-y",
    ]
    if not with_recommends:
        argv.append("--no-install-recommends")
    run_cmd([*argv, *packages], env=_APT_ENV, timeout_s=timeout_s, dry_run=dry_run)
