from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import List

from ..lib.command import run_cmd
from ..lib.dotfiles import write_file
from ..resources import Resource, ResourceKind, file_marker
from ..step_runner import Step
from .base import Catalog

logger = logging.getLogger(__name__)

ESSENTIAL_PACKAGES = [
    "curl",
    "wget",
    "git",
    "htop",
    "vim",
    "unzip",
    "build-essential",
    "ca-certificates",
    "gnupg",
    "lsb-release",
    "apt-transport-https",
    "fzf",
    "bat",
]

_HOSTS_LOOPBACK = re.compile(r"^127\.0\.1\.1[ \t].*$", re.MULTILINE)


def current_timezone(localtime: str = "/etc/localtime") -> str:
    target = str(Path(localtime).resolve())
    marker = "/zoneinfo/"
    return target.split(marker, 1)[1] if marker in target else ""


def rewrite_hosts(text: str, hostname: str) -> str:
    """Point the 127.0.1.1 entry at hostname, adding one when missing."""
    line = f"127.0.1.1\t{hostname}"
    if _HOSTS_LOOPBACK.search(text):
        return _HOSTS_LOOPBACK.sub(line, text, count=1)
    if text and not text.endswith("\n"):
        text += "\n"
    return text + line + "\n"


def system_steps(cat: Catalog) -> List[Step]:
    tz = cat.config.timezone
    steps = cat.package_steps("system", ESSENTIAL_PACKAGES)
    steps.append(
        cat.step(
            name="system:timezone",
            resource=Resource(ResourceKind.PATH, f"timezone:{tz}", {"path": "/etc/localtime"}),
            action=lambda: run_cmd(["timedatectl", "set-timezone", tz], timeout_s=cat.timeout_s),
            probe=lambda: current_timezone() == tz,
            requires=("timedatectl",),
        )
    )
    return steps


def hostname_steps(cat: Catalog) -> List[Step]:
    hostname = cat.config.hostname
    if not hostname:
        return []

    def apply() -> None:
        write_file("/etc/hostname", hostname + "\n")
        run_cmd(["hostnamectl", "set-hostname", hostname], timeout_s=cat.timeout_s)
        hosts = Path("/etc/hosts")
        text = hosts.read_text(encoding="utf-8") if hosts.exists() else ""
        hosts.write_text(rewrite_hosts(text, hostname), encoding="utf-8")
        logger.info("Hostname set to %s", hostname)

    resource = file_marker("hostname", "/etc/hostname", hostname)
    return [
        cat.step(
            name="hostname:set",
            resource=resource,
            action=apply,
            backup_paths=("/etc/hostname", "/etc/hosts"),
            requires=("hostnamectl",),
        )
    ]
