from __future__ import annotations

from typing import List

from ..config import WorkstationConfig
from ..resources import command, file_marker, group_member, package, path, service, user
from ..verification import VerificationCheck
from .desktop import XSESSION_COMMAND
from .docker import DOCKER_PACKAGES
from .devtools import BROWSER_PACKAGES
from .shell import BLOCKS
from .user import SUDOERS_DIR, sudoers_line


def verification_checks(cfg: WorkstationConfig) -> List[VerificationCheck]:
    """Checks for the components this configuration asked for, nothing else."""

    name = cfg.username
    home = cfg.home_dir
    checks: List[VerificationCheck] = []

    if cfg.component_enabled("user"):
        checks += [
            VerificationCheck(user(name), f"user {name} exists", mandatory=True),
            VerificationCheck(
                file_marker(f"sudoers-{name}", f"{SUDOERS_DIR}/{name}", sudoers_line(name)),
                f"sudo access for {name}",
            ),
        ]
    if cfg.hostname and cfg.component_enabled("hostname"):
        checks.append(
            VerificationCheck(file_marker("hostname", "/etc/hostname", cfg.hostname), f"hostname {cfg.hostname}")
        )
    if cfg.component_enabled("python"):
        checks.append(VerificationCheck(command("python3"), "python3 available", mandatory=True))
    if cfg.component_enabled("docker"):
        checks += [
            VerificationCheck(command("docker"), "docker command available"),
            VerificationCheck(package(DOCKER_PACKAGES[0]), "docker engine installed"),
            VerificationCheck(group_member("docker", name), f"{name} in docker group"),
        ]
    if cfg.component_enabled("nodejs"):
        checks.append(VerificationCheck(path("node-default", f"{home}/.nvm/alias/default"), "node default alias (nvm)"))
    if cfg.component_enabled("desktop"):
        checks += [
            VerificationCheck(service("xrdp"), "xrdp service enabled and running"),
            VerificationCheck(file_marker("xsession", f"{home}/.xsession", XSESSION_COMMAND), "XFCE session for xrdp"),
        ]
    if cfg.component_enabled("browsers"):
        checks += [VerificationCheck(package(p), f"browser {p} installed") for p in BROWSER_PACKAGES]
    if cfg.component_enabled("shell"):
        checks += [
            VerificationCheck(file_marker(f"bashrc-{key}", f"{home}/.bashrc", marker), f".bashrc {key} block")
            for key, marker, _ in BLOCKS
        ]
    return checks
