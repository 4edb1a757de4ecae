from __future__ import annotations

import logging
import os
import tempfile
from typing import List

from ..lib.command import as_user, run_cmd
from ..resources import path
from ..step_runner import Step
from .base import Catalog

logger = logging.getLogger(__name__)

BROWSER_PACKAGES = ["firefox-esr", "chromium"]
PYTHON_PACKAGES = ["python3", "python3-pip", "python3-venv"]

NVM_INSTALL_URL = "https://raw.githubusercontent.com/nvm-sh/nvm/{version}/install.sh"

# The version is passed as $1, never spliced into the script text.
_NVM_INSTALL_NODE = '. "$HOME/.nvm/nvm.sh" && nvm install "$1" && nvm alias default "$1"'


def browser_steps(cat: Catalog) -> List[Step]:
    return cat.package_steps("browsers", BROWSER_PACKAGES)


def python_steps(cat: Catalog) -> List[Step]:
    return cat.package_steps("python", PYTHON_PACKAGES)


def install_nvm(username: str, version: str, *, timeout_s: float | None = None) -> None:
    fd, script = tempfile.mkstemp(prefix="nvm-install-", suffix=".sh")
    os.close(fd)
    try:
        run_cmd(["curl", "-fsSL", NVM_INSTALL_URL.format(version=version), "-o", script], timeout_s=timeout_s)
        os.chmod(script, 0o644)
        run_cmd(as_user(username, ["bash", script]), timeout_s=timeout_s)
    finally:
        os.unlink(script)


def nodejs_steps(cat: Catalog) -> List[Step]:
    cfg = cat.config
    network = cfg.retry_policy("network")
    return [
        cat.step(
            name="nodejs:nvm",
            resource=path("nvm", f"{cat.home}/.nvm/nvm.sh"),
            action=lambda: install_nvm(cat.user, cfg.nvm_version, timeout_s=cat.timeout_s),
            # install.sh appends its NVM_DIR loader to .bashrc.
            backup_paths=(f"{cat.home}/.bashrc",),
            policy=network,
            requires=("curl", "sudo"),
        ),
        cat.step(
            name="nodejs:node",
            resource=path("node-default", f"{cat.home}/.nvm/alias/default"),
            action=lambda: run_cmd(
                as_user(cat.user, ["bash", "-c", _NVM_INSTALL_NODE, "nvm-install-node", cfg.node_version]),
                timeout_s=cat.timeout_s,
            ),
            policy=network,
            requires=("sudo",),
        ),
    ]
