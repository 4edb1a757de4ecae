from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

from ..config import WorkstationConfig
from ..lib import pkg
from ..resources import package
from ..step_runner import Step

logger = logging.getLogger(__name__)


@dataclass
class Catalog:
    """Shared state for building steps from one run configuration."""

    config: WorkstationConfig
    apt_index_fresh: bool = False

    @property
    def timeout_s(self) -> Optional[float]:
        return self.config.command_timeout_s

    @property
    def user(self) -> str:
        return self.config.username

    @property
    def home(self) -> str:
        return self.config.home_dir

    def refresh_apt_index(self, *, force: bool = False) -> None:
        """apt-get update at most once per run, unless a new source was added."""
        if self.apt_index_fresh and not force:
            return
        pkg.apt_update(timeout_s=self.timeout_s)
        self.apt_index_fresh = True

    def install_package(self, name: str) -> None:
        self.refresh_apt_index()
        try:
            pkg.apt_install([name], timeout_s=self.timeout_s)
        except (RuntimeError, subprocess.TimeoutExpired):
            # The next attempt starts from a fresh index.
            self.apt_index_fresh = False
            raise

    def step(self, **kwargs: Any) -> Step:
        """Step with the configured "local" retry policy unless one is given."""
        kwargs.setdefault("policy", self.config.retry_policy("local"))
        return Step(**kwargs)

    def package_steps(self, group: str, names: Sequence[str], *, halt_on_failure: bool = False) -> List[Step]:
        policy = self.config.retry_policy("package")
        return [
            self.step(
                name=f"{group}:{name}",
                resource=package(name),
                action=lambda name=name: self.install_package(name),
                policy=policy,
                requires=("apt-get", "dpkg-query"),
                halt_on_failure=halt_on_failure,
            )
            for name in names
        ]


def marker_line(title: str) -> str:
    return f"# {title} - Added by workstation-installer"
