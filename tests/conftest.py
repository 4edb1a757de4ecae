"""
Shared test fixtures.

No test touches the real package manager, services or user database: probes
are backed by an in-memory set of satisfied resource refs, and actions are
plain callables.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Set

import pytest

from workstation_installer.backup import BackupGuard
from workstation_installer.ledger import ProgressLedger
from workstation_installer.probe import StateProbe
from workstation_installer.resources import ResourceKind
from workstation_installer.retry import RetryExecutor
from workstation_installer.step_runner import StepRunner


@pytest.fixture
def world() -> Set[str]:
    """Refs (e.g. "package:curl") that currently count as in place."""
    return set()


@pytest.fixture
def fake_probe(world: Set[str]) -> StateProbe:
    def check(resource) -> bool:
        return resource.ref in world

    return StateProbe({kind: check for kind in ResourceKind})


@pytest.fixture
def sleeps() -> List[float]:
    return []


@pytest.fixture
def backup_root(tmp_path: Path) -> Path:
    return tmp_path / "backups"


@pytest.fixture
def ledger(tmp_path: Path) -> ProgressLedger:
    return ProgressLedger(str(tmp_path / "progress.txt"))


@pytest.fixture
def make_runner(backup_root: Path, ledger: ProgressLedger, sleeps: List[float]):
    """Build a StepRunner around a given probe; every tool is "installed"."""

    def _make(probe: StateProbe, *, dry_run: bool = False) -> StepRunner:
        return StepRunner(
            probe=probe,
            executor=RetryExecutor(sleep=sleeps.append),
            backups=BackupGuard(str(backup_root)),
            ledger=ledger,
            dry_run=dry_run,
            which=lambda tool: f"/usr/bin/{tool}",
        )

    return _make


@pytest.fixture
def runner(make_runner, fake_probe: StateProbe) -> StepRunner:
    return make_runner(fake_probe)
