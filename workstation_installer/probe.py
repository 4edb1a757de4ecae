from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Callable, Dict, Mapping, Optional

from .lib import dotfiles, pkg, services, users
from .resources import ProbeStatus, Resource, ResourceKind

logger = logging.getLogger(__name__)

Checker = Callable[[Resource], bool]


class StateProbe:
    """Read-only checks: is a resource already in its desired condition?

    Every ResourceKind must have a checker. ``overrides`` replaces individual
    checkers (tests, alternative backends).

    A missing file or missing command means UNSATISFIED. A probe that could not
    complete (unreadable file, command timed out) is UNKNOWN.
    """

    def __init__(
        self,
        overrides: Optional[Mapping[ResourceKind, Checker]] = None,
        *,
        timeout_s: Optional[float] = None,
    ) -> None:
        self.timeout_s = timeout_s
        self._checkers: Dict[ResourceKind, Checker] = {
            ResourceKind.PACKAGE: self._package,
            ResourceKind.FILE_MARKER: self._file_marker,
            ResourceKind.SERVICE: self._service,
            ResourceKind.USER: self._user,
            ResourceKind.REPOSITORY: self._repository,
            ResourceKind.GROUP_MEMBER: self._group_member,
            ResourceKind.COMMAND: self._command,
            ResourceKind.PATH: self._path,
        }
        self._checkers.update(overrides or {})

        missing = [k.value for k in ResourceKind if k not in self._checkers]
        if missing:
            raise ValueError(f"no probe for resource kinds: {', '.join(missing)}")

    def probe(self, resource: Resource) -> ProbeStatus:
        checker = self._checkers[resource.kind]
        try:
            ok = checker(resource)
        except FileNotFoundError as e:
            logger.debug("Probe %s: %s", resource.ref, e)
            return ProbeStatus.UNSATISFIED
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.warning("Probe %s could not complete: %s", resource.ref, e)
            return ProbeStatus.UNKNOWN

        status = ProbeStatus.SATISFIED if ok else ProbeStatus.UNSATISFIED
        logger.debug("Probe %s -> %s", resource.ref, status.value)
        return status

    def _package(self, r: Resource) -> bool:
        return pkg.is_installed(r.identifier, timeout_s=self.timeout_s)

    def _file_marker(self, r: Resource) -> bool:
        return dotfiles.has_marker(r.param("path"), r.param("marker"))

    def _service(self, r: Resource) -> bool:
        return services.is_enabled(r.identifier, timeout_s=self.timeout_s) and services.is_active(
            r.identifier, timeout_s=self.timeout_s
        )

    def _user(self, r: Resource) -> bool:
        return users.user_exists(r.identifier)

    def _repository(self, r: Resource) -> bool:
        if not Path(r.param("sources_path")).exists():
            return False
        keyring = r.param("keyring_path")
        return keyring is None or Path(keyring).exists()

    def _group_member(self, r: Resource) -> bool:
        return users.in_group(r.param("user"), r.param("group"))

    def _command(self, r: Resource) -> bool:
        if r.identifier.startswith("/"):
            return Path(r.identifier).exists()
        return shutil.which(r.identifier) is not None

    def _path(self, r: Resource) -> bool:
        return Path(r.param("path")).exists()
