from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class ResourceKind(str, Enum):
    PACKAGE = "package"
    FILE_MARKER = "file-marker"
    SERVICE = "service"
    USER = "user"
    REPOSITORY = "repository"
    GROUP_MEMBER = "group-member"
    COMMAND = "command"
    PATH = "path"


class ProbeStatus(str, Enum):
    SATISFIED = "satisfied"
    UNSATISFIED = "unsatisfied"
    UNKNOWN = "unknown"


class ActionTaken(str, Enum):
    SKIPPED = "skipped"
    EXECUTED = "executed"
    FAILED = "failed"
    PLANNED = "planned"


@dataclass(frozen=True)
class Resource:
    """An abstract target whose state the installer manages.

    ``params`` carries the kind-specific desired state, e.g. for a file marker
    ``{"path": "/home/dev/.bashrc", "marker": "# Aliases - workstation-installer"}``.
    """

    kind: ResourceKind
    identifier: str
    params: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def ref(self) -> str:
        return f"{self.kind.value}:{self.identifier}"

    def param(self, key: str, default: Any = None) -> Any:
        return self.params.get(key, default)


def package(name: str) -> Resource:
    return Resource(ResourceKind.PACKAGE, name)


def file_marker(identifier: str, path: str, marker: str) -> Resource:
    return Resource(ResourceKind.FILE_MARKER, identifier, {"path": path, "marker": marker})


def service(unit: str) -> Resource:
    return Resource(ResourceKind.SERVICE, unit)


def user(name: str) -> Resource:
    return Resource(ResourceKind.USER, name)


def repository(identifier: str, sources_path: str, keyring_path: Optional[str] = None) -> Resource:
    return Resource(
        ResourceKind.REPOSITORY,
        identifier,
        {"sources_path": sources_path, "keyring_path": keyring_path},
    )


def group_member(group: str, username: str) -> Resource:
    return Resource(ResourceKind.GROUP_MEMBER, f"{group}:{username}", {"group": group, "user": username})


def command(name: str) -> Resource:
    return Resource(ResourceKind.COMMAND, name)


def path(identifier: str, p: str) -> Resource:
    return Resource(ResourceKind.PATH, identifier, {"path": p})


@dataclass
class StepResult:
    """Outcome of one step. Created at step start, finalized at step end."""

    name: str
    resource: Resource
    action_taken: Optional[ActionTaken] = None
    attempts: int = 0
    duration: float = 0.0
    error: Optional[str] = None
    error_type: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.action_taken != ActionTaken.FAILED

    def as_dict(self) -> Dict[str, Any]:
        return {
            "step": self.name,
            "resource": self.resource.ref,
            "action_taken": self.action_taken.value if self.action_taken else None,
            "attempts": self.attempts,
            "duration_s": round(self.duration, 3),
            "error": self.error,
            "error_type": self.error_type,
        }
