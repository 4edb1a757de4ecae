from __future__ import annotations

from typing import Optional

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_PRECONDITION = 2


class ProvisionError(RuntimeError):
    """Base class for installer errors."""


class FatalPrecondition(ProvisionError):
    """A run-wide check failed before any step ran. The whole run aborts."""

    exit_code = EXIT_PRECONDITION

    def __init__(self, message: str, *, hint: Optional[str] = None) -> None:
        super().__init__(message)
        self.hint = hint


class StepError(ProvisionError):
    """A single step failed. Caught at the step runner boundary."""

    hint = ""

    def __init__(self, resource_id: str, message: str) -> None:
        super().__init__(f"{resource_id}: {message}")
        self.resource_id = resource_id


class PreconditionMissing(StepError):
    hint = "install the missing tool and re-run"


class BackupFailed(StepError):
    hint = "check permissions and free space of the backup directory; nothing was changed"


class ActionExhausted(StepError):
    hint = "check network/apt state and re-run; completed steps will be skipped"


class VerificationFailed(StepError):
    hint = "the action reported success but the resource is still not in place; inspect the log"
