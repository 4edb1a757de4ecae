from __future__ import annotations

import logging
import shutil
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Union

from .backup import BackupGuard
from .errors import ActionExhausted, PreconditionMissing, StepError, VerificationFailed
from .ledger import ProgressLedger
from .logging_utils import log_success
from .probe import StateProbe
from .resources import ActionTaken, ProbeStatus, Resource, StepResult
from .retry import DEFAULT_POLICIES, RetryExecutor, RetryPolicy

logger = logging.getLogger(__name__)

ProbeFn = Callable[[], Union[ProbeStatus, bool]]


@dataclass(frozen=True)
class Step:
    """One idempotent unit of work.

    probe/verify default to the StateProbe check of ``resource``; the action
    fails by raising and must be safe to run again after a partial failure.
    """

    name: str
    resource: Resource
    action: Callable[[], object]
    probe: Optional[ProbeFn] = None
    verify: Optional[ProbeFn] = None
    backup_paths: Sequence[str] = ()
    policy: RetryPolicy = DEFAULT_POLICIES["local"]
    requires: Sequence[str] = ()
    halt_on_failure: bool = False


def _as_status(value: Union[ProbeStatus, bool]) -> ProbeStatus:
    if isinstance(value, ProbeStatus):
        return value
    return ProbeStatus.SATISFIED if value else ProbeStatus.UNSATISFIED


class StepRunner:
    def __init__(
        self,
        *,
        probe: StateProbe,
        executor: RetryExecutor,
        backups: BackupGuard,
        ledger: ProgressLedger,
        dry_run: bool = False,
        which: Callable[[str], Optional[str]] = shutil.which,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.probe = probe
        self.executor = executor
        self.backups = backups
        self.ledger = ledger
        self.dry_run = dry_run
        self._which = which
        self._clock = clock
        self.results: List[StepResult] = []

    def _check(self, step: Step, fn: Optional[ProbeFn]) -> ProbeStatus:
        if fn is not None:
            return _as_status(fn())
        return self.probe.probe(step.resource)

    def run(self, step: Step) -> StepResult:
        """probe -> (skip | backup -> act with retries -> verify), recording progress."""

        result = StepResult(name=step.name, resource=step.resource)
        self.results.append(result)
        started = self._clock()
        self.ledger.record(step.name)

        try:
            status = self._check(step, step.probe)
            if status == ProbeStatus.SATISFIED:
                logger.info("[%s] %s already in place, skipping", step.name, step.resource.ref)
                result.action_taken = ActionTaken.SKIPPED
                return result
            if status == ProbeStatus.UNKNOWN:
                logger.warning("[%s] state of %s unknown, treating as not in place", step.name, step.resource.ref)

            if self.dry_run:
                logger.info("[%s] would configure %s", step.name, step.resource.ref)
                result.action_taken = ActionTaken.PLANNED
                return result

            missing = [tool for tool in step.requires if self._which(tool) is None]
            if missing:
                raise PreconditionMissing(step.resource.ref, f"required tools not found: {', '.join(missing)}")

            for path in step.backup_paths:
                self.backups.snapshot(path)

            logger.info("[%s] configuring %s", step.name, step.resource.ref)
            outcome = self.executor.execute_policy(step.action, step.policy)
            result.attempts = outcome.attempts
            if not outcome.ok:
                raise ActionExhausted(
                    step.resource.ref,
                    f"gave up after {outcome.attempts} attempts: {outcome.last_error}",
                )

            if self._check(step, step.verify or step.probe) != ProbeStatus.SATISFIED:
                raise VerificationFailed(step.resource.ref, "still not in place after the action succeeded")

            result.action_taken = ActionTaken.EXECUTED
            log_success(logger, "[%s] %s configured", step.name, step.resource.ref)
        except StepError as e:
            result.action_taken = ActionTaken.FAILED
            result.error = str(e)
            result.error_type = type(e).__name__
            logger.error("[%s] %s: %s", step.name, type(e).__name__, e)
            if e.hint:
                logger.error("[%s] hint: %s", step.name, e.hint)
        finally:
            result.duration = self._clock() - started

        return result
