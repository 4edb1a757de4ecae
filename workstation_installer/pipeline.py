from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .resources import ActionTaken, StepResult
from .step_runner import Step, StepRunner

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    results: List[StepResult] = field(default_factory=list)
    ran_steps: List[str] = field(default_factory=list)
    skipped_steps: List[str] = field(default_factory=list)
    failed_steps: List[str] = field(default_factory=list)
    halted_at: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.halted_at is None


def run_pipeline(
    *,
    runner: StepRunner,
    steps: Sequence[Step],
    start_at: Optional[str] = None,
    stop_after: Optional[str] = None,
) -> PipelineResult:
    """Run steps in caller order. A failed step is recorded and the run goes
    on, unless the step is marked halt_on_failure."""

    names = [s.name for s in steps]
    for wanted in (start_at, stop_after):
        if wanted is not None and wanted not in names:
            raise ValueError(f"unknown step: {wanted}")

    out = PipelineResult()
    started = start_at is None

    for step in steps:
        if not started:
            if step.name == start_at:
                started = True
            else:
                continue

        res = runner.run(step)
        out.results.append(res)
        if res.action_taken == ActionTaken.SKIPPED:
            out.skipped_steps.append(step.name)
        elif res.action_taken == ActionTaken.FAILED:
            out.failed_steps.append(step.name)
            if step.halt_on_failure:
                logger.error("Step %s is required; stopping the run", step.name)
                out.halted_at = step.name
                break
        else:
            out.ran_steps.append(step.name)

        if stop_after is not None and step.name == stop_after:
            logger.info("Stopping after %s", stop_after)
            break

    return out
