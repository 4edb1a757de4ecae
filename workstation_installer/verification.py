from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence

from .logging_utils import log_success
from .probe import StateProbe
from .resources import ProbeStatus, Resource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VerificationCheck:
    resource: Resource
    description: str
    mandatory: bool = False


@dataclass
class Report:
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    passed: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def summary(self) -> str:
        if not self.errors and not self.warnings:
            return "All checks passed"
        if not self.errors:
            return f"Completed with {len(self.warnings)} warning(s)"
        return f"{len(self.errors)} error(s) and {len(self.warnings)} warning(s)"

    def as_dict(self) -> Dict[str, Any]:
        return {
            "summary": self.summary,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "passed": list(self.passed),
        }


class VerificationPass:
    """Read-only sweep over the requested resources. Never mutates, never raises
    for a missing resource: it only reports."""

    def __init__(self, probe: StateProbe) -> None:
        self.probe = probe

    def verify_all(self, checks: Sequence[VerificationCheck]) -> Report:
        report = Report()
        for check in checks:
            status = self.probe.probe(check.resource)
            if status == ProbeStatus.SATISFIED:
                logger.info("OK   %s", check.description)
                report.passed.append(check.description)
                continue

            detail = f"{check.description} ({check.resource.ref}: {status.value})"
            if check.mandatory:
                logger.error("FAIL %s", detail)
                report.errors.append(detail)
            else:
                logger.warning("WARN %s", detail)
                report.warnings.append(detail)

        if report.errors:
            logger.error("Verification: %s", report.summary)
        elif report.warnings:
            logger.warning("Verification: %s", report.summary)
        else:
            log_success(logger, "Verification: %s", report.summary)
        return report
