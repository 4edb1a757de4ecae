from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int
    delay_s: float

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.delay_s < 0:
            raise ValueError("delay_s must be >= 0")


DEFAULT_POLICIES: Dict[str, RetryPolicy] = {
    # apt installs: slow mirrors, dpkg lock held by unattended-upgrades.
    "package": RetryPolicy(max_attempts=3, delay_s=10.0),
    # downloads (keyrings, nvm installer).
    "network": RetryPolicy(max_attempts=3, delay_s=5.0),
    # local file edits and service toggles.
    "local": RetryPolicy(max_attempts=2, delay_s=0.0),
}


@dataclass(frozen=True)
class RetryOutcome:
    ok: bool
    attempts: int
    last_error: Optional[BaseException] = None


class RetryExecutor:
    """Run an action with a bounded number of attempts and a fixed delay.

    An action fails by raising. Failures are not classified: every failure is
    retried until the attempt budget is spent.
    """

    def __init__(self, sleep: Callable[[float], None] = time.sleep) -> None:
        self._sleep = sleep

    def execute(self, action: Callable[[], object], max_attempts: int, delay_s: float) -> RetryOutcome:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")

        last_error: Optional[BaseException] = None
        for attempt in range(1, max_attempts + 1):
            try:
                action()
                if attempt > 1:
                    logger.info("Succeeded on attempt %d/%d", attempt, max_attempts)
                return RetryOutcome(ok=True, attempts=attempt)
            except Exception as e:
                last_error = e
                logger.warning("Attempt %d/%d failed: %s", attempt, max_attempts, e)
                if attempt < max_attempts:
                    logger.info("Retrying in %ss...", delay_s)
                    self._sleep(delay_s)

        logger.error("Giving up after %d attempts", max_attempts)
        return RetryOutcome(ok=False, attempts=max_attempts, last_error=last_error)

    def execute_policy(self, action: Callable[[], object], policy: RetryPolicy) -> RetryOutcome:
        return self.execute(action, policy.max_attempts, policy.delay_s)
