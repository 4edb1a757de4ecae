from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class ProgressLedger:
    """Single-slot record of the most recently attempted step.

    Each record() replaces the previous value; after a crash the file names the
    step that was in flight.
    """

    def __init__(self, path: str) -> None:
        self.path = path

    def record(self, step_name: str) -> None:
        p = Path(self.path)
        p.parent.mkdir(parents=True, exist_ok=True)
        tmp = p.with_name(p.name + ".tmp")
        tmp.write_text(step_name + "\n", encoding="utf-8")
        os.replace(tmp, p)

    def read(self) -> Optional[str]:
        try:
            value = Path(self.path).read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        return value or None

    def clear(self) -> None:
        try:
            os.unlink(self.path)
        except FileNotFoundError:
            pass
