from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .pipeline import PipelineResult
from .verification import Report

logger = logging.getLogger(__name__)


def _detect_format(path: Path) -> str:
    ext = path.suffix.lower().lstrip(".")
    if ext in {"json", "yaml", "yml"}:
        return ext
    # Default to JSON for unknown extensions.
    return "json"


def build_report(
    *,
    pipeline: Optional[PipelineResult],
    verification: Optional[Report],
    exit_code: int,
    log_path: str,
    backup_root: Optional[str],
    dry_run: bool = False,
    error: Optional[str] = None,
) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "finished_at": datetime.now(timezone.utc).isoformat(timespec="seconds"),
        "exit_code": exit_code,
        "dry_run": dry_run,
        "log_path": log_path,
        "backup_root": backup_root,
        "error": error,
    }
    if pipeline is not None:
        data["steps"] = [r.as_dict() for r in pipeline.results]
        data["summary"] = {
            "ran": pipeline.ran_steps,
            "skipped": pipeline.skipped_steps,
            "failed": pipeline.failed_steps,
            "halted_at": pipeline.halted_at,
        }
    if verification is not None:
        data["verification"] = verification.as_dict()
    return data


def save_report(path: str, report: Dict[str, Any]) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)

    if _detect_format(p) in {"yaml", "yml"}:
        p.write_text(yaml.safe_dump(report, sort_keys=False), encoding="utf-8")
    else:
        p.write_text(json.dumps(report, indent=2, sort_keys=True) + "\n", encoding="utf-8")
    logger.info("Run report written to %s", path)


def load_report(path: str) -> Dict[str, Any]:
    p = Path(path)
    if not p.exists():
        return {}

    if _detect_format(p) in {"yaml", "yml"}:
        data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    else:
        data = json.loads(p.read_text(encoding="utf-8"))

    if not isinstance(data, dict):
        raise ValueError(f"Report file must be an object/dict, got {type(data)}")
    return data
