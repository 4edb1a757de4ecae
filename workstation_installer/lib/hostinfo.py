from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Dict, Optional, Sequence

from .command import run_cmd

logger = logging.getLogger(__name__)

DEFAULT_PING_TARGETS = ("8.8.8.8", "1.1.1.1", "packages.debian.org")


def _read_text(path: Path) -> Optional[str]:
    try:
        txt = path.read_text(encoding="utf-8", errors="ignore").strip()
        return txt or None
    except OSError:
        return None


def debian_version(root: str = "/") -> Optional[str]:
    """Contents of /etc/debian_version, e.g. "12.5" or "trixie/sid"."""
    return _read_text(Path(root) / "etc/debian_version")


def debian_major(root: str = "/") -> Optional[int]:
    v = debian_version(root)
    if not v:
        return None
    head = v.split(".", 1)[0]
    return int(head) if head.isdigit() else None


def os_release(root: str = "/") -> Dict[str, str]:
    data: Dict[str, str] = {}
    txt = _read_text(Path(root) / "etc/os-release") or ""
    for line in txt.splitlines():
        if "=" not in line or line.startswith("#"):
            continue
        k, v = line.split("=", 1)
        data[k.strip()] = v.strip().strip('"')
    return data


def codename(root: str = "/") -> Optional[str]:
    return os_release(root).get("VERSION_CODENAME")


def disk_free_gb(path: str = "/") -> float:
    return shutil.disk_usage(path).free / (1024 ** 3)


def ram_mb(meminfo: str = "/proc/meminfo") -> Optional[int]:
    txt = _read_text(Path(meminfo))
    if not txt:
        return None
    for line in txt.splitlines():
        if line.startswith("MemTotal:"):
            parts = line.split()
            if len(parts) >= 2 and parts[1].isdigit():
                return int(parts[1]) // 1024
    return None


def is_online(targets: Sequence[str] = DEFAULT_PING_TARGETS) -> bool:
    """Best-effort online check: any target answering one ping is enough."""

    for target in targets:
        try:
            r = run_cmd(["ping", "-c", "1", "-W", "3", target], check=False, timeout_s=10)
        except Exception as e:
            logger.debug("ping %s failed: %s", target, e)
            continue
        if r.returncode == 0:
            return True
    return False
