"""Marker-guarded text blocks in config files.

A block is "configured" when its marker line is present in the file. There is
no semantic diffing: an edited block with the marker intact counts as present.
"""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def has_marker(path: str, marker: str) -> bool:
    """Raises PermissionError when the file exists but cannot be read."""
    p = Path(path)
    if not p.exists():
        return False
    text = p.read_text(encoding="utf-8", errors="replace")
    return any(line.strip() == marker.strip() for line in text.splitlines())


def append_block(path: str, marker: str, body: str) -> bool:
    """Append ``marker`` followed by ``body`` unless the marker is already present.

    Returns True when the file was changed.
    """

    if has_marker(path, marker):
        logger.info("Marker already present in %s, leaving it alone", path)
        return False

    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    existing = p.read_text(encoding="utf-8") if p.exists() else ""

    chunks = [existing]
    if existing and not existing.endswith("\n"):
        chunks.append("\n")
    if existing:
        chunks.append("\n")
    chunks.append(marker.rstrip("\n") + "\n")
    chunks.append(body.rstrip("\n") + "\n")

    with p.open("w", encoding="utf-8") as f:
        f.write("".join(chunks))
    logger.info("Appended block %r to %s", marker, path)
    return True


def write_file(path: str, content: str, *, mode: int | None = None) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(content, encoding="utf-8")
    if mode is not None:
        p.chmod(mode)
