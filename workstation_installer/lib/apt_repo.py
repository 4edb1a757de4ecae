from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from .command import run_cmd

logger = logging.getLogger(__name__)

KEYRINGS_DIR = "/etc/apt/keyrings"
SOURCES_DIR = "/etc/apt/sources.list.d"


def render_deb822(
    *,
    uris: str,
    suites: str,
    components: Sequence[str],
    signed_by: str | None = None,
    architectures: str | None = None,
) -> str:
    """Render a DEB822 ``.sources`` stanza.

    Example output:
      Types: deb
      URIs: https://download.docker.com/linux/debian
      Suites: bookworm
      Components: stable
      Signed-By: /etc/apt/keyrings/docker.asc
    """

    lines = [
        "Types: deb",
        f"URIs: {uris}",
        f"Suites: {suites}",
        f"Components: {' '.join(components)}",
    ]
    if architectures:
        lines.append(f"Architectures: {architectures}")
    if signed_by:
        lines.append(f"Signed-By: {signed_by}")
    return "\n".join(lines) + "\n"


def fetch_keyring(url: str, dest: str, *, timeout_s: float | None = None, dry_run: bool = False) -> None:
    if not dry_run:
        Path(dest).parent.mkdir(parents=True, exist_ok=True)
    run_cmd(["curl", "-fsSL", url, "-o", dest], timeout_s=timeout_s, dry_run=dry_run)
    if not dry_run:
        Path(dest).chmod(0o644)


def write_sources(path: str, content: str, *, dry_run: bool = False) -> None:
    if dry_run:
        logger.info("Would write %s", path)
        return
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(content, encoding="utf-8")
    logger.info("Configured apt source %s", path)


def dpkg_architecture() -> str:
    return run_cmd(["dpkg", "--print-architecture"]).stdout.strip()
