from __future__ import annotations

import copy
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from .retry import DEFAULT_POLICIES, RetryPolicy

logger = logging.getLogger(__name__)

COMPONENTS = (
    "system",
    "hostname",
    "user",
    "docker",
    "desktop",
    "browsers",
    "python",
    "nodejs",
    "shell",
)

DEFAULT_PATHS = {
    "lock_file": "/var/lock/workstation-installer.lock",
    "progress_file": "/tmp/workstation-installer-progress.txt",
    "backup_parent": "/root",
    "log_file": "/var/log/workstation-installer.log",
    "report_file": "/var/lib/workstation-installer/last-run.json",
}

# Environment variable -> (section, key). section None means top level.
_ENV_OVERRIDES = {
    "DEV_USER": ("user", "name"),
    "DEV_USER_PASSWORD": ("user", "password"),
    "CUSTOM_HOSTNAME": (None, "hostname"),
    "TIMEZONE": (None, "timezone"),
    "NODE_VERSION": ("nodejs", "node_version"),
    "NVM_VERSION": ("nodejs", "nvm_version"),
    "DRY_RUN_MODE": (None, "dry_run"),
    "LOG_FILE": ("paths", "log_file"),
}

_TRUE = {"1", "true", "yes", "y", "on"}
_FALSE = {"0", "false", "no", "n", "off"}


def parse_bool(value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    s = str(value).strip().lower()
    if s in _TRUE:
        return True
    if s in _FALSE:
        return False
    raise ValueError(f"not a boolean: {value!r}")


@dataclass(frozen=True)
class WorkstationConfig:
    raw: Dict[str, Any]

    def _section(self, name: str) -> Dict[str, Any]:
        section = self.raw.get(name) or {}
        if not isinstance(section, dict):
            raise ValueError(f"{name} must be a mapping")
        return section

    @property
    def username(self) -> str:
        return str(self._section("user").get("name") or "developer")

    @property
    def password(self) -> str:
        return str(self._section("user").get("password") or "DevPass123!")

    @property
    def user_shell(self) -> str:
        return str(self._section("user").get("shell") or "/bin/bash")

    @property
    def home_dir(self) -> str:
        return str(self._section("user").get("home") or f"/home/{self.username}")

    @property
    def hostname(self) -> Optional[str]:
        value = self.raw.get("hostname")
        return str(value) if value else None

    @property
    def timezone(self) -> str:
        return str(self.raw.get("timezone") or "Asia/Jakarta")

    @property
    def dry_run(self) -> bool:
        return parse_bool(self.raw.get("dry_run"), False)

    def component_enabled(self, name: str) -> bool:
        if name not in COMPONENTS:
            raise KeyError(f"unknown component: {name}")
        return parse_bool(self._section("components").get(name), True)

    @property
    def enabled_components(self) -> List[str]:
        return [c for c in COMPONENTS if self.component_enabled(c)]

    @property
    def nvm_version(self) -> str:
        return str(self._section("nodejs").get("nvm_version") or "v0.39.7")

    @property
    def node_version(self) -> str:
        return str(self._section("nodejs").get("node_version") or "lts/*")

    def path(self, key: str) -> str:
        return str(self._section("paths").get(key) or DEFAULT_PATHS[key])

    @property
    def lock_file(self) -> str:
        return self.path("lock_file")

    @property
    def progress_file(self) -> str:
        return self.path("progress_file")

    @property
    def backup_parent(self) -> str:
        return self.path("backup_parent")

    @property
    def log_file(self) -> str:
        return self.path("log_file")

    @property
    def report_file(self) -> str:
        return self.path("report_file")

    def retry_policy(self, name: str) -> RetryPolicy:
        base = DEFAULT_POLICIES[name]
        override = self._section("retry").get(name) or {}
        if not isinstance(override, dict):
            raise ValueError(f"retry.{name} must be a mapping")
        return RetryPolicy(
            max_attempts=int(override.get("max_attempts", base.max_attempts)),
            delay_s=float(override.get("delay_s", base.delay_s)),
        )

    @property
    def command_timeout_s(self) -> Optional[float]:
        value = self.raw.get("command_timeout_s")
        if not value:
            return None
        timeout = float(value)
        if timeout <= 0:
            raise ValueError("command_timeout_s must be > 0")
        return timeout

    @property
    def min_disk_gb(self) -> float:
        return float(self._section("preflight").get("min_disk_gb", 10))

    @property
    def min_ram_mb(self) -> int:
        return int(self._section("preflight").get("min_ram_mb", 1024))

    @property
    def require_network(self) -> bool:
        return parse_bool(self._section("preflight").get("require_network"), True)


def apply_env_overrides(raw: Dict[str, Any], env: Mapping[str, str]) -> Dict[str, Any]:
    """Return a copy of raw with environment variables layered on top."""

    merged = copy.deepcopy(raw)
    for var, (section, key) in _ENV_OVERRIDES.items():
        value = env.get(var)
        if value is None or value == "":
            continue
        if section is not None and not isinstance(merged.get(section), dict):
            merged[section] = {}
        target = merged if section is None else merged[section]
        target[key] = value
        if var != "DEV_USER_PASSWORD":
            logger.debug("Config override from %s=%s", var, value)

    for component in COMPONENTS:
        value = env.get(f"INSTALL_{component.upper()}")
        if value:
            if not isinstance(merged.get("components"), dict):
                merged["components"] = {}
            merged["components"][component] = parse_bool(value)

    return merged


def validate_config(cfg: WorkstationConfig) -> None:
    """Parse every typed field once, so a bad value fails before the run starts."""

    try:
        cfg.home_dir
        cfg.log_file
        cfg.node_version
        cfg.dry_run
        cfg.enabled_components
        for name in DEFAULT_POLICIES:
            cfg.retry_policy(name)
        cfg.command_timeout_s
        cfg.min_disk_gb
        cfg.min_ram_mb
        cfg.require_network
    except (TypeError, ValueError) as e:
        raise ValueError(str(e)) from e


def load_config(path: Optional[str] = None, env: Optional[Mapping[str, str]] = None) -> WorkstationConfig:
    """Load the YAML run configuration; without a path only defaults and env apply."""

    raw: Dict[str, Any] = {}
    if path:
        p = Path(path)
        if not p.exists():
            raise FileNotFoundError(path)

        if p.suffix.lower() not in {".yaml", ".yml"}:
            raise ValueError("workstation config must be YAML")

        try:
            raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"{path} is not valid YAML: {e}") from e
        if not isinstance(raw, dict):
            raise ValueError(f"{path} must contain a mapping/object")

    raw = apply_env_overrides(raw, os.environ if env is None else env)
    cfg = WorkstationConfig(raw=raw)
    validate_config(cfg)
    return cfg
