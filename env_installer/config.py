from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .errors import ConfigError
from .lib.env import PATHS, default_log_dir

CONFIG_ENV_VAR = "ENV_INSTALLER_CONFIG"


@dataclass(frozen=True)
class InstallerConfig:
    """Settings from the optional YAML file layered over environment defaults.

    CLI flags are applied on top by the caller.
    """

    raw: Dict[str, Any]
    environ: Mapping[str, str]

    @property
    def steps_dir(self) -> str:
        return str(self.raw.get("steps_dir") or PATHS.steps_default)

    @property
    def log_dir(self) -> str:
        return str(self.raw.get("log_dir") or default_log_dir(self.environ))

    @property
    def device_id(self) -> Optional[str]:
        value = self.raw.get("device_id") or self.environ.get("ENV_INSTALLER_DEVICE_ID")
        return str(value) if value else None

    @property
    def debug(self) -> bool:
        return bool(self.raw.get("debug", False))


def load_config(path: Optional[str] = None, *, environ: Optional[Mapping[str, str]] = None) -> InstallerConfig:
    env = dict(os.environ) if environ is None else dict(environ)
    path = path or env.get(CONFIG_ENV_VAR)
    if not path:
        return InstallerConfig(raw={}, environ=env)

    p = Path(path)
    if not p.exists():
        raise ConfigError(f"Config file not found: {path}")
    if p.suffix.lower() not in {".yaml", ".yml"}:
        raise ConfigError(f"Config file must be YAML: {path}")

    try:
        text = p.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e.strerror or e}") from e
    try:
        raw = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"Config file must contain a mapping/object: {path}")

    return InstallerConfig(raw=raw, environ=env)
