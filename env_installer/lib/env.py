from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping


@dataclass(frozen=True)
class Paths:
    steps_default: str = "steps"
    log_subdir: str = "env-installer"
    log_prefix: str = "installer-"


PATHS = Paths()


def default_log_dir(environ: Mapping[str, str]) -> str:
    """ENV_INSTALLER_LOG_DIR, then $XDG_STATE_HOME/env-installer, then ~/.local/state/env-installer."""

    explicit = environ.get("ENV_INSTALLER_LOG_DIR")
    if explicit:
        return explicit
    xdg = environ.get("XDG_STATE_HOME")
    if xdg:
        return str(Path(xdg) / PATHS.log_subdir)
    home = environ.get("HOME") or str(Path.home())
    return str(Path(home) / ".local" / "state" / PATHS.log_subdir)


def share_dir() -> Path:
    # env_installer/lib/env.py -> env_installer/share
    return Path(__file__).resolve().parents[1] / "share"


STEP_HELPERS = str(share_dir() / "common.sh")
STEP_TEMPLATE = str(share_dir() / "step-template.sh")
