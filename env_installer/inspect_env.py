"""Read-only inspector: print what env-installer would detect on this host.

It installs nothing, writes no logs and needs no root. Detection goes
through the same classifier as the installer so results match.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from .config import load_config
from .errors import InstallerError
from .lib.env import STEP_HELPERS, STEP_TEMPLATE
from .lib.hwdetect import detect_host
from .logging_utils import RULE, configure_logging
from .main import InstallerParser
from .scopes import LocalStepTree, candidate_scopes

logger = logging.getLogger(__name__)

OVERRIDE_VARS = (
    "ENV_INSTALLER_CONFIG",
    "ENV_INSTALLER_LOG_DIR",
    "ENV_INSTALLER_DEVICE_ID",
    "XDG_STATE_HOME",
    "SHELL",
    "HOME",
)


def _h1(title: str) -> None:
    print(RULE)
    print(f" {title}")
    print(RULE)


def _kv(key: str, value: Optional[str]) -> None:
    print(f"{key + ':':<28} {value or '<unset>'}")


def main(argv: Optional[list[str]] = None) -> int:
    p = InstallerParser(prog="env-installer-inspect", allow_abbrev=False)
    p.add_argument("--steps-dir", default=None, help="Steps root directory (default: ./steps)")
    p.add_argument("--config", default=None, help="Optional YAML config file")

    configure_logging()
    try:
        args = p.parse_args(argv)
        cfg = load_config(args.config)
        facts = detect_host(device_override=cfg.device_id)
    except InstallerError as e:
        logger.error("%s", e)
        return 1

    steps_dir = os.path.abspath(args.steps_dir or cfg.steps_dir)
    tree = LocalStepTree(root=steps_dir)

    _h1("env-installer inspector")

    _h1("ENV overrides")
    for var in OVERRIDE_VARS:
        _kv(var, os.environ.get(var))

    _h1("Detected values")
    _kv("PLATFORM", facts.platform)
    _kv("ARCH", facts.arch)
    _kv("DISTRO", facts.distro)
    _kv("PKG_MGR", facts.pkg_mgr)
    _kv("DEVICE_ID", facts.device_id)
    _kv("SUDO", facts.sudo)

    _h1("Derived paths")
    _kv("Steps directory", steps_dir)
    _kv("Effective log dir", cfg.log_dir)
    _kv("Step helpers", STEP_HELPERS)
    _kv("Step template", STEP_TEMPLATE)
    for scope in candidate_scopes(facts):
        state = "present" if tree.is_dir(scope.rel_dir) else "absent"
        _kv(f"Scope {scope.tier.name.lower()}", f"{scope.label} ({state})")

    print()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
