from __future__ import annotations

import argparse
import logging
import os
from typing import Dict, List, Optional, Sequence, Tuple

from .config import load_config
from .errors import InstallerError, UsageError
from .lib.hwdetect import HostFacts, detect_host
from .logging_utils import RunLog, configure_logging
from .planner import plan_all, plan_selected
from .registry import ResolvedStep, build_registry
from .runner import RunContext, RunResult, run_steps
from .scopes import LocalStepTree, Scope, enumerate_scopes

logger = logging.getLogger(__name__)


EPILOG = """\
Defaults:
  If no flags are provided, ALL steps are run.

Examples:
  env-installer                          # run all steps
  env-installer --list                   # list available steps
  env-installer --steps env-info docker  # run only these, in this order

Notes:
  Step names come from filenames like 0010-env-info.sh -> "env-info".
  Scoped directories override generic steps with the same name:
    steps/ < steps/PLATFORM < steps/PLATFORM/DISTRO
           < steps/PLATFORM/arch/ARCH < steps/devices/DEVICE_ID
"""


class InstallerParser(argparse.ArgumentParser):
    """argparse exits with status 2 on bad input; the installer uses 1."""

    def error(self, message: str) -> None:  # type: ignore[override]
        if message.startswith("unrecognized arguments") and "--steps" in self._option_string_actions:
            message += " (use --steps to specify step names)"
        raise UsageError(message)


def build_parser() -> argparse.ArgumentParser:
    p = InstallerParser(
        prog="env-installer",
        description="Run provisioning steps for this machine.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        allow_abbrev=False,
    )
    mode = p.add_mutually_exclusive_group()
    mode.add_argument("--list", action="store_true", help="List available steps and exit")
    mode.add_argument(
        "--steps",
        action="extend",
        nargs="+",
        metavar="STEP",
        help="Run only the listed steps, in the order provided (repeatable)",
    )
    p.add_argument("--debug", action="store_true", help="Emit additional diagnostics on stderr")
    p.add_argument("--steps-dir", default=None, help="Steps root directory (default: ./steps)")
    p.add_argument("--log-dir", default=None, help="Directory for the per-run log file")
    p.add_argument("--config", default=None, help="Optional YAML config file")
    return p


def discover(facts: HostFacts, steps_dir: str) -> Tuple[List[Scope], Dict[str, ResolvedStep]]:
    tree = LocalStepTree(root=steps_dir)
    scopes = enumerate_scopes(facts, tree)
    return scopes, build_registry(tree, scopes)


def format_listing(registry: Dict[str, ResolvedStep]) -> List[str]:
    return [f"{name}\t{registry[name].rel_path}" for name in plan_all(registry)]


def run(
    *,
    facts: HostFacts,
    steps_dir: str,
    log_dir: str,
    selected: Optional[Sequence[str]] = None,
    debug: bool = False,
) -> RunResult:
    """Resolve steps for this host, open the run log and execute the plan."""

    _, registry = discover(facts, steps_dir)
    plan = plan_all(registry) if selected is None else plan_selected(registry, selected)

    level = logging.DEBUG if debug else logging.INFO
    run_log = RunLog.create(log_dir)
    configure_logging(log_path=run_log.path, level=level)
    run_log.write_header(facts=facts, steps_dir=steps_dir, log_dir=log_dir)
    logger.info(
        "env-installer: platform=%s distro=%s arch=%s device=%s pkg_mgr=%s",
        facts.platform,
        facts.distro,
        facts.arch,
        facts.device_id,
        facts.pkg_mgr,
    )
    logger.info("Logging to: %s", run_log.path)

    context = RunContext(facts=facts, logfile=run_log.path, steps_dir=steps_dir, debug=debug)
    result = run_steps(plan=plan, registry=registry, context=context, run_log=run_log)
    if result.ok:
        logger.info("All requested steps completed.")
    return result


def main(argv: Optional[list[str]] = None) -> int:
    configure_logging()
    try:
        args = build_parser().parse_args(argv)
        cfg = load_config(args.config)
        debug = bool(args.debug or cfg.debug)
        if debug:
            configure_logging(level=logging.DEBUG)

        facts = detect_host(device_override=cfg.device_id)
        steps_dir = os.path.abspath(args.steps_dir or cfg.steps_dir)

        if args.list:
            _, registry = discover(facts, steps_dir)
            for line in format_listing(registry):
                print(line)
            return 0

        result = run(
            facts=facts,
            steps_dir=steps_dir,
            log_dir=args.log_dir or cfg.log_dir,
            selected=args.steps,
            debug=debug,
        )
        result.raise_for_failure()
        return 0
    except InstallerError as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
