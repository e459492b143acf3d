from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Dict, List, Mapping, Optional, Protocol, Sequence

from .errors import InstallerError, StepFailed, StepNotFound
from .lib.command import run_cmd
from .lib.env import STEP_HELPERS
from .lib.hwdetect import HostFacts
from .logging_utils import RunLog
from .registry import ResolvedStep

logger = logging.getLogger(__name__)

SUCCESS = 0
COMMAND_NOT_FOUND = 127


@dataclass(frozen=True)
class RunContext:
    """Values handed to every step process. Copied per step, never mutated."""

    facts: HostFacts
    logfile: str
    steps_dir: str
    debug: bool = False
    step_name: str = ""
    helpers: str = STEP_HELPERS

    def for_step(self, name: str) -> "RunContext":
        return replace(self, step_name=name)

    def as_env(self) -> Dict[str, str]:
        return {
            "STEP_NAME": self.step_name,
            "PLATFORM": self.facts.platform,
            "DISTRO": self.facts.distro,
            "ARCH": self.facts.arch,
            "DEVICE_ID": self.facts.device_id,
            "PKG_MGR": self.facts.pkg_mgr,
            "SUDO": self.facts.sudo,
            "DEBUG": "1" if self.debug else "0",
            "LOGFILE": self.logfile,
            "STEPS_DIR": self.steps_dir,
            "INSTALLER_LIB": self.helpers,
        }


class Launcher(Protocol):
    def __call__(self, argv: Sequence[str], env: Mapping[str, str]) -> int:
        ...


def launch_process(argv: Sequence[str], env: Mapping[str, str]) -> int:
    """Run one step to completion with inherited stdio; no timeout."""

    return run_cmd(argv, check=False, env=env, capture=False).returncode


@dataclass(frozen=True)
class RunResult:
    ran_steps: List[str] = field(default_factory=list)
    error: Optional[InstallerError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_failure(self) -> None:
        if self.error is not None:
            raise self.error


def run_steps(
    *,
    plan: Sequence[str],
    registry: Mapping[str, ResolvedStep],
    context: RunContext,
    run_log: Optional[RunLog] = None,
    launcher: Launcher = launch_process,
) -> RunResult:
    """Run planned steps one at a time, stopping at the first failure.

    Earlier steps stay applied; there is no rollback and no resume.
    """

    ran: List[str] = []

    for name in plan:
        step = registry.get(name)
        if step is None:
            return RunResult(ran_steps=ran, error=StepNotFound(name))

        step_ctx = context.for_step(name)
        if run_log is not None:
            run_log.step_started(name, step.rel_path)
        logger.info("Running step %s (%s)", name, step.rel_path)
        logger.debug("Step %s resolved from %s tier (%s)", name, step.tier.name.lower(), step.scope_dir)

        try:
            status = launcher(step.argv(context.steps_dir), step_ctx.as_env())
        except OSError as e:
            logger.error("Could not start step %s: %s", name, e)
            status = COMMAND_NOT_FOUND
        ran.append(name)

        if status != SUCCESS:
            err = StepFailed(name, status, step.rel_path)
            if run_log is not None:
                run_log.step_failed(name, f"exit status {status}")
            return RunResult(ran_steps=ran, error=err)

        if run_log is not None:
            run_log.step_finished(name)

    return RunResult(ran_steps=ran)
