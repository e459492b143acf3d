from __future__ import annotations

import logging
import os
import shlex
import subprocess
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CmdResult:
    argv: list[str]
    returncode: int
    stdout: str
    stderr: str


def fmt_argv(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


def run_cmd(
    argv: Sequence[str],
    *,
    check: bool = True,
    env: Mapping[str, str] | None = None,
    capture: bool = True,
) -> CmdResult:
    """Run a command with consistent logging.

    - Always logs the command (DEBUG; the run log frames steps itself).
    - capture=False lets the child write straight to our stdout/stderr,
      which is how step scripts run.
    - env is layered over the current environment.
    """

    argv_list = list(argv)
    logger.debug("CMD %s", fmt_argv(argv_list))

    pipe: Optional[int] = subprocess.PIPE if capture else None
    p = subprocess.run(
        argv_list,
        text=True,
        stdout=pipe,
        stderr=pipe,
        env=dict(os.environ, **(env or {})),
    )

    if p.stdout:
        logger.debug("STDOUT %s", p.stdout.strip())
    if p.stderr:
        logger.debug("STDERR %s", p.stderr.strip())

    if check and p.returncode != 0:
        raise RuntimeError(f"Command failed ({p.returncode}): {fmt_argv(argv_list)}\n{p.stderr or ''}")

    return CmdResult(argv=argv_list, returncode=p.returncode, stdout=p.stdout or "", stderr=p.stderr or "")
