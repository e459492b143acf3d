from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

from .errors import ConfigError
from .lib.env import PATHS

RULE = "─" * 56

_HANDLERS_ATTR = "_env_installer_handlers"


def configure_logging(
    log_path: Optional[str] = None,
    level: int = logging.INFO,
    also_console: bool = True,
) -> None:
    """Configure the root logger.

    Console output goes to stderr so stdout stays clean for --list.
    When log_path is given, records are also appended to the run log.
    Calling this again replaces the handlers installed by the previous call.
    """

    root = logging.getLogger()
    root.setLevel(level)

    for h in getattr(root, _HANDLERS_ATTR, []):
        root.removeHandler(h)
        h.close()

    fmt = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )

    handlers: list[logging.Handler] = []
    if also_console:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(fmt)
        handlers.append(console)

    if log_path:
        # Append mode: step processes write to the same file.
        file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
        file_handler.setFormatter(fmt)
        handlers.append(file_handler)

    for h in handlers:
        root.addHandler(h)
    setattr(root, _HANDLERS_ATTR, handlers)


@dataclass(frozen=True)
class RunLog:
    """The per-run, append-only text log shared with step processes."""

    path: str
    started_at: str

    @classmethod
    def create(cls, log_dir: str, *, now: Optional[datetime] = None) -> "RunLog":
        now = now or datetime.now().astimezone()
        run_id = now.strftime("%Y%m%dT%H%M%S%z")
        path = Path(log_dir) / f"{PATHS.log_prefix}{run_id}.log"
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text("", encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Cannot create run log in {log_dir}: {e.strerror or e}") from e
        return cls(path=str(path), started_at=now.strftime("%Y-%m-%dT%H:%M:%S%z"))

    def _append(self, text: str) -> None:
        with open(self.path, "a", encoding="utf-8") as fh:
            fh.write(text)

    def add_title(self, title: str) -> None:
        bar = "=" * 35
        self._append(f"{bar}\n{title}\n{bar}\n\n")

    def add_comments(self, text: str) -> None:
        self._append(text if text.endswith("\n") else text + "\n")

    def _block(self, lines: Iterable[str], *, leading_blank: bool = False) -> None:
        body = "".join(f"{ln}\n" for ln in (RULE, *lines, RULE))
        self._append(("\n" if leading_blank else "") + body)

    def write_header(self, *, facts, steps_dir: str, log_dir: str) -> None:
        self.add_title(f"env-installer run ({self.started_at})")
        self.add_comments(
            f"Run started at: {self.started_at}\n"
            "\n"
            f"Platform:  {facts.platform}\n"
            f"Distro:    {facts.distro}\n"
            f"Arch:      {facts.arch}\n"
            f"Device:    {facts.device_id}\n"
            f"PKG_MGR:   {facts.pkg_mgr}\n"
            "\n"
            f"Steps directory: {steps_dir}\n"
            f"Log directory:   {log_dir}\n"
            f"Log file:        {self.path}\n"
        )

    def step_started(self, name: str, rel_path: str) -> None:
        self._block([f" STEP: {name} ({rel_path})"], leading_blank=True)

    def step_finished(self, name: str) -> None:
        self._block([f" DONE: {name}"])

    def step_failed(self, name: str, reason: str) -> None:
        self._block([f" FAILED: {name} ({reason})"])
