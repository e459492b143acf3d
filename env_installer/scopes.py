"""Scope tiers and the directories they map to.

Search order (least specific first, later entries override earlier ones):

    steps/
    steps/<platform>/
    steps/<platform>/<distro>/
    steps/<platform>/arch/<arch>/
    steps/devices/<device-id>/
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Callable, List, Optional, Protocol, Sequence

from .lib.hwdetect import HostFacts

logger = logging.getLogger(__name__)


class ScopeTier(enum.IntEnum):
    GENERIC = 0
    PLATFORM = 1
    DISTRO = 2
    ARCH = 3
    DEVICE = 4


class StepTree(Protocol):
    """Read-only view of the steps root; paths are relative to it."""

    root: str

    def is_dir(self, rel: PurePosixPath) -> bool:
        ...

    def list_files(self, rel: PurePosixPath) -> List[str]:
        ...


@dataclass(frozen=True)
class LocalStepTree:
    root: str

    def _abs(self, rel: PurePosixPath) -> Path:
        return Path(self.root).joinpath(*rel.parts)

    def is_dir(self, rel: PurePosixPath) -> bool:
        return self._abs(rel).is_dir()

    def list_files(self, rel: PurePosixPath) -> List[str]:
        # A directory removed after enumeration reads as empty.
        try:
            return sorted(p.name for p in self._abs(rel).iterdir() if p.is_file())
        except (FileNotFoundError, NotADirectoryError):
            return []


@dataclass(frozen=True)
class ScopeRule:
    tier: ScopeTier
    applies: Callable[[HostFacts], bool]
    path: Callable[[HostFacts], PurePosixPath]


@dataclass(frozen=True)
class Scope:
    tier: ScopeTier
    rel_dir: PurePosixPath

    @property
    def label(self) -> str:
        return str(self.rel_dir) if self.rel_dir.parts else "."


SCOPE_RULES: Sequence[ScopeRule] = (
    ScopeRule(ScopeTier.GENERIC, lambda f: True, lambda f: PurePosixPath()),
    ScopeRule(ScopeTier.PLATFORM, lambda f: bool(f.platform), lambda f: PurePosixPath(f.platform)),
    ScopeRule(
        ScopeTier.DISTRO,
        lambda f: bool(f.platform and f.distro),
        lambda f: PurePosixPath(f.platform, f.distro),
    ),
    ScopeRule(
        ScopeTier.ARCH,
        lambda f: bool(f.platform and f.arch),
        lambda f: PurePosixPath(f.platform, "arch", f.arch),
    ),
    ScopeRule(ScopeTier.DEVICE, lambda f: f.has_device(), lambda f: PurePosixPath("devices", f.device_id)),
)


def candidate_scopes(facts: HostFacts, rules: Optional[Sequence[ScopeRule]] = None) -> List[Scope]:
    """Scopes whose predicate holds, in precedence order, without touching disk."""

    rules = SCOPE_RULES if rules is None else rules
    return [Scope(r.tier, r.path(facts)) for r in rules if r.applies(facts)]


def enumerate_scopes(facts: HostFacts, tree: StepTree, rules: Optional[Sequence[ScopeRule]] = None) -> List[Scope]:
    """Candidate scopes that exist in the tree. Absent directories are skipped silently."""

    scopes = [s for s in candidate_scopes(facts, rules) if tree.is_dir(s.rel_dir)]
    logger.debug("Step roots (search order): %s", ", ".join(s.label for s in scopes) or "<none>")
    return scopes
