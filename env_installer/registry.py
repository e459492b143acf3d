from __future__ import annotations

import logging
import re
import sys
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Dict, List, Optional, Sequence

from .errors import MissingRootDirectory
from .scopes import Scope, ScopeTier, StepTree

logger = logging.getLogger(__name__)

# "0040-install-docker.sh" -> prefix "0040", name "install-docker"
STEP_FILE_RE = re.compile(r"^(?P<prefix>\d+)-(?P<name>.+)\.(?P<ext>sh|py)$")

STEP_INTERPRETERS: Dict[str, List[str]] = {
    "sh": ["sh"],
    "py": [sys.executable],
}


@dataclass(frozen=True)
class ResolvedStep:
    name: str
    rel_path: str
    tier: ScopeTier
    scope_dir: str

    @property
    def basename(self) -> str:
        return PurePosixPath(self.rel_path).name

    def argv(self, steps_root: str) -> List[str]:
        ext = PurePosixPath(self.rel_path).suffix.lstrip(".")
        script = str(Path(steps_root).joinpath(*PurePosixPath(self.rel_path).parts))
        return [*STEP_INTERPRETERS[ext], script]


def step_name_from_filename(filename: str) -> Optional[str]:
    """Logical step name, or None if the file is not a step."""

    m = STEP_FILE_RE.match(filename)
    return m.group("name") if m else None


def build_registry(tree: StepTree, scopes: Sequence[Scope]) -> Dict[str, ResolvedStep]:
    """Fold every scope's step files into one name -> step mapping.

    Scopes are visited in ascending specificity and each file overwrites any
    earlier entry with the same logical name, so the most specific scope wins.
    """

    if not tree.is_dir(PurePosixPath()):
        raise MissingRootDirectory(tree.root)

    registry: Dict[str, ResolvedStep] = {}
    for scope in scopes:
        seen_here: Dict[str, str] = {}
        for filename in tree.list_files(scope.rel_dir):
            name = step_name_from_filename(filename)
            if name is None:
                continue
            rel = str(scope.rel_dir / filename)
            if name in seen_here:
                # Invalid input; listing order is sorted so the later filename wins.
                logger.warning(
                    "Step '%s' defined twice in %s (%s, %s); using %s",
                    name,
                    scope.label,
                    seen_here[name],
                    filename,
                    filename,
                )
            seen_here[name] = filename
            registry[name] = ResolvedStep(name=name, rel_path=rel, tier=scope.tier, scope_dir=scope.label)

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "Resolved step mapping (last wins):\n%s",
            "\n".join(f"  {n} -> {s.rel_path}" for n, s in sorted(registry.items())) or "  <empty>",
        )
    return registry
