from __future__ import annotations

import logging
from typing import List, Mapping, Sequence

from .errors import UsageError
from .registry import ResolvedStep

logger = logging.getLogger(__name__)


def plan_all(registry: Mapping[str, ResolvedStep]) -> List[str]:
    """Every registered step, ordered by the basename of its resolved file.

    Numeric prefixes are fixed width by convention, so string order is
    numeric order regardless of which scope supplied the file.
    """

    return [s.name for s in sorted(registry.values(), key=lambda s: (s.basename, s.name))]


def plan_selected(registry: Mapping[str, ResolvedStep], names: Sequence[str]) -> List[str]:
    """Exactly the caller's names, in the caller's order, duplicates included.

    Unknown names stay in the plan; the runner stops with StepNotFound when
    it reaches one.
    """

    if not names:
        raise UsageError("--steps requires at least one step name")
    for name in names:
        if name not in registry:
            logger.warning("Step '%s' is not defined for this host; the run will stop there", name)
    return list(names)
