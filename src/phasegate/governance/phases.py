"""
Phase state machine.

Gates operations by the artifact's current phase. Transitions are never
validated here; any phase may be written by registration or by an
explicit phase update. The contract is only which operations a given
phase permits:

    Operation   DEV     ALPHA/BETA/GA/PROD   ARCHIVED
    mutate      allow   block                block
    clone       allow   allow                block
    delete      block   block                block
"""

from collections.abc import Iterable
from enum import Enum

from phasegate.core.models import Phase

INITIAL_PHASE = Phase.DEV

# Protected but still clonable.
RELEASE_PHASES = frozenset({Phase.ALPHA, Phase.BETA, Phase.GA, Phase.PROD})


class Operation(str, Enum):
    """Operations gated by phase."""

    MUTATE = "mutate"
    CLONE = "clone"
    DELETE = "delete"


_LEGALITY: dict[Operation, frozenset[Phase]] = {
    Operation.MUTATE: frozenset({Phase.DEV}),
    Operation.CLONE: frozenset({Phase.DEV}) | RELEASE_PHASES,
    Operation.DELETE: frozenset(),
}


def permits(operation: Operation, phase: Phase) -> bool:
    """Return True if ``operation`` is legal for an artifact in ``phase``."""
    return phase in _LEGALITY[operation]


def is_protected(phase: Phase) -> bool:
    """Every phase other than DEV forbids in-place mutation."""
    return phase != Phase.DEV


def is_terminal(phase: Phase) -> bool:
    return phase == Phase.ARCHIVED


def most_protected(phases: Iterable[Phase]) -> Phase:
    """
    Most protected of several phases.

    Raises:
        ValueError: If ``phases`` is empty
    """
    return max(phases, key=lambda p: p.rank)
