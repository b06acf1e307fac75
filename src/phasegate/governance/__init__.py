"""
phasegate Governance Module.

Phase-lifecycle gating and duplicate detection for governed artifacts.

Usage:
    >>> from phasegate.core import Settings
    >>> from phasegate.governance import GovernanceEngine, WORKFLOW
    >>>
    >>> engine = GovernanceEngine.for_kind(WORKFLOW, Settings.from_env())
    >>> decision = engine.check_update("wf_1", "Send Slack Alert")
    >>> decision.allow
    False
"""

from phasegate.governance.engine import GovernanceEngine, RegistryResult
from phasegate.governance.kinds import AGENT, BUILTIN_KINDS, WORKFLOW, ArtifactKind, get_kind
from phasegate.governance.phases import (
    INITIAL_PHASE,
    RELEASE_PHASES,
    Operation,
    is_protected,
    most_protected,
    permits,
)
from phasegate.governance.similarity import (
    MATCH_THRESHOLD,
    STRONG_MATCH_THRESHOLD,
    find_similar,
    similarity,
    tokenize,
)
from phasegate.governance.store import GovernanceStore

__all__ = [
    # Engine
    "GovernanceEngine",
    "RegistryResult",
    # Kinds
    "ArtifactKind",
    "WORKFLOW",
    "AGENT",
    "BUILTIN_KINDS",
    "get_kind",
    # Phases
    "Operation",
    "INITIAL_PHASE",
    "RELEASE_PHASES",
    "permits",
    "is_protected",
    "most_protected",
    # Similarity
    "MATCH_THRESHOLD",
    "STRONG_MATCH_THRESHOLD",
    "similarity",
    "find_similar",
    "tokenize",
    # Store
    "GovernanceStore",
]
