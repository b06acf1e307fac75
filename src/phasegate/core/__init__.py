"""
phasegate Core Module.

Provides foundational types, configuration and exceptions.
"""

__all__ = [
    "ArtifactRecord",
    "Decision",
    "GovernanceDocument",
    "HistoryEntry",
    "Phase",
    "Settings",
    "SimilarArtifact",
    # Exceptions
    "PhaseGateError",
    "ConfigurationError",
    "ArtifactNotFoundError",
    "EnvelopeError",
]

from phasegate.core.config import Settings
from phasegate.core.exceptions import (
    ArtifactNotFoundError,
    ConfigurationError,
    EnvelopeError,
    PhaseGateError,
)
from phasegate.core.models import (
    ArtifactRecord,
    Decision,
    GovernanceDocument,
    HistoryEntry,
    Phase,
    SimilarArtifact,
)
