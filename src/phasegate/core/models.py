"""
Core data models for phasegate.

Artifact records, lifecycle phases and governance decisions shared by the
store, the engine and the hook boundary.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator


class Phase(str, Enum):
    """Lifecycle phase of a governed artifact."""

    DEV = "DEV"
    ALPHA = "ALPHA"
    BETA = "BETA"
    GA = "GA"
    PROD = "PROD"
    ARCHIVED = "ARCHIVED"

    @property
    def rank(self) -> int:
        """Protectedness rank; ARCHIVED sits above PROD."""
        return _PHASE_RANK[self]

    @classmethod
    def parse(cls, value: "str | Phase") -> "Phase":
        """Parse a phase name case-insensitively."""
        if isinstance(value, Phase):
            return value
        return cls(str(value).strip().upper())


_PHASE_RANK = {
    Phase.DEV: 0,
    Phase.ALPHA: 1,
    Phase.BETA: 2,
    Phase.GA: 3,
    Phase.PROD: 4,
    Phase.ARCHIVED: 5,
}


class HistoryEntry(BaseModel):
    """One immutable step in an artifact's history."""

    action: str
    phase: Phase
    timestamp: str = Field(default_factory=lambda: _iso_timestamp())

    model_config = {"frozen": True}


class ArtifactRecord(BaseModel):
    """Governance metadata for a single workflow or agent."""

    id: str
    name: str
    phase: Phase = Phase.DEV
    description: str = ""
    created: str = Field(default_factory=lambda: _iso_timestamp())
    modified: str = Field(default_factory=lambda: _iso_timestamp())
    history: list[HistoryEntry] = Field(default_factory=list)

    @field_validator("phase", mode="before")
    @classmethod
    def _parse_phase(cls, value: Any) -> Any:
        return Phase.parse(value) if isinstance(value, str) else value

    def match_text(self) -> str:
        """Text compared against create candidates."""
        return f"{self.name} {self.description}".strip()

    def record_event(self, action: str, phase: Phase | None = None) -> HistoryEntry:
        """Append a history entry and refresh ``modified``."""
        if phase is not None:
            self.phase = phase
        entry = HistoryEntry(action=action, phase=self.phase)
        self.history.append(entry)
        self.modified = entry.timestamp
        return entry


class GovernanceDocument(BaseModel):
    """Full id -> record mapping for one artifact kind, in store order."""

    artifacts: dict[str, ArtifactRecord] = Field(default_factory=dict)

    def get(self, artifact_id: str | None) -> ArtifactRecord | None:
        """Look up a record by id."""
        if not artifact_id:
            return None
        return self.artifacts.get(str(artifact_id))

    def find_by_name(self, name: str | None) -> list[ArtifactRecord]:
        """All records carrying exactly this name, in store order."""
        if not name:
            return []
        return [r for r in self.artifacts.values() if r.name == name]

    def records(self) -> list[ArtifactRecord]:
        """Records in store order."""
        return list(self.artifacts.values())


class SimilarArtifact(BaseModel):
    """A stored artifact that overlaps with a candidate."""

    id: str
    name: str
    phase: Phase
    similarity: int = Field(ge=0, le=100)


class Decision(BaseModel):
    """Allow/block outcome of a governance check."""

    allow: bool
    message: str = ""
    matches: list[SimilarArtifact] = Field(default_factory=list)
    details: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def allowed(cls, message: str = "", **kwargs: Any) -> "Decision":
        return cls(allow=True, message=message, **kwargs)

    @classmethod
    def blocked(cls, message: str, **kwargs: Any) -> "Decision":
        return cls(allow=False, message=message, **kwargs)


def _iso_timestamp() -> str:
    """Return current ISO8601 timestamp in UTC."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
