"""
Audit data models for phasegate.

One entry per observed deployment attempt (create or update) of a governed
artifact. Entries are independent of the governance store and never
reference it.
"""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field


class DeployAction(str, Enum):
    """Deployment actions recorded in the audit log."""

    CREATE = "create"
    UPDATE = "update"


def _utc_now() -> str:
    """Return current UTC timestamp as ISO8601 string."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


class AuditEntry(BaseModel):
    """
    A single deployment-log line.

    Immutable record used only for historical reconstruction.
    """

    timestamp: str = Field(default_factory=_utc_now)
    action: DeployAction
    kind: str = Field(description="Artifact kind key, e.g. 'workflow'")
    artifact_name: str = Field(default="unnamed", alias="artifactName")
    artifact_id: str | None = Field(default=None, alias="artifactId")
    success: bool

    model_config = {"frozen": True, "populate_by_name": True}

    def to_log_line(self) -> str:
        """Convert to a single JSONL line (without trailing newline)."""
        return self.model_dump_json(by_alias=True)

    def summary(self) -> str:
        """Compact human-readable form for hook advisories."""
        status = "ok" if self.success else "FAILED"
        id_part = f" ({self.artifact_id})" if self.artifact_id else ""
        return f"[{status}] {self.action.value}: {self.artifact_name}{id_part}"
