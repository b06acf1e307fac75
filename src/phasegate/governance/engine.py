"""
Governance Engine - pre-mutation checks and post-success registration.

One engine instance governs one artifact kind. It is built around an
explicit store; each call loads the document, decides, and (for
registration and phase updates) writes it back in full.

Checks never raise and never block on similarity. The only blocks are
policy: in-place mutation of a protected or archived artifact, and any
deletion at all.
"""

import logging
from dataclasses import dataclass

from phasegate.core.config import Settings
from phasegate.core.exceptions import ArtifactNotFoundError
from phasegate.core.models import (
    ArtifactRecord,
    Decision,
    GovernanceDocument,
    Phase,
    SimilarArtifact,
)
from phasegate.governance import phases
from phasegate.governance.kinds import ArtifactKind
from phasegate.governance.phases import Operation
from phasegate.governance.similarity import (
    STRONG_MATCH_THRESHOLD,
    find_similar,
)
from phasegate.governance.store import GovernanceStore
from phasegate.monitoring.diagnostics import log_diagnostic

logger = logging.getLogger(__name__)

MAX_LISTED_MATCHES = 3
DEPRECATED_PREFIX = "[DEPRECATED]"


@dataclass
class RegistryResult:
    """Outcome of a registration or phase update."""

    operation: str  # "register" or "set_phase"
    artifact_id: str
    changed: bool
    persisted: bool
    record: ArtifactRecord | None = None
    error: str = ""


@dataclass
class _Lookup:
    """Resolution of an id/name pair against the store."""

    record: ArtifactRecord | None
    phase: Phase | None
    by_name: bool = False
    collisions: int = 0


class GovernanceEngine:
    """
    Phase-lifecycle gate for one artifact kind.

    Exposes the guarded operations ``check_create``, ``check_update``,
    ``check_delete`` and ``check_clone``, and the post-success hooks
    ``register_artifact`` and ``set_phase``.
    """

    def __init__(self, store: GovernanceStore, kind: ArtifactKind):
        """
        Initialize the engine.

        Args:
            store: Store holding this kind's governance document
            kind: Field names and terminology for messages
        """
        self._store = store
        self._kind = kind

    @classmethod
    def for_kind(cls, kind: ArtifactKind, settings: Settings) -> "GovernanceEngine":
        """Build an engine using the kind's conventional store location."""
        store = GovernanceStore(settings.store_path(kind.directory), kind.store_key)
        return cls(store, kind)

    @property
    def kind(self) -> ArtifactKind:
        return self._kind

    @property
    def store(self) -> GovernanceStore:
        return self._store

    # Pre-mutation checks

    def check_create(self, name: str, content_text: str = "") -> Decision:
        """
        Advise on creating a new artifact.

        Similar artifacts produce an advisory, never a block. With a strong
        match (>= 70%) the advisory recommends cloning that artifact.
        """
        document = self._store.load()
        query = f"{name} {content_text}".strip()
        matches = find_similar(query, document.records())

        label = self._kind.label
        if not matches:
            decision = Decision.allowed(
                f"New {label} '{name}' will be tagged DEV once created."
            )
        elif matches[0].similarity >= STRONG_MATCH_THRESHOLD:
            top = matches[0]
            decision = Decision.allowed(
                f"Strong match: '{top.name}' (id: {top.id}, {top.phase.value}) is "
                f"{top.similarity}% similar to '{name}'. Consider cloning '{top.name}' "
                f"instead of creating a duplicate {label}. If you proceed, the new "
                f"{label} will be tagged DEV.",
                matches=matches[:MAX_LISTED_MATCHES],
            )
        else:
            listed = matches[:MAX_LISTED_MATCHES]
            lines = "\n".join(_format_match(m) for m in listed)
            decision = Decision.allowed(
                f"Similar {self._kind.store_key} already exist:\n{lines}\n"
                f"Review them before creating '{name}'. The new {label} will be "
                f"tagged DEV.",
                matches=listed,
            )

        log_diagnostic(
            logger, "governance", "check_create",
            kind=self._kind.key,
            name=name,
            candidates=len(document.artifacts),
            top_similarity=matches[0].similarity if matches else 0,
            matches=len(matches),
            allow=decision.allow,
        )
        return decision

    def check_update(self, artifact_id: str | None, name: str | None = None) -> Decision:
        """
        Gate an in-place update.

        Looks the artifact up by id, falling back to name when the id is not
        tracked. Untracked artifacts are allowed; DEV is allowed; every other
        phase is blocked.
        """
        document = self._store.load()
        lookup = self._lookup(document, artifact_id, name)
        label = self._kind.label

        if lookup.phase is None:
            decision = Decision.allowed(
                f"{_describe(self._kind.title, name, artifact_id)} is not tracked yet. "
                f"It will be registered as DEV once the update succeeds."
            )
        elif phases.permits(Operation.MUTATE, lookup.phase):
            decision = Decision.allowed(
                f"{self._kind.title} '{lookup.record.name}' is in DEV; editing is allowed."
            )
        else:
            record = lookup.record
            subject = f"{label} '{record.name}' (id: {record.id})"
            if phases.is_terminal(lookup.phase):
                remedy = (
                    f"Archived {self._kind.store_key} cannot be edited or cloned. "
                    f"Recreate it as a new DEV {label} instead."
                )
            else:
                remedy = (
                    f"Clone it, edit the clone in DEV, then promote the clone "
                    f"to replace the {lookup.phase.value} version."
                )
            decision = Decision.blocked(
                f"BLOCKED: {subject} is in {lookup.phase.value} and cannot be "
                f"modified in place. {remedy}",
                details={"phase": lookup.phase.value, "artifact_id": record.id},
            )

        if lookup.collisions > 1:
            decision.message += (
                f" Note: {lookup.collisions} tracked {self._kind.store_key} are named "
                f"'{name}'; the most protected phase was applied."
            )

        log_diagnostic(
            logger, "governance", "check_update",
            kind=self._kind.key,
            artifact_id=artifact_id,
            name=name,
            tracked=lookup.record is not None,
            by_name=lookup.by_name,
            collisions=lookup.collisions,
            phase=lookup.phase.value if lookup.phase else None,
            allow=decision.allow,
        )
        return decision

    def check_delete(self, artifact_id: str | None) -> Decision:
        """Deletion is never authorized, whatever the phase or tracking status."""
        record = self._store.load().get(artifact_id)
        label = self._kind.label

        if record is not None:
            subject = f"{label} '{record.name}' (id: {record.id}, {record.phase.value})"
        elif artifact_id:
            subject = f"{label} {artifact_id}"
        else:
            subject = label

        decision = Decision.blocked(
            f"BLOCKED: Deleting {subject} is not allowed; governed "
            f"{self._kind.store_key} are never deleted. Instead set its phase to "
            f"{Phase.ARCHIVED.value}, deactivate it, or prefix its name with "
            f"'{DEPRECATED_PREFIX}'.",
            details={"artifact_id": artifact_id},
        )

        log_diagnostic(
            logger, "governance", "check_delete",
            kind=self._kind.key,
            artifact_id=artifact_id,
            tracked=record is not None,
            allow=decision.allow,
        )
        return decision

    def check_clone(self, artifact_id: str | None, name: str | None = None) -> Decision:
        """Gate cloning: every phase except ARCHIVED may be cloned."""
        document = self._store.load()
        lookup = self._lookup(document, artifact_id, name)
        label = self._kind.label

        if lookup.phase is None or phases.permits(Operation.CLONE, lookup.phase):
            decision = Decision.allowed(
                f"Cloning {_describe(label, name, artifact_id)} is allowed. "
                f"The clone will be tagged DEV."
            )
        else:
            record = lookup.record
            decision = Decision.blocked(
                f"BLOCKED: {label} '{record.name}' (id: {record.id}) is ARCHIVED and "
                f"cannot be cloned. Recreate it as a new DEV {label}.",
                details={"phase": lookup.phase.value, "artifact_id": record.id},
            )

        log_diagnostic(
            logger, "governance", "check_clone",
            kind=self._kind.key,
            artifact_id=artifact_id,
            phase=lookup.phase.value if lookup.phase else None,
            allow=decision.allow,
        )
        return decision

    # Post-success hooks

    def register_artifact(
        self,
        artifact_id: str,
        name: str,
        content_snippet: str = "",
        phase: Phase = Phase.DEV,
        action: str = "created",
    ) -> RegistryResult:
        """
        Track a newly created artifact.

        A no-op for ids that are already tracked, so repeated calls never
        duplicate history or move ``created``. Persistence is best-effort:
        a failed save is logged and reported, not raised.
        """
        artifact_id = str(artifact_id)
        document = self._store.load()
        existing = document.get(artifact_id)
        if existing is not None:
            return RegistryResult(
                operation="register",
                artifact_id=artifact_id,
                changed=False,
                persisted=True,
                record=existing,
            )

        record = ArtifactRecord(
            id=artifact_id,
            name=name,
            phase=phase,
            description=content_snippet,
        )
        entry = record.record_event(action)
        record.created = entry.timestamp
        document.artifacts[artifact_id] = record

        persisted = self._store.save(document)
        log_diagnostic(
            logger, "governance", "register_artifact",
            level=logging.INFO if persisted else logging.ERROR,
            kind=self._kind.key,
            artifact_id=artifact_id,
            name=name,
            phase=phase.value,
            persisted=persisted,
        )
        return RegistryResult(
            operation="register",
            artifact_id=artifact_id,
            changed=True,
            persisted=persisted,
            record=record,
            error="" if persisted else f"Could not write {self._store.path}",
        )

    def set_phase(self, artifact_id: str, phase: Phase | str) -> RegistryResult:
        """
        Record an externally requested phase change.

        Transitions are not validated; any phase may be written.

        Raises:
            ArtifactNotFoundError: If the id is not tracked
        """
        phase = Phase.parse(phase)
        document = self._store.load()
        record = document.get(artifact_id)
        if record is None:
            raise ArtifactNotFoundError(
                f"{self._kind.title} '{artifact_id}' is not tracked",
                artifact_id=artifact_id,
                kind=self._kind.key,
            )

        previous = record.phase
        record.record_event("phase_changed", phase)
        persisted = self._store.save(document)

        log_diagnostic(
            logger, "governance", "set_phase",
            level=logging.INFO if persisted else logging.ERROR,
            kind=self._kind.key,
            artifact_id=artifact_id,
            previous=previous.value,
            phase=phase.value,
            persisted=persisted,
        )
        return RegistryResult(
            operation="set_phase",
            artifact_id=artifact_id,
            changed=True,
            persisted=persisted,
            record=record,
            error="" if persisted else f"Could not write {self._store.path}",
        )

    def list_artifacts(self) -> list[ArtifactRecord]:
        """Tracked records in store order."""
        return self._store.load().records()

    def find_similar(self, text: str, exclude_id: str | None = None) -> list[SimilarArtifact]:
        return find_similar(text, self._store.load().records(), exclude_id=exclude_id)

    def _lookup(
        self,
        document: GovernanceDocument,
        artifact_id: str | None,
        name: str | None,
    ) -> _Lookup:
        """Resolve by id, then by name; name collisions take the most protected phase."""
        record = document.get(artifact_id)
        if record is not None:
            return _Lookup(record=record, phase=record.phase)

        named = document.find_by_name(name)
        if not named:
            return _Lookup(record=None, phase=None)

        strictest = phases.most_protected(r.phase for r in named)
        record = next(r for r in named if r.phase == strictest)
        return _Lookup(record=record, phase=strictest, by_name=True, collisions=len(named))


def _format_match(match: SimilarArtifact) -> str:
    return f"  - {match.name} [{match.phase.value}] {match.similarity}% (id: {match.id})"


def _describe(label: str, name: str | None, artifact_id: str | None) -> str:
    """``label 'name'`` or ``label 'id'``, or the bare label when neither is known."""
    subject = name or artifact_id
    return f"{label} '{subject}'" if subject else label
