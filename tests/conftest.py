"""Pytest configuration and fixtures."""

import tempfile
from pathlib import Path
from typing import Generator

import pytest

from phasegate.core.config import Settings
from phasegate.core.models import ArtifactRecord, GovernanceDocument, Phase
from phasegate.governance.engine import GovernanceEngine
from phasegate.governance.kinds import AGENT, WORKFLOW
from phasegate.governance.store import GovernanceStore


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep host configuration out of tests."""
    for var in (
        "PHASEGATE_ROOT",
        "PHASEGATE_LOG_DIR",
        "PHASEGATE_HEALTH_TIMEOUT",
        "PHASEGATE_LOG_LEVEL",
        "N8N_API_URL",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def settings(temp_dir: Path) -> Settings:
    """Settings rooted in a temporary project directory."""
    return Settings(root=temp_dir, log_dir=temp_dir / ".claude" / "logs")


@pytest.fixture
def workflow_store(settings: Settings) -> GovernanceStore:
    return GovernanceStore(settings.store_path(WORKFLOW.directory), WORKFLOW.store_key)


@pytest.fixture
def workflow_engine(workflow_store: GovernanceStore) -> GovernanceEngine:
    return GovernanceEngine(workflow_store, WORKFLOW)


@pytest.fixture
def agent_engine(settings: Settings) -> GovernanceEngine:
    return GovernanceEngine.for_kind(AGENT, settings)


def seed(store: GovernanceStore, *records: ArtifactRecord) -> None:
    """Write records to a store in the given order."""
    document = store.load()
    for record in records:
        document.artifacts[record.id] = record
    assert store.save(document)


def make_record(
    artifact_id: str,
    name: str,
    description: str = "",
    phase: Phase = Phase.DEV,
) -> ArtifactRecord:
    record = ArtifactRecord(id=artifact_id, name=name, description=description)
    record.record_event("created", phase)
    return record


@pytest.fixture
def seeded_store():
    """Callable that seeds a store with records."""
    return seed


@pytest.fixture
def record_factory():
    """Callable that builds an ArtifactRecord with a creation history entry."""
    return make_record


@pytest.fixture
def empty_document() -> GovernanceDocument:
    return GovernanceDocument()
