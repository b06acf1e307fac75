"""Tests for the governance engine checks and registration."""

from pathlib import Path

import pytest

from phasegate.core.exceptions import ArtifactNotFoundError
from phasegate.core.models import Phase
from phasegate.governance.engine import GovernanceEngine
from phasegate.governance.kinds import WORKFLOW
from phasegate.governance.store import GovernanceStore

PROTECTED = [Phase.ALPHA, Phase.BETA, Phase.GA, Phase.PROD]


class TestCheckCreate:
    """Tests for similarity advisories on create."""

    def test_empty_store_allows_with_dev_advisory(self, workflow_engine: GovernanceEngine) -> None:
        """No stored artifacts: allow, mention DEV, no matches."""
        decision = workflow_engine.check_create(
            "Send Slack Alert", "posts a message to slack when disk is full"
        )

        assert decision.allow is True
        assert "DEV" in decision.message
        assert decision.matches == []

    def test_strong_match_recommends_cloning(
        self, workflow_engine, workflow_store, seeded_store, record_factory
    ) -> None:
        """A near-duplicate names the existing artifact and its id."""
        seeded_store(
            workflow_store,
            record_factory("wf_1", "Send Slack Alert", "posts a message to slack when disk is full"),
        )

        decision = workflow_engine.check_create(
            "Slack Alert Sender", "posts message to slack when the disk is full"
        )

        assert decision.allow is True
        assert decision.matches[0].id == "wf_1"
        assert decision.matches[0].similarity >= 70
        assert "Send Slack Alert" in decision.message
        assert "wf_1" in decision.message
        assert "clon" in decision.message.lower()

    def test_weak_overlap_is_not_a_match(
        self, workflow_engine, workflow_store, seeded_store, record_factory
    ) -> None:
        """Three shared words out of eleven stays below the match threshold."""
        seeded_store(
            workflow_store,
            record_factory("wf_1", "Send Slack Alert", "posts a message to slack when disk is full"),
        )

        decision = workflow_engine.check_create("Slack Disk Alert", "notify slack on low disk space")

        assert decision.allow is True
        assert decision.matches == []
        assert "DEV" in decision.message

    def test_moderate_match_lists_top_three(
        self, workflow_engine, workflow_store, seeded_store, record_factory
    ) -> None:
        """30-69% matches are listed with phase and score, at most three."""
        seeded_store(
            workflow_store,
            record_factory("wf_1", "slack alert disk", phase=Phase.PROD),
            record_factory("wf_2", "slack alert memory"),
            record_factory("wf_3", "slack alert cpu"),
            record_factory("wf_4", "slack alert network"),
        )

        decision = workflow_engine.check_create("slack alert disk usage report", "")

        assert decision.allow is True
        assert len(decision.matches) == 3
        assert all(30 <= m.similarity < 70 for m in decision.matches)
        assert decision.matches[0].id == "wf_1"
        assert "[PROD] 60%" in decision.message
        assert "wf_4" not in decision.message

    def test_create_never_blocks(
        self, workflow_engine, workflow_store, seeded_store, record_factory
    ) -> None:
        """Even an exact duplicate of a PROD artifact is only advisory."""
        seeded_store(workflow_store, record_factory("wf_1", "Send Slack Alert", phase=Phase.PROD))

        assert workflow_engine.check_create("Send Slack Alert").allow is True

    def test_idempotent(self, workflow_engine, workflow_store, seeded_store, record_factory) -> None:
        """Same input and unchanged store give the same decision."""
        seeded_store(workflow_store, record_factory("wf_1", "slack alert disk"))

        first = workflow_engine.check_create("slack alert disk usage", "report")
        second = workflow_engine.check_create("slack alert disk usage", "report")

        assert (first.allow, first.message) == (second.allow, second.message)

    def test_check_create_does_not_write(self, workflow_engine, workflow_store) -> None:
        workflow_engine.check_create("Send Slack Alert", "")
        assert not workflow_store.path.exists()


class TestCheckUpdate:
    """Tests for the in-place mutation gate."""

    @pytest.mark.parametrize("phase", PROTECTED)
    def test_protected_phase_blocks(
        self, workflow_engine, workflow_store, seeded_store, record_factory, phase: Phase
    ) -> None:
        """ALPHA, BETA, GA and PROD always block."""
        seeded_store(workflow_store, record_factory("wf_1", "Send Slack Alert", phase=phase))

        decision = workflow_engine.check_update("wf_1", "Send Slack Alert")

        assert decision.allow is False
        assert phase.value in decision.message
        assert "Clone" in decision.message

    def test_prod_scenario(self, workflow_engine, workflow_store, seeded_store, record_factory) -> None:
        """wf_1 in PROD: blocked, message names PROD and cloning."""
        seeded_store(workflow_store, record_factory("wf_1", "Send Slack Alert", phase=Phase.PROD))

        decision = workflow_engine.check_update("wf_1", "Send Slack Alert")

        assert decision.allow is False
        assert "PROD" in decision.message
        assert "clone" in decision.message.lower()
        assert "Send Slack Alert" in decision.message
        assert decision.details["phase"] == "PROD"

    def test_dev_allows(self, workflow_engine, workflow_store, seeded_store, record_factory) -> None:
        seeded_store(workflow_store, record_factory("wf_1", "Send Slack Alert"))
        assert workflow_engine.check_update("wf_1", "Send Slack Alert").allow is True

    def test_archived_blocks_with_recreate_advice(
        self, workflow_engine, workflow_store, seeded_store, record_factory
    ) -> None:
        seeded_store(workflow_store, record_factory("wf_1", "Old Flow", phase=Phase.ARCHIVED))

        decision = workflow_engine.check_update("wf_1", "Old Flow")

        assert decision.allow is False
        assert "ARCHIVED" in decision.message
        assert "new DEV" in decision.message

    def test_untracked_allows_with_registration_advisory(self, workflow_engine) -> None:
        decision = workflow_engine.check_update("wf_404", "Unknown Flow")

        assert decision.allow is True
        assert "not tracked" in decision.message
        assert "DEV" in decision.message

    def test_untracked_without_id_or_name(self, workflow_engine: GovernanceEngine) -> None:
        decision = workflow_engine.check_update(None, None)

        assert decision.allow is True
        assert decision.message.startswith("Workflow is not tracked yet.")
        assert "None" not in decision.message

    def test_falls_back_to_name_when_id_unknown(
        self, workflow_engine, workflow_store, seeded_store, record_factory
    ) -> None:
        """A missing id resolves through the artifact name."""
        seeded_store(workflow_store, record_factory("wf_1", "Send Slack Alert", phase=Phase.GA))

        assert workflow_engine.check_update(None, "Send Slack Alert").allow is False
        assert workflow_engine.check_update("wf_other", "Send Slack Alert").allow is False

    def test_id_wins_over_name(self, workflow_engine, workflow_store, seeded_store, record_factory) -> None:
        """A tracked id is authoritative even if its name matches a protected artifact."""
        seeded_store(
            workflow_store,
            record_factory("wf_1", "Shared Name", phase=Phase.PROD),
            record_factory("wf_2", "Shared Name"),
        )

        assert workflow_engine.check_update("wf_2", "Shared Name").allow is True

    def test_name_collision_uses_most_protected_phase(
        self, workflow_engine, workflow_store, seeded_store, record_factory
    ) -> None:
        """Ambiguous name lookups never unlock a protected artifact."""
        seeded_store(
            workflow_store,
            record_factory("wf_1", "Shared Name"),
            record_factory("wf_2", "Shared Name", phase=Phase.BETA),
        )

        decision = workflow_engine.check_update(None, "Shared Name")

        assert decision.allow is False
        assert "BETA" in decision.message
        assert "2 tracked workflows" in decision.message

    def test_name_collision_all_dev_allows(
        self, workflow_engine, workflow_store, seeded_store, record_factory
    ) -> None:
        seeded_store(
            workflow_store,
            record_factory("wf_1", "Shared Name"),
            record_factory("wf_2", "Shared Name"),
        )

        assert workflow_engine.check_update(None, "Shared Name").allow is True


class TestCheckDelete:
    """Tests for the absolute deletion block."""

    @pytest.mark.parametrize("phase", list(Phase))
    def test_blocks_every_phase(
        self, workflow_engine, workflow_store, seeded_store, record_factory, phase: Phase
    ) -> None:
        seeded_store(workflow_store, record_factory("wf_1", "Send Slack Alert", phase=phase))

        decision = workflow_engine.check_delete("wf_1")

        assert decision.allow is False
        assert phase.value in decision.message

    @pytest.mark.parametrize("artifact_id", ["wf_1", "never-seen", "", None])
    def test_blocks_untracked(self, workflow_engine, artifact_id) -> None:
        decision = workflow_engine.check_delete(artifact_id)

        assert decision.allow is False
        assert "ARCHIVED" in decision.message
        assert "deactivate" in decision.message
        assert "[DEPRECATED]" in decision.message


class TestCheckClone:
    """Tests for the clone gate."""

    @pytest.mark.parametrize("phase", [Phase.DEV] + PROTECTED)
    def test_clonable_phases(
        self, workflow_engine, workflow_store, seeded_store, record_factory, phase: Phase
    ) -> None:
        seeded_store(workflow_store, record_factory("wf_1", "Flow", phase=phase))
        assert workflow_engine.check_clone("wf_1").allow is True

    def test_archived_not_clonable(self, workflow_engine, workflow_store, seeded_store, record_factory) -> None:
        seeded_store(workflow_store, record_factory("wf_1", "Flow", phase=Phase.ARCHIVED))

        decision = workflow_engine.check_clone("wf_1")

        assert decision.allow is False
        assert "Recreate" in decision.message

    def test_untracked_clonable(self, workflow_engine) -> None:
        assert workflow_engine.check_clone("wf_404").allow is True

    def test_unnamed_source_uses_label(self, workflow_engine) -> None:
        assert workflow_engine.check_clone(None).message.startswith("Cloning workflow is allowed.")


class TestRegisterArtifact:
    """Tests for post-success registration."""

    def test_registers_new_artifact_as_dev(self, workflow_engine: GovernanceEngine) -> None:
        result = workflow_engine.register_artifact("wf_1", "Send Slack Alert", "disk full")

        assert result.changed and result.persisted
        record = workflow_engine.store.load().get("wf_1")
        assert record.phase == Phase.DEV
        assert record.description == "disk full"
        assert record.created == record.modified
        assert [(h.action, h.phase) for h in record.history] == [("created", Phase.DEV)]

    def test_second_registration_is_noop(self, workflow_engine: GovernanceEngine) -> None:
        """Re-registering keeps history and created unchanged."""
        workflow_engine.register_artifact("wf_1", "Send Slack Alert")
        before = workflow_engine.store.load().get("wf_1")

        result = workflow_engine.register_artifact("wf_1", "Renamed", phase=Phase.PROD)
        after = workflow_engine.store.load().get("wf_1")

        assert result.changed is False
        assert after == before
        assert len(after.history) == 1

    def test_explicit_phase(self, workflow_engine: GovernanceEngine) -> None:
        workflow_engine.register_artifact("wf_1", "Imported Flow", phase=Phase.PROD)
        assert workflow_engine.check_update("wf_1", "Imported Flow").allow is False

    def test_exactly_one_phase_per_id(self, workflow_engine: GovernanceEngine) -> None:
        """Any sequence of registrations leaves one record per id."""
        for artifact_id in ("wf_1", "wf_2", "wf_1", "wf_3", "wf_2"):
            workflow_engine.register_artifact(artifact_id, f"Flow {artifact_id}")

        records = workflow_engine.list_artifacts()
        assert sorted(r.id for r in records) == ["wf_1", "wf_2", "wf_3"]
        assert all(isinstance(r.phase, Phase) for r in records)

    def test_persistence_failure_is_reported_not_raised(self, temp_dir: Path) -> None:
        blocker = temp_dir / "blocker"
        blocker.write_text("")
        engine = GovernanceEngine(GovernanceStore(blocker / "governance.yaml", "workflows"), WORKFLOW)

        result = engine.register_artifact("wf_1", "Send Slack Alert")

        assert result.changed is True
        assert result.persisted is False
        assert result.error


class TestSetPhase:
    """Tests for explicit phase updates."""

    def test_any_transition_is_written(self, workflow_engine: GovernanceEngine) -> None:
        """No transition rules: PROD can go straight back to DEV."""
        workflow_engine.register_artifact("wf_1", "Flow")
        workflow_engine.set_phase("wf_1", Phase.PROD)
        result = workflow_engine.set_phase("wf_1", "dev")

        record = workflow_engine.store.load().get("wf_1")
        assert result.persisted
        assert record.phase == Phase.DEV
        assert [h.action for h in record.history] == ["created", "phase_changed", "phase_changed"]
        assert [h.phase for h in record.history] == [Phase.DEV, Phase.PROD, Phase.DEV]

    def test_created_preserved(self, workflow_engine: GovernanceEngine) -> None:
        workflow_engine.register_artifact("wf_1", "Flow")
        created = workflow_engine.store.load().get("wf_1").created

        workflow_engine.set_phase("wf_1", Phase.ARCHIVED)

        assert workflow_engine.store.load().get("wf_1").created == created

    def test_untracked_raises(self, workflow_engine: GovernanceEngine) -> None:
        with pytest.raises(ArtifactNotFoundError, match="not tracked"):
            workflow_engine.set_phase("wf_404", Phase.PROD)

    def test_archiving_blocks_updates(self, workflow_engine: GovernanceEngine) -> None:
        workflow_engine.register_artifact("wf_1", "Flow")
        workflow_engine.set_phase("wf_1", Phase.ARCHIVED)

        assert workflow_engine.check_update("wf_1", "Flow").allow is False


class TestAgentKind:
    """The same engine governs voice agents with agent terminology."""

    def test_agent_messages_use_agent_terms(self, agent_engine: GovernanceEngine) -> None:
        agent_engine.register_artifact("ag_1", "Receptionist", phase=Phase.PROD)

        decision = agent_engine.check_update("ag_1", "Receptionist")

        assert decision.allow is False
        assert "voice agent" in decision.message
        assert agent_engine.store.path.parent.name == "agents"

    def test_agent_and_workflow_stores_are_separate(
        self, agent_engine: GovernanceEngine, workflow_engine: GovernanceEngine
    ) -> None:
        agent_engine.register_artifact("shared_id", "Receptionist", phase=Phase.PROD)

        assert workflow_engine.check_update("shared_id", "Receptionist").allow is True
