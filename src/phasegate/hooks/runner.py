"""
Hook runner - dispatches resolved operations to the governance engine.

    stage  action   behaviour
    pre    create   deploy sanity checks, then similarity advisory
    pre    update   phase gate (blocks protected and archived artifacts)
    pre    delete   always blocks
    post   create   register the new artifact as DEV, append audit entry
    post   update   register if untracked, append audit entry
    post   delete   nothing

Governance fails open on its own internal faults. Each fault category has
its own branch: an unreadable store loads as empty, an unparseable request
becomes an empty request (no-op allow), and failed writes are reported in
the advisory without blocking.
"""

import logging
from typing import Any

from phasegate.audit.logger import AuditLog
from phasegate.audit.models import AuditEntry, DeployAction
from phasegate.core.config import Settings
from phasegate.governance.engine import GovernanceEngine
from phasegate.governance.kinds import BUILTIN_KINDS, ArtifactKind
from phasegate.hooks.envelope import (
    HookRequest,
    HookResponse,
    HookStage,
    ResolvedOperation,
    ToolAction,
    parse_request,
    resolve_operation,
)
from phasegate.hooks.session import load_session_state
from phasegate.monitoring.diagnostics import log_diagnostic

logger = logging.getLogger(__name__)

SNIPPET_LENGTH = 500


class HookRunner:
    """Runs one hook invocation against the governance engines."""

    def __init__(
        self,
        settings: Settings,
        kinds: tuple[ArtifactKind, ...] = BUILTIN_KINDS,
        engines: dict[str, GovernanceEngine] | None = None,
        audit_logs: dict[str, AuditLog] | None = None,
    ):
        """
        Initialize the runner.

        Args:
            settings: Resolved settings (paths for stores, logs, session state)
            kinds: Artifact kinds to govern
            engines: Engines by kind key; built from settings when omitted
            audit_logs: Audit logs by kind key; built from settings when omitted
        """
        self._settings = settings
        self._kinds = kinds
        self._engines = engines or {}
        self._audit_logs = audit_logs or {}

    def engine_for(self, kind: ArtifactKind) -> GovernanceEngine:
        if kind.key not in self._engines:
            self._engines[kind.key] = GovernanceEngine.for_kind(kind, self._settings)
        return self._engines[kind.key]

    def audit_log_for(self, kind: ArtifactKind) -> AuditLog:
        if kind.key not in self._audit_logs:
            self._audit_logs[kind.key] = AuditLog(self._settings.audit_log_path(kind.directory))
        return self._audit_logs[kind.key]

    def run_raw(self, raw: str | bytes | None) -> HookResponse:
        """Parse a raw envelope and run it; unparseable input is a no-op allow."""
        return self.run(parse_request(raw))

    def run(self, request: HookRequest) -> HookResponse:
        """Run one request to a response."""
        operation = resolve_operation(request, self._kinds)
        if operation is None:
            log_diagnostic(
                logger, "hooks", "Skipped - not a governed tool",
                level=logging.DEBUG, tool_name=request.tool_name,
            )
            return HookResponse.allow()

        log_diagnostic(
            logger, "hooks", "Hook triggered",
            tool_name=operation.tool_name,
            kind=operation.kind.key,
            action=operation.action.value,
            stage=operation.stage.value,
        )

        match (operation.stage, operation.action):
            case (HookStage.PRE, ToolAction.CREATE):
                return self._pre_create(operation, request.tool_input)
            case (HookStage.PRE, ToolAction.UPDATE):
                return self._pre_update(operation, request.tool_input)
            case (HookStage.PRE, ToolAction.DELETE):
                return self._pre_delete(operation, request.tool_input)
            case (HookStage.POST, ToolAction.CREATE | ToolAction.UPDATE):
                return self._post_deploy(operation, request.tool_input, request.tool_output or {})
            case _:
                return HookResponse.allow()

    def _pre_create(self, operation: ResolvedOperation, tool_input: dict[str, Any]) -> HookResponse:
        kind = operation.kind
        name = tool_input.get("name")
        if not isinstance(name, str) or not name.strip():
            log_diagnostic(logger, "hooks", "BLOCKED: No name", kind=kind.key)
            return HookResponse.block(f"BLOCKED: {kind.title} needs a name")
        name = name.strip()

        issues = []
        if not kind.has_body(tool_input):
            issues.append(f"empty {kind.label} (no {kind.body_field})")
        if kind.instance_checked and not load_session_state(self._settings.session_state_path).instance_up:
            issues.append("instance unreachable")

        decision = self.engine_for(kind).check_create(name, kind.content_text(tool_input))
        message = decision.message
        if issues:
            message += "\nDeploy warning: " + ", ".join(issues)
        return HookResponse(continue_=decision.allow, system_message=message)

    def _pre_update(self, operation: ResolvedOperation, tool_input: dict[str, Any]) -> HookResponse:
        kind = operation.kind
        name = tool_input.get("name") if isinstance(tool_input.get("name"), str) else None
        decision = self.engine_for(kind).check_update(kind.artifact_id(tool_input), name)
        return HookResponse.from_decision(decision)

    def _pre_delete(self, operation: ResolvedOperation, tool_input: dict[str, Any]) -> HookResponse:
        kind = operation.kind
        decision = self.engine_for(kind).check_delete(kind.artifact_id(tool_input))
        return HookResponse.from_decision(decision)

    def _post_deploy(
        self,
        operation: ResolvedOperation,
        tool_input: dict[str, Any],
        tool_output: dict[str, Any],
    ) -> HookResponse:
        kind = operation.kind
        is_create = operation.action == ToolAction.CREATE

        artifact_id = (
            kind.artifact_id(tool_output)
            or kind.artifact_id(tool_output.get("data"))
            or (None if is_create else kind.artifact_id(tool_input))
        )
        name = tool_input.get("name") or tool_output.get("name") or "unnamed"
        success = (
            not tool_output.get("error")
            and tool_output.get("success") is not False
            and artifact_id is not None
        )

        entry = AuditEntry(
            action=DeployAction.CREATE if is_create else DeployAction.UPDATE,
            kind=kind.key,
            artifact_name=str(name),
            artifact_id=artifact_id,
            success=success,
        )
        notes = []
        if not self.audit_log_for(kind).append(entry):
            notes.append("deployment log not written")

        if success:
            result = self.engine_for(kind).register_artifact(
                artifact_id,
                str(name),
                kind.content_text(tool_input)[:SNIPPET_LENGTH],
                action="created" if is_create else "registered",
            )
            if result.changed and result.persisted:
                notes.append(f"registered as {result.record.phase.value}")
            elif result.changed:
                notes.append("governance registry not updated (write failed)")

        message = entry.summary()
        if notes:
            message += " | " + "; ".join(notes)
        return HookResponse.allow(message)
