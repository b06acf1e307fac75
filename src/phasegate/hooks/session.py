"""
Session bootstrap.

Runs once when an editor session starts: probes the automation instance,
makes sure the local workflow directories exist, counts local workflow
exports, and records the outcome for later deploy checks.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

import httpx
from pydantic import BaseModel, Field, ValidationError

from phasegate.core.config import Settings
from phasegate.monitoring.diagnostics import log_diagnostic
from phasegate.monitoring.health import check_instance

logger = logging.getLogger(__name__)

WORKFLOW_DIRS = ("workflows/dev", "workflows/staging", "workflows/production")


class SessionState(BaseModel):
    """Facts recorded at session start for later hooks."""

    instance_up: bool = True
    workflow_count: int = 0
    timestamp: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    )


def load_session_state(path: Path) -> SessionState:
    """Read recorded session state; assume the instance is up when nothing is recorded."""
    try:
        return SessionState(**json.loads(Path(path).read_text(encoding="utf-8")))
    except (OSError, json.JSONDecodeError, ValidationError, TypeError):
        return SessionState()


def count_workflow_exports(root: Path) -> int:
    """Count ``*.json`` workflow exports across the local workflow directories."""
    total = 0
    for rel in WORKFLOW_DIRS:
        directory = root / rel
        if directory.is_dir():
            total += sum(1 for p in directory.glob("*.json") if p.is_file())
    return total


def bootstrap_session(
    settings: Settings,
    transport: httpx.BaseTransport | None = None,
) -> tuple[SessionState, str]:
    """
    Prepare the workspace and record session state.

    Args:
        settings: Resolved settings
        transport: Optional httpx transport for the health probe

    Returns:
        The recorded state and a one-line advisory for the host
    """
    created = []
    for rel in WORKFLOW_DIRS:
        directory = settings.root / rel
        if not directory.exists():
            directory.mkdir(parents=True, exist_ok=True)
            created.append(rel)

    health = check_instance(settings.instance_url, settings.health_timeout, transport=transport)
    state = SessionState(
        instance_up=health.is_healthy,
        workflow_count=count_workflow_exports(settings.root),
    )

    try:
        settings.session_state_path.parent.mkdir(parents=True, exist_ok=True)
        settings.session_state_path.write_text(state.model_dump_json(), encoding="utf-8")
    except OSError as e:
        log_diagnostic(
            logger, "session", "Failed to write session state",
            level=logging.ERROR, path=str(settings.session_state_path), error=str(e),
        )

    instance = "up" if state.instance_up else "DOWN"
    message = f"n8n: {state.workflow_count} local | instance {instance}"
    if created:
        message += " | created: " + ", ".join(created)

    log_diagnostic(
        logger, "session", "Session initialized",
        workflow_count=state.workflow_count,
        instance_up=state.instance_up,
        health=health.to_dict(),
        created=created,
    )
    return state, message
