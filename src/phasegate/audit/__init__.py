"""
phasegate Audit Module.

Append-only deployment log, one JSON object per line.

Usage:
    >>> from phasegate.audit import AuditEntry, AuditLog, DeployAction
    >>>
    >>> log = AuditLog(Path("workflows/deployment-log.jsonl"))
    >>> log.append(AuditEntry(
    ...     action=DeployAction.CREATE,
    ...     kind="workflow",
    ...     artifact_name="Send Slack Alert",
    ...     artifact_id="wf_1",
    ...     success=True,
    ... ))
"""

from phasegate.audit.logger import AuditLog
from phasegate.audit.models import AuditEntry, DeployAction

__all__ = [
    "AuditEntry",
    "AuditLog",
    "DeployAction",
]
