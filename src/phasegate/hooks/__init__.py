"""
phasegate Hooks Module.

Host-facing boundary: request/response envelopes, typed operation
resolution, the hook runner and the session bootstrap.
"""

from phasegate.hooks.envelope import (
    EXIT_ALLOW,
    EXIT_BLOCK,
    HookRequest,
    HookResponse,
    HookStage,
    ResolvedOperation,
    ToolAction,
    parse_request,
    resolve_operation,
)
from phasegate.hooks.runner import HookRunner
from phasegate.hooks.session import SessionState, bootstrap_session, load_session_state

__all__ = [
    # Envelope
    "EXIT_ALLOW",
    "EXIT_BLOCK",
    "HookRequest",
    "HookResponse",
    "HookStage",
    "ResolvedOperation",
    "ToolAction",
    "parse_request",
    "resolve_operation",
    # Runner
    "HookRunner",
    # Session
    "SessionState",
    "bootstrap_session",
    "load_session_state",
]
