"""
Hook envelope - the JSON request/response boundary with the host.

The host delivers one JSON request per invocation and expects one JSON
response. The tool name is resolved here, once, into a typed
``ResolvedOperation``; nothing downstream inspects tool-name strings.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from phasegate.core.exceptions import EnvelopeError
from phasegate.core.models import Decision
from phasegate.governance.kinds import BUILTIN_KINDS, ArtifactKind

EXIT_ALLOW = 0
EXIT_BLOCK = 2

POST_TOOL_EVENT = "PostToolUse"


class HookStage(str, Enum):
    """Whether the hook runs before or after the host executes the tool."""

    PRE = "pre"
    POST = "post"


class ToolAction(str, Enum):
    """Artifact mutations the hooks intercept."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class HookRequest(BaseModel):
    """Request envelope delivered by the host."""

    tool_name: str = ""
    tool_input: dict[str, Any] = Field(default_factory=dict)
    tool_output: dict[str, Any] | None = None
    hook_event_name: str | None = None
    session_id: str | None = None

    model_config = {"extra": "allow"}

    @field_validator("tool_input", mode="before")
    @classmethod
    def _coerce_input(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else {}

    @field_validator("tool_output", mode="before")
    @classmethod
    def _coerce_output(cls, value: Any) -> Any:
        return _output_to_dict(value)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "HookRequest":
        """Build from a decoded JSON object; ``tool_response`` is accepted as the output."""
        data = dict(payload)
        if data.get("tool_output") is None and "tool_response" in data:
            data["tool_output"] = data.pop("tool_response")
        return cls(**data)


class HookResponse(BaseModel):
    """Response envelope written back to the host."""

    continue_: bool = Field(default=True, alias="continue")
    system_message: str | None = Field(default=None, alias="systemMessage")

    model_config = {"populate_by_name": True}

    @property
    def exit_code(self) -> int:
        return EXIT_ALLOW if self.continue_ else EXIT_BLOCK

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)

    @classmethod
    def allow(cls, message: str | None = None) -> "HookResponse":
        return cls(continue_=True, system_message=message or None)

    @classmethod
    def block(cls, message: str) -> "HookResponse":
        return cls(continue_=False, system_message=message)

    @classmethod
    def from_decision(cls, decision: Decision) -> "HookResponse":
        return cls(continue_=decision.allow, system_message=decision.message or None)


@dataclass(frozen=True)
class ResolvedOperation:
    """Typed view of which governed mutation a request carries."""

    kind: ArtifactKind
    action: ToolAction
    stage: HookStage
    tool_name: str


def parse_request(raw: str | bytes | None, strict: bool = False) -> HookRequest:
    """
    Decode a request envelope.

    Args:
        raw: Raw stdin contents
        strict: Raise instead of substituting an empty request

    Returns:
        The parsed request, or an empty request for unparseable input

    Raises:
        EnvelopeError: In strict mode, for input that is not a JSON object
    """
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    if not raw or not raw.strip():
        return HookRequest()

    try:
        payload = json.loads(raw)
        if not isinstance(payload, dict):
            raise EnvelopeError("Hook request must be a JSON object", raw_excerpt=raw[:80])
        return HookRequest.from_payload(payload)
    except (json.JSONDecodeError, ValidationError, TypeError) as e:
        if strict:
            raise EnvelopeError(f"Invalid hook request: {e}", raw_excerpt=raw[:80]) from e
        return HookRequest()
    except EnvelopeError:
        if strict:
            raise
        return HookRequest()


def bare_tool_name(tool_name: str) -> str:
    """Strip an ``mcp__<server>__`` prefix from a tool name."""
    if tool_name.startswith("mcp__"):
        return tool_name.rsplit("__", 1)[-1]
    return tool_name


def resolve_stage(request: HookRequest) -> HookStage:
    if request.hook_event_name == POST_TOOL_EVENT or request.tool_output is not None:
        return HookStage.POST
    return HookStage.PRE


def resolve_operation(
    request: HookRequest,
    kinds: tuple[ArtifactKind, ...] = BUILTIN_KINDS,
) -> ResolvedOperation | None:
    """
    Map the request's tool name onto a kind and action.

    Returns:
        The resolved operation, or None for tools no kind governs
    """
    name = bare_tool_name(request.tool_name)
    if not name:
        return None

    stage = resolve_stage(request)
    for kind in kinds:
        for action, tools in (
            (ToolAction.CREATE, kind.create_tools),
            (ToolAction.UPDATE, kind.update_tools),
            (ToolAction.DELETE, kind.delete_tools),
        ):
            if name in tools:
                return ResolvedOperation(
                    kind=kind, action=action, stage=stage, tool_name=request.tool_name
                )
    return None


def _output_to_dict(value: Any) -> dict[str, Any] | None:
    """
    Normalize a tool result into a dict.

    Results may arrive as an object, a JSON string, or a list of MCP content
    blocks whose first text block holds JSON.
    """
    if value is None:
        return None
    if isinstance(value, dict):
        if isinstance(value.get("content"), list) and not value.get("id"):
            nested = _output_to_dict(value["content"])
            if nested and "raw" not in nested:
                return {**value, **nested}
        return value
    if isinstance(value, str):
        try:
            decoded = json.loads(value)
        except json.JSONDecodeError:
            return {"raw": value}
        return decoded if isinstance(decoded, dict) else {"raw": value}
    if isinstance(value, list):
        for block in value:
            if isinstance(block, dict) and isinstance(block.get("text"), str):
                return _output_to_dict(block["text"])
        return {"raw": value}
    return {"raw": value}
