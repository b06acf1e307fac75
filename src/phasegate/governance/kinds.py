"""
Artifact kinds governed by the engine.

A kind is a tagged configuration, not a subclass: the engine, store and
hook runner are generic and read field names, store keys, message
terminology and tool-name tables from the kind they were built for.
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ArtifactKind:
    """Field names and terminology for one governed resource type."""

    key: str
    label: str
    store_key: str
    directory: str
    id_fields: tuple[str, ...]
    description_fields: tuple[str, ...]
    body_field: str
    create_tools: frozenset[str]
    update_tools: frozenset[str]
    delete_tools: frozenset[str] = frozenset()
    instance_checked: bool = False

    @property
    def title(self) -> str:
        return self.label[:1].upper() + self.label[1:]

    def artifact_id(self, payload: Any) -> str | None:
        """First non-empty id field in a tool input or output payload."""
        if not isinstance(payload, dict):
            return None
        for field_name in self.id_fields:
            value = payload.get(field_name)
            if value not in (None, ""):
                return str(value)
        return None

    def content_text(self, tool_input: dict[str, Any]) -> str:
        """
        Descriptive text for similarity matching.

        String fields are used as-is. List fields (workflow nodes) contribute
        the ``name`` and ``type`` of each element.
        """
        parts: list[str] = []
        for field_name in self.description_fields:
            value = tool_input.get(field_name)
            if isinstance(value, str):
                parts.append(value)
            elif isinstance(value, list):
                for item in value:
                    if isinstance(item, dict):
                        parts.extend(
                            str(item[k]) for k in ("name", "type") if item.get(k)
                        )
                    elif isinstance(item, str):
                        parts.append(item)
        return " ".join(p.strip() for p in parts if p and p.strip())

    def has_body(self, tool_input: dict[str, Any]) -> bool:
        """Whether the proposed artifact carries a non-empty body."""
        body = tool_input.get(self.body_field)
        if isinstance(body, str):
            return bool(body.strip())
        return bool(body)


WORKFLOW = ArtifactKind(
    key="workflow",
    label="workflow",
    store_key="workflows",
    directory="workflows",
    id_fields=("id", "workflow_id"),
    description_fields=("description", "nodes"),
    body_field="nodes",
    create_tools=frozenset({"n8n_create_workflow"}),
    update_tools=frozenset({"n8n_update_full_workflow", "n8n_update_partial_workflow"}),
    delete_tools=frozenset({"n8n_delete_workflow"}),
    instance_checked=True,
)

AGENT = ArtifactKind(
    key="agent",
    label="voice agent",
    store_key="agents",
    directory="agents",
    id_fields=("agent_id", "id"),
    description_fields=("description", "system_prompt", "first_message"),
    body_field="system_prompt",
    create_tools=frozenset({"create_agent", "create_voice_agent"}),
    update_tools=frozenset({"update_agent", "update_voice_agent"}),
    delete_tools=frozenset({"delete_agent", "delete_voice_agent"}),
)

BUILTIN_KINDS: tuple[ArtifactKind, ...] = (WORKFLOW, AGENT)


def get_kind(key: str) -> ArtifactKind:
    """Look up a built-in kind by key or store key."""
    for kind in BUILTIN_KINDS:
        if key in (kind.key, kind.store_key):
            return kind
    raise KeyError(f"Unknown artifact kind: {key}")
