"""
Governance Store - durable id -> artifact record mapping.

One YAML document per artifact kind, versioned alongside the project:

    workflows:
      wf_1:
        id: wf_1
        name: Send Slack Alert
        phase: PROD
        ...

``load`` and ``save`` never raise. A missing or corrupt document loads as
empty; a failed write returns False. Writes go through a temporary file
and ``os.replace`` so readers never see a half-written document.
Concurrent writers are last-writer-wins.
"""

import logging
import os
from datetime import date, datetime
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from phasegate.core.models import ArtifactRecord, GovernanceDocument
from phasegate.monitoring.diagnostics import log_diagnostic

logger = logging.getLogger(__name__)

DEFAULT_STORE_KEY = "artifacts"


class GovernanceStore:
    """
    YAML-backed governance document for one artifact kind.

    The store holds no state between calls: every ``load`` reads the file
    and every ``save`` rewrites it in full.
    """

    def __init__(self, path: Path, store_key: str = DEFAULT_STORE_KEY):
        """
        Initialize the store.

        Args:
            path: Location of the YAML document
            store_key: Top-level key holding the id -> record mapping
        """
        self._path = Path(path)
        self._store_key = store_key

    @property
    def path(self) -> Path:
        return self._path

    @property
    def store_key(self) -> str:
        return self._store_key

    def load(self) -> GovernanceDocument:
        """
        Load the governance document.

        Returns:
            The stored document, or an empty one if the file is missing,
            unreadable or malformed. Individual invalid records are skipped.
        """
        try:
            raw = yaml.safe_load(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return GovernanceDocument()
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
            log_diagnostic(
                logger, "store", "Governance document unreadable, using empty document",
                level=logging.WARNING, path=str(self._path), error=str(e),
            )
            return GovernanceDocument()

        if raw is None:
            return GovernanceDocument()

        section = raw.get(self._store_key) if isinstance(raw, dict) else None
        if section is None and isinstance(raw, dict):
            section = {}
        if not isinstance(section, dict):
            log_diagnostic(
                logger, "store", "Governance document malformed, using empty document",
                level=logging.WARNING, path=str(self._path), store_key=self._store_key,
            )
            return GovernanceDocument()

        document = GovernanceDocument()
        for key, data in section.items():
            record = self._parse_record(key, data)
            if record is not None:
                document.artifacts[record.id] = record
        return document

    def _parse_record(self, key: Any, data: Any) -> ArtifactRecord | None:
        """Validate one stored record; invalid records are logged and skipped."""
        if not isinstance(data, dict):
            log_diagnostic(
                logger, "store", "Skipping non-mapping record",
                level=logging.WARNING, artifact_id=str(key),
            )
            return None

        fields = {k: _scalar_to_text(v) for k, v in data.items()}
        fields["id"] = str(fields.get("id") or key)
        try:
            return ArtifactRecord(**fields)
        except (ValidationError, TypeError) as e:
            log_diagnostic(
                logger, "store", "Skipping invalid record",
                level=logging.WARNING, artifact_id=str(key), error=str(e),
            )
            return None

    def save(self, document: GovernanceDocument) -> bool:
        """
        Persist the full document atomically.

        Returns:
            True on success, False if the document could not be written
        """
        temp_path = self._path.with_name(f"{self._path.name}.tmp")
        payload = {
            self._store_key: {
                artifact_id: record.model_dump(mode="json")
                for artifact_id, record in document.artifacts.items()
            }
        }

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            temp_path.write_text(
                yaml.safe_dump(payload, sort_keys=False, allow_unicode=True),
                encoding="utf-8",
            )
            os.replace(temp_path, self._path)
        except (OSError, yaml.YAMLError) as e:
            try:
                temp_path.unlink(missing_ok=True)
            except OSError:
                pass
            log_diagnostic(
                logger, "store", "Failed to save governance document",
                level=logging.ERROR, path=str(self._path), error=str(e),
            )
            return False

        return True


def _scalar_to_text(value: Any) -> Any:
    """Undo YAML's implicit typing of hand-edited timestamps and numeric names."""
    if isinstance(value, list):
        return [_scalar_to_text(item) for item in value]
    if isinstance(value, dict):
        return {k: _scalar_to_text(v) for k, v in value.items()}
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%dT%H:%M:%SZ") if value.tzinfo is None else value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value
