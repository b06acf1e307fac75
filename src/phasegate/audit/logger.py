"""
Audit log appender for phasegate.

Appends deployment entries to a JSONL file. The file is only ever opened
in append mode: existing lines are never read back, rewritten or
truncated by the writer. Write failures are logged and swallowed.
"""

import fcntl
import json
import logging
import os
from pathlib import Path

from pydantic import ValidationError

from phasegate.audit.models import AuditEntry
from phasegate.monitoring.diagnostics import log_diagnostic

logger = logging.getLogger(__name__)


class AuditLog:
    """
    Append-only deployment log.

    Each entry is a single ``write`` of one newline-terminated line on a
    descriptor opened with O_APPEND, under an exclusive ``flock`` where the
    platform supports it.
    """

    def __init__(self, path: Path):
        """
        Initialize the audit log.

        Args:
            path: JSONL file to append to; parent directories are created on first write
        """
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def append(self, entry: AuditEntry) -> bool:
        """
        Append one entry.

        Returns:
            True if the line was written, False otherwise
        """
        line = entry.to_log_line() + "\n"

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._path, "a", encoding="utf-8") as f:
                try:
                    fcntl.flock(f.fileno(), fcntl.LOCK_EX)
                except OSError:
                    pass

                try:
                    f.write(line)
                    f.flush()
                    os.fsync(f.fileno())
                finally:
                    try:
                        fcntl.flock(f.fileno(), fcntl.LOCK_UN)
                    except OSError:
                        pass
        except OSError as e:
            log_diagnostic(
                logger, "audit", "Failed to append deployment log entry",
                level=logging.ERROR, path=str(self._path), error=str(e),
            )
            return False

        log_diagnostic(logger, "audit", "Logged", **entry.model_dump(mode="json"))
        return True

    def read_entries(self) -> list[AuditEntry]:
        """
        Read back all parseable entries, oldest first.

        Intended for operators and tests; malformed lines are skipped.
        """
        try:
            with open(self._path, encoding="utf-8", errors="replace") as f:
                lines = f.readlines()
        except FileNotFoundError:
            return []
        except OSError as e:
            log_diagnostic(
                logger, "audit", "Failed to read deployment log",
                level=logging.WARNING, path=str(self._path), error=str(e),
            )
            return []

        entries = []
        for line in lines:
            line = line.strip()
            if not line:
                continue
            try:
                entries.append(AuditEntry(**json.loads(line)))
            except (json.JSONDecodeError, ValidationError, TypeError):
                continue
        return entries
