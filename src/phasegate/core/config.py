"""
Runtime configuration loaded from the environment.

Environment variables:
- PHASEGATE_ROOT: Project root holding workflows/, agents/ and .claude/ (default: cwd)
- PHASEGATE_LOG_DIR: Diagnostics and session state directory (default: <root>/.claude/logs)
- N8N_API_URL: Automation instance base URL for the health check
- PHASEGATE_HEALTH_TIMEOUT: Health check timeout in seconds (default: 2.0)
- PHASEGATE_LOG_LEVEL: Diagnostics log level (default: INFO)
"""

import logging
import os
from pathlib import Path

from pydantic import BaseModel

from phasegate.core.exceptions import ConfigurationError

DEFAULT_INSTANCE_URL = "http://localhost:5678"
DEFAULT_HEALTH_TIMEOUT = 2.0

STORE_FILENAME = "governance.yaml"
AUDIT_LOG_FILENAME = "deployment-log.jsonl"
DIAGNOSTICS_FILENAME = "hooks.log"
SESSION_STATE_FILENAME = "session-state.json"


class Settings(BaseModel):
    """Resolved phasegate settings."""

    root: Path
    log_dir: Path
    instance_url: str = DEFAULT_INSTANCE_URL
    health_timeout: float = DEFAULT_HEALTH_TIMEOUT
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, root: Path | None = None) -> "Settings":
        """
        Load settings from environment variables.

        Args:
            root: Explicit project root, overriding PHASEGATE_ROOT

        Raises:
            ConfigurationError: If a numeric or level setting cannot be parsed
        """
        resolved_root = Path(root or os.getenv("PHASEGATE_ROOT") or Path.cwd())
        log_dir_env = os.getenv("PHASEGATE_LOG_DIR")
        log_dir = Path(log_dir_env) if log_dir_env else resolved_root / ".claude" / "logs"

        timeout_raw = os.getenv("PHASEGATE_HEALTH_TIMEOUT")
        health_timeout = DEFAULT_HEALTH_TIMEOUT
        if timeout_raw:
            try:
                health_timeout = float(timeout_raw)
            except ValueError:
                raise ConfigurationError(
                    "Health check timeout must be a number of seconds",
                    env_var="PHASEGATE_HEALTH_TIMEOUT",
                    value=timeout_raw,
                ) from None
            if health_timeout <= 0:
                raise ConfigurationError(
                    "Health check timeout must be positive",
                    env_var="PHASEGATE_HEALTH_TIMEOUT",
                    value=timeout_raw,
                )

        log_level = os.getenv("PHASEGATE_LOG_LEVEL", "INFO").upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise ConfigurationError(
                f"Unknown log level: {log_level}",
                env_var="PHASEGATE_LOG_LEVEL",
                value=log_level,
            )

        return cls(
            root=resolved_root,
            log_dir=log_dir,
            instance_url=os.getenv("N8N_API_URL", DEFAULT_INSTANCE_URL).rstrip("/"),
            health_timeout=health_timeout,
            log_level=log_level,
        )

    def kind_dir(self, directory: str) -> Path:
        return self.root / directory

    def store_path(self, directory: str) -> Path:
        """Governance document for the kind stored under ``directory``."""
        return self.kind_dir(directory) / STORE_FILENAME

    def audit_log_path(self, directory: str) -> Path:
        return self.kind_dir(directory) / AUDIT_LOG_FILENAME

    @property
    def diagnostics_path(self) -> Path:
        return self.log_dir / DIAGNOSTICS_FILENAME

    @property
    def session_state_path(self) -> Path:
        return self.log_dir / SESSION_STATE_FILENAME
