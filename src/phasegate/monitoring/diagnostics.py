"""
Diagnostic log stream for hook invocations.

Every governance check emits one structured record through the standard
``logging`` module. Records are written to ``<log_dir>/hooks.log`` as

    [2024-01-15T10:00:00Z] [governance] check_update
      Data: {"artifact_id": "wf_1", "allow": false, ...}

Handler failures are swallowed so logging can never break a hook.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

ROOT_LOGGER_NAME = "phasegate"

_HANDLER_MARKER = "_phasegate_diagnostics"


class DiagnosticFormatter(logging.Formatter):
    """Render ``[timestamp] [component] message`` plus the ``data`` extra."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc).strftime(
            "%Y-%m-%dT%H:%M:%SZ"
        )
        component = getattr(record, "component", None) or record.name.rsplit(".", 1)[-1]
        line = f"[{timestamp}] [{component}] {record.getMessage()}"

        data = getattr(record, "data", None)
        if data:
            rendered = json.dumps(data, indent=2, default=str, sort_keys=True)
            line += "\n  Data: " + rendered.replace("\n", "\n  ")
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class QuietFileHandler(logging.FileHandler):
    """File handler that never reports its own failures."""

    def __init__(self, filename: Path, encoding: str = "utf-8"):
        super().__init__(filename, mode="a", encoding=encoding, delay=True)

    def handleError(self, record: logging.LogRecord) -> None:
        return None


def configure_diagnostics(log_dir: Path, level: str | int = logging.INFO) -> logging.Logger:
    """
    Attach the diagnostics file handler to the package logger.

    Safe to call repeatedly: an existing handler for the same file is
    reused. If the directory cannot be created the logger is left
    without a file handler.

    Args:
        log_dir: Directory holding hooks.log
        level: Logging level for the package logger

    Returns:
        The configured package logger
    """
    from phasegate.core.config import DIAGNOSTICS_FILENAME

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(level)
    log_path = Path(log_dir) / DIAGNOSTICS_FILENAME

    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_MARKER, None) is None:
            continue
        if Path(handler.baseFilename) == log_path.absolute():
            return root
        root.removeHandler(handler)
        handler.close()

    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError:
        return root

    handler = QuietFileHandler(log_path)
    handler.setFormatter(DiagnosticFormatter())
    setattr(handler, _HANDLER_MARKER, True)
    root.addHandler(handler)
    return root


def log_diagnostic(
    logger: logging.Logger,
    component: str,
    message: str,
    level: int = logging.INFO,
    **data,
) -> None:
    """Emit one structured diagnostic record; never raises."""
    try:
        logger.log(level, message, extra={"component": component, "data": data})
    except Exception:
        pass
