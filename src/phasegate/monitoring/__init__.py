"""
phasegate Monitoring Module.

Diagnostic logging for hook invocations and the instance health probe.
"""

__all__ = [
    "DiagnosticFormatter",
    "QuietFileHandler",
    "configure_diagnostics",
    "log_diagnostic",
    "HealthCheckResult",
    "HealthStatus",
    "check_instance",
]

from phasegate.monitoring.diagnostics import (
    DiagnosticFormatter,
    QuietFileHandler,
    configure_diagnostics,
    log_diagnostic,
)
from phasegate.monitoring.health import HealthCheckResult, HealthStatus, check_instance
