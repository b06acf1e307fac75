"""
Health check for the automation instance.

The session bootstrap probes ``{instance_url}/healthz`` once per session
and records the outcome so that deploy checks can warn when the instance
is unreachable. The probe always resolves to a result; timeouts and
transport errors map to UNHEALTHY.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

import httpx

HEALTH_PATH = "/healthz"


class HealthStatus(str, Enum):
    """Health status levels."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


@dataclass
class HealthCheckResult:
    """Result of a health check."""

    name: str
    status: HealthStatus
    message: str = ""
    details: dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    duration_ms: float | None = None

    @property
    def is_healthy(self) -> bool:
        return self.status == HealthStatus.HEALTHY

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "status": self.status.value,
            "message": self.message,
            "details": self.details,
            "timestamp": self.timestamp,
            "duration_ms": self.duration_ms,
        }


def check_instance(
    base_url: str,
    timeout: float = 2.0,
    transport: httpx.BaseTransport | None = None,
) -> HealthCheckResult:
    """
    Probe the automation instance health endpoint.

    Args:
        base_url: Instance base URL, e.g. http://localhost:5678
        timeout: Request timeout in seconds
        transport: Optional httpx transport (tests inject a MockTransport)

    Returns:
        HealthCheckResult; HEALTHY only for an HTTP 200 response
    """
    started = time.monotonic()
    url = base_url.rstrip("/") + HEALTH_PATH
    details: dict[str, Any] = {"url": url}

    try:
        with httpx.Client(timeout=timeout, transport=transport) as client:
            response = client.get(url)
    except httpx.TimeoutException:
        status, message = HealthStatus.UNHEALTHY, "Instance health check timed out"
        details["error"] = "timeout"
    except httpx.HTTPError as e:
        status, message = HealthStatus.UNHEALTHY, f"Instance unreachable: {e}"
        details["error"] = str(e)
    else:
        details["status_code"] = response.status_code
        if response.status_code == 200:
            status, message = HealthStatus.HEALTHY, "Instance is reachable"
        else:
            status, message = HealthStatus.UNHEALTHY, f"Instance returned {response.status_code}"

    return HealthCheckResult(
        name="instance",
        status=status,
        message=message,
        details=details,
        duration_ms=(time.monotonic() - started) * 1000,
    )
