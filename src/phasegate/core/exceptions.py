"""
phasegate exception hierarchy.

The governance path never lets these escape to the hook caller; they are
raised at the seams (configuration, CLI commands, envelope parsing) and
converted into allow/block decisions or CLI exit codes there.
"""

from typing import Any


class PhaseGateError(Exception):
    """
    Base exception for all phasegate errors.

    Carries a human-readable message for advisories and CLI output plus
    structured details for the diagnostics log.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None):
        """
        Initialize a PhaseGateError.

        Args:
            message: Human-readable error message
            details: Optional structured data for debugging
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation with details."""
        base = self.message
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{base} ({details_str})"
        return base

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(PhaseGateError):
    """
    Invalid or unparseable configuration.

    Raised when an environment variable holds a value that cannot be
    converted to the setting's type.
    """

    def __init__(
        self,
        message: str,
        *,
        env_var: str | None = None,
        value: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if env_var:
            details["env_var"] = env_var
        if value is not None:
            details["value"] = value

        super().__init__(message, details=details)
        self.env_var = env_var
        self.value = value


class ArtifactNotFoundError(PhaseGateError):
    """Raised when an operator command names an untracked artifact."""

    def __init__(
        self,
        message: str,
        *,
        artifact_id: str | None = None,
        kind: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if artifact_id:
            details["artifact_id"] = artifact_id
        if kind:
            details["kind"] = kind

        super().__init__(message, details=details)
        self.artifact_id = artifact_id
        self.kind = kind


class EnvelopeError(PhaseGateError):
    """
    Malformed hook request envelope.

    Raised by strict parsing; the hook runner substitutes an empty request
    instead of propagating it.
    """

    def __init__(
        self,
        message: str,
        *,
        raw_excerpt: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if raw_excerpt:
            details["raw_excerpt"] = raw_excerpt

        super().__init__(message, details=details)
        self.raw_excerpt = raw_excerpt
