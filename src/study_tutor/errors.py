"""Exception hierarchy shared by study-tutor commands."""

from __future__ import annotations

__all__ = [
    "TutorError",
    "CredentialError",
    "ServiceError",
    "MalformedResponseError",
]


class TutorError(RuntimeError):
    """Base class for failures surfaced to the student."""


class CredentialError(TutorError):
    """Raised when the API key is missing or rejected by the service."""


class ServiceError(TutorError):
    """Raised for transient network or service failures."""


class MalformedResponseError(TutorError):
    """Raised when a structured response cannot be parsed."""
