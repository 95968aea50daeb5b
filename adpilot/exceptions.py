"""Domain exceptions.

Core components (cascade engine, registry, policy) raise these loudly; the
API layer maps them to HTTP responses. `CollaboratorError` is the only one
expected to be caught close to where it is raised.
"""
from __future__ import annotations


class AdPilotError(Exception):
    """Base class for all application errors."""


class ValidationError(AdPilotError, ValueError):
    """A field update or input value is malformed for its target field."""


class CollaboratorError(AdPilotError, RuntimeError):
    """The AI generation service failed, timed out or returned unusable content."""

    def __init__(self, message: str, *, operation: str | None = None):
        super().__init__(message)
        self.operation = operation


class RegistryError(AdPilotError):
    """Misuse of the campaign registry."""


class DuplicateIdError(RegistryError):
    def __init__(self, campaign_id: str):
        super().__init__(f"Campaign '{campaign_id}' already exists")
        self.campaign_id = campaign_id


class NotFoundError(RegistryError, LookupError):
    def __init__(self, campaign_id: str):
        super().__init__(f"Campaign '{campaign_id}' not found")
        self.campaign_id = campaign_id


class PolicyError(AdPilotError):
    """A status change rejected by the status/budget policy."""


class InvalidTransitionError(PolicyError):
    def __init__(self, current: str, target: str):
        super().__init__(f"Cannot move campaign from {current} to {target}")
        self.current = current
        self.target = target


class CapViolationError(PolicyError):
    """The requested status would break the hard cap lock."""


__all__ = [
    "AdPilotError",
    "ValidationError",
    "CollaboratorError",
    "RegistryError",
    "DuplicateIdError",
    "NotFoundError",
    "PolicyError",
    "InvalidTransitionError",
    "CapViolationError",
]
