"""
Error taxonomy for the PMC deposit workflow.

Operations that return tagged results translate these at their boundary;
clone and status-transition operations let them propagate.
"""

from typing import Any, Optional


class PMCError(Exception):
    """Base class for workflow errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class RecordNotFoundError(PMCError, LookupError):
    """A referenced entity does not exist."""


class InvariantViolationError(PMCError):
    """A condition the system itself maintains was found false."""


class ConcurrentUpdateError(PMCError):
    """Optimistic concurrency retries were exhausted."""


class MetadataRuleError(PMCError, ValueError):
    """A metadata transform rejected the change (duplicate grant, sole HHMI, ...)."""


class ActorRequiredError(PMCError, PermissionError):
    """The operation needs an acting user and none was supplied."""
