"""
Pydantic schemas: operation results, metadata documents and form input.
"""

from pmc_deposit.schemas.common import (
    ActionResult,
    GeneralError,
    HealthResponse,
    ValidationIssue,
)
from pmc_deposit.schemas.metadata import (
    HHMI,
    MANUSCRIPT_SLOT,
    EmailProcessing,
    FunderKey,
    GrantEntry,
    PMCMetadataSection,
    ProcessingMessage,
    ProcessingResult,
    apply_pmc_patch,
)

__all__ = [
    "ActionResult",
    "GeneralError",
    "HealthResponse",
    "ValidationIssue",
    "HHMI",
    "MANUSCRIPT_SLOT",
    "EmailProcessing",
    "FunderKey",
    "GrantEntry",
    "PMCMetadataSection",
    "ProcessingMessage",
    "ProcessingResult",
    "apply_pmc_patch",
]
