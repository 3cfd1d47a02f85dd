"""Deposit metadata validation."""

from pmc_deposit.engines.validation.pmc_validator import (
    GRANT_ID_REQUIRED,
    HHMI_RECIPIENT_REQUIRED,
    MANUSCRIPT_REQUIRED,
    validate_pmc_metadata,
)

__all__ = [
    "GRANT_ID_REQUIRED",
    "HHMI_RECIPIENT_REQUIRED",
    "MANUSCRIPT_REQUIRED",
    "validate_pmc_metadata",
]
