"""Versioned metadata documents with optimistic concurrency."""

from pmc_deposit.kernel.metadata.occ import run_with_occ, safe_json_update
from pmc_deposit.kernel.metadata.pmc_store import PMC_SECTION, UPDATE_FAILED, PMCMetadataStore

__all__ = [
    "run_with_occ",
    "safe_json_update",
    "PMC_SECTION",
    "UPDATE_FAILED",
    "PMCMetadataStore",
]
