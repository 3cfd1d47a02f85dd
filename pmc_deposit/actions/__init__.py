"""Form-driven metadata actions. Every action returns an ActionResult."""

from pmc_deposit.actions.grants import (
    add_grant,
    clear_initial_hhmi_grant,
    remove_grant,
    set_initial_hhmi_grant,
    update_grant_id,
)
from pmc_deposit.actions.publication import (
    reset_publication_metadata,
    update_publication_journal_name,
    update_publication_metadata_by_doi,
    update_publication_title,
)
from pmc_deposit.actions.reviewer import (
    remove_reviewer,
    set_preview_deposit,
    unset_preview_deposit,
    update_certify_manuscript,
    update_designate_reviewer,
    update_reviewer_email,
    update_reviewer_first_name,
    update_reviewer_last_name,
)

__all__ = [
    "add_grant",
    "clear_initial_hhmi_grant",
    "remove_grant",
    "set_initial_hhmi_grant",
    "update_grant_id",
    "reset_publication_metadata",
    "update_publication_journal_name",
    "update_publication_metadata_by_doi",
    "update_publication_title",
    "remove_reviewer",
    "set_preview_deposit",
    "unset_preview_deposit",
    "update_certify_manuscript",
    "update_designate_reviewer",
    "update_reviewer_email",
    "update_reviewer_first_name",
    "update_reviewer_last_name",
]
