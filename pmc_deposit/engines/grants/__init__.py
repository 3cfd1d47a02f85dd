"""Grant list rules engine (HHMI-first, uniqueness, legacy migration)."""

from pmc_deposit.engines.grants.funders import PMC_FUNDERS, Funder, funder_abbreviation
from pmc_deposit.engines.grants.migration import (
    ensure_grants_structure,
    ensure_hhmi_first,
    load_grants,
    with_grants,
)
from pmc_deposit.engines.grants.rules import (
    add_grant,
    clear_initial_hhmi_grant,
    find_duplicate,
    grants_for_funder,
    normalize_grant_id,
    remove_grant,
    set_initial_hhmi_grant,
    update_grant_id,
)

__all__ = [
    "PMC_FUNDERS",
    "Funder",
    "funder_abbreviation",
    "ensure_grants_structure",
    "ensure_hhmi_first",
    "load_grants",
    "with_grants",
    "add_grant",
    "clear_initial_hhmi_grant",
    "find_duplicate",
    "grants_for_funder",
    "normalize_grant_id",
    "remove_grant",
    "set_initial_hhmi_grant",
    "update_grant_id",
]
