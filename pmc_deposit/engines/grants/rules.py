"""
Grant list business rules.

Pure functions over a list of GrantEntry. Each returns a new list or raises
MetadataRuleError; the input list is never modified. Invariants upheld by
every successful call:

- no two entries share (funder key, normalised grant id)
- an HHMI entry, when present, is first
- the only HHMI entry cannot be removed through remove_grant
"""

import uuid
from typing import List, Optional, Tuple

from uuid6 import uuid7

from pmc_deposit.engines.grants.migration import ensure_hhmi_first
from pmc_deposit.exceptions import MetadataRuleError
from pmc_deposit.schemas.metadata import HHMI, GrantEntry


def normalize_grant_id(grant_id: Optional[str]) -> str:
    """Trim and collapse internal whitespace."""
    return " ".join((grant_id or "").split())


def grant_key(funder_key: str, grant_id: Optional[str]) -> Tuple[str, str]:
    """Identity of a grant for duplicate detection."""
    return funder_key, normalize_grant_id(grant_id).casefold()


def new_grant_entry_id() -> str:
    return str(uuid.UUID(int=uuid7().int))


def find_duplicate(
    grants: List[GrantEntry],
    funder_key: str,
    grant_id: str,
    *,
    ignore_index: Optional[int] = None,
) -> Optional[GrantEntry]:
    key = grant_key(funder_key, grant_id)
    for index, grant in enumerate(grants):
        if index != ignore_index and grant_key(grant.funder_key, grant.grant_id) == key:
            return grant
    return None


def grants_for_funder(grants: List[GrantEntry], funder_key: str) -> List[GrantEntry]:
    return [g for g in grants if g.funder_key == funder_key]


def add_grant(
    grants: List[GrantEntry],
    funder_key: str,
    grant_id: str,
    investigator_name: Optional[str] = None,
    unique_id: Optional[str] = None,
) -> List[GrantEntry]:
    """Append a grant, then restore HHMI-first ordering."""
    normalized = normalize_grant_id(grant_id)
    if find_duplicate(grants, funder_key, normalized) is not None:
        raise MetadataRuleError(
            f'Grant "{normalized}" for {funder_key} already exists',
            {"funderKey": funder_key, "grantId": normalized},
        )

    is_hhmi = funder_key == HHMI
    entry = GrantEntry(
        id=new_grant_entry_id(),
        funder_key=funder_key,
        grant_id=normalized,
        investigator_name=investigator_name if is_hhmi and investigator_name else None,
        unique_id=unique_id if is_hhmi and unique_id else None,
    )
    return ensure_hhmi_first([*grants, entry])


def remove_grant(grants: List[GrantEntry], entry_id: str) -> List[GrantEntry]:
    """Remove a grant by its generated id; the sole HHMI grant is protected."""
    target = next((g for g in grants if g.id == entry_id), None)
    if target is None:
        raise MetadataRuleError(f"Grant not found with ID: {entry_id}", {"id": entry_id})

    if target.is_hhmi and len(grants_for_funder(grants, HHMI)) == 1:
        raise MetadataRuleError("Cannot remove the only HHMI grant", {"id": entry_id})

    return ensure_hhmi_first([g for g in grants if g.id != entry_id])


def update_grant_id(grants: List[GrantEntry], index: int, grant_id: str) -> List[GrantEntry]:
    """Change the grant id of the entry at ``index``."""
    if index < 0 or index >= len(grants):
        raise MetadataRuleError("Invalid grant index", {"index": index})

    target = grants[index]
    normalized = normalize_grant_id(grant_id)
    if find_duplicate(grants, target.funder_key, normalized, ignore_index=index) is not None:
        raise MetadataRuleError(
            f'Grant "{normalized}" for {target.funder_key} already exists',
            {"funderKey": target.funder_key, "grantId": normalized},
        )

    return [
        g.model_copy(update={"grant_id": normalized}) if i == index else g
        for i, g in enumerate(grants)
    ]


def set_initial_hhmi_grant(
    grants: List[GrantEntry],
    grant_id: str,
    investigator_name: Optional[str] = None,
    unique_id: Optional[str] = None,
) -> List[GrantEntry]:
    """
    Point the HHMI entry at a recipient.

    An existing HHMI entry is updated in place and keeps its generated id;
    otherwise a new HHMI entry is inserted at the front.
    """
    normalized = normalize_grant_id(grant_id)
    hhmi_index = next((i for i, g in enumerate(grants) if g.is_hhmi), None)

    if hhmi_index is None:
        entry = GrantEntry(
            id=new_grant_entry_id(),
            funder_key=HHMI,
            grant_id=normalized,
            investigator_name=investigator_name,
            unique_id=unique_id,
        )
        return [entry, *grants]

    clash = find_duplicate(grants, HHMI, normalized, ignore_index=hhmi_index)
    if clash is not None:
        raise MetadataRuleError(
            f'Grant "{normalized}" for {HHMI} already exists',
            {"funderKey": HHMI, "grantId": normalized},
        )

    updated = list(grants)
    updated[hhmi_index] = grants[hhmi_index].model_copy(update={
        "grant_id": normalized,
        "investigator_name": investigator_name,
        "unique_id": unique_id,
    })
    return updated


def clear_initial_hhmi_grant(grants: List[GrantEntry], unique_id: str) -> List[GrantEntry]:
    """
    Remove the HHMI entry carrying ``unique_id``.

    A missing entry is not an error, so callers can retry blindly.
    """
    index = next(
        (i for i, g in enumerate(grants) if g.is_hhmi and g.unique_id == unique_id),
        None,
    )
    if index is None:
        return grants
    return grants[:index] + grants[index + 1:]
