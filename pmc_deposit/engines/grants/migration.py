"""
Grant list structure: legacy migration and HHMI-first ordering.

Older deposits stored funding as a flat list of funder keys under
``pmc.funders``. The first grant operation on such a document converts it
into ``pmc.grants`` entries with empty grant ids. Documents that already
carry ``grants`` pass through untouched.
"""

import uuid
from typing import Any, Callable, Dict, List

from pmc_deposit.schemas.metadata import HHMI, GrantEntry

# Migrated grant ids derive from the legacy position: migrating the same
# document twice yields identical grants.
_LEGACY_GRANT_NAMESPACE = uuid.UUID("4d2f3a4e-5c1b-4b8e-9f0a-7e6d5c4b3a21")


def has_grants_structure(pmc: Dict[str, Any]) -> bool:
    return isinstance(pmc.get("grants"), list)


def ensure_grants_structure(pmc: Dict[str, Any]) -> Dict[str, Any]:
    """
    Return a document guaranteed to carry a ``grants`` list.

    The source document is never mutated. An already-migrated document is
    returned as is.
    """
    if has_grants_structure(pmc):
        return pmc

    migrated = {key: value for key, value in pmc.items() if key != "funders"}
    funders = pmc.get("funders") or []

    grants: List[Dict[str, Any]] = []
    seen = set()
    for position, funder_key in enumerate(funders):
        if not isinstance(funder_key, str) or funder_key in seen:
            continue
        seen.add(funder_key)
        grants.append({
            "id": str(uuid.uuid5(_LEGACY_GRANT_NAMESPACE, f"{position}:{funder_key}")),
            "funderKey": funder_key,
            "grantId": "",
        })

    migrated["grants"] = [
        g.to_document()
        for g in ensure_hhmi_first([GrantEntry.model_validate(g) for g in grants])
    ]
    return migrated


def ensure_hhmi_first(grants: List[GrantEntry]) -> List[GrantEntry]:
    """Stable partition: HHMI entries first, everything else in its original order."""
    return [g for g in grants if g.funder_key == HHMI] + [g for g in grants if g.funder_key != HHMI]


def load_grants(pmc: Dict[str, Any]) -> List[GrantEntry]:
    return [GrantEntry.model_validate(g) for g in pmc.get("grants") or []]


def with_grants(
    pmc: Dict[str, Any],
    change: Callable[[List[GrantEntry]], List[GrantEntry]],
) -> Dict[str, Any]:
    """
    Migrate ``pmc`` if needed, apply ``change`` to its grant list and return
    the updated document.
    """
    migrated = ensure_grants_structure(pmc)
    updated = change(load_grants(migrated))
    return {**migrated, "grants": [g.to_document() for g in updated]}
