"""
Display fields derived from the ``pmc`` section when a deposit is confirmed.
"""

from typing import Any, Dict, List, Mapping

from pmc_deposit.engines.grants.funders import funder_abbreviation


def _funder_keys(pmc: Mapping[str, Any]) -> List[str]:
    keys: List[str] = []
    grants = pmc.get("grants")
    if isinstance(grants, list):
        for grant in grants:
            key = grant.get("funderKey") if isinstance(grant, Mapping) else None
            if key and key not in keys:
                keys.append(key)
    else:
        keys = [k for k in pmc.get("funders") or [] if isinstance(k, str)]
    return keys


def describe_deposit(pmc: Mapping[str, Any]) -> str:
    """WorkVersion description: journal, funders and nominated reviewer."""
    funders = _funder_keys(pmc)
    funded_by = ", ".join(funder_abbreviation(k) for k in funders) if funders else "None specified"
    parts = [f'A PMC deposit of an AAM from the journal: "{pmc.get("journalName")}", funded by {funded_by}']

    first = pmc.get("reviewerFirstName")
    last = pmc.get("reviewerLastName")
    if first and last:
        parts.append(f"Nominated reviewer for the PMC Deposit is: {first} {last}")
    return ". ".join(parts)


def _author_name(author: Mapping[str, Any]) -> str:
    return " ".join(p for p in (author.get("given"), author.get("family")) if p).strip()


def format_authors(pmc: Mapping[str, Any]) -> List[str]:
    """
    Author display names.

    DOI authors with ``sequence == "first"`` come first, otherwise their
    order is kept. Without DOI authors the deposit owner is the author.
    """
    doi_authors = [a for a in pmc.get("doiAuthors") or [] if isinstance(a, Mapping)]
    if doi_authors:
        ordered = sorted(doi_authors, key=lambda a: a.get("sequence") != "first")
        return [name for name in (_author_name(a) for a in ordered) if name]

    first = pmc.get("ownerFirstName")
    last = pmc.get("ownerLastName")
    if first and last:
        return [f"{first} {last}"]
    return []


def confirmed_display_fields(pmc: Dict[str, Any]) -> Dict[str, Any]:
    """WorkVersion columns set on confirmation."""
    return {
        "title": pmc.get("title"),
        "description": describe_deposit(pmc),
        "authors": format_authors(pmc),
        "date": pmc.get("doiPublishedDate"),
        "doi": pmc.get("doiUrl"),
    }
