"""
Funder catalogue for PMC deposits.
"""

from typing import Dict, NamedTuple

from pmc_deposit.schemas.metadata import FunderKey


class Funder(NamedTuple):
    key: str
    name: str
    abbreviation: str


PMC_FUNDERS: Dict[str, Funder] = {
    f.key: f
    for f in (
        Funder(FunderKey.HHMI.value, "Howard Hughes Medical Institute", "HHMI"),
        Funder(FunderKey.NIH.value, "National Institutes of Health", "NIH"),
        Funder(FunderKey.AHRQ.value, "Agency for Healthcare Research and Quality", "AHRQ"),
        Funder(FunderKey.ACL.value, "Administration for Community Living", "ACL"),
        Funder(FunderKey.ASPR.value, "Administration for Strategic Preparedness and Response", "ASPR"),
        Funder(FunderKey.CDC.value, "Centers for Disease Control and Prevention", "CDC"),
        Funder(FunderKey.EPA.value, "Environmental Protection Agency", "EPA"),
        Funder(FunderKey.FDA.value, "Food and Drug Administration", "FDA"),
        Funder(FunderKey.NASA.value, "National Aeronautics and Space Administration", "NASA"),
        Funder(FunderKey.NIST.value, "National Institute of Standards and Technology", "NIST"),
        Funder(FunderKey.VA.value, "Department of Veterans Affairs", "VA"),
        Funder(FunderKey.DHS.value, "Department of Homeland Security", "DHS"),
    )
}


def funder_abbreviation(funder_key: str) -> str:
    """Display abbreviation for a funder key, falling back to the upper-cased key."""
    funder = PMC_FUNDERS.get(funder_key)
    return funder.abbreviation if funder else funder_key.upper()
