"""DOI parsing and Crossref lookup."""

from pmc_deposit.engines.doi.crossref import (
    CrossrefClient,
    CrossrefWork,
    DoiLookupError,
    DoiNotFoundError,
)
from pmc_deposit.engines.doi.identifiers import (
    extract_doi,
    is_valid_doi,
    published_date_from_parts,
    select_issn,
)

__all__ = [
    "CrossrefClient",
    "CrossrefWork",
    "DoiLookupError",
    "DoiNotFoundError",
    "extract_doi",
    "is_valid_doi",
    "published_date_from_parts",
    "select_issn",
]
