"""
DOI parsing and the date/ISSN rules applied to Crossref records.
"""

import re
from datetime import date
from typing import List, Optional, Sequence, Tuple

from pmc_deposit.logging_config import get_logger

logger = get_logger(__name__)

# DOI regex pattern (https://www.doi.org/doi_handbook/2_Numbering.html)
DOI_PATTERN = re.compile(r"^10\.\d{4,}/\S+$")
# URL whose last path segments form a DOI, e.g. https://doi.org/10.1234/abc
DOI_URL_PATTERN = re.compile(r"^https?://[^/]+/(?:.*/)?(10\.\d{4,}/\S+)$")


def extract_doi(value: Optional[str]) -> Optional[str]:
    """Return the DOI in a bare DOI or DOI-bearing URL, or None."""
    if not value:
        return None
    value = value.strip()
    url_match = DOI_URL_PATTERN.match(value)
    if url_match:
        return url_match.group(1)
    if DOI_PATTERN.match(value):
        return value
    return None


def is_valid_doi(value: Optional[str]) -> bool:
    return extract_doi(value) is not None


def select_issn(issns: Sequence[str]) -> Tuple[Optional[str], Optional[str]]:
    """
    Pick the ISSN to record and its type.

    Electronic ISSNs (no hyphen) are preferred over print ISSNs (hyphenated).
    """
    electronic = next((i for i in issns if "-" not in i), None)
    if electronic:
        return electronic, "electronic"
    printed = next((i for i in issns if "-" in i), None)
    if printed:
        return printed, "print"
    return None, None


def published_date_from_parts(parts: Optional[List[int]]) -> Optional[str]:
    """
    Convert Crossref ``date-parts`` ([year, month?, day?]) into YYYY-MM-DD.

    Missing month or day default to 1. Out-of-range or impossible dates
    return None.
    """
    if not parts:
        return None
    year = parts[0]
    month = parts[1] if len(parts) > 1 and parts[1] else 1
    day = parts[2] if len(parts) > 2 and parts[2] else 1

    if not (isinstance(year, int) and 1000 <= year <= 9999):
        logger.warning("Invalid date parts from DOI", extra={"date_parts": list(parts)})
        return None
    try:
        return date(year, month, day).isoformat()
    except (TypeError, ValueError):
        logger.warning("Invalid date parts from DOI", extra={"date_parts": list(parts)})
        return None
