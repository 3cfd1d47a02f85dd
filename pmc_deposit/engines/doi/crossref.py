"""
Crossref DOI lookup for publication metadata.

Retry with exponential backoff for 5xx/timeouts; a 429 is retried after the
advertised delay. A 404 means the DOI is unknown.
"""

import asyncio
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from pmc_deposit.engines.doi.identifiers import published_date_from_parts, select_issn
from pmc_deposit.logging_config import get_logger

logger = get_logger(__name__)

MAX_RETRIES = 3
RETRY_BACKOFF = (1.0, 2.0, 4.0)  # seconds


class DoiLookupError(Exception):
    """Crossref could not be queried or returned an unusable record."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class DoiNotFoundError(DoiLookupError):
    """Crossref has no record for the DOI."""


class CrossrefWork(BaseModel):
    """The subset of a Crossref ``message`` used for a deposit."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    title: str
    container_title: str = Field(default="", alias="container-title")
    short_container_title: List[str] = Field(default_factory=list, alias="short-container-title")
    author: List[Dict[str, Any]] = Field(default_factory=list)
    type: Optional[str] = None
    volume: Optional[str] = None
    issue: Optional[str] = None
    url: Optional[str] = Field(default=None, alias="URL")
    page: Optional[str] = None
    source: Optional[str] = None
    publisher: Optional[str] = None
    issn: List[str] = Field(default_factory=list, alias="ISSN")
    published_date_parts: Optional[List[int]] = None

    @classmethod
    def from_message(cls, message: Dict[str, Any]) -> "CrossrefWork":
        """Build from a Crossref ``message``; list-valued titles collapse to their first item."""
        data = dict(message)
        for key in ("title", "container-title"):
            value = data.get(key)
            if isinstance(value, list):
                data[key] = value[0] if value else None
        if data.get("container-title") is None:
            data.pop("container-title", None)
        date_parts = (message.get("published") or {}).get("date-parts") or [[]]
        data["published_date_parts"] = date_parts[0] or None
        return cls.model_validate(data)

    def metadata_patch(self) -> Dict[str, Any]:
        """PMC metadata fields derived from this record."""
        issn, issn_type = select_issn(self.issn)
        return {
            "doiSuccess": True,
            "doiTitle": self.title,
            "title": self.title,
            "doiPublishedDate": published_date_from_parts(self.published_date_parts),
            "doiContainerTitle": self.container_title,
            "journalName": self.container_title,
            "doiShortContainerTitle": self.short_container_title,
            "doiAuthors": self.author,
            "doiType": self.type,
            "doiVolume": self.volume,
            "doiIssue": self.issue,
            "doiUrl": self.url,
            "doiPage": self.page,
            "doiSource": self.source,
            "doiPublisher": self.publisher,
            "issn": issn,
            "issnType": issn_type,
        }


async def _request_with_retry(
    client: httpx.AsyncClient,
    url: str,
    **kwargs: Any,
) -> httpx.Response:
    last_exc: Optional[Exception] = None
    for attempt in range(MAX_RETRIES):
        try:
            response = await client.get(url, **kwargs)
            if response.status_code == 429 and attempt < MAX_RETRIES - 1:
                retry_after = response.headers.get("Retry-After")
                wait = int(retry_after) if retry_after and retry_after.isdigit() else RETRY_BACKOFF[attempt]
                await asyncio.sleep(wait)
                continue
            if response.status_code >= 500 and attempt < MAX_RETRIES - 1:
                await asyncio.sleep(RETRY_BACKOFF[attempt])
                continue
            return response
        except (httpx.TimeoutException, httpx.ConnectError) as e:
            last_exc = e
            if attempt < MAX_RETRIES - 1:
                await asyncio.sleep(RETRY_BACKOFF[attempt])
    raise DoiLookupError(f"Crossref request failed: {last_exc}")


class CrossrefClient:
    """Fetches work records from the Crossref REST API."""

    def __init__(self, base_url: str, timeout: float = 10.0, mailto: str = ""):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.mailto = mailto

    async def lookup(self, doi: str) -> CrossrefWork:
        """
        Fetch and parse the Crossref record for ``doi``.

        Raises:
            DoiNotFoundError: Crossref returned 404
            DoiLookupError: any other failure
        """
        url = f"{self.base_url}/works/{quote(doi, safe='/')}"
        params = {"mailto": self.mailto} if self.mailto else None

        async with httpx.AsyncClient() as client:
            response = await _request_with_retry(client, url, params=params, timeout=self.timeout)

        if response.status_code == 404:
            raise DoiNotFoundError("DOI not found", status_code=404)
        if response.status_code != 200:
            raise DoiLookupError(f"Crossref returned {response.status_code}", status_code=response.status_code)

        try:
            return CrossrefWork.from_message(response.json().get("message") or {})
        except (ValueError, ValidationError) as e:
            logger.warning("Crossref parse error", extra={"doi": doi, "error": str(e)})
            raise DoiLookupError("Crossref record could not be read") from e
