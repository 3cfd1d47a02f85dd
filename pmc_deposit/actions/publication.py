"""
Publication actions: title, journal, reset and DOI lookup.
"""

import uuid
from typing import Any, Mapping, Optional

from pmc_deposit.context import PMCContext
from pmc_deposit.engines.doi.crossref import CrossrefClient, DoiLookupError, DoiNotFoundError
from pmc_deposit.logging_config import get_logger
from pmc_deposit.schemas.common import ActionResult
from pmc_deposit.schemas.forms import (
    DoiLookupForm,
    PublicationJournalNameForm,
    PublicationTitleForm,
    with_valid_form_data,
)

logger = get_logger(__name__)

# Fields derived from a DOI lookup, cleared together on reset
PUBLICATION_FIELDS = (
    "title",
    "journalName",
    "doiUrl",
    "doiSuccess",
    "doiTitle",
    "doiPublishedDate",
    "doiContainerTitle",
    "doiShortContainerTitle",
    "doiAuthors",
    "doiType",
    "doiVolume",
    "doiIssue",
    "doiPage",
    "doiSource",
    "doiPublisher",
    "issn",
    "issnType",
)


def crossref_client_for(ctx: PMCContext) -> CrossrefClient:
    settings = ctx.settings
    return CrossrefClient(
        settings.crossref_base_url,
        timeout=settings.crossref_timeout,
        mailto=settings.crossref_mailto,
    )


async def reset_publication_metadata(ctx: PMCContext, work_version_id: uuid.UUID) -> ActionResult:
    return await ctx.metadata_store.patch(
        work_version_id,
        {field: None for field in PUBLICATION_FIELDS},
    )


async def update_publication_title(
    ctx: PMCContext,
    form: Mapping[str, Any],
    work_version_id: uuid.UUID,
) -> ActionResult:
    """Set or clear (blank input) the title; the version title follows."""

    async def handler(data: PublicationTitleForm) -> ActionResult:
        return await ctx.metadata_store.patch(work_version_id, {"title": data.title or None})

    return await with_valid_form_data("publication-title", form, handler)


async def update_publication_journal_name(
    ctx: PMCContext,
    form: Mapping[str, Any],
    work_version_id: uuid.UUID,
) -> ActionResult:
    async def handler(data: PublicationJournalNameForm) -> ActionResult:
        return await ctx.metadata_store.patch(
            work_version_id,
            {"journalName": data.journal_name or None},
        )

    return await with_valid_form_data("publication-journal-name", form, handler)


async def update_publication_metadata_by_doi(
    ctx: PMCContext,
    form: Mapping[str, Any],
    work_version_id: uuid.UUID,
    client: Optional[CrossrefClient] = None,
) -> ActionResult:
    """
    Look up a DOI on Crossref and fill in the publication fields.

    Returns a 404 result when Crossref does not know the DOI and a 422
    result for any other lookup failure.
    """
    client = client or crossref_client_for(ctx)

    async def handler(data: DoiLookupForm) -> ActionResult:
        try:
            work = await client.lookup(data.doi)
        except DoiNotFoundError as e:
            logger.info("DOI not found", extra={"doi": data.doi})
            return ActionResult.fail(e.message, status_code=404, doi=data.doi)
        except DoiLookupError as e:
            logger.warning("DOI lookup failed", extra={"doi": data.doi, "error": e.message})
            return ActionResult.fail("DOI lookup failed", status_code=422, doi=data.doi)

        result = await ctx.metadata_store.patch(work_version_id, work.metadata_patch())
        if result.success:
            logger.info(
                "DOI lookup succeeded",
                extra={"doi": data.doi, "work_version_id": str(work_version_id)},
            )
        return result

    return await with_valid_form_data("doi-lookup", form, handler)
