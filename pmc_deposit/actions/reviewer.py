"""
Reviewer, certification and preview actions.

All of these are plain patches of the ``pmc`` section; a None value clears
the stored field.
"""

import uuid
from typing import Any, Mapping

from pmc_deposit.context import PMCContext
from pmc_deposit.schemas.common import ActionResult
from pmc_deposit.schemas.forms import (
    CertifyForm,
    DesignateReviewerForm,
    ReviewerEmailForm,
    ReviewerFirstNameForm,
    ReviewerLastNameForm,
    with_valid_form_data,
)


async def update_reviewer_first_name(
    ctx: PMCContext,
    form: Mapping[str, Any],
    work_version_id: uuid.UUID,
) -> ActionResult:
    async def handler(data: ReviewerFirstNameForm) -> ActionResult:
        return await ctx.metadata_store.patch(work_version_id, {"reviewerFirstName": data.first_name})

    return await with_valid_form_data("reviewer-first-name", form, handler)


async def update_reviewer_last_name(
    ctx: PMCContext,
    form: Mapping[str, Any],
    work_version_id: uuid.UUID,
) -> ActionResult:
    async def handler(data: ReviewerLastNameForm) -> ActionResult:
        return await ctx.metadata_store.patch(work_version_id, {"reviewerLastName": data.last_name})

    return await with_valid_form_data("reviewer-last-name", form, handler)


async def update_reviewer_email(
    ctx: PMCContext,
    form: Mapping[str, Any],
    work_version_id: uuid.UUID,
) -> ActionResult:
    async def handler(data: ReviewerEmailForm) -> ActionResult:
        return await ctx.metadata_store.patch(work_version_id, {"reviewerEmail": data.email})

    return await with_valid_form_data("reviewer-email", form, handler)


async def update_designate_reviewer(
    ctx: PMCContext,
    form: Mapping[str, Any],
    work_version_id: uuid.UUID,
) -> ActionResult:
    async def handler(data: DesignateReviewerForm) -> ActionResult:
        return await ctx.metadata_store.patch(
            work_version_id,
            {"designateReviewer": data.designate_reviewer},
        )

    return await with_valid_form_data("designate-reviewer", form, handler)


async def remove_reviewer(ctx: PMCContext, work_version_id: uuid.UUID) -> ActionResult:
    """Clear every reviewer field and turn off reviewer designation."""
    return await ctx.metadata_store.patch(work_version_id, {
        "reviewerFirstName": None,
        "reviewerLastName": None,
        "reviewerEmail": None,
        "designateReviewer": False,
    })


async def update_certify_manuscript(
    ctx: PMCContext,
    form: Mapping[str, Any],
    work_version_id: uuid.UUID,
) -> ActionResult:
    async def handler(data: CertifyForm) -> ActionResult:
        return await ctx.metadata_store.patch(work_version_id, {"certifyManuscript": data.certify})

    return await with_valid_form_data("certify-manuscript", form, handler)


async def set_preview_deposit(ctx: PMCContext, work_version_id: uuid.UUID) -> ActionResult:
    return await ctx.metadata_store.patch(work_version_id, {"previewed": True})


async def unset_preview_deposit(ctx: PMCContext, work_version_id: uuid.UUID) -> ActionResult:
    return await ctx.metadata_store.patch(work_version_id, {"previewed": False})
