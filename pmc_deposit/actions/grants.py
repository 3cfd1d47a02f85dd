"""
Grant actions for PMC metadata.

Each action validates its form, then runs the grant rule inside the
metadata transform so the uniqueness and HHMI checks see the document that
is actually committed.
"""

import uuid
from typing import Any, Mapping

from pmc_deposit.context import PMCContext
from pmc_deposit.engines.grants import rules
from pmc_deposit.engines.grants.migration import with_grants
from pmc_deposit.schemas.common import ActionResult
from pmc_deposit.schemas.forms import (
    AddGrantForm,
    ClearInitialHHMIGrantForm,
    RemoveGrantForm,
    SetInitialHHMIGrantForm,
    UpdateGrantForm,
    with_valid_form_data,
)


async def add_grant(ctx: PMCContext, form: Mapping[str, Any], work_version_id: uuid.UUID) -> ActionResult:
    async def handler(data: AddGrantForm) -> ActionResult:
        return await ctx.metadata_store.update(
            work_version_id,
            lambda pmc: with_grants(pmc, lambda grants: rules.add_grant(
                grants,
                data.funder_key.value,
                data.grant_id,
                investigator_name=data.investigator_name,
                unique_id=data.unique_id,
            )),
        )

    return await with_valid_form_data("grant-add", form, handler)


async def remove_grant(ctx: PMCContext, form: Mapping[str, Any], work_version_id: uuid.UUID) -> ActionResult:
    async def handler(data: RemoveGrantForm) -> ActionResult:
        return await ctx.metadata_store.update(
            work_version_id,
            lambda pmc: with_grants(pmc, lambda grants: rules.remove_grant(grants, data.id)),
        )

    return await with_valid_form_data("grant-remove", form, handler)


async def update_grant_id(ctx: PMCContext, form: Mapping[str, Any], work_version_id: uuid.UUID) -> ActionResult:
    async def handler(data: UpdateGrantForm) -> ActionResult:
        return await ctx.metadata_store.update(
            work_version_id,
            lambda pmc: with_grants(
                pmc,
                lambda grants: rules.update_grant_id(grants, data.index, data.grant_id),
            ),
        )

    return await with_valid_form_data("grant-update", form, handler)


async def set_initial_hhmi_grant(
    ctx: PMCContext,
    form: Mapping[str, Any],
    work_version_id: uuid.UUID,
) -> ActionResult:
    async def handler(data: SetInitialHHMIGrantForm) -> ActionResult:
        return await ctx.metadata_store.update(
            work_version_id,
            lambda pmc: with_grants(pmc, lambda grants: rules.set_initial_hhmi_grant(
                grants,
                data.grant_id,
                investigator_name=data.investigator_name,
                unique_id=data.unique_id,
            )),
        )

    return await with_valid_form_data("initial-hhmi-grant-set", form, handler)


async def clear_initial_hhmi_grant(
    ctx: PMCContext,
    form: Mapping[str, Any],
    work_version_id: uuid.UUID,
) -> ActionResult:
    """Remove the HHMI grant with the given ``uniqueId``; absent is not an error."""

    async def handler(data: ClearInitialHHMIGrantForm) -> ActionResult:
        return await ctx.metadata_store.update(
            work_version_id,
            lambda pmc: with_grants(
                pmc,
                lambda grants: rules.clear_initial_hhmi_grant(grants, data.unique_id),
            ),
        )

    return await with_valid_form_data("initial-hhmi-grant-clear", form, handler)
