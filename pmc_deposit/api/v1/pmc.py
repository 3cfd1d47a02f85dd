"""PMC deposit endpoints."""

import uuid
from typing import Any, Awaitable, Callable, Dict, List, Optional

from fastapi import APIRouter, Body, HTTPException, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from pmc_deposit import actions
from pmc_deposit.api.deps import Context
from pmc_deposit.context import PMCContext
from pmc_deposit.engines.validation import validate_pmc_metadata
from pmc_deposit.kernel.events.activity_store import StatusTimelineEntry
from pmc_deposit.kernel.models.message import MessageStatus
from pmc_deposit.orchestration import (
    clone_pmc_version,
    confirm_pmc,
    create_message_record,
    get_activities_for_submission_version,
    get_latest_draft_version,
    start_pmc_deposit,
    update_message_status,
    update_submission_metadata_and_status_if_changed,
)
from pmc_deposit.schemas.common import ActionResult
from pmc_deposit.schemas.metadata import ProcessingResult

router = APIRouter()


class DepositCreate(BaseModel):
    work_id: Optional[uuid.UUID] = None


class DepositResponse(BaseModel):
    work_id: uuid.UUID
    work_version_id: uuid.UUID
    submission_id: uuid.UUID
    submission_version_id: uuid.UUID


class CloneResponse(BaseModel):
    new_work_version_id: uuid.UUID
    new_submission_version_id: uuid.UUID


class DraftResponse(BaseModel):
    work_version_id: uuid.UUID
    submission_version_id: uuid.UUID
    title: Optional[str] = None


class StatusSignal(BaseModel):
    """A destination-reported status for a deposit."""

    result: ProcessingResult
    message_id: str
    target_status: str = Field(min_length=1)
    processor: str = Field(min_length=1)


class StatusSignalResponse(BaseModel):
    applied: bool


class InboundMessage(BaseModel):
    payload: Dict[str, Any]
    results: Optional[Dict[str, Any]] = None


class MessageStatusUpdate(BaseModel):
    status: MessageStatus
    results: Optional[Dict[str, Any]] = None


class MessageResponse(BaseModel):
    id: uuid.UUID
    status: str


def _respond(result: ActionResult) -> JSONResponse:
    return JSONResponse(
        status_code=result.status_code if result.is_error else status.HTTP_200_OK,
        content=result.model_dump(mode="json", exclude_none=True),
    )


FormAction = Callable[[PMCContext, Dict[str, Any], uuid.UUID], Awaitable[ActionResult]]
PlainAction = Callable[[PMCContext, uuid.UUID], Awaitable[ActionResult]]

# intent -> action taking form data
FORM_ACTIONS: Dict[str, FormAction] = {
    "grant-add": actions.add_grant,
    "grant-remove": actions.remove_grant,
    "grant-update": actions.update_grant_id,
    "initial-hhmi-grant-set": actions.set_initial_hhmi_grant,
    "initial-hhmi-grant-clear": actions.clear_initial_hhmi_grant,
    "certify-manuscript": actions.update_certify_manuscript,
    "designate-reviewer": actions.update_designate_reviewer,
    "reviewer-first-name": actions.update_reviewer_first_name,
    "reviewer-last-name": actions.update_reviewer_last_name,
    "reviewer-email": actions.update_reviewer_email,
    "publication-title": actions.update_publication_title,
    "publication-journal-name": actions.update_publication_journal_name,
    "doi-lookup": actions.update_publication_metadata_by_doi,
}

# intent -> action without form data
PLAIN_ACTIONS: Dict[str, PlainAction] = {
    "preview-set": actions.set_preview_deposit,
    "preview-unset": actions.unset_preview_deposit,
    "reviewer-remove": actions.remove_reviewer,
    "publication-reset": actions.reset_publication_metadata,
}


@router.post("/deposits", response_model=DepositResponse, status_code=status.HTTP_201_CREATED)
async def create_deposit(ctx: Context, data: Optional[DepositCreate] = None):
    """Start a PMC deposit (new draft work version, DRAFT submission version)."""
    work_id = data.work_id if data else None
    return DepositResponse(**await start_pmc_deposit(ctx, work_id=work_id))


@router.get("/work-versions/{work_version_id}/metadata")
async def get_metadata(work_version_id: uuid.UUID, ctx: Context):
    """Current ``pmc`` metadata section."""
    pmc = await ctx.metadata_store.get(work_version_id)
    if pmc is None:
        raise HTTPException(status_code=404, detail="Work version not found")
    return {"pmc": pmc}


@router.post("/work-versions/{work_version_id}/actions/{intent}")
async def run_action(
    work_version_id: uuid.UUID,
    intent: str,
    ctx: Context,
    form: Optional[Dict[str, Any]] = Body(default=None),
):
    """Run one metadata action by intent name."""
    form = form or {}
    if intent in FORM_ACTIONS:
        return _respond(await FORM_ACTIONS[intent](ctx, form, work_version_id))
    if intent in PLAIN_ACTIONS:
        return _respond(await PLAIN_ACTIONS[intent](ctx, work_version_id))
    raise HTTPException(status_code=404, detail=f"Unknown action: {intent}")


@router.post("/work-versions/{work_version_id}/validate")
async def validate_deposit(work_version_id: uuid.UUID, ctx: Context):
    """Validate the stored metadata as it would be on confirmation."""
    document = await ctx.metadata_store.get_document(work_version_id)
    if document is None:
        raise HTTPException(status_code=404, detail="Work version not found")
    return _respond(validate_pmc_metadata(document))


@router.post("/work-versions/{work_version_id}/confirm")
async def confirm_deposit(work_version_id: uuid.UUID, ctx: Context):
    """Validate, then confirm (DRAFT -> PENDING)."""
    document = await ctx.metadata_store.get_document(work_version_id)
    if document is None:
        raise HTTPException(status_code=404, detail="Work version not found")

    validation = validate_pmc_metadata(document)
    if validation.is_error:
        return _respond(validation)
    return _respond(await confirm_pmc(ctx, work_version_id))


@router.post("/work-versions/{work_version_id}/status", response_model=StatusSignalResponse)
async def apply_status_signal(work_version_id: uuid.UUID, data: StatusSignal, ctx: Context):
    """Apply a destination-reported status; duplicates are skipped."""
    applied = await update_submission_metadata_and_status_if_changed(
        ctx,
        work_version_id,
        data.result,
        data.message_id,
        data.target_status,
        data.processor,
    )
    return StatusSignalResponse(applied=applied)


@router.post(
    "/submission-versions/{submission_version_id}/clone",
    response_model=CloneResponse,
    status_code=status.HTTP_201_CREATED,
)
async def clone_version(submission_version_id: uuid.UUID, ctx: Context):
    """Start a new draft from a submitted version."""
    return CloneResponse(**await clone_pmc_version(ctx, submission_version_id))


@router.get(
    "/submission-versions/{submission_version_id}/activities",
    response_model=List[StatusTimelineEntry],
)
async def list_activities(submission_version_id: uuid.UUID, ctx: Context):
    """Status timeline, oldest first."""
    return await get_activities_for_submission_version(ctx, submission_version_id)


@router.get("/works/{work_id}/draft", response_model=DraftResponse)
async def get_draft(work_id: uuid.UUID, ctx: Context):
    """Latest open draft of a work."""
    draft = await get_latest_draft_version(ctx, work_id)
    if draft is None:
        raise HTTPException(status_code=404, detail="No draft version")
    work_version, submission_version = draft
    return DraftResponse(
        work_version_id=work_version.id,
        submission_version_id=submission_version.id,
        title=work_version.title,
    )


@router.post("/messages", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def receive_message(data: InboundMessage, ctx: Context):
    """Record an inbound email for processing."""
    message_id = await create_message_record(ctx, data.payload, data.results)
    return MessageResponse(id=message_id, status=MessageStatus.PENDING.value)


@router.patch("/messages/{message_id}", response_model=MessageResponse)
async def set_message_status(message_id: uuid.UUID, data: MessageStatusUpdate, ctx: Context):
    message = await update_message_status(ctx, message_id, data.status, data.results)
    return MessageResponse(id=message.id, status=message.status)
