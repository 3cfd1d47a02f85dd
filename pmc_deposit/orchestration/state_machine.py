"""
State machine for the PMC SubmissionVersion lifecycle.

The workflow owns two states: DRAFT (set when a SubmissionVersion is
created) and PENDING (set by user confirmation). Every later status comes
from the destination through inbound signals and is stored verbatim.

Each status write commits together with its Activity record. Writes to
versioned rows run under ``run_with_occ``, so duplicate-suppression reads
and the status write they gate belong to one compare-and-swap.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pmc_deposit.context import PMCContext
from pmc_deposit.exceptions import (
    ConcurrentUpdateError,
    InvariantViolationError,
    MetadataRuleError,
    RecordNotFoundError,
)
from pmc_deposit.kernel.events.activity_store import ActivityStore
from pmc_deposit.kernel.metadata.occ import run_with_occ
from pmc_deposit.kernel.metadata.pmc_store import PMC_SECTION
from pmc_deposit.kernel.models.activity import ActivityType
from pmc_deposit.kernel.models.submission import Submission, SubmissionStatus, SubmissionVersion
from pmc_deposit.kernel.models.work import Work, WorkVersion
from pmc_deposit.logging_config import get_logger
from pmc_deposit.notifications import NotificationEvent, NotificationType, notify
from pmc_deposit.orchestration.formatting import confirmed_display_fields
from pmc_deposit.schemas.common import ActionResult
from pmc_deposit.schemas.metadata import EmailProcessing, ProcessingMessage, ProcessingResult

logger = get_logger(__name__)

DEFAULT_PROCESSOR = "bulk-submission-initial-email"

# ProcessingResult.status -> ProcessingMessage.type
_MESSAGE_TYPES = {"success": "info", "warning": "warning", "error": "error"}


def _today() -> str:
    return datetime.now(timezone.utc).date().isoformat()


def _timestamp_key(timestamp: Any) -> datetime:
    try:
        parsed = datetime.fromisoformat(str(timestamp).replace("Z", "+00:00"))
    except ValueError:
        return datetime.min.replace(tzinfo=timezone.utc)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def overall_processing_status(messages: List[Mapping[str, Any]]) -> str:
    """Worst severity across messages: error > warning > ok."""
    types = {m.get("type") for m in messages}
    if "error" in types:
        return "error"
    if "warning" in types:
        return "warning"
    return "ok"


def append_processing_message(
    metadata: Mapping[str, Any],
    *,
    work_version_id: uuid.UUID,
    result: ProcessingResult,
    message_id: str,
    from_status: str,
    to_status: str,
    processor: str,
) -> Dict[str, Any]:
    """
    Return SubmissionVersion metadata with one more processing message.

    Messages are kept sorted by timestamp and the overall status is
    recomputed over the whole history.
    """
    now = datetime.now(timezone.utc).isoformat()
    pmc = dict(metadata.get(PMC_SECTION) or {})
    existing = (pmc.get("emailProcessing") or {}).get("messages") or []

    message = ProcessingMessage(
        type=_MESSAGE_TYPES[result.status],
        message=result.message or "",
        timestamp=now,
        from_status=from_status,
        to_status=to_status,
        message_id=message_id,
        processor=processor,
    )
    messages = sorted(
        [*existing, message.to_document()],
        key=lambda m: _timestamp_key(m.get("timestamp")),
    )

    email_processing = EmailProcessing(
        message_id=message_id,
        last_processed_at=now,
        package_id=str(work_version_id),
        status=overall_processing_status(messages),
        messages=messages,
        manuscript_id=result.manuscript_id or None,
    )
    pmc["emailProcessing"] = email_processing.to_document()
    return {**metadata, PMC_SECTION: pmc}


def is_duplicate_transition(submission_version: SubmissionVersion, target_status: str) -> Optional[str]:
    """
    Reason to skip a transition to ``target_status``, or None to apply it.

    A transition is a duplicate when the version is already in the target
    status or any recorded message already moved it there.
    """
    if submission_version.status == target_status:
        return "already at target status"
    pmc = (submission_version.metadata_ or {}).get(PMC_SECTION) or {}
    messages = (pmc.get("emailProcessing") or {}).get("messages") or []
    if any(m.get("toStatus") == target_status for m in messages):
        return "target status already processed in previous message"
    return None


async def find_pmc_submission_versions(
    session: AsyncSession,
    work_version_id: uuid.UUID,
    site_name: str,
) -> List[SubmissionVersion]:
    query = (
        select(SubmissionVersion)
        .join(Submission, SubmissionVersion.submission_id == Submission.id)
        .where(
            SubmissionVersion.work_version_id == work_version_id,
            Submission.site_name == site_name,
        )
        .order_by(SubmissionVersion.created_at.asc())
    )
    result = await session.execute(query)
    return list(result.scalars().all())


async def get_pmc_submission_version(
    session: AsyncSession,
    work_version_id: uuid.UUID,
    site_name: str,
) -> SubmissionVersion:
    """The PMC SubmissionVersion of a work version; raises when there is none."""
    versions = await find_pmc_submission_versions(session, work_version_id, site_name)
    if not versions:
        raise RecordNotFoundError(
            f"No submission version found for work version {work_version_id}",
            {"workVersionId": str(work_version_id)},
        )
    return versions[0]


# ---------------------------------------------------------------------------
# DRAFT: deposit initiation
# ---------------------------------------------------------------------------

def initial_pmc_section(owner_name: Optional[str]) -> Dict[str, Any]:
    """Seed ``pmc`` section; the owner name is the fallback author."""
    pmc: Dict[str, Any] = {"grants": []}
    if owner_name and owner_name.strip():
        first, _, last = owner_name.strip().partition(" ")
        pmc["ownerFirstName"] = first
        if last.strip():
            pmc["ownerLastName"] = last.strip()
    return pmc


async def start_pmc_deposit(
    ctx: PMCContext,
    work_id: Optional[uuid.UUID] = None,
) -> Dict[str, uuid.UUID]:
    """
    Create a draft WorkVersion and a DRAFT SubmissionVersion at the PMC site.

    A new Work is created unless ``work_id`` names an existing one.
    """
    user_id = ctx.require_user()
    settings = ctx.settings

    async with ctx.session_maker() as session:
        async with session.begin():
            if work_id is None:
                work = Work(created_by_id=user_id)
                session.add(work)
                await session.flush()
            else:
                work = await session.get(Work, work_id)
                if work is None:
                    raise RecordNotFoundError("Work not found", {"workId": str(work_id)})

            work_version = WorkVersion(
                work_id=work.id,
                title=settings.default_deposit_title,
                metadata_={PMC_SECTION: initial_pmc_section(ctx.user_name)},
                draft=True,
            )
            submission = Submission(
                work_id=work.id,
                site_name=settings.pmc_site_name,
                submitted_by_id=user_id,
            )
            session.add_all([work_version, submission])
            await session.flush()

            submission_version = SubmissionVersion(
                submission_id=submission.id,
                work_version_id=work_version.id,
                status=SubmissionStatus.DRAFT.value,
                metadata_={PMC_SECTION: {}},
                submitted_by_id=user_id,
            )
            session.add(submission_version)
            await session.flush()

            ActivityStore(session).log(
                ActivityType.NEW_SUBMISSION,
                status=SubmissionStatus.DRAFT.value,
                activity_by_id=user_id,
                work_id=work.id,
                work_version_id=work_version.id,
                submission_id=submission.id,
                submission_version_id=submission_version.id,
            )

    logger.info(
        "PMC deposit started",
        extra={
            "work_id": str(work.id),
            "work_version_id": str(work_version.id),
            "submission_version_id": str(submission_version.id),
        },
    )
    await notify(ctx.notifier, NotificationEvent(
        type=NotificationType.NEW_SUBMISSION.value,
        message="New PMC deposit started",
        user_id=user_id,
        metadata={
            "site": settings.pmc_site_name,
            "submissionId": str(submission.id),
            "submissionVersionId": str(submission_version.id),
        },
    ))

    return {
        "work_id": work.id,
        "work_version_id": work_version.id,
        "submission_id": submission.id,
        "submission_version_id": submission_version.id,
    }


# ---------------------------------------------------------------------------
# DRAFT -> PENDING: confirmation
# ---------------------------------------------------------------------------

async def confirm_pmc(ctx: PMCContext, work_version_id: uuid.UUID) -> ActionResult:
    """
    Confirm a deposit.

    In one transaction: sets ``pmc.confirmed``, finalises the WorkVersion
    (``draft=False`` plus display fields), moves the SubmissionVersion to
    PENDING and stamps today's date on it and on its Submission. The
    metadata must already have passed validation.
    """
    site_name = ctx.settings.pmc_site_name

    async def _confirm(session: AsyncSession) -> Tuple[SubmissionVersion, str, Dict[str, Any]]:
        work_version = await session.get(WorkVersion, work_version_id)
        if work_version is None:
            raise RecordNotFoundError("Work version not found", {"workVersionId": str(work_version_id)})

        versions = await find_pmc_submission_versions(session, work_version_id, site_name)
        if not versions:
            raise RecordNotFoundError(
                "No PMC submission version found for work version",
                {"workVersionId": str(work_version_id)},
            )
        if len(versions) > 1:
            raise InvariantViolationError(
                "Multiple PMC submission versions found. Please contact support.",
                {
                    "workVersionId": str(work_version_id),
                    "submissionVersionIds": [str(v.id) for v in versions],
                },
            )
        if not work_version.draft:
            raise MetadataRuleError(
                "This deposit has already been confirmed",
                {"workVersionId": str(work_version_id)},
            )

        submission_version = versions[0]
        metadata = dict(work_version.metadata_ or {})
        pmc = {**(metadata.get(PMC_SECTION) or {}), "confirmed": True}
        work_version.metadata_ = {**metadata, PMC_SECTION: pmc}

        display = confirmed_display_fields(pmc)
        work_version.draft = False
        work_version.title = display["title"] or work_version.title
        work_version.description = display["description"]
        work_version.authors = display["authors"]
        work_version.date = display["date"]
        work_version.doi = display["doi"]

        today = _today()
        from_status = submission_version.status
        submission_version.status = SubmissionStatus.PENDING.value
        submission_version.date_published = today

        submission = await session.get(Submission, submission_version.submission_id)
        submission.date_published = today

        ActivityStore(session).log(
            ActivityType.SUBMISSION_VERSION_STATUS_CHANGE,
            status=SubmissionStatus.PENDING.value,
            activity_by_id=ctx.user_id,
            work_id=work_version.work_id,
            work_version_id=work_version.id,
            submission_id=submission.id,
            submission_version_id=submission_version.id,
        )
        return submission_version, from_status, pmc

    try:
        submission_version, from_status, pmc = await run_with_occ(
            ctx.session_maker,
            _confirm,
            max_attempts=ctx.settings.occ_max_attempts,
            description="confirm PMC deposit",
            record_id=work_version_id,
        )
    except RecordNotFoundError as e:
        return ActionResult.fail(e.message, status_code=404, **e.details)
    except MetadataRuleError as e:
        return ActionResult.fail(e.message, status_code=409, **e.details)
    except InvariantViolationError as e:
        logger.error(
            "Invariant violation while confirming deposit",
            extra={"work_version_id": str(work_version_id), **e.details},
        )
        return ActionResult.fail(e.message, status_code=500, **e.details)
    except (ConcurrentUpdateError, SQLAlchemyError) as e:
        logger.error(
            "Failed to confirm deposit",
            extra={"work_version_id": str(work_version_id), "error": str(e)},
        )
        return ActionResult.fail(
            "Failed to confirm deposit",
            status_code=500,
            workVersionId=str(work_version_id),
            error=str(e),
        )

    logger.info(
        "PMC deposit confirmed",
        extra={
            "work_version_id": str(work_version_id),
            "submission_version_id": str(submission_version.id),
            "from_status": from_status,
        },
    )
    await notify(ctx.notifier, NotificationEvent(
        type=NotificationType.SUBMISSION_STATUS_CHANGED.value,
        message=f"Submission status changed to {submission_version.status}",
        user_id=ctx.user_id,
        metadata={
            "status": submission_version.status,
            "site": site_name,
            "submissionId": str(submission_version.submission_id),
            "submissionVersionId": str(submission_version.id),
            "title": pmc.get("title"),
            "journalName": pmc.get("journalName"),
            "hasReviewer": bool(pmc.get("reviewerEmail")),
        },
    ))
    return ActionResult.ok(
        submissionVersionId=str(submission_version.id),
        status=submission_version.status,
        datePublished=submission_version.date_published,
    )


# ---------------------------------------------------------------------------
# PENDING -> destination status: inbound signals
# ---------------------------------------------------------------------------

async def record_processing_result(
    ctx: PMCContext,
    work_version_id: uuid.UUID,
    result: ProcessingResult,
    message_id: str,
    target_status: Optional[str] = None,
    processor: str = DEFAULT_PROCESSOR,
) -> None:
    """
    Append a processing message to the SubmissionVersion without changing
    its status. ``toStatus`` falls back to the current status.

    Raises:
        RecordNotFoundError: the work version has no PMC submission version
        ConcurrentUpdateError: conflict retries exhausted
    """
    site_name = ctx.settings.pmc_site_name

    async def _record(session: AsyncSession) -> None:
        submission_version = await get_pmc_submission_version(session, work_version_id, site_name)
        submission_version.metadata_ = append_processing_message(
            submission_version.metadata_ or {},
            work_version_id=work_version_id,
            result=result,
            message_id=message_id,
            from_status=submission_version.status,
            to_status=target_status or submission_version.status,
            processor=processor,
        )

    await run_with_occ(
        ctx.session_maker,
        _record,
        max_attempts=ctx.settings.occ_max_attempts,
        description="record processing result",
        record_id=work_version_id,
    )


async def update_submission_metadata_and_status_if_changed(
    ctx: PMCContext,
    work_version_id: uuid.UUID,
    result: ProcessingResult,
    message_id: str,
    target_status: str,
    processor: str,
) -> bool:
    """
    Apply a destination-reported status unless it is a duplicate.

    The duplicate check, the processing message, the status write and the
    Activity record commit together or not at all.

    Returns:
        True if the transition was applied, False if it was skipped

    Raises:
        RecordNotFoundError: the work version has no PMC submission version
        ConcurrentUpdateError: conflict retries exhausted
    """
    site_name = ctx.settings.pmc_site_name

    async def _transition(session: AsyncSession) -> Tuple[SubmissionVersion, Optional[str]]:
        submission_version = await get_pmc_submission_version(session, work_version_id, site_name)

        skip_reason = is_duplicate_transition(submission_version, target_status)
        if skip_reason is not None:
            return submission_version, skip_reason

        from_status = submission_version.status
        submission_version.metadata_ = append_processing_message(
            submission_version.metadata_ or {},
            work_version_id=work_version_id,
            result=result,
            message_id=message_id,
            from_status=from_status,
            to_status=target_status,
            processor=processor,
        )
        submission_version.status = target_status

        ActivityStore(session).log(
            ActivityType.SUBMISSION_VERSION_STATUS_CHANGE,
            status=target_status,
            activity_by_id=submission_version.submitted_by_id,
            work_version_id=work_version_id,
            submission_id=submission_version.submission_id,
            submission_version_id=submission_version.id,
        )
        return submission_version, None

    submission_version, skip_reason = await run_with_occ(
        ctx.session_maker,
        _transition,
        max_attempts=ctx.settings.occ_max_attempts,
        description="submission status transition",
        record_id=work_version_id,
    )

    if skip_reason is not None:
        logger.info(
            "Skipping metadata and status update",
            extra={
                "submission_version_id": str(submission_version.id),
                "reason": skip_reason,
                "target_status": target_status,
                "processor": processor,
            },
        )
        return False

    logger.info(
        "Submission status changed",
        extra={
            "submission_version_id": str(submission_version.id),
            "status": target_status,
            "processor": processor,
        },
    )
    await notify(ctx.notifier, NotificationEvent(
        type=NotificationType.SUBMISSION_STATUS_CHANGED.value,
        message=f"Submission status changed to {target_status}",
        user_id=submission_version.submitted_by_id,
        metadata={
            "status": target_status,
            "site": site_name,
            "submissionId": str(submission_version.submission_id),
            "submissionVersionId": str(submission_version.id),
        },
    ))
    return True
