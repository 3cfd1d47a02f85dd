"""
Version cloning: start a new draft from a submitted deposit.

Only one DRAFT SubmissionVersion may exist per Submission. Files are not
copied here; the caller schedules that with the returned ids.
"""

import copy
import uuid
from typing import Dict, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from pmc_deposit.context import PMCContext
from pmc_deposit.exceptions import InvariantViolationError, RecordNotFoundError
from pmc_deposit.kernel.events.activity_store import ActivityStore
from pmc_deposit.kernel.metadata.pmc_store import PMC_SECTION
from pmc_deposit.kernel.models.activity import ActivityType
from pmc_deposit.kernel.models.base import generate_uuid
from pmc_deposit.kernel.models.submission import SubmissionStatus, SubmissionVersion
from pmc_deposit.kernel.models.work import WorkVersion
from pmc_deposit.logging_config import get_logger
from pmc_deposit.notifications import NotificationEvent, NotificationType, notify

logger = get_logger(__name__)

OPEN_DRAFT_MESSAGE = (
    "A version is already being cloned for this work. "
    "Please wait for the current operation to complete."
)


def cloned_metadata(metadata: Optional[dict]) -> dict:
    """Reference metadata with the per-submission ``previewed``/``confirmed`` flags reset."""
    cloned = copy.deepcopy(metadata or {})
    cloned[PMC_SECTION] = {
        **(cloned.get(PMC_SECTION) or {}),
        "previewed": False,
        "confirmed": False,
    }
    return cloned


async def clone_pmc_version(ctx: PMCContext, submission_version_id: uuid.UUID) -> Dict[str, uuid.UUID]:
    """
    Create a draft WorkVersion and DRAFT SubmissionVersion copied from
    ``submission_version_id``.

    Returns:
        ``new_work_version_id`` and ``new_submission_version_id``

    Raises:
        ActorRequiredError: no acting user
        RecordNotFoundError: the reference submission version does not exist
        InvariantViolationError: the submission already has a DRAFT version
    """
    user_id = ctx.require_user()

    async with ctx.session_maker() as session:
        async with session.begin():
            result = await session.execute(
                select(SubmissionVersion)
                .options(selectinload(SubmissionVersion.work_version))
                .where(SubmissionVersion.id == submission_version_id)
            )
            reference = result.scalar_one_or_none()
            if reference is None:
                raise RecordNotFoundError(
                    f"Submission version {submission_version_id} not found",
                    {"submissionVersionId": str(submission_version_id)},
                )

            open_draft = await session.scalar(
                select(SubmissionVersion.id)
                .where(
                    SubmissionVersion.submission_id == reference.submission_id,
                    SubmissionVersion.status == SubmissionStatus.DRAFT.value,
                )
                .limit(1)
            )
            if open_draft is not None:
                logger.warning(
                    "Clone refused: submission already has a draft",
                    extra={
                        "submission_id": str(reference.submission_id),
                        "draft_submission_version_id": str(open_draft),
                    },
                )
                raise InvariantViolationError(
                    OPEN_DRAFT_MESSAGE,
                    {"submissionVersionId": str(open_draft)},
                )

            ref_wv = reference.work_version
            new_work_version = WorkVersion(
                work_id=ref_wv.work_id,
                title=ref_wv.title,
                description=ref_wv.description,
                authors=list(ref_wv.authors or []),
                author_details=[a for a in ref_wv.author_details or [] if a is not None],
                date=ref_wv.date,
                doi=ref_wv.doi,
                canonical=ref_wv.canonical,
                metadata_=cloned_metadata(ref_wv.metadata_),
                cdn=ref_wv.cdn,
                cdn_key=str(generate_uuid()),
                draft=True,
            )
            session.add(new_work_version)
            await session.flush()

            new_submission_version = SubmissionVersion(
                submission_id=reference.submission_id,
                work_version_id=new_work_version.id,
                status=SubmissionStatus.DRAFT.value,
                metadata_={PMC_SECTION: {}},
                date_published=reference.date_published,
                submitted_by_id=user_id,
            )
            session.add(new_submission_version)
            await session.flush()

            activities = ActivityStore(session)
            activities.log(
                ActivityType.WORK_VERSION_ADDED,
                status="New version created from cloning",
                activity_by_id=user_id,
                work_id=new_work_version.work_id,
                work_version_id=new_work_version.id,
            )
            activities.log(
                ActivityType.SUBMISSION_VERSION_ADDED,
                status=SubmissionStatus.DRAFT.value,
                activity_by_id=user_id,
                submission_id=new_submission_version.submission_id,
                submission_version_id=new_submission_version.id,
            )

    logger.info(
        "PMC version cloned",
        extra={
            "reference_submission_version_id": str(submission_version_id),
            "new_work_version_id": str(new_work_version.id),
            "new_submission_version_id": str(new_submission_version.id),
        },
    )
    await notify(ctx.notifier, NotificationEvent(
        type=NotificationType.SUBMISSION_VERSION_CLONED.value,
        message="New PMC submission version created from cloning",
        user_id=user_id,
        metadata={
            "submissionId": str(new_submission_version.submission_id),
            "submissionVersionId": str(new_submission_version.id),
        },
    ))

    return {
        "new_work_version_id": new_work_version.id,
        "new_submission_version_id": new_submission_version.id,
    }


async def _latest_draft(
    ctx: PMCContext,
    work_id: uuid.UUID,
) -> Optional[Tuple[WorkVersion, SubmissionVersion]]:
    async with ctx.session_maker() as session:
        result = await session.execute(
            select(WorkVersion, SubmissionVersion)
            .join(SubmissionVersion, SubmissionVersion.work_version_id == WorkVersion.id)
            .where(
                WorkVersion.work_id == work_id,
                WorkVersion.draft.is_(True),
                SubmissionVersion.status == SubmissionStatus.DRAFT.value,
            )
            .order_by(WorkVersion.created_at.desc(), SubmissionVersion.created_at.desc())
            .limit(1)
        )
        row = result.first()
    if row is None:
        return None
    return row[0], row[1]


async def has_draft_version(ctx: PMCContext, work_id: uuid.UUID) -> bool:
    """True when the work has a draft WorkVersion with a DRAFT SubmissionVersion."""
    return await _latest_draft(ctx, work_id) is not None


async def get_latest_draft_version(
    ctx: PMCContext,
    work_id: uuid.UUID,
) -> Optional[Tuple[WorkVersion, SubmissionVersion]]:
    """Latest draft WorkVersion and its DRAFT SubmissionVersion, or None."""
    return await _latest_draft(ctx, work_id)
