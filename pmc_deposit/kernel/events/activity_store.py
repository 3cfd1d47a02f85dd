"""
Activity store for the append-only audit trail.

Activities are added to the caller's session and committed with the state
change they describe; the store never commits on its own.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pmc_deposit.kernel.models.activity import Activity, ActivityType, STATUS_TIMELINE_TYPES


class StatusTimelineEntry(BaseModel):
    """One point in a submission version's status history."""

    status: str
    date: datetime


class ActivityStore:
    """
    Service for writing and reading Activity records.

    Usage:
        activities = ActivityStore(session)
        activities.log(
            ActivityType.SUBMISSION_VERSION_STATUS_CHANGE,
            status="PENDING",
            activity_by_id=user_id,
            submission_id=sv.submission_id,
            submission_version_id=sv.id,
        )
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    def log(
        self,
        activity_type: ActivityType,
        *,
        status: Optional[str] = None,
        activity_by_id: Optional[uuid.UUID] = None,
        work_id: Optional[uuid.UUID] = None,
        work_version_id: Optional[uuid.UUID] = None,
        submission_id: Optional[uuid.UUID] = None,
        submission_version_id: Optional[uuid.UUID] = None,
        created_at: Optional[datetime] = None,
    ) -> Activity:
        """
        Add an activity to the current transaction.

        Args:
            activity_type: The kind of change being recorded
            status: Resulting status (or a short description) if applicable
            activity_by_id: Acting user, None for system-originated changes
            work_id / work_version_id / submission_id / submission_version_id:
                Entities the change touched
            created_at: Explicit timestamp; defaults to now

        Returns:
            The pending Activity record
        """
        activity = Activity(
            activity_type=activity_type.value,
            status=status,
            activity_by_id=activity_by_id,
            work_id=work_id,
            work_version_id=work_version_id,
            submission_id=submission_id,
            submission_version_id=submission_version_id,
        )
        if created_at is not None:
            activity.created_at = created_at

        self.session.add(activity)
        # Caller commits together with the state change
        return activity

    async def status_timeline(self, submission_version_id: uuid.UUID) -> List[StatusTimelineEntry]:
        """
        Status-bearing activities for a submission version, oldest first.
        """
        query = (
            select(Activity.status, Activity.created_at)
            .where(
                Activity.submission_version_id == submission_version_id,
                Activity.activity_type.in_(STATUS_TIMELINE_TYPES),
                Activity.status.is_not(None),
            )
            .order_by(Activity.created_at.asc(), Activity.id.asc())
        )
        result = await self.session.execute(query)
        return [
            StatusTimelineEntry(status=status, date=created_at)
            for status, created_at in result.all()
        ]

    async def for_submission_version(
        self,
        submission_version_id: uuid.UUID,
        activity_types: Optional[List[ActivityType]] = None,
    ) -> List[Activity]:
        """All activities for a submission version, oldest first."""
        query = select(Activity).where(Activity.submission_version_id == submission_version_id)
        if activity_types:
            query = query.where(Activity.activity_type.in_([t.value for t in activity_types]))
        query = query.order_by(Activity.created_at.asc(), Activity.id.asc())

        result = await self.session.execute(query)
        return list(result.scalars().all())
