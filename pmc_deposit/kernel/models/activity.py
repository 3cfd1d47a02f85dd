"""
Immutable activity records for the audit trail.

Every committed status write is accompanied by an Activity in the same
transaction. The table is append-only: no updates or deletes.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from pmc_deposit.kernel.models.base import Base, generate_uuid, utc_now


class ActivityType(str, Enum):
    """Activity types recorded by the deposit workflow."""

    NEW_SUBMISSION = "NEW_SUBMISSION"
    SUBMISSION_VERSION_STATUS_CHANGE = "SUBMISSION_VERSION_STATUS_CHANGE"
    WORK_VERSION_ADDED = "WORK_VERSION_ADDED"
    SUBMISSION_VERSION_ADDED = "SUBMISSION_VERSION_ADDED"


# Activity types that contribute to a submission version's status timeline
STATUS_TIMELINE_TYPES = (
    ActivityType.NEW_SUBMISSION.value,
    ActivityType.SUBMISSION_VERSION_STATUS_CHANGE.value,
)


class Activity(Base):
    """Append-only audit record of a state change."""

    __tablename__ = "activities"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    activity_type: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    status: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Actor (None for system-originated changes)
    activity_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid(), nullable=True)

    # Links, populated as applicable
    work_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid(), nullable=True)
    work_version_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid(), nullable=True)
    submission_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid(), nullable=True)
    submission_version_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        nullable=True,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
        index=True,
    )

    __table_args__ = (
        Index("ix_activities_sv_time", "submission_version_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Activity {self.activity_type} {self.status}>"
