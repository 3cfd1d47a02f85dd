"""
Kernel Data Models

SQLAlchemy models for works, submissions, the activity audit trail and
inbound messages.
"""

from pmc_deposit.kernel.models.base import Base, TimestampMixin, generate_uuid, utc_now
from pmc_deposit.kernel.models.work import Work, WorkVersion
from pmc_deposit.kernel.models.submission import (
    Submission,
    SubmissionStatus,
    SubmissionVersion,
)
from pmc_deposit.kernel.models.activity import Activity, ActivityType, STATUS_TIMELINE_TYPES
from pmc_deposit.kernel.models.message import Message, MessageStatus

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "generate_uuid",
    "utc_now",
    # Works
    "Work",
    "WorkVersion",
    # Submissions
    "Submission",
    "SubmissionStatus",
    "SubmissionVersion",
    # Audit
    "Activity",
    "ActivityType",
    "STATUS_TIMELINE_TYPES",
    # Messages
    "Message",
    "MessageStatus",
]
