"""
Submission and SubmissionVersion models.

SubmissionVersion.status is authoritative for the deposit lifecycle.
The workflow owns DRAFT and PENDING; every other value is reported by the
destination and stored verbatim.
"""

import uuid
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import ForeignKey, Index, Integer, JSON, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pmc_deposit.kernel.models.base import Base, TimestampMixin, generate_uuid

if TYPE_CHECKING:
    from pmc_deposit.kernel.models.work import WorkVersion


class SubmissionStatus(str, Enum):
    """Statuses the workflow itself branches on."""

    DRAFT = "DRAFT"
    PENDING = "PENDING"


class Submission(Base, TimestampMixin):
    """Ordered history of attempts to deposit one Work at one destination site."""

    __tablename__ = "submissions"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    work_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("works.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    site_name: Mapped[str] = mapped_column(String(100), nullable=False)
    date_published: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    submitted_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid(), nullable=True)

    versions: Mapped[List["SubmissionVersion"]] = relationship(
        "SubmissionVersion",
        back_populates="submission",
        order_by="SubmissionVersion.created_at",
    )

    __table_args__ = (
        Index("ix_submissions_work_site", "work_id", "site_name"),
    )

    def __repr__(self) -> str:
        return f"<Submission {self.id} {self.site_name}>"


class SubmissionVersion(Base, TimestampMixin):
    """One attempt to submit a WorkVersion to the destination."""

    __tablename__ = "submission_versions"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    submission_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("submissions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    work_version_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("work_versions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Open vocabulary: DRAFT/PENDING plus whatever the destination reports
    status: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        default=SubmissionStatus.DRAFT.value,
    )

    # Submission-specific state (email processing history lives under "pmc")
    metadata_: Mapped[dict] = mapped_column(
        "metadata",
        JSON,
        nullable=False,
        default=dict,
    )

    submitted_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid(), nullable=True)
    date_published: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)

    occ: Mapped[int] = mapped_column(Integer, nullable=False)

    submission: Mapped["Submission"] = relationship("Submission", back_populates="versions")
    work_version: Mapped["WorkVersion"] = relationship(
        "WorkVersion",
        back_populates="submission_versions",
    )

    __mapper_args__ = {"version_id_col": occ}

    __table_args__ = (
        Index("ix_submission_versions_submission_status", "submission_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<SubmissionVersion {self.id} {self.status}>"
