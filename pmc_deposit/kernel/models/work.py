"""
Work and WorkVersion models.

A Work owns an append-only history of WorkVersions. A WorkVersion carries a
free-form metadata document (the PMC form lives under its ``pmc`` key) and
is guarded by an optimistic-concurrency version counter.
"""

import uuid
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, ForeignKey, Index, Integer, JSON, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pmc_deposit.kernel.models.base import Base, TimestampMixin, generate_uuid

if TYPE_CHECKING:
    from pmc_deposit.kernel.models.submission import SubmissionVersion


class Work(Base, TimestampMixin):
    """A unit of research content with a history of versions."""

    __tablename__ = "works"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    created_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        nullable=True,
    )

    versions: Mapped[List["WorkVersion"]] = relationship(
        "WorkVersion",
        back_populates="work",
        order_by="WorkVersion.created_at",
    )

    def __repr__(self) -> str:
        return f"<Work {self.id}>"


class WorkVersion(Base, TimestampMixin):
    """
    A draft or published version of a Work.

    ``draft`` flips to False exactly once, on confirmation. After that the
    content is treated as immutable and revisions go through cloning.
    """

    __tablename__ = "work_versions"

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

    # Display fields, denormalised from metadata for listings
    title: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    authors: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    author_details: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    date: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    doi: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    canonical: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)

    # "metadata" is reserved on declarative classes
    metadata_: Mapped[dict] = mapped_column(
        "metadata",
        JSON,
        nullable=False,
        default=dict,
    )

    # Storage linkage
    cdn: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    cdn_key: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        default=lambda: str(generate_uuid()),
    )

    draft: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Compare-and-swap counter; UPDATEs are issued WHERE occ = <value read>
    occ: Mapped[int] = mapped_column(Integer, nullable=False)

    work: Mapped["Work"] = relationship("Work", back_populates="versions")
    submission_versions: Mapped[List["SubmissionVersion"]] = relationship(
        "SubmissionVersion",
        back_populates="work_version",
    )

    __mapper_args__ = {"version_id_col": occ}

    __table_args__ = (
        Index("ix_work_versions_work_draft", "work_id", "draft"),
    )

    def __repr__(self) -> str:
        return f"<WorkVersion {self.id} draft={self.draft}>"
