"""
Inbound message records (e.g. notification emails from the destination).
"""

import uuid
from enum import Enum

from sqlalchemy import JSON, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from pmc_deposit.kernel.models.base import Base, TimestampMixin, generate_uuid


class MessageStatus(str, Enum):
    """Processing status of an inbound message."""

    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"
    PARTIAL = "PARTIAL"
    IGNORED = "IGNORED"
    BOUNCED = "BOUNCED"


class Message(Base, TimestampMixin):
    """One inbound asynchronous event. Updated in place, never deleted."""

    __tablename__ = "messages"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    module: Mapped[str] = mapped_column(String(50), nullable=False)
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=MessageStatus.PENDING.value,
        index=True,
    )
    payload: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    results: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    def __repr__(self) -> str:
        return f"<Message {self.module}/{self.type} {self.status}>"
