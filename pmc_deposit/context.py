"""
Explicit per-call context for workflow operations.
"""

import uuid
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pmc_deposit.config import Settings, get_settings
from pmc_deposit.exceptions import ActorRequiredError
from pmc_deposit.kernel.metadata.pmc_store import PMCMetadataStore
from pmc_deposit.notifications import NotificationChannel


@dataclass
class PMCContext:
    """
    Store handles and the acting user for one unit of work.

    ``user_id`` is None for system-originated work (webhooks, jobs).
    """

    session_maker: async_sessionmaker[AsyncSession]
    user_id: Optional[uuid.UUID] = None
    user_name: Optional[str] = None
    notifier: Optional[NotificationChannel] = None
    settings: Settings = field(default_factory=get_settings)

    @property
    def metadata_store(self) -> PMCMetadataStore:
        return PMCMetadataStore(
            self.session_maker,
            max_attempts=self.settings.occ_max_attempts,
            default_title=self.settings.default_deposit_title,
        )

    def require_user(self) -> uuid.UUID:
        if self.user_id is None:
            raise ActorRequiredError("This operation requires a signed-in user")
        return self.user_id
