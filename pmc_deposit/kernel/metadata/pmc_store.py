"""
PMC metadata store.

Reads and writes the ``pmc`` section of a WorkVersion's metadata document.
Every write goes through ``safe_json_update`` so concurrent writers are
re-run against the latest document. Results come back as ActionResult; no
exception escapes ``patch`` or ``update``.
"""

import uuid
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pmc_deposit.exceptions import ConcurrentUpdateError, MetadataRuleError, RecordNotFoundError
from pmc_deposit.kernel.metadata.occ import safe_json_update
from pmc_deposit.kernel.models.work import WorkVersion
from pmc_deposit.logging_config import get_logger
from pmc_deposit.schemas.common import ActionResult
from pmc_deposit.schemas.metadata import PMCTransform, apply_pmc_patch

logger = get_logger(__name__)

PMC_SECTION = "pmc"
UPDATE_FAILED = "Failed to update metadata"
CONFIRMED_READ_ONLY = "This deposit has been confirmed and can no longer be changed"


class PMCMetadataStore:
    """
    Service for reading and mutating a WorkVersion's ``pmc`` metadata.

    Usage:
        store = PMCMetadataStore(session_maker, max_attempts=5)
        result = await store.patch(work_version_id, {"journalName": "Cell"})
        result = await store.update(work_version_id, lambda pmc: {...})
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        *,
        max_attempts: int = 5,
        default_title: str = "New PMC Deposit",
    ):
        self.session_maker = session_maker
        self.max_attempts = max_attempts
        self.default_title = default_title

    async def get_document(self, work_version_id: uuid.UUID) -> Optional[Dict[str, Any]]:
        """Whole metadata document, or None when the version does not exist."""
        async with self.session_maker() as session:
            version = await session.get(WorkVersion, work_version_id)
            if version is None:
                return None
            return dict(version.metadata_ or {})

    async def get(self, work_version_id: uuid.UUID) -> Optional[Dict[str, Any]]:
        """Current ``pmc`` section, or None when the version does not exist."""
        document = await self.get_document(work_version_id)
        if document is None:
            return None
        return dict(document.get(PMC_SECTION) or {})

    async def patch(self, work_version_id: uuid.UUID, fields: Dict[str, Any]) -> ActionResult:
        """Merge ``fields`` into the ``pmc`` section (None clears a key)."""
        return await self.update(work_version_id, lambda pmc: apply_pmc_patch(pmc, fields))

    async def update(self, work_version_id: uuid.UUID, transform: PMCTransform) -> ActionResult:
        """
        Replace the ``pmc`` section with ``transform(current_pmc)``.

        A MetadataRuleError raised by the transform becomes a 422 result with
        the rule's message; any other failure becomes a general error naming
        the work version. Confirmed (non-draft) versions are read-only.
        """

        def _transform_document(document: Dict[str, Any]) -> Dict[str, Any]:
            pmc = document.get(PMC_SECTION)
            current = pmc if isinstance(pmc, dict) else {}
            return {**document, PMC_SECTION: transform(current)}

        try:
            version = await safe_json_update(
                self.session_maker,
                WorkVersion,
                work_version_id,
                _transform_document,
                max_attempts=self.max_attempts,
                after=self._check_and_sync,
            )
        except MetadataRuleError as e:
            return ActionResult.fail(e.message, status_code=422, **e.details)
        except RecordNotFoundError as e:
            logger.warning(
                "Metadata update for missing work version",
                extra={"work_version_id": str(work_version_id)},
            )
            return ActionResult.fail(
                UPDATE_FAILED,
                status_code=404,
                workVersionId=str(work_version_id),
                error=e.message,
            )
        except (ConcurrentUpdateError, SQLAlchemyError) as e:
            logger.error(
                "Metadata update failed",
                extra={"work_version_id": str(work_version_id), "error": str(e)},
            )
            return ActionResult.fail(
                UPDATE_FAILED,
                status_code=500,
                workVersionId=str(work_version_id),
                error=str(e),
            )
        except Exception as e:
            logger.exception(
                "Unexpected error updating metadata",
                extra={"work_version_id": str(work_version_id)},
            )
            return ActionResult.fail(
                UPDATE_FAILED,
                status_code=500,
                workVersionId=str(work_version_id),
                error=str(e),
            )

        return ActionResult.ok(pmc=version.metadata_.get(PMC_SECTION) or {})

    def _check_and_sync(
        self,
        version: WorkVersion,
        before: Dict[str, Any],
        after: Dict[str, Any],
    ) -> None:
        if not version.draft:
            raise MetadataRuleError(CONFIRMED_READ_ONLY, {"workVersionId": str(version.id)})
        # WorkVersion.title mirrors pmc.title
        old_title = (before.get(PMC_SECTION) or {}).get("title")
        new_title = (after.get(PMC_SECTION) or {}).get("title")
        if new_title != old_title:
            version.title = new_title or self.default_title
