"""Status timeline queries."""

import uuid
from typing import List

from pmc_deposit.context import PMCContext
from pmc_deposit.kernel.events.activity_store import ActivityStore, StatusTimelineEntry


async def get_activities_for_submission_version(
    ctx: PMCContext,
    submission_version_id: uuid.UUID,
) -> List[StatusTimelineEntry]:
    """Status transitions of a submission version, oldest first."""
    async with ctx.session_maker() as session:
        return await ActivityStore(session).status_timeline(submission_version_id)
