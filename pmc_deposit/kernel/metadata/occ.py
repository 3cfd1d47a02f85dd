"""
Optimistic concurrency for versioned rows.

WorkVersion and SubmissionVersion carry a ``version_id_col``; SQLAlchemy
issues their UPDATEs as ``WHERE occ = <value read>`` and raises
StaleDataError when another writer got there first. The helpers here re-run
the whole read-modify-write in a fresh session until it commits or the
attempt budget runs out.
"""

import copy
import uuid
from typing import Any, Awaitable, Callable, Dict, Optional, Type, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from pmc_deposit.exceptions import ConcurrentUpdateError, RecordNotFoundError
from pmc_deposit.kernel.models.base import Base
from pmc_deposit.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")
ModelT = TypeVar("ModelT", bound=Base)

DocumentTransform = Callable[[Dict[str, Any]], Dict[str, Any]]
AfterWrite = Callable[[Any, Dict[str, Any], Dict[str, Any]], None]


async def run_with_occ(
    session_maker: async_sessionmaker[AsyncSession],
    operation: Callable[[AsyncSession], Awaitable[T]],
    *,
    max_attempts: int,
    description: str,
    record_id: Optional[uuid.UUID] = None,
) -> T:
    """
    Run ``operation`` in its own transaction, retrying on a version conflict.

    ``operation`` must do all of its reads through the session it is given;
    it is called again from scratch after every conflict. Exceptions other
    than StaleDataError roll back and propagate immediately.

    Raises:
        ConcurrentUpdateError: every attempt hit a conflict
    """
    for attempt in range(1, max_attempts + 1):
        try:
            async with session_maker() as session:
                async with session.begin():
                    return await operation(session)
        except StaleDataError:
            logger.info(
                "Concurrent update detected, retrying",
                extra={
                    "operation": description,
                    "record_id": str(record_id) if record_id else None,
                    "attempt": attempt,
                },
            )

    logger.error(
        "Concurrent update retries exhausted",
        extra={
            "operation": description,
            "record_id": str(record_id) if record_id else None,
            "attempts": max_attempts,
        },
    )
    raise ConcurrentUpdateError(
        f"{description} conflicted with concurrent writers {max_attempts} times",
        {"recordId": str(record_id) if record_id else None},
    )


async def safe_json_update(
    session_maker: async_sessionmaker[AsyncSession],
    model: Type[ModelT],
    record_id: uuid.UUID,
    transform: DocumentTransform,
    *,
    max_attempts: int,
    after: Optional[AfterWrite] = None,
) -> ModelT:
    """
    Apply ``transform`` to the ``metadata`` document of one row under OCC.

    The transform receives a private deep copy of the stored document and
    returns the replacement. ``after(record, before, after)`` runs in the
    same transaction, for denormalised columns that must change together
    with the document.

    Raises:
        RecordNotFoundError: no row with ``record_id``
        ConcurrentUpdateError: conflict retries exhausted
    """

    async def _apply(session: AsyncSession) -> ModelT:
        record = await session.get(model, record_id)
        if record is None:
            raise RecordNotFoundError(
                f"{model.__name__} not found",
                {"id": str(record_id)},
            )
        before = copy.deepcopy(record.metadata_ or {})
        updated = transform(copy.deepcopy(before))
        # New object, so the JSON column is flagged dirty
        record.metadata_ = updated
        if after is not None:
            after(record, before, updated)
        return record

    return await run_with_occ(
        session_maker,
        _apply,
        max_attempts=max_attempts,
        description=f"{model.__name__} metadata update",
        record_id=record_id,
    )
