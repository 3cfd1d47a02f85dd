"""
FastAPI dependencies: session factory and the per-request PMCContext.

Authentication belongs to the host platform; it forwards the acting user
in the ``X-User-Id`` header (and optionally ``X-User-Name``).
"""

import uuid
from typing import Annotated, Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pmc_deposit.config import Settings, get_settings
from pmc_deposit.context import PMCContext
from pmc_deposit.database import async_session_maker
from pmc_deposit.notifications import build_notification_channel


def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """Session factory; overridden in tests."""
    return async_session_maker


def _parse_user_id(raw: Optional[str]) -> Optional[uuid.UUID]:
    if not raw:
        return None
    try:
        return uuid.UUID(raw)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-User-Id must be a UUID",
        )


async def get_pmc_context(
    session_maker: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_maker)],
    settings: Annotated[Settings, Depends(get_settings)],
    x_user_id: Annotated[Optional[str], Header()] = None,
    x_user_name: Annotated[Optional[str], Header()] = None,
) -> PMCContext:
    return PMCContext(
        session_maker=session_maker,
        user_id=_parse_user_id(x_user_id),
        user_name=x_user_name,
        notifier=build_notification_channel(
            settings.notification_webhook_url,
            timeout=settings.notification_timeout,
        ),
        settings=settings,
    )


Context = Annotated[PMCContext, Depends(get_pmc_context)]
