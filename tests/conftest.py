"""
Pytest fixtures for PMC deposit tests.
"""

import os

# Settings are read at import time; keep the module-level engine off Postgres
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import uuid
from typing import Any, AsyncGenerator, Dict, List

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from pmc_deposit.config import Settings
from pmc_deposit.context import PMCContext
from pmc_deposit.database import build_engine, build_session_maker
from pmc_deposit.kernel.models import Base, WorkVersion
from pmc_deposit.notifications import NotificationEvent
from pmc_deposit.orchestration import start_pmc_deposit


class RecordingNotifier:
    """Notification channel that keeps every event it is sent."""

    def __init__(self):
        self.events: List[NotificationEvent] = []

    async def send(self, event: NotificationEvent) -> None:
        self.events.append(event)

    def types(self) -> List[str]:
        return [e.type for e in self.events]


@pytest_asyncio.fixture(scope="function")
async def db_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """File-backed SQLite engine so separate sessions see each other's commits."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'pmc_test.db'}")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_maker(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return build_session_maker(db_engine)


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Test settings; no webhook, small OCC budget."""
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'pmc_test.db'}",
        occ_max_attempts=3,
        notification_webhook_url=None,
    )


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def user_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def ctx(session_maker, notifier, settings, user_id) -> PMCContext:
    """Context for a signed-in user."""
    return PMCContext(
        session_maker=session_maker,
        user_id=user_id,
        user_name="Ada Lovelace",
        notifier=notifier,
        settings=settings,
    )


@pytest.fixture
def system_ctx(session_maker, notifier, settings) -> PMCContext:
    """Context for system-originated work (webhooks, jobs)."""
    return PMCContext(session_maker=session_maker, notifier=notifier, settings=settings)


@pytest_asyncio.fixture
async def deposit(ctx: PMCContext) -> Dict[str, uuid.UUID]:
    """A freshly started deposit: draft WorkVersion + DRAFT SubmissionVersion."""
    return await start_pmc_deposit(ctx)


@pytest.fixture
def write_metadata(session_maker):
    """Overwrite a WorkVersion's metadata document directly."""

    async def _write(work_version_id: uuid.UUID, metadata: Dict[str, Any]) -> None:
        async with session_maker() as session:
            async with session.begin():
                version = await session.get(WorkVersion, work_version_id)
                version.metadata_ = metadata

    return _write


@pytest.fixture
def load(session_maker):
    """Fetch one row by primary key in a fresh session."""

    async def _load(model, record_id: uuid.UUID):
        async with session_maker() as session:
            return await session.get(model, record_id)

    return _load


# Sample data fixtures

@pytest.fixture
def manuscript_files() -> dict:
    return {
        "file-1": {
            "name": "manuscript.pdf",
            "path": "uploads/manuscript.pdf",
            "slot": "pmc/manuscript",
            "type": "application/pdf",
            "size": 102400,
        },
    }


@pytest.fixture
def complete_pmc() -> dict:
    """A ``pmc`` section that passes validation."""
    return {
        "title": "Cortical circuits in the adult mouse",
        "journalName": "Neuron",
        "doiUrl": "https://doi.org/10.1016/j.neuron.2024.01.001",
        "doiPublishedDate": "2024-01-15",
        "doiAuthors": [
            {"given": "Grace", "family": "Hopper", "sequence": "additional"},
            {"given": "Ada", "family": "Lovelace", "sequence": "first"},
        ],
        "grants": [
            {"id": "g-1", "funderKey": "hhmi", "grantId": "HHMI-001", "uniqueId": "u-1"},
            {"id": "g-2", "funderKey": "nih", "grantId": "5R01-456"},
        ],
        "certifyManuscript": True,
        "ownerFirstName": "Ada",
        "ownerLastName": "Lovelace",
    }


@pytest.fixture
def crossref_message() -> dict:
    """Crossref ``message`` for a journal article."""
    return {
        "title": ["Cortical circuits in the adult mouse"],
        "container-title": ["Neuron"],
        "short-container-title": ["Neuron"],
        "author": [
            {"given": "Ada", "family": "Lovelace", "sequence": "first"},
            {"given": "Grace", "family": "Hopper", "sequence": "additional"},
        ],
        "type": "journal-article",
        "volume": "112",
        "issue": "3",
        "page": "401-415",
        "source": "Crossref",
        "publisher": "Elsevier BV",
        "URL": "https://doi.org/10.1016/j.neuron.2024.01.001",
        "ISSN": ["0896-6273", "10974199"],
        "published": {"date-parts": [[2024, 1, 15]]},
    }
