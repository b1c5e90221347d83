"""
Shared fixtures.

Repository and engine tests run against a temporary SQLite database; HubSpot
is replaced by FakeHubSpot (see fakes.py).
"""

import httpx
import pytest
import pytest_asyncio

from pokesync.core.config import Settings
from pokesync.db import Base, create_engine, create_session_maker
from pokesync.integrations.hubspot.client import HubSpotClient
from pokesync.services.crm_sync import SyncContext

from fakes import MOVE_OBJECT, FakeHubSpot


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'pokesync.db'}",
        HUBSPOT_TOKEN="test-token",
        HUBSPOT_MAX_RETRIES=0,
        HUBSPOT_MOVE_OBJECT=MOVE_OBJECT,
        HUBSPOT_MOVE_UPLOAD_LIMIT=None,
    )


@pytest.fixture
def fake_hubspot() -> FakeHubSpot:
    return FakeHubSpot()


@pytest_asyncio.fixture
async def engine(settings):
    engine = create_engine(settings)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return create_session_maker(engine)


@pytest_asyncio.fixture
async def context(settings, session_maker, fake_hubspot):
    client = HubSpotClient(
        api_token=settings.hubspot_token,
        api_base_url=settings.hubspot_api_base_url,
        max_retries=0,
        transport=httpx.MockTransport(fake_hubspot.handler),
    )
    context = SyncContext(settings=settings, session_maker=session_maker, client=client)
    yield context
    await context.close()
