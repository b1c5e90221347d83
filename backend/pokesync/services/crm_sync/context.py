"""
Sync context.

Everything the engine shares across components (session factory, HubSpot
client, resolver caches, status tracker) is built once at startup and passed
explicitly; there are no module-level singletons.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from pokesync.core.config import Settings
from pokesync.core.kinds import EntityKind
from pokesync.db.session import create_engine, create_session_maker
from pokesync.integrations.hubspot.client import HubSpotClient
from pokesync.services.crm_sync.association_type_resolver import (
    AssociationTypeEntry,
    DirectionKey,
)
from pokesync.services.sync_status import SyncStatusTracker

logger = logging.getLogger(__name__)


@dataclass
class SyncContext:
    """
    Shared state for one process.

    Attributes:
        settings: Application settings
        session_maker: Async session factory (pool checkout per operation)
        client: HubSpot API client
        engine: Engine owned by this context, disposed on close
        association_types: (from_type, to_type) -> resolved association type
        object_types: kind -> discovered HubSpot object type
        status: Progress of the current/last run
    """
    settings: Settings
    session_maker: async_sessionmaker[AsyncSession]
    client: HubSpotClient
    engine: Optional[AsyncEngine] = None
    association_types: Dict[DirectionKey, AssociationTypeEntry] = field(default_factory=dict)
    object_types: Dict[EntityKind, str] = field(default_factory=dict)
    status: SyncStatusTracker = field(default_factory=SyncStatusTracker)

    async def close(self) -> None:
        """Close the HubSpot client and dispose the engine (if owned)."""
        await self.client.close()
        if self.engine is not None:
            await self.engine.dispose()
        logger.info("SyncContext closed")


def build_sync_context(settings: Settings) -> SyncContext:
    """
    Build the context from settings.

    Args:
        settings: Application settings

    Returns:
        SyncContext owning a new engine and HubSpot client
    """
    engine = create_engine(settings)
    client = HubSpotClient(
        api_token=settings.hubspot_token,
        api_base_url=settings.hubspot_api_base_url,
        timeout=settings.hubspot_timeout,
        max_retries=settings.hubspot_max_retries,
        retry_backoff=settings.hubspot_retry_backoff,
    )
    if not settings.hubspot_token:
        logger.warning("⚠️ HUBSPOT_TOKEN is not set; HubSpot calls will be rejected")

    return SyncContext(
        settings=settings,
        session_maker=create_session_maker(engine),
        client=client,
        engine=engine,
    )
