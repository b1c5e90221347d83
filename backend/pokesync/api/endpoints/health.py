"""
Health and Status Endpoints for Monitoring.
"""

import logging
from typing import Annotated, Dict

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from pokesync.api.dependencies import get_sync_context
from pokesync.core.exceptions import StorageError
from pokesync.core.kinds import ENTITY_MODELS
from pokesync.repositories import SyncableRepository
from pokesync.services.crm_sync import SyncContext

router = APIRouter()
logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    environment: str
    database_connected: bool
    hubspot_configured: bool
    pending: Dict[str, int] | None = None


@router.get("/health", response_model=HealthResponse)
async def health_check(
    context: Annotated[SyncContext, Depends(get_sync_context)],
) -> HealthResponse:
    """
    Health check with pending counts per entity kind.

    Returns:
        Health status; "unhealthy" when the database cannot be reached
    """
    settings = context.settings
    try:
        async with context.session_maker() as session:
            await session.execute(text("SELECT 1"))

        pending = {}
        for kind, model in ENTITY_MODELS.items():
            repo = SyncableRepository(context.session_maker, model)
            pending[kind.value] = await repo.count_pending()

        return HealthResponse(
            status="healthy",
            environment=settings.app_env,
            database_connected=True,
            hubspot_configured=bool(settings.hubspot_token),
            pending=pending,
        )

    except (SQLAlchemyError, StorageError) as e:
        logger.error(f"Health check failed: {e}")
        return HealthResponse(
            status="unhealthy",
            environment=settings.app_env,
            database_connected=False,
            hubspot_configured=bool(settings.hubspot_token),
        )
