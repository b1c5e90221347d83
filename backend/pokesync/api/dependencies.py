"""
FastAPI dependencies.

The sync context is built once in the application lifespan and stored on
``app.state``; routes receive it (or an orchestrator around it) from here.
"""

from typing import Annotated

from fastapi import Depends, Request

from pokesync.services.crm_sync import SyncContext, SyncOrchestrator


def get_sync_context(request: Request) -> SyncContext:
    return request.app.state.sync_context


def get_orchestrator(
    context: Annotated[SyncContext, Depends(get_sync_context)],
) -> SyncOrchestrator:
    """New orchestrator per request (own error tracker, shared context)."""
    return SyncOrchestrator(context)
