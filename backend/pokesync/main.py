"""
PokeSync - FastAPI Application Entry Point

Reconciling batch synchronization of local Pokemon data into HubSpot.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pokesync.api.endpoints import health, hubspot, sync_status
from pokesync.core.config import Settings, get_settings
from pokesync.db.base import Base
from pokesync.services.crm_sync import SyncContext, build_sync_context

logger = logging.getLogger(__name__)


async def init_database(context: SyncContext):
    """Initialize database tables."""
    # Import all models to ensure they're registered with Base
    from pokesync import models  # noqa: F401

    async with context.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Settings to use (default: cached environment settings)
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan handler.
        Runs startup and shutdown logic.
        """
        # Startup
        logger.info("🚀 Starting PokeSync...")
        logger.info(f"Environment: {settings.app_env}")
        logger.info(f"Debug Mode: {settings.app_debug}")
        logger.info(f"HubSpot API: {settings.hubspot_api_base_url}")

        context = build_sync_context(settings)
        app.state.sync_context = context

        await init_database(context)
        logger.info("✅ Database tables initialized")

        logger.info("✅ Startup complete! Ready to accept requests.")
        logger.info("=" * 60)

        yield

        # Shutdown
        logger.info("👋 Shutting down PokeSync...")
        await context.close()
        logger.info("✅ Shutdown complete")

    app = FastAPI(
        title="PokeSync",
        description="Batch synchronization of local Pokemon data into HubSpot",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include API routers
    app.include_router(health.router, prefix="/api/v1", tags=["Health"])
    app.include_router(sync_status.router, prefix="/api/v1", tags=["Monitoring"])
    app.include_router(hubspot.router, prefix="/api/v1", tags=["HubSpot"])

    @app.get("/", tags=["Health"])
    async def root():
        """Liveness endpoint."""
        return {
            "status": "healthy",
            "service": "PokeSync",
            "version": "0.1.0",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    logging.basicConfig(
        level=logging.DEBUG if settings.app_debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    uvicorn.run(
        "pokesync.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.app_debug,
    )
