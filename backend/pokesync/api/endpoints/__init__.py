# API endpoint routers
from . import health, hubspot, sync_status

__all__ = ["health", "hubspot", "sync_status"]
