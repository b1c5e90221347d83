"""
Storage boundary of the sync engine.
"""

from .entity_repository import SyncableRepository, clamp_limit
from .link_repository import AssociablePair, LinkRepository
from .type_repository import TypeRepository

__all__ = [
    "SyncableRepository",
    "clamp_limit",
    "AssociablePair",
    "LinkRepository",
    "TypeRepository",
]
