"""
Repository for syncable entities (creatures, moves, areas).

Every operation checks out its own session from the pool; there is no
application-level locking.
"""

import logging
import math
from typing import Any, Generic, List, Type, TypeVar

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pokesync.core.exceptions import StorageError

logger = logging.getLogger(__name__)

DEFAULT_PENDING_LIMIT = 1000

EntityT = TypeVar("EntityT")


def clamp_limit(limit: Any, fallback: int = DEFAULT_PENDING_LIMIT) -> int:
    """
    Clamp a caller-supplied limit to a positive integer.

    Malformed or non-finite input (None, "abc", NaN, inf) falls back to
    ``fallback``; finite numbers are floored and raised to at least 1.

    Example:
        >>> clamp_limit("250")
        250
        >>> clamp_limit(0)
        1
        >>> clamp_limit(float("nan"))
        1000
    """
    if isinstance(limit, bool):
        return fallback
    try:
        value = float(limit)
    except (TypeError, ValueError):
        return fallback
    if not math.isfinite(value):
        return fallback
    return max(1, math.floor(value))


class SyncableRepository(Generic[EntityT]):
    """
    Pending selection and remote id persistence for one entity model.

    The model must expose integer ``id`` and nullable ``remote_id`` columns.
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        model_class: Type[EntityT],
    ):
        """
        Initialize repository.

        Args:
            session_maker: Async session factory
            model_class: ORM class (Creature, Move or Area)
        """
        self.session_maker = session_maker
        self.model_class = model_class

    @property
    def name(self) -> str:
        return self.model_class.__name__

    async def select_pending(self, limit: Any = DEFAULT_PENDING_LIMIT) -> List[EntityT]:
        """
        Return rows without a remote id, ascending by local id.

        Args:
            limit: Maximum rows to return (clamped, see clamp_limit)

        Returns:
            List of detached entities with remote_id = NULL

        Raises:
            StorageError: If the query fails
        """
        safe_limit = clamp_limit(limit)
        query = (
            select(self.model_class)
            .where(self.model_class.remote_id.is_(None))
            .order_by(self.model_class.id.asc())
            .limit(safe_limit)
        )
        try:
            async with self.session_maker() as session:
                result = await session.execute(query)
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read pending {self.name} rows: {e}") from e

    async def count_pending(self) -> int:
        """Count rows without a remote id."""
        query = (
            select(func.count())
            .select_from(self.model_class)
            .where(self.model_class.remote_id.is_(None))
        )
        try:
            async with self.session_maker() as session:
                result = await session.execute(query)
                return int(result.scalar_one())
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to count pending {self.name} rows: {e}") from e

    async def save_remote_id(self, local_id: int, remote_id: int) -> bool:
        """
        Persist the HubSpot id onto a pending row.

        The update only touches rows whose remote_id is still NULL, so an
        already-synced row is never overwritten.

        Args:
            local_id: Local primary key
            remote_id: HubSpot hs_object_id

        Returns:
            True if the row was updated, False if it was missing or already synced

        Raises:
            StorageError: If the update fails
        """
        statement = (
            update(self.model_class)
            .where(self.model_class.id == local_id)
            .where(self.model_class.remote_id.is_(None))
            .values(remote_id=remote_id)
        )
        try:
            async with self.session_maker() as session:
                async with session.begin():
                    result = await session.execute(statement)
                    updated = result.rowcount
        except SQLAlchemyError as e:
            raise StorageError(
                f"Failed to save remote id {remote_id} for {self.name} {local_id}: {e}"
            ) from e

        if updated == 0:
            logger.warning(
                f"⚠️ {self.name} {local_id} not updated (missing or already synced)"
            )
            return False
        return True
