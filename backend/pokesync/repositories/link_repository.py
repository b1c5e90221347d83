"""
Repository for link tables (creature <-> area, creature <-> move).
"""

import logging
from dataclasses import dataclass
from typing import List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import aliased

from pokesync.core.exceptions import StorageError
from pokesync.core.kinds import ENTITY_MODELS, LinkDefinition

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssociablePair:
    """A link row whose both ends already carry a HubSpot id."""
    source_id: int
    target_id: int
    source_remote_id: int
    target_remote_id: int


class LinkRepository:
    """
    Reads and writes one link table.

    Link rows are written by ingestion; the sync engine only reads the
    pairs that are ready to become associations.
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        definition: LinkDefinition,
    ):
        self.session_maker = session_maker
        self.definition = definition

    @property
    def name(self) -> str:
        return self.definition.link_model.__tablename__

    async def find_associable(self, limit: int = 5000) -> List[AssociablePair]:
        """
        Return link rows where both referenced entities have a remote id.

        Args:
            limit: Maximum pairs to return

        Returns:
            Pairs ordered by (source_id, target_id)

        Raises:
            StorageError: If the query fails
        """
        link = self.definition.link_model
        source = aliased(ENTITY_MODELS[self.definition.source_kind])
        target = aliased(ENTITY_MODELS[self.definition.target_kind])
        source_col = getattr(link, self.definition.source_column)
        target_col = getattr(link, self.definition.target_column)

        query = (
            select(source_col, target_col, source.remote_id, target.remote_id)
            .join(source, source.id == source_col)
            .join(target, target.id == target_col)
            .where(source.remote_id.is_not(None))
            .where(target.remote_id.is_not(None))
            .order_by(source_col, target_col)
            .limit(max(1, int(limit)))
        )
        try:
            async with self.session_maker() as session:
                result = await session.execute(query)
                rows = result.all()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read associable pairs from {self.name}: {e}") from e

        return [
            AssociablePair(
                source_id=row[0],
                target_id=row[1],
                source_remote_id=row[2],
                target_remote_id=row[3],
            )
            for row in rows
        ]

    async def add_link(self, source_id: int, target_id: int) -> bool:
        """
        Create a link row. Creating an existing pair is a no-op.

        Returns:
            True if inserted, False if the pair already existed
        """
        link = self.definition.link_model
        key = {
            self.definition.source_column: source_id,
            self.definition.target_column: target_id,
        }
        try:
            async with self.session_maker() as session:
                async with session.begin():
                    existing = await session.get(link, key)
                    if existing is not None:
                        return False
                    session.add(link(**key))
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to add link to {self.name}: {e}") from e
        return True
