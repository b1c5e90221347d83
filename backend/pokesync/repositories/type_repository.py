"""
Read access to creature type names.
"""

from collections import defaultdict
from typing import Dict, Iterable, List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pokesync.core.exceptions import StorageError
from pokesync.models import CreatureType, CreatureTypeLink


class TypeRepository:
    """Loads type names for a set of creatures in one query."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self.session_maker = session_maker

    async def type_names_for(self, creature_ids: Iterable[int]) -> Dict[int, List[str]]:
        """
        Map creature id -> type names (ordered by type id).

        Creatures without types are absent from the result.
        """
        ids = list(creature_ids)
        if not ids:
            return {}

        query = (
            select(CreatureTypeLink.creature_id, CreatureType.name)
            .join(CreatureType, CreatureType.id == CreatureTypeLink.type_id)
            .where(CreatureTypeLink.creature_id.in_(ids))
            .order_by(CreatureTypeLink.creature_id, CreatureType.id)
        )
        try:
            async with self.session_maker() as session:
                result = await session.execute(query)
                rows = result.all()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read creature types: {e}") from e

        names: Dict[int, List[str]] = defaultdict(list)
        for creature_id, type_name in rows:
            names[creature_id].append(type_name)
        return dict(names)
