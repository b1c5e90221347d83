"""
Entity kinds and link pairs handled by the sync engine.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Type

from pokesync.db.base import Base
from pokesync.models import Area, Creature, CreatureArea, CreatureMove, Move


class EntityKind(str, Enum):
    """Local entity kinds that are mirrored in HubSpot."""
    CREATURE = "creature"
    MOVE = "move"
    AREA = "area"


class KindPair(str, Enum):
    """Link tables that become HubSpot associations."""
    CREATURE_AREA = "creature_area"
    CREATURE_MOVE = "creature_move"


class Direction(str, Enum):
    """FORWARD follows the link table (source -> target), REVERSE goes back."""
    FORWARD = "forward"
    REVERSE = "reverse"


ENTITY_MODELS = {
    EntityKind.CREATURE: Creature,
    EntityKind.MOVE: Move,
    EntityKind.AREA: Area,
}


@dataclass(frozen=True)
class LinkDefinition:
    """
    Static description of one link table.

    Attributes:
        link_model: ORM class of the link table
        source_kind / target_kind: entity kinds on each side
        source_column / target_column: link-table columns referencing them
        forward_type_id / reverse_type_id: preferred platform-defined
            association type ids, when HubSpot ships one for the pair
    """
    link_model: Type[Base]
    source_kind: EntityKind
    target_kind: EntityKind
    source_column: str
    target_column: str
    forward_type_id: Optional[int] = None
    reverse_type_id: Optional[int] = None


LINK_DEFINITIONS = {
    # HubSpot ships contact->company (279) and company->contact (280)
    KindPair.CREATURE_AREA: LinkDefinition(
        link_model=CreatureArea,
        source_kind=EntityKind.CREATURE,
        target_kind=EntityKind.AREA,
        source_column="creature_id",
        target_column="area_id",
        forward_type_id=279,
        reverse_type_id=280,
    ),
    KindPair.CREATURE_MOVE: LinkDefinition(
        link_model=CreatureMove,
        source_kind=EntityKind.CREATURE,
        target_kind=EntityKind.MOVE,
        source_column="creature_id",
        target_column="move_id",
    ),
}
