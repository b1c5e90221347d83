from .entities import (
    Area,
    Creature,
    CreatureArea,
    CreatureMove,
    CreatureType,
    CreatureTypeLink,
    Move,
)

__all__ = [
    "Area",
    "Creature",
    "CreatureArea",
    "CreatureMove",
    "CreatureType",
    "CreatureTypeLink",
    "Move",
]
