"""
Payload builder: local row -> HubSpot create input.

One builder per entity kind; each embeds the correlation key in the kind's
correlation property and in ``objectWriteTraceId``.
"""

import logging
from typing import Dict, List, Optional, Sequence

from pokesync.core.kinds import EntityKind
from pokesync.integrations.hubspot.schema import (
    AreaProperties,
    CreateInput,
    CreatureProperties,
    MoveProperties,
)
from pokesync.models import Area, Creature, Move
from pokesync.services.crm_sync.correlation import key_for

logger = logging.getLogger(__name__)


def creature_properties(
    creature: Creature,
    key: str,
    type_names: Sequence[str] = (),
) -> CreatureProperties:
    return CreatureProperties(
        name=creature.name,
        phone=key,
        hp=creature.hp,
        attack=creature.attack,
        defense=creature.defense,
        special_defense=creature.special_defense,
        special_attack=creature.special_attack,
        speed=creature.speed,
        types=";".join(type_names),
    )


def move_properties(move: Move, key: str) -> MoveProperties:
    return MoveProperties(
        id=key,
        name=move.name,
        pp=move.pp,
        power=move.power if move.power is not None else 0,
    )


def area_properties(area: Area, key: str) -> AreaProperties:
    return AreaProperties(
        name=area.name,
        phone=key,
        country=area.region,
        generation=area.generation,
        number_of_areas=area.number_area,
    )


def build_create_inputs(
    kind: EntityKind,
    chunk: Sequence,
    type_names: Optional[Dict[int, List[str]]] = None,
) -> List[CreateInput]:
    """
    Build batch/create inputs for a chunk.

    Rows without a usable id are skipped (logged), never sent.

    Args:
        kind: Entity kind of every row in the chunk
        chunk: Local rows
        type_names: Creature id -> type names (creatures only)

    Returns:
        Inputs in chunk order
    """
    type_names = type_names or {}
    inputs: List[CreateInput] = []

    for entity in chunk:
        key = key_for(entity)
        if key is None:
            logger.warning(f"⚠️ {kind.value} without id, skipping: {entity!r}")
            continue

        if kind is EntityKind.CREATURE:
            properties = creature_properties(entity, key, type_names.get(entity.id, []))
        elif kind is EntityKind.MOVE:
            properties = move_properties(entity, key)
        else:
            properties = area_properties(entity, key)

        inputs.append(CreateInput(object_write_trace_id=key, properties=properties))

    return inputs
