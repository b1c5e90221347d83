"""
HubSpot payload structures.

Outbound property bags are one model per entity kind so property names and
the correlation property are fixed per kind. Response structures are parsed
leniently: HubSpot echoes every property as a string (or null).
"""

from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, Field

from pokesync.core.kinds import EntityKind

# Standard objects; moves live in a custom object resolved at runtime
CONTACTS_OBJECT = "contacts"
COMPANIES_OBJECT = "companies"


# =============================================================================
# Outbound property bags
# =============================================================================

class CreatureProperties(BaseModel):
    """Contact properties for a creature. ``phone`` carries the correlation key."""

    correlation_property: ClassVar[str] = "phone"

    name: str
    phone: str
    hp: int
    attack: int
    defense: int
    special_defense: int
    special_attack: int
    speed: int
    # HubSpot multi-checkbox: values separated by ';' (e.g. "Fire;Flying")
    types: str = ""


class MoveProperties(BaseModel):
    """Custom ``move`` object properties. ``id`` carries the correlation key."""

    correlation_property: ClassVar[str] = "id"

    id: str
    name: str
    pp: int
    power: int = 0


class AreaProperties(BaseModel):
    """Company properties for an area. ``phone`` carries the correlation key."""

    correlation_property: ClassVar[str] = "phone"

    name: str
    phone: str
    country: Optional[str] = None
    generation: Optional[str] = None
    number_of_areas: Optional[int] = None


EntityProperties = Union[CreatureProperties, MoveProperties, AreaProperties]

PROPERTIES_BY_KIND: Dict[EntityKind, Type[BaseModel]] = {
    EntityKind.CREATURE: CreatureProperties,
    EntityKind.MOVE: MoveProperties,
    EntityKind.AREA: AreaProperties,
}


def correlation_property_for(kind: EntityKind) -> str:
    """Name of the property that carries the correlation key for a kind."""
    return PROPERTIES_BY_KIND[kind].correlation_property


class CreateInput(BaseModel):
    """One input of a batch/create request."""

    model_config = ConfigDict(populate_by_name=True)

    object_write_trace_id: str = Field(alias="objectWriteTraceId")
    properties: EntityProperties

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


# =============================================================================
# Responses
# =============================================================================

class RemoteRecord(BaseModel):
    """A created or read HubSpot record: hs_object_id plus echoed properties."""

    model_config = ConfigDict(extra="ignore")

    id: str
    properties: Dict[str, Any] = Field(default_factory=dict)

    def has_property(self, name: str) -> bool:
        return self.properties.get(name) is not None


class RemoteError(BaseModel):
    """A partial error reported inside a 2xx batch response."""

    model_config = ConfigDict(extra="ignore")

    status: Optional[str] = None
    category: Optional[str] = None
    message: str = ""
    context: Dict[str, Any] = Field(default_factory=dict)

    def __str__(self) -> str:
        return f"{self.category or 'ERROR'}: {self.message}"


def parse_records(body: Dict[str, Any]) -> List[RemoteRecord]:
    """Extract ``results`` from a batch response, skipping entries without an id."""
    records = []
    for item in body.get("results") or []:
        if isinstance(item, dict) and item.get("id") is not None:
            records.append(
                RemoteRecord(id=str(item["id"]), properties=item.get("properties") or {})
            )
    return records


def parse_errors(body: Dict[str, Any]) -> List[RemoteError]:
    """Extract ``errors`` from a batch response."""
    errors = []
    for item in body.get("errors") or []:
        if isinstance(item, dict):
            errors.append(RemoteError.model_validate(item))
        else:
            errors.append(RemoteError(message=str(item)))
    return errors


# =============================================================================
# Associations
# =============================================================================

class AssociationCategory(str, Enum):
    HUBSPOT_DEFINED = "HUBSPOT_DEFINED"
    USER_DEFINED = "USER_DEFINED"


class AssociationTypeDescriptor(BaseModel):
    """A named relationship kind between two HubSpot object types."""

    model_config = ConfigDict(frozen=True)

    category: AssociationCategory
    type_id: int
    label: Optional[str] = None

    @classmethod
    def from_label(cls, item: Dict[str, Any]) -> "AssociationTypeDescriptor":
        return cls(
            category=item["category"],
            type_id=int(item["typeId"]),
            label=item.get("label"),
        )


class AssociationInput(BaseModel):
    """One input of a v4 associations batch/create request."""

    from_id: str
    to_id: str
    descriptor: AssociationTypeDescriptor

    def to_payload(self) -> Dict[str, Any]:
        return {
            "from": {"id": self.from_id},
            "to": {"id": self.to_id},
            "types": [
                {
                    "associationCategory": self.descriptor.category.value,
                    "associationTypeId": self.descriptor.type_id,
                }
            ],
        }
