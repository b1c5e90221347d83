"""
Syncable entities and link tables.

Creatures, moves and areas are written by ingestion with ``remote_id`` unset.
The sync engine sets ``remote_id`` exactly once, after HubSpot confirms the
created record. Link tables are read-only from the engine's point of view.
"""

from typing import Optional

from sqlalchemy import BigInteger, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from pokesync.db.base import Base


class Creature(Base):
    """A creature, synced to HubSpot as a Contact."""

    __tablename__ = "creatures"

    # Local identifiers come from the upstream provider, never autoincremented
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    hp: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    attack: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    defense: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    special_defense: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    special_attack: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    speed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    remote_id: Mapped[Optional[int]] = mapped_column(
        BigInteger,
        nullable=True,
        comment="HubSpot contact hs_object_id, set once after sync",
    )

    __table_args__ = (Index("ix_creatures_remote_id", "remote_id"),)

    def __repr__(self) -> str:
        return f"<Creature(id={self.id}, name='{self.name}', remote_id={self.remote_id})>"


class Move(Base):
    """A move, synced to HubSpot as the custom object ``move``."""

    __tablename__ = "moves"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    pp: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    power: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    remote_id: Mapped[Optional[int]] = mapped_column(
        BigInteger,
        nullable=True,
        comment="HubSpot move object hs_object_id, set once after sync",
    )

    __table_args__ = (Index("ix_moves_remote_id", "remote_id"),)

    def __repr__(self) -> str:
        return f"<Move(id={self.id}, name='{self.name}', remote_id={self.remote_id})>"


class Area(Base):
    """A location area, synced to HubSpot as a Company."""

    __tablename__ = "areas"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    number_area: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    region: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    generation: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    remote_id: Mapped[Optional[int]] = mapped_column(
        BigInteger,
        nullable=True,
        comment="HubSpot company hs_object_id, set once after sync",
    )

    __table_args__ = (Index("ix_areas_remote_id", "remote_id"),)

    def __repr__(self) -> str:
        return f"<Area(id={self.id}, name='{self.name}', remote_id={self.remote_id})>"


class CreatureType(Base):
    """Elemental type name (rendered into the contact's ``types`` checkbox)."""

    __tablename__ = "creature_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)


class CreatureTypeLink(Base):
    __tablename__ = "creature_type_links"

    creature_id: Mapped[int] = mapped_column(
        ForeignKey("creatures.id", ondelete="CASCADE"), primary_key=True
    )
    type_id: Mapped[int] = mapped_column(
        ForeignKey("creature_types.id", ondelete="CASCADE"), primary_key=True
    )


class CreatureArea(Base):
    """Link row: a creature can be found in an area."""

    __tablename__ = "creature_areas"

    creature_id: Mapped[int] = mapped_column(
        ForeignKey("creatures.id", ondelete="CASCADE"), primary_key=True
    )
    area_id: Mapped[int] = mapped_column(
        ForeignKey("areas.id", ondelete="CASCADE"), primary_key=True
    )


class CreatureMove(Base):
    """Link row: a creature can learn a move."""

    __tablename__ = "creature_moves"

    creature_id: Mapped[int] = mapped_column(
        ForeignKey("creatures.id", ondelete="CASCADE"), primary_key=True
    )
    move_id: Mapped[int] = mapped_column(
        ForeignKey("moves.id", ondelete="CASCADE"), primary_key=True
    )
