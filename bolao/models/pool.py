"""Loyalty pools and the games that group their rounds."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base
from .id_type import ID_TYPE

if TYPE_CHECKING:
    from .round import Round


class Pool(Base):
    """A club-loyalty pool: supporters of one club predict its matches."""

    __tablename__ = "pools"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    """Primary key."""

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    """Display name of the pool."""

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    club_name: Mapped[str] = mapped_column(String(100), nullable=False)
    """Name of the tracked club, used in result messages."""

    entry_fee: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    """Default fee per ticket; a round may override it."""

    admin_fee_percent: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    """Share of each round's prize (0-100) retained by the organizer."""

    allow_draws: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    """Whether a drawn match can still produce winners."""

    allow_multiple_tickets: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    games: Mapped[list["Game"]] = relationship(
        back_populates="pool",
        cascade="all, delete-orphan",
        order_by="Game.game_number",
    )
    rounds: Mapped[list["Round"]] = relationship(
        back_populates="pool",
        cascade="all, delete-orphan",
    )

    def __init__(
        self,
        *,
        name: str,
        club_name: str,
        entry_fee: float = 0,
        admin_fee_percent: float = 0,
        allow_draws: bool = False,
        allow_multiple_tickets: bool = False,
        is_active: bool = True,
        description: Optional[str] = None,
    ) -> None:
        self.name = name
        self.club_name = club_name
        self.entry_fee = entry_fee
        self.admin_fee_percent = admin_fee_percent
        self.allow_draws = allow_draws
        self.allow_multiple_tickets = allow_multiple_tickets
        self.is_active = is_active
        self.description = description

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return f"<Pool(id={self.id}, name='{self.name}', club_name='{self.club_name}')>"


class Game(Base):
    """A sequence of rounds whose unclaimed prizes accumulate together."""

    __tablename__ = "games"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    pool_id: Mapped[int] = mapped_column(
        ForeignKey("pools.id", ondelete="CASCADE"), nullable=False, index=True
    )
    game_number: Mapped[int] = mapped_column(Integer, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_finished: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    total_accumulated: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    """Prize currently carried over within this game."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    pool: Mapped["Pool"] = relationship(back_populates="games")
    rounds: Mapped[list["Round"]] = relationship(
        back_populates="game",
        order_by="Round.round_number",
    )

    __table_args__ = (
        UniqueConstraint("pool_id", "game_number", name="games_pool_id_game_number_key"),
    )

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return f"<Game(id={self.id}, pool_id={self.pool_id}, game_number={self.game_number})>"
