"""Rounds, participant tickets and their score predictions."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    select,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from bolao.db.utils import dt_iso
from bolao.scoring.prizes import RoundFinancials
from bolao.scoring.rounds import MatchResult, RoundPolicy

from .base import Base
from .id_type import ID_TYPE

if TYPE_CHECKING:
    from .pool import Game, Pool
    from .profile import Profile

PARTICIPANT_STATUSES = ("pending", "active", "blocked")


class Round(Base):
    """One match of the tracked club inside a game."""

    __tablename__ = "rounds"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    """Primary key."""

    pool_id: Mapped[int] = mapped_column(
        ForeignKey("pools.id", ondelete="CASCADE"), nullable=False, index=True
    )
    game_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("games.id", ondelete="CASCADE"), nullable=True, index=True
    )
    round_number: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    opponent_name: Mapped[str] = mapped_column(String(100), nullable=False)

    match_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    prediction_deadline: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )

    is_home: Mapped[bool] = mapped_column(Boolean, nullable=False)
    """``True`` when the tracked club plays at home."""

    home_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    away_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    is_finished: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    accumulated_prize: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    """Entry fees collected by this round, stored when the round is finished."""

    previous_accumulated: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    """Prize carried over from the previous round when it had no winners."""

    entry_fee_override: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

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

    pool: Mapped["Pool"] = relationship(back_populates="rounds")
    game: Mapped[Optional["Game"]] = relationship(back_populates="rounds")
    participants: Mapped[list["Participant"]] = relationship(
        back_populates="round",
        cascade="all, delete-orphan",
        order_by="Participant.id",
    )
    predictions: Mapped[list["Prediction"]] = relationship(
        back_populates="round",
        cascade="all, delete-orphan",
        order_by="Prediction.id",
    )

    def __init__(
        self,
        *,
        pool: "Pool",
        round_number: int,
        opponent_name: str,
        match_date: datetime,
        prediction_deadline: datetime,
        is_home: bool,
        game: Optional["Game"] = None,
        name: Optional[str] = None,
        previous_accumulated: float = 0,
        entry_fee_override: Optional[float] = None,
    ) -> None:
        self.pool = pool
        self.game = game
        self.round_number = round_number
        self.name = name
        self.opponent_name = opponent_name
        self.match_date = match_date
        self.prediction_deadline = prediction_deadline
        self.is_home = is_home
        self.home_score = None
        self.away_score = None
        self.is_finished = False
        self.accumulated_prize = 0
        self.previous_accumulated = previous_accumulated
        self.entry_fee_override = entry_fee_override

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return (
            f"<Round(id={self.id}, round_number={self.round_number}, "
            f"opponent_name='{self.opponent_name}', is_finished={self.is_finished})>"
        )

    @property
    def result(self) -> MatchResult:
        return MatchResult(home=self.home_score, away=self.away_score)

    @property
    def policy(self) -> RoundPolicy:
        return RoundPolicy(is_home=self.is_home, allow_draws=self.pool.allow_draws)

    @property
    def entry_fee(self) -> float:
        """Fee charged per ticket in this round."""
        if self.entry_fee_override is not None:
            return self.entry_fee_override
        return self.pool.entry_fee

    @property
    def active_participants(self) -> list["Participant"]:
        return [p for p in self.participants if p.status == "active"]

    @property
    def financials(self) -> RoundFinancials:
        return RoundFinancials(
            entry_fee=self.entry_fee,
            participants_count=len(self.active_participants),
            previous_accumulated=self.previous_accumulated or 0,
            admin_fee_percent=self.pool.admin_fee_percent,
        )

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "pool_id": self.pool_id,
            "game_id": self.game_id,
            "round_number": self.round_number,
            "name": self.name,
            "opponent_name": self.opponent_name,
            "match_date": dt_iso(self.match_date),
            "prediction_deadline": dt_iso(self.prediction_deadline),
            "is_home": self.is_home,
            "home_score": self.home_score,
            "away_score": self.away_score,
            "is_finished": self.is_finished,
            "accumulated_prize": self.accumulated_prize,
            "previous_accumulated": self.previous_accumulated,
            "entry_fee_override": self.entry_fee_override,
        }

    @classmethod
    def latest_finished(cls, session: Session, game_id: int) -> Optional["Round"]:
        """Return the most recent finished round of a game."""
        stmt = (
            select(cls)
            .where(cls.game_id == game_id, cls.is_finished.is_(True))
            .order_by(cls.round_number.desc(), cls.id.desc())
        )
        return session.scalars(stmt).first()


class Participant(Base):
    """A ticket bought by a user for a single round."""

    __tablename__ = "participants"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    round_id: Mapped[int] = mapped_column(
        ForeignKey("rounds.id", ondelete="CASCADE"), nullable=False, index=True
    )
    profile_id: Mapped[int] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    ticket_number: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    paid_amount: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    round: Mapped["Round"] = relationship(back_populates="participants")
    profile: Mapped["Profile"] = relationship(back_populates="participations")
    predictions: Mapped[list["Prediction"]] = relationship(back_populates="participant")

    __table_args__ = (
        UniqueConstraint(
            "round_id",
            "profile_id",
            "ticket_number",
            name="participants_round_id_profile_id_ticket_number_key",
        ),
        CheckConstraint(
            "status IN ({})".format(", ".join(f"'{s}'" for s in PARTICIPANT_STATUSES)),
            name="status_valid",
        ),
    )

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return (
            f"<Participant(id={self.id}, round_id={self.round_id}, "
            f"ticket_number={self.ticket_number}, status='{self.status}')>"
        )


class Prediction(Base):
    """Score predicted by one ticket for its round."""

    __tablename__ = "predictions"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    round_id: Mapped[int] = mapped_column(
        ForeignKey("rounds.id", ondelete="CASCADE"), nullable=False, index=True
    )
    participant_id: Mapped[int] = mapped_column(
        ForeignKey("participants.id", ondelete="CASCADE"), nullable=False, index=True
    )
    home_score: Mapped[int] = mapped_column(Integer, nullable=False)
    away_score: Mapped[int] = mapped_column(Integer, nullable=False)
    is_winner: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    prize_won: Mapped[float] = mapped_column(Float, nullable=False, default=0)
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

    round: Mapped["Round"] = relationship(back_populates="predictions")
    participant: Mapped["Participant"] = relationship(back_populates="predictions")

    __table_args__ = (
        UniqueConstraint(
            "round_id",
            "participant_id",
            name="predictions_round_id_participant_id_key",
        ),
    )

    def __init__(
        self,
        *,
        round: "Round",
        participant: "Participant",
        home_score: int,
        away_score: int,
    ) -> None:
        self.round = round
        self.participant = participant
        self.home_score = home_score
        self.away_score = away_score
        self.is_winner = False
        self.prize_won = 0

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return (
            f"<Prediction(id={self.id}, round_id={self.round_id}, "
            f"score={self.home_score}x{self.away_score}, is_winner={self.is_winner})>"
        )

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "round_id": self.round_id,
            "participant_id": self.participant_id,
            "home_score": self.home_score,
            "away_score": self.away_score,
            "is_winner": self.is_winner,
            "prize_won": self.prize_won,
            "created_at": dt_iso(self.created_at),
        }
