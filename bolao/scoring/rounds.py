"""Winner selection for club-loyalty ("Torcida Mestre") rounds.

A round only pays out when the tracked club wins (or draws, when the pool
allows draws). Only then are exact-score predictions considered. A perfect
prediction of a defeat therefore still accumulates the prize.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Protocol, Sequence, Tuple, TypeVar


class ScoredPrediction(Protocol):
    """Anything exposing predicted home and away goals."""

    home_score: int
    away_score: int


P = TypeVar("P", bound=ScoredPrediction)


class AccumulationReason(str, Enum):
    """Why a decided round carries its prize to the next round."""

    TEAM_LOST = "team_lost"
    DRAW_NOT_ALLOWED = "draw_not_allowed"
    NO_WINNERS = "no_winners"


@dataclass(frozen=True)
class MatchResult:
    """Final score of a round; either side is ``None`` until the match is played."""

    home: Optional[int] = None
    away: Optional[int] = None

    @property
    def is_set(self) -> bool:
        return self.home is not None and self.away is not None


@dataclass(frozen=True)
class RoundPolicy:
    """Loyalty settings for a round.

    Attributes
    ----------
    is_home : bool
        ``True`` when the tracked club is the home side, so its goals are
        ``MatchResult.home``.
    allow_draws : bool
        Whether a draw still lets exact-score predictions win.
    """

    is_home: bool
    allow_draws: bool = False


@dataclass(frozen=True)
class ScorePrediction:
    """Lightweight prediction record for callers without ORM rows."""

    home_score: int
    away_score: int
    participant: Optional[str] = None


@dataclass(frozen=True)
class WinnerOutcome:
    """Result of evaluating one round.

    Attributes
    ----------
    winners : tuple
        Predictions that hit the exact score, in input order. Empty when the
        round accumulates or is undecided.
    should_accumulate : bool
        ``True`` when the round's prize carries over to the next round.
    reason : Optional[AccumulationReason]
        Why the prize accumulates; ``None`` when there are winners or the
        result is not set.
    """

    winners: Tuple = ()
    should_accumulate: bool = False
    reason: Optional[AccumulationReason] = None

    @property
    def winners_count(self) -> int:
        return len(self.winners)

    @property
    def is_decided(self) -> bool:
        """``False`` only for the neutral outcome of an unset result."""
        return self.should_accumulate or bool(self.winners)


UNDECIDED = WinnerOutcome()


def _accumulate(reason: AccumulationReason) -> WinnerOutcome:
    return WinnerOutcome(winners=(), should_accumulate=True, reason=reason)


def exact_score_matches(
    result: MatchResult, predictions: Iterable[P]
) -> Sequence[P]:
    """Return predictions whose scores equal ``result`` exactly."""
    return [
        prediction
        for prediction in predictions
        if prediction.home_score == result.home
        and prediction.away_score == result.away
    ]


def compute_round_winners(
    result: MatchResult,
    predictions: Iterable[P],
    policy: RoundPolicy,
) -> WinnerOutcome:
    """Determine the winners of a loyalty round and whether it accumulates.

    Parameters
    ----------
    result : MatchResult
        Final score of the round.
    predictions : Iterable
        Predictions submitted for the round. They are only read.
    policy : RoundPolicy
        Home/away side of the tracked club and the draw rule.

    Returns
    -------
    WinnerOutcome
        Winners and accumulation flag.

    Notes
    -----
    The decision steps run in this order:

    1. An unset result yields the neutral :data:`UNDECIDED` outcome.
    2. The club lost: accumulate with ``TEAM_LOST`` without looking at
       predictions.
    3. A draw when draws are not allowed: accumulate with
       ``DRAW_NOT_ALLOWED``.
    4. Exact-score predictions are co-winners; none means ``NO_WINNERS``.
    """
    if not result.is_set:
        return UNDECIDED

    home, away = result.home, result.away
    club_won = home > away if policy.is_home else away > home
    is_draw = home == away

    if not club_won and not is_draw:
        return _accumulate(AccumulationReason.TEAM_LOST)
    if is_draw and not policy.allow_draws:
        return _accumulate(AccumulationReason.DRAW_NOT_ALLOWED)

    winners = exact_score_matches(result, predictions)
    if not winners:
        return _accumulate(AccumulationReason.NO_WINNERS)
    return WinnerOutcome(winners=tuple(winners), should_accumulate=False)


__all__ = [
    "AccumulationReason",
    "MatchResult",
    "RoundPolicy",
    "ScorePrediction",
    "UNDECIDED",
    "WinnerOutcome",
    "compute_round_winners",
    "exact_score_matches",
]
