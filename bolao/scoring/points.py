"""Point scoring for score predictions in a regular bolão."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Tuple

EXACT_SCORE_POINTS = 5
GOAL_DIFFERENCE_POINTS = 3
CORRECT_WINNER_POINTS = 1
NO_MATCH_POINTS = 0


class OutcomeClass(str, Enum):
    """Three-valued classification of a final score."""

    HOME_WIN = "home_win"
    AWAY_WIN = "away_win"
    DRAW = "draw"


@dataclass(frozen=True)
class Score:
    """Goals scored by the home and away sides.

    Values are not validated; negative goals are the caller's concern.
    """

    home: int
    away: int

    @property
    def outcome(self) -> OutcomeClass:
        if self.home > self.away:
            return OutcomeClass.HOME_WIN
        if self.home < self.away:
            return OutcomeClass.AWAY_WIN
        return OutcomeClass.DRAW

    @property
    def goal_difference(self) -> int:
        """Signed difference ``home - away``."""
        return self.home - self.away


@dataclass(frozen=True)
class PointsResult:
    """Points awarded to a prediction and the rule that produced them.

    Attributes
    ----------
    points : int
        Points earned by the prediction.
    rule : str
        Label of the first rule that matched, e.g. ``"exact score"``.
    """

    points: int
    rule: str


@dataclass(frozen=True)
class ScoringRule:
    points: int
    label: str


EXACT_SCORE = ScoringRule(EXACT_SCORE_POINTS, "exact score")
WINNER_AND_GOAL_DIFFERENCE = ScoringRule(
    GOAL_DIFFERENCE_POINTS, "winner + goal difference"
)
CORRECT_WINNER = ScoringRule(CORRECT_WINNER_POINTS, "correct winner")
NO_MATCH = ScoringRule(NO_MATCH_POINTS, "no match")

# Precedence order: the first rule that applies wins.
SCORING_RULES: Tuple[ScoringRule, ...] = (
    EXACT_SCORE,
    WINNER_AND_GOAL_DIFFERENCE,
    CORRECT_WINNER,
    NO_MATCH,
)


def _result(rule: ScoringRule) -> PointsResult:
    return PointsResult(points=rule.points, rule=rule.label)


def evaluate_prediction(predicted: Score, actual: Score) -> PointsResult:
    """Score ``predicted`` against the ``actual`` final score.

    Parameters
    ----------
    predicted : Score
        Score submitted by the participant.
    actual : Score
        Final score of the match.

    Returns
    -------
    PointsResult
        Points and rule label. Every integer pair yields a result; nothing is
        rejected.

    Notes
    -----
    Rules are checked in the order of :data:`SCORING_RULES`:

    1. Exact score (5 points).
    2. Same outcome class and same signed goal difference (3 points).
    3. Same outcome class only (1 point).
    4. Anything else (0 points).
    """
    if predicted == actual:
        return _result(EXACT_SCORE)

    same_outcome = predicted.outcome == actual.outcome
    if same_outcome and predicted.goal_difference == actual.goal_difference:
        return _result(WINNER_AND_GOAL_DIFFERENCE)
    if same_outcome:
        return _result(CORRECT_WINNER)
    return _result(NO_MATCH)


def total_points(pairs: Iterable[Tuple[Score, Score]]) -> int:
    """Sum the points of ``(predicted, actual)`` pairs for one participant."""
    return sum(evaluate_prediction(predicted, actual).points for predicted, actual in pairs)


__all__ = [
    "CORRECT_WINNER_POINTS",
    "EXACT_SCORE_POINTS",
    "GOAL_DIFFERENCE_POINTS",
    "NO_MATCH_POINTS",
    "OutcomeClass",
    "PointsResult",
    "SCORING_RULES",
    "Score",
    "ScoringRule",
    "evaluate_prediction",
    "total_points",
]
