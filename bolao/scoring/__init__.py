"""Pure scoring, winner selection and prize math for bolão pools."""

from .messages import describe_outcome
from .points import (
    OutcomeClass,
    PointsResult,
    SCORING_RULES,
    Score,
    ScoringRule,
    evaluate_prediction,
    total_points,
)
from .prizes import (
    RoundFinancials,
    estimated_pool_prize,
    format_brl,
    prize_per_winner,
    requires_approval,
    round_total_prize,
)
from .rounds import (
    AccumulationReason,
    MatchResult,
    RoundPolicy,
    ScorePrediction,
    WinnerOutcome,
    compute_round_winners,
)

__all__ = [
    "AccumulationReason",
    "MatchResult",
    "OutcomeClass",
    "PointsResult",
    "RoundFinancials",
    "RoundPolicy",
    "SCORING_RULES",
    "Score",
    "ScorePrediction",
    "ScoringRule",
    "WinnerOutcome",
    "compute_round_winners",
    "describe_outcome",
    "estimated_pool_prize",
    "evaluate_prediction",
    "format_brl",
    "prize_per_winner",
    "requires_approval",
    "round_total_prize",
    "total_points",
]
