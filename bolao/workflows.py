import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional, Sequence

from sqlalchemy.orm import Session

from .models import Game, Participant, Prediction, Round
from .scoring.messages import describe_outcome
from .scoring.points import PointsResult, Score, evaluate_prediction
from .scoring.prizes import format_brl
from .scoring.rounds import WinnerOutcome, compute_round_winners

logger = logging.getLogger(__name__)


@dataclass
class RoundSettlement:
    """Value object describing a finished round.

    Attributes
    ----------
    outcome : WinnerOutcome
        Winners and accumulation flag computed for the round.
    total_prize : float
        Gross prize of the round, including prize carried from earlier rounds.
    prize_per_winner : float
        Payout per winner after the admin fee; ``0`` when the round accumulates.
    message : str
        Status line for display.
    """

    outcome: WinnerOutcome
    total_prize: float
    prize_per_winner: float
    message: str

    @property
    def summary(self) -> str:
        """One-line summary with the amounts formatted in BRL."""
        if self.outcome.should_accumulate:
            return (
                f"{self.message} {format_brl(self.total_prize)} "
                "seguem para a próxima rodada."
            )
        return (
            f"{self.message} Cada vencedor recebe "
            f"{format_brl(self.prize_per_winner)}."
        )


def _carried_prize(session: Session, game: Game) -> float:
    """Return the prize the next round of ``game`` inherits.

    Only the latest finished round matters: if it had winners nothing is
    carried, otherwise its own collected fees plus what it had inherited.
    """
    last_finished = Round.latest_finished(session, game.id)
    if last_finished is None:
        return 0
    if not evaluate_round(last_finished).should_accumulate:
        return 0
    return (last_finished.accumulated_prize or 0) + (
        last_finished.previous_accumulated or 0
    )


def open_round(
    session: Session,
    game: Game,
    *,
    opponent_name: str,
    match_date: datetime,
    prediction_deadline: datetime,
    is_home: bool,
    name: Optional[str] = None,
    entry_fee_override: Optional[float] = None,
) -> Round:
    """Create the next round of ``game``.

    The round is numbered after the rounds already in the game and inherits
    the prize of the latest finished round when that round accumulated.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session.
    game : Game
        Persisted game that receives the round.
    opponent_name : str
        Name of the club the tracked club faces.
    match_date : datetime
        Kick-off time.
    prediction_deadline : datetime
        Last moment to submit predictions. Must be before ``match_date``.
    is_home : bool
        Whether the tracked club plays at home.
    name : Optional[str]
        Display name; defaults to ``"Rodada <n>"``.
    entry_fee_override : Optional[float]
        Fee for this round only, replacing the pool's default.

    Returns
    -------
    Round
        The flushed round with ``previous_accumulated`` populated.

    Raises
    ------
    ValueError
        If the game is not persisted or the deadline is not before the match.
    """
    if game.id is None:
        raise ValueError("Game must be persisted before opening a round")
    if prediction_deadline >= match_date:
        raise ValueError("Prediction deadline must be before the match date")

    round_number = len(game.rounds) + 1
    previous_accumulated = _carried_prize(session, game)

    round_ = Round(
        pool=game.pool,
        game=game,
        round_number=round_number,
        name=name or f"Rodada {round_number}",
        opponent_name=opponent_name,
        match_date=match_date,
        prediction_deadline=prediction_deadline,
        is_home=is_home,
        previous_accumulated=previous_accumulated,
        entry_fee_override=entry_fee_override,
    )
    session.add(round_)
    session.flush()
    logger.info(
        "Opened round %s of game %s with %.2f carried over",
        round_number,
        game.id,
        previous_accumulated,
    )
    return round_


def submit_prediction(
    session: Session,
    round_: Round,
    participant: Participant,
    home_score: int,
    away_score: int,
) -> Prediction:
    """Store or replace the prediction of ``participant`` for ``round_``.

    Raises
    ------
    ValueError
        If the round is finished, the ticket belongs to another round or the
        ticket is not active.
    """
    if round_.is_finished:
        raise ValueError("Cannot submit predictions for a finished round")
    if participant.round_id != round_.id:
        raise ValueError("Participant ticket belongs to another round")
    if participant.status != "active":
        raise ValueError("Only active participants can submit predictions")

    existing = next(
        (p for p in round_.predictions if p.participant_id == participant.id), None
    )
    if existing is not None:
        existing.home_score = home_score
        existing.away_score = away_score
        session.flush()
        return existing

    prediction = Prediction(
        round=round_,
        participant=participant,
        home_score=home_score,
        away_score=away_score,
    )
    session.add(prediction)
    session.flush()
    return prediction


def record_result(
    session: Session, round_: Round, home_score: int, away_score: int
) -> Round:
    """Save the final score of ``round_``; finished rounds are immutable."""
    if round_.is_finished:
        raise ValueError("Cannot change the score of a finished round")
    round_.home_score = home_score
    round_.away_score = away_score
    session.flush()
    return round_


def evaluate_round(round_: Round) -> WinnerOutcome:
    """Compute the loyalty outcome of ``round_`` from its stored predictions."""
    return compute_round_winners(round_.result, round_.predictions, round_.policy)


def finish_round(session: Session, round_: Round) -> RoundSettlement:
    """Settle ``round_``: mark winners, pay them and update accumulation.

    This function performs the following steps:

    1. Evaluate the round's predictions against its score.
    2. Compute the gross prize from the round's entry fee, its active
       participants and the prize it inherited.
    3. Flag each winning prediction with ``is_winner`` and ``prize_won``.
    4. Mark the round finished, storing the fees it collected in
       ``accumulated_prize``.
    5. Add the gross prize to the game's ``total_accumulated`` when the round
       accumulates, otherwise reset it to zero.

    Raises
    ------
    ValueError
        If the round has no score yet or is already finished.
    """
    if round_.is_finished:
        raise ValueError("Round is already finished")
    if not round_.result.is_set:
        raise ValueError("Round score must be recorded before finishing the round")

    outcome = evaluate_round(round_)
    financials = round_.financials
    total_prize = financials.total_prize
    per_winner = financials.prize_per_winner(outcome.winners_count)

    for winner in outcome.winners:
        winner.is_winner = True
        winner.prize_won = per_winner

    round_.is_finished = True
    round_.accumulated_prize = financials.entry_fee * financials.participants_count

    game = round_.game
    if game is not None:
        if outcome.should_accumulate:
            game.total_accumulated = (game.total_accumulated or 0) + total_prize
        else:
            game.total_accumulated = 0

    session.flush()

    message = describe_outcome(outcome, round_.pool.club_name)
    logger.info(
        "Finished round %s: %s (total %.2f, per winner %.2f)",
        round_.id,
        outcome.reason.value if outcome.reason else f"{outcome.winners_count} winner(s)",
        total_prize,
        per_winner,
    )
    return RoundSettlement(
        outcome=outcome,
        total_prize=total_prize,
        prize_per_winner=per_winner,
        message=message,
    )


def score_predictions(
    actual: Score, predictions: Iterable[Score]
) -> list[PointsResult]:
    """Score each prediction of a regular (non-loyalty) pool match."""
    return [evaluate_prediction(predicted, actual) for predicted in predictions]


def leaderboard(
    entries: Sequence[tuple[str, Score]], actual: Score
) -> list[tuple[str, PointsResult]]:
    """Rank participants of a regular pool match by points, highest first.

    Ties keep the submission order of ``entries``.
    """
    scored = [(name, evaluate_prediction(predicted, actual)) for name, predicted in entries]
    return sorted(scored, key=lambda item: -item[1].points)
