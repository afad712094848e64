from __future__ import annotations

import unittest
from datetime import datetime, timedelta, timezone

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from bolao.models import Base, Game, Participant, Pool, Prediction, Profile, Round
from bolao.scoring import AccumulationReason, Score
from bolao.workflows import (
    evaluate_round,
    finish_round,
    leaderboard,
    open_round,
    record_result,
    score_predictions,
    submit_prediction,
)

KICKOFF = datetime(2026, 5, 10, 19, 0, tzinfo=timezone.utc)


class RoundWorkflowTests(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(
            bind=self.engine, future=True, expire_on_commit=False
        )

    def tearDown(self) -> None:
        self.engine.dispose()

    def _seed_game(self, session, *, allow_draws: bool = False, admin_fee: float = 10):
        pool = Pool(
            name="Torcida Galo",
            club_name="Galo",
            entry_fee=50,
            admin_fee_percent=admin_fee,
            allow_draws=allow_draws,
        )
        session.add(pool)
        session.flush()
        game = Game(pool=pool, game_number=1)
        session.add(game)
        session.flush()
        return pool, game

    def _open(self, session, game, *, offset_days: int = 0, is_home: bool = True):
        match_date = KICKOFF + timedelta(days=offset_days)
        return open_round(
            session,
            game,
            opponent_name="Rival FC",
            match_date=match_date,
            prediction_deadline=match_date - timedelta(hours=1),
            is_home=is_home,
        )

    def _ticket(self, session, round_, username: str, *, status: str = "active"):
        profile = Profile.get_by_public_id(session, username)
        if profile is None:
            profile = Profile(public_id=username, user_id=f"uid-{username}")
            session.add(profile)
            session.flush()
        participant = Participant(round=round_, profile=profile, status=status)
        session.add(participant)
        session.flush()
        return participant

    def test_open_round_numbers_and_names_rounds(self) -> None:
        with self.Session.begin() as session:
            _, game = self._seed_game(session)
            first = self._open(session, game)
            second = self._open(session, game, offset_days=7)
            self.assertEqual(first.round_number, 1)
            self.assertEqual(first.name, "Rodada 1")
            self.assertEqual(second.round_number, 2)
            self.assertEqual(second.previous_accumulated, 0)

    def test_open_round_rejects_late_deadline(self) -> None:
        with self.Session.begin() as session:
            _, game = self._seed_game(session)
            with self.assertRaises(ValueError):
                open_round(
                    session,
                    game,
                    opponent_name="Rival FC",
                    match_date=KICKOFF,
                    prediction_deadline=KICKOFF,
                    is_home=True,
                )

    def test_finish_round_pays_exact_predictions(self) -> None:
        with self.Session.begin() as session:
            _, game = self._seed_game(session)
            round_ = self._open(session, game)
            tickets = [self._ticket(session, round_, name) for name in ("ana", "bia", "caio", "duda")]
            submit_prediction(session, round_, tickets[0], 2, 1)
            submit_prediction(session, round_, tickets[1], 2, 1)
            submit_prediction(session, round_, tickets[2], 1, 0)
            record_result(session, round_, 2, 1)

            settlement = finish_round(session, round_)

            self.assertFalse(settlement.outcome.should_accumulate)
            self.assertEqual(settlement.outcome.winners_count, 2)
            self.assertEqual(settlement.total_prize, 200)
            self.assertAlmostEqual(settlement.prize_per_winner, 90.0)
            self.assertEqual(settlement.message, "2 vencedores cravaram o placar!")
            self.assertIn("R$ 90,00", settlement.summary)

            winners = [p for p in round_.predictions if p.is_winner]
            self.assertEqual({p.participant_id for p in winners}, {tickets[0].id, tickets[1].id})
            self.assertTrue(all(p.prize_won == settlement.prize_per_winner for p in winners))
            loser = next(p for p in round_.predictions if not p.is_winner)
            self.assertEqual(loser.prize_won, 0)

            self.assertTrue(round_.is_finished)
            self.assertEqual(round_.accumulated_prize, 200)
            self.assertEqual(game.total_accumulated, 0)

    def test_loss_accumulates_into_next_round(self) -> None:
        with self.Session.begin() as session:
            _, game = self._seed_game(session)
            first = self._open(session, game)
            tickets = [self._ticket(session, first, name) for name in ("ana", "bia")]
            # An exact prediction of a defeat still does not win.
            submit_prediction(session, first, tickets[0], 0, 1)
            record_result(session, first, 0, 1)

            settlement = finish_round(session, first)
            self.assertTrue(settlement.outcome.should_accumulate)
            self.assertEqual(settlement.outcome.reason, AccumulationReason.TEAM_LOST)
            self.assertEqual(settlement.prize_per_winner, 0)
            self.assertEqual(settlement.message, "Galo perdeu - Prêmio acumulado!")
            self.assertIn("R$ 100,00", settlement.summary)
            self.assertFalse(any(p.is_winner for p in first.predictions))
            self.assertEqual(game.total_accumulated, 100)

            second = self._open(session, game, offset_days=7)
            self.assertEqual(second.previous_accumulated, 100)

            ticket = self._ticket(session, second, "ana")
            submit_prediction(session, second, ticket, 3, 0)
            record_result(session, second, 3, 0)
            settlement = finish_round(session, second)

            self.assertEqual(settlement.total_prize, 150)
            self.assertAlmostEqual(settlement.prize_per_winner, 135.0)
            self.assertEqual(settlement.message, "1 vencedor cravou o placar!")
            self.assertEqual(game.total_accumulated, 0)

            third = self._open(session, game, offset_days=14)
            self.assertEqual(third.previous_accumulated, 0)

    def test_carried_prize_chains_across_accumulating_rounds(self) -> None:
        with self.Session.begin() as session:
            _, game = self._seed_game(session)
            first = self._open(session, game)
            self._ticket(session, first, "ana")
            record_result(session, first, 1, 1)
            self.assertEqual(
                finish_round(session, first).outcome.reason,
                AccumulationReason.DRAW_NOT_ALLOWED,
            )

            second = self._open(session, game, offset_days=7)
            self.assertEqual(second.previous_accumulated, 50)
            self._ticket(session, second, "ana")
            self._ticket(session, second, "bia")
            record_result(session, second, 2, 0)
            self.assertEqual(
                finish_round(session, second).outcome.reason,
                AccumulationReason.NO_WINNERS,
            )

            third = self._open(session, game, offset_days=14)
            self.assertEqual(third.previous_accumulated, 150)
            self.assertEqual(game.total_accumulated, 200)

    def test_only_active_tickets_count_and_override_fee(self) -> None:
        with self.Session.begin() as session:
            _, game = self._seed_game(session, allow_draws=True, admin_fee=0)
            round_ = open_round(
                session,
                game,
                opponent_name="Rival FC",
                match_date=KICKOFF,
                prediction_deadline=KICKOFF - timedelta(days=1),
                is_home=False,
                entry_fee_override=20,
            )
            active = self._ticket(session, round_, "ana")
            self._ticket(session, round_, "bia", status="pending")
            self._ticket(session, round_, "caio", status="blocked")
            submit_prediction(session, round_, active, 2, 2)
            record_result(session, round_, 2, 2)

            settlement = finish_round(session, round_)
            self.assertEqual(settlement.total_prize, 20)
            self.assertEqual(settlement.prize_per_winner, 20)
            self.assertEqual(round_.accumulated_prize, 20)

    def test_finish_round_prerequisites(self) -> None:
        with self.Session.begin() as session:
            _, game = self._seed_game(session)
            round_ = self._open(session, game)
            self.assertFalse(evaluate_round(round_).is_decided)
            with self.assertRaises(ValueError):
                finish_round(session, round_)

            record_result(session, round_, 1, 0)
            finish_round(session, round_)
            with self.assertRaises(ValueError):
                finish_round(session, round_)
            with self.assertRaises(ValueError):
                record_result(session, round_, 2, 0)

    def test_submit_prediction_rules(self) -> None:
        with self.Session.begin() as session:
            _, game = self._seed_game(session)
            round_ = self._open(session, game)
            other = self._open(session, game, offset_days=7)
            active = self._ticket(session, round_, "ana")
            pending = self._ticket(session, round_, "bia", status="pending")
            foreign = self._ticket(session, other, "caio")

            first = submit_prediction(session, round_, active, 1, 0)
            replaced = submit_prediction(session, round_, active, 2, 0)
            self.assertEqual(first.id, replaced.id)
            self.assertEqual((replaced.home_score, replaced.away_score), (2, 0))
            self.assertEqual(len(round_.predictions), 1)

            with self.assertRaises(ValueError):
                submit_prediction(session, round_, pending, 1, 0)
            with self.assertRaises(ValueError):
                submit_prediction(session, round_, foreign, 1, 0)

            record_result(session, round_, 1, 0)
            finish_round(session, round_)
            with self.assertRaises(ValueError):
                submit_prediction(session, round_, active, 3, 0)

    def test_round_settlement_persists_after_commit(self) -> None:
        with self.Session.begin() as session:
            _, game = self._seed_game(session)
            round_ = self._open(session, game)
            ticket = self._ticket(session, round_, "ana")
            submit_prediction(session, round_, ticket, 1, 0)
            record_result(session, round_, 1, 0)
            finish_round(session, round_)
            round_id = round_.id

        with self.Session() as session:
            stored = session.get(Round, round_id)
            assert stored is not None
            self.assertTrue(stored.is_finished)
            prediction = session.query(Prediction).filter_by(round_id=round_id).one()
            self.assertTrue(prediction.is_winner)
            self.assertAlmostEqual(prediction.prize_won, 45.0)


class RegularPoolScoringTests(unittest.TestCase):
    def test_score_predictions(self) -> None:
        results = score_predictions(Score(3, 1), [Score(3, 1), Score(2, 0), Score(2, 1), Score(0, 0)])
        self.assertEqual([r.points for r in results], [5, 3, 1, 0])

    def test_leaderboard_orders_by_points_keeping_ties(self) -> None:
        ranking = leaderboard(
            [("ana", Score(0, 0)), ("bia", Score(2, 1)), ("caio", Score(1, 0)), ("duda", Score(2, 1))],
            Score(2, 1),
        )
        self.assertEqual([name for name, _ in ranking], ["bia", "duda", "caio", "ana"])
        self.assertEqual(ranking[0][1].points, 5)


if __name__ == "__main__":
    unittest.main()
