"""
Tests for the Backtest Harness
Run with: pytest tests/test_backtest.py -v
"""

import logging
from dataclasses import replace

import pytest

from edge_engine.core.engine_config import EngineConfig
from edge_engine.core.sim_interface import BaseScoreEngine, ScoreSimResult
from edge_engine.services.analysis import AnalysisResult, DeepAnalyzer
from edge_engine.services.backtest import (
    HISTORICAL_GAMES,
    BacktestRow,
    grade,
    home_covered,
    run_backtest,
    summarize,
)
from edge_engine.services.recommendation import LEAN, PASS, Reasoning, Recommendation


class FixedEngine(BaseScoreEngine):
    def simulate(self, home, away, iterations=None, rng=None, neutral_site=False):
        return ScoreSimResult(1, 100.0, 100.0, 0.5, 99.0)


def _analysis(action: str, side) -> AnalysisResult:
    return AnalysisResult(
        game_id="x",
        matchup="x",
        engine_version="test",
        confidence=60,
        recommendation=Recommendation(
            action=action, side=side, odds=None, book=None, edge=-7.26, model_prob=55.0,
            reasoning=Reasoning(summary=""),
        ),
    )


def _row(result: str) -> BacktestRow:
    return BacktestRow("g", "HOME", "HOME", result, 50, 5.0, "0-0")


class TestHomeCovered:
    """Spread grading"""

    @pytest.mark.parametrize(
        "home,away,spread,covered",
        [(34, 10, -9.5, True), (24, 21, -10.0, False), (24, 21, -3.0, False), (10, 17, 7.5, True)],
    )
    def test_cases(self, home, away, spread, covered):
        assert home_covered(home, away, spread) is covered


class TestGrade:
    """Row grading"""

    def test_fixture(self):
        assert len(HISTORICAL_GAMES) == 6
        assert all(g.home_score is not None for g in HISTORICAL_GAMES)

    def test_away_pick_wins_when_home_fails_to_cover(self):
        game = HISTORICAL_GAMES[1]  # SF 24-21 GB at -10
        row = grade(game, _analysis(LEAN, "away"))
        assert row.prediction == "AWAY"
        assert row.actual == "AWAY"
        assert row.result == "WIN"
        assert row.edge == 7.3
        assert row.score == "21-24"

    def test_home_pick_loses(self):
        row = grade(HISTORICAL_GAMES[1], _analysis(LEAN, "home"))
        assert row.result == "LOSS"

    def test_pass(self):
        row = grade(HISTORICAL_GAMES[0], _analysis(PASS, "home"))
        assert row.prediction == PASS
        assert row.result == PASS
        assert row.edge == 0.0

    def test_missing_score(self):
        game = HISTORICAL_GAMES[0].model_copy(update={"home_score": None})
        with pytest.raises(ValueError):
            grade(game, _analysis(LEAN, "home"))


class TestSummarize:
    """Win rate"""

    def test_counts(self):
        s = summarize([_row("WIN"), _row("WIN"), _row("LOSS"), _row(PASS)])
        assert (s.total_games, s.total_bets, s.wins, s.losses) == (4, 3, 2, 1)
        assert s.win_rate == 66.7

    def test_no_bets(self):
        assert summarize([_row(PASS)]).win_rate == 0.0


class TestRunBacktest:
    """End to end over the fixture"""

    def test_rows_in_fixture_order(self):
        report = run_backtest(DeepAnalyzer(simulator=FixedEngine()))
        assert report.summary.total_games == 6
        first = report.rows[0]
        assert first.game == "HOU @ BAL"
        assert first.score == "10-34"
        assert first.actual == "HOME"
        assert report.summary.total_bets == report.summary.wins + report.summary.losses

    def test_ungradeable_game_does_not_abort(self, caplog):
        games = list(HISTORICAL_GAMES)
        sf_gb = games[1]
        games[1] = sf_gb.model_copy(
            update={"odds": [sf_gb.odds[0].model_copy(update={"home_spread": None})]}
        )
        with caplog.at_level(logging.WARNING):
            report = run_backtest(DeepAnalyzer(simulator=FixedEngine()), games=games)

        assert report.summary.total_games == 6
        assert len(report.rows) == 6
        bad = report.rows[1]
        assert bad.game == "GB @ SF"
        assert bad.result == PASS
        assert bad.prediction == PASS
        assert bad.error == "backtest_div_sf_gb has no spread line"
        assert bad.score == "21-24"
        assert all(r.error is None for i, r in enumerate(report.rows) if i != 1)
        assert "Cannot grade GB @ SF" in caplog.text

    def test_missing_score_becomes_pass_row(self):
        games = [HISTORICAL_GAMES[0].model_copy(update={"away_score": None})]
        report = run_backtest(DeepAnalyzer(simulator=FixedEngine()), games=games)
        row = report.rows[0]
        assert row.result == PASS
        assert row.score == "n/a"
        assert row.error == "backtest_div_bal_hou has no final score"
        assert report.summary.total_bets == 0

    def test_seeded_repeatable(self):
        cfg = replace(EngineConfig.default(), sim_iterations=300)
        a = run_backtest(DeepAnalyzer(config=cfg), seed=42)
        b = run_backtest(DeepAnalyzer(config=cfg), seed=42)
        assert a == b


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
