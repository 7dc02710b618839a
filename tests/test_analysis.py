"""
Tests for the deep analysis pipeline
Run with: pytest tests/test_analysis.py -v
"""

import datetime as dt
import logging

import numpy as np
import pytest

from edge_engine.core.sim_interface import BaseScoreEngine, ScoreSimResult
from edge_engine.schemas import BookOdds, GameRecord, TeamInfo, TeamStats
from edge_engine.services.analysis import AnalysisRequest, DeepAnalyzer
from edge_engine.services.elo import TeamRatingTable
from edge_engine.services.recommendation import PASS, STRONG_BET


class FixedEngine(BaseScoreEngine):
    """Coin-flip engine with no randomness."""

    def simulate(self, home, away, iterations=None, rng=None, neutral_site=False):
        return ScoreSimResult(
            iterations=1,
            mean_home_score=100.0,
            mean_away_score=100.0,
            home_win_fraction=0.5,
            game_pace=99.0,
        )


class FlakyEngine(FixedEngine):
    """Fails for any game whose home pace is exactly 1.0."""

    def simulate(self, home, away, iterations=None, rng=None, neutral_site=False):
        if home.pace == 1.0:
            raise RuntimeError("simulator blew up")
        return super().simulate(home, away, iterations, rng, neutral_site)


def _game(gid="g1", odds=(), neutral_site=False, **kwargs) -> GameRecord:
    return GameRecord(
        id=gid,
        date=dt.date(2024, 1, 20),
        home=TeamInfo(abbr="HOME", name="Home Team"),
        away=TeamInfo(abbr="AWAY", name="Away Team"),
        odds=list(odds),
        neutral_site=neutral_site,
        **kwargs,
    )


class TestAnalyze:
    """Single-game pipeline"""

    def test_nothing_known_is_even_and_passes(self):
        result = DeepAnalyzer(simulator=FixedEngine()).analyze(_game(neutral_site=True))
        assert result.home_probability == pytest.approx(0.5)
        assert result.action == PASS
        assert result.recommendation.side is None
        assert result.confidence == 15
        assert result.error is None

    def test_underdog_value(self):
        game = _game(odds=[BookOdds(book="A", home_ml=150, away_ml=-180)])
        result = DeepAnalyzer(simulator=FixedEngine()).analyze(game)
        assert result.home_probability == pytest.approx(0.50669, abs=1e-4)
        assert result.edges.home == pytest.approx(26.67, abs=0.05)
        assert result.edges.away < 0
        assert result.action == STRONG_BET
        assert result.recommendation.side == "home"
        assert result.recommendation.odds == 150
        assert result.confidence == 25
        assert result.bet_size.units == 0
        assert result.bet_size.description == "Insufficient data for bet"

    def test_probabilities_complementary(self):
        game = _game(
            home_stats=TeamStats(offensive_rating=118.0, defensive_rating=108.0, pace=100.0),
            away_stats=TeamStats(offensive_rating=110.0, defensive_rating=114.0, pace=98.0),
        )
        result = DeepAnalyzer().analyze(game, rng=np.random.default_rng(1), iterations=500)
        assert result.home_probability + result.away_probability == pytest.approx(1.0)
        assert 0.05 <= result.home_probability <= 0.95
        assert result.simulation.iterations == 500

    def test_seeded_runs_repeat(self):
        game = _game(odds=[BookOdds(book="A", home_ml=-120, away_ml=100)])
        analyzer = DeepAnalyzer()
        a = analyzer.analyze(game, rng=np.random.default_rng(7))
        b = analyzer.analyze(game, rng=np.random.default_rng(7))
        assert a.home_probability == b.home_probability
        assert a.to_dict() == b.to_dict()

    def test_rejects_non_engine(self):
        with pytest.raises(TypeError):
            DeepAnalyzer(simulator=object())

    def test_elo_cross_reference(self):
        table = TeamRatingTable()
        table.initialize(["HOME", "AWAY"])
        table.get("HOME").current = 1600
        result = DeepAnalyzer(simulator=FixedEngine(), rating_table=table).analyze(_game())
        assert result.elo.found
        assert result.elo.home_win_prob == pytest.approx(0.7597, abs=1e-4)

    def test_to_dict(self):
        result = DeepAnalyzer(simulator=FixedEngine()).analyze(
            _game(odds=[BookOdds(book="A", home_ml=150, away_ml=-180)])
        )
        data = result.to_dict()
        assert data["action"] == STRONG_BET
        assert data["market_home_prob"] == 40.0
        assert len(data["factors"]) == 12
        assert data["engine_version"] == result.engine_version


class TestAnalyzeBatch:
    """Per-game isolation"""

    def test_failure_becomes_stub(self, caplog):
        analyzer = DeepAnalyzer(simulator=FlakyEngine())
        requests = [
            AnalysisRequest(_game("ok")),
            AnalysisRequest(_game("bad", home_stats=TeamStats(pace=1.0))),
            AnalysisRequest(_game("ok2")),
        ]
        with caplog.at_level(logging.ERROR):
            results = analyzer.analyze_batch(requests)

        assert [r.game_id for r in results] == ["ok", "bad", "ok2"]
        bad = results[1]
        assert bad.error == "simulator blew up"
        assert bad.action == PASS
        assert bad.confidence == 10
        assert bad.recommendation.reasoning.summary == "Analysis failed: simulator blew up"
        assert results[0].error is None
        assert "Error analysing AWAY @ HOME" in caplog.text

    def test_seeded_batch_repeats(self):
        analyzer = DeepAnalyzer()
        requests = [
            AnalysisRequest(_game(str(i), odds=[BookOdds(book="A", home_ml=-110, away_ml=-110)]))
            for i in range(3)
        ]
        a = [r.home_probability for r in analyzer.analyze_batch(requests, seed=42)]
        b = [r.home_probability for r in analyzer.analyze_batch(requests, seed=42)]
        assert a == b


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
