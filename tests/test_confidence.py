"""
Tests for the Confidence Scorer
Run with: pytest tests/test_confidence.py -v
"""

import datetime as dt

import pytest

from edge_engine.schemas import BookOdds, GameRecord, Injury, RecentForm, TeamInfo, TeamStats
from edge_engine.services.base_factors import compute_base_factors
from edge_engine.services.confidence import (
    assess_data_quality,
    assess_factor_alignment,
    score_confidence,
)
from edge_engine.services.factors import FactorBankSummary


def _summary(total: int, home: int = 0, away: int = 0) -> FactorBankSummary:
    return FactorBankSummary(
        total_factors=total,
        total_possible=12,
        home_advantages=home,
        away_advantages=away,
        over_advantages=0,
        under_advantages=0,
        neutral_factors=12 - home - away,
        overall_advantage="neutral",
        totals_lean="NO EDGE",
        total_prob_adjustment=0.0,
        key_insights=[],
    )


class TestDataQuality:
    """Input completeness"""

    def test_complete(self):
        game = GameRecord(
            id="g",
            date=dt.date(2024, 1, 1),
            home=TeamInfo(abbr="A", name="A", record="10-6"),
            away=TeamInfo(abbr="B", name="B", record="6-10"),
            odds=[BookOdds(book=str(i), home_ml=-120, away_ml=100) for i in range(4)],
        )
        report = {"A": [Injury(player="P", status="Questionable")]}
        assert assess_data_quality(game, report) == pytest.approx(1.0)

    def test_empty(self):
        game = GameRecord(
            id="g",
            date=dt.date(2024, 1, 1),
            home=TeamInfo(abbr="A", name="A"),
            away=TeamInfo(abbr="B", name="B"),
            odds=[BookOdds(book="X", home_ml=-120, away_ml=100)] * 3,
        )
        assert assess_data_quality(game) == 0.0


class TestFactorAlignment:
    """Strength, matchups and form pointing the same way"""

    def test_fully_aligned(self):
        game = GameRecord(
            id="g",
            date=dt.date(2024, 1, 1),
            home=TeamInfo(abbr="A", name="A", record="12-4"),
            away=TeamInfo(abbr="B", name="B", record="4-12"),
            home_stats=TeamStats(three_point_pct=40, assists=30, steals=9),
            away_stats=TeamStats(three_point_pct=30, assists=20, steals=5),
            home_form=RecentForm(wins=4, losses=1),
            away_form=RecentForm(wins=1, losses=4),
        )
        assert assess_factor_alignment(compute_base_factors(game)) == pytest.approx(1.0)

    def test_nothing_known(self):
        game = GameRecord(
            id="g",
            date=dt.date(2024, 1, 1),
            home=TeamInfo(abbr="A", name="A"),
            away=TeamInfo(abbr="B", name="B"),
        )
        assert assess_factor_alignment(compute_base_factors(game)) == 0.0


class TestScoreConfidence:
    """Composite score"""

    def test_no_factor_data(self):
        assert score_confidence(0.0, 0.0, 0.0, _summary(0)) == 15

    def test_ceiling(self):
        assert score_confidence(1.0, 1.0, 20.0, _summary(12, home=12), has_rlm=True) == 95

    def test_floor(self):
        assert score_confidence(0.0, 0.0, 0.0, _summary(0)) >= 10

    def test_sparse_factors_unanimous(self):
        assert score_confidence(0.0, 0.0, 0.0, _summary(3, home=3)) == 50

    @pytest.mark.parametrize(
        "edge,expected",
        [(16.0, 60), (11.0, 58), (6.0, 55), (5.0, 50), (-16.0, 60)],
    )
    def test_edge_bonus(self, edge, expected):
        assert score_confidence(0.0, 0.0, edge, _summary(5)) == expected

    def test_reverse_line_movement(self):
        base = score_confidence(0.5, 0.3, 0.0, _summary(6, home=3, away=1))
        assert score_confidence(0.5, 0.3, 0.0, _summary(6, home=3, away=1), has_rlm=True) == base + 5

    def test_returns_int(self):
        assert isinstance(score_confidence(0.25, 0.3, 7.5, _summary(8, home=5, away=1)), int)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
