"""
Tests for the Team Rating Table (Elo)
Run with: pytest tests/test_elo.py -v
"""

import datetime as dt
import threading

import pytest

from edge_engine.services.elo import (
    GameResult,
    TeamNotFound,
    TeamRatingTable,
    elo_tier,
    expected_win_probability,
)


def _table_with(**ratings) -> TeamRatingTable:
    table = TeamRatingTable()
    table.initialize(ratings)
    for team, rating in ratings.items():
        table.get(team).current = rating
    return table


class TestExpectedWinProbability:
    """Logistic expectation with home offset"""

    def test_equal_ratings_neutral(self):
        assert expected_win_probability(1500, 1500, None) == pytest.approx(0.5)

    def test_home_offset(self):
        # 1600 at home vs 1500 is a 200-point gap
        p = expected_win_probability(1600, 1500, True)
        assert p == pytest.approx(1 / (1 + 10 ** -0.5), abs=1e-9)
        assert p == pytest.approx(0.7597, abs=1e-4)

    def test_away_side_gives_offset_to_opponent(self):
        assert expected_win_probability(1500, 1500, False) < 0.5
        assert expected_win_probability(1600, 1500, False) == pytest.approx(0.5)

    def test_complementary(self):
        p = expected_win_probability(1550, 1480, None)
        q = expected_win_probability(1480, 1550, None)
        assert p + q == pytest.approx(1.0)


class TestUpdateRating:
    """Single-team updates"""

    def test_win_from_even(self):
        table = TeamRatingTable()
        update = table.update_rating("A", "B", won=True, is_home=None)
        assert update.expected == pytest.approx(0.5)
        assert update.delta == pytest.approx(10.0)
        assert table.get("A").current == pytest.approx(1510.0)
        # Opponent is created but not moved
        assert table.get("B").current == pytest.approx(1500.0)

    @pytest.mark.parametrize("rating,opp", [(1200, 1800), (1500, 1500), (1800, 1200)])
    @pytest.mark.parametrize("is_home", [True, False, None])
    def test_monotonic(self, rating, opp, is_home):
        for won in (True, False):
            table = _table_with(A=rating, B=opp)
            update = table.update_rating("A", "B", won=won, is_home=is_home)
            if won:
                assert update.new >= update.previous
            else:
                assert update.new <= update.previous

    def test_counters(self):
        table = TeamRatingTable()
        table.update_rating("A", "B", won=True, is_home=True)
        table.update_rating("A", "C", won=False, is_home=False)
        rec = table.get("A")
        assert (rec.games, rec.wins, rec.losses) == (2, 1, 1)
        assert rec.record == "1-1"
        assert rec.win_pct == 50.0

    def test_self_play_rejected(self):
        with pytest.raises(ValueError):
            TeamRatingTable().update_rating("A", "A", won=True, is_home=None)

    def test_out_of_order_rejected(self):
        table = TeamRatingTable()
        table.update_rating("A", "B", True, True, dt.date(2024, 1, 10))
        before = table.get("A").current
        with pytest.raises(ValueError):
            table.update_rating("A", "C", True, True, dt.date(2024, 1, 5))
        assert table.get("A").current == before
        assert table.get("A").games == 1


class TestRecordGame:
    """Two-sided updates from a final score"""

    def test_deltas_sum_to_total_change(self):
        table = TeamRatingTable()
        day = dt.date(2024, 1, 1)
        results = [("A", "B", 30, 20), ("B", "C", 17, 14), ("C", "A", 21, 24), ("A", "B", 10, 13)]
        for i, (h, a, hs, as_) in enumerate(results):
            table.record_game(h, a, hs, as_, day + dt.timedelta(days=i))
        for team in ("A", "B", "C"):
            rec = table.get(team)
            assert sum(e.delta for e in rec.history) == pytest.approx(rec.current - 1500.0)

    def test_uses_pre_game_ratings(self):
        table = TeamRatingTable()
        home, away = table.record_game("A", "B", 30, 20)
        # Zero-sum when both use pre-game ratings and opposite venues
        assert home.delta == pytest.approx(-away.delta)

    def test_tie_counts_as_neither(self):
        table = TeamRatingTable()
        home, away = table.record_game("A", "B", 20, 20)
        rec = table.get("A")
        assert (rec.games, rec.wins, rec.losses) == (1, 0, 0)
        assert rec.history[-1].won is None
        # Home was expected to win, so a tie costs it rating
        assert home.delta < 0 < away.delta

    def test_neutral_site(self):
        table = TeamRatingTable()
        home, _ = table.record_game("A", "B", 30, 20, neutral_site=True)
        assert home.expected == pytest.approx(0.5)

    def test_out_of_order_leaves_both_untouched(self):
        table = TeamRatingTable()
        table.record_game("A", "C", 10, 7, dt.date(2024, 2, 1))
        with pytest.raises(ValueError):
            table.record_game("B", "A", 10, 7, dt.date(2024, 1, 1))
        assert table.get("B").games == 0
        assert table.get("A").games == 1

    def test_historical_games_sorted_first(self):
        table = TeamRatingTable()
        games = [
            GameResult(dt.date(2024, 1, 28), "BAL", "KC", 10, 17),
            GameResult(dt.date(2024, 1, 20), "BAL", "HOU", 34, 10),
            GameResult(dt.date(2024, 1, 21), "BUF", "KC", 24, 27),
        ]
        rankings = table.process_historical_games(games)
        assert len(rankings) == 4
        assert rankings[0].team == "KC"
        assert table.get("BAL").games == 2

    def test_concurrent_updates_serialized(self):
        table = TeamRatingTable()
        table.initialize(["A", "B", "C"])

        def worker(opp):
            for _ in range(50):
                table.update_rating("A", opp, won=True, is_home=None)

        threads = [threading.Thread(target=worker, args=(o,)) for o in ("B", "C", "B", "C")]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        rec = table.get("A")
        assert rec.games == 200
        assert len(rec.history) == 201
        assert sum(e.delta for e in rec.history) == pytest.approx(rec.current - 1500.0)


class FailingJournal:
    """Journal whose writes always fail."""

    def __init__(self):
        self.calls = []

    def append_all(self, rows):
        self.calls.append(list(rows))
        raise RuntimeError("journal unavailable")


class RecordingJournal:
    def __init__(self):
        self.calls = []

    def append_all(self, rows):
        self.calls.append(list(rows))


class TestJournaledUpdates:
    """Memory only moves after the journal accepts the write"""

    def test_failed_write_leaves_both_teams_untouched(self):
        journal = FailingJournal()
        table = TeamRatingTable(journal=journal)
        with pytest.raises(RuntimeError):
            table.record_game("A", "B", 10, 0, dt.date(2024, 1, 1))

        for team in ("A", "B"):
            rec = table.get(team)
            assert rec.current == 1500.0
            assert (rec.games, rec.wins, rec.losses) == (0, 0, 0)
            assert len(rec.history) == 1
        assert len(journal.calls) == 1

    def test_failed_write_on_single_update(self):
        table = TeamRatingTable(journal=FailingJournal())
        with pytest.raises(RuntimeError):
            table.update_rating("A", "B", won=True, is_home=True)
        assert table.get("A").current == 1500.0
        assert table.get("A").games == 0

    def test_table_usable_after_failed_write(self):
        table = TeamRatingTable(journal=FailingJournal())
        with pytest.raises(RuntimeError):
            table.record_game("A", "B", 10, 0, dt.date(2024, 1, 1))
        table._journal = RecordingJournal()
        table.record_game("A", "B", 10, 0, dt.date(2024, 1, 1))
        assert table.get("A").games == 1

    def test_both_rows_written_in_one_call(self):
        journal = RecordingJournal()
        table = TeamRatingTable(journal=journal)
        home, away = table.record_game("A", "B", 24, 17, dt.date(2024, 1, 1))

        assert len(journal.calls) == 1
        (h_team, h_seq, h_entry, h_home), (a_team, a_seq, a_entry, a_home) = journal.calls[0]
        assert (h_team, h_seq, h_home) == ("A", 1, True)
        assert (a_team, a_seq, a_home) == ("B", 1, False)
        assert h_entry.rating == pytest.approx(home.new)
        assert a_entry.rating == pytest.approx(away.new)
        assert table.get("A").history[-1] is h_entry


class TestPredictMatchup:
    """Matchup prediction and lookups"""

    def test_end_to_end_probability(self):
        table = _table_with(HOME=1600, AWAY=1500)
        pred = table.predict_matchup("HOME", "AWAY")
        assert pred.found
        assert pred.home_win_prob == pytest.approx(0.7597, abs=1e-4)
        assert pred.away_win_prob == pytest.approx(1 - pred.home_win_prob)
        assert pred.rating_diff == pytest.approx(100)
        assert pred.favored_team == "HOME"

    def test_unknown_team_is_tagged(self):
        table = _table_with(HOME=1600)
        pred = table.predict_matchup("HOME", "NOPE")
        assert isinstance(pred, TeamNotFound)
        assert not pred.found
        assert pred.error == "Team not found: NOPE"
        assert "NOPE" not in table

    def test_neutral_site(self):
        table = _table_with(A=1500, B=1500)
        assert table.predict_matchup("A", "B", neutral_site=True).home_win_prob == pytest.approx(0.5)


class TestRankingsAndExport:
    """Rankings, tiers and exports"""

    @pytest.mark.parametrize(
        "rating,tier",
        [(1750, "Elite"), (1600, "Strong"), (1500, "Average"), (1450, "Below Average"), (1300, "Weak")],
    )
    def test_tiers(self, rating, tier):
        assert elo_tier(rating) == tier

    def test_sorted_descending(self):
        table = _table_with(A=1450, B=1700, C=1550)
        rows = table.rankings()
        assert [r.team for r in rows] == ["B", "C", "A"]
        assert [r.rank for r in rows] == [1, 2, 3]
        assert rows[0].tier == "Elite"

    def test_trend_window(self):
        table = TeamRatingTable()
        for _ in range(10):
            table.update_rating("A", "B", won=True, is_home=None)
        rec = table.get("A")
        expected = rec.history[-1].rating - rec.history[-6].rating
        assert table.rankings()[0].trend == pytest.approx(expected)

    def test_export(self):
        table = TeamRatingTable()
        table.record_game("A", "B", 3, 1, dt.date(2024, 1, 1))
        data = table.export()
        assert data["metadata"]["k_factor"] == 20
        assert data["metadata"]["home_advantage"] == 100
        assert data["metadata"]["base_rating"] == 1500
        assert len(data["history"]["A"]) == 2
        assert data["rankings"][0]["team"] == "A"

    def test_rankings_while_teams_register(self):
        table = TeamRatingTable()
        errors = []
        done = threading.Event()

        def register():
            for i in range(2000):
                table.initialize([f"T{i}"])
            done.set()

        def read():
            try:
                while not done.is_set():
                    table.rankings()
                    table.export()
            except RuntimeError as exc:
                errors.append(exc)

        threads = [threading.Thread(target=register), threading.Thread(target=read)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert len(table.rankings()) == 2000


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
