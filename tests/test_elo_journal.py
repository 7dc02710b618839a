"""
Tests for the append-only Elo journal
Run with: pytest tests/test_elo_journal.py -v
"""

import datetime as dt
from unittest.mock import MagicMock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from edge_engine.models import Base, EloJournalEntry
from edge_engine.services.elo import EloHistoryEntry, TeamRatingTable
from edge_engine.services.elo_journal import EloJournal


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


class TestJournalWrites:
    """Updates land as rows"""

    def test_record_game_appends_one_row_per_team(self, session_factory):
        journal = EloJournal(session_factory)
        table = TeamRatingTable(journal=journal)
        table.record_game("BAL", "HOU", 34, 10, dt.date(2024, 1, 20))

        db = session_factory()
        try:
            rows = db.query(EloJournalEntry).order_by(EloJournalEntry.team).all()
            assert [(r.team, r.seq) for r in rows] == [("BAL", 1), ("HOU", 1)]
            assert rows[0].won is True
            assert rows[0].is_home is True
            assert rows[1].is_home is False
            assert rows[0].game_date == dt.date(2024, 1, 20)
        finally:
            db.close()

    def test_tie_stored_as_null(self, session_factory):
        journal = EloJournal(session_factory)
        TeamRatingTable(journal=journal).record_game("A", "B", 7, 7)
        history = journal.entries("A")["A"]
        assert history[0].won is None

    def test_failed_commit_rolls_back_and_raises(self):
        db = MagicMock()
        db.commit.side_effect = RuntimeError("disk full")
        journal = EloJournal(lambda: db)
        with pytest.raises(RuntimeError):
            journal.append("A", 1, EloHistoryEntry(date=None, rating=1510.0, delta=10.0))
        db.rollback.assert_called_once()
        db.close.assert_called_once()

    def test_append_all_is_all_or_nothing(self, session_factory):
        journal = EloJournal(session_factory)
        entry = EloHistoryEntry(date=None, rating=1510.0, delta=10.0, opponent="B", won=True)
        journal.append("A", 1, entry)

        # A seq=1 already exists, so the pair must be rejected as a whole.
        with pytest.raises(IntegrityError):
            journal.append_all([("B", 1, entry, False), ("A", 1, entry, True)])

        assert set(journal.entries()) == {"A"}

    def test_failed_pair_write_keeps_table_and_journal_in_step(self, session_factory):
        journal = EloJournal(session_factory)
        table = TeamRatingTable(journal=journal)
        table.record_game("A", "B", 21, 14, dt.date(2024, 1, 1))
        # Occupy B's next sequence number out of band.
        journal.append("B", 2, EloHistoryEntry(date=None, rating=1490.0, delta=-10.0))

        with pytest.raises(IntegrityError):
            table.record_game("A", "B", 21, 14, dt.date(2024, 1, 8))

        assert table.get("A").games == 1
        assert len(journal.entries("A")["A"]) == 1


class TestReplay:
    """Rebuilding a table from the journal"""

    def test_replay_matches_live_table(self, session_factory):
        journal = EloJournal(session_factory)
        live = TeamRatingTable(journal=journal)
        day = dt.date(2024, 1, 1)
        live.record_game("A", "B", 24, 17, day)
        live.record_game("B", "C", 20, 21, day + dt.timedelta(days=1))
        live.record_game("C", "A", 14, 14, day + dt.timedelta(days=2))

        rebuilt = journal.replay()
        for team in ("A", "B", "C"):
            a, b = live.get(team), rebuilt.get(team)
            assert b.current == pytest.approx(a.current)
            assert (b.games, b.wins, b.losses) == (a.games, a.wins, a.losses)
            assert len(b.history) == len(a.history)

    def test_entries_in_seq_order(self, session_factory):
        journal = EloJournal(session_factory)
        table = TeamRatingTable(journal=journal)
        for opp in ("B", "C", "D"):
            table.update_rating("A", opp, won=True, is_home=None)
        history = journal.entries("A")["A"]
        assert [e.opponent for e in history] == ["B", "C", "D"]
        assert history[-1].rating == pytest.approx(table.get("A").current)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
