"""
Append-only persistence for Elo updates.

Every update the :class:`~edge_engine.services.elo.TeamRatingTable` applies
is written as one ``elo_journal`` row keyed by ``(team, seq)``.  Rows are
never updated or deleted; a table is rebuilt by replaying them in ``seq``
order with :meth:`EloJournal.replay`.
"""

import logging
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from edge_engine.models import EloJournalEntry, SessionLocal
from edge_engine.services.elo import EloHistoryEntry, TeamRatingTable

logger = logging.getLogger(__name__)

# (team, seq, entry, is_home)
JournalRow = Tuple[str, int, EloHistoryEntry, Optional[bool]]


class EloJournal:
    """Writes and reads the ``elo_journal`` table through a session factory."""

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self._session_factory = session_factory

    def append(
        self,
        team: str,
        seq: int,
        entry: EloHistoryEntry,
        is_home: Optional[bool] = None,
    ) -> None:
        self.append_all([(team, seq, entry, is_home)])

    def append_all(self, rows: Sequence[JournalRow]) -> None:
        """Write ``rows`` in a single transaction: all land or none do."""
        db = self._session_factory()
        try:
            for team, seq, entry, is_home in rows:
                db.add(
                    EloJournalEntry(
                        team=team,
                        seq=seq,
                        game_date=entry.date,
                        rating_after=entry.rating,
                        delta=entry.delta,
                        expected=entry.expected if entry.expected is not None else 0.5,
                        opponent=entry.opponent or "",
                        won=entry.won,
                        is_home=is_home,
                    )
                )
            db.commit()
        except Exception:
            db.rollback()
            logger.error(
                "Elo journal write failed for %s",
                ", ".join(f"{team} seq={seq}" for team, seq, _, _ in rows),
                exc_info=True,
            )
            raise
        finally:
            db.close()

    def entries(self, team: Optional[str] = None) -> Dict[str, List[EloHistoryEntry]]:
        """Journaled history per team, in ``seq`` order."""
        db = self._session_factory()
        try:
            query = db.query(EloJournalEntry)
            if team is not None:
                query = query.filter(EloJournalEntry.team == team)
            rows = query.order_by(EloJournalEntry.team, EloJournalEntry.seq).all()
            out: Dict[str, List[EloHistoryEntry]] = {}
            for row in rows:
                out.setdefault(row.team, []).append(
                    EloHistoryEntry(
                        date=row.game_date,
                        rating=row.rating_after,
                        delta=row.delta,
                        opponent=row.opponent,
                        won=row.won,
                        expected=row.expected,
                    )
                )
            return out
        finally:
            db.close()

    def replay(self, table: Optional[TeamRatingTable] = None) -> TeamRatingTable:
        """Rebuild a rating table from the journal.

        The returned table is not attached to this journal; pass it in
        already attached to keep journaling new updates.
        """
        table = table or TeamRatingTable()
        history = self.entries()
        for team, team_entries in history.items():
            table.restore(team, team_entries)
        logger.info("Replayed Elo journal: %d teams", len(history))
        return table
