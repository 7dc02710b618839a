"""
Team Rating Table: Elo ratings with per-team update history.

Chess-style Elo adapted for sports with a home-advantage offset::

    expected = 1 / (1 + 10 ** ((adj_opp - adj_team) / 400))
    new      = current + K × (actual - expected)

The table is an owned object injected into callers, never module-level
state.  It is shared and mutable, so every mutation of a team happens
under that team's lock; updates for different teams proceed in parallel.
Locks for a pair of teams are always taken in sorted order to rule out
deadlock.

Rating deltas are stored unrounded so that the sum of deltas in a team's
history equals its total rating change exactly.

Usage::

    table = TeamRatingTable()
    table.record_game("BAL", "HOU", 34, 10, date(2024, 1, 20))
    pred = table.predict_matchup("BAL", "HOU")
    if pred.found:
        print(pred.home_win_prob)
"""

from __future__ import annotations

import datetime as dt
import logging
import threading
from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Union

from edge_engine.core.engine_config import EngineConfig

if TYPE_CHECKING:
    from edge_engine.services.elo_journal import EloJournal

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Pure rating math
# ---------------------------------------------------------------------------

def expected_win_probability(
    team_rating: float,
    opponent_rating: float,
    is_home: Optional[bool] = None,
    home_advantage: float = 100.0,
) -> float:
    """Logistic expected score for ``team`` against ``opponent``.

    ``is_home=True`` adds ``home_advantage`` to the team, ``False`` adds it
    to the opponent, and ``None`` (neutral site) adds it to neither.
    """
    adj_team = team_rating + (home_advantage if is_home is True else 0.0)
    adj_opp = opponent_rating + (home_advantage if is_home is False else 0.0)
    return 1.0 / (1.0 + 10.0 ** ((adj_opp - adj_team) / 400.0))


def elo_tier(rating: float) -> str:
    if rating >= 1700:
        return "Elite"
    if rating >= 1600:
        return "Strong"
    if rating >= 1500:
        return "Average"
    if rating >= 1400:
        return "Below Average"
    return "Weak"


# ---------------------------------------------------------------------------
# Records and results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EloHistoryEntry:
    """One point in a team's rating history.  The first entry has no game."""

    date: Optional[dt.date]
    rating: float
    delta: float = 0.0
    opponent: Optional[str] = None
    won: Optional[bool] = None
    expected: Optional[float] = None


@dataclass
class EloRecord:
    team: str
    current: float
    games: int = 0
    wins: int = 0
    losses: int = 0
    history: List[EloHistoryEntry] = field(default_factory=list)

    @property
    def win_pct(self) -> float:
        return round(self.wins / self.games * 100.0, 1) if self.games > 0 else 0.0

    @property
    def record(self) -> str:
        return f"{self.wins}-{self.losses}"

    def trend(self, window: int = 6) -> float:
        """Rating change across the last ``window`` history entries."""
        if len(self.history) < 2:
            return 0.0
        recent = self.history[-window:]
        return recent[-1].rating - recent[0].rating

    def last_game_date(self) -> Optional[dt.date]:
        for entry in reversed(self.history):
            if entry.date is not None:
                return entry.date
        return None


@dataclass(frozen=True)
class RatingUpdate:
    team: str
    previous: float
    new: float
    delta: float
    expected: float


@dataclass(frozen=True)
class MatchupPrediction:
    home_team: str
    away_team: str
    home_rating: float
    away_rating: float
    rating_diff: float
    home_win_prob: float
    away_win_prob: float
    favored_team: str
    home_record: str
    away_record: str

    found: bool = True


@dataclass(frozen=True)
class TeamNotFound:
    """Tagged lookup failure; callers check ``found`` before use."""

    missing: tuple[str, ...]

    found: bool = False

    @property
    def error(self) -> str:
        return f"Team not found: {', '.join(self.missing)}"


@dataclass(frozen=True)
class RankingRow:
    rank: int
    team: str
    rating: float
    games: int
    wins: int
    losses: int
    win_pct: float
    trend: float
    tier: str


@dataclass(frozen=True)
class GameResult:
    """A completed game, as fed to :meth:`TeamRatingTable.process_historical_games`."""

    date: dt.date
    home_team: str
    away_team: str
    home_score: int
    away_score: int
    neutral_site: bool = False


# ---------------------------------------------------------------------------
# Table
# ---------------------------------------------------------------------------

class TeamRatingTable:
    """Owns every team's Elo record.  Thread-safe per team."""

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        journal: Optional[EloJournal] = None,
    ):
        self.config = config or EngineConfig.default()
        self._journal = journal
        self._records: Dict[str, EloRecord] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    # ------------------------------------------------------------------ #
    #  Registry                                                            #
    # ------------------------------------------------------------------ #

    def _ensure(self, team: str) -> EloRecord:
        with self._registry_lock:
            rec = self._records.get(team)
            if rec is None:
                base = self.config.elo_base_rating
                rec = EloRecord(
                    team=team,
                    current=base,
                    history=[EloHistoryEntry(date=None, rating=base)],
                )
                self._records[team] = rec
                self._locks[team] = threading.Lock()
            return rec

    def initialize(self, teams: Iterable[str]) -> None:
        """Create records at the base rating for any teams not yet known."""
        for team in teams:
            self._ensure(team)

    def get(self, team: str) -> Optional[EloRecord]:
        return self._records.get(team)

    def __contains__(self, team: str) -> bool:
        return team in self._records

    def __len__(self) -> int:
        return len(self._records)

    def teams(self) -> List[str]:
        with self._registry_lock:
            return list(self._records)

    def _snapshot(self) -> List[EloRecord]:
        with self._registry_lock:
            return list(self._records.values())

    # ------------------------------------------------------------------ #
    #  Updates                                                             #
    # ------------------------------------------------------------------ #

    @staticmethod
    def _check_order(rec: EloRecord, game_date: Optional[dt.date]) -> None:
        last = rec.last_game_date()
        if game_date is not None and last is not None and game_date < last:
            raise ValueError(
                f"Out-of-order Elo update for {rec.team}: {game_date} precedes {last}"
            )

    def _prepare(
        self,
        rec: EloRecord,
        opponent: str,
        opponent_rating: float,
        actual: float,
        is_home: Optional[bool],
        game_date: Optional[dt.date],
    ) -> EloHistoryEntry:
        """The history entry one game would produce.  Leaves ``rec`` untouched."""
        self._check_order(rec, game_date)
        expected = expected_win_probability(
            rec.current, opponent_rating, is_home, self.config.elo_home_advantage
        )
        delta = self.config.elo_k_factor * (actual - expected)
        won: Optional[bool] = None
        if actual == 1.0:
            won = True
        elif actual == 0.0:
            won = False
        return EloHistoryEntry(
            date=game_date,
            rating=rec.current + delta,
            delta=delta,
            opponent=opponent,
            won=won,
            expected=expected,
        )

    def _journal_all(
        self, pending: List[tuple[EloRecord, EloHistoryEntry, Optional[bool]]]
    ) -> None:
        if self._journal is None:
            return
        self._journal.append_all(
            [(rec.team, rec.games + 1, entry, is_home) for rec, entry, is_home in pending]
        )

    @staticmethod
    def _commit(rec: EloRecord, entry: EloHistoryEntry) -> RatingUpdate:
        previous = rec.current
        rec.current = entry.rating
        rec.games += 1
        if entry.won is True:
            rec.wins += 1
        elif entry.won is False:
            rec.losses += 1
        rec.history.append(entry)
        return RatingUpdate(
            team=rec.team,
            previous=previous,
            new=entry.rating,
            delta=entry.delta,
            expected=entry.expected,
        )

    def _pair_locks(self, a: str, b: str) -> tuple[threading.Lock, threading.Lock]:
        first, second = sorted((a, b))
        return self._locks[first], self._locks[second]

    def update_rating(
        self,
        team: str,
        opponent: str,
        won: bool,
        is_home: Optional[bool],
        game_date: Optional[dt.date] = None,
    ) -> RatingUpdate:
        """Apply one game result to ``team`` only.

        The opponent is created at the base rating if unknown, but its own
        rating is not changed.

        Raises:
            ValueError: If ``team == opponent`` or ``game_date`` precedes
                the team's latest recorded game.
        """
        if team == opponent:
            raise ValueError(f"A team cannot play itself: {team!r}")
        rec = self._ensure(team)
        opp = self._ensure(opponent)
        first, second = self._pair_locks(team, opponent)
        with first, second:
            entry = self._prepare(
                rec, opponent, opp.current, 1.0 if won else 0.0, is_home, game_date
            )
            self._journal_all([(rec, entry, is_home)])
            return self._commit(rec, entry)

    def record_game(
        self,
        home_team: str,
        away_team: str,
        home_score: int,
        away_score: int,
        game_date: Optional[dt.date] = None,
        neutral_site: bool = False,
    ) -> tuple[RatingUpdate, RatingUpdate]:
        """Update both teams from one final score, using pre-game ratings for both.

        A tie scores 0.5 for each side and counts as neither a win nor a loss.
        """
        if home_team == away_team:
            raise ValueError(f"A team cannot play itself: {home_team!r}")
        home = self._ensure(home_team)
        away = self._ensure(away_team)
        if home_score > away_score:
            home_actual = 1.0
        elif home_score < away_score:
            home_actual = 0.0
        else:
            home_actual = 0.5

        home_is_home = None if neutral_site else True
        away_is_home = None if neutral_site else False
        first, second = self._pair_locks(home_team, away_team)
        with first, second:
            home_entry = self._prepare(
                home, away_team, away.current, home_actual, home_is_home, game_date
            )
            away_entry = self._prepare(
                away, home_team, home.current, 1.0 - home_actual, away_is_home, game_date
            )
            # Both rows are journaled before either team moves.
            self._journal_all(
                [(home, home_entry, home_is_home), (away, away_entry, away_is_home)]
            )
            return self._commit(home, home_entry), self._commit(away, away_entry)

    def process_historical_games(self, games: Iterable[GameResult]) -> List[RankingRow]:
        """Replay completed games in date order and return the resulting rankings."""
        ordered = sorted(games, key=lambda g: g.date)
        logger.info("Processing %d historical games for Elo", len(ordered))
        for g in ordered:
            self.record_game(
                g.home_team, g.away_team, g.home_score, g.away_score, g.date, g.neutral_site
            )
        logger.info("Elo table now tracks %d teams", len(self))
        return self.rankings()

    def restore(self, team: str, entries: Iterable[EloHistoryEntry]) -> EloRecord:
        """Rebuild ``team`` from journaled entries, appended after its current history."""
        rec = self._ensure(team)
        with self._locks[team]:
            for entry in entries:
                rec.history.append(entry)
                rec.current = entry.rating
                rec.games += 1
                if entry.won is True:
                    rec.wins += 1
                elif entry.won is False:
                    rec.losses += 1
        return rec

    # ------------------------------------------------------------------ #
    #  Queries                                                             #
    # ------------------------------------------------------------------ #

    def predict_matchup(
        self,
        home_team: str,
        away_team: str,
        neutral_site: bool = False,
    ) -> Union[MatchupPrediction, TeamNotFound]:
        """Home/away win probabilities, or :class:`TeamNotFound` for unknown teams."""
        missing = tuple(t for t in (home_team, away_team) if t not in self._records)
        if missing:
            logger.debug("predict_matchup: unknown team(s) %s", missing)
            return TeamNotFound(missing=missing)

        home = self._records[home_team]
        away = self._records[away_team]
        p_home = expected_win_probability(
            home.current,
            away.current,
            None if neutral_site else True,
            self.config.elo_home_advantage,
        )
        return MatchupPrediction(
            home_team=home_team,
            away_team=away_team,
            home_rating=home.current,
            away_rating=away.current,
            rating_diff=home.current - away.current,
            home_win_prob=p_home,
            away_win_prob=1.0 - p_home,
            favored_team=home_team if p_home > 0.5 else away_team,
            home_record=home.record,
            away_record=away.record,
        )

    def rankings(self) -> List[RankingRow]:
        """All teams by current rating, highest first."""
        ordered = sorted(self._snapshot(), key=lambda r: r.current, reverse=True)
        window = self.config.elo_trend_window
        return [
            RankingRow(
                rank=i,
                team=r.team,
                rating=r.current,
                games=r.games,
                wins=r.wins,
                losses=r.losses,
                win_pct=r.win_pct,
                trend=r.trend(window),
                tier=elo_tier(r.current),
            )
            for i, r in enumerate(ordered, start=1)
        ]

    def export(self) -> dict:
        return {
            "rankings": [asdict(row) for row in self.rankings()],
            "history": {
                rec.team: [asdict(e) for e in list(rec.history)]
                for rec in self._snapshot()
            },
            "metadata": {
                "k_factor": self.config.elo_k_factor,
                "home_advantage": self.config.elo_home_advantage,
                "base_rating": self.config.elo_base_rating,
                "version": self.config.version,
            },
        }
