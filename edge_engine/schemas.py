"""
Pydantic input records for the prediction engine.

Collaborators (scrapers, the odds feed, the backtest fixtures) hand the
engine fully resolved data through these models.  Validating at this
boundary means the services below can trust types and ranges instead of
guarding every attribute access.

Optional Factor Bank sub-data follows one rule: a record that is absent,
or present with ``available=False``, is treated as missing.  The check is
made once, by :meth:`FactorDataBundle.resolve`.
"""

from __future__ import annotations

import re
import datetime as dt
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

Side = Literal["home", "away"]
Advantage = Literal["home", "away", "over", "under", "neutral"]
Sentiment = Literal["positive", "negative", "neutral"]

_RECORD_RE = re.compile(r"^\s*(\d+)-(\d+)(?:-(\d+))?\s*$")


# ---------------------------------------------------------------------------
# Teams and games
# ---------------------------------------------------------------------------

class TeamInfo(BaseModel):
    """A team as referenced by one game."""

    abbr: str = Field(..., min_length=1, max_length=8, description='e.g. "BAL"')
    name: str = Field(..., min_length=1, description='e.g. "Baltimore Ravens"')
    record: Optional[str] = Field(None, description='Season record "W-L" or "W-L-T"')

    @field_validator("record")
    @classmethod
    def record_format(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not _RECORD_RE.match(v):
            raise ValueError(f"record must look like 'W-L', got {v!r}")
        return v

    def parsed_record(self) -> Optional[tuple[int, int]]:
        """``(wins, losses)`` or ``None`` when no record was supplied."""
        if self.record is None:
            return None
        m = _RECORD_RE.match(self.record)
        return int(m.group(1)), int(m.group(2))


class TeamStats(BaseModel):
    """Season efficiency and box-score averages for one team."""

    offensive_rating: Optional[float] = Field(None, gt=0)
    defensive_rating: Optional[float] = Field(None, gt=0)
    pace: Optional[float] = Field(None, gt=0)
    net_rating: Optional[float] = None
    points_per_game: Optional[float] = Field(None, ge=0)
    points_allowed: Optional[float] = Field(None, ge=0)

    # Box-score averages used by the positional matchup heuristic
    field_goal_pct: Optional[float] = Field(None, ge=0, le=100)
    three_point_pct: Optional[float] = Field(None, ge=0, le=100)
    free_throws_attempted: Optional[float] = Field(None, ge=0)
    assists: Optional[float] = Field(None, ge=0)
    steals: Optional[float] = Field(None, ge=0)
    turnovers: Optional[float] = Field(None, ge=0)
    rebounds: Optional[float] = Field(None, ge=0)
    blocks: Optional[float] = Field(None, ge=0)

    def derived_net_rating(self) -> Optional[float]:
        """Explicit net rating, else ORtg − DRtg, else points margin."""
        if self.net_rating is not None:
            return self.net_rating
        if self.offensive_rating is not None and self.defensive_rating is not None:
            return self.offensive_rating - self.defensive_rating
        if self.points_per_game is not None and self.points_allowed is not None:
            return self.points_per_game - self.points_allowed
        return None


class RecentForm(BaseModel):
    """Last-five-games summary."""

    wins: int = Field(0, ge=0, le=5)
    losses: int = Field(0, ge=0, le=5)
    point_diff: float = 0.0
    streak: str = ""

    @property
    def games(self) -> int:
        return self.wins + self.losses

    @property
    def trend(self) -> Literal["hot", "cold", "neutral"]:
        if self.games == 0:
            return "neutral"
        if self.wins >= 4:
            return "hot"
        if self.wins <= 1:
            return "cold"
        return "neutral"

    @property
    def record(self) -> str:
        return f"{self.wins}-{self.losses}"


class BookOdds(BaseModel):
    """One bookmaker's lines for a game (American prices, home-perspective spread)."""

    book: str = Field(..., min_length=1)
    home_ml: Optional[int] = None
    away_ml: Optional[int] = None
    home_spread: Optional[float] = None
    total: Optional[float] = Field(None, gt=0)

    @field_validator("home_ml", "away_ml")
    @classmethod
    def american_magnitude(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and abs(v) < 100:
            raise ValueError(f"American odds must satisfy |odds| ≥ 100, got {v}")
        return v


class GameRecord(BaseModel):
    """Everything the engine knows about one scheduled (or completed) game."""

    id: str
    date: dt.date
    home: TeamInfo
    away: TeamInfo
    odds: List[BookOdds] = Field(default_factory=list)
    home_stats: Optional[TeamStats] = None
    away_stats: Optional[TeamStats] = None
    home_form: Optional[RecentForm] = None
    away_form: Optional[RecentForm] = None
    neutral_site: bool = False

    # Backtesting only
    home_score: Optional[int] = Field(None, ge=0)
    away_score: Optional[int] = Field(None, ge=0)

    @property
    def matchup_label(self) -> str:
        return f"{self.away.abbr} @ {self.home.abbr}"


class Injury(BaseModel):
    """One player on a team's injury report."""

    player: str
    status: str = Field(..., description="Out / Doubtful / Questionable / Day-To-Day")
    type: Optional[str] = None
    impact_value: Optional[float] = Field(
        None, gt=0, description="Player value override; defaults to a rotation player"
    )


class NewsArticle(BaseModel):
    """A news item, normally produced by ``services.news.analyze_article``."""

    headline: str
    description: str = ""
    mentioned_teams: List[str] = Field(default_factory=list)
    sentiment: Sentiment = "neutral"
    impact_score: int = Field(0, ge=0, le=100)
    is_high_impact: bool = False


# ---------------------------------------------------------------------------
# Factor Bank sub-data
# ---------------------------------------------------------------------------

class _SubRecord(BaseModel):
    available: bool = True


class HeadToHead(_SubRecord):
    total_games: int = Field(0, ge=0)
    home_wins: int = Field(0, ge=0)
    away_wins: int = Field(0, ge=0)
    avg_point_diff: float = 0.0


class AtsRecord(BaseModel):
    overall_pct: float = Field(..., ge=0, le=100)
    as_favorite_pct: Optional[float] = Field(None, ge=0, le=100)
    as_underdog_pct: Optional[float] = Field(None, ge=0, le=100)


class AtsData(_SubRecord):
    home: AtsRecord
    away: AtsRecord


class LineMovement(_SubRecord):
    spread_current: Optional[float] = None
    spread_variance: float = Field(0.0, ge=0)
    book_count: int = Field(0, ge=0)
    has_rlm: bool = Field(False, description="Reverse line movement detected")


class PublicBetting(_SubRecord):
    home_pct: float = Field(..., ge=0, le=100)
    away_pct: float = Field(..., ge=0, le=100)

    @property
    def fade_side(self) -> Optional[Side]:
        """Side opposite a public majority above 70%, if any."""
        if self.home_pct > 70:
            return "away"
        if self.away_pct > 70:
            return "home"
        return None


class RestInfo(BaseModel):
    rest_days: Optional[int] = Field(None, ge=0)
    back_to_back: bool = False
    games_last7: int = Field(0, ge=0)


class RestSchedule(_SubRecord):
    home: Optional[RestInfo] = None
    away: Optional[RestInfo] = None


class RefereeTendency(BaseModel):
    name: str
    ou_tendency: float = Field(..., description="Points above/below the posted total")


class RefereeData(_SubRecord):
    league_ou_tendency: float = 0.0
    notable_refs: List[RefereeTendency] = Field(default_factory=list)


class ClutchRecord(BaseModel):
    close_game_pct: Optional[float] = Field(None, ge=0, le=100)
    close_game_record: str = ""


class ClutchData(_SubRecord):
    home: ClutchRecord
    away: ClutchRecord


class QuarterSplit(BaseModel):
    q1: float = 0.0
    q2: float = 0.0
    q3: float = 0.0
    q4: float = 0.0


class QuarterData(_SubRecord):
    home: QuarterSplit
    away: QuarterSplit


class SituationalSpot(BaseModel):
    team: Side
    reason: str = ""


class Situations(_SubRecord):
    revenge_game: Optional[SituationalSpot] = None
    letdown_spot: Optional[SituationalSpot] = None
    home_fighting_for_seed: bool = False
    away_fighting_for_seed: bool = False


class FactorDataBundle(BaseModel):
    """Pre-fetched, independently optional Factor Bank inputs."""

    head_to_head: Optional[HeadToHead] = None
    ats: Optional[AtsData] = None
    line_movement: Optional[LineMovement] = None
    public_betting: Optional[PublicBetting] = None
    rest: Optional[RestSchedule] = None
    referees: Optional[RefereeData] = None
    clutch: Optional[ClutchData] = None
    quarters: Optional[QuarterData] = None
    situations: Optional[Situations] = None

    def resolve(self, name: str):
        """Return sub-record ``name`` if present and flagged available, else ``None``."""
        record = getattr(self, name)
        if record is None or not record.available:
            return None
        return record
