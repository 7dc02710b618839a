"""
Base heuristics feeding the Probability Blender.

Five qualitative signals, each expressed as a home-win probability centred
at 0.5:

=============  ==========================================================
team strength  ``0.5 + (home_strength - away_strength) / 200`` where
               strength is the season win percentage × 100
matchups       positional (guards / wings / bigs) stylistic score from box
               score averages, ``0.5 + clamp(total, -25, 25) / 100``
injuries       ``0.5 + (away_impact - home_impact) / 200``
form           ``0.5 + (home_L5_wins - away_L5_wins) / 20``
situational    ``0.5 + home_court_points / 20`` (zero at a neutral site)
=============  ==========================================================

:func:`base_probability` combines them with
:class:`~edge_engine.core.engine_config.BaseWeights`.  The weights sum to
0.50; the remainder is filled with the 0.5 base rate.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from edge_engine.core.engine_config import BaseWeights
from edge_engine.schemas import GameRecord, Injury, RecentForm, TeamInfo, TeamStats

# Player value when the injury report carries no override
DEFAULT_PLAYER_VALUE = 1.5

# Checked in order; the first substring found in the status wins
STATUS_MULTIPLIERS: Tuple[Tuple[str, float], ...] = (
    ("out", 5.0),
    ("doubtful", 3.0),
    ("questionable", 1.5),
    ("day-to-day", 0.5),
)


# ---------------------------------------------------------------------------
# Team strength
# ---------------------------------------------------------------------------

@dataclass
class TeamStrengthSide:
    record: Optional[str]
    win_pct: int
    strength: int
    tier: str


@dataclass
class TeamStrengthFactor:
    home: TeamStrengthSide
    away: TeamStrengthSide
    differential: int
    advantage: str
    probability: float


def strength_tier(win_pct: float) -> str:
    if win_pct >= 0.65:
        return "Elite"
    if win_pct >= 0.55:
        return "Playoff"
    if win_pct >= 0.45:
        return "Bubble"
    if win_pct >= 0.35:
        return "Lottery"
    return "Tank"


def _strength_side(team: TeamInfo) -> TeamStrengthSide:
    parsed = team.parsed_record()
    wins, losses = parsed if parsed is not None else (0, 0)
    games = wins + losses
    if games == 0:
        # No games played: no information, not a winless team
        win_pct = 0.5
    else:
        win_pct = wins / games
    return TeamStrengthSide(
        record=team.record,
        win_pct=round(win_pct * 100),
        strength=round(win_pct * 100),
        tier=strength_tier(win_pct),
    )


def team_strength(home: TeamInfo, away: TeamInfo) -> TeamStrengthFactor:
    h = _strength_side(home)
    a = _strength_side(away)
    diff = h.strength - a.strength
    if diff > 10:
        advantage = "home"
    elif diff < -10:
        advantage = "away"
    else:
        advantage = "neutral"
    return TeamStrengthFactor(
        home=h, away=a, differential=diff, advantage=advantage, probability=0.5 + diff / 200
    )


# ---------------------------------------------------------------------------
# Positional matchups
# ---------------------------------------------------------------------------

@dataclass
class PositionMatchup:
    position: str
    home_score: float
    away_score: float
    score: int
    winner: str
    analysis: str


@dataclass
class MatchupFactor:
    positions: List[PositionMatchup] = field(default_factory=list)
    home_wins: int = 0
    away_wins: int = 0
    even: int = 0
    total_score: int = 0
    overall_advantage: str = "neutral"
    description: str = "Neutral"
    available: bool = False

    @property
    def probability(self) -> float:
        return 0.5 + max(-25, min(25, self.total_score)) / 100

    @property
    def dominant(self) -> List[PositionMatchup]:
        return [p for p in self.positions if abs(p.score) > 20]

    @property
    def winner_by_count(self) -> str:
        """Side that won more positions, used for factor alignment."""
        if self.home_wins > self.away_wins:
            return "home"
        if self.away_wins > self.home_wins:
            return "away"
        return "neutral"


def normalize(value: Optional[float], low: float, high: float) -> float:
    """Scale ``value`` into [0, 1] over ``[low, high]``; missing or zero → 0.5."""
    if not value:
        return 0.5
    return max(0.0, min(1.0, (value - low) / (high - low)))


def _guard_score(s: TeamStats) -> float:
    return (
        normalize(s.three_point_pct, 30, 40)
        + normalize(s.assists, 20, 30)
        + normalize(s.steals, 5, 9)
    )


def _wing_score(s: TeamStats) -> float:
    return (
        normalize(s.field_goal_pct, 42, 50)
        + normalize(s.free_throws_attempted, 15, 25)
        - normalize(s.turnovers, 10, 16)
    )


def _big_score(s: TeamStats) -> float:
    return normalize(s.rebounds, 40, 50) + normalize(s.blocks, 3, 7)


_POSITIONS = (
    ("Guards", _guard_score, "Perimeter matchup"),
    ("Wings", _wing_score, "Scoring versatility"),
    ("Bigs", _big_score, "Paint dominance"),
)


def _matchup_description(score: int) -> str:
    if score > 15:
        return "Home has significant stylistic advantage"
    if score > 5:
        return "Home has slight edge in key areas"
    if score < -15:
        return "Away has significant stylistic advantage"
    if score < -5:
        return "Away has slight edge in key areas"
    return "Teams match up evenly"


def matchups(home_stats: Optional[TeamStats], away_stats: Optional[TeamStats]) -> MatchupFactor:
    if home_stats is None or away_stats is None:
        return MatchupFactor()

    positions = []
    for name, scorer, analysis in _POSITIONS:
        h, a = scorer(home_stats), scorer(away_stats)
        raw = round((h - a) * 10)
        winner = "home" if raw > 1 else "away" if raw < -1 else "even"
        positions.append(
            PositionMatchup(
                position=name,
                home_score=round(h, 3),
                away_score=round(a, 3),
                score=raw * 10,
                winner=winner,
                analysis=analysis,
            )
        )

    total = sum(p.score for p in positions)
    overall = "home" if total > 10 else "away" if total < -10 else "even"
    return MatchupFactor(
        positions=positions,
        home_wins=sum(1 for p in positions if p.winner == "home"),
        away_wins=sum(1 for p in positions if p.winner == "away"),
        even=sum(1 for p in positions if p.winner == "even"),
        total_score=total,
        overall_advantage=overall,
        description=_matchup_description(total),
        available=True,
    )


# ---------------------------------------------------------------------------
# Injuries
# ---------------------------------------------------------------------------

@dataclass
class InjurySide:
    out: List[str]
    questionable: List[str]
    impact_score: int

    @property
    def health_rating(self) -> int:
        return max(0, 100 - self.impact_score)


@dataclass
class InjuryFactor:
    home: InjurySide
    away: InjurySide
    differential: int
    advantage: str
    probability: float


def injury_impact_score(report: Sequence[Injury]) -> int:
    """Summed player value × status multiplier, capped at 100."""
    score = 0.0
    for inj in report:
        status = inj.status.lower()
        value = inj.impact_value or DEFAULT_PLAYER_VALUE
        for token, multiplier in STATUS_MULTIPLIERS:
            if token in status:
                score += value * multiplier
                break
    return min(100, round(score))


def _injury_side(report: Sequence[Injury]) -> InjurySide:
    return InjurySide(
        out=[i.player for i in report if i.status.lower() == "out"],
        questionable=[
            i.player for i in report
            if i.status.lower() in ("questionable", "doubtful", "day-to-day")
        ],
        impact_score=injury_impact_score(report),
    )


def injuries(
    home: TeamInfo, away: TeamInfo, report: Mapping[str, Sequence[Injury]]
) -> InjuryFactor:
    h = _injury_side(report.get(home.abbr, ()))
    a = _injury_side(report.get(away.abbr, ()))
    diff = a.impact_score - h.impact_score
    if h.impact_score < a.impact_score:
        advantage = "home"
    elif a.impact_score < h.impact_score:
        advantage = "away"
    else:
        advantage = "neutral"
    return InjuryFactor(
        home=h, away=a, differential=diff, advantage=advantage, probability=0.5 + diff / 200
    )


# ---------------------------------------------------------------------------
# Form and situation
# ---------------------------------------------------------------------------

@dataclass
class FormFactor:
    home: RecentForm
    away: RecentForm
    advantage: str
    probability: float


def form(home_form: Optional[RecentForm], away_form: Optional[RecentForm]) -> FormFactor:
    h = home_form or RecentForm()
    a = away_form or RecentForm()
    if h.wins > a.wins:
        advantage = "home"
    elif a.wins > h.wins:
        advantage = "away"
    else:
        advantage = "neutral"
    return FormFactor(home=h, away=a, advantage=advantage, probability=0.5 + (h.wins - a.wins) / 20)


@dataclass
class SituationalFactor:
    home_court_points: float
    advantage: str
    probability: float


def situational(neutral_site: bool, home_court_points: float = 3.0) -> SituationalFactor:
    pts = 0.0 if neutral_site else home_court_points
    return SituationalFactor(
        home_court_points=pts,
        advantage="home" if pts > 0 else "neutral",
        probability=0.5 + pts / 20,
    )


# ---------------------------------------------------------------------------
# Combination
# ---------------------------------------------------------------------------

@dataclass
class BaseFactors:
    team_strength: TeamStrengthFactor
    matchups: MatchupFactor
    injuries: InjuryFactor
    form: FormFactor
    situational: SituationalFactor

    def probabilities(self) -> Dict[str, float]:
        return {
            "team_strength": self.team_strength.probability,
            "matchups": self.matchups.probability,
            "injuries": self.injuries.probability,
            "form": self.form.probability,
            "situational": self.situational.probability,
        }


def compute_base_factors(
    game: GameRecord,
    injury_report: Optional[Mapping[str, Sequence[Injury]]] = None,
    home_court_points: float = 3.0,
) -> BaseFactors:
    return BaseFactors(
        team_strength=team_strength(game.home, game.away),
        matchups=matchups(game.home_stats, game.away_stats),
        injuries=injuries(game.home, game.away, injury_report or {}),
        form=form(game.home_form, game.away_form),
        situational=situational(game.neutral_site, home_court_points),
    )


def base_probability(factors: BaseFactors, weights: Optional[BaseWeights] = None) -> float:
    """Weighted sum of the base heuristics plus 0.5 × the unweighted remainder."""
    weights = weights or BaseWeights()
    probs = factors.probabilities()
    weighted = (
        probs["team_strength"] * weights.team_strength
        + probs["matchups"] * weights.matchups
        + probs["injuries"] * weights.injuries
        + probs["form"] * weights.form
        + probs["situational"] * weights.situational
    )
    return weighted + (1.0 - weights.total) * 0.5
