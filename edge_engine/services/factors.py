"""
Factor Bank: twelve independent heuristic signals.

Each factor is a pure function of the two teams and one optional slice of
pre-fetched data, returning a :class:`FactorResult`:

 1. Head-to-Head History        7. Referee Tendencies
 2. Pace of Play                8. Clutch Performance
 3. Against the Spread (ATS)    9. Quarter/Half Splits
 4. Line Movement              10. Motivation & Situations
 5. Public Betting             11. Advanced Analytics
 6. Rest & Schedule            12. News & Sentiment

Contract
--------
When a factor's data is missing it returns a *neutral* result
(``advantage="neutral"``, ``impact=0``, ``prob_adjustment=0``,
``available=False``) carrying a fallback insight.  A factor never fails the
analysis: :func:`analyze_all_factors` also converts an unexpected exception
inside one factor into that factor's neutral result.

``prob_adjustment`` is in percentage points from the home side's
perspective (positive favours home).  ``impact`` is a 0–10 magnitude used
for ranking insights, not for probability.

Aggregation
-----------
* overall advantage = ``home`` if home count > away count + 2, ``away``
  symmetrically, else ``neutral``.
* totals lean = ``OVER``/``UNDER`` when one count beats the other by more
  than one, else ``NO EDGE``.
* aggregate adjustment = sum of ``prob_adjustment`` rounded to 0.1.
* key insights = factors with ``impact`` above the configured threshold.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from edge_engine.schemas import (
    AtsData,
    BookOdds,
    ClutchData,
    FactorDataBundle,
    GameRecord,
    HeadToHead,
    LineMovement,
    NewsArticle,
    PublicBetting,
    QuarterData,
    RefereeData,
    RestSchedule,
    Situations,
    TeamInfo,
    TeamStats,
)
from edge_engine.services.news import mentions

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Factor registry
# ---------------------------------------------------------------------------

HEAD_TO_HEAD = "Head-to-Head History"
PACE = "Pace of Play"
ATS = "Against the Spread (ATS)"
LINE_MOVEMENT = "Line Movement"
PUBLIC_BETTING = "Public Betting"
REST = "Rest & Schedule"
REFEREES = "Referee Tendencies"
CLUTCH = "Clutch Performance"
QUARTERS = "Quarter/Half Splits"
MOTIVATION = "Motivation & Situations"
ADVANCED = "Advanced Analytics"
NEWS = "News & Sentiment"

# Declared weights (informational; the blend uses prob_adjustment directly)
FACTOR_WEIGHTS: Dict[str, float] = {
    HEAD_TO_HEAD: 0.08,
    PACE: 0.06,
    ATS: 0.10,
    LINE_MOVEMENT: 0.12,
    PUBLIC_BETTING: 0.08,
    REST: 0.10,
    REFEREES: 0.05,
    CLUTCH: 0.07,
    QUARTERS: 0.05,
    MOTIVATION: 0.08,
    ADVANCED: 0.12,
    NEWS: 0.08,
}

# Pace assumed for a team that supplied none while its opponent did
_DEFAULT_PACE = 100.0


@dataclass
class FactorResult:
    factor: str
    weight: float
    advantage: str = "neutral"
    impact: int = 0
    prob_adjustment: float = 0.0
    insight: str = ""
    data_source: str = "none"
    available: bool = False
    data: Dict[str, Any] = field(default_factory=dict)

    # Totals-oriented extras (pace, referees)
    totals_lean: Optional[str] = None
    projected_total: Optional[int] = None
    # Line movement only
    has_rlm: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "factor": self.factor,
            "weight": self.weight,
            "advantage": self.advantage,
            "impact": self.impact,
            "prob_adjustment": round(self.prob_adjustment, 2),
            "insight": self.insight,
            "data_source": self.data_source,
            "available": self.available,
        }


def neutral_factor(name: str, insight: str) -> FactorResult:
    """The graceful-degradation result for a factor without data."""
    return FactorResult(factor=name, weight=FACTOR_WEIGHTS[name], insight=insight)


def _found(name: str, source: str, **kwargs) -> FactorResult:
    return FactorResult(
        factor=name, weight=FACTOR_WEIGHTS[name], data_source=source, available=True, **kwargs
    )


def _signed(x: float) -> str:
    return f"+{x}" if x > 0 else f"{x}"


# ---------------------------------------------------------------------------
# 1. Head-to-head
# ---------------------------------------------------------------------------

def analyze_head_to_head(
    home: TeamInfo, away: TeamInfo, h2h: Optional[HeadToHead]
) -> FactorResult:
    if h2h is None:
        return neutral_factor(HEAD_TO_HEAD, "No recent head-to-head matchups this season.")

    home_win_pct = h2h.home_wins / h2h.total_games if h2h.total_games > 0 else 0.5
    advantage, impact, adj = "neutral", 0, 0.0
    if h2h.total_games >= 3 and home_win_pct > 0.65:
        advantage = "home"
        impact = min(8, round((home_win_pct - 0.5) * 20))
        adj = min(5.0, (home_win_pct - 0.5) * 10)
    elif h2h.total_games >= 3 and home_win_pct < 0.35:
        advantage = "away"
        impact = min(8, round((0.5 - home_win_pct) * 20))
        adj = max(-5.0, (home_win_pct - 0.5) * 10)

    return _found(
        HEAD_TO_HEAD,
        "head_to_head",
        advantage=advantage,
        impact=impact,
        prob_adjustment=adj,
        insight=(
            f"Season series: {h2h.home_wins}-{h2h.away_wins}. "
            f"Avg margin: {_signed(h2h.avg_point_diff)}"
        ),
        data={"total_games": h2h.total_games, "home_win_pct": round(home_win_pct, 3)},
    )


# ---------------------------------------------------------------------------
# 2. Pace
# ---------------------------------------------------------------------------

def analyze_pace(
    home: TeamInfo,
    away: TeamInfo,
    home_stats: Optional[TeamStats],
    away_stats: Optional[TeamStats],
) -> FactorResult:
    home_pace = home_stats.pace if home_stats is not None else None
    away_pace = away_stats.pace if away_stats is not None else None
    if home_pace is None and away_pace is None:
        return neutral_factor(PACE, "No pace data for either team.")

    home_pace = home_pace or _DEFAULT_PACE
    away_pace = away_pace or _DEFAULT_PACE
    avg_pace = (home_pace + away_pace) / 2.0
    projected_total = round(avg_pace * 2.25)

    if projected_total > 230:
        lean = "over"
    elif projected_total < 220:
        lean = "under"
    else:
        lean = "neutral"

    if projected_total > 228:
        tail = "High-scoring matchup favors OVER."
    elif projected_total < 218:
        tail = "Lower scoring grind expected."
    else:
        tail = "Neutral pace expected."

    return _found(
        PACE,
        "team_stats",
        advantage=lean,
        impact=6 if abs(avg_pace - 100.0) > 3 else 3,
        insight=f"Projected pace: {avg_pace:.1f}. Total expected around {projected_total}. {tail}",
        totals_lean=lean,
        projected_total=projected_total,
        data={"home_pace": home_pace, "away_pace": away_pace},
    )


# ---------------------------------------------------------------------------
# 3. Against the spread
# ---------------------------------------------------------------------------

def analyze_ats(
    home: TeamInfo, away: TeamInfo, spread: Optional[float], ats: Optional[AtsData]
) -> FactorResult:
    if ats is None:
        return neutral_factor(ATS, "No ATS records available.")

    h, a = ats.home, ats.away
    spread = spread or 0.0
    advantage, impact, adj = "neutral", 0, 0.0

    if h.overall_pct > 55 and a.overall_pct < 45:
        advantage, impact, adj = "home", 6, 3.0
        insight = f"{home.abbr} covers {h.overall_pct}%. {away.abbr} only {a.overall_pct}%."
    elif a.overall_pct > 55 and h.overall_pct < 45:
        advantage, impact, adj = "away", 6, -3.0
        insight = f"{away.abbr} covers {a.overall_pct}%. {home.abbr} struggles at {h.overall_pct}%."
    else:
        insight = f"{home.abbr} ATS: {h.overall_pct}%. {away.abbr} ATS: {a.overall_pct}%."

    if spread < 0 and h.as_favorite_pct is not None and h.as_favorite_pct > 58:
        insight += f" Home covers {h.as_favorite_pct}% as favorite."
        if advantage != "home":
            advantage = "home"
            impact += 2
    if spread > 0 and a.as_underdog_pct is not None and a.as_underdog_pct > 58:
        insight += f" Away covers {a.as_underdog_pct}% as underdog."
        if advantage != "away":
            advantage = "away"
            impact += 2

    return _found(
        ATS, "ats_records", advantage=advantage, impact=impact, prob_adjustment=adj, insight=insight
    )


# ---------------------------------------------------------------------------
# 4. Line movement
# ---------------------------------------------------------------------------

def line_movement_from_odds(odds: Sequence[BookOdds]) -> Optional[LineMovement]:
    """Spread disagreement across books, or ``None`` with fewer than two spreads."""
    spreads = [b.home_spread for b in odds if b.home_spread is not None]
    if len(spreads) < 2:
        return None
    avg = sum(spreads) / len(spreads)
    return LineMovement(
        spread_current=round(avg * 2) / 2,
        spread_variance=round(max(spreads) - min(spreads), 1),
        book_count=len(spreads),
    )


def analyze_line_movement(
    line: Optional[LineMovement], odds: Sequence[BookOdds] = ()
) -> FactorResult:
    source = "line_movement"
    if line is None:
        line = line_movement_from_odds(odds)
        source = "odds_comparison"
    if line is None:
        return neutral_factor(LINE_MOVEMENT, "Single line source - no movement data available.")

    if line.spread_variance > 1.5:
        impact = 5
        insight = (
            f"Line discrepancy of {line.spread_variance} points across books. "
            "Possible sharp action. Books disagreeing - look for best line."
        )
    elif line.spread_variance > 1:
        impact = 3
        insight = f"Minor line variance ({line.spread_variance} pts). Some book disagreement."
    else:
        impact = 1
        insight = f"Consensus line at {line.spread_current}. Market is confident."
    if line.has_rlm:
        insight += " Reverse line movement detected."

    return _found(
        LINE_MOVEMENT,
        source,
        impact=impact,
        insight=insight,
        has_rlm=line.has_rlm,
        data={"spread_variance": line.spread_variance, "book_count": line.book_count},
    )


# ---------------------------------------------------------------------------
# 5. Public betting
# ---------------------------------------------------------------------------

def analyze_public_betting(
    home: TeamInfo, away: TeamInfo, public: Optional[PublicBetting]
) -> FactorResult:
    if public is None:
        return neutral_factor(PUBLIC_BETTING, "No public betting split available.")

    fade = public.fade_side
    if fade is None:
        return _found(
            PUBLIC_BETTING,
            "public_betting",
            insight=(
                f"Public split: {public.home_pct}% {home.abbr} / {public.away_pct}% {away.abbr}. "
                "No clear fade opportunity."
            ),
        )

    heavy_team, heavy_pct = (
        (home.abbr, public.home_pct) if fade == "away" else (away.abbr, public.away_pct)
    )
    return _found(
        PUBLIC_BETTING,
        "public_betting",
        advantage=fade,
        impact=5,
        prob_adjustment=2.0 if fade == "home" else -2.0,
        insight=f"FADE ALERT: {heavy_pct}% of bets on {heavy_team}. Consider the contrarian play.",
    )


# ---------------------------------------------------------------------------
# 6. Rest and schedule
# ---------------------------------------------------------------------------

def analyze_rest(
    home: TeamInfo, away: TeamInfo, rest: Optional[RestSchedule]
) -> FactorResult:
    if rest is None or (rest.home is None and rest.away is None):
        return neutral_factor(REST, "Schedule data pending. Assume standard rest.")

    h, a = rest.home, rest.away
    h_days = h.rest_days if h is not None and h.rest_days is not None else 2
    a_days = a.rest_days if a is not None and a.rest_days is not None else 2
    h_b2b = bool(h and h.back_to_back)
    a_b2b = bool(a and a.back_to_back)

    advantage, impact, adj = "neutral", 0, 0.0
    notes: List[str] = []

    if h_b2b:
        notes.append(f"{home.abbr} on BACK-TO-BACK")
        advantage = "away"
        impact += 7
        adj -= 4
    if a_b2b:
        notes.append(f"{away.abbr} on BACK-TO-BACK")
        advantage = "home" if advantage != "away" else "neutral"
        impact += 7
        adj += 4

    if h_days - a_days >= 2 and not h_b2b:
        notes.append(f"REST EDGE: {home.abbr} has {h_days} days rest vs {a_days}")
        if advantage == "neutral":
            advantage = "home"
        impact += 4
        adj += 2
    elif a_days - h_days >= 2 and not a_b2b:
        notes.append(f"REST EDGE: {away.abbr} has {a_days} days rest vs {h_days}")
        if advantage == "neutral":
            advantage = "away"
        impact += 4
        adj -= 2

    for team, info in ((home, h), (away, a)):
        if info is not None and info.games_last7 >= 4:
            notes.append(f"{team.abbr} played {info.games_last7} games in 7 days - fatigue")
            impact += 2

    return _found(
        REST,
        "schedule",
        advantage=advantage,
        impact=min(impact, 10),
        prob_adjustment=adj,
        insight=". ".join(notes) if notes else "Both teams on normal rest.",
        data={"home_rest_days": h_days, "away_rest_days": a_days},
    )


# ---------------------------------------------------------------------------
# 7. Referees
# ---------------------------------------------------------------------------

def analyze_referees(refs: Optional[RefereeData]) -> FactorResult:
    if refs is None:
        return neutral_factor(REFEREES, "Referee assignment not yet announced.")

    lean = "neutral"
    if refs.notable_refs:
        over = sum(1 for r in refs.notable_refs if r.ou_tendency > 2)
        under = sum(1 for r in refs.notable_refs if r.ou_tendency < -2)
        if over > under:
            lean = "over"
            insight = (
                f"Crew leans OVER ({_signed(refs.league_ou_tendency)} avg). "
                "Watch for high-scoring games."
            )
        elif under > over:
            lean = "under"
            insight = "Crew leans UNDER. Tight whistle expected."
        else:
            insight = "Crew tendencies offset. No totals lean."
    else:
        insight = "Ref data based on league averages."

    return _found(
        REFEREES,
        "referee_history",
        advantage=lean,
        impact=4 if abs(refs.league_ou_tendency) > 2 else 2,
        insight=insight,
        totals_lean=lean,
    )


# ---------------------------------------------------------------------------
# 8. Clutch
# ---------------------------------------------------------------------------

def analyze_clutch(home: TeamInfo, away: TeamInfo, clutch: Optional[ClutchData]) -> FactorResult:
    if clutch is None:
        return neutral_factor(CLUTCH, "No close-game results available.")

    h_pct = clutch.home.close_game_pct if clutch.home.close_game_pct is not None else 50.0
    a_pct = clutch.away.close_game_pct if clutch.away.close_game_pct is not None else 50.0
    h_rec = clutch.home.close_game_record
    a_rec = clutch.away.close_game_record

    if h_pct > 60 and a_pct < 50:
        advantage, impact, adj = "home", 6, 3.0
        insight = f"{home.abbr} ELITE in clutch ({h_rec}). {away.abbr} struggles ({a_rec})."
    elif a_pct > 60 and h_pct < 50:
        advantage, impact, adj = "away", 6, -3.0
        insight = f"{away.abbr} clutch masters ({a_rec}). {home.abbr} struggles late."
    elif h_pct > 55:
        advantage, impact, adj = "home", 3, 1.0
        insight = f"{home.abbr} solid in close games: {h_rec}. {away.abbr}: {a_rec}."
    elif a_pct > 55:
        advantage, impact, adj = "away", 3, -1.0
        insight = f"{away.abbr} good in close games: {a_rec}. {home.abbr}: {h_rec}."
    else:
        advantage, impact, adj = "neutral", 0, 0.0
        insight = f"Both teams average in clutch. {home.abbr}: {h_rec}. {away.abbr}: {a_rec}."

    return _found(
        CLUTCH, "close_games", advantage=advantage, impact=impact, prob_adjustment=adj,
        insight=insight,
    )


# ---------------------------------------------------------------------------
# 9. Quarter splits
# ---------------------------------------------------------------------------

def analyze_quarters(
    home: TeamInfo, away: TeamInfo, quarters: Optional[QuarterData]
) -> FactorResult:
    if quarters is None:
        return neutral_factor(QUARTERS, "No quarter-by-quarter splits available.")

    h, a = quarters.home, quarters.away
    notes: List[str] = []
    advantage = "neutral"
    if h.q1 > 2:
        notes.append(f"{home.abbr} starts fast (+{h.q1} Q1)")
    if a.q1 > 2:
        notes.append(f"{away.abbr} starts fast (+{a.q1} Q1)")
    if h.q4 > 2:
        notes.append(f"{home.abbr} finishes strong (+{h.q4} Q4)")
        advantage = "home"
    if a.q4 > 2:
        notes.append(f"{away.abbr} finishes strong (+{a.q4} Q4)")
        if advantage != "home":
            advantage = "away"

    return _found(
        QUARTERS,
        "quarter_splits",
        advantage=advantage,
        impact=4 if notes else 1,
        insight=". ".join(notes) + "." if notes else "No significant quarter trends.",
    )


# ---------------------------------------------------------------------------
# 10. Motivation
# ---------------------------------------------------------------------------

def analyze_motivation(
    home: TeamInfo, away: TeamInfo, situations: Optional[Situations]
) -> FactorResult:
    if situations is None:
        return neutral_factor(MOTIVATION, "No special situational factors detected.")

    def abbr(side: str) -> str:
        return home.abbr if side == "home" else away.abbr

    advantage, impact, adj = "neutral", 0, 0.0
    notes: List[str] = []

    revenge = situations.revenge_game
    if revenge is not None:
        notes.append(f"REVENGE GAME for {abbr(revenge.team)}: {revenge.reason}")
        advantage = revenge.team
        impact += 5
        adj += 2 if revenge.team == "home" else -2

    letdown = situations.letdown_spot
    if letdown is not None:
        notes.append(f"LETDOWN SPOT for {abbr(letdown.team)}: {letdown.reason}")
        advantage = "away" if letdown.team == "home" else "home"
        impact += 4
        adj += -2 if letdown.team == "home" else 2

    if situations.home_fighting_for_seed:
        notes.append(f"{home.abbr} fighting for playoff positioning")
        if advantage == "neutral":
            advantage = "home"
        impact += 3
    if situations.away_fighting_for_seed:
        notes.append(f"{away.abbr} fighting for playoff positioning")
        if advantage == "neutral":
            advantage = "away"
        impact += 3

    return _found(
        MOTIVATION,
        "situational",
        advantage=advantage,
        impact=min(impact, 8),
        prob_adjustment=adj,
        insight=". ".join(notes) if notes else "Standard game - no special situations.",
    )


# ---------------------------------------------------------------------------
# 11. Advanced analytics
# ---------------------------------------------------------------------------

def analyze_advanced_stats(
    home: TeamInfo,
    away: TeamInfo,
    home_stats: Optional[TeamStats],
    away_stats: Optional[TeamStats],
) -> FactorResult:
    h_net = home_stats.derived_net_rating() if home_stats is not None else None
    a_net = away_stats.derived_net_rating() if away_stats is not None else None
    if h_net is None and a_net is None:
        return neutral_factor(ADVANCED, "Advanced stats pending calculation.")

    h_net = h_net or 0.0
    a_net = a_net or 0.0
    diff = h_net - a_net

    if diff > 5:
        advantage, impact, adj = "home", min(10, round(diff)), min(6.0, diff * 0.5)
        insight = f"{home.abbr} has significant efficiency edge (+{diff:.1f} net rating diff)."
    elif diff < -5:
        advantage, impact, adj = "away", min(10, round(abs(diff))), max(-6.0, diff * 0.5)
        insight = f"{away.abbr} has efficiency edge (+{abs(diff):.1f} net rating diff)."
    elif diff > 2:
        advantage, impact, adj = "home", 4, 2.0
        insight = f"{home.abbr} slight efficiency edge (+{diff:.1f})."
    elif diff < -2:
        advantage, impact, adj = "away", 4, -2.0
        insight = f"{away.abbr} slight efficiency edge (+{abs(diff):.1f})."
    else:
        advantage, impact, adj = "neutral", 0, 0.0
        insight = f"Teams evenly matched in efficiency metrics (diff: {diff:.1f})."

    return _found(
        ADVANCED,
        "team_stats",
        advantage=advantage,
        impact=impact,
        prob_adjustment=adj,
        insight=insight,
        data={"home_net_rating": h_net, "away_net_rating": a_net, "differential": round(diff, 1)},
    )


# ---------------------------------------------------------------------------
# 12. News and sentiment
# ---------------------------------------------------------------------------

def _team_news(team: TeamInfo, news: Sequence[NewsArticle]) -> List[NewsArticle]:
    nickname = team.name.split()[-1].lower()
    return [
        n for n in news
        if team.abbr in n.mentioned_teams or mentions(n.headline.lower(), nickname)
    ]


def analyze_news(
    home: TeamInfo, away: TeamInfo, news: Sequence[NewsArticle]
) -> FactorResult:
    if not news:
        return neutral_factor(NEWS, "No news supplied for either team.")

    home_news = _team_news(home, news)
    away_news = _team_news(away, news)
    home_high = [n for n in home_news if n.is_high_impact or n.impact_score > 50]
    away_high = [n for n in away_news if n.is_high_impact or n.impact_score > 50]

    advantage, impact, adj = "neutral", 0, 0.0
    notes: List[str] = []

    if home_high:
        neg = [n for n in home_high if n.sentiment == "negative"]
        pos = [n for n in home_high if n.sentiment == "positive"]
        if len(neg) > len(pos):
            notes.append(f'{home.abbr} negative news: "{neg[0].headline[:50]}..."')
            advantage = "away"
            impact += 4
            adj -= 2
        elif len(pos) > len(neg):
            notes.append(f'{home.abbr} positive news: "{pos[0].headline[:50]}..."')
            advantage = "home"
            impact += 3
            adj += 1

    if away_high:
        neg = [n for n in away_high if n.sentiment == "negative"]
        pos = [n for n in away_high if n.sentiment == "positive"]
        if len(neg) > len(pos):
            notes.append(f'{away.abbr} negative news: "{neg[0].headline[:50]}..."')
            if advantage != "away":
                advantage = "home"
            impact += 4
            adj += 2
        elif len(pos) > len(neg):
            notes.append(f'{away.abbr} positive news: "{pos[0].headline[:50]}..."')
            if advantage != "home":
                advantage = "away"
            impact += 3
            adj -= 1

    return _found(
        NEWS,
        "news",
        advantage=advantage,
        impact=min(impact, 6),
        prob_adjustment=adj,
        insight=" ".join(notes) if notes else "No significant news affecting either team.",
        data={
            "home_news": len(home_news),
            "away_news": len(away_news),
            "home_high_impact": len(home_high),
            "away_high_impact": len(away_high),
        },
    )


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------

@dataclass
class FactorBankSummary:
    total_factors: int          # factors that had data
    total_possible: int
    home_advantages: int
    away_advantages: int
    over_advantages: int
    under_advantages: int
    neutral_factors: int
    overall_advantage: str
    totals_lean: str
    total_prob_adjustment: float
    key_insights: List[FactorResult]


@dataclass
class FactorBankResult:
    factors: List[FactorResult]
    summary: FactorBankSummary

    def find(self, name: str) -> Optional[FactorResult]:
        for f in self.factors:
            if f.factor == name:
                return f
        return None


@dataclass(frozen=True)
class TotalsAnalysis:
    lean: str
    confidence: str
    projected_total: Optional[int]
    pace_insight: str
    ref_insight: str


def summarize_factors(
    factors: List[FactorResult],
    key_insight_impact: int = 5,
    advantage_margin: int = 2,
) -> FactorBankSummary:
    counts = {"home": 0, "away": 0, "over": 0, "under": 0}
    for f in factors:
        if f.advantage in counts:
            counts[f.advantage] += 1

    home_n, away_n = counts["home"], counts["away"]
    if home_n > away_n + advantage_margin:
        overall = "home"
    elif away_n > home_n + advantage_margin:
        overall = "away"
    else:
        overall = "neutral"

    over_n, under_n = counts["over"], counts["under"]
    if over_n > under_n + 1:
        totals = "OVER"
    elif under_n > over_n + 1:
        totals = "UNDER"
    else:
        totals = "NO EDGE"

    return FactorBankSummary(
        total_factors=sum(1 for f in factors if f.available),
        total_possible=len(factors),
        home_advantages=home_n,
        away_advantages=away_n,
        over_advantages=over_n,
        under_advantages=under_n,
        neutral_factors=len(factors) - sum(counts.values()),
        overall_advantage=overall,
        totals_lean=totals,
        total_prob_adjustment=round(sum(f.prob_adjustment for f in factors), 1),
        key_insights=[f for f in factors if f.impact > key_insight_impact],
    )


def _safe(name: str, fn: Callable[..., FactorResult], *args) -> FactorResult:
    try:
        return fn(*args)
    except Exception as exc:
        logger.warning("Factor %s failed, using neutral result: %s", name, exc, exc_info=True)
        return neutral_factor(name, f"{name} unavailable: {exc}")


def analyze_all_factors(
    game: GameRecord,
    bundle: Optional[FactorDataBundle] = None,
    news: Sequence[NewsArticle] = (),
    key_insight_impact: int = 5,
    advantage_margin: int = 2,
) -> FactorBankResult:
    """Evaluate all twelve factors for ``game`` and aggregate them."""
    bundle = bundle or FactorDataBundle()
    home, away = game.home, game.away
    spread = next((b.home_spread for b in game.odds if b.home_spread is not None), None)

    factors = [
        _safe(HEAD_TO_HEAD, analyze_head_to_head, home, away, bundle.resolve("head_to_head")),
        _safe(PACE, analyze_pace, home, away, game.home_stats, game.away_stats),
        _safe(ATS, analyze_ats, home, away, spread, bundle.resolve("ats")),
        _safe(LINE_MOVEMENT, analyze_line_movement, bundle.resolve("line_movement"), game.odds),
        _safe(PUBLIC_BETTING, analyze_public_betting, home, away, bundle.resolve("public_betting")),
        _safe(REST, analyze_rest, home, away, bundle.resolve("rest")),
        _safe(REFEREES, analyze_referees, bundle.resolve("referees")),
        _safe(CLUTCH, analyze_clutch, home, away, bundle.resolve("clutch")),
        _safe(QUARTERS, analyze_quarters, home, away, bundle.resolve("quarters")),
        _safe(MOTIVATION, analyze_motivation, home, away, bundle.resolve("situations")),
        _safe(ADVANCED, analyze_advanced_stats, home, away, game.home_stats, game.away_stats),
        _safe(NEWS, analyze_news, home, away, news),
    ]
    summary = summarize_factors(factors, key_insight_impact, advantage_margin)
    logger.debug(
        "%s factor bank: %d/%d with data, adj %+.1f, overall %s",
        game.matchup_label, summary.total_factors, summary.total_possible,
        summary.total_prob_adjustment, summary.overall_advantage,
    )
    return FactorBankResult(factors=factors, summary=summary)


def totals_recommendation(bank: FactorBankResult) -> TotalsAnalysis:
    """Over/under lean from pace (weight 2) and referee (weight 1) factors."""
    pace = bank.find(PACE)
    refs = bank.find(REFEREES)
    over = under = 0
    if pace is not None and pace.totals_lean == "over":
        over += 2
    if pace is not None and pace.totals_lean == "under":
        under += 2
    if refs is not None and refs.totals_lean == "over":
        over += 1
    if refs is not None and refs.totals_lean == "under":
        under += 1

    if over > under:
        lean = "OVER"
    elif under > over:
        lean = "UNDER"
    else:
        lean = "NO LEAN"
    return TotalsAnalysis(
        lean=lean,
        confidence="high" if abs(over - under) > 1 else "medium",
        projected_total=pace.projected_total if pace is not None else None,
        pace_insight=pace.insight if pace is not None else "",
        ref_insight=refs.insight if refs is not None else "",
    )
