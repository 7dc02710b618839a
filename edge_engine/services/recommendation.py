"""
Recommendation Engine.

Turns a side's edge and the analysis confidence into an action, a bet
size and a ranked, human-readable justification.

Action ladder (edge magnitude, percent)::

    |edge| >= 10   STRONG BET
    |edge| >= 5    LEAN
    otherwise      PASS

Bet sizing follows ``EngineConfig.unit_tiers`` and is forced to zero
whenever confidence is below ``EngineConfig.min_confidence_to_bet``.

Run tests with::

    pytest tests/test_recommendation.py -v
"""

import logging
from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Sequence

from edge_engine.core.engine_config import EngineConfig
from edge_engine.schemas import GameRecord, Injury
from edge_engine.services.base_factors import BaseFactors
from edge_engine.services.factors import FactorBankResult
from edge_engine.services.market import MarketSnapshot, SideEdges

logger = logging.getLogger(__name__)

STRONG_BET = "STRONG BET"
LEAN = "LEAN"
PASS = "PASS"

_UNIT_DESCRIPTIONS = {
    0.5: "0.5 units - small value",
    1.0: "1 unit - standard bet",
    2.0: "2 units - strong value",
    3.0: "3 units - max bet (rare edge)",
}


# ---------------------------------------------------------------------------
# Action and sizing
# ---------------------------------------------------------------------------

def classify_edge(edge: float, config: Optional[EngineConfig] = None) -> str:
    cfg = config or EngineConfig.default()
    magnitude = abs(edge)
    if magnitude >= cfg.strong_bet_edge:
        return STRONG_BET
    if magnitude >= cfg.lean_edge:
        return LEAN
    return PASS


@dataclass(frozen=True)
class BetSize:
    units: float
    description: str


def suggest_bet_size(
    edge: float, confidence: int, config: Optional[EngineConfig] = None
) -> BetSize:
    cfg = config or EngineConfig.default()
    if confidence < cfg.min_confidence_to_bet:
        return BetSize(0.0, "Insufficient data for bet")

    magnitude = abs(edge)
    units = cfg.max_units
    for bound, tier_units in cfg.unit_tiers:
        if magnitude < bound:
            units = tier_units
            break
    if units == 0:
        return BetSize(0.0, "No bet recommended")
    return BetSize(units, _UNIT_DESCRIPTIONS.get(units, f"{units:g} units"))


# ---------------------------------------------------------------------------
# Reasoning
# ---------------------------------------------------------------------------

@dataclass
class Reason:
    factor: str
    importance: float
    title: str
    description: str


@dataclass
class Reasoning:
    summary: str
    key_factors: List[Reason] = field(default_factory=list)


def rank_reasons(side: str, base: BaseFactors, bank: FactorBankResult) -> List[Reason]:
    """Contributors favouring ``side``, most important first."""
    reasons: List[Reason] = []
    label = "Home" if side == "home" else "Away"

    ts = base.team_strength
    if ts.advantage == side:
        reasons.append(
            Reason(
                factor="Team Strength",
                importance=abs(ts.differential),
                title="Statistical Dominance",
                description=f"{label} team has significantly better season efficiency metrics.",
            )
        )

    form = base.form.home if side == "home" else base.form.away
    if base.form.advantage == side and form.trend == "hot":
        reasons.append(
            Reason(
                factor="Recent Form",
                importance=80,
                title="Hot Streak",
                description=(
                    f"Riding a {form.streak or form.record} streak and outscoring "
                    f"opponents by {form.point_diff} over last 5."
                ),
            )
        )

    mu = base.matchups
    if mu.overall_advantage == side:
        positions = [p.position for p in mu.dominant if p.winner == side] or [
            p.position for p in mu.positions if p.winner == side
        ]
        reasons.append(
            Reason(
                factor="Matchups",
                importance=75,
                title="Positional Mismatches",
                description=f"Key advantages at {', '.join(positions)} positions.",
            )
        )

    same_side = sorted(
        (f for f in bank.factors if f.advantage == side),
        key=lambda f: f.impact,
        reverse=True,
    )
    for f in same_side[:3]:
        reasons.append(
            Reason(factor=f.factor, importance=f.impact * 10, title=f.factor, description=f.insight)
        )

    reasons.sort(key=lambda r: r.importance, reverse=True)
    return reasons


def narrative(side: str, reasons: Sequence[Reason]) -> str:
    text = f"We recommend backing the {side.upper()} team based on "
    if not reasons:
        return text + "the gap between model and market probability."
    top = reasons[0]
    text += f"{top.title.lower()} ({top.description}). "
    if len(reasons) > 1:
        text += f"Additionally, {reasons[1].description.lower()} "
    if len(reasons) > 2:
        text += f"Finally, {reasons[2].description.lower()}"
    return text.strip()


def generate_reasoning(side: str, base: BaseFactors, bank: FactorBankResult) -> Reasoning:
    reasons = rank_reasons(side, base, bank)
    return Reasoning(summary=narrative(side, reasons), key_factors=reasons)


@dataclass
class Recommendation:
    action: str
    side: Optional[str]
    odds: Optional[float]
    book: Optional[str]
    edge: float
    model_prob: float
    reasoning: Reasoning


def build_recommendation(
    edges: SideEdges,
    home_prob: float,
    market: MarketSnapshot,
    base: BaseFactors,
    bank: FactorBankResult,
    config: Optional[EngineConfig] = None,
) -> Recommendation:
    """Recommend the side with the larger edge; a non-positive edge is a PASS."""
    side = edges.best_side()
    if side is None:
        return Recommendation(
            action=PASS, side=None, odds=None, book=None, edge=0.0,
            model_prob=round(home_prob * 100, 1),
            reasoning=Reasoning(summary="No market prices available."),
        )

    edge = edges.home if side == "home" else edges.away
    actionable = max(edge, 0.0)
    return Recommendation(
        action=classify_edge(actionable, config),
        side=side,
        odds=market.best_home_ml if side == "home" else market.best_away_ml,
        book=market.best_home_book if side == "home" else market.best_away_book,
        edge=round(edge, 1),
        model_prob=round((home_prob if side == "home" else 1.0 - home_prob) * 100, 1),
        reasoning=generate_reasoning(side, base, bank),
    )


# ---------------------------------------------------------------------------
# Risks and insights
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Risk:
    type: str
    severity: str
    description: str


def identify_risks(
    game: GameRecord,
    injury_report: Mapping[str, Sequence[Injury]],
    base: BaseFactors,
) -> List[Risk]:
    risks: List[Risk] = []
    for team in (game.home, game.away):
        if any(i.status.lower() == "out" for i in injury_report.get(team.abbr, ())):
            risks.append(Risk("injury", "high", f"{team.name} has key players out"))

    form = base.form
    if form.home.trend == "cold":
        risks.append(
            Risk("form", "medium", f"{game.home.name} is in poor form (L5: {form.home.record})")
        )
    if form.away.trend == "hot":
        risks.append(Risk("form", "medium", f"{game.away.name} is hot (L5: {form.away.record})"))

    if base.matchups.home_wins == base.matchups.away_wins:
        risks.append(
            Risk("matchup", "low", "Starters are evenly matched - game could go either way")
        )
    return risks


@dataclass(frozen=True)
class Insight:
    category: str
    insight: str


def key_insights(base: BaseFactors, edge: float, bank: FactorBankResult) -> List[Insight]:
    insights: List[Insight] = []

    diff = base.team_strength.differential
    if abs(diff) > 20:
        insights.append(
            Insight(
                "Team Strength",
                f"{'Home' if diff > 0 else 'Away'} team has {abs(diff)}% better win rate this season",
            )
        )

    dominant = base.matchups.dominant
    if dominant:
        top = dominant[0]
        insights.append(
            Insight("Key Matchup", f"{top.winner.capitalize()} dominates at {top.position}")
        )

    inj_diff = base.injuries.differential
    if inj_diff != 0:
        healthier = "Home" if inj_diff > 0 else "Away"
        insights.append(Insight("Health", f"{healthier} team is significantly healthier"))

    if base.form.home.trend == "hot":
        insights.append(Insight("Form", f"Home team is HOT - {base.form.home.streak}"))
    if base.form.away.trend == "cold":
        insights.append(Insight("Form", f"Away team is COLD - {base.form.away.streak}"))

    if abs(edge) > 10:
        insights.append(
            Insight("Value", f"{abs(edge):.1f}% edge is MASSIVE - market significantly off")
        )

    insights.extend(Insight(f.factor, f.insight) for f in bank.summary.key_insights)
    return insights
