"""
Confidence Scorer.

    confidence = 50
               + data_quality × 15          (0–1)
               + factor_alignment × 15      (0–1)
               + edge bonus                 (+10 >15%, +8 >10%, +5 >5%)
               + factor agreement × 15      (|home - away| / factors with data)
               + 5 if reverse line movement
               - 35 if no factor had data, - 15 if fewer than five did

clamped to ``[confidence_floor, confidence_ceiling]`` (10–95) and rounded.
"""

from typing import Mapping, Optional, Sequence

from edge_engine.core.engine_config import EngineConfig
from edge_engine.schemas import GameRecord, Injury
from edge_engine.services.base_factors import BaseFactors
from edge_engine.services.factors import FactorBankSummary


def assess_data_quality(
    game: GameRecord, injury_report: Optional[Mapping[str, Sequence[Injury]]] = None
) -> float:
    """0.25 each for: home record, away record, more than three books, an injury report."""
    quality = 0.0
    if game.home.record:
        quality += 0.25
    if game.away.record:
        quality += 0.25
    if len(game.odds) > 3:
        quality += 0.25
    if injury_report:
        quality += 0.25
    return quality


def assess_factor_alignment(base: BaseFactors) -> float:
    """Agreement between team strength, matchup wins and recent form."""
    ts = base.team_strength.advantage
    mu = base.matchups.winner_by_count
    fm = base.form.advantage

    alignment = 0.0
    if ts == mu and ts != "neutral":
        alignment += 0.4
    if ts == fm and ts != "neutral":
        alignment += 0.3
    if mu == fm and mu != "neutral":
        alignment += 0.3
    return alignment


def score_confidence(
    data_quality: float,
    factor_alignment: float,
    edge_size: float,
    summary: FactorBankSummary,
    has_rlm: bool = False,
    config: Optional[EngineConfig] = None,
) -> int:
    cfg = config or EngineConfig.default()
    confidence = 50.0
    confidence += data_quality * 15
    confidence += factor_alignment * 15

    edge_size = abs(edge_size)
    if edge_size > 15:
        confidence += 10
    elif edge_size > 10:
        confidence += 8
    elif edge_size > 5:
        confidence += 5

    if summary.total_factors > 0:
        agreement = abs(summary.home_advantages - summary.away_advantages) / summary.total_factors
        confidence += min(agreement, 1.0) * 15

    if has_rlm:
        confidence += 5

    if summary.total_factors == 0:
        confidence -= 35
    elif summary.total_factors < 5:
        confidence -= 15

    return int(max(cfg.confidence_floor, min(cfg.confidence_ceiling, round(confidence))))
