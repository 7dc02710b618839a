"""
Deep analysis orchestration.

Workflow per game:
    1. Base heuristics (team strength, matchups, injuries, form, situation)
    2. Factor Bank: twelve independent signals and their aggregate
       probability adjustment
    3. Score Simulator: home-win fraction and projected scores
    4. Probability Blender: damped base + factor adjustment, blended with
       the simulation
    5. Market snapshot and per-side edge
    6. Recommendation, confidence, bet size, risks, key insights and the
       totals lean
    7. Optional Elo cross-reference when a rating table is injected

Every collaborator is injected: the calibration (:class:`EngineConfig`),
the score engine (any :class:`BaseScoreEngine`) and the Elo table.  The
analyzer performs no I/O.

Batch runs
----------
:meth:`DeepAnalyzer.analyze_batch` isolates each game: an exception is
logged with its traceback and replaced by a stub :class:`AnalysisResult`
(action ``PASS``, ``error`` set) so one bad game never aborts the slate.
With a ``seed`` the whole batch draws from one seeded generator and is
reproducible.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

import numpy as np

from edge_engine.core.engine_config import EngineConfig
from edge_engine.core.sim_interface import BaseScoreEngine, ScoreSimResult, SimTeamParams
from edge_engine.schemas import FactorDataBundle, GameRecord, Injury, NewsArticle, TeamStats
from edge_engine.services.base_factors import BaseFactors, base_probability, compute_base_factors
from edge_engine.services.blender import BlendResult, ProbabilityBlender
from edge_engine.services.confidence import (
    assess_data_quality,
    assess_factor_alignment,
    score_confidence,
)
from edge_engine.services.elo import MatchupPrediction, TeamNotFound, TeamRatingTable
from edge_engine.services.factors import (
    LINE_MOVEMENT,
    FactorBankSummary,
    FactorResult,
    TotalsAnalysis,
    analyze_all_factors,
    totals_recommendation,
)
from edge_engine.services.market import MarketSnapshot, SideEdges, compute_edges, market_snapshot
from edge_engine.services.recommendation import (
    PASS,
    BetSize,
    Insight,
    Reasoning,
    Recommendation,
    Risk,
    build_recommendation,
    identify_risks,
    key_insights,
    suggest_bet_size,
)
from edge_engine.services.score_sim import MonteCarloScoreSimulator

logger = logging.getLogger(__name__)

InjuryReport = Mapping[str, Sequence[Injury]]


@dataclass
class AnalysisResult:
    game_id: str
    matchup: str
    engine_version: str

    home_probability: float = 0.5
    away_probability: float = 0.5
    market: MarketSnapshot = field(default_factory=MarketSnapshot)
    edges: SideEdges = field(default_factory=lambda: SideEdges(None, None))
    confidence: int = 0
    recommendation: Optional[Recommendation] = None
    bet_size: BetSize = field(default_factory=lambda: BetSize(0.0, "No bet recommended"))

    blend: Optional[BlendResult] = None
    base: Optional[BaseFactors] = None
    factors: List[FactorResult] = field(default_factory=list)
    factor_summary: Optional[FactorBankSummary] = None
    simulation: Optional[ScoreSimResult] = None

    risks: List[Risk] = field(default_factory=list)
    key_insights: List[Insight] = field(default_factory=list)
    totals: Optional[TotalsAnalysis] = None
    elo: Optional[Union[MatchupPrediction, TeamNotFound]] = None

    error: Optional[str] = None

    @property
    def action(self) -> str:
        return self.recommendation.action if self.recommendation else PASS

    @classmethod
    def stub(cls, game: GameRecord, reason: str, config: EngineConfig) -> "AnalysisResult":
        """Minimal PASS result for a game whose analysis failed."""
        return cls(
            game_id=game.id,
            matchup=game.matchup_label,
            engine_version=config.version,
            confidence=config.confidence_floor,
            recommendation=Recommendation(
                action=PASS, side=None, odds=None, book=None, edge=0.0, model_prob=50.0,
                reasoning=Reasoning(summary=f"Analysis failed: {reason}"),
            ),
            error=reason,
        )

    def to_dict(self) -> Dict[str, Any]:
        rec = self.recommendation
        return {
            "game_id": self.game_id,
            "matchup": self.matchup,
            "engine_version": self.engine_version,
            "model_home_prob": round(self.home_probability * 100, 1),
            "model_away_prob": round(self.away_probability * 100, 1),
            "market_home_prob": _pct(self.market.home_implied),
            "market_away_prob": _pct(self.market.away_implied),
            "home_edge": _round1(self.edges.home),
            "away_edge": _round1(self.edges.away),
            "confidence": self.confidence,
            "action": self.action,
            "side": rec.side if rec else None,
            "odds": rec.odds if rec else None,
            "book": rec.book if rec else None,
            "units": self.bet_size.units,
            "reasoning": rec.reasoning.summary if rec else "",
            "factors": [f.to_dict() for f in self.factors],
            "risks": [r.description for r in self.risks],
            "error": self.error,
        }


def _pct(p: Optional[float]) -> Optional[float]:
    return round(p * 100, 1) if p is not None else None


def _round1(x: Optional[float]) -> Optional[float]:
    return round(x, 1) if x is not None else None


def sim_params(stats: Optional[TeamStats]) -> SimTeamParams:
    if stats is None:
        return SimTeamParams()
    return SimTeamParams(
        offensive_rating=stats.offensive_rating,
        defensive_rating=stats.defensive_rating,
        pace=stats.pace,
    )


@dataclass
class AnalysisRequest:
    """One game plus its optional side inputs, for batch runs."""

    game: GameRecord
    injuries: Optional[InjuryReport] = None
    news: Sequence[NewsArticle] = ()
    bundle: Optional[FactorDataBundle] = None


class DeepAnalyzer:
    """Runs the full prediction pipeline for one game at a time."""

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        simulator: Optional[BaseScoreEngine] = None,
        rating_table: Optional[TeamRatingTable] = None,
    ):
        self.config = config or EngineConfig.default()
        if simulator is not None and not isinstance(simulator, BaseScoreEngine):
            raise TypeError(f"simulator must be a BaseScoreEngine, got {type(simulator).__name__}")
        self.simulator = simulator or MonteCarloScoreSimulator(self.config)
        self.rating_table = rating_table
        self.blender = ProbabilityBlender(self.config)

    def analyze(
        self,
        game: GameRecord,
        injuries: Optional[InjuryReport] = None,
        news: Sequence[NewsArticle] = (),
        bundle: Optional[FactorDataBundle] = None,
        rng: Optional[np.random.Generator] = None,
        iterations: Optional[int] = None,
    ) -> AnalysisResult:
        cfg = self.config
        injuries = injuries or {}

        base = compute_base_factors(game, injuries, cfg.home_court_points)
        bank = analyze_all_factors(
            game, bundle, news, cfg.key_insight_impact, cfg.overall_advantage_margin
        )
        sim = self.simulator.simulate(
            sim_params(game.home_stats),
            sim_params(game.away_stats),
            iterations=iterations,
            rng=rng,
            neutral_site=game.neutral_site,
        )

        blend = self.blender.blend(
            base_probability(base, cfg.base_weights),
            bank.summary.total_prob_adjustment,
            sim.home_win_fraction,
        )
        market = market_snapshot(game.odds)
        edges = compute_edges(blend.home_probability, market)
        rec = build_recommendation(edges, blend.home_probability, market, base, bank, cfg)

        line = bank.find(LINE_MOVEMENT)
        confidence = score_confidence(
            assess_data_quality(game, injuries),
            assess_factor_alignment(base),
            rec.edge,
            bank.summary,
            has_rlm=bool(line and line.has_rlm),
            config=cfg,
        )

        result = AnalysisResult(
            game_id=game.id,
            matchup=game.matchup_label,
            engine_version=cfg.version,
            home_probability=blend.home_probability,
            away_probability=blend.away_probability,
            market=market,
            edges=edges,
            confidence=confidence,
            recommendation=rec,
            bet_size=suggest_bet_size(max(rec.edge, 0.0), confidence, cfg),
            blend=blend,
            base=base,
            factors=bank.factors,
            factor_summary=bank.summary,
            simulation=sim,
            risks=identify_risks(game, injuries, base),
            key_insights=key_insights(base, rec.edge, bank),
            totals=totals_recommendation(bank),
        )
        if self.rating_table is not None:
            result.elo = self.rating_table.predict_matchup(
                game.home.abbr, game.away.abbr, game.neutral_site
            )

        logger.debug(
            "%s: p_home=%.3f edge=%+.1f conf=%d -> %s",
            game.matchup_label, result.home_probability, rec.edge, confidence, rec.action,
        )
        return result

    def analyze_batch(
        self,
        requests: Iterable[AnalysisRequest],
        seed: Optional[int] = None,
    ) -> List[AnalysisResult]:
        requests = list(requests)
        rng = np.random.default_rng(seed if seed is not None else self.config.sim_seed)
        logger.info("Analysing %d games...", len(requests))

        results: List[AnalysisResult] = []
        errors = 0
        for req in requests:
            try:
                results.append(
                    self.analyze(req.game, req.injuries, req.news, req.bundle, rng=rng)
                )
            except Exception as exc:
                logger.error(
                    "Error analysing %s: %s", req.game.matchup_label, exc, exc_info=True
                )
                results.append(AnalysisResult.stub(req.game, str(exc), self.config))
                errors += 1

        logger.info(
            "Analysis complete: %d games, %d bets, %d errors",
            len(results), sum(1 for r in results if r.action != PASS), errors,
        )
        return results
