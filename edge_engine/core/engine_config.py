"""Engine-level calibration constants, all in one place.

This module is the **registry** for every tunable number the prediction
engine uses.  Nowhere else in the codebase should the damping factor, the
factor/simulation blend weight, the Elo K-factor, or the recommendation
thresholds be hard-coded.

Architecture
------------
:class:`EngineConfig` is a frozen dataclass carrying every constant plus a
``version`` string so stored analyses can be traced back to the
calibration that produced them.  Named constructors return pre-populated
instances:

* :meth:`EngineConfig.default`: the documented baseline calibration.
* :meth:`EngineConfig.from_env`: the baseline with environment overrides
  (``.env`` files are honoured through ``python-dotenv``).

Typical usage::

    from edge_engine.core.engine_config import EngineConfig

    cfg = EngineConfig.default()
    analyzer = DeepAnalyzer(config=cfg)

    # Override a single constant for an A/B calibration run:
    from dataclasses import replace
    tighter = replace(cfg, damping_factor=0.75)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import Final, Optional

from dotenv import load_dotenv

#: Calibration identifier stamped on every :class:`EngineConfig`.
ENGINE_VERSION: Final[str] = "edgefinder-3.0"


@dataclass(frozen=True)
class BaseWeights:
    """Weights of the five base heuristics in the pre-damping probability.

    They intentionally sum to 0.50: the remaining mass is filled by the
    0.5 base rate, so a slate of perfectly neutral heuristics yields 0.5.

    Attributes:
        team_strength: Season win-percentage differential.
        matchups: Positional (guards/wings/bigs) stylistic matchup score.
        injuries: Injury-impact differential.
        form: Last-five-games win differential.
        situational: Home-court value.
    """

    team_strength: float = 0.12
    matchups: float = 0.15
    injuries: float = 0.08
    form: float = 0.08
    situational: float = 0.07

    @property
    def total(self) -> float:
        return (
            self.team_strength
            + self.matchups
            + self.injuries
            + self.form
            + self.situational
        )


@dataclass(frozen=True)
class EngineConfig:
    """Immutable calibration bundle for the whole prediction engine.

    Override via :func:`dataclasses.replace` for single-run tweaks.

    Attributes:
        version: Calibration identifier, recorded with each analysis.

        --- Team Rating Table (Elo) ---
        elo_base_rating: Rating assigned to a team on first reference.
        elo_k_factor: Maximum rating movement from one game.
        elo_home_advantage: Rating points added to the home side before
            computing the expected result.
        elo_trend_window: Number of trailing history entries spanned by
            the rankings trend.

        --- Score Simulator ---
        sim_iterations: Default Monte Carlo iteration count.
        sim_score_sd: Per-side score noise in points (~12 for this sport).
        sim_home_bonus_pts: Points added to the home projection.
        league_avg_rating: Offensive/defensive rating used when a team's
            efficiency input is missing.
        league_avg_pace: Pace used when pace input is missing.
        sim_seed: Default seed; ``None`` draws fresh OS entropy.

        --- Probability Blender ---
        damping_factor: ``adjusted = 0.5 + (base - 0.5) × damping``.
        factor_blend_weight: Weight of the factor pipeline in the final
            blend; the simulator receives ``1 - factor_blend_weight``.
        prob_floor / prob_ceiling: Safe interval for every probability.
        base_weights: See :class:`BaseWeights`.
        home_court_points: Situational home-court value in points.

        --- Factor Bank ---
        key_insight_impact: Factors with impact above this are surfaced
            as key insights.
        overall_advantage_margin: Advantage-count margin required before
            the Factor Bank declares an overall side.

        --- Recommendation ---
        strong_bet_edge: ``|edge| ≥`` this → ``STRONG BET``.
        lean_edge: ``|edge| ≥`` this → ``LEAN``.
        value_bet_min_edge: Threshold used by the Elo value-bet scanner.
            Deliberately separate from ``lean_edge``.
        min_confidence_to_bet: Confidence below this forces zero units.
        unit_tiers: ``(upper_edge_bound, units)`` pairs in ascending order;
            edges at or above the last bound receive ``max_units``.
        max_units: Units for the largest edges.

        --- Confidence Scorer ---
        confidence_floor / confidence_ceiling: Output clamp.
    """

    version: str = ENGINE_VERSION

    # Elo
    elo_base_rating: float = 1500.0
    elo_k_factor: float = 20.0
    elo_home_advantage: float = 100.0
    elo_trend_window: int = 6

    # Score simulator
    sim_iterations: int = 1000
    sim_score_sd: float = 12.0
    sim_home_bonus_pts: float = 3.0
    league_avg_rating: float = 115.0
    league_avg_pace: float = 99.0
    sim_seed: Optional[int] = None

    # Blender
    damping_factor: float = 0.85
    factor_blend_weight: float = 0.75
    prob_floor: float = 0.05
    prob_ceiling: float = 0.95
    base_weights: BaseWeights = field(default_factory=BaseWeights)
    home_court_points: float = 3.0

    # Factor bank
    key_insight_impact: int = 5
    overall_advantage_margin: int = 2

    # Recommendation
    strong_bet_edge: float = 10.0
    lean_edge: float = 5.0
    value_bet_min_edge: float = 3.0
    min_confidence_to_bet: int = 50
    unit_tiers: tuple[tuple[float, float], ...] = (
        (3.0, 0.0),
        (5.0, 0.5),
        (8.0, 1.0),
        (12.0, 2.0),
    )
    max_units: float = 3.0

    # Confidence
    confidence_floor: int = 10
    confidence_ceiling: int = 95

    # ------------------------------------------------------------------ #
    #  Named constructors                                                  #
    # ------------------------------------------------------------------ #

    @classmethod
    def default(cls) -> EngineConfig:
        """Return the documented baseline calibration."""
        return cls()

    @classmethod
    def from_env(cls) -> EngineConfig:
        """Return the baseline calibration with environment overrides.

        Recognised variables (all optional)::

            EDGE_DAMPING_FACTOR, EDGE_FACTOR_BLEND_WEIGHT,
            EDGE_SIM_ITERATIONS, EDGE_SIM_SEED,
            ELO_K_FACTOR, ELO_HOME_ADVANTAGE, VALUE_BET_MIN_EDGE
        """
        load_dotenv()
        base = cls()
        seed = os.getenv("EDGE_SIM_SEED")
        return replace(
            base,
            damping_factor=float(os.getenv("EDGE_DAMPING_FACTOR", str(base.damping_factor))),
            factor_blend_weight=float(
                os.getenv("EDGE_FACTOR_BLEND_WEIGHT", str(base.factor_blend_weight))
            ),
            sim_iterations=int(os.getenv("EDGE_SIM_ITERATIONS", str(base.sim_iterations))),
            sim_seed=int(seed) if seed else base.sim_seed,
            elo_k_factor=float(os.getenv("ELO_K_FACTOR", str(base.elo_k_factor))),
            elo_home_advantage=float(
                os.getenv("ELO_HOME_ADVANTAGE", str(base.elo_home_advantage))
            ),
            value_bet_min_edge=float(
                os.getenv("VALUE_BET_MIN_EDGE", str(base.value_bet_min_edge))
            ),
        )

    # ------------------------------------------------------------------ #
    #  Convenience accessors                                               #
    # ------------------------------------------------------------------ #

    @property
    def sim_blend_weight(self) -> float:
        """Weight of the simulator's home-win fraction in the final blend."""
        return 1.0 - self.factor_blend_weight

    def clamp_probability(self, p: float) -> float:
        """Clamp ``p`` into ``[prob_floor, prob_ceiling]``."""
        return max(self.prob_floor, min(self.prob_ceiling, p))

    def neutral_site(self) -> EngineConfig:
        """Return a copy with every home-side bonus zeroed out.

        Examples::

            cfg = EngineConfig.default().neutral_site()
            assert cfg.sim_home_bonus_pts == 0.0
        """
        return replace(self, home_court_points=0.0, sim_home_bonus_pts=0.0)

    def __repr__(self) -> str:
        return (
            f"EngineConfig(version={self.version!r}, "
            f"damping={self.damping_factor}, "
            f"blend={self.factor_blend_weight}, "
            f"k={self.elo_k_factor})"
        )
