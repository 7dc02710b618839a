"""
Probability Blender.

Fuses three independent views of the same game into one home-win
probability::

    factor_prob = clamp(0.5 + (base - 0.5) × damping + factor_adj / 100)
    final       = clamp(factor_prob × w + sim_fraction × (1 - w))

``base`` comes from :func:`~edge_engine.services.base_factors.base_probability`,
``factor_adj`` is the Factor Bank's aggregate adjustment in percentage
points and ``sim_fraction`` is the Score Simulator's home-win fraction.
The damping factor, the blend weight ``w`` and the clamp interval all come
from :class:`~edge_engine.core.engine_config.EngineConfig`.

Run tests with::

    pytest tests/test_blender.py -v
"""

from dataclasses import dataclass
from typing import Optional

from edge_engine.core.engine_config import EngineConfig


@dataclass(frozen=True)
class BlendResult:
    base_probability: float
    factor_adjustment: float     # percentage points
    factor_probability: float    # damped, adjusted, clamped
    sim_win_fraction: float
    home_probability: float      # final, clamped

    @property
    def away_probability(self) -> float:
        return 1.0 - self.home_probability


class ProbabilityBlender:
    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig.default()

    def factor_probability(self, base: float, factor_adjustment: float) -> float:
        damped = 0.5 + (base - 0.5) * self.config.damping_factor
        return self.config.clamp_probability(damped + factor_adjustment / 100.0)

    def blend(self, base: float, factor_adjustment: float, sim_win_fraction: float) -> BlendResult:
        cfg = self.config
        factor_prob = self.factor_probability(base, factor_adjustment)
        final = cfg.clamp_probability(
            factor_prob * cfg.factor_blend_weight + sim_win_fraction * cfg.sim_blend_weight
        )
        return BlendResult(
            base_probability=base,
            factor_adjustment=factor_adjustment,
            factor_probability=factor_prob,
            sim_win_fraction=sim_win_fraction,
            home_probability=final,
        )
