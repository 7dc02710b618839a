"""Dependency-injection interfaces for swappable score engines.

The analysis pipeline accepts a :class:`BaseScoreEngine` at construction
time rather than importing the Monte Carlo simulator directly.  This
enables:

* **Unit testing**: inject an engine that returns a fixed
  :class:`ScoreSimResult` without running thousands of draws.
* **Reproducibility**: every engine takes an injectable
  ``numpy.random.Generator`` so seeded runs are bit-for-bit repeatable.
* **Extension**: a possession-level or Poisson engine can replace the
  normal-noise simulator without touching the blender.

Design choices
--------------
* :class:`BaseScoreEngine` is an ABC rather than a ``typing.Protocol`` so
  the analyzer can ``isinstance``-check its collaborator at construction.
* :class:`SimTeamParams` carries *optional* efficiency inputs.  Missing
  values are filled from the league averages in
  :class:`~edge_engine.core.engine_config.EngineConfig` by
  :meth:`SimTeamParams.resolved`, so engines never see ``None``.
* :class:`ScoreSimResult` is frozen and slotted so it can be cached and
  passed across threads safely.

Run tests with::

    pytest tests/test_score_sim.py -v
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

import numpy as np

if TYPE_CHECKING:
    from edge_engine.core.engine_config import EngineConfig


# ---------------------------------------------------------------------------
# Data transfer objects
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class SimTeamParams:
    """Per-team efficiency inputs for a score engine.

    Attributes:
        offensive_rating: Points scored per 100 possessions.
        defensive_rating: Points allowed per 100 possessions.
        pace: Possessions per game.
    """

    offensive_rating: Optional[float] = None
    defensive_rating: Optional[float] = None
    pace: Optional[float] = None

    def resolved(self, config: EngineConfig) -> tuple[float, float]:
        """Return ``(offensive_rating, defensive_rating)`` with league fallbacks."""
        ortg = self.offensive_rating if self.offensive_rating else config.league_avg_rating
        drtg = self.defensive_rating if self.defensive_rating else config.league_avg_rating
        return float(ortg), float(drtg)


@dataclass(slots=True, frozen=True)
class ScoreSimResult:
    """Summary of a batch of simulated games.

    Attributes:
        iterations: Number of simulated games.
        mean_home_score: Mean simulated home score.
        mean_away_score: Mean simulated away score.
        home_win_fraction: Share of iterations in which the home side
            scored strictly more points.
        game_pace: Pace used for the projection.
    """

    iterations: int
    mean_home_score: float
    mean_away_score: float
    home_win_fraction: float
    game_pace: float

    @property
    def projected_total(self) -> float:
        return self.mean_home_score + self.mean_away_score

    @property
    def projected_margin(self) -> float:
        return self.mean_home_score - self.mean_away_score

    def to_dict(self) -> dict:
        return {
            "iterations": self.iterations,
            "mean_home_score": round(self.mean_home_score, 1),
            "mean_away_score": round(self.mean_away_score, 1),
            "projected_total": round(self.projected_total, 1),
            "home_win_fraction": round(self.home_win_fraction, 4),
            "game_pace": round(self.game_pace, 1),
        }


# ---------------------------------------------------------------------------
# Engine contract
# ---------------------------------------------------------------------------


class BaseScoreEngine(ABC):
    """Contract for every score engine the analyzer can consume."""

    @abstractmethod
    def simulate(
        self,
        home: SimTeamParams,
        away: SimTeamParams,
        iterations: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
        neutral_site: bool = False,
    ) -> ScoreSimResult:
        """Simulate ``iterations`` independent games.

        Args:
            home: Home-side efficiency inputs.
            away: Away-side efficiency inputs.
            iterations: Number of games; engines fall back to their
                configured default when ``None``.
            rng: Random source.  Passing a seeded generator must make the
                result fully deterministic.
            neutral_site: Drop the home-court bonus.

        Raises:
            ValueError: If ``iterations`` is not positive.
        """
