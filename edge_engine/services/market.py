"""
Edge Calculator and Elo value-bet scanner.

Market snapshot
---------------
:func:`market_snapshot` shops the moneyline for each side across every
supplied bookmaker, independently:

  best_home_ml / best_away_ml:
      Highest-paying price for that side and the book offering it.
  home_implied / away_implied:
      Vig-inclusive implied probability of that side's own best price.
      ``None`` when no book priced the side.
  consensus_spread / consensus_total:
      Book average, rounded to the half point.

Edge
----
:func:`compute_edges` computes ``(model - market) / market × 100`` for each
side from its own implied probability.  The away edge is never derived
from the home edge: with the vig both implied probabilities sum above 1.

Value bets
----------
:func:`scan_value_bets` uses the Elo matchup prediction as the model
probability and flags every side whose edge clears ``min_edge``.  Its
threshold (3%) is separate from the 5/10 thresholds of the deep analysis
recommendation.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from edge_engine.core.odds_math import (
    BookPrice,
    american_to_probability,
    calculate_edge,
    calculate_vig,
    find_best_odds,
)
from edge_engine.schemas import BookOdds, GameRecord
from edge_engine.services.elo import TeamRatingTable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MarketSnapshot:
    best_home_ml: Optional[float] = None
    best_away_ml: Optional[float] = None
    best_home_book: Optional[str] = None
    best_away_book: Optional[str] = None
    home_implied: Optional[float] = None
    away_implied: Optional[float] = None
    consensus_spread: Optional[float] = None
    consensus_total: Optional[float] = None
    vig: Optional[float] = None
    books_analyzed: int = 0

    @property
    def has_prices(self) -> bool:
        return self.home_implied is not None or self.away_implied is not None


@dataclass(frozen=True)
class SideEdges:
    """Signed edge per side in percent; ``None`` where the side had no price."""

    home: Optional[float]
    away: Optional[float]

    def best_side(self) -> Optional[str]:
        """Side with the larger edge, ``None`` when neither side is priced."""
        if self.home is None and self.away is None:
            return None
        if self.away is None:
            return "home"
        if self.home is None:
            return "away"
        return "home" if self.home >= self.away else "away"


def _half_point(values: Sequence[float]) -> Optional[float]:
    if not values:
        return None
    return round(sum(values) / len(values) * 2) / 2


def market_snapshot(odds: Sequence[BookOdds]) -> MarketSnapshot:
    home_best = find_best_odds([BookPrice(b.book, b.home_ml) for b in odds if b.home_ml is not None])
    away_best = find_best_odds([BookPrice(b.book, b.away_ml) for b in odds if b.away_ml is not None])

    home_ml = home_best.best.odds if home_best else None
    away_ml = away_best.best.odds if away_best else None
    vig = None
    if home_ml is not None and away_ml is not None:
        vig = round(calculate_vig(home_ml, away_ml), 1)

    return MarketSnapshot(
        best_home_ml=home_ml,
        best_away_ml=away_ml,
        best_home_book=home_best.best.book if home_best else None,
        best_away_book=away_best.best.book if away_best else None,
        home_implied=american_to_probability(home_ml) if home_ml is not None else None,
        away_implied=american_to_probability(away_ml) if away_ml is not None else None,
        consensus_spread=_half_point([b.home_spread for b in odds if b.home_spread is not None]),
        consensus_total=_half_point([b.total for b in odds if b.total is not None]),
        vig=vig,
        books_analyzed=len(odds),
    )


def compute_edges(home_prob: float, market: MarketSnapshot) -> SideEdges:
    """Per-side edge of the model over each side's own best price."""
    home_edge = away_edge = None
    if market.home_implied is not None:
        home_edge = calculate_edge(home_prob, market.home_implied)
    if market.away_implied is not None:
        away_edge = calculate_edge(1.0 - home_prob, market.away_implied)
    if home_edge is None or away_edge is None:
        logger.warning(
            "Incomplete market: home priced=%s, away priced=%s",
            home_edge is not None, away_edge is not None,
        )
    return SideEdges(home=home_edge, away=away_edge)


# ---------------------------------------------------------------------------
# Value-bet scanner
# ---------------------------------------------------------------------------

@dataclass
class ValueBet:
    game: str
    pick: str
    side: str
    model_prob: float
    market_prob: float
    edge: float
    best_odds: float
    best_book: str
    reasons: List[str] = field(default_factory=list)


def _value_reasons(
    team_rating: float, opp_rating: float, record: str, side: str
) -> List[str]:
    reasons = []
    if team_rating > opp_rating:
        reasons.append(
            f"ELO advantage: {round(team_rating)} vs {round(opp_rating)} "
            f"(+{round(team_rating - opp_rating)})"
        )
    if side == "home":
        reasons.append("Home court advantage (+~3-4 points)")
    reasons.append(f"Season record: {record}")
    return reasons


def scan_value_bets(
    games: Iterable[GameRecord],
    rating_table: TeamRatingTable,
    min_edge: Optional[float] = None,
) -> List[ValueBet]:
    """Elo-priced value bets across ``games``, largest edge first."""
    if min_edge is None:
        min_edge = rating_table.config.value_bet_min_edge

    bets: List[ValueBet] = []
    for game in games:
        pred = rating_table.predict_matchup(game.home.abbr, game.away.abbr, game.neutral_site)
        if not pred.found:
            logger.debug("Skipping %s: %s", game.matchup_label, pred.error)
            continue

        market = market_snapshot(game.odds)
        sides = (
            ("home", game.home.abbr, pred.home_win_prob, market.home_implied,
             market.best_home_ml, market.best_home_book,
             pred.home_rating, pred.away_rating, pred.home_record),
            ("away", game.away.abbr, pred.away_win_prob, market.away_implied,
             market.best_away_ml, market.best_away_book,
             pred.away_rating, pred.home_rating, pred.away_record),
        )
        for side, pick, model_prob, implied, odds, book, rating, opp_rating, record in sides:
            if implied is None:
                continue
            edge = calculate_edge(model_prob, implied)
            if edge < min_edge:
                continue
            bets.append(
                ValueBet(
                    game=game.matchup_label,
                    pick=pick,
                    side=side,
                    model_prob=round(model_prob * 100, 1),
                    market_prob=round(implied * 100, 1),
                    edge=round(edge, 1),
                    best_odds=odds,
                    best_book=book,
                    reasons=_value_reasons(rating, opp_rating, record, side),
                )
            )

    bets.sort(key=lambda b: b.edge, reverse=True)
    logger.info("Value scan found %d bets at min edge %.1f%%", len(bets), min_edge)
    return bets
