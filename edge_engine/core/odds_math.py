"""Moneyline odds mathematics: the single source of truth.

Every function here is **pure**: no I/O, no logging, no side effects.
Services import from this module and never reimplement a conversion
locally.

The pillars exposed are:

1. **Odds conversion**: American ↔ decimal ↔ implied probability.
2. **Edge**: relative value of a model probability over a market price.
3. **Market shopping**: best/worst price across books, vig of a two-way
   market, expected value of a stake.

Design decisions
----------------
* Implied probability is the bookmaker's *stated* probability and keeps
  the overround.  Both sides of a two-way market therefore sum above 1.0,
  which is why edge is always computed per side from that side's own
  price and never as ``1 - other side``.
* Edge is *relative*: ``(model - market) / market × 100``.  A 5-point
  probability gap on a +300 underdog is a far larger edge than the same
  gap on a -300 favourite.
* All functions accept ``int`` or ``float`` American odds and reject
  magnitudes below 100, which are not representable American prices.

Run tests with::

    pytest tests/test_odds_math.py -v
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final, Sequence

# ---------------------------------------------------------------------------
# Module-level constants
# ---------------------------------------------------------------------------

#: American-odds magnitude floor.  Sportsbooks never post |odds| < 100;
#: values below this indicate a parsing error upstream.
_MIN_ODDS_MAGNITUDE: Final[int] = 100

#: Default stake used by :func:`expected_value`.
DEFAULT_STAKE: Final[float] = 100.0


def _check_american(american: int | float) -> None:
    if abs(american) < _MIN_ODDS_MAGNITUDE:
        raise ValueError(
            f"Invalid American odds {american!r}: magnitude must be ≥ 100. "
            "Check upstream odds parsing for data errors."
        )


# ---------------------------------------------------------------------------
# Odds conversion
# ---------------------------------------------------------------------------


def american_to_probability(american: int | float) -> float:
    """Raw implied probability from American odds (vig-inclusive).

    Positive odds price an underdog: ``100 / (odds + 100)``.  Negative
    odds price a favourite: ``|odds| / (|odds| + 100)``.

    Args:
        american: American odds.  Sign convention: negative = favourite,
            positive = underdog.

    Returns:
        Implied probability in ``(0, 1)``.

    Raises:
        ValueError: If ``|american| < 100``.

    Examples::

        american_to_probability(-110) → 0.5238
        american_to_probability(+150) → 0.4000
    """
    _check_american(american)
    if american > 0:
        return 100.0 / (american + 100.0)
    magnitude = abs(american)
    return magnitude / (magnitude + 100.0)


def american_to_decimal(american: int | float) -> float:
    """Convert American odds to decimal (European) format.

    Decimal odds are the total payout per unit staked, **including** the
    returned stake::

        american_to_decimal(-110) → 1.9091
        american_to_decimal(+150) → 2.5000

    Raises:
        ValueError: If ``|american| < 100``.
    """
    _check_american(american)
    if american > 0:
        return american / 100.0 + 1.0
    return 100.0 / abs(american) + 1.0


def decimal_to_american(decimal_odds: float) -> int:
    """Convert decimal odds to the nearest American integer.

    Values ≥ 2.0 come back positive (underdog), values below 2.0 negative.

    Raises:
        ValueError: If ``decimal_odds`` is not greater than 1.0.
    """
    if decimal_odds <= 1.0:
        raise ValueError(
            f"Decimal odds {decimal_odds!r} must be > 1.0 (probability < 1)."
        )
    if decimal_odds >= 2.0:
        return round((decimal_odds - 1.0) * 100)
    return round(-100.0 / (decimal_odds - 1.0))


def probability_to_american(probability: float) -> int:
    """Fair American price for a probability (no vig added).

    ``p ≥ 0.5`` prices a favourite (``-100p / (1 - p)``); anything lower
    prices an underdog (``100(1 - p) / p``).

    Raises:
        ValueError: If ``probability`` is not strictly inside ``(0, 1)``.
    """
    if not 0.0 < probability < 1.0:
        raise ValueError(f"Probability {probability!r} must lie in (0, 1).")
    if probability >= 0.5:
        return round(-100.0 * probability / (1.0 - probability))
    return round(100.0 * (1.0 - probability) / probability)


def format_american(american: int | float) -> str:
    """Display form with an explicit sign: ``+150`` / ``-110``."""
    return f"+{american}" if american > 0 else f"{american}"


# ---------------------------------------------------------------------------
# Edge and expected value
# ---------------------------------------------------------------------------


def calculate_edge(model_prob: float, market_prob: float) -> float:
    """Percentage edge of the model over the market for one side.

    ``edge = (model - market) / market × 100``.  Positive means the model
    rates the side more likely than its price implies.

    Raises:
        ValueError: If ``market_prob`` is not positive.
    """
    if market_prob <= 0.0:
        raise ValueError(f"Market probability {market_prob!r} must be positive.")
    return (model_prob - market_prob) / market_prob * 100.0


@dataclass(frozen=True)
class ExpectedValue:
    """Expected value of a single stake at a given price."""

    ev: float
    ev_percent: float
    payout: float
    profit: float

    @property
    def is_positive_ev(self) -> bool:
        return self.ev > 0


def expected_value(
    american: int | float,
    model_prob: float,
    stake: float = DEFAULT_STAKE,
) -> ExpectedValue:
    """EV of staking ``stake`` at ``american`` when the true win chance is ``model_prob``.

    ``ev = p × profit - (1 - p) × stake``, reported to the cent.
    """
    payout = stake * american_to_decimal(american)
    profit = payout - stake
    ev = model_prob * profit - (1.0 - model_prob) * stake
    return ExpectedValue(
        ev=round(ev, 2),
        ev_percent=round(ev / stake * 100.0, 2),
        payout=round(payout, 2),
        profit=profit,
    )


# ---------------------------------------------------------------------------
# Market shopping
# ---------------------------------------------------------------------------


def calculate_vig(odds_a: int | float, odds_b: int | float) -> float:
    """Bookmaker overround of a two-way market, in percentage points.

    ``-110 / -110`` → 4.76.
    """
    return (american_to_probability(odds_a) + american_to_probability(odds_b) - 1.0) * 100.0


@dataclass(frozen=True)
class BookPrice:
    """One bookmaker's American price for one side."""

    book: str
    odds: float


@dataclass(frozen=True)
class BestOdds:
    """Result of shopping a side across books."""

    best: BookPrice
    worst: BookPrice
    ranked: tuple[BookPrice, ...]
    edge_over_worst: float


def find_best_odds(prices: Sequence[BookPrice]) -> BestOdds | None:
    """Rank prices by payout and report how much better the best is than the worst.

    Returns ``None`` for an empty sequence.  ``edge_over_worst`` is the
    percentage gain in decimal payout of the best price over the worst.
    """
    if not prices:
        return None
    ranked = tuple(sorted(prices, key=lambda p: american_to_decimal(p.odds), reverse=True))
    best, worst = ranked[0], ranked[-1]
    best_dec = american_to_decimal(best.odds)
    worst_dec = american_to_decimal(worst.odds)
    return BestOdds(
        best=best,
        worst=worst,
        ranked=ranked,
        edge_over_worst=round((best_dec - worst_dec) / worst_dec * 100.0, 2),
    )
