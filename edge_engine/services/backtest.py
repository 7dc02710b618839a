"""
Backtest Harness: replay the full pipeline over fixed historical games.

The fixture is the January 2024 divisional and conference rounds.  Each
game carries its final score, the closing home spread and moneylines, and
season efficiency stats supplied directly, so no live data is touched.

Grading::

    home_covered = home_score + spread > away_score
    pick HOME / AWAY  -> WIN if it matches the cover side, else LOSS
    action PASS       -> PASS (not counted as a bet)

Run tests with::

    pytest tests/test_backtest.py -v
"""

import datetime as dt
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from edge_engine.schemas import BookOdds, GameRecord, TeamInfo, TeamStats
from edge_engine.services.analysis import AnalysisRequest, AnalysisResult, DeepAnalyzer
from edge_engine.services.recommendation import PASS

logger = logging.getLogger(__name__)

TEAM_NAMES: Dict[str, str] = {
    "BAL": "Baltimore Ravens",
    "HOU": "Houston Texans",
    "SF": "San Francisco 49ers",
    "GB": "Green Bay Packers",
    "DET": "Detroit Lions",
    "TB": "Tampa Bay Buccaneers",
    "BUF": "Buffalo Bills",
    "KC": "Kansas City Chiefs",
}


def _stats(ppg: float, oppg: float, ortg: float, drtg: float, pace: float) -> TeamStats:
    return TeamStats(
        points_per_game=ppg,
        points_allowed=oppg,
        offensive_rating=ortg,
        defensive_rating=drtg,
        pace=pace,
    )


# Season stats entering the 2024 playoffs
STATS_DB: Dict[str, TeamStats] = {
    "BAL": _stats(28.4, 16.5, 114.5, 102.5, 96.5),
    "HOU": _stats(22.2, 20.8, 111.0, 110.5, 95.8),
    "SF": _stats(28.9, 17.5, 120.5, 105.0, 94.2),
    "GB": _stats(22.5, 20.6, 113.8, 112.0, 96.0),
    "DET": _stats(27.1, 23.2, 116.5, 113.8, 97.5),
    "TB": _stats(20.5, 19.1, 109.5, 108.5, 95.0),
    "BUF": _stats(26.5, 18.3, 115.0, 107.0, 97.0),
    "KC": _stats(21.8, 17.3, 111.5, 103.5, 96.0),
}

# (id, date, home, away, home_score, away_score, spread, total, home_ml, away_ml)
_FIXTURE = (
    ("backtest_div_bal_hou", "2024-01-20", "BAL", "HOU", 34, 10, -9.5, 43.5, -450, 350),
    ("backtest_div_sf_gb", "2024-01-21", "SF", "GB", 24, 21, -10.0, 50.5, -500, 375),
    ("backtest_div_det_tb", "2024-01-21", "DET", "TB", 31, 23, -6.5, 49.5, -300, 240),
    ("backtest_div_buf_kc", "2024-01-21", "BUF", "KC", 24, 27, -2.5, 45.5, -135, 115),
    ("backtest_conf_bal_kc", "2024-01-28", "BAL", "KC", 10, 17, -4.5, 44.5, -225, 185),
    ("backtest_conf_sf_det", "2024-01-28", "SF", "DET", 34, 31, -7.5, 52.5, -350, 280),
)


def historical_games() -> List[GameRecord]:
    games = []
    for gid, day, home, away, hs, as_, spread, total, hml, aml in _FIXTURE:
        games.append(
            GameRecord(
                id=gid,
                date=dt.date.fromisoformat(day),
                home=TeamInfo(abbr=home, name=TEAM_NAMES[home]),
                away=TeamInfo(abbr=away, name=TEAM_NAMES[away]),
                odds=[
                    BookOdds(
                        book="Closing",
                        home_ml=hml,
                        away_ml=aml,
                        home_spread=spread,
                        total=total,
                    )
                ],
                home_stats=STATS_DB[home],
                away_stats=STATS_DB[away],
                home_score=hs,
                away_score=as_,
            )
        )
    return games


HISTORICAL_GAMES: List[GameRecord] = historical_games()


def home_covered(home_score: int, away_score: int, spread: float) -> bool:
    """True when the home side beat the spread (pushes are not covers)."""
    return home_score + spread > away_score


@dataclass
class BacktestRow:
    game: str
    prediction: str
    actual: str
    result: str
    confidence: int
    edge: float
    score: str
    error: Optional[str] = None


@dataclass
class BacktestSummary:
    total_games: int
    total_bets: int
    wins: int
    losses: int
    win_rate: float      # percent, one decimal


@dataclass
class BacktestReport:
    summary: BacktestSummary
    rows: List[BacktestRow] = field(default_factory=list)


def grade(game: GameRecord, analysis: AnalysisResult) -> BacktestRow:
    if game.home_score is None or game.away_score is None:
        raise ValueError(f"{game.id} has no final score")
    spread = next((b.home_spread for b in game.odds if b.home_spread is not None), None)
    if spread is None:
        raise ValueError(f"{game.id} has no spread line")

    covered = home_covered(game.home_score, game.away_score, spread)
    rec = analysis.recommendation
    prediction, edge = PASS, 0.0
    if rec is not None and rec.action != PASS and rec.side is not None:
        prediction = rec.side.upper()
        edge = abs(rec.edge)

    if prediction == "HOME":
        result = "WIN" if covered else "LOSS"
    elif prediction == "AWAY":
        result = "LOSS" if covered else "WIN"
    else:
        result = PASS

    return BacktestRow(
        game=game.matchup_label,
        prediction=prediction,
        actual="HOME" if covered else "AWAY",
        result=result,
        confidence=analysis.confidence,
        edge=round(edge, 1),
        score=f"{game.away_score}-{game.home_score}",
        error=analysis.error,
    )


def _grade_or_pass(game: GameRecord, analysis: AnalysisResult) -> BacktestRow:
    """Grade one game; an ungradeable game becomes a PASS row carrying the error."""
    try:
        return grade(game, analysis)
    except ValueError as exc:
        logger.warning("Cannot grade %s: %s", game.matchup_label, exc)
        score = (
            f"{game.away_score}-{game.home_score}"
            if game.home_score is not None and game.away_score is not None
            else "n/a"
        )
        return BacktestRow(
            game=game.matchup_label,
            prediction=PASS,
            actual="n/a",
            result=PASS,
            confidence=analysis.confidence,
            edge=0.0,
            score=score,
            error=str(exc),
        )


def summarize(rows: Sequence[BacktestRow]) -> BacktestSummary:
    bets = [r for r in rows if r.result != PASS]
    wins = sum(1 for r in bets if r.result == "WIN")
    losses = sum(1 for r in bets if r.result == "LOSS")
    return BacktestSummary(
        total_games=len(rows),
        total_bets=len(bets),
        wins=wins,
        losses=losses,
        win_rate=round(wins / len(bets) * 100, 1) if bets else 0.0,
    )


def run_backtest(
    analyzer: Optional[DeepAnalyzer] = None,
    games: Optional[Sequence[GameRecord]] = None,
    seed: Optional[int] = None,
) -> BacktestReport:
    """Analyse and grade every game; defaults to the built-in fixture."""
    analyzer = analyzer or DeepAnalyzer()
    games = list(HISTORICAL_GAMES if games is None else games)
    logger.info("Starting backtest over %d games", len(games))

    analyses = analyzer.analyze_batch([AnalysisRequest(game=g) for g in games], seed=seed)
    rows = [_grade_or_pass(g, a) for g, a in zip(games, analyses)]
    summary = summarize(rows)
    logger.info(
        "Backtest complete: %d bets, %d-%d, win rate %.1f%%",
        summary.total_bets, summary.wins, summary.losses, summary.win_rate,
    )
    return BacktestReport(summary=summary, rows=rows)
