#!/usr/bin/env python3
"""
Backtest runner
Replays the prediction pipeline over the built-in historical games and
prints a graded table plus the summary.

Usage:
    python scripts/run_backtest.py --seed 42
    python scripts/run_backtest.py --iterations 5000 --json
"""

import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import argparse
import json
import logging
from dataclasses import asdict, replace

from edge_engine.core.engine_config import EngineConfig
from edge_engine.services.analysis import DeepAnalyzer
from edge_engine.services.backtest import run_backtest

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Run the historical backtest")
    parser.add_argument("--seed", type=int, default=None, help="Seed for the score simulator")
    parser.add_argument("--iterations", type=int, default=None, help="Simulations per game")
    parser.add_argument("--json", action="store_true", help="Print the report as JSON")
    args = parser.parse_args()

    config = EngineConfig.from_env()
    if args.iterations is not None:
        config = replace(config, sim_iterations=args.iterations)
    logger.info("Using %r", config)

    report = run_backtest(DeepAnalyzer(config=config), seed=args.seed)

    if args.json:
        print(json.dumps(asdict(report), indent=2))
        return

    print(f"{'GAME':<12}{'PICK':<7}{'ACTUAL':<8}{'RESULT':<8}{'CONF':>5}{'EDGE':>7}  SCORE")
    for row in report.rows:
        print(
            f"{row.game:<12}{row.prediction:<7}{row.actual:<8}{row.result:<8}"
            f"{row.confidence:>5}{row.edge:>7.1f}  {row.score}"
        )
    s = report.summary
    print(
        f"\n{s.total_games} games, {s.total_bets} bets, "
        f"{s.wins}-{s.losses}, win rate {s.win_rate:.1f}%"
    )


if __name__ == "__main__":
    main()
