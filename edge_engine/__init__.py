"""
edge_engine: win-probability and betting-edge prediction engine.

Estimates the probability that a team wins an upcoming game from Elo
ratings, a Monte Carlo score simulator, a bank of heuristic factors and
base team heuristics, compares it with the market's implied probability,
and issues a sized recommendation.
"""

__version__ = "3.0.0"
