"""
Scoring module - Standings and final results.

This module contains:
- RankingComputer: Live standings with rank-change indicators
- RaceResult: Final placings and finish times
"""

from derbynet.scoring.ranking import RankingComputer, RankEntry, RankChange
from derbynet.scoring.results import RaceResult, ResultEntry, format_time

__all__ = [
    "RankingComputer",
    "RankEntry",
    "RankChange",
    "RaceResult",
    "ResultEntry",
    "format_time",
]
