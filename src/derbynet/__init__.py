"""
DerbyNet - A party horse-racing mini-game simulation.

This package provides:
- A six-lane race model with bettor names per horse
- A randomized tick-based race engine (boost/fatigue modes, rubber-banding)
- Live standings with rank-change indicators and final results
- Race telemetry recording and export
- A presentation-agnostic game session (countdown, sound cues, results)
"""

__version__ = "0.1.0"

from derbynet.race.state import RaceState
from derbynet.simulation.engine import SimulationEngine
from derbynet.simulation.simulator import RaceSimulator
from derbynet.scoring.ranking import RankingComputer

__all__ = [
    "RaceState",
    "SimulationEngine",
    "RaceSimulator",
    "RankingComputer",
    "__version__",
]
