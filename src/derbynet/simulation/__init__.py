"""
Simulation module - Race update loop.

This module contains:
- SimulationEngine: Per-tick physics, modes and finish detection
- RaceSimulator: Driver owning a race, its engine and listeners
"""

from derbynet.simulation.engine import (
    SimulationEngine,
    EngineConfig,
    TickResult,
    RaceEvent,
    EventKind,
)
from derbynet.simulation.simulator import RaceSimulator, SimulatorConfig

__all__ = [
    "SimulationEngine",
    "EngineConfig",
    "TickResult",
    "RaceEvent",
    "EventKind",
    "RaceSimulator",
    "SimulatorConfig",
]
