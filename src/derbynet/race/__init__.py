"""
Race module - Horse and race state data model.

This module contains:
- Horse: Per-lane horse entity with kinematic fields
- RaceState: Owned race container (horses, status, timing)
- RaceConfig: Race setup parameters
"""

from derbynet.race.horse import Horse, HorseMode, LANE_COLORS
from derbynet.race.state import RaceState, RaceStatus, RaceConfig

__all__ = [
    "Horse",
    "HorseMode",
    "LANE_COLORS",
    "RaceState",
    "RaceStatus",
    "RaceConfig",
]
