"""
Horse - Per-lane entity of a race.

Holds:
- Identity (lane id, bettor name, lane color)
- Kinematics (position, speed)
- Performance mode and its countdown
- Finish bookkeeping (rank, time)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class HorseMode(Enum):
    """Transient performance state biasing acceleration."""
    NORMAL = "normal"
    BOOST = "boost"
    FATIGUE = "fatigue"


# Lane colors, cycled for fields larger than six
LANE_COLORS = (
    "#ff4757",
    "#1e90ff",
    "#2ed573",
    "#ffa502",
    "#a55eea",
    "#ff6b81",
)


def lane_color(lane: int) -> str:
    """Color for a 0-based lane index."""
    return LANE_COLORS[lane % len(LANE_COLORS)]


def default_name(horse_id: int) -> str:
    """Placeholder name for a horse without a bettor."""
    return f"Player {horse_id}"


@dataclass
class Horse:
    """A single horse on its lane.
    
    Position is measured in percent of track width. Everything except
    the identity fields is reset before each race.
    """
    horse_id: int
    bettor_name: str
    color: str = ""
    
    # Kinematics
    position: float = 0.0
    speed: float = 0.0
    
    # Mode
    mode: HorseMode = HorseMode.NORMAL
    mode_remaining: float = 0.0
    
    # Finish
    finished: bool = False
    finish_rank: Optional[int] = None
    finish_time: Optional[float] = None
    
    # Standing index on the previous ranking snapshot
    previous_rank: int = 0
    
    @property
    def lane(self) -> int:
        """0-based lane index."""
        return self.horse_id - 1
    
    def reset(self) -> None:
        """Restore start-of-race defaults, keeping name and color."""
        self.position = 0.0
        self.speed = 0.0
        self.mode = HorseMode.NORMAL
        self.mode_remaining = 0.0
        self.finished = False
        self.finish_rank = None
        self.finish_time = None
        self.previous_rank = self.lane
    
    def mark_finished(self, rank: int, time_s: float) -> None:
        """Record crossing the finish line.
        
        Args:
            rank: Finishing place (1 = winner)
            time_s: Seconds since race start
        """
        if self.finished:
            return
        self.finished = True
        self.finish_rank = rank
        self.finish_time = time_s
    
    def get_state(self) -> dict:
        """Get horse state for rendering.
        
        Returns:
            Dictionary containing horse state
        """
        return {
            "id": self.horse_id,
            "name": self.bettor_name,
            "color": self.color,
            "position": self.position,
            "speed": self.speed,
            "mode": self.mode.value,
            "finished": self.finished,
            "finish_rank": self.finish_rank,
            "finish_time": self.finish_time,
        }
