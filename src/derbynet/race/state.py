"""
Race state - Owned container for a single playthrough.

Manages:
- The fixed lane-ordered field of horses
- Race status (setup, racing, finished)
- Start and last-tick timestamps
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence

from derbynet.race.horse import Horse, default_name, lane_color


class RaceStatus(Enum):
    """Race lifecycle status. Transitions are Setup -> Racing -> Finished."""
    SETUP = "setup"
    RACING = "racing"
    FINISHED = "finished"


@dataclass
class RaceConfig:
    """Race setup parameters."""
    horse_count: int = 6
    names: List[str] = field(default_factory=list)
    
    def __post_init__(self):
        """Validate configuration."""
        if self.horse_count <= 0:
            raise ValueError(f"horse_count must be positive, got {self.horse_count}")
        if len(self.names) > self.horse_count:
            raise ValueError(
                f"Got {len(self.names)} names for {self.horse_count} horses"
            )


def normalize_name(name: str | None, horse_id: int) -> str:
    """Strip a bettor name, falling back to the lane placeholder."""
    name = (name or "").strip()
    return name or default_name(horse_id)


class RaceState:
    """Mutable state of one race.
    
    Holds no simulation logic. The engine mutates horses in place and
    the ranking computer reads them; both receive this object explicitly.
    
    Usage:
        state = RaceState(RaceConfig(names=["Ann", "Bo"]))
        state.reset()
        state.begin(now)
    """
    
    def __init__(self, config: RaceConfig | None = None):
        """Initialize race in Setup status.
        
        Args:
            config: Race configuration. Uses defaults if None.
        """
        self.config = config or RaceConfig()
        
        self.horses: List[Horse] = []
        for lane in range(self.config.horse_count):
            horse_id = lane + 1
            name = self.config.names[lane] if lane < len(self.config.names) else None
            horse = Horse(
                horse_id=horse_id,
                bettor_name=normalize_name(name, horse_id),
                color=lane_color(lane),
            )
            horse.reset()
            self.horses.append(horse)
        
        self.status: RaceStatus = RaceStatus.SETUP
        self.started_at: Optional[float] = None
        self.last_tick_at: Optional[float] = None
    
    @classmethod
    def from_names(cls, names: Sequence[str | None], horse_count: int | None = None) -> "RaceState":
        """Build a race from bettor names.
        
        Args:
            names: Bettor names in lane order (blank entries get placeholders)
            horse_count: Field size (defaults to 6)
        
        Returns:
            New race in Setup status
        """
        count = horse_count if horse_count is not None else RaceConfig.horse_count
        return cls(RaceConfig(horse_count=count, names=[n or "" for n in names]))
    
    @property
    def horse_count(self) -> int:
        """Number of horses in the field."""
        return len(self.horses)
    
    @property
    def is_racing(self) -> bool:
        """Check if the race is in progress."""
        return self.status == RaceStatus.RACING
    
    @property
    def is_finished(self) -> bool:
        """Check if every horse has crossed the line."""
        return self.status == RaceStatus.FINISHED
    
    @property
    def names(self) -> List[str]:
        """Bettor names in lane order."""
        return [h.bettor_name for h in self.horses]
    
    @property
    def finished_count(self) -> int:
        """Number of horses that have finished."""
        return sum(1 for h in self.horses if h.finished)
    
    def active_horses(self) -> List[Horse]:
        """Horses still running, in lane order."""
        return [h for h in self.horses if not h.finished]
    
    def get_horse(self, horse_id: int) -> Optional[Horse]:
        """Get horse by ID.
        
        Args:
            horse_id: 1-based horse ID
        
        Returns:
            Horse if found
        """
        if 1 <= horse_id <= len(self.horses):
            return self.horses[horse_id - 1]
        return None
    
    def rename(self, names: Sequence[str | None]) -> None:
        """Replace bettor names before a race.
        
        Args:
            names: Names in lane order; missing entries become placeholders
        """
        if self.status != RaceStatus.SETUP:
            raise RuntimeError("Names can only change during setup")
        if len(names) > len(self.horses):
            raise ValueError(f"Got {len(names)} names for {len(self.horses)} horses")
        
        for lane, horse in enumerate(self.horses):
            name = names[lane] if lane < len(names) else None
            horse.bettor_name = normalize_name(name, horse.horse_id)
    
    def reset(self) -> None:
        """Restore start-of-race defaults, keeping names."""
        for horse in self.horses:
            horse.reset()
        
        self.status = RaceStatus.SETUP
        self.started_at = None
        self.last_tick_at = None
    
    def begin(self, now: float) -> None:
        """Start racing.
        
        Args:
            now: Timestamp (ms) at which the gates open
        """
        if self.status != RaceStatus.SETUP:
            raise RuntimeError(f"Cannot start a race in status {self.status.value}")
        
        self.status = RaceStatus.RACING
        self.started_at = now
        self.last_tick_at = now
    
    def finish(self) -> None:
        """Mark the race as finished."""
        if self.status == RaceStatus.RACING:
            self.status = RaceStatus.FINISHED
    
    def get_state(self) -> dict:
        """Get race state for serialization.
        
        Returns:
            Dictionary containing race state
        """
        return {
            "status": self.status.value,
            "started_at": self.started_at,
            "last_tick_at": self.last_tick_at,
            "horse_count": self.horse_count,
            "finished_count": self.finished_count,
            "horses": [h.get_state() for h in self.horses],
        }
