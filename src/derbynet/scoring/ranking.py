"""
Ranking - Live and final standings.

Provides:
- Total ordering of the field (finishers by rank, runners by position)
- Rank-change indicators between consecutive snapshots
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from derbynet.race.horse import Horse
from derbynet.race.state import RaceState


class RankChange(Enum):
    """Direction of a rank change since the previous snapshot."""
    UP = "up"
    DOWN = "down"
    SAME = "same"
    
    @property
    def symbol(self) -> str:
        """Display arrow."""
        return {"up": "▲", "down": "▼", "same": "-"}[self.value]


@dataclass(frozen=True)
class RankEntry:
    """One line of a standings snapshot."""
    index: int                 # 0-based standing
    horse_id: int
    bettor_name: str
    color: str
    position: float
    finished: bool
    finish_rank: Optional[int]
    finish_time: Optional[float]
    rank_change: int           # previous index - current index
    
    @property
    def place(self) -> int:
        """1-based standing."""
        return self.index + 1
    
    @property
    def is_leader(self) -> bool:
        """Check if this entry heads the standings."""
        return self.index == 0
    
    @property
    def change(self) -> RankChange:
        """Direction of the rank change."""
        if self.rank_change > 0:
            return RankChange.UP
        if self.rank_change < 0:
            return RankChange.DOWN
        return RankChange.SAME


def standing_key(horse: Horse) -> tuple:
    """Sort key: finishers first by rank, then runners by position."""
    if horse.finished:
        return (0, horse.finish_rank, 0.0)
    return (1, 0, -horse.position)


class RankingComputer:
    """Computes standings snapshots from race state.
    
    Each snapshot overwrites every horse's previous rank, so rank
    changes are always relative to the preceding snapshot.
    """
    
    def order(self, state: RaceState) -> List[Horse]:
        """Horses in standing order without touching state.
        
        Args:
            state: Race to rank
        
        Returns:
            Horses, leader first (lane order breaks position ties)
        """
        return sorted(state.horses, key=standing_key)
    
    def snapshot(self, state: RaceState) -> List[RankEntry]:
        """Rank the field and record rank changes.
        
        Args:
            state: Race to rank (previous ranks are updated)
        
        Returns:
            Ranked entries, leader first
        """
        entries = []
        for index, horse in enumerate(self.order(state)):
            entries.append(RankEntry(
                index=index,
                horse_id=horse.horse_id,
                bettor_name=horse.bettor_name,
                color=horse.color,
                position=horse.position,
                finished=horse.finished,
                finish_rank=horse.finish_rank,
                finish_time=horse.finish_time,
                rank_change=horse.previous_rank - index,
            ))
            horse.previous_rank = index
        
        return entries
