"""
Race results - Final standings of a finished race.

Provides:
- Podium winner and runners-up
- Display formatting of finish times
- Plain dictionary summary
"""

from dataclasses import dataclass
from typing import List, Optional

from derbynet.race.state import RaceState
from derbynet.scoring.ranking import RankingComputer, RankEntry


def format_time(seconds: Optional[float]) -> str:
    """Format a finish time for display, e.g. ``12.34s``."""
    if seconds is None:
        return "--"
    return f"{seconds:.2f}s"


@dataclass
class ResultEntry:
    """Final placing of one horse."""
    rank: int
    horse_id: int
    bettor_name: str
    color: str
    finish_time: float
    
    @property
    def time_display(self) -> str:
        """Finish time formatted for display."""
        return format_time(self.finish_time)


class RaceResult:
    """Final standings of a finished race."""
    
    def __init__(self, entries: List[ResultEntry]):
        """Initialize result.
        
        Args:
            entries: Placings in rank order
        """
        self.entries = entries
    
    @classmethod
    def from_state(
        cls,
        state: RaceState,
        ranking: RankingComputer | None = None,
    ) -> "RaceResult":
        """Build results from a finished race.
        
        Args:
            state: Finished race
            ranking: Ranking computer (a fresh one if None)
        
        Returns:
            Race result
        """
        if not state.is_finished:
            raise RuntimeError("Race has not finished")
        
        ranking = ranking or RankingComputer()
        return cls([cls._entry(e) for e in ranking.snapshot(state)])
    
    @staticmethod
    def _entry(entry: RankEntry) -> ResultEntry:
        return ResultEntry(
            rank=entry.finish_rank,
            horse_id=entry.horse_id,
            bettor_name=entry.bettor_name,
            color=entry.color,
            finish_time=entry.finish_time,
        )
    
    @property
    def winner(self) -> ResultEntry:
        """Podium finisher."""
        return self.entries[0]
    
    @property
    def runners_up(self) -> List[ResultEntry]:
        """Everyone behind the winner, in rank order."""
        return self.entries[1:]
    
    def get_entry(self, horse_id: int) -> Optional[ResultEntry]:
        """Get the placing of a horse.
        
        Args:
            horse_id: Horse ID
        
        Returns:
            Result entry if found
        """
        for entry in self.entries:
            if entry.horse_id == horse_id:
                return entry
        return None
    
    def to_dict(self) -> dict:
        """Get results as a plain dictionary.
        
        Returns:
            Dictionary with winner and full standings
        """
        return {
            "winner": self.winner.bettor_name,
            "standings": [
                {
                    "rank": e.rank,
                    "horse_id": e.horse_id,
                    "name": e.bettor_name,
                    "color": e.color,
                    "time_s": e.finish_time,
                    "time": e.time_display,
                }
                for e in self.entries
            ],
        }
