"""
Cues - Sound cue scheduling for an audio collaborator.

Maps countdown labels and engine events to named cues and keeps the
gallop rhythm. No audio is produced here.
"""

from enum import Enum
from typing import List

from derbynet.session.countdown import Countdown
from derbynet.simulation.engine import EventKind, TickResult


class SoundCue(Enum):
    """Named sounds the audio layer knows how to play."""
    CLICK = "click"
    COUNT = "count"
    GUNSHOT = "gunshot"
    GALLOP = "gallop"
    BOOST = "boost"
    FATIGUE = "fatigue"
    FANFARE = "fanfare"


EVENT_CUES = {
    EventKind.BOOST: SoundCue.BOOST,
    EventKind.FATIGUE: SoundCue.FATIGUE,
}


class CueScheduler:
    """Turns race progress into sound cues."""
    
    def __init__(self, gallop_interval_ms: float = 350.0):
        self.gallop_interval_ms = gallop_interval_ms
        self._gallop_timer: float = 0.0
    
    def countdown_cues(self, labels: List[str], countdown: Countdown) -> List[SoundCue]:
        """Cues for newly shown countdown labels; the last label fires the gun."""
        return [
            SoundCue.GUNSHOT if countdown.is_final(label) else SoundCue.COUNT
            for label in labels
        ]
    
    def tick_cues(self, result: TickResult) -> List[SoundCue]:
        """Cues for one processed tick.
        
        Args:
            result: Engine tick result
        
        Returns:
            Cues in play order
        """
        cues = []
        
        self._gallop_timer += result.delta
        if self._gallop_timer > self.gallop_interval_ms:
            cues.append(SoundCue.GALLOP)
            self._gallop_timer = 0.0
        
        for event in result.events:
            cue = EVENT_CUES.get(event.kind)
            if cue is not None:
                cues.append(cue)
        
        return cues
    
    def reset(self) -> None:
        """Restart the gallop rhythm."""
        self._gallop_timer = 0.0
