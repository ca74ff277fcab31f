"""
Countdown - Timed label sequence shown before the gates open.
"""

from typing import List, Sequence


class Countdown:
    """Pre-race countdown driven by external timestamps.
    
    Each label is shown for ``step_ms``; the countdown is done one step
    after the last label appears.
    """
    
    def __init__(self, steps: Sequence[str] = ("3", "2", "1", "GO"), step_ms: float = 1000.0):
        if not steps:
            raise ValueError("Countdown needs at least one step")
        if step_ms <= 0:
            raise ValueError("step_ms must be positive")
        self.steps = tuple(steps)
        self.step_ms = step_ms
        
        self._started_at: float | None = None
        self._elapsed: float = 0.0
        self._shown: int = 0
    
    @property
    def duration_ms(self) -> float:
        """Total countdown length."""
        return len(self.steps) * self.step_ms
    
    @property
    def started(self) -> bool:
        return self._started_at is not None
    
    @property
    def done(self) -> bool:
        """Check if the countdown has run out."""
        return self.started and self._elapsed >= self.duration_ms
    
    @property
    def current(self) -> str | None:
        """Label currently on screen."""
        if self._shown == 0 or self.done:
            return None
        return self.steps[self._shown - 1]
    
    def is_final(self, label: str) -> bool:
        """Check if a label is the last one (the start signal)."""
        return label == self.steps[-1]
    
    def start(self, now: float) -> List[str]:
        """Start the countdown.
        
        Args:
            now: Current timestamp (ms)
        
        Returns:
            Labels shown immediately
        """
        self._started_at = now
        self._elapsed = 0.0
        self._shown = 0
        return self.advance(now)
    
    def advance(self, now: float) -> List[str]:
        """Move the countdown to ``now``.
        
        Args:
            now: Current timestamp (ms)
        
        Returns:
            Labels that appeared since the previous call
        """
        if self._started_at is None:
            raise RuntimeError("Countdown not started")
        
        self._elapsed = max(self._elapsed, now - self._started_at)
        reached = min(len(self.steps), int(self._elapsed // self.step_ms) + 1)
        
        labels = list(self.steps[self._shown:reached])
        self._shown = max(self._shown, reached)
        return labels
