"""
Game session - Setup, countdown, race and results screens.

Provides:
- Phase sequencing driven by external frame timestamps
- Sound cues for an audio collaborator
- Sampled live standings and delayed final results
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple
import logging
import math
import numpy as np

from derbynet.scoring.ranking import RankEntry
from derbynet.scoring.results import RaceResult
from derbynet.session.countdown import Countdown
from derbynet.session.cues import CueScheduler, SoundCue
from derbynet.simulation.engine import EngineConfig, TickResult
from derbynet.simulation.simulator import RaceSimulator, SimulatorConfig


logger = logging.getLogger(__name__)


class GamePhase(Enum):
    """Screen the game is on."""
    SETUP = "setup"
    COUNTDOWN = "countdown"
    RACING = "racing"
    FINISHED = "finished"
    RESULTS = "results"


@dataclass
class SessionConfig:
    """Game session configuration."""
    horse_count: int = 6
    seed: int | None = None
    start_boost_count: int = 3
    
    # Countdown
    countdown_steps: Tuple[str, ...] = ("3", "2", "1", "GO")
    countdown_step_ms: float = 1000.0
    
    # Presentation timing
    frame_ms: float = 16.0
    live_ranking_every: int = 10     # Frames between standings refreshes
    gallop_interval_ms: float = 350.0
    results_delay_ms: float = 1000.0
    
    # Safety bound for run
    max_frames: int = 100000
    
    def __post_init__(self):
        """Validate configuration."""
        if self.frame_ms <= 0:
            raise ValueError("frame_ms must be positive")
        if self.live_ranking_every <= 0:
            raise ValueError("live_ranking_every must be positive")
        if self.max_frames <= 0:
            raise ValueError("max_frames must be positive")


@dataclass
class SessionFrame:
    """What the presentation layer should show and play this frame."""
    phase: GamePhase
    labels: List[str] = field(default_factory=list)
    cues: List[SoundCue] = field(default_factory=list)
    tick: Optional[TickResult] = None
    standings: Optional[List[RankEntry]] = None
    results: Optional[RaceResult] = None


class GameSession:
    """One player group's sequence of races.
    
    Usage:
        session = GameSession()
        session.start(now, ["Ann", "Bo"])
        
        while session.phase != GamePhase.RESULTS:
            frame = session.update(clock())
    """
    
    def __init__(
        self,
        config: SessionConfig | None = None,
        engine_config: EngineConfig | None = None,
        rng: np.random.Generator | None = None,
    ):
        """Initialize session on the setup screen.
        
        Args:
            config: Session configuration. Uses defaults if None.
            engine_config: Physics tuning passed to the engine
            rng: Random generator (built from config.seed if None)
        """
        self.config = config or SessionConfig()
        
        self.simulator = RaceSimulator(
            config=SimulatorConfig(
                horse_count=self.config.horse_count,
                seed=self.config.seed,
                start_boost_count=self.config.start_boost_count,
            ),
            engine_config=engine_config,
            rng=rng,
        )
        self.countdown = Countdown(self.config.countdown_steps, self.config.countdown_step_ms)
        self.cues = CueScheduler(self.config.gallop_interval_ms)
        
        self.phase = GamePhase.SETUP
        self.results: Optional[RaceResult] = None
        self._finished_at: Optional[float] = None
    
    def start(self, now: float, names: Sequence[str | None] | None = None) -> SessionFrame:
        """Leave setup and begin the countdown.
        
        Args:
            now: Current timestamp (ms)
            names: Bettor names in lane order (keeps current names if None)
        
        Returns:
            First countdown frame
        """
        if self.phase != GamePhase.SETUP:
            raise RuntimeError(f"Cannot start from phase {self.phase.value}")
        
        if names is not None:
            self.simulator.rename(names)
        
        self.phase = GamePhase.COUNTDOWN
        self.results = None
        self._finished_at = None
        self.cues.reset()
        
        labels = self.countdown.start(now)
        cues = [SoundCue.CLICK] + self.cues.countdown_cues(labels, self.countdown)
        return SessionFrame(phase=self.phase, labels=labels, cues=cues)
    
    def update(self, now: float) -> SessionFrame:
        """Advance to timestamp ``now``.
        
        Args:
            now: Current timestamp (ms)
        
        Returns:
            Frame describing what changed
        """
        if self.phase == GamePhase.COUNTDOWN:
            return self._update_countdown(now)
        if self.phase == GamePhase.RACING:
            return self._update_race(now)
        if self.phase == GamePhase.FINISHED:
            return self._update_finished(now)
        return SessionFrame(phase=self.phase)
    
    def run(
        self,
        clock: Iterable[float],
        max_frames: int | None = None,
    ) -> Iterator[Tuple[float, SessionFrame]]:
        """Update with successive timestamps until the results screen.
        
        Args:
            clock: Iterable of increasing timestamps
            max_frames: Maximum frames to run (config.max_frames if None)
        
        Yields:
            (timestamp, frame) pairs
        """
        limit = max_frames if max_frames is not None else self.config.max_frames
        frames = 0
        
        for now in clock:
            if self.phase in (GamePhase.SETUP, GamePhase.RESULTS) or frames >= limit:
                break
            frames += 1
            yield now, self.update(now)
        
        if self.phase != GamePhase.RESULTS:
            logger.warning("Session stopped in phase %s after %d frames", self.phase.value, frames)
    
    def _update_countdown(self, now: float) -> SessionFrame:
        labels = self.countdown.advance(now)
        cues = self.cues.countdown_cues(labels, self.countdown)
        
        if self.countdown.done:
            self.simulator.start(now)
            self.phase = GamePhase.RACING
        
        return SessionFrame(phase=self.phase, labels=labels, cues=cues)
    
    def _update_race(self, now: float) -> SessionFrame:
        result = self.simulator.step(now)
        frame = SessionFrame(phase=self.phase, tick=result, cues=self.cues.tick_cues(result))
        
        if result.race_finished or self._is_ranking_frame(now):
            frame.standings = self.simulator.standings()
        
        if result.race_finished:
            self.phase = GamePhase.FINISHED
            self._finished_at = now
            frame.phase = self.phase
        
        return frame
    
    def _update_finished(self, now: float) -> SessionFrame:
        if now - self._finished_at < self.config.results_delay_ms:
            return SessionFrame(phase=self.phase)
        
        self.results = self.simulator.results()
        self.phase = GamePhase.RESULTS
        logger.info(
            "Winner: %s (%s)", self.results.winner.bettor_name, self.results.winner.time_display
        )
        return SessionFrame(phase=self.phase, cues=[SoundCue.FANFARE], results=self.results)
    
    def _is_ranking_frame(self, now: float) -> bool:
        """Standings refresh on every n-th nominal frame."""
        frame = math.floor(now / self.config.frame_ms)
        return frame % self.config.live_ranking_every == 0
    
    def reset(self) -> SessionFrame:
        """Return to the setup screen keeping bettor names.
        
        Returns:
            Setup frame
        """
        self.simulator.reset()
        self.phase = GamePhase.SETUP
        self.results = None
        self._finished_at = None
        return SessionFrame(phase=self.phase, cues=[SoundCue.CLICK])
