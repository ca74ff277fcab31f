"""
Simulator - Race driver and controller.

Provides:
- Race setup from bettor names
- Gate break (random start boost)
- Timestamp-driven stepping
- Event listeners and post-step callbacks
- Live standings
"""

from dataclasses import dataclass
from typing import Callable, Iterable, List, Sequence
import logging
import numpy as np

from derbynet.race.horse import Horse, HorseMode
from derbynet.race.state import RaceState, RaceConfig
from derbynet.simulation.engine import (
    SimulationEngine,
    EngineConfig,
    RaceEvent,
    TickResult,
)
from derbynet.scoring.ranking import RankingComputer, RankEntry
from derbynet.scoring.results import RaceResult


logger = logging.getLogger(__name__)


@dataclass
class SimulatorConfig:
    """Simulator configuration."""
    # Field
    horse_count: int = 6
    
    # Randomness (None for random)
    seed: int | None = None
    
    # Gate break
    start_boost_count: int = 3       # Horses given a head start
    start_boost_ms: float = 200.0    # Length of the opening boost
    start_boost_speed: float = 0.2
    
    # Safety bound for step_until
    max_steps: int = 100000
    
    def __post_init__(self):
        """Validate configuration."""
        if self.horse_count <= 0:
            raise ValueError(f"horse_count must be positive, got {self.horse_count}")
        if self.start_boost_count < 0:
            raise ValueError("start_boost_count must not be negative")


class RaceSimulator:
    """Owns one race and drives it with external timestamps.
    
    Coordinates race state, the simulation engine and the ranking
    computer. Rendering and audio live outside and subscribe through
    event listeners or read standings after each step.
    
    Usage:
        sim = RaceSimulator(names=["Ann", "Bo"])
        sim.start(now)
        
        while sim.is_running:
            result = sim.step(clock())
    """
    
    def __init__(
        self,
        names: Sequence[str | None] = (),
        config: SimulatorConfig | None = None,
        engine_config: EngineConfig | None = None,
        rng: np.random.Generator | None = None,
    ):
        """Initialize simulator.
        
        Args:
            names: Bettor names in lane order
            config: Simulator configuration. Uses defaults if None.
            engine_config: Physics tuning passed to the engine
            rng: Random generator (built from config.seed if None)
        """
        self.config = config or SimulatorConfig()
        self.rng = rng if rng is not None else np.random.default_rng(self.config.seed)
        
        self.state = RaceState(RaceConfig(
            horse_count=self.config.horse_count,
            names=[n or "" for n in names],
        ))
        self.engine = SimulationEngine(engine_config, rng=self.rng)
        self.ranking = RankingComputer()
        
        self._event_listeners: List[Callable[[RaceEvent], None]] = []
        self._post_step_callbacks: List[Callable[["RaceSimulator", TickResult], None]] = []
    
    @property
    def is_running(self) -> bool:
        """Check if the race is in progress."""
        return self.state.is_racing
    
    @property
    def is_finished(self) -> bool:
        """Check if the race has concluded."""
        return self.state.is_finished
    
    @property
    def horses(self) -> List[Horse]:
        """Horses in lane order."""
        return self.state.horses
    
    def add_event_listener(self, listener: Callable[[RaceEvent], None]) -> None:
        """Add listener called for every emitted race event.
        
        Args:
            listener: Function taking a RaceEvent
        """
        self._event_listeners.append(listener)
    
    def add_post_step_callback(self, callback: Callable[["RaceSimulator", TickResult], None]) -> None:
        """Add callback called after each processed step.
        
        Args:
            callback: Function taking (simulator, tick_result) arguments
        """
        self._post_step_callbacks.append(callback)
    
    def start(self, now: float) -> None:
        """Reset the field and open the gates.
        
        Args:
            now: Timestamp (ms) at which racing begins
        """
        self.state.reset()
        self._apply_start_boost()
        self.state.begin(now)
        logger.info(
            "Race started with %d horses: %s",
            self.state.horse_count, ", ".join(self.state.names),
        )
    
    def _apply_start_boost(self) -> None:
        """Give a random subset of horses a short opening boost."""
        count = min(self.config.start_boost_count, self.state.horse_count)
        if count == 0:
            return
        
        lanes = self.rng.permutation(self.state.horse_count)[:count]
        for lane in lanes:
            horse = self.state.horses[int(lane)]
            horse.mode = HorseMode.BOOST
            horse.mode_remaining = self.config.start_boost_ms
            horse.speed = self.config.start_boost_speed
        
        logger.debug("Start boost for horses %s", sorted(int(lane) + 1 for lane in lanes))
    
    def step(self, now: float) -> TickResult:
        """Advance the race to timestamp ``now``.
        
        Args:
            now: Current timestamp in milliseconds
        
        Returns:
            Tick result (processed=False once the race is not running)
        """
        result = self.engine.tick(self.state, now)
        if not result.processed:
            return result
        
        for event in result.events:
            for listener in self._event_listeners:
                listener(event)
        
        for callback in self._post_step_callbacks:
            callback(self, result)
        
        return result
    
    def step_until(
        self,
        clock: Iterable[float],
        max_steps: int | None = None,
    ) -> int:
        """Step with successive timestamps until the race ends.
        
        Args:
            clock: Iterable of increasing timestamps
            max_steps: Maximum steps to take (config.max_steps if None)
        
        Returns:
            Number of steps taken
        """
        limit = max_steps if max_steps is not None else self.config.max_steps
        steps = 0
        
        for now in clock:
            if not self.is_running or steps >= limit:
                break
            self.step(now)
            steps += 1
        
        if self.is_running:
            logger.warning("Race still running after %d steps", steps)
        
        return steps
    
    def standings(self) -> List[RankEntry]:
        """Current standings with rank changes since the last call.
        
        Returns:
            Ranked entries, leader first
        """
        return self.ranking.snapshot(self.state)
    
    def results(self) -> RaceResult:
        """Final standings of a finished race.
        
        Returns:
            Race result
        """
        return RaceResult.from_state(self.state, self.ranking)
    
    def rename(self, names: Sequence[str | None]) -> None:
        """Change bettor names before the next race.
        
        Args:
            names: Names in lane order
        """
        self.state.rename(names)
    
    def reset(self) -> None:
        """Discard the current race and return to setup, keeping names."""
        self.state = RaceState(RaceConfig(
            horse_count=self.config.horse_count,
            names=self.state.names,
        ))
    
    def get_state(self) -> dict:
        """Get complete simulation state.
        
        Returns:
            Dictionary containing simulation state
        """
        return {
            "config": {
                "horse_count": self.config.horse_count,
                "seed": self.config.seed,
                "start_boost_count": self.config.start_boost_count,
            },
            "race": self.state.get_state(),
        }
