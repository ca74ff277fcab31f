"""
Simulation engine - Per-tick race update.

Provides:
- Mode re-rolls (normal, boost, fatigue)
- Stochastic acceleration with mode bias
- Rubber-banding (straggler catch-up, leader nervousness)
- Speed clamping and frame-rate independent position integration
- Finish detection with rank and time assignment
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple
import logging
import numpy as np

from derbynet.race.horse import Horse, HorseMode
from derbynet.race.state import RaceState, RaceStatus


logger = logging.getLogger(__name__)


@dataclass
class EngineConfig:
    """Race physics tuning. All durations in milliseconds."""
    # Track
    winning_distance: float = 92.0   # Percent of track width
    distance_scale: float = 0.35
    reference_tick: float = 16.0     # Nominal frame length
    
    # Speed
    min_speed: float = 0.1
    max_speed: float = 0.6
    accel_variance: float = 0.02
    
    # Modes
    boost_threshold: float = 0.05    # roll below: boost
    fatigue_threshold: float = 0.15  # roll below (and not boost): fatigue
    boost_duration: Tuple[float, float] = (2000.0, 5000.0)
    fatigue_duration: Tuple[float, float] = (2000.0, 4000.0)
    normal_duration: Tuple[float, float] = (1000.0, 3000.0)
    boost_accel: float = 0.015
    fatigue_accel: float = -0.008
    
    # Rubber-banding
    gap_threshold: float = 25.0
    catch_up_bonus: float = 0.005
    nervousness_probability: float = 0.05
    nervousness_penalty: float = -0.01
    
    def __post_init__(self):
        """Validate configuration."""
        if self.min_speed < 0:
            raise ValueError("min_speed must not be negative")
        if self.max_speed <= 0:
            raise ValueError("max_speed must be positive")
        if self.min_speed > self.max_speed:
            raise ValueError("min_speed must not exceed max_speed")
        if self.winning_distance <= 0:
            raise ValueError("winning_distance must be positive")
        if self.distance_scale <= 0:
            raise ValueError("distance_scale must be positive")
        if self.reference_tick <= 0:
            raise ValueError("reference_tick must be positive")
        if self.accel_variance < 0:
            raise ValueError("accel_variance must not be negative")
        if not 0.0 <= self.boost_threshold <= self.fatigue_threshold <= 1.0:
            raise ValueError(
                "mode thresholds must satisfy 0 <= boost_threshold <= fatigue_threshold <= 1"
            )
        if not 0.0 <= self.nervousness_probability <= 1.0:
            raise ValueError(
                f"nervousness_probability must be within [0, 1], got {self.nervousness_probability}"
            )
        for name in ("boost_duration", "fatigue_duration", "normal_duration"):
            low, high = getattr(self, name)
            if low < 0 or high < low:
                raise ValueError(f"{name} must be a non-negative (low, high) range")


class EventKind(Enum):
    """Kinds of advisory events emitted by a tick."""
    BOOST = "boost"
    FATIGUE = "fatigue"
    HORSE_FINISHED = "horse_finished"
    RACE_FINISHED = "race_finished"


@dataclass(frozen=True)
class RaceEvent:
    """Something the presentation layer may render or sonify."""
    kind: EventKind
    horse_id: Optional[int] = None
    rank: Optional[int] = None
    time_s: Optional[float] = None


@dataclass
class TickResult:
    """Outcome of a single tick."""
    processed: bool
    race_finished: bool = False
    delta: float = 0.0
    events: List[RaceEvent] = field(default_factory=list)
    
    @property
    def finishers(self) -> List[RaceEvent]:
        """Horse-finished events of this tick in rank order."""
        return [e for e in self.events if e.kind == EventKind.HORSE_FINISHED]


class SimulationEngine:
    """Advances a RaceState by one time delta.
    
    The engine owns no race state; it reads and mutates the state it is
    handed. All randomness comes from the injected generator so a seeded
    generator makes races reproducible.
    
    Usage:
        engine = SimulationEngine(rng=np.random.default_rng(42))
        while not state.is_finished:
            result = engine.tick(state, now)
    """
    
    def __init__(
        self,
        config: EngineConfig | None = None,
        rng: np.random.Generator | None = None,
    ):
        """Initialize engine.
        
        Args:
            config: Physics tuning. Uses defaults if None.
            rng: Random generator. Uses an unseeded generator if None.
        """
        self.config = config or EngineConfig()
        self.rng = rng if rng is not None else np.random.default_rng()
    
    def tick(self, state: RaceState, now: float) -> TickResult:
        """Advance the race to timestamp ``now``.
        
        Args:
            state: Race to advance (mutated in place)
            now: Current timestamp in milliseconds
        
        Returns:
            Tick result with emitted events
        """
        if state.status != RaceStatus.RACING:
            return TickResult(processed=False, race_finished=state.is_finished)
        
        delta = max(0.0, now - state.last_tick_at)
        state.last_tick_at = now
        
        result = TickResult(processed=True, delta=delta)
        
        # Leader and field size are fixed for the whole tick
        active = state.active_horses()
        leader = max(active, key=lambda h: h.position) if active else None
        active_count = len(active)
        
        for horse in state.horses:
            if horse.finished:
                continue
            
            event = self.update_mode(horse, delta)
            if event is not None:
                result.events.append(event)
            
            accel = self.compute_acceleration(horse, leader, active_count)
            self.integrate(horse, accel, delta)
            
            if horse.position >= self.config.winning_distance:
                rank = state.finished_count + 1
                time_s = (now - state.started_at) / 1000.0
                horse.mark_finished(rank, time_s)
                result.events.append(RaceEvent(
                    kind=EventKind.HORSE_FINISHED,
                    horse_id=horse.horse_id,
                    rank=rank,
                    time_s=time_s,
                ))
                logger.debug(
                    "Horse %d (%s) finished #%d in %.2fs",
                    horse.horse_id, horse.bettor_name, rank, time_s,
                )
        
        if all(h.finished for h in state.horses):
            state.finish()
            result.race_finished = True
            result.events.append(RaceEvent(kind=EventKind.RACE_FINISHED))
            logger.info("Race finished after %.2fs", (now - state.started_at) / 1000.0)
        
        return result
    
    def update_mode(self, horse: Horse, delta: float) -> Optional[RaceEvent]:
        """Count down the current mode and re-roll it when expired.
        
        Args:
            horse: Horse to update
            delta: Elapsed time in milliseconds
        
        Returns:
            Boost/fatigue event if one of those modes was drawn
        """
        horse.mode_remaining -= delta
        if horse.mode_remaining > 0:
            return None
        
        cfg = self.config
        roll = self.rng.random()
        
        if roll < cfg.boost_threshold:
            horse.mode = HorseMode.BOOST
            horse.mode_remaining = self._draw_duration(cfg.boost_duration)
            logger.debug("Horse %d boosting for %.0fms", horse.horse_id, horse.mode_remaining)
            return RaceEvent(kind=EventKind.BOOST, horse_id=horse.horse_id)
        
        if roll < cfg.fatigue_threshold:
            horse.mode = HorseMode.FATIGUE
            horse.mode_remaining = self._draw_duration(cfg.fatigue_duration)
            logger.debug("Horse %d fatigued for %.0fms", horse.horse_id, horse.mode_remaining)
            return RaceEvent(kind=EventKind.FATIGUE, horse_id=horse.horse_id)
        
        horse.mode = HorseMode.NORMAL
        horse.mode_remaining = self._draw_duration(cfg.normal_duration)
        return None
    
    def compute_acceleration(
        self,
        horse: Horse,
        leader: Optional[Horse],
        active_count: int,
    ) -> float:
        """Draw this tick's acceleration for a horse.
        
        Args:
            horse: Horse being updated
            leader: Front-runner among unfinished horses at tick start
            active_count: Number of unfinished horses at tick start
        
        Returns:
            Acceleration to add to speed
        """
        cfg = self.config
        accel = (self.rng.random() - 0.5) * cfg.accel_variance
        
        if horse.mode == HorseMode.BOOST:
            accel += cfg.boost_accel
        elif horse.mode == HorseMode.FATIGUE:
            accel += cfg.fatigue_accel
        
        if leader is None:
            return accel
        
        if horse is not leader:
            if leader.position - horse.position > cfg.gap_threshold:
                accel += cfg.catch_up_bonus
        elif active_count > 1:
            if self.rng.random() < cfg.nervousness_probability:
                accel += cfg.nervousness_penalty
        
        return accel
    
    def integrate(self, horse: Horse, accel: float, delta: float) -> None:
        """Apply acceleration and move the horse.
        
        Args:
            horse: Horse to move
            accel: Acceleration for this tick
            delta: Elapsed time in milliseconds
        """
        cfg = self.config
        horse.speed = float(np.clip(horse.speed + accel, cfg.min_speed, cfg.max_speed))
        horse.position += horse.speed * (delta / cfg.reference_tick) * cfg.distance_scale
    
    def _draw_duration(self, bounds: Tuple[float, float]) -> float:
        """Draw a mode duration uniformly from [low, high)."""
        low, high = bounds
        return low + self.rng.random() * (high - low)
