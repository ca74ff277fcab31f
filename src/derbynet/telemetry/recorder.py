"""
Race recorder - Captures horse kinematics over a race.

Provides:
- Position and speed channels per horse
- Tick sampling with a minimum interval
- Automatic restart when a new race begins
- Per-horse mode timeline
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple
import numpy as np

from derbynet.race.state import RaceState
from derbynet.telemetry.channel import TelemetryChannel, ChannelConfig


# Recorded quantities per horse
HORSE_CHANNELS = {
    "position": ChannelConfig("position", "%", 0, float('inf'), 3),
    "speed": ChannelConfig("speed", "%/tick", 0, float('inf'), 4),
}


@dataclass
class RecorderConfig:
    """Recorder configuration."""
    sample_interval_ms: float = 0.0  # 0 records every tick
    buffer_size: int = 100000        # Per-channel buffer size


class RaceRecorder:
    """Records horse telemetry while a race runs.
    
    Timestamps are milliseconds since the race started.
    
    Usage:
        recorder = RaceRecorder()
        sim.add_post_step_callback(lambda s, r: recorder.record(s.state))
    """
    
    def __init__(self, config: RecorderConfig | None = None):
        """Initialize recorder.
        
        Args:
            config: Recorder configuration
        """
        self.config = config or RecorderConfig()
        
        # horse_id -> channel name -> channel
        self._channels: Dict[int, Dict[str, TelemetryChannel]] = {}
        self._modes: Dict[int, List[Tuple[float, str]]] = {}
        self._names: Dict[int, str] = {}
        self._last_sample_time: Optional[float] = None
        self._race_started_at: Optional[float] = None
    
    @property
    def horse_ids(self) -> List[int]:
        """Recorded horse IDs."""
        return sorted(self._channels.keys())
    
    def _ensure_horse(self, horse_id: int, name: str) -> Dict[str, TelemetryChannel]:
        if horse_id not in self._channels:
            self._channels[horse_id] = {
                key: TelemetryChannel(ChannelConfig(
                    name=f"{cfg.name}_{horse_id}",
                    unit=cfg.unit,
                    min_value=cfg.min_value,
                    max_value=cfg.max_value,
                    precision=cfg.precision,
                    buffer_size=self.config.buffer_size,
                ))
                for key, cfg in HORSE_CHANNELS.items()
            }
            self._modes[horse_id] = []
        self._names[horse_id] = name
        return self._channels[horse_id]
    
    def record(self, state: RaceState) -> bool:
        """Sample the race at its last tick.
        
        Args:
            state: Race to sample
        
        Returns:
            True if a sample was recorded
        """
        if state.started_at is None or state.last_tick_at is None:
            return False
        
        time = state.last_tick_at - state.started_at
        if self._is_new_race(state.started_at, time):
            self.clear()
            self._race_started_at = state.started_at
        
        if (
            self._last_sample_time is not None
            and time - self._last_sample_time < self.config.sample_interval_ms
        ):
            return False
        
        self._last_sample_time = time
        
        for horse in state.horses:
            channels = self._ensure_horse(horse.horse_id, horse.bettor_name)
            channels["position"].record(time, horse.position)
            channels["speed"].record(time, horse.speed)
            
            modes = self._modes[horse.horse_id]
            if not modes or modes[-1][1] != horse.mode.value:
                modes.append((time, horse.mode.value))
        
        return True
    
    def _is_new_race(self, started_at: float, time: float) -> bool:
        """A different start time or a clock behind the last sample means a restart."""
        if self._race_started_at is None:
            return True
        if started_at != self._race_started_at:
            return True
        return self._last_sample_time is not None and time < self._last_sample_time
    
    def get_channel(self, horse_id: int, name: str) -> Optional[TelemetryChannel]:
        """Get a channel of one horse.
        
        Args:
            horse_id: Horse ID
            name: Channel name ("position" or "speed")
        
        Returns:
            Channel if recorded
        """
        return self._channels.get(horse_id, {}).get(name)
    
    def get_series(self, horse_id: int, name: str) -> tuple[np.ndarray, np.ndarray]:
        """Get (times, values) for one horse channel.
        
        Args:
            horse_id: Horse ID
            name: Channel name
        
        Returns:
            Tuple of arrays, empty if not recorded
        """
        channel = self.get_channel(horse_id, name)
        if channel is None:
            return np.array([]), np.array([])
        return channel.get_times(), channel.get_values()
    
    def get_mode_timeline(self, horse_id: int) -> List[Tuple[float, str]]:
        """Mode changes of a horse as (time, mode) pairs."""
        return list(self._modes.get(horse_id, []))
    
    def get_name(self, horse_id: int) -> str:
        """Bettor name recorded for a horse."""
        return self._names.get(horse_id, "")
    
    def clear(self) -> None:
        """Clear all recorded data."""
        self._channels.clear()
        self._modes.clear()
        self._names.clear()
        self._last_sample_time = None
        self._race_started_at = None
    
    def get_state(self) -> dict:
        """Get recorder summary.
        
        Returns:
            Dictionary containing recorder state
        """
        return {
            "sample_interval_ms": self.config.sample_interval_ms,
            "total_samples": sum(
                ch.count for channels in self._channels.values() for ch in channels.values()
            ),
            "horses": {
                horse_id: {
                    "name": self._names[horse_id],
                    "channels": {k: ch.get_state() for k, ch in channels.items()},
                    "mode_changes": len(self._modes[horse_id]),
                }
                for horse_id, channels in self._channels.items()
            },
        }
