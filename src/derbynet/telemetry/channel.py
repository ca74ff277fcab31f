"""
Telemetry channel - Single time series of a race quantity.

Provides:
- Bounded buffered storage
- Running statistics
"""

from dataclasses import dataclass
from typing import List
import numpy as np


@dataclass
class ChannelConfig:
    """Configuration for a telemetry channel."""
    name: str = "unnamed"
    unit: str = ""
    min_value: float = float('-inf')
    max_value: float = float('inf')
    precision: int = 3
    buffer_size: int = 10000


class TelemetryChannel:
    """Time series for one measurement of one horse."""
    
    def __init__(self, config: ChannelConfig | None = None, name: str = "channel"):
        """Initialize channel.
        
        Args:
            config: Channel configuration
            name: Channel name (used if config not provided)
        """
        self.config = config or ChannelConfig(name=name)
        
        self._times: List[float] = []
        self._values: List[float] = []
        
        # Running statistics over everything recorded
        self._min: float = float('inf')
        self._max: float = float('-inf')
        self._sum: float = 0.0
        self._count: int = 0
    
    @property
    def name(self) -> str:
        """Channel name."""
        return self.config.name
    
    @property
    def count(self) -> int:
        """Number of recorded samples."""
        return self._count
    
    @property
    def min_value(self) -> float:
        """Minimum recorded value."""
        return self._min if self._count > 0 else 0.0
    
    @property
    def max_value(self) -> float:
        """Maximum recorded value."""
        return self._max if self._count > 0 else 0.0
    
    @property
    def mean(self) -> float:
        """Mean of recorded values."""
        return self._sum / self._count if self._count > 0 else 0.0
    
    @property
    def last_value(self) -> float:
        """Most recent value."""
        return self._values[-1] if self._values else 0.0
    
    def record(self, time: float, value: float) -> None:
        """Record a new value.
        
        Args:
            time: Timestamp (ms since race start)
            value: Value to record
        """
        value = float(np.clip(value, self.config.min_value, self.config.max_value))
        
        self._times.append(time)
        self._values.append(value)
        
        self._min = min(self._min, value)
        self._max = max(self._max, value)
        self._sum += value
        self._count += 1
        
        if len(self._values) > self.config.buffer_size:
            self._values.pop(0)
            self._times.pop(0)
    
    def get_values(self) -> np.ndarray:
        """Get buffered values as an array."""
        return np.array(self._values)
    
    def get_times(self) -> np.ndarray:
        """Get buffered timestamps as an array."""
        return np.array(self._times)
    
    def clear(self) -> None:
        """Clear all recorded data."""
        self._times.clear()
        self._values.clear()
        self._min = float('inf')
        self._max = float('-inf')
        self._sum = 0.0
        self._count = 0
    
    def get_state(self) -> dict:
        """Get channel summary.
        
        Returns:
            Dictionary with channel statistics
        """
        has_data = self._count > 0
        precision = self.config.precision
        return {
            "name": self.config.name,
            "unit": self.config.unit,
            "count": self._count,
            "min": round(self._min, precision) if has_data else None,
            "max": round(self._max, precision) if has_data else None,
            "mean": round(self.mean, precision) if has_data else None,
            "last": round(self.last_value, precision) if has_data else None,
        }
