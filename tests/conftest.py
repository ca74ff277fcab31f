"""Shared fixtures for DerbyNet tests."""

import pytest

from derbynet.race.state import RaceState, RaceConfig


class ScriptedRng:
    """Stand-in generator returning a fixed sequence from random()."""
    
    def __init__(self, values, fill: float = 0.5):
        self._values = list(values)
        self._fill = fill
        self.calls = 0
    
    def random(self) -> float:
        self.calls += 1
        if self._values:
            return self._values.pop(0)
        return self._fill


@pytest.fixture
def racing_state():
    """Six-horse race that started at t=0."""
    state = RaceState(RaceConfig(horse_count=6))
    state.begin(0.0)
    return state


@pytest.fixture
def scripted_rng():
    """Factory for scripted generators."""
    return ScriptedRng
