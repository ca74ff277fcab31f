"""Tests for the race simulation engine."""

import pytest
import numpy as np

from derbynet.race.horse import HorseMode
from derbynet.race.state import RaceState, RaceStatus, RaceConfig
from derbynet.simulation.engine import (
    SimulationEngine,
    EngineConfig,
    EventKind,
    TickResult,
)
from derbynet.scoring.ranking import RankingComputer


def run_race(engine, state, frame_ms=16.0, max_ticks=100000):
    """Tick until finished, returning (now, result) per tick."""
    ticks = []
    now = state.started_at
    while state.is_racing and len(ticks) < max_ticks:
        now += frame_ms
        ticks.append((now, engine.tick(state, now)))
    return ticks


class TestEngineConfig:
    """Test engine configuration validation."""
    
    def test_defaults(self):
        """Defaults match the tuned game constants."""
        cfg = EngineConfig()
        
        assert cfg.winning_distance == 92.0
        assert cfg.min_speed == 0.1
        assert cfg.max_speed == 0.6
        assert cfg.accel_variance == 0.02
        assert cfg.distance_scale == 0.35
        assert cfg.gap_threshold == 25.0
    
    @pytest.mark.parametrize("kwargs", [
        {"min_speed": 0.7, "max_speed": 0.6},
        {"winning_distance": 0.0},
        {"reference_tick": 0.0},
        {"min_speed": -0.5, "max_speed": -0.1},
        {"min_speed": 0.0, "max_speed": 0.0},
        {"distance_scale": 0.0},
        {"distance_scale": -0.35},
        {"boost_threshold": 1.5, "fatigue_threshold": 1.5},
        {"boost_threshold": -0.1},
        {"boost_threshold": 0.2, "fatigue_threshold": 0.1},
        {"nervousness_probability": -0.1},
        {"normal_duration": (3000.0, 1000.0)},
    ])
    def test_invalid_config(self, kwargs):
        """Inconsistent tuning is rejected."""
        with pytest.raises(ValueError):
            EngineConfig(**kwargs)


class TestTickPreconditions:
    """Test tick behaviour outside a running race."""
    
    def test_tick_in_setup_is_noop(self):
        """Ticking before the start changes nothing."""
        state = RaceState()
        engine = SimulationEngine(rng=np.random.default_rng(0))
        
        result = engine.tick(state, 100.0)
        
        assert not result.processed
        assert not result.race_finished
        assert state.last_tick_at is None
        assert all(h.position == 0.0 and h.speed == 0.0 for h in state.horses)
    
    def test_negative_delta_is_clamped(self, racing_state):
        """A clock running backwards moves nobody."""
        racing_state.last_tick_at = 1000.0
        engine = SimulationEngine(rng=np.random.default_rng(0))
        
        result = engine.tick(racing_state, 500.0)
        
        assert result.processed
        assert result.delta == 0.0
        assert racing_state.last_tick_at == 500.0
        assert all(h.position == 0.0 for h in racing_state.horses)


class TestModeRoll:
    """Test mode re-roll thresholds and durations."""
    
    def _horse(self):
        state = RaceState(RaceConfig(horse_count=1))
        return state.horses[0]
    
    def test_boost_roll(self, scripted_rng):
        """Rolls under 5% start a 2-5 second boost."""
        engine = SimulationEngine(rng=scripted_rng([0.01, 0.5]))
        horse = self._horse()
        
        event = engine.update_mode(horse, 16.0)
        
        assert horse.mode == HorseMode.BOOST
        assert horse.mode_remaining == pytest.approx(3500.0)
        assert event.kind == EventKind.BOOST
        assert event.horse_id == 1
    
    def test_fatigue_roll(self, scripted_rng):
        """Rolls in [5%, 15%) start a 2-4 second fatigue."""
        engine = SimulationEngine(rng=scripted_rng([0.05, 0.0]))
        horse = self._horse()
        
        event = engine.update_mode(horse, 16.0)
        
        assert horse.mode == HorseMode.FATIGUE
        assert horse.mode_remaining == pytest.approx(2000.0)
        assert event.kind == EventKind.FATIGUE
    
    def test_normal_roll(self, scripted_rng):
        """Other rolls return to normal for 1-3 seconds without an event."""
        engine = SimulationEngine(rng=scripted_rng([0.15, 0.5]))
        horse = self._horse()
        horse.mode = HorseMode.BOOST
        
        event = engine.update_mode(horse, 16.0)
        
        assert horse.mode == HorseMode.NORMAL
        assert horse.mode_remaining == pytest.approx(2000.0)
        assert event is None
    
    @pytest.mark.parametrize("roll, mode", [
        (0.0499, HorseMode.BOOST),
        (0.05, HorseMode.FATIGUE),
        (0.1499, HorseMode.FATIGUE),
        (0.15, HorseMode.NORMAL),
        (0.9999, HorseMode.NORMAL),
    ])
    def test_roll_boundaries(self, scripted_rng, roll, mode):
        """Default thresholds split rolls at exactly 0.05 and 0.15."""
        engine = SimulationEngine(rng=scripted_rng([roll, 0.0]))
        horse = self._horse()
        
        engine.update_mode(horse, 16.0)
        
        assert horse.mode == mode
    
    def test_custom_thresholds(self, scripted_rng):
        """Thresholds are cumulative bounds, not per-mode probabilities."""
        config = EngineConfig(boost_threshold=0.3, fatigue_threshold=0.3)
        engine = SimulationEngine(config, rng=scripted_rng([0.3, 0.0]))
        horse = self._horse()
        
        assert engine.update_mode(horse, 16.0) is None
        assert horse.mode == HorseMode.NORMAL
    
    def test_no_roll_while_mode_lasts(self, scripted_rng):
        """The mode timer counts down without drawing."""
        rng = scripted_rng([])
        engine = SimulationEngine(rng=rng)
        horse = self._horse()
        horse.mode = HorseMode.FATIGUE
        horse.mode_remaining = 100.0
        
        assert engine.update_mode(horse, 40.0) is None
        assert horse.mode == HorseMode.FATIGUE
        assert horse.mode_remaining == pytest.approx(60.0)
        assert rng.calls == 0
    
    def test_repeated_boost_reports_again(self, scripted_rng):
        """Drawing boost while boosting still emits an event."""
        engine = SimulationEngine(rng=scripted_rng([0.0, 0.0]))
        horse = self._horse()
        horse.mode = HorseMode.BOOST
        
        event = engine.update_mode(horse, 16.0)
        
        assert event is not None and event.kind == EventKind.BOOST


class TestAcceleration:
    """Test acceleration terms and rubber-banding."""
    
    def _field(self, positions):
        state = RaceState(RaceConfig(horse_count=len(positions)))
        for horse, pos in zip(state.horses, positions):
            horse.position = pos
            horse.mode_remaining = 1e9
        return state
    
    def test_mode_bias(self):
        """Boost and fatigue shift acceleration by fixed amounts."""
        engine = SimulationEngine(EngineConfig(accel_variance=0.0))
        state = self._field([10.0])
        horse = state.horses[0]
        
        assert engine.compute_acceleration(horse, horse, 1) == pytest.approx(0.0)
        horse.mode = HorseMode.BOOST
        assert engine.compute_acceleration(horse, horse, 1) == pytest.approx(0.015)
        horse.mode = HorseMode.FATIGUE
        assert engine.compute_acceleration(horse, horse, 1) == pytest.approx(-0.008)
    
    def test_base_term_range(self):
        """Base acceleration stays within half the variance either way."""
        engine = SimulationEngine(rng=np.random.default_rng(3))
        state = self._field([10.0])
        horse = state.horses[0]
        
        samples = [engine.compute_acceleration(horse, None, 1) for _ in range(2000)]
        
        assert min(samples) >= -0.01
        assert max(samples) < 0.01
    
    def test_catch_up_only_beyond_gap(self):
        """Only horses more than the gap threshold behind get help."""
        engine = SimulationEngine(EngineConfig(accel_variance=0.0))
        state = self._field([50.0, 20.0, 40.0, 25.0])
        leader, straggler, near, edge = state.horses
        
        assert engine.compute_acceleration(straggler, leader, 4) == pytest.approx(0.005)
        assert engine.compute_acceleration(near, leader, 4) == pytest.approx(0.0)
        # Exactly at the threshold is not beyond it
        assert engine.compute_acceleration(edge, leader, 4) == pytest.approx(0.0)
    
    def test_catch_up_shifts_distribution(self):
        """Straggler acceleration is shifted up by the catch-up bonus."""
        cfg = EngineConfig(gap_threshold=25.0)
        state = self._field([60.0, 30.0, 50.0])
        leader, straggler, near = state.horses
        
        straggler_engine = SimulationEngine(cfg, rng=np.random.default_rng(11))
        near_engine = SimulationEngine(cfg, rng=np.random.default_rng(11))
        
        trials = 5000
        straggler_accel = np.array([
            straggler_engine.compute_acceleration(straggler, leader, 3) for _ in range(trials)
        ])
        near_accel = np.array([
            near_engine.compute_acceleration(near, leader, 3) for _ in range(trials)
        ])
        
        # Same seed, same draws: the shift is exact per trial
        assert np.allclose(straggler_accel - near_accel, cfg.catch_up_bonus)
        
        independent = SimulationEngine(cfg, rng=np.random.default_rng(99))
        other = np.array([
            independent.compute_acceleration(near, leader, 3) for _ in range(trials)
        ])
        shift = straggler_accel.mean() - other.mean()
        assert shift == pytest.approx(cfg.catch_up_bonus, abs=0.001)
    
    def test_leader_nervousness(self):
        """The leader of a multi-horse field can get nervous."""
        engine = SimulationEngine(EngineConfig(accel_variance=0.0, nervousness_probability=1.0))
        state = self._field([50.0, 10.0])
        leader = state.horses[0]
        
        assert engine.compute_acceleration(leader, leader, 2) == pytest.approx(-0.01)
        # Alone on track: no nervousness
        assert engine.compute_acceleration(leader, leader, 1) == pytest.approx(0.0)
    
    def test_nervousness_rate(self):
        """Nervousness fires at roughly its configured rate."""
        engine = SimulationEngine(
            EngineConfig(accel_variance=0.0),
            rng=np.random.default_rng(5),
        )
        state = self._field([50.0, 10.0])
        leader = state.horses[0]
        
        samples = np.array([engine.compute_acceleration(leader, leader, 2) for _ in range(20000)])
        rate = np.mean(samples < 0)
        
        assert rate == pytest.approx(0.05, abs=0.01)
    
    def test_trailing_horse_never_nervous(self):
        """Only the leader can receive the nervousness penalty."""
        engine = SimulationEngine(EngineConfig(accel_variance=0.0, nervousness_probability=1.0))
        state = self._field([50.0, 45.0])
        leader, second = state.horses
        
        assert engine.compute_acceleration(second, leader, 2) == pytest.approx(0.0)
    
    def test_tied_leader_is_first_lane(self, racing_state):
        """Position ties for the lead go to the earlier lane."""
        engine = SimulationEngine(
            EngineConfig(accel_variance=0.0, nervousness_probability=1.0)
        )
        for horse in racing_state.horses:
            horse.position = 30.0
            horse.speed = 0.3
            horse.mode_remaining = 1e9
        
        engine.tick(racing_state, 16.0)
        
        speeds = [h.speed for h in racing_state.horses]
        assert speeds[0] == pytest.approx(0.29)
        assert speeds[1:] == pytest.approx([0.3] * 5)


class TestIntegration:
    """Test speed clamping and position integration."""
    
    def test_speed_clamped(self):
        """Speed stays inside the configured band."""
        engine = SimulationEngine()
        state = RaceState(RaceConfig(horse_count=1))
        horse = state.horses[0]
        
        engine.integrate(horse, 5.0, 16.0)
        assert horse.speed == 0.6
        
        engine.integrate(horse, -5.0, 16.0)
        assert horse.speed == 0.1
    
    def test_position_frame_rate_independent(self):
        """Two 8 ms steps cover the same ground as one 16 ms step."""
        engine = SimulationEngine()
        state = RaceState(RaceConfig(horse_count=2))
        a, b = state.horses
        a.speed = b.speed = 0.4
        
        engine.integrate(a, 0.0, 16.0)
        engine.integrate(b, 0.0, 8.0)
        engine.integrate(b, 0.0, 8.0)
        
        assert a.position == pytest.approx(0.4 * 0.35)
        assert b.position == pytest.approx(a.position)


class TestFinish:
    """Test finish detection and rank assignment."""
    
    def test_finish_assigns_rank_and_time(self, racing_state):
        """Crossing the line records rank and seconds since start."""
        engine = SimulationEngine(rng=np.random.default_rng(0))
        horse = racing_state.horses[2]
        horse.position = 91.99
        
        result = engine.tick(racing_state, 16.0)
        
        assert horse.finished
        assert horse.finish_rank == 1
        assert horse.finish_time == pytest.approx(0.016)
        assert result.finishers[0].horse_id == 3
        assert result.finishers[0].rank == 1
    
    def test_same_tick_tie_break_by_lane(self, racing_state):
        """Horses crossing on the same tick are ranked in lane order."""
        engine = SimulationEngine(rng=np.random.default_rng(0))
        racing_state.horses[4].position = 91.99
        racing_state.horses[1].position = 91.99
        
        result = engine.tick(racing_state, 16.0)
        
        assert racing_state.horses[1].finish_rank == 1
        assert racing_state.horses[4].finish_rank == 2
        assert [e.horse_id for e in result.finishers] == [2, 5]
    
    def test_finished_horses_frozen(self, racing_state):
        """Nothing about a finished horse changes on later ticks."""
        engine = SimulationEngine(rng=np.random.default_rng(1))
        winner = racing_state.horses[0]
        winner.position = 91.99
        engine.tick(racing_state, 16.0)
        frozen = (winner.position, winner.speed, winner.mode, winner.finish_rank, winner.finish_time)
        
        for i in range(2, 50):
            engine.tick(racing_state, 16.0 * i)
        
        assert (winner.position, winner.speed, winner.mode,
                winner.finish_rank, winner.finish_time) == frozen
    
    def test_race_finishes_when_all_done(self):
        """The last finisher ends the race and emits a race event."""
        state = RaceState(RaceConfig(horse_count=2))
        state.begin(0.0)
        for horse in state.horses:
            horse.position = 91.99
        engine = SimulationEngine(rng=np.random.default_rng(0))
        
        result = engine.tick(state, 16.0)
        
        assert result.race_finished
        assert state.status == RaceStatus.FINISHED
        assert result.events[-1].kind == EventKind.RACE_FINISHED
        
        after = engine.tick(state, 32.0)
        assert not after.processed
        assert after.race_finished


class TestFullRace:
    """Test whole races driven at a fixed frame rate."""
    
    def _start(self, seed):
        state = RaceState()
        cfg = EngineConfig()
        for horse in state.horses:
            horse.speed = cfg.min_speed
        state.begin(0.0)
        return state, SimulationEngine(cfg, rng=np.random.default_rng(seed))
    
    def test_six_distinct_ranks(self):
        """Every horse gets a distinct rank and a tick-aligned time."""
        state, engine = self._start(seed=42)
        
        ticks = run_race(engine, state)
        
        assert state.is_finished
        assert sorted(h.finish_rank for h in state.horses) == [1, 2, 3, 4, 5, 6]
        
        for now, result in ticks:
            for event in result.finishers:
                horse = state.get_horse(event.horse_id)
                assert horse.finish_time == pytest.approx((now - state.started_at) / 1000.0)
        
        by_rank = sorted(state.horses, key=lambda h: h.finish_rank)
        times = [h.finish_time for h in by_rank]
        assert times == sorted(times)
    
    @pytest.mark.parametrize("seed", [0, 7, 123])
    def test_race_invariants(self, seed):
        """Progress, speed band, and rank contiguity hold every tick."""
        state, engine = self._start(seed)
        cfg = engine.config
        last_positions = [0.0] * state.horse_count
        now = 0.0
        
        while state.is_racing:
            now += 16.0
            engine.tick(state, now)
            
            positions = [h.position for h in state.horses]
            assert all(p >= q for p, q in zip(positions, last_positions))
            last_positions = positions
            
            for horse in state.horses:
                assert cfg.min_speed <= horse.speed <= cfg.max_speed
                if not horse.finished:
                    assert horse.position < cfg.winning_distance
            
            ranks = sorted(h.finish_rank for h in state.horses if h.finished)
            assert ranks == list(range(1, len(ranks) + 1))
    
    def test_seeded_races_identical(self):
        """Same seed and timestamps give identical standings."""
        def standings(seed):
            state, engine = self._start(seed)
            ranking = RankingComputer()
            snapshots = []
            now = 0.0
            while state.is_racing:
                now += 16.0
                engine.tick(state, now)
                snapshots.append(ranking.snapshot(state))
            return snapshots
        
        assert standings(2024) == standings(2024)
    
    def test_event_kinds(self):
        """A full race reports one finish per horse and one race end."""
        state, engine = self._start(seed=8)
        
        events = [e for _, result in run_race(engine, state) for e in result.events]
        kinds = [e.kind for e in events]
        
        assert kinds.count(EventKind.HORSE_FINISHED) == 6
        assert kinds.count(EventKind.RACE_FINISHED) == 1
        assert kinds[-1] == EventKind.RACE_FINISHED
