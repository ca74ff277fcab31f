#!/usr/bin/env python3
"""
Event Listener Example

This example demonstrates how to:
1. Create a race simulator with bettor names
2. Subscribe to boost, fatigue and finish events
3. Drive the race with a 60 Hz clock
4. Read telemetry statistics after the race

Run with: python watch_race.py
"""

import itertools

from derbynet import RaceSimulator
from derbynet.simulation import EventKind, SimulatorConfig
from derbynet.telemetry import RaceRecorder


def main():
    print("=" * 60)
    print("DerbyNet Event Listener Example")
    print("=" * 60)
    
    # Step 1: Set up the field
    sim = RaceSimulator(
        names=["Alice", "Bob", "", "Dana"],
        config=SimulatorConfig(horse_count=4, seed=2024),
    )
    for horse in sim.horses:
        print(f"   Lane {horse.horse_id}: {horse.bettor_name} ({horse.color})")
    
    # Step 2: Subscribe to events
    names = {h.horse_id: h.bettor_name for h in sim.horses}
    
    def on_event(event):
        if event.kind == EventKind.BOOST:
            print(f"   {names[event.horse_id]} finds another gear!")
        elif event.kind == EventKind.FATIGUE:
            print(f"   {names[event.horse_id]} is tiring...")
        elif event.kind == EventKind.HORSE_FINISHED:
            print(f"   {names[event.horse_id]} crosses the line #{event.rank} "
                  f"in {event.time_s:.2f}s")
    
    sim.add_event_listener(on_event)
    
    recorder = RaceRecorder()
    sim.add_post_step_callback(lambda s, result: recorder.record(s.state))
    
    # Step 3: Run at ~60 Hz
    print("\n1. And they're off!")
    sim.start(0.0)
    steps = sim.step_until(t * 16.7 for t in itertools.count(1))
    print(f"\n2. Race complete in {steps} frames")
    
    # Step 4: Results and telemetry
    results = sim.results()
    print(f"\n3. Winner: {results.winner.bettor_name} ({results.winner.time_display})")
    
    print("\n4. Top speeds:")
    for horse_id in recorder.horse_ids:
        speed = recorder.get_channel(horse_id, "speed")
        print(f"   {recorder.get_name(horse_id):<8} max {speed.max_value:.3f}, "
              f"mean {speed.mean:.3f}")
    
    print("\n" + "=" * 60)


if __name__ == "__main__":
    main()
