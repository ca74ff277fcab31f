#!/usr/bin/env python3
"""
DerbyNet Race Runner

Runs a headless horse race with a synthetic frame clock and prints the
live standings and final results.

Usage:
    python run_race.py                          # Six anonymous horses
    python run_race.py --names Ann Bo Cy        # Named bettors, rest placeholders
    python run_race.py --seed 42                # Reproducible race
    python run_race.py --export-dir ./replays   # Save telemetry
    python run_race.py --help                   # Show all options
"""

import argparse
import itertools
import logging
import sys
from pathlib import Path

from derbynet.scoring.ranking import RankEntry
from derbynet.scoring.results import format_time
from derbynet.session import GameSession, GamePhase, SessionConfig
from derbynet.telemetry import RaceRecorder, TelemetryExporter, ExporterConfig


logger = logging.getLogger("derbynet.run_race")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="DerbyNet headless horse race",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Quick race with default names
    python run_race.py
    
    # Seeded race between three friends, standings every 30 frames
    python run_race.py --names Ann Bo Cy --horses 3 --seed 7 --live-every 30
    
    # Verbose engine events
    python run_race.py --log-level DEBUG
        """
    )
    
    race_group = parser.add_argument_group("Race")
    race_group.add_argument(
        "--names",
        nargs="*",
        default=[],
        help="Bettor names in lane order"
    )
    race_group.add_argument(
        "--horses",
        type=int,
        default=6,
        help="Number of horses (default: 6)"
    )
    race_group.add_argument(
        "--seed",
        type=int,
        help="Random seed for a reproducible race"
    )
    race_group.add_argument(
        "--no-start-boost",
        action="store_true",
        help="Disable the random opening boost"
    )
    
    clock_group = parser.add_argument_group("Clock")
    clock_group.add_argument(
        "--frame-ms",
        type=float,
        default=16.0,
        help="Simulated frame length in milliseconds (default: 16)"
    )
    clock_group.add_argument(
        "--live-every",
        type=int,
        default=10,
        help="Frames between live standings (default: 10)"
    )
    clock_group.add_argument(
        "--max-frames",
        type=int,
        default=100000,
        help="Give up if the race has not ended after this many frames (default: 100000)"
    )
    
    parser.add_argument(
        "--export-dir",
        type=Path,
        help="Write race telemetry (CSV and JSON) to this directory"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level (default: INFO)"
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        help="Also log to this file"
    )
    
    return parser.parse_args(argv)


def setup_logging(level: str, log_file: Path | None = None) -> None:
    """Configure logging."""
    log_format = "%(asctime)s [%(levelname)s] %(message)s"
    handlers = [logging.StreamHandler(sys.stdout)]
    
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    
    logging.basicConfig(
        level=getattr(logging, level),
        format=log_format,
        handlers=handlers
    )


def print_standings(standings: list[RankEntry]) -> None:
    """Print one standings board."""
    for entry in standings:
        time = f"  {format_time(entry.finish_time)}" if entry.finished else ""
        print(
            f"   {entry.place}. {entry.change.symbol} #{entry.horse_id} "
            f"{entry.bettor_name:<16} {entry.position:6.2f}{time}"
        )


def main(argv: list[str] | None = None) -> int:
    """Run one race."""
    args = parse_args(argv)
    setup_logging(args.log_level, args.log_file)
    
    try:
        config = SessionConfig(
            horse_count=args.horses,
            seed=args.seed,
            start_boost_count=0 if args.no_start_boost else 3,
            frame_ms=args.frame_ms,
            live_ranking_every=args.live_every,
            max_frames=args.max_frames,
        )
        session = GameSession(config)
        session.start(0.0, args.names)
    except ValueError as e:
        logger.error("Invalid race setup: %s", e)
        return 2
    
    recorder = RaceRecorder()
    session.simulator.add_post_step_callback(lambda sim, result: recorder.record(sim.state))
    
    print("=" * 60)
    print("DerbyNet")
    print("=" * 60)
    
    clock = (frame_no * args.frame_ms for frame_no in itertools.count(1))
    for now, frame in session.run(clock):
        for label in frame.labels:
            print(f"\n   {label}")
        
        if frame.standings is not None:
            print(f"\n-- {now / 1000.0:.2f}s --")
            print_standings(frame.standings)
    
    if session.phase != GamePhase.RESULTS:
        logger.error("Race did not finish within %d frames", args.max_frames)
        return 1
    
    results = session.results
    print("\n" + "=" * 60)
    print(f"Winner: {results.winner.bettor_name} ({results.winner.time_display})")
    for entry in results.runners_up:
        print(f"   {entry.rank}. {entry.bettor_name:<16} {entry.time_display}")
    print("=" * 60)
    
    if args.export_dir:
        exporter = TelemetryExporter(ExporterConfig(output_dir=str(args.export_dir)))
        csv_path = exporter.export_csv(recorder)
        json_path = exporter.export_json(recorder, result=results)
        logger.info("Telemetry written to %s and %s", csv_path, json_path)
    
    return 0


if __name__ == "__main__":
    sys.exit(main())
