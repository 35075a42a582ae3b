#!/usr/bin/env python3
"""
Headless Rara Avis Simulator

Runs the full tick loop without a map, browser or sound card: a
procedural world stands in for the map, a simulated player stands in for
the audio graph. Sample sources are the live Xeno-canto and Freesound
APIs, or an offline catalog.

Usage:
    python simulate.py [--seed SEED] [--ticks N] [--offline]

Examples:
    python simulate.py --offline --seed 7 --ticks 36000
    python simulate.py --landmark "Kruger National Park, South Africa" --log-level debug
    python simulate.py --offline --events-out events.csv --log-out run.json
"""

import sys
import os
import argparse
import time

# Add src to path
src_path = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'src')
sys.path.insert(0, src_path)

from rara_avis.audio import SimulatedVoicePlayer
from rara_avis.config import ConfigError, load_config
from rara_avis.core import GeoPoint, SimulationClock
from rara_avis.engine import RaraAvisEngine
from rara_avis.navigation import ProceduralTerrainClassifier, SimulatedMapView
from rara_avis.output import EventLogger, LogLevel, create_console_logger
from rara_avis.sources import (
    FreesoundSource,
    SourceError,
    XenoCantoSource,
    load_offline_sources,
)
from rara_avis.sources.transport import create_session
from rara_avis.utils import SeededRNG


DEFAULT_CATALOG = os.path.join(os.path.dirname(os.path.abspath(__file__)),
                               'config', 'offline_samples.json')


class Simulator:
    """
    Builds an engine from command-line options and runs it.
    """

    def __init__(self, args: argparse.Namespace):
        self.args = args
        self.seed = args.seed if args.seed is not None else int(time.time()) % 10000

        self.config = load_config(args.config)
        self.logger = create_console_logger(LogLevel.from_name(args.log_level),
                                            use_colors=not args.no_color)
        self.clock = SimulationClock(tick_rate=1.0 / args.tick_rate)

        bio, ambient = self._build_sources()
        start = self._pick_start()

        self.view = SimulatedMapView(start, clock=self.clock)
        self.player = SimulatedVoicePlayer(
            clock=self.clock,
            fade_in=self.config.playback.fade_in_seconds,
            fade_out=self.config.playback.fade_out_seconds,
            logger=self.logger,
        )
        self.engine = RaraAvisEngine(
            map_view=self.view,
            classifier=ProceduralTerrainClassifier(seed=self.seed),
            player=self.player,
            bio_source=bio,
            ambient_source=ambient,
            config=self.config,
            seed=self.seed,
            clock=self.clock,
            logger=self.logger,
        )

        self.event_logger = EventLogger()
        self.engine.on_event(self.event_logger.log_event)

    def _build_sources(self):
        if self.args.offline:
            return load_offline_sources(self.args.catalog)

        session = create_session(self.config.sources.user_agent)
        return (
            XenoCantoSource(self.config.sources, session, self.logger),
            FreesoundSource(self.config.sources, session, self.logger),
        )

    def _pick_start(self) -> GeoPoint:
        landmarks = self.config.landmarks
        if self.args.landmark:
            for landmark in landmarks:
                if landmark.name == self.args.landmark:
                    return GeoPoint(lat=landmark.lat, lng=landmark.lng)
            raise SystemExit(f"Unknown landmark: {self.args.landmark}")

        landmark = SeededRNG(seed=self.seed, name="start").choice(landmarks)
        return GeoPoint(lat=landmark.lat, lng=landmark.lng)

    def _status_line(self) -> str:
        snapshot = self.engine.get_snapshot()
        state = self.engine.director.get_state()
        center = snapshot.center
        where = f"{center.lat:+8.4f},{center.lng:+9.4f}" if center else "--"
        return (f"[{snapshot.time:8.1f}s] {where} "
                f"hdg {snapshot.bearing:5.1f} {snapshot.nav_state:<11} "
                f"{snapshot.terrain.type.value:<6} "
                f"bio {state['bio_pool']:3d} (+{state['pending']}) "
                f"amb {state['ambient_pool']:2d} voices {state['active_voices']}")

    def run(self) -> int:
        args = self.args
        status_every = max(1, int(args.status_every * args.tick_rate))

        print(f"Rara Avis simulation (seed={self.seed}, "
              f"{'offline' if args.offline else 'online'})")
        self.engine.start()

        try:
            for i in range(args.ticks):
                self.engine.tick()
                if i % status_every == 0:
                    print(self._status_line())
        except KeyboardInterrupt:
            print("\nInterrupted.")
        finally:
            self.engine.shutdown()

        self._print_summary()

        if args.events_out:
            count = self.event_logger.write_csv(args.events_out)
            print(f"\nWrote {count} events to {args.events_out}")
        if args.log_out:
            count = self.logger.write_log(args.log_out)
            print(f"Wrote {count} log entries to {args.log_out}")
        return 0

    def _print_summary(self) -> None:
        state = self.engine.get_state()
        director = state['director']['stats']
        print(f"""
=== Summary ===
  Simulated time: {state['time']:.1f}s
  Final state: {state['wanderer']['nav_state']} heading {state['wanderer']['bearing']:.1f}
  Fetch cycles: {director['fetch_cycles']} ({director['fetch_errors']} failed)
  Samples admitted: {director['samples_admitted']}, culled: {director['samples_culled']}
  Voices: {director['voices_started']} started, {director['voices_ended']} ended, {director['voices_failed']} failed
  Warnings logged: {len(self.logger.get_warnings())}""")
        perf = state.get('performance')
        if perf and perf['ticks']:
            print(f"  Tick time: avg {perf['avg_ms']:.2f} ms, max {perf['max_ms']:.2f} ms")

        species = self.event_logger.species_counts()
        if species:
            print("\n  Heard:")
            ranked = sorted(species.items(), key=lambda kv: -kv[1])
            for name, count in ranked[:10]:
                print(f"    {count:3d}x {name}")


def main():
    parser = argparse.ArgumentParser(
        description="Headless Rara Avis simulator"
    )
    parser.add_argument('--seed', type=int, help='Random seed')
    parser.add_argument('--ticks', type=int, default=60 * 60 * 5,
                        help='Number of ticks to run (default: 5 minutes at 60 fps)')
    parser.add_argument('--tick-rate', type=float, default=60.0,
                        help='Ticks per simulated second')
    parser.add_argument('--config', default=None,
                        help='Config directory (default: built-in settings)')
    parser.add_argument('--offline', action='store_true',
                        help='Use the offline sample catalog instead of the APIs')
    parser.add_argument('--catalog', default=DEFAULT_CATALOG,
                        help='Offline catalog path')
    parser.add_argument('--landmark', default=None,
                        help='Start at this landmark (default: random)')
    parser.add_argument('--log-level', default='info',
                        choices=[level.name.lower() for level in LogLevel],
                        help='Console log level')
    parser.add_argument('--no-color', action='store_true', help='Disable ANSI colors')
    parser.add_argument('--status-every', type=float, default=10.0,
                        help='Seconds of simulated time between status lines')
    parser.add_argument('--events-out', default=None,
                        help='Write the event history to this CSV file')
    parser.add_argument('--log-out', default=None,
                        help='Write the debug log to this file (.json for JSON)')

    args = parser.parse_args()

    try:
        sim = Simulator(args)
    except (ConfigError, SourceError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return sim.run()


if __name__ == "__main__":
    sys.exit(main())
