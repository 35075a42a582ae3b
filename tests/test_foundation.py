#!/usr/bin/env python3
"""
Foundation Test Script for Rara Avis

Tests that the foundation modules load and work correctly:
- utils: angle math, geodesy, RNG, validators
- config: loading JSON files into typed models
- core: clock and per-tick state
- output: debug and event logging

Run from the project root:
    python tests/test_foundation.py
"""

import sys
import os
import json
import tempfile

# Add src to path for imports
src_path = os.path.join(os.path.dirname(os.path.abspath(__file__)), '..', 'src')
sys.path.insert(0, src_path)

from rara_avis.utils import (
    clamp, normalize_angle, shortest_angle_delta, step_towards_angle,
    is_valid_coordinate, parse_coordinate, forward_azimuth, approx_distance_km,
    SeededRNG, RNGManager, ValidationError,
)
from rara_avis.utils.geo import longitude_delta, wrap_longitude, km_to_degrees
from rara_avis.utils.validators import validate_positive, validate_unit
from rara_avis.config import (
    ConfigLoader, ConfigError, load_config, RaraAvisConfig, DEFAULT_LANDMARKS,
)
from rara_avis.core import GeoPoint, SimulationClock
from rara_avis.output import DebugLogger, EventLogger, LogLevel
from rara_avis.audio.events import DirectorEvent, EventType


CONFIG_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), '..', 'config')


def test_angle_math():
    """Test heading helpers."""
    print("\n=== Testing Angle Math ===")

    assert clamp(1.5, 0.0, 1.0) == 1.0, "clamp high failed"
    assert clamp(-0.5, 0.0, 1.0) == 0.0, "clamp low failed"
    print("  ✓ clamp")

    assert normalize_angle(-90.0) == 270.0
    assert normalize_angle(720.0) == 0.0
    assert 0.0 <= normalize_angle(-1e-15) < 360.0, "tiny negative must stay below 360"
    print("  ✓ normalize_angle")

    assert shortest_angle_delta(350.0, 10.0) == 20.0
    assert shortest_angle_delta(10.0, 350.0) == -20.0
    print("  ✓ shortest_angle_delta")

    # Wraps across north instead of turning the long way round
    assert abs(step_towards_angle(359.8, 0.5, 0.5) - 0.3) < 1e-9
    assert step_towards_angle(0.0, 90.0, 1.5) == 1.5
    assert step_towards_angle(0.0, 0.2, 0.5) == 0.2, "should snap onto target"
    print("  ✓ step_towards_angle")


def test_geo():
    """Test coordinate validation and distances."""
    print("\n=== Testing Geo ===")

    assert is_valid_coordinate(-0.05, -78.78)
    assert not is_valid_coordinate(None, 10.0)
    assert not is_valid_coordinate(float('nan'), 10.0)
    assert not is_valid_coordinate(91.0, 10.0)
    assert not is_valid_coordinate("abc", 10.0)
    print("  ✓ is_valid_coordinate")

    assert parse_coordinate("12.5") == 12.5
    assert parse_coordinate("") is None
    assert parse_coordinate("inf") is None
    print("  ✓ parse_coordinate")

    assert abs(forward_azimuth(0.0, 0.0, 0.0, 10.0) - 90.0) < 1e-6
    assert abs(forward_azimuth(0.0, 0.0, -10.0, 0.0) - 180.0) < 1e-6
    print("  ✓ forward_azimuth")

    d = approx_distance_km(0.0, 0.0, 1.0, 0.0)
    assert 110.0 < d < 112.0, f"one degree of latitude: {d}"
    assert abs(km_to_degrees(111.0) - 1.0) < 1e-9
    print("  ✓ approx_distance_km")

    assert abs(longitude_delta(179.95, -179.95) - 0.1) < 1e-9
    assert abs(longitude_delta(-179.95, 179.95) + 0.1) < 1e-9
    assert longitude_delta(0.0, 180.0) == 180.0
    d = approx_distance_km(-17.0, 179.95, -17.0, -179.95)
    assert 9.0 < d < 12.0, f"across the antimeridian: {d}"
    print("  ✓ distances across the antimeridian")

    assert wrap_longitude(190.0) == -170.0
    assert wrap_longitude(-181.0) == 179.0
    print("  ✓ wrap_longitude")


def test_rng():
    """Test seeded random streams."""
    print("\n=== Testing RNG ===")

    a = SeededRNG(seed=42)
    b = SeededRNG(seed=42)
    assert [a.random() for _ in range(5)] == [b.random() for _ in range(5)]
    print("  ✓ same seed, same sequence")

    for _ in range(100):
        assert -2.0 <= a.jitter(2.0) <= 2.0
    print("  ✓ jitter bounds")

    m1 = RNGManager(master_seed=7)
    m2 = RNGManager(master_seed=7)
    assert m1.get('wander').seed == m2.get('wander').seed
    assert m1.get('wander') is m1.get('wander')
    assert m1.get('wander').seed != m1.get('director').seed
    print("  ✓ RNGManager streams")

    m3 = RNGManager(master_seed=7)
    m3.get('selector')
    assert m3.get('wander').seed == m1.get('wander').seed
    print("  ✓ stream seeds independent of creation order")


def test_validators():
    """Test validation helpers."""
    print("\n=== Testing Validators ===")

    assert validate_unit(0.5) == 0.5
    try:
        validate_unit(1.5, "volume")
        assert False, "should reject 1.5"
    except ValidationError as e:
        assert e.field == "volume"
    print("  ✓ validate_unit")

    try:
        validate_positive(0.0, "radius", allow_zero=False)
        assert False, "should reject zero"
    except ValidationError:
        pass
    print("  ✓ validate_positive")


def test_default_config():
    """Test built-in defaults."""
    print("\n=== Testing Default Config ===")

    config = RaraAvisConfig()
    assert config.wanderer.water_grace_seconds == 5.0
    assert config.wanderer.stuck_distance_km == 10.0
    assert config.fetch.interval_seconds == 30.0
    assert config.fetch.search_radius_km == 30.0
    assert config.pools.bio_max_size == 300
    assert config.pools.ambient_max_size == 10
    assert config.max_pending == 300
    print("  ✓ defaults")

    assert len(config.landmarks) == len(DEFAULT_LANDMARKS) == 26
    names = [lm.name for lm in config.landmarks]
    assert len(set(names)) == len(names), "landmark names must be unique"
    print(f"  ✓ {len(config.landmarks)} default landmarks")


def test_config_loading():
    """Test loading the shipped config directory."""
    print("\n=== Testing Config Loading ===")

    config = load_config(CONFIG_DIR)
    assert config.wanderer.turn_rate == 0.5
    assert config.playback.bio_interval == (2.0, 8.0)
    assert config.playback.ambient_interval == (15.0, 45.0)
    assert len(config.landmarks) == 26
    print("  ✓ loaded config directory")

    loader = ConfigLoader(CONFIG_DIR)
    landmarks = loader.load_landmarks()
    mindo = [lm for lm in landmarks if lm.name.startswith("Mindo")]
    assert mindo and abs(mindo[0].lat - (-0.05)) < 0.5
    print("  ✓ landmarks keep [lng, lat] order")


def test_config_errors():
    """Test malformed configs raise ConfigError."""
    print("\n=== Testing Config Errors ===")

    try:
        ConfigLoader("/nonexistent/rara_avis")
        assert False, "missing directory should fail"
    except ConfigError:
        pass
    print("  ✓ missing directory")

    with tempfile.TemporaryDirectory() as tmp:
        with open(os.path.join(tmp, "rara_avis.json"), "w") as f:
            f.write("{not json")
        try:
            load_config(tmp)
            assert False, "invalid JSON should fail"
        except ConfigError as e:
            assert e.file == "rara_avis.json"
    print("  ✓ invalid JSON")

    with tempfile.TemporaryDirectory() as tmp:
        with open(os.path.join(tmp, "rara_avis.json"), "w") as f:
            json.dump({"wanderer": {"turn_speed": 2.0}}, f)
        try:
            load_config(tmp)
            assert False, "unknown key should fail"
        except ConfigError as e:
            assert e.path == "wanderer"
    print("  ✓ unknown setting")

    with tempfile.TemporaryDirectory() as tmp:
        with open(os.path.join(tmp, "rara_avis.json"), "w") as f:
            json.dump({"playback": {"bio_volume": 1.5}}, f)
        try:
            load_config(tmp)
            assert False, "out-of-range volume should fail"
        except ConfigError as e:
            assert e.path == "playback.bio_volume"
    print("  ✓ out-of-range value")

    with tempfile.TemporaryDirectory() as tmp:
        with open(os.path.join(tmp, "landmarks.json"), "w") as f:
            json.dump({"landmarks": [{"name": "Nowhere", "coords": [200.0, 10.0]}]}, f)
        try:
            load_config(tmp)
            assert False, "bad coordinates should fail"
        except ConfigError as e:
            assert e.path == "landmarks[0]"
    print("  ✓ invalid landmark")

    for playback, field in (({"bio_interval": [2.0]}, "playback.bio_interval"),
                            ({"ambient_gain": [0.1, 0.2, 0.3]}, "playback.ambient_gain"),
                            ({"bio_gain": ["low", "high"]}, "playback.bio_gain"),
                            ({"ambient_interval": 30}, "playback.ambient_interval"),
                            ({"bio_interval": [8.0, 2.0]}, "playback.bio_interval"),
                            ({"bio_volume": "loud"}, "playback.bio_volume")):
        with tempfile.TemporaryDirectory() as tmp:
            with open(os.path.join(tmp, "rara_avis.json"), "w") as f:
                json.dump({"playback": playback}, f)
            try:
                load_config(tmp)
                assert False, f"malformed {field} should fail"
            except ConfigError as e:
                assert e.path == field, e.path
                assert e.file == "rara_avis.json"
    print("  ✓ malformed interval pairs")

    for entries, field in ((["Paris"], "landmarks[0]"),
                           ([{"name": "Ok", "coords": [1.0, 2.0]}, 42], "landmarks[1]"),
                           ([{"coords": [1.0, 2.0]}], "landmarks[0]"),
                           ([], "landmarks"),
                           ("Paris", "landmarks")):
        with tempfile.TemporaryDirectory() as tmp:
            with open(os.path.join(tmp, "landmarks.json"), "w") as f:
                json.dump({"landmarks": entries}, f)
            try:
                load_config(tmp)
                assert False, f"malformed landmarks should fail: {entries!r}"
            except ConfigError as e:
                assert e.path == field, e.path
                assert e.file == "landmarks.json"
    print("  ✓ malformed or empty landmark table")

    with tempfile.TemporaryDirectory() as tmp:
        config = load_config(tmp)
        assert len(config.landmarks) == 26, "empty dir falls back to defaults"
    print("  ✓ empty directory uses defaults")


def test_api_keys_from_environment():
    """Test API keys are read from the environment when absent."""
    print("\n=== Testing API Keys ===")

    saved = os.environ.get("XENO_CANTO_API_KEY")
    os.environ["XENO_CANTO_API_KEY"] = "xc-test-key"
    try:
        config = load_config()
        assert config.sources.xeno_canto_key == "xc-test-key"
    finally:
        if saved is None:
            del os.environ["XENO_CANTO_API_KEY"]
        else:
            os.environ["XENO_CANTO_API_KEY"] = saved
    print("  ✓ XENO_CANTO_API_KEY")


def test_clock():
    """Test simulation clock."""
    print("\n=== Testing Clock ===")

    clock = SimulationClock(tick_rate=0.1)
    assert clock.now == 0.0

    t = clock.tick()
    assert abs(t - 0.1) < 1e-9
    assert clock.tick_count == 1
    print("  ✓ tick")

    clock.advance(1.0)
    assert abs(clock.now - 1.1) < 1e-9
    assert clock.tick_count == 11
    print("  ✓ advance")

    clock.pause()
    clock.tick()
    assert clock.tick_count == 11, "paused clock must not tick"
    clock.resume()
    clock.reset()
    assert clock.now == 0.0 and clock.tick_count == 0
    print("  ✓ pause / reset")


def test_geopoint():
    """Test center validity."""
    print("\n=== Testing GeoPoint ===")

    assert not GeoPoint(lat=10.0, lng=20.0).is_degenerate
    assert GeoPoint(lat=0.0, lng=0.0).is_degenerate
    assert GeoPoint(lat=float('nan'), lng=1.0).is_degenerate
    print("  ✓ is_degenerate")


def test_debug_logger():
    """Test the leveled logger."""
    print("\n=== Testing DebugLogger ===")

    logger = DebugLogger(level=LogLevel.INFO)
    assert len(logger) == 0

    assert logger.debug("fetch", "filtered") is None
    logger.info("fetch", "Fetch cycle", 1.0, lat="10.000")
    logger.warning("fetch", "provider timed out", 2.0)
    assert len(logger) == 2
    assert len(logger.get_warnings()) == 1
    assert logger.search("timed out")[0].timestamp == 2.0
    print("  ✓ level filtering")

    logger.time_source = lambda: 42.0
    entry = logger.info("wander", "drift -> water_avoid")
    assert entry.timestamp == 42.0
    print("  ✓ time_source")

    logger.log_nav_transition(5.0, "drift", "water_avoid", elevation=0.0)
    entries = logger.get_entries(category="wander")
    assert entries[-1].message == "drift -> water_avoid"
    print("  ✓ log_nav_transition")

    data = json.loads(logger.to_json())
    assert len(data) == len(logger)
    print("  ✓ to_json")

    with tempfile.TemporaryDirectory() as tmp:
        path = os.path.join(tmp, "run.log")
        assert logger.write_log(path) == len(logger)
        with open(path, encoding='utf-8') as f:
            assert "provider timed out" in f.read()
    print("  ✓ write_log")

    narrow = DebugLogger(level=LogLevel.TRACE, categories=["voice"], max_entries=3)
    assert narrow.info("fetch", "ignored") is None
    for i in range(5):
        narrow.trace("voice", f"tick {i}", float(i))
    assert [e.message for e in narrow.get_entries()] == ["tick 2", "tick 3", "tick 4"]
    print("  ✓ category filter and bounded history")

    timed = DebugLogger(level=LogLevel.ERROR)
    assert timed.get_performance_stats() == {'avg_ms': 0.0, 'max_ms': 0.0, 'ticks': 0}
    for _ in range(3):
        timed.tick_start()
        assert timed.tick_end() >= 0.0
    perf = timed.get_performance_stats()
    assert perf['ticks'] == 3 and perf['max_ms'] >= perf['avg_ms'] >= 0.0
    print("  ✓ tick timing")

    assert LogLevel.from_name("debug") == LogLevel.DEBUG
    try:
        LogLevel.from_name("loud")
        assert False, "unknown level should fail"
    except ValueError:
        pass
    print("  ✓ LogLevel.from_name")


def test_event_logger():
    """Test the event history and species tally."""
    print("\n=== Testing EventLogger ===")

    events = EventLogger()
    assert len(events) == 0

    events.log_event(DirectorEvent(EventType.VOICE_START, 1.0, sample_id="xc-1",
                                   voice_id="v1", source="bio",
                                   metadata={'name': "Andean Cock-of-the-rock"}))
    events.log_event(DirectorEvent(EventType.VOICE_START, 5.0, sample_id="xc-1",
                                   voice_id="v2", source="bio",
                                   metadata={'name': "Andean Cock-of-the-rock"}))
    events.log_event(DirectorEvent(EventType.VOICE_START, 6.0, sample_id="fs-1",
                                   voice_id="v3", source="ambient",
                                   metadata={'name': "Cloud forest rain"}))
    events.log_event(DirectorEvent(EventType.VOICE_END, 9.0, sample_id="xc-1",
                                   voice_id="v1", source="bio", reason="ended"))

    assert len(events) == 4
    assert len(events.get_by_type("voice_start")) == 3
    assert len(events.get_by_sample("xc-1")) == 3
    print("  ✓ log_event")

    assert events.species_counts() == {"Andean Cock-of-the-rock": 2}, \
        "only bio voice starts count as species"
    stats = events.get_stats()
    assert stats['by_source'] == {'bio': 3, 'ambient': 1}
    assert stats['species_heard'] == 1
    print("  ✓ species tally")

    csv_text = events.to_csv()
    assert csv_text.splitlines()[0].startswith("timestamp,event_type")
    assert len(csv_text.strip().splitlines()) == 5
    print("  ✓ to_csv")

    records = json.loads(events.to_json())
    assert records[0]['metadata'] == {'name': "Andean Cock-of-the-rock"}
    print("  ✓ to_json")

    events.clear()
    assert len(events) == 0 and events.species_counts() == {}
    print("  ✓ clear")


def main():
    """Run all foundation tests."""
    print("=" * 60)
    print("RARA AVIS - FOUNDATION TESTS")
    print("=" * 60)

    try:
        test_angle_math()
        test_geo()
        test_rng()
        test_validators()
        test_default_config()
        test_config_loading()
        test_config_errors()
        test_api_keys_from_environment()
        test_clock()
        test_geopoint()
        test_debug_logger()
        test_event_logger()

        print("\n" + "=" * 60)
        print("ALL FOUNDATION TESTS PASSED!")
        print("=" * 60)
        return 0

    except AssertionError as e:
        print(f"\n✗ TEST FAILED: {e}")
        return 1
    except Exception as e:
        print(f"\n✗ ERROR: {e}")
        import traceback
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
