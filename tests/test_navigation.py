#!/usr/bin/env python3
"""
Navigation Test Script for Rara Avis

Tests the wanderer and its collaborators:
- LandmarkTable: nearest and escape-target queries
- Terrain: feature classification and the procedural world
- SimulatedMapView: interaction settling
- Wanderer: grace period, water avoidance, escape, guards, locked mode

Run from the project root:
    python tests/test_navigation.py
"""

import sys
import os

# Add src to path for imports
src_path = os.path.join(os.path.dirname(os.path.abspath(__file__)), '..', 'src')
sys.path.insert(0, src_path)

from rara_avis.config import DEFAULT_LANDMARKS, Landmark, TerrainType, WanderMode, WandererConfig
from rara_avis.core import GeoPoint, NavState, SimulationClock, TerrainReading, TickContext
from rara_avis.navigation import (
    LandmarkTable,
    MapFeature,
    classify_features,
    FeatureTerrainClassifier,
    ProceduralTerrainClassifier,
    SimulatedMapView,
    Wanderer,
)
from rara_avis.output import DebugLogger, LogLevel
from rara_avis.utils import SeededRNG, ValidationError, forward_azimuth, shortest_angle_delta
from rara_avis.utils.geo import squared_planar_distance


WATER = TerrainReading(type=TerrainType.WATER, density=0.0, elevation=0.0)
LAND = TerrainReading(type=TerrainType.NATURE, density=0.3, elevation=120.0)
TICK = 0.1


def make_wanderer(seed=1, **config):
    return Wanderer(config=WandererConfig(**config),
                    landmarks=LandmarkTable(DEFAULT_LANDMARKS),
                    rng=SeededRNG(seed=seed, name="wander"))


def run_ticks(wanderer, center, terrain, seconds, start=0.0):
    """Feed a constant center and terrain; returns the time of the last tick."""
    now = start
    for i in range(int(round(seconds / TICK))):
        now = start + (i + 1) * TICK
        wanderer.update(TickContext(now=now, center=center, tick=i), terrain)
    return now


# =============================================================================
# Landmarks
# =============================================================================

def test_landmark_nearest():
    """Test nearest-landmark lookup."""
    print("\n=== Testing LandmarkTable.nearest ===")

    table = LandmarkTable(DEFAULT_LANDMARKS)
    assert len(table) == 26

    rome = table.find("Rome")
    assert table.nearest(GeoPoint(lat=41.0, lng=12.0)) is rome
    print("  ✓ nearest")

    on_rome = GeoPoint(lat=rome.lat, lng=rome.lng)
    assert table.nearest(on_rome) is rome
    other = table.nearest(on_rome, exclude_within_km=0.5)
    assert other is not None and other is not rome, "landmark underneath is skipped"
    print(f"  ✓ exclusion radius ({other.name})")

    assert table.nearest(None) is None
    assert table.nearest(GeoPoint(lat=float('nan'), lng=0.0)) is None
    assert LandmarkTable([]).nearest(GeoPoint(lat=1.0, lng=1.0)) is None
    print("  ✓ unusable center / empty table")

    taveuni = Landmark("Taveuni", -179.9, -16.9)
    vanuatu = Landmark("Vanuatu", 168.3, -17.7)
    pacific = LandmarkTable([vanuatu, taveuni])
    assert pacific.nearest(GeoPoint(lat=-17.0, lng=179.95)) is taveuni
    print("  ✓ nearest across the antimeridian")


def test_escape_target_selection():
    """Test escape targets are far from the nearest landmark."""
    print("\n=== Testing Escape Target Selection ===")

    table = LandmarkTable(DEFAULT_LANDMARKS)
    rng = SeededRNG(seed=3)
    madrid = table.find("Madrid")

    for _ in range(50):
        target = table.pick_escape_target(madrid, rng, 25.0)
        assert target is not madrid
        sep = squared_planar_distance(target.lat, target.lng, madrid.lat, madrid.lng)
        assert sep > 25.0, f"{target.name} too close to Madrid"
    print("  ✓ distant targets only")

    a = Landmark("A", 0.0, 1.0)
    b = Landmark("B", 0.5, 1.0)
    close_table = LandmarkTable([a, b])
    assert close_table.pick_escape_target(a, rng, 25.0) is b, "falls back to any other"
    assert LandmarkTable([a]).pick_escape_target(a, rng, 25.0) is None
    print("  ✓ fallbacks")


# =============================================================================
# Terrain
# =============================================================================

def test_classify_features():
    """Test the map-analysis policy."""
    print("\n=== Testing classify_features ===")

    reading = classify_features(0.0, [], [])
    assert reading.type == TerrainType.WATER
    reading = classify_features(0.5, [], [])
    assert reading.type == TerrainType.WATER, "buffer is inclusive"
    print("  ✓ sea level is water")

    lake = [MapFeature('water')]
    assert classify_features(420.0, lake, []).type == TerrainType.WATER
    print("  ✓ inland water at the center")

    bridge = [MapFeature('building'), MapFeature('water')]
    area = [MapFeature('building')] * 3 + [MapFeature('landuse')]
    reading = classify_features(15.0, bridge, area)
    assert reading.type == TerrainType.URBAN, "building on top of water is land"
    print("  ✓ covering layer hides water")

    area = [MapFeature('park')] * 4 + [MapFeature('road')]
    assert classify_features(300.0, [], area).type == TerrainType.NATURE
    assert classify_features(300.0, [], []).type == TerrainType.MIX
    shore = [MapFeature('water')] * 6 + [MapFeature('park')]
    assert classify_features(120.0, [], shore).type == TerrainType.NATURE
    harbour = [MapFeature('water')] * 6 + [MapFeature('building')] * 2 + [MapFeature('park')]
    assert classify_features(120.0, [], harbour).type == TerrainType.URBAN
    print("  ✓ area vote")

    rivers = [MapFeature('waterway', {'class': 'river'})] * 25
    reading = classify_features(50.0, [], rivers)
    assert reading.type == TerrainType.MIX, "water does not vote"
    assert abs(reading.density - 0.5) < 1e-9
    many = [MapFeature('building')] * 80
    assert classify_features(50.0, [], many).density == 1.0
    print("  ✓ density")


def test_feature_classifier():
    """Test the map-backed classifier survives query failures."""
    print("\n=== Testing FeatureTerrainClassifier ===")

    def broken_query(center, half_box):
        raise RuntimeError("style not loaded")

    logger = DebugLogger(level=LogLevel.DEBUG)
    classifier = FeatureTerrainClassifier(lambda c: 250.0, broken_query, logger=logger)
    reading = classifier.classify(GeoPoint(lat=10.0, lng=10.0))
    assert reading.type == TerrainType.MIX
    assert reading.elevation == 250.0
    assert len(logger.get_warnings()) == 2
    print("  ✓ failed feature query logged and ignored")

    classifier = FeatureTerrainClassifier(lambda c: None, lambda c, b: [])
    assert classifier.classify(GeoPoint(lat=10.0, lng=10.0)).type == TerrainType.WATER
    print("  ✓ unknown elevation reads as sea level")


def test_procedural_terrain():
    """Test the analytic world."""
    print("\n=== Testing ProceduralTerrainClassifier ===")

    world = ProceduralTerrainClassifier(seed=11)
    again = ProceduralTerrainClassifier(seed=11)

    seen = set()
    for i in range(40):
        for j in range(40):
            center = GeoPoint(lat=10.0 + i * 0.05, lng=20.0 + j * 0.05)
            reading = world.classify(center)
            assert reading == again.classify(center), "must be deterministic"
            assert reading.elevation >= 0.0
            assert (reading.type == TerrainType.WATER) == (reading.elevation <= 0.5)
            seen.add(reading.type)

    assert TerrainType.WATER in seen and len(seen) >= 3, f"too uniform: {seen}"
    print(f"  ✓ deterministic, {len(seen)} terrain types")


# =============================================================================
# Viewport
# =============================================================================

def test_simulated_map_view():
    """Test interaction settling."""
    print("\n=== Testing SimulatedMapView ===")

    clock = SimulationClock(tick_rate=0.05)
    view = SimulatedMapView(GeoPoint(lat=1.0, lng=1.0), clock=clock)
    assert not view.is_interacting

    view.begin_interaction()
    view.drag_to(GeoPoint(lat=2.0, lng=2.0))
    assert view.is_interacting
    view.end_interaction()
    assert view.is_interacting, "settling"
    clock.advance(0.15)
    assert not view.is_interacting
    print("  ✓ drag settles")

    view.wheel()
    clock.advance(0.2)
    assert view.is_interacting
    clock.advance(0.15)
    assert not view.is_interacting
    print("  ✓ wheel debounce")

    view.jump_to(GeoPoint(lat=3.0, lng=3.0))
    assert view.get_center() == GeoPoint(lat=3.0, lng=3.0)
    assert view.jump_count == 1
    print("  ✓ jump_to")


# =============================================================================
# Wanderer
# =============================================================================

def test_wanderer_guards():
    """Test update() leaves the camera alone when it should."""
    print("\n=== Testing Wanderer Guards ===")

    wanderer = make_wanderer()
    center = GeoPoint(lat=45.0, lng=7.0)

    assert wanderer.update(TickContext(now=0.1, center=center), LAND) is not None

    assert wanderer.update(TickContext(now=0.2, center=center, is_interacting=True), LAND) is None
    assert wanderer.update(TickContext(now=0.3, center=None), LAND) is None
    assert wanderer.update(TickContext(now=0.4, center=GeoPoint(lat=0.0, lng=0.0)), LAND) is None
    print("  ✓ interaction / missing center / (0, 0)")

    wanderer.stop()
    assert wanderer.update(TickContext(now=0.5, center=center), LAND) is None
    wanderer.start()
    assert wanderer.update(TickContext(now=0.6, center=center), LAND) is not None
    print("  ✓ stop / start")


def test_grace_period():
    """Test short water crossings keep drifting."""
    print("\n=== Testing Water Grace Period ===")

    wanderer = make_wanderer()
    center = GeoPoint(lat=45.0, lng=7.0)

    now = run_ticks(wanderer, center, WATER, 4.9)
    assert wanderer.nav_state == NavState.DRIFT, "still inside the grace window"
    print("  ✓ 4.9s over water: DRIFT")

    # Back over land clears the timer
    wanderer.update(TickContext(now=now + TICK, center=center), LAND)
    assert wanderer.state.water_entry_time is None
    now = run_ticks(wanderer, center, WATER, 4.9, start=now + TICK)
    assert wanderer.nav_state == NavState.DRIFT
    print("  ✓ landfall resets the timer")

    run_ticks(wanderer, center, WATER, 0.3, start=now)
    assert wanderer.nav_state == NavState.WATER_AVOID
    print("  ✓ past the window: WATER_AVOID")

    wanderer.update(TickContext(now=now + 1.0, center=center), LAND)
    assert wanderer.nav_state == NavState.DRIFT
    print("  ✓ land again: DRIFT")


def test_river_is_not_water():
    """Test water above the elevation buffer does not trigger avoidance."""
    print("\n=== Testing Inland Water ===")

    wanderer = make_wanderer()
    lake = TerrainReading(type=TerrainType.WATER, density=0.1, elevation=800.0)
    run_ticks(wanderer, GeoPoint(lat=45.0, lng=7.0), lake, 10.0)
    assert wanderer.nav_state == NavState.DRIFT
    assert wanderer.state.water_entry_time is None
    print("  ✓ high lake ignored")


def test_landmark_homing():
    """Test water avoidance steers towards the nearest other landmark."""
    print("\n=== Testing Landmark Homing ===")

    table = LandmarkTable(DEFAULT_LANDMARKS)
    kruger = table.find("Kruger National Park, South Africa")
    center = GeoPoint(lat=kruger.lat, lng=kruger.lng)

    nearest_other = table.nearest(center, exclude_within_km=0.5)
    assert nearest_other is not kruger
    expected = forward_azimuth(center.lat, center.lng, nearest_other.lat, nearest_other.lng)

    wanderer = make_wanderer(seed=5)
    run_ticks(wanderer, center, WATER, 6.0)

    assert wanderer.nav_state == NavState.WATER_AVOID, wanderer.nav_state
    delta = abs(shortest_angle_delta(wanderer.target_bearing, expected))
    assert delta <= 1.0, f"target {wanderer.target_bearing:.2f} vs {expected:.2f}"
    print(f"  ✓ homing on {nearest_other.name} ({expected:.1f} deg)")


def test_escape_and_landfall():
    """Test stuck detection near a landmark and escape landfall."""
    print("\n=== Testing Escape ===")

    logger = DebugLogger(level=LogLevel.INFO)
    table = LandmarkTable(DEFAULT_LANDMARKS)
    sydney = table.find("Sydney")
    # ~5 km offshore
    center = GeoPoint(lat=sydney.lat, lng=sydney.lng + 0.05)

    wanderer = Wanderer(landmarks=table, rng=SeededRNG(seed=9), logger=logger)
    now = run_ticks(wanderer, center, WATER, 5.5)

    assert wanderer.nav_state == NavState.ESCAPE
    target = wanderer.escape_target
    assert target is not None and target is not sydney
    sep = squared_planar_distance(target.lat, target.lng, sydney.lat, sydney.lng)
    assert sep > wanderer.config.escape_min_separation_sq
    expected = forward_azimuth(center.lat, center.lng, target.lat, target.lng)
    assert abs(shortest_angle_delta(wanderer.target_bearing, expected)) < 1e-6
    assert wanderer.turn_rate == 3.0
    print(f"  ✓ ESCAPE towards {target.name}")

    # Shallow coastal water is not landfall
    shoal = TerrainReading(type=TerrainType.WATER, elevation=1.5)
    wanderer.update(TickContext(now=now + TICK, center=center), shoal)
    assert wanderer.nav_state == NavState.ESCAPE
    print("  ✓ shallow water keeps escaping")

    wanderer.update(TickContext(now=now + 2 * TICK, center=center), LAND)
    assert wanderer.nav_state == NavState.DRIFT
    assert wanderer.escape_target is None
    assert wanderer.state.water_entry_time is None
    print("  ✓ landfall ends the escape")

    messages = [e.message for e in logger.get_entries(category="wander")]
    assert messages == ["drift -> water_avoid", "water_avoid -> escape", "escape -> drift"], messages
    print("  ✓ transitions logged")


def test_bearing_is_bounded():
    """Test the heading never moves faster than the state's turn rate."""
    print("\n=== Testing Bearing Boundedness ===")

    rng = SeededRNG(seed=21)
    wanderer = make_wanderer(seed=4)
    center = GeoPoint(lat=-33.9, lng=151.3)
    readings = [WATER, LAND, TerrainReading(type=TerrainType.WATER, elevation=3.0)]

    now = 0.0
    terrain = WATER
    for i in range(3000):
        if i % 40 == 0:
            terrain = rng.choice(readings)
        now += TICK
        before = wanderer.bearing
        nxt = wanderer.update(TickContext(now=now, center=center, tick=i), terrain)
        # Rate of the state the tick ended in
        rate = wanderer.turn_rate
        step = abs(shortest_angle_delta(before, wanderer.bearing))
        assert step <= rate + 1e-9, f"tick {i}: turned {step:.3f} deg at rate {rate}"
        assert 0.0 <= wanderer.bearing < 360.0
        center = nxt
    print("  ✓ 3000 ticks within turn limits")


def test_advance_wraps():
    """Test latitude clamping and longitude wrapping."""
    print("\n=== Testing Movement Limits ===")

    wanderer = make_wanderer(initial_bearing=0.0, drift_jitter=0.0)
    wanderer.set_speed(10)
    nxt = wanderer.update(TickContext(now=0.1, center=GeoPoint(lat=85.0, lng=10.0)), LAND)
    assert nxt.lat == 85.0
    print("  ✓ latitude clamped")

    wanderer = make_wanderer(initial_bearing=90.0, drift_jitter=0.0)
    wanderer.set_speed(10)
    nxt = wanderer.update(TickContext(now=0.1, center=GeoPoint(lat=10.0, lng=179.9999)), LAND)
    assert -180.0 <= nxt.lng < -179.99, nxt.lng
    print("  ✓ longitude wrapped")

    wanderer.set_speed(0)
    center = GeoPoint(lat=10.0, lng=20.0)
    nxt = wanderer.update(TickContext(now=0.2, center=center), LAND)
    assert nxt == center
    print("  ✓ speed 0 holds position")

    try:
        wanderer.set_speed(11)
        assert False, "speed 11 should be rejected"
    except ValidationError:
        pass
    print("  ✓ speed validated")


def test_locked_mode():
    """Test locked mode holds the user heading and ignores water."""
    print("\n=== Testing Locked Mode ===")

    wanderer = make_wanderer()
    center = GeoPoint(lat=45.0, lng=7.0)
    now = run_ticks(wanderer, center, WATER, 6.0)
    assert wanderer.nav_state == NavState.WATER_AVOID

    wanderer.set_mode(WanderMode.LOCKED)
    assert wanderer.nav_state == NavState.DRIFT
    assert wanderer.state.water_entry_time is None
    print("  ✓ locking resets navigation")

    wanderer.set_bearing(180.0)
    run_ticks(wanderer, center, WATER, 60.0, start=now)
    assert wanderer.nav_state == NavState.DRIFT
    assert wanderer.bearing == 180.0
    assert wanderer.target_bearing == 180.0
    print("  ✓ heading held over water")

    wanderer.set_mode(WanderMode.RANDOM)
    assert wanderer.state.mode == WanderMode.RANDOM
    print("  ✓ unlock")


def main():
    """Run all navigation tests."""
    print("=" * 60)
    print("RARA AVIS - NAVIGATION TESTS")
    print("=" * 60)

    try:
        test_landmark_nearest()
        test_escape_target_selection()
        test_classify_features()
        test_feature_classifier()
        test_procedural_terrain()
        test_simulated_map_view()
        test_wanderer_guards()
        test_grace_period()
        test_river_is_not_water()
        test_landmark_homing()
        test_escape_and_landfall()
        test_bearing_is_bounded()
        test_advance_wraps()
        test_locked_mode()

        print("\n" + "=" * 60)
        print("ALL NAVIGATION TESTS PASSED!")
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
